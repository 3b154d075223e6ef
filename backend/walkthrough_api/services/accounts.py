"""Login, registration and admin user management."""
from __future__ import annotations

import logging
from typing import Any, Optional

from sqlalchemy.orm import Session

from walkthrough_api.core.config import Settings
from walkthrough_api.core.errors import AuthenticationError, Conflict, NotFound, ValidationError
from walkthrough_api.core.security import (
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)
from walkthrough_api.models import Role, User
from walkthrough_api.repositories import user_repo
from walkthrough_api.services.authorization import Capability, authorize

logger = logging.getLogger(__name__)

PROFILE_FIELDS = ("first_name", "last_name", "email", "profile_image_url")


def _parse_role(value: Any) -> str:
    try:
        return Role(value).value
    except ValueError:
        raise ValidationError(f"Unknown role '{value}'", field="role") from None


class AccountService:
    def __init__(self, settings: Settings):
        self.settings = settings

    # -- authentication ------------------------------------------------------

    def login(self, db: Session, username: str, password: str) -> tuple[str, User]:
        user = user_repo.get_user_by_username(db, username)
        if user is None or not verify_password(password, user.password_hash):
            logger.info("Failed login for %s", username)
            raise AuthenticationError("Invalid username or password")
        token = create_access_token(self.settings, user.id, user.role)
        logger.info("User %s logged in", user.id)
        return token, user

    def user_from_token(self, db: Session, token: str) -> User:
        claims = decode_access_token(self.settings, token)
        user = user_repo.get_user(db, claims["sub"])
        if user is None:
            raise AuthenticationError()
        return user

    def _check_unique(self, db: Session, username: Optional[str], email: Optional[str],
                      exclude_id: Optional[str] = None) -> None:
        if username:
            existing = user_repo.get_user_by_username(db, username)
            if existing is not None and existing.id != exclude_id:
                raise Conflict("Username already exists")
        if email:
            existing = user_repo.get_user_by_email(db, email)
            if existing is not None and existing.id != exclude_id:
                raise Conflict("Email already exists for another user account")

    def create_account(self, db: Session, data: dict[str, Any], role: str) -> User:
        username = (data.get("username") or "").strip()
        password = data.get("password") or ""
        if not username:
            raise ValidationError("username is required", field="username")
        if not password:
            raise ValidationError("password is required", field="password")
        email = (data.get("email") or "").strip().lower() or None
        self._check_unique(db, username, email)
        return user_repo.create_user(
            db,
            username=username,
            password_hash=hash_password(password),
            email=email,
            first_name=data.get("first_name") or "",
            last_name=data.get("last_name") or "",
            profile_image_url=data.get("profile_image_url"),
            role=role,
        )

    def register(self, db: Session, data: dict[str, Any]) -> User:
        """Self-service signup; always an observer account."""
        user = self.create_account(db, data, Role.OBSERVER.value)
        db.commit()
        logger.info("Registered user %s", user.id)
        return user

    # -- lookups (any signed-in user) ----------------------------------------

    def list_users(self, db: Session) -> list[User]:
        return user_repo.list_users(db)

    def search_users(self, db: Session, query: Optional[str]) -> list[User]:
        if not query:
            raise ValidationError("Query parameter 'q' is required", field="q")
        return user_repo.search_users(db, query)

    def reviewers(self, db: Session, user: User) -> list[User]:
        """Coaches and admins, i.e. everyone a walkthrough may be assigned to."""
        authorize(user, Capability.CREATE_WALKTHROUGH)
        return user_repo.list_users_by_role(db, Role.COACH.value) + user_repo.list_users_by_role(
            db, Role.ADMIN.value
        )

    # -- admin ---------------------------------------------------------------

    def admin_list_users(self, db: Session, user: User) -> list[User]:
        authorize(user, Capability.MANAGE_USERS)
        return user_repo.list_users(db)

    def admin_create_user(self, db: Session, user: User, data: dict[str, Any]) -> User:
        authorize(user, Capability.MANAGE_USERS)
        created = self.create_account(db, data, _parse_role(data.get("role") or Role.OBSERVER.value))
        db.commit()
        logger.info("Admin %s created user %s (%s)", user.id, created.id, created.role)
        return created

    def admin_update_user(self, db: Session, user: User, user_id: str, data: dict[str, Any]) -> User:
        authorize(user, Capability.MANAGE_USERS)
        target = user_repo.get_user(db, user_id)
        if target is None:
            raise NotFound("User", user_id)
        fields = dict(data)
        if "email" in fields:
            fields["email"] = (fields["email"] or "").strip().lower() or None
        self._check_unique(db, fields.get("username"), fields.get("email"), exclude_id=target.id)
        if "role" in fields:
            fields["role"] = _parse_role(fields["role"])
        if fields.get("password"):
            fields["password_hash"] = hash_password(fields["password"])
        user_repo.update_user(
            db, target, fields, allowed=PROFILE_FIELDS + ("username", "role", "password_hash")
        )
        db.commit()
        logger.info("Admin %s updated user %s", user.id, target.id)
        return target
