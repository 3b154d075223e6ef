"""Teachers and locations."""
from __future__ import annotations

import logging
from typing import Any, Optional

from sqlalchemy.orm import Session

from walkthrough_api.core.errors import Conflict, NotFound, ValidationError
from walkthrough_api.models import Location, Role, Teacher, User
from walkthrough_api.repositories import location_repo, teacher_repo
from walkthrough_api.services.accounts import AccountService
from walkthrough_api.services.authorization import Capability, authorize

logger = logging.getLogger(__name__)

TEACHER_FIELDS = ("first_name", "last_name", "email", "grade_level", "subjects", "active")


def _teacher_fields(data: dict[str, Any]) -> dict[str, Any]:
    fields = {k: data[k] for k in TEACHER_FIELDS if k in data}
    if "subjects" in fields and fields["subjects"] is None:
        fields["subjects"] = []
    return fields


class DirectoryService:
    def __init__(self, accounts: AccountService):
        self.accounts = accounts

    # -- teachers ------------------------------------------------------------

    def list_teachers(self, db: Session) -> list[Teacher]:
        return teacher_repo.list_active_teachers(db)

    def search_teachers(self, db: Session, query: Optional[str]) -> list[Teacher]:
        if not query:
            raise ValidationError("Query parameter 'q' is required", field="q")
        return teacher_repo.search_teachers(db, query)

    def create_teacher(self, db: Session, user: User, data: dict[str, Any]) -> Teacher:
        authorize(user, Capability.MANAGE_TEACHERS)
        if not data.get("first_name") or not data.get("last_name"):
            raise ValidationError("firstName and lastName are required", field="firstName")
        teacher = teacher_repo.create_teacher(db, **_teacher_fields(data))
        db.commit()
        logger.info("Teacher %s created by %s", teacher.id, user.id)
        return teacher

    def update_teacher(self, db: Session, user: User, teacher_id: str, data: dict[str, Any]) -> Teacher:
        authorize(user, Capability.MANAGE_TEACHERS)
        teacher = teacher_repo.get_teacher(db, teacher_id)
        if teacher is None:
            raise NotFound("Teacher", teacher_id)
        teacher_repo.update_teacher(db, teacher, _teacher_fields(data))
        db.commit()
        return teacher

    def create_teacher_with_account(self, db: Session, user: User, data: dict[str, Any]) -> tuple[Teacher, User]:
        """Teacher record plus a login with the teacher role, in one transaction."""
        authorize(user, Capability.MANAGE_TEACHERS)
        if not data.get("first_name") or not data.get("last_name"):
            raise ValidationError("firstName and lastName are required", field="firstName")
        account = self.accounts.create_account(db, data, Role.TEACHER.value)
        fields = _teacher_fields(data)
        fields["email"] = account.email
        fields.setdefault("active", True)
        teacher = teacher_repo.create_teacher(db, **fields)
        db.commit()
        logger.info("Teacher %s created with account %s by %s", teacher.id, account.id, user.id)
        return teacher, account

    # -- locations -----------------------------------------------------------

    def list_locations(self, db: Session) -> list[Location]:
        return location_repo.list_active_locations(db)

    def create_location(self, db: Session, user: User, name: Optional[str], active: bool = True) -> Location:
        authorize(user, Capability.MANAGE_LOCATIONS)
        name = (name or "").strip()
        if not name:
            raise ValidationError("name is required", field="name")
        if location_repo.get_location_by_name(db, name) is not None:
            raise Conflict(f"Location '{name}' already exists")
        location = location_repo.create_location(db, name, active)
        db.commit()
        return location
