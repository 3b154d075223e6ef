"""User repository: lookups, search and admin CRUD."""
from __future__ import annotations

from typing import Any, Iterable

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from walkthrough_api.models import User


def get_user(db: Session, user_id: str) -> User | None:
    return db.get(User, user_id)


def get_user_by_username(db: Session, username: str) -> User | None:
    return db.execute(select(User).where(User.username == username)).scalar_one_or_none()


def get_user_by_email(db: Session, email: str) -> User | None:
    return db.execute(
        select(User).where(func.lower(User.email) == email.lower())
    ).scalar_one_or_none()


def list_users(db: Session) -> list[User]:
    return list(db.execute(select(User).order_by(User.created_at.desc())).scalars().all())


def list_users_by_role(db: Session, role: str) -> list[User]:
    stmt = select(User).where(User.role == role).order_by(User.created_at)
    return list(db.execute(stmt).scalars().all())


def search_users(db: Session, query: str) -> list[User]:
    """Case-insensitive substring match on first name, last name or email."""
    pattern = f"%{query.lower()}%"
    stmt = (
        select(User)
        .where(
            or_(
                func.lower(User.first_name).like(pattern),
                func.lower(User.last_name).like(pattern),
                func.lower(User.email).like(pattern),
            )
        )
        .order_by(User.first_name, User.last_name)
    )
    return list(db.execute(stmt).scalars().all())


def create_user(db: Session, **fields: Any) -> User:
    user = User(**fields)
    db.add(user)
    db.flush()
    return user


def update_user(db: Session, user: User, fields: dict[str, Any], allowed: Iterable[str]) -> User:
    for key in allowed:
        if key in fields:
            setattr(user, key, fields[key])
    db.flush()
    return user


def count_users(db: Session) -> int:
    return db.execute(select(func.count()).select_from(User)).scalar_one()
