"""Teacher repository (observed teachers, not logins)."""
from __future__ import annotations

from typing import Any

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from walkthrough_api.models import Teacher


def get_teacher(db: Session, teacher_id: str) -> Teacher | None:
    return db.get(Teacher, teacher_id)


def list_active_teachers(db: Session) -> list[Teacher]:
    stmt = (
        select(Teacher)
        .where(Teacher.active.is_(True))
        .order_by(Teacher.last_name, Teacher.first_name)
    )
    return list(db.execute(stmt).scalars().all())


def search_teachers(db: Session, query: str) -> list[Teacher]:
    pattern = f"%{query.lower()}%"
    stmt = (
        select(Teacher)
        .where(
            Teacher.active.is_(True),
            or_(
                func.lower(Teacher.first_name).like(pattern),
                func.lower(Teacher.last_name).like(pattern),
            ),
        )
        .order_by(Teacher.last_name, Teacher.first_name)
    )
    return list(db.execute(stmt).scalars().all())


def create_teacher(db: Session, **fields: Any) -> Teacher:
    teacher = Teacher(**fields)
    db.add(teacher)
    db.flush()
    return teacher


def update_teacher(db: Session, teacher: Teacher, fields: dict[str, Any]) -> Teacher:
    for key, value in fields.items():
        setattr(teacher, key, value)
    db.flush()
    return teacher
