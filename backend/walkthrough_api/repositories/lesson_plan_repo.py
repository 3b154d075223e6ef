"""Lesson plan repository: filtered listing, CRUD, per-user stats."""
from __future__ import annotations

from typing import Any

from sqlalchemy import case, func, select
from sqlalchemy.orm import Session

from walkthrough_api.models import LessonPlan, LessonPlanStatus


def get_lesson_plan(db: Session, lesson_plan_id: str) -> LessonPlan | None:
    return db.get(LessonPlan, lesson_plan_id)


def list_lesson_plans(
    db: Session,
    teacher_id: str | None = None,
    subject: str | None = None,
    status: str | None = None,
    created_by: str | None = None,
    grade_level: str | None = None,
    is_public: bool | None = None,
) -> list[LessonPlan]:
    stmt = select(LessonPlan)
    if teacher_id:
        stmt = stmt.where(LessonPlan.teacher_id == teacher_id)
    if subject:
        stmt = stmt.where(LessonPlan.subject == subject)
    if status:
        stmt = stmt.where(LessonPlan.status == status)
    if created_by:
        stmt = stmt.where(LessonPlan.created_by == created_by)
    if grade_level:
        stmt = stmt.where(LessonPlan.grade_level == grade_level)
    if is_public is not None:
        stmt = stmt.where(LessonPlan.is_public.is_(is_public))
    stmt = stmt.order_by(LessonPlan.created_at.desc())
    return list(db.execute(stmt).unique().scalars().all())


def list_submissions(db: Session) -> list[LessonPlan]:
    """Submitted plans, most recent submission first."""
    stmt = (
        select(LessonPlan)
        .where(LessonPlan.submitted_at.is_not(None))
        .order_by(LessonPlan.submitted_at.desc())
    )
    return list(db.execute(stmt).unique().scalars().all())


def create_lesson_plan(db: Session, **fields: Any) -> LessonPlan:
    plan = LessonPlan(**fields)
    db.add(plan)
    db.flush()
    return plan


def update_lesson_plan(db: Session, plan: LessonPlan, fields: dict[str, Any]) -> LessonPlan:
    for key, value in fields.items():
        setattr(plan, key, value)
    db.flush()
    return plan


def delete_lesson_plan(db: Session, plan: LessonPlan) -> None:
    db.delete(plan)
    db.flush()


def lesson_plan_stats(db: Session, user_id: str) -> dict[str, int]:
    """Counts by status for plans created by user_id."""
    stmt = select(
        func.count(LessonPlan.id),
        func.sum(case((LessonPlan.status == LessonPlanStatus.DRAFT.value, 1), else_=0)),
        func.sum(case((LessonPlan.status == LessonPlanStatus.SUBMITTED.value, 1), else_=0)),
        func.sum(case((LessonPlan.status == LessonPlanStatus.FINALIZED.value, 1), else_=0)),
        func.sum(case((LessonPlan.is_late_submission.is_(True), 1), else_=0)),
    ).where(LessonPlan.created_by == user_id)
    total, drafts, submitted, finalized, late = db.execute(stmt).one()
    return {
        "total": total or 0,
        "drafts": drafts or 0,
        "submitted": submitted or 0,
        "finalized": finalized or 0,
        "late": late or 0,
    }
