"""Lesson plans: CRUD, weekly submission with Friday deadline, coach notifications."""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Any, Optional
from zoneinfo import ZoneInfo

from sqlalchemy.orm import Session

from walkthrough_api.core.errors import Forbidden, NotFound, ValidationError
from walkthrough_api.models import LessonPlan, LessonPlanStatus, Role, User
from walkthrough_api.models.base import ensure_utc, utcnow
from walkthrough_api.repositories import lesson_plan_repo, teacher_repo, user_repo
from walkthrough_api.services.authorization import (
    Capability,
    authorize,
    authorize_lesson_plan_owner,
)
from walkthrough_api.services.notifications import Notifier, try_notify

logger = logging.getLogger(__name__)

FRIDAY = 4  # date.weekday()
_READ_ONLY = {"id", "created_by", "submitted_at", "week_of_year", "is_late_submission",
              "coach_notified", "created_at", "updated_at"}


def first_friday(year: int) -> date:
    jan1 = date(year, 1, 1)
    return jan1 + timedelta(days=(FRIDAY - jan1.weekday()) % 7)


def friday_deadline(week_number: int, year: int, tz: ZoneInfo) -> datetime:
    """23:59:59.999 on the Friday of week_number; week 1 ends on the year's first Friday."""
    friday = first_friday(year) + timedelta(weeks=week_number - 1)
    return datetime.combine(friday, time(23, 59, 59, 999000), tzinfo=tz)


def is_submission_late(submitted_at: datetime, week_number: int, tz: ZoneInfo) -> bool:
    local = ensure_utc(submitted_at).astimezone(tz)
    return local > friday_deadline(week_number, local.year, tz)


def current_week_number(now: datetime, tz: ZoneInfo) -> int:
    local = ensure_utc(now).astimezone(tz)
    start = datetime(local.year, 1, 1, tzinfo=tz)
    return max(1, math.ceil((local - start) / timedelta(weeks=1)))


@dataclass
class SubmissionOutcome:
    lesson_plan: LessonPlan
    is_late: bool
    week_number: int
    warnings: list[str] = field(default_factory=list)

    @property
    def message(self) -> str:
        timing = "late submission" if self.is_late else "on time"
        return f"Lesson plan submitted for Week {self.week_number} ({timing})"


@dataclass
class LessonPlanOutcome:
    lesson_plan: LessonPlan
    warnings: list[str] = field(default_factory=list)


class LessonPlanService:
    def __init__(self, notifier: Notifier, timezone: str = "UTC"):
        self.notifier = notifier
        self.tz = ZoneInfo(timezone)

    def get(self, db: Session, user: User, lesson_plan_id: str) -> LessonPlan:
        authorize(user, Capability.READ_LESSON_PLANS)
        plan = lesson_plan_repo.get_lesson_plan(db, lesson_plan_id)
        if plan is None:
            raise NotFound("Lesson plan", lesson_plan_id)
        return plan

    def list(self, db: Session, user: User, **filters: Any) -> list[LessonPlan]:
        authorize(user, Capability.READ_LESSON_PLANS)
        return lesson_plan_repo.list_lesson_plans(db, **filters)

    def list_public(self, db: Session, user: User, subject: Optional[str] = None,
                    grade_level: Optional[str] = None) -> list[LessonPlan]:
        """Finalized public plans observers can attach to a walkthrough."""
        authorize(user, Capability.READ_LESSON_PLANS)
        return lesson_plan_repo.list_lesson_plans(
            db,
            subject=subject,
            grade_level=grade_level,
            status=LessonPlanStatus.FINALIZED.value,
            is_public=True,
        )

    def stats(self, db: Session, user: User) -> dict[str, int]:
        return lesson_plan_repo.lesson_plan_stats(db, user.id)

    def current_week(self, now: Optional[datetime] = None) -> dict[str, Any]:
        """Week number the school is in now, and the Friday deadline that closes it."""
        local = ensure_utc(now or utcnow()).astimezone(self.tz)
        week = current_week_number(local, self.tz)
        return {"week_number": week, "deadline": friday_deadline(week, local.year, self.tz)}

    def weekly_submissions(self, db: Session, user: User) -> list[LessonPlan]:
        authorize(user, Capability.VIEW_LESSON_PLAN_SUBMISSIONS)
        return lesson_plan_repo.list_submissions(db)

    def create(self, db: Session, user: User, data: dict[str, Any]) -> LessonPlanOutcome:
        authorize(user, Capability.MANAGE_OWN_LESSON_PLANS)
        teacher = teacher_repo.get_teacher(db, data.get("teacher_id") or "")
        if teacher is None:
            raise ValidationError("teacherId must reference an existing teacher", field="teacherId")
        fields = {k: v for k, v in data.items() if k not in _READ_ONLY}
        plan = lesson_plan_repo.create_lesson_plan(db, created_by=user.id, **fields)
        db.commit()
        logger.info("Lesson plan %s created by %s", plan.id, user.id)

        outcome = LessonPlanOutcome(plan)
        coaches = user_repo.list_users_by_role(db, Role.COACH.value)
        for coach in coaches:
            _, warning = try_notify(
                f"Lesson plan review request to {coach.username}",
                self.notifier.lesson_plan_review_requested,
                plan,
                teacher.full_name,
                coach,
            )
            if warning:
                outcome.warnings.append(warning)
        return outcome

    def update(self, db: Session, user: User, lesson_plan_id: str, data: dict[str, Any]) -> LessonPlan:
        plan = self.get(db, user, lesson_plan_id)
        authorize_lesson_plan_owner(user, plan.created_by, "edit")
        if data.get("teacher_id") and teacher_repo.get_teacher(db, data["teacher_id"]) is None:
            raise ValidationError("teacherId must reference an existing teacher", field="teacherId")
        fields = {k: v for k, v in data.items() if k not in _READ_ONLY}
        lesson_plan_repo.update_lesson_plan(db, plan, fields)
        db.commit()
        return plan

    def delete(self, db: Session, user: User, lesson_plan_id: str) -> None:
        plan = self.get(db, user, lesson_plan_id)
        authorize_lesson_plan_owner(user, plan.created_by, "delete")
        lesson_plan_repo.delete_lesson_plan(db, plan)
        db.commit()

    def submit(self, db: Session, user: User, lesson_plan_id: str, week_number: Optional[int],
               now: Optional[datetime] = None) -> SubmissionOutcome:
        if not isinstance(week_number, int) or not 1 <= week_number <= 52:
            raise ValidationError("Valid week number (1-52) is required", field="weekNumber")
        plan = self.get(db, user, lesson_plan_id)
        if plan.created_by != user.id:
            raise Forbidden("Only the creator can submit this lesson plan")

        now = now or utcnow()
        is_late = is_submission_late(now, week_number, self.tz)
        lesson_plan_repo.update_lesson_plan(db, plan, {
            "status": LessonPlanStatus.SUBMITTED.value,
            "submitted_at": now,
            "week_of_year": week_number,
            "is_late_submission": is_late,
            "coach_notified": False,
        })
        db.commit()
        logger.info("Lesson plan %s submitted for week %d (late=%s)", plan.id, week_number, is_late)

        outcome = SubmissionOutcome(plan, is_late, week_number)
        coaches = user_repo.list_users_by_role(db, Role.COACH.value)
        if not coaches:
            logger.info("No coach to notify for lesson plan %s", plan.id)
            return outcome
        # TODO: route to the coach assigned to the teacher's location once coaches carry one
        coach = coaches[0]
        sent, warning = try_notify(
            "Lesson plan submission email",
            self.notifier.lesson_plan_submitted,
            plan,
            plan.teacher,
            coach,
            is_late,
            week_number,
        )
        if warning:
            outcome.warnings.append(warning)
        if sent:
            lesson_plan_repo.update_lesson_plan(db, plan, {"coach_notified": True})
            db.commit()
        return outcome
