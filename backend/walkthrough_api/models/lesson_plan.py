"""Teacher-authored lesson plan; can pre-populate walkthrough fields."""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from walkthrough_api.db.session import Base
from walkthrough_api.models.base import (
    JSONType,
    LessonPlanStatus,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
)


class LessonPlan(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "lesson_plans"
    __mapper_args__ = {"eager_defaults": True}

    teacher_id: Mapped[str] = mapped_column(
        ForeignKey("teachers.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    created_by: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    subject: Mapped[str] = mapped_column(String(255), nullable=False)
    grade_level: Mapped[str | None] = mapped_column(String(64), nullable=True)
    date_scheduled: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    duration: Mapped[int | None] = mapped_column(Integer, nullable=True)  # minutes

    objective: Mapped[str | None] = mapped_column(Text, nullable=True)
    topics: Mapped[str | None] = mapped_column(Text, nullable=True)
    standards_covered: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)
    materials: Mapped[str | None] = mapped_column(Text, nullable=True)

    estimated_student_count: Mapped[int | None] = mapped_column(Integer, nullable=True)
    classroom_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    activities: Mapped[str | None] = mapped_column(Text, nullable=True)
    assessment: Mapped[str | None] = mapped_column(Text, nullable=True)
    differentiation: Mapped[str | None] = mapped_column(Text, nullable=True)

    attachment_urls: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)

    status: Mapped[str] = mapped_column(String(32), nullable=False, default=LessonPlanStatus.DRAFT.value)
    is_public: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Weekly submission tracking
    week_of_year: Mapped[int | None] = mapped_column(Integer, nullable=True)
    submitted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    is_late_submission: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    coach_notified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    teacher: Mapped["Teacher"] = relationship("Teacher", lazy="joined")
    creator: Mapped["User"] = relationship("User", lazy="joined")
