"""Walkthrough: one classroom observation plus its review workflow state."""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from walkthrough_api.db.session import Base
from walkthrough_api.models.base import (
    JSONType,
    ReviewStatus,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
    WalkthroughStatus,
)


class Walkthrough(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "walkthroughs"
    __mapper_args__ = {"eager_defaults": True}

    teacher_id: Mapped[str] = mapped_column(
        ForeignKey("teachers.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    location_id: Mapped[str | None] = mapped_column(
        ForeignKey("locations.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    created_by: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    # Basic information
    date_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    subject: Mapped[str] = mapped_column(String(255), nullable=False)
    grade_level: Mapped[str | None] = mapped_column(String(64), nullable=True)
    lesson_objective: Mapped[str | None] = mapped_column(Text, nullable=True)
    lesson_plan_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    lesson_plan_id: Mapped[str | None] = mapped_column(
        ForeignKey("lesson_plans.id", ondelete="SET NULL"),
        nullable=True,
    )
    standards_covered: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)
    student_count: Mapped[int | None] = mapped_column(Integer, nullable=True)
    lesson_topics: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Structured observations
    # {checkedItems: [...], otherItem: str, clarification: str}
    evidence_of_learning: Mapped[dict | None] = mapped_column(JSONType, nullable=True)
    # {routines: [...], complianceLevel: str, consistencyRating: int, notes: str}
    behavior_routines: Mapped[dict | None] = mapped_column(JSONType, nullable=True)
    climate: Mapped[str | None] = mapped_column(String(16), nullable=True)
    climate_contributors: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)
    additional_notes_tags: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)
    additional_notes_text: Mapped[str | None] = mapped_column(String(100), nullable=True)
    flag_for_coaching: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    observer_duration: Mapped[int | None] = mapped_column(Integer, nullable=True)

    # Assessment and ratings
    engagement_level: Mapped[str | None] = mapped_column(String(1), nullable=True)  # "1".."5"
    transitions: Mapped[str | None] = mapped_column(String(32), nullable=True)
    transition_comments: Mapped[str | None] = mapped_column(Text, nullable=True)
    effectiveness_ratings: Mapped[dict | None] = mapped_column(JSONType, nullable=True)

    # Observer feedback
    strengths: Mapped[str | None] = mapped_column(Text, nullable=True)
    areas_for_growth: Mapped[str | None] = mapped_column(Text, nullable=True)
    additional_comments: Mapped[str | None] = mapped_column(Text, nullable=True)
    previous_feedback_addressed: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    growth_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Follow-up
    follow_up_needed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    assigned_reviewer: Mapped[str | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    follow_up_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    priority: Mapped[str | None] = mapped_column(String(16), nullable=True)

    # Review workflow; only review_repo writes review_status
    review_status: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        default=ReviewStatus.NOT_REQUIRED.value,
        index=True,
    )
    review_started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    review_completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    reviewer_feedback: Mapped[str | None] = mapped_column(Text, nullable=True)
    reviewer_comments: Mapped[str | None] = mapped_column(Text, nullable=True)
    notification_sent: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Metadata
    status: Mapped[str] = mapped_column(String(32), nullable=False, default=WalkthroughStatus.DRAFT.value)
    duration: Mapped[int | None] = mapped_column(Integer, nullable=True)  # minutes
    start_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    end_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    teacher: Mapped["Teacher"] = relationship("Teacher", lazy="joined")
    location: Mapped["Location | None"] = relationship("Location", lazy="joined")
    creator: Mapped["User"] = relationship("User", foreign_keys=[created_by], lazy="joined")
    reviewer: Mapped["User | None"] = relationship("User", foreign_keys=[assigned_reviewer], lazy="joined")
    lesson_plan: Mapped["LessonPlan | None"] = relationship("LessonPlan", lazy="select")
    observers: Mapped[list["WalkthroughObserver"]] = relationship(
        "WalkthroughObserver",
        back_populates="walkthrough",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    sessions: Mapped[list["WalkthroughSession"]] = relationship(
        "WalkthroughSession",
        back_populates="walkthrough",
        cascade="all, delete-orphan",
    )


class WalkthroughObserver(Base, UUIDPrimaryKeyMixin):
    __tablename__ = "walkthrough_observers"

    walkthrough_id: Mapped[str] = mapped_column(
        ForeignKey("walkthroughs.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    observer_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )

    walkthrough: Mapped["Walkthrough"] = relationship("Walkthrough", back_populates="observers")
    observer: Mapped["User"] = relationship("User", lazy="joined")
