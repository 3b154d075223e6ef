"""Walkthrough create/update/delete with observation timing and reviewer assignment."""
from __future__ import annotations

import logging
from typing import Any, Optional

from sqlalchemy.orm import Session

from walkthrough_api.core.errors import NotFound, ValidationError
from walkthrough_api.models import User, Walkthrough, WalkthroughStatus
from walkthrough_api.models.base import ensure_utc, utcnow
from walkthrough_api.repositories import location_repo, teacher_repo, walkthrough_repo
from walkthrough_api.services.authorization import (
    Capability,
    authorize,
    authorize_walkthrough_delete,
    authorize_walkthrough_edit,
)
from walkthrough_api.services.notifications import Notifier, try_notify
from walkthrough_api.services.review_workflow import ReviewOutcome, ReviewWorkflow

logger = logging.getLogger(__name__)

# Keys the generic create/update payload may carry; review fields are not among them
_RESERVED = {
    "id",
    "created_by",
    "review_status",
    "review_started_at",
    "review_completed_at",
    "reviewer_feedback",
    "reviewer_comments",
    "notification_sent",
    "assigned_reviewer",
    "observer_ids",
    "created_at",
    "updated_at",
}


def _minutes_between(start, end) -> int:
    return round((end - ensure_utc(start)).total_seconds() / 60)


class WalkthroughService:
    def __init__(self, workflow: ReviewWorkflow, notifier: Notifier):
        self.workflow = workflow
        self.notifier = notifier

    def get(self, db: Session, walkthrough_id: str) -> Walkthrough:
        walkthrough = walkthrough_repo.get_walkthrough(db, walkthrough_id)
        if walkthrough is None:
            raise NotFound("Walkthrough", walkthrough_id)
        return walkthrough

    def _check_references(self, db: Session, fields: dict[str, Any]) -> None:
        if "teacher_id" in fields and not fields["teacher_id"]:
            raise ValidationError("teacherId cannot be empty", field="teacherId")
        if fields.get("teacher_id") and teacher_repo.get_teacher(db, fields["teacher_id"]) is None:
            raise ValidationError(f"Teacher {fields['teacher_id']} does not exist", field="teacherId")
        if fields.get("location_id") and location_repo.get_location(db, fields["location_id"]) is None:
            raise ValidationError(f"Location {fields['location_id']} does not exist", field="locationId")

    def create(self, db: Session, user: User, data: dict[str, Any]) -> ReviewOutcome:
        authorize(user, Capability.CREATE_WALKTHROUGH)
        if not data.get("teacher_id"):
            raise ValidationError("teacherId is required", field="teacherId")
        if not data.get("subject"):
            raise ValidationError("subject is required", field="subject")
        self._check_references(db, data)
        reviewer_id = data.get("assigned_reviewer") or None
        self.workflow.validate_reviewer(db, reviewer_id)

        now = utcnow()
        fields = {k: v for k, v in data.items() if k not in _RESERVED}
        if not fields.get("date_time"):
            fields["date_time"] = now
        walkthrough = walkthrough_repo.create_walkthrough(
            db,
            created_by=user.id,
            start_time=now,
            **fields,
        )
        observer_ids = data.get("observer_ids")
        if observer_ids:
            walkthrough_repo.sync_observers(db, walkthrough.id, observer_ids)
        if reviewer_id:
            self.workflow.assign(db, walkthrough, reviewer_id)
        db.commit()
        logger.info("Walkthrough %s created by %s", walkthrough.id, user.id)

        walkthrough = walkthrough_repo.get_walkthrough(db, walkthrough.id, refresh=True)
        if reviewer_id:
            outcome = self.workflow.notify_assignment(db, walkthrough)
            outcome.walkthrough = walkthrough_repo.get_walkthrough(db, walkthrough.id, refresh=True)
            return outcome
        return ReviewOutcome(walkthrough)

    def update(self, db: Session, user: User, walkthrough_id: str, data: dict[str, Any]) -> ReviewOutcome:
        """
        Apply a partial update. Only keys present in data are written.

        assignedReviewer changes go through the conditional assignment write;
        status -> completed stamps end_time and duration.
        """
        walkthrough = self.get(db, walkthrough_id)
        authorize_walkthrough_edit(user, walkthrough)
        self._check_references(db, data)

        reviewer_changed = False
        new_reviewer: Optional[str] = None
        if "assigned_reviewer" in data:
            new_reviewer = data["assigned_reviewer"] or None
            reviewer_changed = new_reviewer != walkthrough.assigned_reviewer
            if reviewer_changed:
                self.workflow.validate_reviewer(db, new_reviewer)

        was_completed = walkthrough.status == WalkthroughStatus.COMPLETED.value
        fields = {k: v for k, v in data.items() if k not in _RESERVED}
        becomes_completed = fields.get("status") == WalkthroughStatus.COMPLETED.value and not was_completed
        if becomes_completed:
            now = utcnow()
            fields["end_time"] = now
            if walkthrough.start_time:
                fields["duration"] = _minutes_between(walkthrough.start_time, now)

        if reviewer_changed:
            self.workflow.assign(db, walkthrough, new_reviewer)
        walkthrough_repo.update_walkthrough(db, walkthrough, fields)
        if "observer_ids" in data and data["observer_ids"] is not None:
            walkthrough_repo.sync_observers(db, walkthrough_id, data["observer_ids"])
        db.commit()

        walkthrough = walkthrough_repo.get_walkthrough(db, walkthrough_id, refresh=True)
        outcome = ReviewOutcome(walkthrough)
        if reviewer_changed and new_reviewer:
            assigned = self.workflow.notify_assignment(db, walkthrough)
            outcome.warnings.extend(assigned.warnings)
            outcome.notification_sent = assigned.notification_sent
        if becomes_completed and walkthrough.follow_up_needed:
            sent, warning = try_notify(
                "Teacher follow-up email",
                self.notifier.teacher_follow_up,
                walkthrough,
                walkthrough.teacher,
                walkthrough.creator,
            )
            if warning:
                outcome.warnings.append(warning)
        outcome.walkthrough = walkthrough_repo.get_walkthrough(db, walkthrough_id, refresh=True)
        return outcome

    def delete(self, db: Session, user: User, walkthrough_id: str) -> None:
        walkthrough = self.get(db, walkthrough_id)
        authorize_walkthrough_delete(user, walkthrough)
        walkthrough_repo.delete_walkthrough(db, walkthrough)
        db.commit()
        logger.info("Walkthrough %s deleted by %s", walkthrough_id, user.id)

    def read(self, db: Session, user: User, walkthrough_id: str) -> Walkthrough:
        authorize(user, Capability.READ_WALKTHROUGHS)
        return self.get(db, walkthrough_id)

    def list(self, db: Session, user: User, **filters: Any) -> list[Walkthrough]:
        authorize(user, Capability.READ_WALKTHROUGHS)
        return walkthrough_repo.list_walkthroughs(db, **filters)


def feedback_input(walkthrough: Walkthrough) -> dict[str, Any]:
    """Observation data handed to AI feedback drafting (camelCase keys)."""
    teacher = walkthrough.teacher
    return {
        "subject": walkthrough.subject,
        "gradeLevel": walkthrough.grade_level,
        "teacherName": teacher.full_name if teacher else None,
        "lessonObjective": walkthrough.lesson_objective,
        "evidenceOfLearning": walkthrough.evidence_of_learning,
        "behaviorRoutines": walkthrough.behavior_routines,
        "climate": walkthrough.climate,
        "engagementLevel": walkthrough.engagement_level,
        "transitions": walkthrough.transitions,
        "transitionComments": walkthrough.transition_comments,
        "effectivenessRatings": walkthrough.effectiveness_ratings,
    }
