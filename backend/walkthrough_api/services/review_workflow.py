"""
Review workflow: not-required -> pending -> in-progress -> completed.

Each transition is a single conditional UPDATE (see repositories/queries.py)
committed before any email is attempted. Check order for start/complete:
NotFound, Forbidden, ValidationError (complete only), then the conditional
write; a write that matches no row is an InvalidTransition.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from sqlalchemy.orm import Session

from walkthrough_api.core.errors import InvalidTransition, NotFound, ValidationError
from walkthrough_api.models import ReviewStatus, User, Walkthrough
from walkthrough_api.repositories import review_repo, user_repo, walkthrough_repo
from walkthrough_api.services.authorization import (
    REVIEWER_ROLES,
    Capability,
    authorize,
    authorize_review,
    role_of,
)
from walkthrough_api.services.notifications import Notifier, try_notify

logger = logging.getLogger(__name__)

DRAFT_FIELDS = ("reviewer_feedback", "reviewer_comments")


@dataclass
class ReviewOutcome:
    walkthrough: Walkthrough
    warnings: list[str] = field(default_factory=list)
    notification_sent: bool = False


class ReviewWorkflow:
    def __init__(self, notifier: Notifier):
        self.notifier = notifier

    # -- helpers -----------------------------------------------------------

    def _load(self, db: Session, walkthrough_id: str) -> Walkthrough:
        walkthrough = walkthrough_repo.get_walkthrough(db, walkthrough_id)
        if walkthrough is None:
            raise NotFound("Walkthrough", walkthrough_id)
        return walkthrough

    def _reload(self, db: Session, walkthrough_id: str) -> Walkthrough:
        walkthrough = walkthrough_repo.get_walkthrough(db, walkthrough_id, refresh=True)
        if walkthrough is None:
            raise NotFound("Walkthrough", walkthrough_id)
        return walkthrough

    def _reject(self, db: Session, walkthrough_id: str, action: str, expected: ReviewStatus) -> InvalidTransition:
        db.rollback()
        actual = review_repo.current_status(db, walkthrough_id)
        logger.info(
            "Rejected %s on walkthrough %s: expected %s, found %s",
            action, walkthrough_id, expected.value, actual,
        )
        return InvalidTransition(walkthrough_id, action, expected.value, actual)

    # -- assignment --------------------------------------------------------

    def validate_reviewer(self, db: Session, reviewer_id: Optional[str]) -> Optional[User]:
        """Resolve a reviewer id; must be an existing coach or admin."""
        if not reviewer_id:
            return None
        reviewer = user_repo.get_user(db, reviewer_id)
        if reviewer is None:
            raise ValidationError(f"Assigned reviewer {reviewer_id} does not exist", field="assignedReviewer")
        if role_of(reviewer) not in REVIEWER_ROLES:
            raise ValidationError("Assigned reviewer must be a coach or admin", field="assignedReviewer")
        return reviewer

    def assign(self, db: Session, walkthrough: Walkthrough, reviewer_id: Optional[str]) -> None:
        """
        Set or clear the reviewer inside the caller's transaction.

        Moves not-required/pending to pending (reviewer) or not-required (none).
        Raises InvalidTransition once the review has started; the caller's
        transaction is rolled back in that case.
        """
        reviewer_id = reviewer_id or None
        if not review_repo.assign_reviewer(db, walkthrough.id, reviewer_id):
            raise self._reject(db, walkthrough.id, "reassign", ReviewStatus.PENDING)
        logger.info(
            "Walkthrough %s reviewer %s",
            walkthrough.id,
            f"assigned to {reviewer_id}" if reviewer_id else "cleared",
        )

    def notify_assignment(self, db: Session, walkthrough: Walkthrough) -> ReviewOutcome:
        """Email the newly assigned reviewer; failures become warnings."""
        outcome = ReviewOutcome(walkthrough)
        reviewer = walkthrough.reviewer
        if reviewer is None:
            return outcome
        sent, warning = try_notify(
            "Review assignment email",
            self.notifier.review_assigned,
            walkthrough,
            walkthrough.teacher,
            reviewer,
            walkthrough.creator,
        )
        if warning:
            outcome.warnings.append(warning)
        if sent:
            review_repo.mark_notification_sent(db, walkthrough.id)
            db.commit()
            outcome.notification_sent = True
        return outcome

    # -- transitions -------------------------------------------------------

    def start_review(self, db: Session, user: User, walkthrough_id: str) -> ReviewOutcome:
        walkthrough = self._load(db, walkthrough_id)
        authorize_review(user, walkthrough, "start")
        if not review_repo.start_review(db, walkthrough_id):
            raise self._reject(db, walkthrough_id, "start", ReviewStatus.PENDING)
        db.commit()
        logger.info("Review started on walkthrough %s by %s", walkthrough_id, user.id)
        return ReviewOutcome(self._reload(db, walkthrough_id))

    def complete_review(
        self,
        db: Session,
        user: User,
        walkthrough_id: str,
        reviewer_feedback: Optional[str],
        reviewer_comments: Optional[str] = None,
    ) -> ReviewOutcome:
        walkthrough = self._load(db, walkthrough_id)
        authorize_review(user, walkthrough, "complete")
        if reviewer_feedback is None or not reviewer_feedback.strip():
            raise ValidationError("Reviewer feedback is required to complete a review", field="reviewerFeedback")
        if not review_repo.complete_review(db, walkthrough_id, reviewer_feedback.strip(), reviewer_comments):
            raise self._reject(db, walkthrough_id, "complete", ReviewStatus.IN_PROGRESS)
        db.commit()
        logger.info("Review completed on walkthrough %s by %s", walkthrough_id, user.id)

        walkthrough = self._reload(db, walkthrough_id)
        outcome = ReviewOutcome(walkthrough)
        sent, warning = try_notify(
            "Review completion email",
            self.notifier.review_completed,
            walkthrough,
            walkthrough.teacher,
            user,
            walkthrough.creator,
        )
        if warning:
            outcome.warnings.append(warning)
        if sent:
            review_repo.mark_notification_sent(db, walkthrough_id)
            db.commit()
            outcome.notification_sent = True
            outcome.walkthrough = self._reload(db, walkthrough_id)
        return outcome

    def save_draft(self, db: Session, user: User, walkthrough_id: str, changes: dict) -> ReviewOutcome:
        """Persist reviewer_feedback/reviewer_comments only; status is untouched."""
        walkthrough = self._load(db, walkthrough_id)
        authorize_review(user, walkthrough, "save draft")
        feedback = changes.get("reviewer_feedback", walkthrough.reviewer_feedback)
        comments = changes.get("reviewer_comments", walkthrough.reviewer_comments)
        review_repo.save_draft(db, walkthrough_id, feedback, comments)
        db.commit()
        return ReviewOutcome(self._reload(db, walkthrough_id))

    def review_queue(self, db: Session, user: User, status: ReviewStatus) -> list[Walkthrough]:
        authorize(user, Capability.REVIEW_QUEUE)
        return review_repo.list_review_queue(db, user.id, status)
