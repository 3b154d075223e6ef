"""Review repository: conditional status writes using queries.py."""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, bindparam, select, text
from sqlalchemy.orm import Session

from walkthrough_api.models import ReviewStatus, Walkthrough
from walkthrough_api.models.base import utcnow
from walkthrough_api.repositories.queries import (
    SQL_ASSIGN_REVIEWER,
    SQL_COMPLETE_REVIEW,
    SQL_MARK_NOTIFICATION_SENT,
    SQL_SAVE_REVIEW_DRAFT,
    SQL_START_REVIEW,
)


def _execute(db: Session, sql: str, params: dict, now: datetime | None = None) -> int:
    """Run one transition statement; returns the number of rows it matched."""
    stmt = text(sql).bindparams(bindparam("now", type_=DateTime(timezone=True)))
    result = db.execute(stmt, {**params, "now": now or utcnow()})
    return result.rowcount


def assign_reviewer(
    db: Session,
    walkthrough_id: str,
    reviewer_id: str | None,
    now: datetime | None = None,
) -> bool:
    """Set or clear the reviewer. False when the review has already started."""
    params = {"walkthrough_id": walkthrough_id, "reviewer_id": reviewer_id}
    return _execute(db, SQL_ASSIGN_REVIEWER, params, now) == 1


def start_review(db: Session, walkthrough_id: str, now: datetime | None = None) -> bool:
    """pending -> in-progress. False when the row was not pending at write time."""
    return _execute(db, SQL_START_REVIEW, {"walkthrough_id": walkthrough_id}, now) == 1


def complete_review(
    db: Session,
    walkthrough_id: str,
    reviewer_feedback: str,
    reviewer_comments: str | None,
    now: datetime | None = None,
) -> bool:
    """in-progress -> completed. False when the row was not in-progress at write time."""
    params = {
        "walkthrough_id": walkthrough_id,
        "reviewer_feedback": reviewer_feedback,
        "reviewer_comments": reviewer_comments,
    }
    return _execute(db, SQL_COMPLETE_REVIEW, params, now) == 1


def save_draft(
    db: Session,
    walkthrough_id: str,
    reviewer_feedback: str | None,
    reviewer_comments: str | None,
    now: datetime | None = None,
) -> bool:
    params = {
        "walkthrough_id": walkthrough_id,
        "reviewer_feedback": reviewer_feedback,
        "reviewer_comments": reviewer_comments,
    }
    return _execute(db, SQL_SAVE_REVIEW_DRAFT, params, now) == 1


def mark_notification_sent(db: Session, walkthrough_id: str, sent: bool = True) -> None:
    db.execute(text(SQL_MARK_NOTIFICATION_SENT), {"walkthrough_id": walkthrough_id, "sent": sent})


def current_status(db: Session, walkthrough_id: str) -> str | None:
    """Read review_status straight from the table, bypassing the identity map."""
    return db.execute(
        select(Walkthrough.review_status).where(Walkthrough.id == walkthrough_id)
    ).scalar_one_or_none()


def list_review_queue(db: Session, reviewer_id: str, status: ReviewStatus) -> list[Walkthrough]:
    """Walkthroughs assigned to reviewer_id in the given review status, newest first."""
    stmt = (
        select(Walkthrough)
        .where(
            Walkthrough.assigned_reviewer == reviewer_id,
            Walkthrough.review_status == status.value,
        )
        .order_by(Walkthrough.date_time.desc())
    )
    return list(db.execute(stmt).unique().scalars().all())
