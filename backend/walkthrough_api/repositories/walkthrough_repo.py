"""Walkthrough repository: filtered listing, CRUD and observer links."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from walkthrough_api.models import Walkthrough, WalkthroughObserver


def get_walkthrough(db: Session, walkthrough_id: str, refresh: bool = False) -> Walkthrough | None:
    """Load one walkthrough. refresh=True discards identity-map state, e.g. after a raw UPDATE."""
    if refresh:
        return db.get(Walkthrough, walkthrough_id, populate_existing=True)
    return db.get(Walkthrough, walkthrough_id)


def list_walkthroughs(
    db: Session,
    teacher_id: str | None = None,
    subject: str | None = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    status: str | None = None,
    review_status: str | None = None,
    assigned_reviewer: str | None = None,
    follow_up_needed: bool | None = None,
    created_by: str | None = None,
    location_id: str | None = None,
) -> list[Walkthrough]:
    stmt = select(Walkthrough)
    if teacher_id:
        stmt = stmt.where(Walkthrough.teacher_id == teacher_id)
    if subject:
        stmt = stmt.where(func.lower(Walkthrough.subject).like(f"%{subject.lower()}%"))
    if start_date is not None:
        stmt = stmt.where(Walkthrough.date_time >= start_date)
    if end_date is not None:
        stmt = stmt.where(Walkthrough.date_time <= end_date)
    if status:
        stmt = stmt.where(Walkthrough.status == status)
    if review_status:
        stmt = stmt.where(Walkthrough.review_status == review_status)
    if assigned_reviewer:
        stmt = stmt.where(Walkthrough.assigned_reviewer == assigned_reviewer)
    if follow_up_needed is not None:
        stmt = stmt.where(Walkthrough.follow_up_needed.is_(follow_up_needed))
    if created_by:
        stmt = stmt.where(Walkthrough.created_by == created_by)
    if location_id:
        stmt = stmt.where(Walkthrough.location_id == location_id)
    stmt = stmt.order_by(Walkthrough.date_time.desc())
    return list(db.execute(stmt).unique().scalars().all())


def create_walkthrough(db: Session, **fields: Any) -> Walkthrough:
    walkthrough = Walkthrough(**fields)
    db.add(walkthrough)
    db.flush()
    return walkthrough


def update_walkthrough(db: Session, walkthrough: Walkthrough, fields: dict[str, Any]) -> Walkthrough:
    # review_status is owned by review_repo's conditional updates
    fields = {k: v for k, v in fields.items() if k != "review_status"}
    for key, value in fields.items():
        setattr(walkthrough, key, value)
    db.flush()
    return walkthrough


def delete_walkthrough(db: Session, walkthrough: Walkthrough) -> None:
    db.delete(walkthrough)
    db.flush()


def observer_ids(db: Session, walkthrough_id: str) -> list[str]:
    stmt = select(WalkthroughObserver.observer_id).where(
        WalkthroughObserver.walkthrough_id == walkthrough_id
    )
    return list(db.execute(stmt).scalars().all())


def sync_observers(db: Session, walkthrough_id: str, wanted: Iterable[str]) -> None:
    """Make the observer links for walkthrough_id exactly the set `wanted`."""
    wanted_ids = list(dict.fromkeys(wanted))
    current = set(observer_ids(db, walkthrough_id))
    for observer_id in wanted_ids:
        if observer_id not in current:
            db.add(WalkthroughObserver(walkthrough_id=walkthrough_id, observer_id=observer_id))
    stale = current - set(wanted_ids)
    if stale:
        db.execute(
            delete(WalkthroughObserver).where(
                WalkthroughObserver.walkthrough_id == walkthrough_id,
                WalkthroughObserver.observer_id.in_(stale),
            )
        )
    db.flush()
