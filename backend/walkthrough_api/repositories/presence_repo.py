"""Presence repository: last-seen heartbeat per (walkthrough, user)."""
from __future__ import annotations

from datetime import datetime, timedelta

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from walkthrough_api.models import WalkthroughSession
from walkthrough_api.models.base import utcnow

ACTIVE_WINDOW = timedelta(minutes=5)


def touch_session(db: Session, walkthrough_id: str, user_id: str, now: datetime | None = None) -> WalkthroughSession:
    """Upsert: mark the user active on the walkthrough and bump last_seen."""
    now = now or utcnow()
    existing = db.execute(
        select(WalkthroughSession).where(
            WalkthroughSession.walkthrough_id == walkthrough_id,
            WalkthroughSession.user_id == user_id,
        )
    ).scalar_one_or_none()
    if existing is not None:
        existing.last_seen = now
        existing.is_active = True
        db.flush()
        return existing
    session = WalkthroughSession(
        walkthrough_id=walkthrough_id,
        user_id=user_id,
        last_seen=now,
        is_active=True,
    )
    db.add(session)
    db.flush()
    return session


def deactivate_session(db: Session, walkthrough_id: str, user_id: str) -> None:
    db.execute(
        update(WalkthroughSession)
        .where(
            WalkthroughSession.walkthrough_id == walkthrough_id,
            WalkthroughSession.user_id == user_id,
        )
        .values(is_active=False)
    )


def active_sessions(db: Session, walkthrough_id: str, now: datetime | None = None) -> list[WalkthroughSession]:
    """Sessions that are active and were seen within ACTIVE_WINDOW."""
    cutoff = (now or utcnow()) - ACTIVE_WINDOW
    stmt = select(WalkthroughSession).where(
        WalkthroughSession.walkthrough_id == walkthrough_id,
        WalkthroughSession.is_active.is_(True),
        WalkthroughSession.last_seen >= cutoff,
    )
    return list(db.execute(stmt).unique().scalars().all())
