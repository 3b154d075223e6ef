"""Aggregate reads for dashboards; portable SQL via SQLAlchemy expressions."""
from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any

from sqlalchemy import distinct, func, select
from sqlalchemy.orm import Session

from walkthrough_api.models import Location, Teacher, User, Walkthrough
from walkthrough_api.models.base import utcnow


def walkthrough_stats(db: Session, user_id: str | None = None, now: datetime | None = None) -> dict[str, int]:
    """total, this week (created in the last 7 days), distinct teachers, mean duration."""
    one_week_ago = (now or utcnow()) - timedelta(days=7)
    conditions = [Walkthrough.created_by == user_id] if user_id else []

    total = db.execute(
        select(func.count(Walkthrough.id)).where(*conditions)
    ).scalar_one()
    this_week = db.execute(
        select(func.count(Walkthrough.id)).where(*conditions, Walkthrough.created_at >= one_week_ago)
    ).scalar_one()
    teachers_observed = db.execute(
        select(func.count(distinct(Walkthrough.teacher_id))).where(*conditions)
    ).scalar_one()
    avg_duration = db.execute(
        select(func.avg(Walkthrough.duration)).where(*conditions, Walkthrough.duration.is_not(None))
    ).scalar_one()
    return {
        "total": total or 0,
        "this_week": this_week or 0,
        "teachers_observed": teachers_observed or 0,
        "avg_duration": round(float(avg_duration or 0)),
    }


def walkthroughs_in_range(
    db: Session,
    since: datetime | None = None,
    location_id: str | None = None,
) -> list[Walkthrough]:
    stmt = select(Walkthrough)
    if since is not None:
        stmt = stmt.where(Walkthrough.date_time >= since)
    if location_id:
        stmt = stmt.where(Walkthrough.location_id == location_id)
    stmt = stmt.order_by(Walkthrough.date_time)
    return list(db.execute(stmt).unique().scalars().all())


def observer_activity(db: Session) -> list[dict[str, Any]]:
    """Walkthrough count and most recent observation per observer."""
    stmt = (
        select(
            User.id,
            User.first_name,
            User.last_name,
            User.role,
            func.count(Walkthrough.id),
            func.max(Walkthrough.date_time),
        )
        .join(Walkthrough, Walkthrough.created_by == User.id)
        .group_by(User.id, User.first_name, User.last_name, User.role)
        .order_by(func.count(Walkthrough.id).desc())
    )
    return [
        {
            "observer_id": row[0],
            "name": f"{row[1]} {row[2]}".strip(),
            "role": row[3],
            "walkthrough_count": row[4],
            "last_observation": row[5],
        }
        for row in db.execute(stmt).all()
    ]


def location_counts(db: Session, since: datetime | None = None) -> list[dict[str, Any]]:
    """Walkthrough and distinct-teacher counts per active location (zero rows included)."""
    join_on = Walkthrough.location_id == Location.id
    if since is not None:
        join_on = join_on & (Walkthrough.date_time >= since)
    stmt = (
        select(
            Location.id,
            Location.name,
            func.count(Walkthrough.id),
            func.count(distinct(Walkthrough.teacher_id)),
        )
        .outerjoin(Walkthrough, join_on)
        .where(Location.active.is_(True))
        .group_by(Location.id, Location.name)
        .order_by(Location.name)
    )
    return [
        {
            "location_id": row[0],
            "location_name": row[1],
            "walkthrough_count": row[2],
            "teacher_count": row[3],
        }
        for row in db.execute(stmt).all()
    ]


def count_active_teachers(db: Session) -> int:
    return db.execute(
        select(func.count(Teacher.id)).where(Teacher.active.is_(True))
    ).scalar_one()


def count_active_locations(db: Session) -> int:
    return db.execute(
        select(func.count(Location.id)).where(Location.active.is_(True))
    ).scalar_one()
