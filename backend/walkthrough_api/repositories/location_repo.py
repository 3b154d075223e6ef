"""Location repository."""
from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from walkthrough_api.models import Location


def list_active_locations(db: Session) -> list[Location]:
    stmt = select(Location).where(Location.active.is_(True)).order_by(Location.name)
    return list(db.execute(stmt).scalars().all())


def get_location(db: Session, location_id: str) -> Location | None:
    return db.get(Location, location_id)


def get_location_by_name(db: Session, name: str) -> Location | None:
    return db.execute(
        select(Location).where(func.lower(Location.name) == name.lower())
    ).scalar_one_or_none()


def create_location(db: Session, name: str, active: bool = True) -> Location:
    location = Location(name=name, active=active)
    db.add(location)
    db.flush()
    return location
