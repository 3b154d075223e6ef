"""Base mixins, common columns and enums for models."""
from __future__ import annotations

import enum
from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from sqlalchemy import JSON, DateTime, String, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

# JSONB on Postgres, plain JSON elsewhere (SQLite in tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")


def gen_uuid():
    return str(uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """SQLite hands back naive datetimes; treat them as UTC."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


class Role(str, enum.Enum):
    OBSERVER = "observer"
    COACH = "coach"
    LEADERSHIP = "leadership"
    ADMIN = "admin"
    TEACHER = "teacher"


class ReviewStatus(str, enum.Enum):
    NOT_REQUIRED = "not-required"
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


class WalkthroughStatus(str, enum.Enum):
    DRAFT = "draft"
    COMPLETED = "completed"
    FOLLOW_UP_NEEDED = "follow-up-needed"


class LessonPlanStatus(str, enum.Enum):
    DRAFT = "draft"
    SUBMITTED = "submitted"
    FINALIZED = "finalized"
    ARCHIVED = "archived"


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


class UUIDPrimaryKeyMixin:
    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=gen_uuid,
    )
