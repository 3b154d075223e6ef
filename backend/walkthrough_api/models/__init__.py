"""SQLAlchemy models only; no business logic."""
from walkthrough_api.models.base import (
    LessonPlanStatus,
    ReviewStatus,
    Role,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
    WalkthroughStatus,
)
from walkthrough_api.models.lesson_plan import LessonPlan
from walkthrough_api.models.location import Location
from walkthrough_api.models.teacher import Teacher
from walkthrough_api.models.user import User
from walkthrough_api.models.walkthrough import Walkthrough, WalkthroughObserver
from walkthrough_api.models.walkthrough_session import WalkthroughSession

__all__ = [
    "LessonPlan",
    "LessonPlanStatus",
    "Location",
    "ReviewStatus",
    "Role",
    "Teacher",
    "TimestampMixin",
    "User",
    "UUIDPrimaryKeyMixin",
    "Walkthrough",
    "WalkthroughObserver",
    "WalkthroughSession",
    "WalkthroughStatus",
]
