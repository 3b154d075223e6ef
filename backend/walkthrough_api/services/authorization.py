"""
Role -> capability table and the single check every handler goes through.

Roles are evaluated per call from the user row; nothing is cached.
"""
from __future__ import annotations

import enum
import logging

from walkthrough_api.core.errors import Forbidden
from walkthrough_api.models import Role, User, Walkthrough

logger = logging.getLogger(__name__)


class Capability(str, enum.Enum):
    CREATE_WALKTHROUGH = "create_walkthrough"
    READ_WALKTHROUGHS = "read_walkthroughs"
    EDIT_ANY_WALKTHROUGH = "edit_any_walkthrough"
    DELETE_ANY_WALKTHROUGH = "delete_any_walkthrough"
    MANAGE_OWN_LESSON_PLANS = "manage_own_lesson_plans"
    MANAGE_ANY_LESSON_PLAN = "manage_any_lesson_plan"
    READ_LESSON_PLANS = "read_lesson_plans"
    VIEW_LESSON_PLAN_SUBMISSIONS = "view_lesson_plan_submissions"
    REVIEW_QUEUE = "review_queue"
    REVIEW_WALKTHROUGHS = "review_walkthroughs"
    REVIEW_ANY_WALKTHROUGH = "review_any_walkthrough"
    VIEW_COACH_INSIGHTS = "view_coach_insights"
    ANALYZE_PATTERNS = "analyze_patterns"
    VIEW_LEADERSHIP_ANALYTICS = "view_leadership_analytics"
    GENERATE_REPORTS = "generate_reports"
    USE_AI_ASSIST = "use_ai_assist"
    MANAGE_USERS = "manage_users"
    MANAGE_TEACHERS = "manage_teachers"
    MANAGE_LOCATIONS = "manage_locations"
    VIEW_ADMIN_STATS = "view_admin_stats"
    SYNC_CLASS_DATA = "sync_class_data"


_OBSERVER = frozenset({
    Capability.CREATE_WALKTHROUGH,
    Capability.READ_WALKTHROUGHS,
    Capability.MANAGE_OWN_LESSON_PLANS,
    Capability.READ_LESSON_PLANS,
    Capability.USE_AI_ASSIST,
})

_COACH = _OBSERVER | frozenset({
    Capability.EDIT_ANY_WALKTHROUGH,
    Capability.REVIEW_QUEUE,
    Capability.REVIEW_WALKTHROUGHS,
    Capability.VIEW_LESSON_PLAN_SUBMISSIONS,
    Capability.VIEW_COACH_INSIGHTS,
    Capability.ANALYZE_PATTERNS,
})

_LEADERSHIP = frozenset({
    Capability.READ_WALKTHROUGHS,
    Capability.READ_LESSON_PLANS,
    Capability.USE_AI_ASSIST,
    Capability.VIEW_COACH_INSIGHTS,
    Capability.ANALYZE_PATTERNS,
    Capability.VIEW_LEADERSHIP_ANALYTICS,
    Capability.GENERATE_REPORTS,
})

_TEACHER = frozenset({
    Capability.MANAGE_OWN_LESSON_PLANS,
    Capability.READ_LESSON_PLANS,
    Capability.USE_AI_ASSIST,
})

ROLE_CAPABILITIES: dict[Role, frozenset[Capability]] = {
    Role.OBSERVER: _OBSERVER,
    Role.COACH: _COACH,
    Role.LEADERSHIP: _LEADERSHIP,
    Role.TEACHER: _TEACHER,
    # admin is a superset of everything
    Role.ADMIN: frozenset(Capability),
}

REVIEWER_ROLES = frozenset({Role.COACH, Role.ADMIN})


def role_of(user: User) -> Role | None:
    try:
        return Role(user.role)
    except ValueError:
        return None


def capabilities_for(user: User) -> frozenset[Capability]:
    role = role_of(user)
    if role is None:
        return frozenset()
    return ROLE_CAPABILITIES[role]


def has_capability(user: User, capability: Capability) -> bool:
    return capability in capabilities_for(user)


def authorize(user: User, capability: Capability) -> None:
    """Raise Forbidden unless the user's role grants capability."""
    if not has_capability(user, capability):
        logger.info("Denied %s to user %s (role=%s)", capability.value, user.id, user.role)
        raise Forbidden(details={"capability": capability.value})


def can_review(user: User, walkthrough: Walkthrough) -> bool:
    """Assigned reviewer still holding a reviewing role, or a role allowed to act on any review (admin)."""
    if walkthrough.assigned_reviewer and walkthrough.assigned_reviewer == user.id:
        return has_capability(user, Capability.REVIEW_WALKTHROUGHS)
    return has_capability(user, Capability.REVIEW_ANY_WALKTHROUGH)


def authorize_review(user: User, walkthrough: Walkthrough, action: str) -> None:
    if not can_review(user, walkthrough):
        raise Forbidden(
            "Not authorized to review this walkthrough",
            details={"walkthrough_id": walkthrough.id, "action": action},
        )
    if walkthrough.assigned_reviewer != user.id:
        # Admin acting on someone else's review; keep a trail
        logger.warning(
            "Admin override: user %s acting on review action '%s' on walkthrough %s "
            "(assigned reviewer: %s)",
            user.id,
            action,
            walkthrough.id,
            walkthrough.assigned_reviewer or "none",
        )


def can_edit_walkthrough(user: User, walkthrough: Walkthrough) -> bool:
    if walkthrough.created_by == user.id:
        return True
    if any(link.observer_id == user.id for link in walkthrough.observers):
        return True
    return has_capability(user, Capability.EDIT_ANY_WALKTHROUGH)


def authorize_walkthrough_edit(user: User, walkthrough: Walkthrough) -> None:
    if not can_edit_walkthrough(user, walkthrough):
        raise Forbidden(
            "Not authorized to edit this walkthrough",
            details={"walkthrough_id": walkthrough.id},
        )


def authorize_walkthrough_delete(user: User, walkthrough: Walkthrough) -> None:
    if walkthrough.created_by == user.id:
        return
    if has_capability(user, Capability.DELETE_ANY_WALKTHROUGH):
        return
    raise Forbidden(
        "Not authorized to delete this walkthrough",
        details={"walkthrough_id": walkthrough.id},
    )


def authorize_lesson_plan_owner(user: User, created_by: str, action: str) -> None:
    """Creator of the plan, or a role that manages every plan (admin)."""
    if created_by == user.id or has_capability(user, Capability.MANAGE_ANY_LESSON_PLAN):
        return
    raise Forbidden(f"Not authorized to {action} this lesson plan")
