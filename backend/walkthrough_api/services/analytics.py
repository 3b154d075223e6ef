"""
Dashboard analytics for coaches, leadership and admins.

Counting queries live in analytics_repo; rating averages and trends are
computed here from the walkthroughs in range, since ratings are stored as
strings and JSON.
"""
from __future__ import annotations

import logging
from collections import Counter, defaultdict
from datetime import datetime, timedelta
from statistics import mean
from typing import Any, Iterable, Optional

from sqlalchemy.orm import Session

from walkthrough_api.core.errors import ValidationError
from walkthrough_api.models import User, Walkthrough
from walkthrough_api.models.base import ensure_utc, utcnow
from walkthrough_api.repositories import analytics_repo, user_repo
from walkthrough_api.services.authorization import Capability, authorize

logger = logging.getLogger(__name__)

DATE_RANGES = {
    "week": timedelta(days=7),
    "month": timedelta(days=30),
    "quarter": timedelta(days=90),
    "year": timedelta(days=365),
}

# Effectiveness ratings on the 1-5 engagement scale
RATING_SCORES = {"excellent": 5.0, "good": 4.0, "needs-improvement": 2.0, "poor": 1.0}

# Trend/strength categories built from effectivenessRatings keys
RATING_CATEGORIES = {
    "instructionalStrategies": ("questioningTechniques", "differentiation"),
    "classroomEnvironment": ("studentInteraction", "timeManagement"),
    "lessonDelivery": ("clearInstructions", "useOfMaterials"),
}

SUBJECT_COLORS = ["#2563eb", "#16a34a", "#ea580c", "#9333ea", "#dc2626", "#0891b2", "#ca8a04", "#db2777"]

TREND_THRESHOLD = 0.3


def since_for(date_range: Optional[str], now: Optional[datetime] = None) -> Optional[datetime]:
    """Start of the window for week/month/quarter/year; None (all time) when unset or 'all'."""
    if not date_range or date_range == "all":
        return None
    if date_range not in DATE_RANGES:
        raise ValidationError(
            f"dateRange must be one of {', '.join(DATE_RANGES)}", field="dateRange"
        )
    return (now or utcnow()) - DATE_RANGES[date_range]


def _location(location: Optional[str]) -> Optional[str]:
    return None if not location or location == "all" else location


def engagement_score(walkthrough: Walkthrough) -> Optional[float]:
    try:
        return float(walkthrough.engagement_level) if walkthrough.engagement_level else None
    except ValueError:
        return None


def _rating_scores(walkthrough: Walkthrough, keys: Iterable[str]) -> list[float]:
    ratings = walkthrough.effectiveness_ratings or {}
    return [RATING_SCORES[ratings[k]] for k in keys if ratings.get(k) in RATING_SCORES]


def _avg(values: list[float]) -> float:
    return round(mean(values), 2) if values else 0.0


def average_engagement(walkthroughs: Iterable[Walkthrough]) -> float:
    return _avg([s for s in (engagement_score(w) for w in walkthroughs) if s is not None])


def teacher_trend(scores: list[float]) -> str:
    """Compare the later half of chronologically ordered scores to the earlier half."""
    if len(scores) < 2:
        return "stable"
    half = len(scores) // 2
    delta = mean(scores[half:]) - mean(scores[:half])
    if delta > TREND_THRESHOLD:
        return "improving"
    if delta < -TREND_THRESHOLD:
        return "declining"
    return "stable"


def _subject_rows(walkthroughs: list[Walkthrough]) -> list[dict[str, Any]]:
    by_subject: dict[str, list[Walkthrough]] = defaultdict(list)
    for w in walkthroughs:
        by_subject[w.subject].append(w)
    ordered = sorted(by_subject.items(), key=lambda item: (-len(item[1]), item[0]))
    return [
        {
            "subject": subject,
            "count": len(items),
            "avg_rating": average_engagement(items),
            "color": SUBJECT_COLORS[i % len(SUBJECT_COLORS)],
        }
        for i, (subject, items) in enumerate(ordered)
    ]


def _monthly_trends(walkthroughs: list[Walkthrough]) -> list[dict[str, Any]]:
    by_month: dict[str, list[Walkthrough]] = defaultdict(list)
    for w in walkthroughs:
        by_month[ensure_utc(w.date_time).strftime("%Y-%m")].append(w)
    rows = []
    for month in sorted(by_month):
        items = by_month[month]
        row: dict[str, Any] = {"date": month, "student_engagement": average_engagement(items)}
        for category, keys in RATING_CATEGORIES.items():
            scores = [s for w in items for s in _rating_scores(w, keys)]
            row[_snake(category)] = _avg(scores)
        row["count"] = len(items)
        rows.append(row)
    return rows


def _snake(name: str) -> str:
    return "".join(f"_{c.lower()}" if c.isupper() else c for c in name)


class AnalyticsService:
    def stats(self, db: Session, user: User) -> dict[str, int]:
        """The caller's own walkthrough counts (dashboard cards)."""
        return analytics_repo.walkthrough_stats(db, user.id)

    # -- coach insights ----------------------------------------------------

    def observer_activity(self, db: Session, user: User) -> list[dict[str, Any]]:
        authorize(user, Capability.VIEW_COACH_INSIGHTS)
        walkthroughs = analytics_repo.walkthroughs_in_range(db)
        by_observer: dict[str, list[Walkthrough]] = defaultdict(list)
        for w in walkthroughs:
            by_observer[w.created_by].append(w)
        rows = []
        for activity in analytics_repo.observer_activity(db):
            items = by_observer.get(activity["observer_id"], [])
            rows.append({
                "observer_id": activity["observer_id"],
                "observer_name": activity["name"],
                "role": activity["role"],
                "walkthrough_count": activity["walkthrough_count"],
                "avg_rating": average_engagement(items),
                "subjects": sorted({w.subject for w in items}),
                "last_observation": activity["last_observation"],
            })
        return rows

    def engagement_trends(self, db: Session, user: User) -> list[dict[str, Any]]:
        authorize(user, Capability.VIEW_COACH_INSIGHTS)
        return _monthly_trends(analytics_repo.walkthroughs_in_range(db))

    def subject_distribution(self, db: Session, user: User) -> list[dict[str, Any]]:
        authorize(user, Capability.VIEW_COACH_INSIGHTS)
        return _subject_rows(analytics_repo.walkthroughs_in_range(db))

    def strengths_growth(self, db: Session, user: User) -> list[dict[str, Any]]:
        """Per rating category: how many walkthroughs rated it a strength vs a growth area."""
        authorize(user, Capability.VIEW_COACH_INSIGHTS)
        counts = {category: Counter() for category in RATING_CATEGORIES}
        for w in analytics_repo.walkthroughs_in_range(db):
            for category, keys in RATING_CATEGORIES.items():
                for score in _rating_scores(w, keys):
                    counts[category]["strengths" if score >= 4 else "growth_areas"] += 1
        return [
            {
                "category": category,
                "strengths": counts[category]["strengths"],
                "growth_areas": counts[category]["growth_areas"],
            }
            for category in RATING_CATEGORIES
        ]

    def overview(self, db: Session, user: User) -> dict[str, Any]:
        authorize(user, Capability.VIEW_COACH_INSIGHTS)
        walkthroughs = analytics_repo.walkthroughs_in_range(db)
        stats = analytics_repo.walkthrough_stats(db)
        return {
            "total_walkthroughs": stats["total"],
            "this_week": stats["this_week"],
            "teachers_observed": stats["teachers_observed"],
            "avg_duration": stats["avg_duration"],
            "avg_engagement": average_engagement(walkthroughs),
            "flagged_for_coaching": sum(1 for w in walkthroughs if w.flag_for_coaching),
        }

    # -- leadership --------------------------------------------------------

    def leadership_overview(self, db: Session, user: User, location: Optional[str] = None,
                            date_range: Optional[str] = None, now: Optional[datetime] = None) -> dict[str, Any]:
        authorize(user, Capability.VIEW_LEADERSHIP_ANALYTICS)
        now = now or utcnow()
        walkthroughs = analytics_repo.walkthroughs_in_range(db, since_for(date_range, now), _location(location))
        week_ago = now - DATE_RANGES["week"]
        return {
            "total_walkthroughs": len(walkthroughs),
            "this_week": sum(1 for w in walkthroughs if ensure_utc(w.date_time) >= week_ago),
            "unique_teachers": len({w.teacher_id for w in walkthroughs}),
            "avg_engagement": average_engagement(walkthroughs),
            "total_observers": len({w.created_by for w in walkthroughs}),
            "active_locations": analytics_repo.count_active_locations(db),
        }

    def location_stats(self, db: Session, user: User, date_range: Optional[str] = None) -> list[dict[str, Any]]:
        authorize(user, Capability.VIEW_LEADERSHIP_ANALYTICS)
        since = since_for(date_range)
        walkthroughs = analytics_repo.walkthroughs_in_range(db, since)
        by_location: dict[Optional[str], list[Walkthrough]] = defaultdict(list)
        for w in walkthroughs:
            by_location[w.location_id].append(w)
        return [
            {
                "location_id": row["location_id"],
                "location_name": row["location_name"],
                "walkthrough_count": row["walkthrough_count"],
                "unique_teachers": row["teacher_count"],
                "avg_engagement": average_engagement(by_location.get(row["location_id"], [])),
            }
            for row in analytics_repo.location_counts(db, since)
        ]

    def leadership_subjects(self, db: Session, user: User, location: Optional[str] = None,
                            date_range: Optional[str] = None) -> list[dict[str, Any]]:
        authorize(user, Capability.VIEW_LEADERSHIP_ANALYTICS)
        return _subject_rows(
            analytics_repo.walkthroughs_in_range(db, since_for(date_range), _location(location))
        )

    def standards_tracking(self, db: Session, user: User, location: Optional[str] = None,
                           date_range: Optional[str] = None) -> list[dict[str, Any]]:
        """How often each standard was covered, as a share of walkthroughs in range."""
        authorize(user, Capability.VIEW_LEADERSHIP_ANALYTICS)
        walkthroughs = analytics_repo.walkthroughs_in_range(db, since_for(date_range), _location(location))
        frequency = Counter(s for w in walkthroughs for s in set(w.standards_covered or []))
        total = len(walkthroughs)
        return [
            {
                "standard": standard,
                "frequency": count,
                "percentage": round(count * 100 / total, 1) if total else 0.0,
            }
            for standard, count in frequency.most_common()
        ]

    def teacher_performance(self, db: Session, user: User, location: Optional[str] = None,
                            date_range: Optional[str] = None) -> list[dict[str, Any]]:
        authorize(user, Capability.VIEW_LEADERSHIP_ANALYTICS)
        walkthroughs = analytics_repo.walkthroughs_in_range(db, since_for(date_range), _location(location))
        by_teacher: dict[str, list[Walkthrough]] = defaultdict(list)
        for w in walkthroughs:
            by_teacher[w.teacher_id].append(w)
        rows = []
        for teacher_id, items in by_teacher.items():
            # walkthroughs_in_range is ordered by date_time
            scores = [s for s in (engagement_score(w) for w in items) if s is not None]
            rows.append({
                "teacher_id": teacher_id,
                "teacher_name": items[0].teacher.full_name if items[0].teacher else "",
                "total_observations": len(items),
                "avg_engagement": _avg(scores),
                "recent_trend": teacher_trend(scores),
                "last_observation": ensure_utc(items[-1].date_time),
            })
        rows.sort(key=lambda row: (-row["total_observations"], row["teacher_name"]))
        return rows

    def leadership_engagement_trends(self, db: Session, user: User, location: Optional[str] = None,
                                     date_range: Optional[str] = None) -> list[dict[str, Any]]:
        authorize(user, Capability.VIEW_LEADERSHIP_ANALYTICS)
        return _monthly_trends(
            analytics_repo.walkthroughs_in_range(db, since_for(date_range), _location(location))
        )

    # -- reports -----------------------------------------------------------

    def report_inputs(self, db: Session) -> tuple[dict[str, Any], list[dict[str, Any]]]:
        """(stats, walkthrough summaries) fed to the AI pattern analysis and report."""
        walkthroughs = analytics_repo.walkthroughs_in_range(db)
        stats = analytics_repo.walkthrough_stats(db)
        subjects = Counter(w.subject for w in walkthroughs)
        report_stats = {
            "totalWalkthroughs": stats["total"],
            "pendingReviews": sum(1 for w in walkthroughs if w.review_status == "pending"),
            "averageEngagement": average_engagement(walkthroughs) or 3,
            "topSubjects": [{"subject": s, "count": c} for s, c in subjects.most_common(5)],
            "teachersObserved": stats["teachers_observed"],
        }
        return report_stats, pattern_inputs(walkthroughs)

    # -- admin -------------------------------------------------------------

    def admin_stats(self, db: Session, user: User) -> dict[str, Any]:
        authorize(user, Capability.VIEW_ADMIN_STATS)
        return {
            "total_users": user_repo.count_users(db),
            "total_teachers": analytics_repo.count_active_teachers(db),
            "total_locations": analytics_repo.count_active_locations(db),
            "system_health": "good",
        }


def pattern_inputs(walkthroughs: Iterable[Walkthrough]) -> list[dict[str, Any]]:
    return [
        {
            "id": w.id,
            "teacherId": w.teacher_id,
            "subject": w.subject,
            "strengths": w.strengths or "",
            "areasForGrowth": w.areas_for_growth or "",
            "engagementLevel": w.engagement_level or "3",
            "dateTime": ensure_utc(w.date_time).isoformat(),
        }
        for w in walkthroughs
    ]
