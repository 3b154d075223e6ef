"""Dashboard statistics, coach insights, leadership analytics and admin stats."""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from walkthrough_api.models import User
from walkthrough_api.routers.deps import get_analytics, get_current_user, get_db
from walkthrough_api.schemas import (
    AdminStats,
    EngagementTrendOut,
    InsightsOverview,
    LeadershipOverview,
    LocationStatsOut,
    ObserverActivityOut,
    StandardsTrackingOut,
    StrengthGrowthOut,
    SubjectDataOut,
    TeacherPerformanceOut,
    WalkthroughStats,
)
from walkthrough_api.services.analytics import AnalyticsService

router = APIRouter(tags=["analytics"])

LocationFilter = Query(None, description="Location id, or 'all'")
DateRangeFilter = Query(None, alias="dateRange", description="week, month, quarter or year")


@router.get("/stats", response_model=WalkthroughStats)
def my_stats(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    analytics: AnalyticsService = Depends(get_analytics),
):
    return analytics.stats(db, user)


# -- coach insights ------------------------------------------------------------


@router.get("/analytics/observer-activity", response_model=list[ObserverActivityOut])
def observer_activity(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    analytics: AnalyticsService = Depends(get_analytics),
):
    return analytics.observer_activity(db, user)


@router.get("/analytics/engagement-trends", response_model=list[EngagementTrendOut])
def engagement_trends(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    analytics: AnalyticsService = Depends(get_analytics),
):
    return analytics.engagement_trends(db, user)


@router.get("/analytics/subject-distribution", response_model=list[SubjectDataOut])
def subject_distribution(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    analytics: AnalyticsService = Depends(get_analytics),
):
    return analytics.subject_distribution(db, user)


@router.get("/analytics/strengths-growth", response_model=list[StrengthGrowthOut])
def strengths_growth(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    analytics: AnalyticsService = Depends(get_analytics),
):
    return analytics.strengths_growth(db, user)


@router.get("/analytics/overview", response_model=InsightsOverview)
def insights_overview(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    analytics: AnalyticsService = Depends(get_analytics),
):
    return analytics.overview(db, user)


# -- leadership ----------------------------------------------------------------


@router.get("/leadership/overview", response_model=LeadershipOverview)
def leadership_overview(
    location: Optional[str] = LocationFilter,
    date_range: Optional[str] = DateRangeFilter,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    analytics: AnalyticsService = Depends(get_analytics),
):
    return analytics.leadership_overview(db, user, location, date_range)


@router.get("/leadership/locations", response_model=list[LocationStatsOut])
def leadership_locations(
    date_range: Optional[str] = DateRangeFilter,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    analytics: AnalyticsService = Depends(get_analytics),
):
    return analytics.location_stats(db, user, date_range)


@router.get("/leadership/subjects", response_model=list[SubjectDataOut])
def leadership_subjects(
    location: Optional[str] = LocationFilter,
    date_range: Optional[str] = DateRangeFilter,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    analytics: AnalyticsService = Depends(get_analytics),
):
    return analytics.leadership_subjects(db, user, location, date_range)


@router.get("/leadership/standards", response_model=list[StandardsTrackingOut])
def leadership_standards(
    location: Optional[str] = LocationFilter,
    date_range: Optional[str] = DateRangeFilter,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    analytics: AnalyticsService = Depends(get_analytics),
):
    return analytics.standards_tracking(db, user, location, date_range)


@router.get("/leadership/teachers", response_model=list[TeacherPerformanceOut])
def leadership_teachers(
    location: Optional[str] = LocationFilter,
    date_range: Optional[str] = DateRangeFilter,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    analytics: AnalyticsService = Depends(get_analytics),
):
    return analytics.teacher_performance(db, user, location, date_range)


@router.get("/leadership/engagement-trends", response_model=list[EngagementTrendOut])
def leadership_engagement_trends(
    location: Optional[str] = LocationFilter,
    date_range: Optional[str] = DateRangeFilter,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    analytics: AnalyticsService = Depends(get_analytics),
):
    return analytics.leadership_engagement_trends(db, user, location, date_range)


@router.get("/admin/stats", response_model=AdminStats)
def admin_stats(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    analytics: AnalyticsService = Depends(get_analytics),
):
    return analytics.admin_stats(db, user)
