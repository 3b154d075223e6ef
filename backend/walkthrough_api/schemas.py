"""
Request/response models. Python attributes are snake_case; the wire format
is camelCase via the alias generator, and either spelling is accepted on input.
"""
from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    def changes(self) -> Dict[str, Any]:
        """Only the fields the client actually sent, keyed by attribute name."""
        return self.model_dump(exclude_unset=True)


# -- users / auth ----------------------------------------------------------


class UserOut(CamelModel):
    id: str
    username: str
    email: Optional[str] = None
    first_name: str
    last_name: str
    profile_image_url: Optional[str] = None
    role: str
    created_at: Optional[datetime] = None


class LoginRequest(CamelModel):
    username: str
    password: str


class TokenResponse(CamelModel):
    access_token: str
    token_type: str = "bearer"
    user: UserOut


class RegisterRequest(CamelModel):
    username: str
    password: str
    email: Optional[str] = None
    first_name: str = ""
    last_name: str = ""


class UserCreate(RegisterRequest):
    role: str = "observer"
    profile_image_url: Optional[str] = None


class UserUpdate(CamelModel):
    username: Optional[str] = None
    password: Optional[str] = None
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    profile_image_url: Optional[str] = None
    role: Optional[str] = None


# -- teachers / locations --------------------------------------------------


class TeacherOut(CamelModel):
    id: str
    first_name: str
    last_name: str
    email: Optional[str] = None
    grade_level: Optional[str] = None
    subjects: List[str] = []
    active: bool = True
    created_at: Optional[datetime] = None


class TeacherCreate(CamelModel):
    first_name: str
    last_name: str
    email: Optional[str] = None
    grade_level: Optional[str] = None
    subjects: List[str] = []
    active: bool = True


class TeacherUpdate(CamelModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    grade_level: Optional[str] = None
    subjects: Optional[List[str]] = None
    active: Optional[bool] = None


class TeacherWithAccountCreate(TeacherCreate):
    username: str
    password: str


class TeacherWithAccountResponse(CamelModel):
    message: str = "Teacher and user account created successfully"
    teacher: TeacherOut
    user: UserOut


class LocationOut(CamelModel):
    id: str
    name: str
    active: bool = True


class LocationCreate(CamelModel):
    name: str
    active: bool = True


# -- walkthroughs ----------------------------------------------------------


class WalkthroughFields(CamelModel):
    """Observation fields a client may write on create/update."""

    teacher_id: Optional[str] = None
    location_id: Optional[str] = None
    date_time: Optional[datetime] = None
    subject: Optional[str] = None
    grade_level: Optional[str] = None
    lesson_objective: Optional[str] = None
    lesson_plan_url: Optional[str] = None
    lesson_plan_id: Optional[str] = None
    standards_covered: Optional[List[str]] = None
    student_count: Optional[int] = None
    lesson_topics: Optional[str] = None
    evidence_of_learning: Optional[Dict[str, Any]] = None
    behavior_routines: Optional[Dict[str, Any]] = None
    climate: Optional[str] = None
    climate_contributors: Optional[List[str]] = None
    additional_notes_tags: Optional[List[str]] = None
    additional_notes_text: Optional[str] = Field(default=None, max_length=100)
    flag_for_coaching: Optional[bool] = None
    observer_duration: Optional[int] = None
    engagement_level: Optional[str] = Field(default=None, pattern=r"^[1-5]$")
    transitions: Optional[str] = None
    transition_comments: Optional[str] = None
    effectiveness_ratings: Optional[Dict[str, Any]] = None
    strengths: Optional[str] = None
    areas_for_growth: Optional[str] = None
    additional_comments: Optional[str] = None
    previous_feedback_addressed: Optional[bool] = None
    growth_notes: Optional[str] = None
    follow_up_needed: Optional[bool] = None
    assigned_reviewer: Optional[str] = None
    follow_up_date: Optional[datetime] = None
    priority: Optional[str] = None
    status: Optional[str] = None
    observer_ids: Optional[List[str]] = None


class WalkthroughCreate(WalkthroughFields):
    pass


class WalkthroughUpdate(WalkthroughFields):
    pass


class ReviewDraft(CamelModel):
    reviewer_feedback: Optional[str] = None
    reviewer_comments: Optional[str] = None


class ReviewComplete(CamelModel):
    reviewer_feedback: Optional[str] = None
    reviewer_comments: Optional[str] = None


class ObserverOut(CamelModel):
    id: str
    observer_id: str
    observer: UserOut


class WalkthroughOut(CamelModel):
    id: str
    teacher_id: str
    location_id: Optional[str] = None
    created_by: str
    date_time: datetime
    subject: str
    grade_level: Optional[str] = None
    lesson_objective: Optional[str] = None
    lesson_plan_url: Optional[str] = None
    lesson_plan_id: Optional[str] = None
    standards_covered: List[str] = []
    student_count: Optional[int] = None
    lesson_topics: Optional[str] = None
    evidence_of_learning: Optional[Dict[str, Any]] = None
    behavior_routines: Optional[Dict[str, Any]] = None
    climate: Optional[str] = None
    climate_contributors: List[str] = []
    additional_notes_tags: List[str] = []
    additional_notes_text: Optional[str] = None
    flag_for_coaching: bool = False
    observer_duration: Optional[int] = None
    engagement_level: Optional[str] = None
    transitions: Optional[str] = None
    transition_comments: Optional[str] = None
    effectiveness_ratings: Optional[Dict[str, Any]] = None
    strengths: Optional[str] = None
    areas_for_growth: Optional[str] = None
    additional_comments: Optional[str] = None
    previous_feedback_addressed: Optional[bool] = None
    growth_notes: Optional[str] = None
    follow_up_needed: bool = False
    assigned_reviewer: Optional[str] = None
    follow_up_date: Optional[datetime] = None
    priority: Optional[str] = None
    review_status: str
    review_started_at: Optional[datetime] = None
    review_completed_at: Optional[datetime] = None
    reviewer_feedback: Optional[str] = None
    reviewer_comments: Optional[str] = None
    notification_sent: bool = False
    status: str
    duration: Optional[int] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    teacher: Optional[TeacherOut] = None
    location: Optional[LocationOut] = None
    creator: Optional[UserOut] = None
    reviewer: Optional[UserOut] = None
    observers: List[ObserverOut] = []


class WalkthroughResult(WalkthroughOut):
    """A walkthrough after a write, with any notification warnings next to it."""

    warnings: List[str] = []

    @classmethod
    def from_outcome(cls, outcome: Any) -> "WalkthroughResult":
        result = cls.model_validate(outcome.walkthrough)
        result.warnings = list(outcome.warnings)
        return result


class ActiveSessionOut(CamelModel):
    user: UserOut
    last_seen: datetime


# -- lesson plans ----------------------------------------------------------


class LessonPlanFields(CamelModel):
    teacher_id: Optional[str] = None
    title: Optional[str] = None
    subject: Optional[str] = None
    grade_level: Optional[str] = None
    date_scheduled: Optional[datetime] = None
    duration: Optional[int] = None
    objective: Optional[str] = None
    topics: Optional[str] = None
    standards_covered: Optional[List[str]] = None
    materials: Optional[str] = None
    estimated_student_count: Optional[int] = None
    classroom_notes: Optional[str] = None
    activities: Optional[str] = None
    assessment: Optional[str] = None
    differentiation: Optional[str] = None
    attachment_urls: Optional[List[str]] = None
    status: Optional[str] = None
    is_public: Optional[bool] = None


class LessonPlanCreate(LessonPlanFields):
    title: str
    subject: str


class LessonPlanUpdate(LessonPlanFields):
    pass


class LessonPlanSubmit(CamelModel):
    # Range is checked by the service so the error is a 400 with the domain message
    week_number: Optional[int] = None


class LessonPlanOut(CamelModel):
    id: str
    teacher_id: str
    created_by: str
    title: str
    subject: str
    grade_level: Optional[str] = None
    date_scheduled: Optional[datetime] = None
    duration: Optional[int] = None
    objective: Optional[str] = None
    topics: Optional[str] = None
    standards_covered: List[str] = []
    materials: Optional[str] = None
    estimated_student_count: Optional[int] = None
    classroom_notes: Optional[str] = None
    activities: Optional[str] = None
    assessment: Optional[str] = None
    differentiation: Optional[str] = None
    attachment_urls: List[str] = []
    status: str
    is_public: bool = False
    week_of_year: Optional[int] = None
    submitted_at: Optional[datetime] = None
    is_late_submission: bool = False
    coach_notified: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    teacher: Optional[TeacherOut] = None
    creator: Optional[UserOut] = None


class LessonPlanResult(LessonPlanOut):
    warnings: List[str] = []


class LessonPlanSubmitResult(CamelModel):
    message: str
    is_late: bool
    week_number: int
    lesson_plan: LessonPlanOut
    warnings: List[str] = []


class CurrentWeekOut(CamelModel):
    week_number: int
    deadline: datetime


class LessonPlanStats(CamelModel):
    total: int
    drafts: int
    submitted: int
    finalized: int
    late: int


class ExtractedLessonPlan(CamelModel):
    title: Optional[str] = None
    subject: Optional[str] = None
    grade_level: Optional[str] = None
    duration: Optional[int] = None
    objective: Optional[str] = None
    topics: Optional[str] = None
    standards_covered: Optional[List[str]] = None
    materials: Optional[str] = None
    estimated_student_count: Optional[int] = None
    activities: Optional[str] = None
    assessment: Optional[str] = None
    differentiation: Optional[str] = None


# -- AI --------------------------------------------------------------------


class SuggestStandardsRequest(CamelModel):
    lesson_objective: Optional[str] = None
    subject: Optional[str] = None
    grade_level: Optional[str] = None


class StandardsSuggestionOut(CamelModel):
    suggested_standards: List[str]
    confidence: float
    reasoning: str


class FeedbackSuggestion(CamelModel):
    strengths: str
    areas_for_growth: str
    additional_comments: str
    confidence: float


class GenerateReportRequest(CamelModel):
    timeframe: Optional[str] = None


class ReportOut(CamelModel):
    report: str
    patterns: Dict[str, Any]
    stats: Dict[str, Any]


# -- analytics -------------------------------------------------------------


class WalkthroughStats(CamelModel):
    total: int
    this_week: int
    teachers_observed: int
    avg_duration: int


class ObserverActivityOut(CamelModel):
    observer_id: str
    observer_name: str
    role: str
    walkthrough_count: int
    avg_rating: float
    subjects: List[str]
    last_observation: Optional[datetime] = None


class EngagementTrendOut(CamelModel):
    date: str
    student_engagement: float
    instructional_strategies: float
    classroom_environment: float
    lesson_delivery: float
    count: int


class SubjectDataOut(CamelModel):
    subject: str
    count: int
    avg_rating: float
    color: str


class StrengthGrowthOut(CamelModel):
    category: str
    strengths: int
    growth_areas: int


class InsightsOverview(CamelModel):
    total_walkthroughs: int
    this_week: int
    teachers_observed: int
    avg_duration: int
    avg_engagement: float
    flagged_for_coaching: int


class LeadershipOverview(CamelModel):
    total_walkthroughs: int
    this_week: int
    unique_teachers: int
    avg_engagement: float
    total_observers: int
    active_locations: int


class LocationStatsOut(CamelModel):
    location_id: str
    location_name: str
    walkthrough_count: int
    unique_teachers: int
    avg_engagement: float


class StandardsTrackingOut(CamelModel):
    standard: str
    frequency: int
    percentage: float


class TeacherPerformanceOut(CamelModel):
    teacher_id: str
    teacher_name: str
    total_observations: int
    avg_engagement: float
    recent_trend: str
    last_observation: datetime


class AdminStats(CamelModel):
    total_users: int
    total_teachers: int
    total_locations: int
    system_health: str


# -- integrations ----------------------------------------------------------


class ClassInfoOut(CamelModel):
    id: str
    name: str
    subject: str
    teacher_email: str
    enrollment_count: int
    grade_level: Optional[str] = None


class StudentInfoOut(CamelModel):
    id: str
    name: str
    email: str


class AssignmentInfoOut(CamelModel):
    id: str
    title: str
    description: str
    due_date: Optional[date] = None
    materials: List[str] = []


class SyncRequest(CamelModel):
    provider: str


class SyncResultOut(CamelModel):
    provider: str
    classes: List[ClassInfoOut]
    total_students: int
    last_sync: datetime
