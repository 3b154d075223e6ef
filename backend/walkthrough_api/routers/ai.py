"""AI assist endpoints: standards, feedback drafts, pattern analysis, reports."""
from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session

from walkthrough_api.core.errors import ValidationError
from walkthrough_api.models import User
from walkthrough_api.routers.deps import get_ai, get_analytics, get_current_user, get_db
from walkthrough_api.schemas import (
    FeedbackSuggestion,
    GenerateReportRequest,
    ReportOut,
    StandardsSuggestionOut,
    SuggestStandardsRequest,
)
from walkthrough_api.services.ai_assist import AIAssistService
from walkthrough_api.services.analytics import AnalyticsService
from walkthrough_api.services.authorization import Capability, authorize

router = APIRouter(prefix="/ai", tags=["ai"])


@router.post("/suggest-standards", response_model=StandardsSuggestionOut)
async def suggest_standards(
    body: SuggestStandardsRequest,
    user: User = Depends(get_current_user),
    ai: AIAssistService = Depends(get_ai),
):
    authorize(user, Capability.USE_AI_ASSIST)
    if not body.lesson_objective or not body.subject:
        raise ValidationError("Lesson objective and subject are required", field="lessonObjective")
    suggestion = await ai.suggest_standards(body.lesson_objective, body.subject, body.grade_level)
    return StandardsSuggestionOut(
        suggested_standards=suggestion.standards,
        confidence=suggestion.confidence,
        reasoning=suggestion.reasoning,
    )


@router.post("/generate-feedback", response_model=FeedbackSuggestion)
async def generate_feedback(
    observation: Dict[str, Any] = Body(...),
    user: User = Depends(get_current_user),
    ai: AIAssistService = Depends(get_ai),
):
    """Draft feedback from unsaved observation data (camelCase keys)."""
    authorize(user, Capability.USE_AI_ASSIST)
    return await ai.generate_feedback(observation)


@router.get("/analyze-patterns")
async def analyze_patterns(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    ai: AIAssistService = Depends(get_ai),
    analytics: AnalyticsService = Depends(get_analytics),
):
    authorize(user, Capability.ANALYZE_PATTERNS)
    _, walkthroughs = analytics.report_inputs(db)
    return await ai.analyze_patterns(walkthroughs)


@router.post("/generate-report", response_model=ReportOut)
async def generate_report(
    body: GenerateReportRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    ai: AIAssistService = Depends(get_ai),
    analytics: AnalyticsService = Depends(get_analytics),
):
    authorize(user, Capability.GENERATE_REPORTS)
    stats, walkthroughs = analytics.report_inputs(db)
    patterns = await ai.analyze_patterns(walkthroughs)
    report = await ai.generate_report(body.timeframe or "this month", stats, patterns)
    return ReportOut(report=report, patterns=patterns, stats=stats)
