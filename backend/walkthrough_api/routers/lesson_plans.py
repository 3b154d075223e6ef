"""Lesson plans: CRUD, weekly submission and document extraction."""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, File, Query, Response, UploadFile
from sqlalchemy.orm import Session

from walkthrough_api.models import User
from walkthrough_api.routers.deps import get_current_user, get_db, get_extractor, get_lesson_plans
from walkthrough_api.schemas import (
    CurrentWeekOut,
    ExtractedLessonPlan,
    LessonPlanCreate,
    LessonPlanOut,
    LessonPlanResult,
    LessonPlanStats,
    LessonPlanSubmit,
    LessonPlanSubmitResult,
    LessonPlanUpdate,
)
from walkthrough_api.services.authorization import Capability, authorize
from walkthrough_api.services.lesson_plan_extraction import LessonPlanExtractor
from walkthrough_api.services.lesson_plans import LessonPlanService

router = APIRouter(prefix="/lesson-plans", tags=["lesson-plans"])


@router.get("", response_model=list[LessonPlanOut])
def list_lesson_plans(
    teacher_id: Optional[str] = Query(None, alias="teacherId"),
    subject: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    created_by: Optional[str] = Query(None, alias="createdBy"),
    grade_level: Optional[str] = Query(None, alias="gradeLevel"),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    lesson_plans: LessonPlanService = Depends(get_lesson_plans),
):
    return lesson_plans.list(
        db,
        user,
        teacher_id=teacher_id,
        subject=subject,
        status=status,
        created_by=created_by,
        grade_level=grade_level,
    )


@router.get("/my-plans", response_model=list[LessonPlanOut])
def my_lesson_plans(
    status: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    lesson_plans: LessonPlanService = Depends(get_lesson_plans),
):
    return lesson_plans.list(db, user, created_by=user.id, status=status)


@router.get("/public", response_model=list[LessonPlanOut])
def public_lesson_plans(
    subject: Optional[str] = Query(None),
    grade_level: Optional[str] = Query(None, alias="gradeLevel"),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    lesson_plans: LessonPlanService = Depends(get_lesson_plans),
):
    return lesson_plans.list_public(db, user, subject=subject, grade_level=grade_level)


@router.get("/stats", response_model=LessonPlanStats)
def lesson_plan_stats(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    lesson_plans: LessonPlanService = Depends(get_lesson_plans),
):
    return lesson_plans.stats(db, user)


@router.get("/current-week", response_model=CurrentWeekOut)
def current_week(
    user: User = Depends(get_current_user),
    lesson_plans: LessonPlanService = Depends(get_lesson_plans),
):
    return lesson_plans.current_week()


@router.get("/weekly-submissions", response_model=list[LessonPlanOut])
def weekly_submissions(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    lesson_plans: LessonPlanService = Depends(get_lesson_plans),
):
    return lesson_plans.weekly_submissions(db, user)


@router.post("/extract-from-file", response_model=ExtractedLessonPlan, response_model_exclude_none=True)
async def extract_from_file(
    file: UploadFile = File(...),
    user: User = Depends(get_current_user),
    extractor: LessonPlanExtractor = Depends(get_extractor),
):
    """Pre-fill a lesson plan from an uploaded .txt, .pdf or .docx file."""
    authorize(user, Capability.MANAGE_OWN_LESSON_PLANS)
    content = await file.read()
    return await extractor.extract(content, file.filename or "", file.content_type)


@router.get("/{lesson_plan_id}", response_model=LessonPlanOut)
def get_lesson_plan(
    lesson_plan_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    lesson_plans: LessonPlanService = Depends(get_lesson_plans),
):
    return lesson_plans.get(db, user, lesson_plan_id)


@router.post("", response_model=LessonPlanResult, status_code=201)
def create_lesson_plan(
    body: LessonPlanCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    lesson_plans: LessonPlanService = Depends(get_lesson_plans),
):
    outcome = lesson_plans.create(db, user, body.changes())
    result = LessonPlanResult.model_validate(outcome.lesson_plan)
    result.warnings = outcome.warnings
    return result


@router.patch("/{lesson_plan_id}", response_model=LessonPlanOut)
def update_lesson_plan(
    lesson_plan_id: str,
    body: LessonPlanUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    lesson_plans: LessonPlanService = Depends(get_lesson_plans),
):
    return lesson_plans.update(db, user, lesson_plan_id, body.changes())


@router.post("/{lesson_plan_id}/submit", response_model=LessonPlanSubmitResult)
def submit_lesson_plan(
    lesson_plan_id: str,
    body: LessonPlanSubmit,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    lesson_plans: LessonPlanService = Depends(get_lesson_plans),
):
    outcome = lesson_plans.submit(db, user, lesson_plan_id, body.week_number)
    return LessonPlanSubmitResult(
        message=outcome.message,
        is_late=outcome.is_late,
        week_number=outcome.week_number,
        lesson_plan=LessonPlanOut.model_validate(outcome.lesson_plan),
        warnings=outcome.warnings,
    )


@router.delete("/{lesson_plan_id}", status_code=204)
def delete_lesson_plan(
    lesson_plan_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    lesson_plans: LessonPlanService = Depends(get_lesson_plans),
):
    lesson_plans.delete(db, user, lesson_plan_id)
    return Response(status_code=204)
