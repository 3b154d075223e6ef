"""Walkthrough CRUD, reviewer draft save, AI feedback and presence sessions."""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from walkthrough_api.models import User
from walkthrough_api.routers.deps import (
    get_ai,
    get_current_user,
    get_db,
    get_presence_hub,
    get_walkthroughs,
    get_workflow,
)
from walkthrough_api.schemas import (
    ActiveSessionOut,
    FeedbackSuggestion,
    ReviewDraft,
    WalkthroughCreate,
    WalkthroughOut,
    WalkthroughResult,
    WalkthroughUpdate,
)
from walkthrough_api.services.ai_assist import AIAssistService
from walkthrough_api.services.authorization import Capability, authorize
from walkthrough_api.services.presence import PresenceHub
from walkthrough_api.services.review_workflow import ReviewWorkflow
from walkthrough_api.services.walkthroughs import WalkthroughService, feedback_input

router = APIRouter(prefix="/walkthroughs", tags=["walkthroughs"])


@router.get("", response_model=list[WalkthroughOut])
def list_walkthroughs(
    teacher_id: Optional[str] = Query(None, alias="teacherId"),
    subject: Optional[str] = Query(None),
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    status: Optional[str] = Query(None),
    review_status: Optional[str] = Query(None, alias="reviewStatus"),
    assigned_reviewer: Optional[str] = Query(None, alias="assignedReviewer"),
    follow_up_needed: Optional[bool] = Query(None, alias="followUpNeeded"),
    created_by: Optional[str] = Query(None, alias="createdBy"),
    location_id: Optional[str] = Query(None, alias="locationId"),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    walkthroughs: WalkthroughService = Depends(get_walkthroughs),
):
    return walkthroughs.list(
        db,
        user,
        teacher_id=teacher_id,
        subject=subject,
        start_date=start_date,
        end_date=end_date,
        status=status,
        review_status=review_status,
        assigned_reviewer=assigned_reviewer,
        follow_up_needed=follow_up_needed,
        created_by=created_by,
        location_id=location_id,
    )


@router.get("/{walkthrough_id}", response_model=WalkthroughOut)
def get_walkthrough(
    walkthrough_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    walkthroughs: WalkthroughService = Depends(get_walkthroughs),
):
    return walkthroughs.read(db, user, walkthrough_id)


@router.post("", response_model=WalkthroughResult, status_code=201)
def create_walkthrough(
    body: WalkthroughCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    walkthroughs: WalkthroughService = Depends(get_walkthroughs),
):
    return WalkthroughResult.from_outcome(walkthroughs.create(db, user, body.changes()))


@router.put("/{walkthrough_id}", response_model=WalkthroughResult)
def update_walkthrough(
    walkthrough_id: str,
    body: WalkthroughUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    walkthroughs: WalkthroughService = Depends(get_walkthroughs),
):
    return WalkthroughResult.from_outcome(walkthroughs.update(db, user, walkthrough_id, body.changes()))


@router.patch("/{walkthrough_id}", response_model=WalkthroughResult)
def save_review_draft(
    walkthrough_id: str,
    body: ReviewDraft,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    workflow: ReviewWorkflow = Depends(get_workflow),
):
    """Save reviewer feedback/comments without changing review status."""
    return WalkthroughResult.from_outcome(workflow.save_draft(db, user, walkthrough_id, body.changes()))


@router.delete("/{walkthrough_id}", status_code=204)
def delete_walkthrough(
    walkthrough_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    walkthroughs: WalkthroughService = Depends(get_walkthroughs),
):
    walkthroughs.delete(db, user, walkthrough_id)
    return Response(status_code=204)


@router.post("/{walkthrough_id}/generate-feedback", response_model=FeedbackSuggestion)
async def generate_feedback(
    walkthrough_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    walkthroughs: WalkthroughService = Depends(get_walkthroughs),
    ai: AIAssistService = Depends(get_ai),
):
    authorize(user, Capability.USE_AI_ASSIST)
    walkthrough = walkthroughs.read(db, user, walkthrough_id)
    return await ai.generate_feedback(feedback_input(walkthrough))


@router.get("/{walkthrough_id}/sessions", response_model=list[ActiveSessionOut])
def active_sessions(
    walkthrough_id: str,
    user: User = Depends(get_current_user),
    hub: PresenceHub = Depends(get_presence_hub),
):
    authorize(user, Capability.READ_WALKTHROUGHS)
    return hub.presence.active(walkthrough_id)
