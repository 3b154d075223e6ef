"""Review queue and review transitions for the assigned reviewer (or an admin)."""
from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from walkthrough_api.models import ReviewStatus, User
from walkthrough_api.routers.deps import get_current_user, get_db, get_workflow
from walkthrough_api.schemas import ReviewComplete, WalkthroughOut, WalkthroughResult
from walkthrough_api.services.review_workflow import ReviewWorkflow

router = APIRouter(prefix="/reviews", tags=["reviews"])


@router.get("/pending", response_model=list[WalkthroughOut])
def pending_reviews(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    workflow: ReviewWorkflow = Depends(get_workflow),
):
    return workflow.review_queue(db, user, ReviewStatus.PENDING)


@router.get("/in-progress", response_model=list[WalkthroughOut])
def in_progress_reviews(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    workflow: ReviewWorkflow = Depends(get_workflow),
):
    return workflow.review_queue(db, user, ReviewStatus.IN_PROGRESS)


@router.get("/completed", response_model=list[WalkthroughOut])
def completed_reviews(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    workflow: ReviewWorkflow = Depends(get_workflow),
):
    return workflow.review_queue(db, user, ReviewStatus.COMPLETED)


@router.post("/{walkthrough_id}/start", response_model=WalkthroughResult)
def start_review(
    walkthrough_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    workflow: ReviewWorkflow = Depends(get_workflow),
):
    return WalkthroughResult.from_outcome(workflow.start_review(db, user, walkthrough_id))


@router.post("/{walkthrough_id}/complete", response_model=WalkthroughResult)
def complete_review(
    walkthrough_id: str,
    body: ReviewComplete,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    workflow: ReviewWorkflow = Depends(get_workflow),
):
    return WalkthroughResult.from_outcome(
        workflow.complete_review(db, user, walkthrough_id, body.reviewer_feedback, body.reviewer_comments)
    )
