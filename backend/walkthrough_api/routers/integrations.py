"""Class-data integrations (admin only)."""
from __future__ import annotations

from fastapi import APIRouter, Depends

from walkthrough_api.models import User
from walkthrough_api.routers.deps import get_current_user, get_integrations
from walkthrough_api.schemas import AssignmentInfoOut, StudentInfoOut, SyncRequest, SyncResultOut
from walkthrough_api.services.authorization import Capability, authorize
from walkthrough_api.services.integrations import IntegrationManager

router = APIRouter(prefix="/integrations", tags=["integrations"])


@router.get("/providers")
def list_providers(
    user: User = Depends(get_current_user),
    integrations: IntegrationManager = Depends(get_integrations),
):
    authorize(user, Capability.SYNC_CLASS_DATA)
    return {"providers": integrations.provider_names()}


@router.post("/sync", response_model=SyncResultOut)
def sync_class_data(
    body: SyncRequest,
    user: User = Depends(get_current_user),
    integrations: IntegrationManager = Depends(get_integrations),
):
    authorize(user, Capability.SYNC_CLASS_DATA)
    return integrations.sync_class_data(body.provider)


@router.get("/{provider}/classes/{class_id}/students", response_model=list[StudentInfoOut])
def list_students(
    provider: str,
    class_id: str,
    user: User = Depends(get_current_user),
    integrations: IntegrationManager = Depends(get_integrations),
):
    authorize(user, Capability.SYNC_CLASS_DATA)
    return integrations.get_provider(provider).get_students(class_id)


@router.get("/{provider}/classes/{class_id}/assignments", response_model=list[AssignmentInfoOut])
def list_assignments(
    provider: str,
    class_id: str,
    user: User = Depends(get_current_user),
    integrations: IntegrationManager = Depends(get_integrations),
):
    authorize(user, Capability.SYNC_CLASS_DATA)
    return integrations.get_provider(provider).get_assignments(class_id)
