"""Shared FastAPI dependencies: DB session, current user, injected services."""
from __future__ import annotations

from typing import Generator, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from walkthrough_api.core.errors import AuthenticationError
from walkthrough_api.models import User
from walkthrough_api.services.accounts import AccountService
from walkthrough_api.services.ai_assist import AIAssistService
from walkthrough_api.services.analytics import AnalyticsService
from walkthrough_api.services.directory import DirectoryService
from walkthrough_api.services.integrations import IntegrationManager
from walkthrough_api.services.lesson_plan_extraction import LessonPlanExtractor
from walkthrough_api.services.lesson_plans import LessonPlanService
from walkthrough_api.services.presence import PresenceHub
from walkthrough_api.services.review_workflow import ReviewWorkflow
from walkthrough_api.services.walkthroughs import WalkthroughService

bearer = HTTPBearer(auto_error=False)


def get_db(request: Request) -> Generator[Session, None, None]:
    with request.app.state.database.session() as db:
        yield db


def get_accounts(request: Request) -> AccountService:
    return request.app.state.accounts


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
    db: Session = Depends(get_db),
    accounts: AccountService = Depends(get_accounts),
) -> User:
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Not authenticated")
    return accounts.user_from_token(db, credentials.credentials)


def get_directory(request: Request) -> DirectoryService:
    return request.app.state.directory


def get_walkthroughs(request: Request) -> WalkthroughService:
    return request.app.state.walkthroughs


def get_workflow(request: Request) -> ReviewWorkflow:
    return request.app.state.workflow


def get_lesson_plans(request: Request) -> LessonPlanService:
    return request.app.state.lesson_plans


def get_extractor(request: Request) -> LessonPlanExtractor:
    return request.app.state.extractor


def get_ai(request: Request) -> AIAssistService:
    return request.app.state.ai


def get_analytics(request: Request) -> AnalyticsService:
    return request.app.state.analytics


def get_integrations(request: Request) -> IntegrationManager:
    return request.app.state.integrations


def get_presence_hub(request: Request) -> PresenceHub:
    return request.app.state.presence_hub
