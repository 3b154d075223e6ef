"""
FastAPI application factory.

Every external collaborator (database, email sender, AI client, class-data
integrations) is constructed here, or passed in by tests, and stored on
app.state, where the router dependencies pick it up.
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from walkthrough_api.core.config import Settings, get_settings
from walkthrough_api.core.errors import WalkthroughAPIError
from walkthrough_api.core.logging_config import RequestLoggingMiddleware, configure_logging
from walkthrough_api.db.session import Database
from walkthrough_api.routers import (
    ai,
    analytics,
    auth,
    directory,
    integrations,
    lesson_plans,
    presence,
    reviews,
    users,
    walkthroughs,
)
from walkthrough_api.services.accounts import AccountService
from walkthrough_api.services.ai_assist import AIAssistService, AIClient
from walkthrough_api.services.analytics import AnalyticsService
from walkthrough_api.services.directory import DirectoryService
from walkthrough_api.services.integrations import IntegrationManager
from walkthrough_api.services.lesson_plan_extraction import LessonPlanExtractor
from walkthrough_api.services.lesson_plans import LessonPlanService
from walkthrough_api.services.notifications import EmailSender, Notifier, build_email_sender
from walkthrough_api.services.presence import PresenceHub, PresenceService
from walkthrough_api.services.review_workflow import ReviewWorkflow
from walkthrough_api.services.walkthroughs import WalkthroughService

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    *,
    database: Optional[Database] = None,
    email_sender: Optional[EmailSender] = None,
    ai_client: Optional[AIClient] = None,
    integration_manager: Optional[IntegrationManager] = None,
    configure_logs: bool = True,
) -> FastAPI:
    settings = settings or get_settings()
    if configure_logs:
        configure_logging(settings.log_level, settings.log_json)

    database = database or Database.from_settings(settings)
    ai_client = ai_client or AIClient.from_settings(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await ai_client.aclose()
        database.dispose()

    app = FastAPI(
        title="Classroom Walkthrough API",
        description="Classroom observations, review workflow, lesson plans and school analytics.",
        lifespan=lifespan,
    )

    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    notifier = Notifier(email_sender or build_email_sender(settings), settings.public_base_url)
    workflow = ReviewWorkflow(notifier)
    accounts = AccountService(settings)
    ai_service = AIAssistService(ai_client)

    app.state.settings = settings
    app.state.database = database
    app.state.notifier = notifier
    app.state.workflow = workflow
    app.state.accounts = accounts
    app.state.directory = DirectoryService(accounts)
    app.state.walkthroughs = WalkthroughService(workflow, notifier)
    app.state.lesson_plans = LessonPlanService(notifier, settings.school_timezone)
    app.state.ai = ai_service
    app.state.extractor = LessonPlanExtractor(ai_service, settings.max_upload_bytes)
    app.state.analytics = AnalyticsService()
    app.state.integrations = integration_manager or IntegrationManager.from_settings(settings)
    app.state.presence_hub = PresenceHub(PresenceService(database))

    @app.exception_handler(WalkthroughAPIError)
    async def handle_domain_error(request: Request, exc: WalkthroughAPIError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    for module in (auth, users, directory, walkthroughs, reviews, lesson_plans, analytics, ai, integrations):
        app.include_router(module.router, prefix="/api")
    app.include_router(presence.router)

    @app.get("/health")
    def health():
        return {"status": "ok"}

    if not ai_client.configured:
        logger.warning("AI_API_KEY not set. AI assist endpoints will return 502.")
    return app
