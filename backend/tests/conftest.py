"""
Walkthrough API - test configuration and fixtures.

Every test gets its own in-memory SQLite database, a recording email sender
and an AI client whose HTTP transport is an httpx.MockTransport, all injected
through create_app().
"""
from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import httpx
import pytest
from faker import Faker
from fastapi.testclient import TestClient

from walkthrough_api.application import create_app
from walkthrough_api.core.config import Settings
from walkthrough_api.core.errors import UpstreamFailure
from walkthrough_api.core.security import create_access_token, hash_password
from walkthrough_api.db.session import Database
from walkthrough_api.models import Location, Role, Teacher, User, Walkthrough
from walkthrough_api.repositories import location_repo, teacher_repo, user_repo, walkthrough_repo
from walkthrough_api.services.ai_assist import AIClient
from walkthrough_api.services.integrations import IntegrationManager
from walkthrough_api.services.notifications import EmailMessage, Notifier
from walkthrough_api.services.review_workflow import ReviewWorkflow
from walkthrough_api.services.walkthroughs import WalkthroughService

fake = Faker()

TEST_PASSWORD = "testpassword123"


class FakeEmailSender:
    """Records outgoing mail; set fail=True to simulate a provider outage."""

    enabled = True

    def __init__(self) -> None:
        self.sent: List[EmailMessage] = []
        self.fail = False

    def send(self, message: EmailMessage) -> None:
        if self.fail:
            raise UpstreamFailure("email", "simulated outage")
        self.sent.append(message)

    def subjects(self) -> List[str]:
        return [m.subject for m in self.sent]


class FakeAIProvider:
    """Queue of chat-completions replies served through httpx.MockTransport."""

    def __init__(self) -> None:
        self.replies: List[Any] = []
        self.requests: List[Dict[str, Any]] = []

    def reply(self, content: Any) -> None:
        """Queue a reply: dict/str is returned as message content, int as an HTTP error status."""
        self.replies.append(content)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(json.loads(request.content))
        if not self.replies:
            return httpx.Response(500, json={"error": "no reply queued"})
        reply = self.replies.pop(0)
        if isinstance(reply, int):
            return httpx.Response(reply, json={"error": "simulated"})
        if isinstance(reply, dict):
            reply = json.dumps(reply)
        return httpx.Response(200, json={"choices": [{"message": {"content": reply}}]})


@pytest.fixture
def settings() -> Settings:
    return Settings(
        database_url="sqlite://",
        jwt_secret_key="test-jwt-secret-key-for-testing",
        sendgrid_api_key=None,
        ai_api_key=None,
        google_classroom_credentials=None,
        canvas_api_key=None,
        public_base_url="http://test.local",
    )


@pytest.fixture
def database() -> Database:
    database = Database("sqlite://")
    database.create_all()
    yield database
    database.dispose()


@pytest.fixture
def db(database: Database):
    """A plain session for arranging data and calling services directly."""
    session = database.session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def email_sender() -> FakeEmailSender:
    return FakeEmailSender()


@pytest.fixture
def notifier(email_sender: FakeEmailSender) -> Notifier:
    return Notifier(email_sender, "http://test.local")


@pytest.fixture
def workflow(notifier: Notifier) -> ReviewWorkflow:
    return ReviewWorkflow(notifier)


@pytest.fixture
def walkthrough_service(workflow: ReviewWorkflow, notifier: Notifier) -> WalkthroughService:
    return WalkthroughService(workflow, notifier)


@pytest.fixture
def ai_provider() -> FakeAIProvider:
    return FakeAIProvider()


@pytest.fixture
def ai_client(ai_provider: FakeAIProvider) -> AIClient:
    return AIClient("test-ai-key", transport=httpx.MockTransport(ai_provider.handler))


@pytest.fixture
def integration_manager() -> IntegrationManager:
    return IntegrationManager()


@pytest.fixture
def app(settings, database, email_sender, ai_client, integration_manager):
    return create_app(
        settings,
        database=database,
        email_sender=email_sender,
        ai_client=ai_client,
        integration_manager=integration_manager,
        configure_logs=False,
    )


@pytest.fixture
def client(app) -> TestClient:
    with TestClient(app) as test_client:
        yield test_client


# -- data factories -----------------------------------------------------------


class Factory:
    """Creates committed rows; returned objects stay usable after commit."""

    def __init__(self, db) -> None:
        self.db = db

    def user(self, role: Role = Role.OBSERVER, **fields: Any) -> User:
        first_name = fields.pop("first_name", fake.first_name())
        last_name = fields.pop("last_name", fake.last_name())
        user = user_repo.create_user(
            self.db,
            username=fields.pop("username", fake.unique.user_name()),
            password_hash=hash_password(fields.pop("password", TEST_PASSWORD)),
            email=fields.pop("email", fake.unique.email()),
            first_name=first_name,
            last_name=last_name,
            role=role.value,
            **fields,
        )
        self.db.commit()
        return user

    def teacher(self, **fields: Any) -> Teacher:
        teacher = teacher_repo.create_teacher(
            self.db,
            first_name=fields.pop("first_name", fake.first_name()),
            last_name=fields.pop("last_name", fake.last_name()),
            email=fields.pop("email", fake.unique.email()),
            subjects=fields.pop("subjects", ["Computer Science"]),
            **fields,
        )
        self.db.commit()
        return teacher

    def location(self, name: Optional[str] = None) -> Location:
        location = location_repo.create_location(self.db, name or f"{fake.city()} Campus")
        self.db.commit()
        return location

    def walkthrough(self, creator: User, teacher: Teacher, **fields: Any) -> Walkthrough:
        """A walkthrough row written straight through the repository (no review assignment)."""
        walkthrough = walkthrough_repo.create_walkthrough(
            self.db,
            created_by=creator.id,
            teacher_id=teacher.id,
            subject=fields.pop("subject", "Computer Science"),
            date_time=fields.pop("date_time", datetime.now(timezone.utc)),
            **fields,
        )
        self.db.commit()
        return walkthrough


@pytest.fixture
def factory(db) -> Factory:
    return Factory(db)


@pytest.fixture
def auth_headers(settings):
    """Build a bearer header for any user."""

    def build(user: User) -> Dict[str, str]:
        token = create_access_token(settings, user.id, user.role)
        return {"Authorization": f"Bearer {token}"}

    return build


@pytest.fixture
def fresh(db):
    """Re-read a walkthrough from the table, discarding identity-map state."""

    def load(walkthrough_id: str) -> Walkthrough:
        db.expire_all()
        return walkthrough_repo.get_walkthrough(db, walkthrough_id, refresh=True)

    return load
