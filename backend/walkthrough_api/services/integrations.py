"""
Class-data integrations (Google Classroom, Canvas).

Providers implement ClassDataProvider; IntegrationManager is built once in
create_app() from settings and injected into the integrations router.
"""
from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from walkthrough_api.core.config import Settings
from walkthrough_api.core.errors import NotFound, UpstreamFailure, ValidationError
from walkthrough_api.models.base import utcnow

logger = logging.getLogger(__name__)

GOOGLE_CLASSROOM_SCOPES = [
    "https://www.googleapis.com/auth/classroom.courses.readonly",
    "https://www.googleapis.com/auth/classroom.rosters.readonly",
    "https://www.googleapis.com/auth/classroom.coursework.students.readonly",
]


@dataclass
class ClassInfo:
    id: str
    name: str
    subject: str
    teacher_email: str
    enrollment_count: int = 0
    grade_level: Optional[str] = None


@dataclass
class StudentInfo:
    id: str
    name: str
    email: str


@dataclass
class AssignmentInfo:
    id: str
    title: str
    description: str
    due_date: Optional[date] = None
    materials: List[str] = field(default_factory=list)


@dataclass
class SyncResult:
    provider: str
    classes: List[ClassInfo]
    total_students: int
    last_sync: datetime


class ClassDataProvider(ABC):
    """Read-only source of classes, rosters and coursework."""

    name: str

    @abstractmethod
    def get_classes(self) -> List[ClassInfo]:
        ...

    @abstractmethod
    def get_students(self, class_id: str) -> List[StudentInfo]:
        ...

    @abstractmethod
    def get_assignments(self, class_id: str) -> List[AssignmentInfo]:
        ...


def _due_date(value: Optional[Dict[str, int]]) -> Optional[date]:
    if not value or not value.get("year"):
        return None
    return date(value["year"], value.get("month", 1), value.get("day", 1))


def _material_label(material: Dict[str, Any]) -> str:
    if material.get("link", {}).get("url"):
        return material["link"]["url"]
    drive_file = material.get("driveFile", {}).get("driveFile", {})
    return drive_file.get("title") or "Material"


class GoogleClassroomProvider(ClassDataProvider):
    name = "google-classroom"

    def __init__(self, credentials_info: Dict[str, Any], service: Any = None):
        self.credentials_info = credentials_info
        self._service = service

    @property
    def service(self) -> Any:
        if self._service is None:
            credentials = service_account.Credentials.from_service_account_info(
                self.credentials_info, scopes=GOOGLE_CLASSROOM_SCOPES
            )
            self._service = build("classroom", "v1", credentials=credentials, cache_discovery=False)
        return self._service

    def _execute(self, request: Any, what: str) -> Dict[str, Any]:
        try:
            return request.execute()
        except HttpError as exc:
            logger.error("Google Classroom %s failed: %s", what, exc)
            raise UpstreamFailure("google_classroom", f"{what} failed ({exc.status_code})") from exc

    def get_classes(self) -> List[ClassInfo]:
        data = self._execute(self.service.courses().list(courseStates=["ACTIVE"]), "list courses")
        return [
            ClassInfo(
                id=course["id"],
                name=course.get("name", ""),
                subject=course.get("section") or "General",
                # ownerId is a Classroom user id; resolving it to an email needs the userProfiles API
                teacher_email=course.get("ownerId", ""),
                grade_level=course.get("descriptionHeading"),
            )
            for course in data.get("courses", [])
        ]

    def get_students(self, class_id: str) -> List[StudentInfo]:
        data = self._execute(
            self.service.courses().students().list(courseId=class_id), f"list students of {class_id}"
        )
        return [
            StudentInfo(
                id=student.get("userId", ""),
                name=student.get("profile", {}).get("name", {}).get("fullName") or "Unknown",
                email=student.get("profile", {}).get("emailAddress") or "",
            )
            for student in data.get("students", [])
        ]

    def get_assignments(self, class_id: str) -> List[AssignmentInfo]:
        data = self._execute(
            self.service.courses().courseWork().list(courseId=class_id), f"list coursework of {class_id}"
        )
        return [
            AssignmentInfo(
                id=work["id"],
                title=work.get("title", ""),
                description=work.get("description") or "",
                due_date=_due_date(work.get("dueDate")),
                materials=[_material_label(m) for m in work.get("materials", [])],
            )
            for work in data.get("courseWork", [])
        ]


class CanvasProvider(ClassDataProvider):
    """Extension point: registered when Canvas settings exist, returns no data yet."""

    name = "canvas"

    def __init__(self, api_key: str, base_url: str):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")

    def get_classes(self) -> List[ClassInfo]:
        return []

    def get_students(self, class_id: str) -> List[StudentInfo]:
        return []

    def get_assignments(self, class_id: str) -> List[AssignmentInfo]:
        return []


class IntegrationManager:
    def __init__(self) -> None:
        self._providers: Dict[str, ClassDataProvider] = {}

    @classmethod
    def from_settings(cls, settings: Settings) -> "IntegrationManager":
        manager = cls()
        if settings.google_classroom_credentials:
            try:
                info = json.loads(settings.google_classroom_credentials)
            except ValueError:
                logger.warning("GOOGLE_CLASSROOM_CREDENTIALS is not valid JSON; Google Classroom disabled")
            else:
                manager.register(GoogleClassroomProvider(info))
        if settings.canvas_api_key and settings.canvas_base_url:
            manager.register(CanvasProvider(settings.canvas_api_key, settings.canvas_base_url))
        return manager

    def register(self, provider: ClassDataProvider) -> None:
        self._providers[provider.name] = provider
        logger.info("Registered class data provider %s", provider.name)

    def provider_names(self) -> List[str]:
        return sorted(self._providers)

    def get_provider(self, name: str) -> ClassDataProvider:
        if not name:
            raise ValidationError("provider is required", field="provider")
        provider = self._providers.get(name)
        if provider is None:
            raise NotFound("Class data provider", name)
        return provider

    def sync_class_data(self, provider_name: str) -> SyncResult:
        """Fetch active classes and fill in enrollment counts from each roster."""
        provider = self.get_provider(provider_name)
        classes = provider.get_classes()
        total_students = 0
        for class_info in classes:
            class_info.enrollment_count = len(provider.get_students(class_info.id))
            total_students += class_info.enrollment_count
        logger.info(
            "Synced %d classes (%d students) from %s", len(classes), total_students, provider_name
        )
        return SyncResult(provider_name, classes, total_students, utcnow())
