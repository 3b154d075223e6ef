"""Observed teacher; not necessarily a login account."""
from __future__ import annotations

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from walkthrough_api.db.session import Base
from walkthrough_api.models.base import JSONType, TimestampMixin, UUIDPrimaryKeyMixin


class Teacher(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "teachers"
    __mapper_args__ = {"eager_defaults": True}

    first_name: Mapped[str] = mapped_column(String(255), nullable=False)
    last_name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    grade_level: Mapped[str | None] = mapped_column(String(64), nullable=True)
    subjects: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
