"""User account: login identity and role."""
from __future__ import annotations

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from walkthrough_api.db.session import Base
from walkthrough_api.models.base import Role, TimestampMixin, UUIDPrimaryKeyMixin


class User(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "users"
    __mapper_args__ = {"eager_defaults": True}

    username: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), unique=True, nullable=True)
    first_name: Mapped[str] = mapped_column(String(255), nullable=False)
    last_name: Mapped[str] = mapped_column(String(255), nullable=False)
    profile_image_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    # observer, admin, coach, leadership, teacher
    role: Mapped[str] = mapped_column(String(32), nullable=False, default=Role.OBSERVER.value)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
