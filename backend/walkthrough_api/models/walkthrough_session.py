"""Presence heartbeat: who has a walkthrough open; best-effort only."""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from walkthrough_api.db.session import Base
from walkthrough_api.models.base import UUIDPrimaryKeyMixin


class WalkthroughSession(Base, UUIDPrimaryKeyMixin):
    __tablename__ = "walkthrough_sessions"
    __table_args__ = (UniqueConstraint("walkthrough_id", "user_id"),)

    walkthrough_id: Mapped[str] = mapped_column(
        ForeignKey("walkthroughs.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    last_seen: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    walkthrough: Mapped["Walkthrough"] = relationship("Walkthrough", back_populates="sessions")
    user: Mapped["User"] = relationship("User", lazy="joined")
