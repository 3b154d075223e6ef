"""
SQLAlchemy engine and session factory (Postgres in deployment, SQLite in tests).
"""
from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Generator, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from walkthrough_api.core.config import Settings

Base = declarative_base()


class Database:
    """Owns one engine and its session factory; built once per application."""

    def __init__(
        self,
        url: str,
        pool_size: int = 5,
        max_overflow: int = 10,
        echo: bool = False,
    ) -> None:
        self.url = url
        kwargs: dict[str, Any] = {"echo": echo}
        if url.startswith("sqlite"):
            kwargs["connect_args"] = {"check_same_thread": False}
            if ":memory:" in url or url in ("sqlite://", "sqlite+pysqlite://"):
                # One shared connection so every session sees the same in-memory DB
                kwargs["poolclass"] = StaticPool
        else:
            kwargs["pool_size"] = pool_size
            kwargs["max_overflow"] = max_overflow
        self.engine: Engine = create_engine(url, **kwargs)
        self.session_factory = sessionmaker(
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
            bind=self.engine,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        return cls(
            settings.database_url,
            pool_size=settings.pool_size,
            max_overflow=settings.max_overflow,
        )

    def create_all(self) -> None:
        # Import models so every table is registered on Base.metadata
        import walkthrough_api.models  # noqa: F401

        Base.metadata.create_all(bind=self.engine)

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        """Context manager for a single request-scoped DB session."""
        session = self.session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def dispose(self) -> None:
        self.engine.dispose()


_database: Optional[Database] = None


def get_database(settings: Settings) -> Database:
    """Process-wide default used by scripts; the API builds its own in create_app()."""
    global _database
    if _database is None:
        _database = Database.from_settings(settings)
    return _database
