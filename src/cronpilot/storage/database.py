"""Database connection and session management for CronPilot."""

from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from .models import Base

if TYPE_CHECKING:
    from collections.abc import Generator

    from sqlalchemy.engine import Engine


def database_url_for(db_path: Path | str) -> str:
    """Build a SQLAlchemy URL from a path, URL or ``:memory:``.

    Args:
        db_path: SQLite file path, ``:memory:``, or a full database URL.

    Returns:
        A SQLAlchemy database URL.
    """
    text = str(db_path)
    if "://" in text:
        return text
    if text == ":memory:":
        return "sqlite:///:memory:"

    path = Path(text)
    path.parent.mkdir(parents=True, exist_ok=True)
    return f"sqlite:///{path}"


class Database:
    """Database connection manager for CronPilot.

    The backend is whatever URL is injected at startup: a SQLite file for
    local use or a server database in production. Nothing else in the
    package knows which one it is.
    """

    def __init__(self, db_path: Path | str | None = None) -> None:
        """Initialize the database connection.

        Args:
            db_path: SQLite file path, ``:memory:``, or a database URL.
                     If None, uses ~/.cronpilot/cronpilot.db
        """
        if db_path is None:
            db_path = Path.home() / ".cronpilot" / "cronpilot.db"

        self._url = database_url_for(db_path)

        if self._url == "sqlite:///:memory:":
            # One shared connection so every session sees the same in-memory database
            self._engine: Engine = create_engine(
                self._url,
                echo=False,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        else:
            self._engine = create_engine(self._url, echo=False)
        self._session_factory = sessionmaker(bind=self._engine, expire_on_commit=False)

    @property
    def url(self) -> str:
        """Get the database URL."""
        return self._url

    @property
    def is_sqlite(self) -> bool:
        return self._url.startswith("sqlite")

    def create_tables(self) -> None:
        """Create all database tables if they don't exist."""
        Base.metadata.create_all(self._engine)

    def drop_tables(self) -> None:
        """Drop all database tables. Use with caution!"""
        Base.metadata.drop_all(self._engine)

    def dispose(self) -> None:
        """Close all pooled connections."""
        self._engine.dispose()

    def get_session(self) -> Session:
        """Get a new database session.

        The caller is responsible for closing the session.

        Returns:
            A new SQLAlchemy Session instance.
        """
        return self._session_factory()

    @contextmanager
    def session_scope(self) -> Generator[Session, None, None]:
        """Provide a transactional scope for database operations.

        Usage:
            with db.session_scope() as session:
                repo = VideoRepository(session)
                repo.get_by_video_id("abc")

        Yields:
            A SQLAlchemy Session that will be committed on success
            or rolled back on exception.
        """
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()


def init_database(db_path: Path | str | None = None) -> Database:
    """Initialize the database with tables created.

    This is typically called during application startup or
    by the `cronpilot init` command.

    Args:
        db_path: Optional path or URL for the database.

    Returns:
        The initialized Database instance.
    """
    db = Database(db_path)
    db.create_tables()
    return db
