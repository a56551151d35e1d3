"""SQLAlchemy schema and database handle."""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, sessionmaker

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Declarative base for all Mission Control tables."""


class TaskRecord(Base):
    __tablename__ = "tasks"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    title: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String, nullable=False, default="NEW", index=True)
    priority: Mapped[str] = mapped_column(String, nullable=False, default="MEDIUM")
    assignee: Mapped[str | None] = mapped_column(String, nullable=True, index=True)
    category: Mapped[str | None] = mapped_column(String, nullable=True)
    due_date: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)


class TaskDependencyRecord(Base):
    __tablename__ = "task_dependencies"

    task_id: Mapped[str] = mapped_column(String, ForeignKey("tasks.id"), primary_key=True)
    depends_on: Mapped[str] = mapped_column(String, ForeignKey("tasks.id"), primary_key=True)


class TaskLinkRecord(Base):
    __tablename__ = "task_links"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    task_id: Mapped[str] = mapped_column(String, ForeignKey("tasks.id"), nullable=False, index=True)
    link_type: Mapped[str] = mapped_column(String, nullable=False)
    link_url: Mapped[str] = mapped_column(String, nullable=False)
    link_text: Mapped[str | None] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)


class Database:
    """Owns the engine and session factory for one database URL.

    Created by the composition root and disposed on shutdown.
    """

    def __init__(self, url: str, echo: bool = False) -> None:
        """Create engine for the given SQLAlchemy URL."""
        connect_args: dict[str, object] = {}
        parsed = make_url(url)
        if parsed.drivername.startswith("sqlite"):
            # Store calls run in worker threads
            connect_args = {"check_same_thread": False}
            if parsed.database and parsed.database != ":memory:":
                Path(parsed.database).parent.mkdir(parents=True, exist_ok=True)

        self.url = url
        self.engine = create_engine(url, connect_args=connect_args, echo=echo)
        self._session_factory = sessionmaker(bind=self.engine, expire_on_commit=False)

    def create_schema(self) -> None:
        """Create missing tables. Idempotent."""
        Base.metadata.create_all(self.engine)
        logger.info(f"[Database] Schema ready: {self.engine.url.render_as_string()}")

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Open a session wrapped in a single transaction.

        Commits on success, rolls back on any exception.
        """
        with self._session_factory() as session, session.begin():
            yield session

    def dispose(self) -> None:
        """Release pooled connections."""
        self.engine.dispose()
        logger.info("[Database] Engine disposed")
