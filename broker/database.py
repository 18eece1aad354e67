"""SQLModel database engine and session management."""

import logging

from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine, Session

from broker.config import settings

logger = logging.getLogger(__name__)


def _engine_options(url: str) -> dict:
    if not url.startswith("sqlite"):
        return {}
    # SQLite needs check_same_thread=False; an in-memory database must also
    # stay on one connection or every request would see an empty schema
    options = {"connect_args": {"check_same_thread": False}}
    if url in ("sqlite://", "sqlite:///:memory:"):
        options["poolclass"] = StaticPool
    return options


engine = create_engine(settings.database_url, echo=False, **_engine_options(settings.database_url))


def create_db_and_tables():
    """Create all tables. Called on startup."""
    import broker.models  # noqa: F401  (registers tables on SQLModel.metadata)

    SQLModel.metadata.create_all(engine)
    # The URL itself may carry a password
    logger.info(f"Database tables ensured ({engine.url.get_backend_name()})")


def get_session() -> Session:
    """Dependency that yields a database session."""
    with Session(engine) as session:
        yield session
