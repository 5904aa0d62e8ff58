"""
Database configuration.
SQLModel engine and session management.
"""
from sqlmodel import SQLModel, create_engine, Session
from typing import Any, Dict, Generator
import logging
from bed_allocation.config import settings

logger = logging.getLogger("bed_allocation.database")


connect_args = {}
if "sqlite" in settings.DATABASE_URL:
    connect_args["check_same_thread"] = False

engine = create_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    connect_args=connect_args
)


def create_db_and_tables() -> None:
    """
    Creates every table.
    Called on application startup.
    """
    # Table classes must be registered on the metadata first
    import bed_allocation.models  # noqa: F401

    SQLModel.metadata.create_all(engine)


def get_session() -> Generator[Session, None, None]:
    """
    Session generator for FastAPI dependency injection.

    Usage:
        @router.get("/endpoint")
        def endpoint(session: Session = Depends(get_session)):
            ...
    """
    with Session(engine) as session:
        yield session


def get_session_direct() -> Session:
    """
    Returns a standalone session for background tasks and scripts.

    IMPORTANT: the caller must close it.
    """
    return Session(engine)


def check_database_health() -> Dict[str, Any]:
    """Runs a trivial query to verify the store is reachable."""
    from sqlalchemy import text
    from sqlalchemy.exc import SQLAlchemyError

    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
        return {"status": "healthy"}
    except SQLAlchemyError as e:
        logger.error(f"Database health check failed: {e}")
        return {"status": "unhealthy", "error": str(e)}
