"""
Database connection and session management.
Uses synchronous SQLAlchemy; each request gets its own session.
"""

from typing import Any, Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from app.config import Settings, get_settings


def _connect_args(settings: Settings) -> dict[str, Any]:
    """Driver arguments enforcing the store timeout on PostgreSQL."""
    if not settings.is_postgres:
        return {}
    timeout_ms = settings.store_timeout_seconds * 1000
    return {
        "connect_timeout": settings.store_timeout_seconds,
        "options": f"-c statement_timeout={timeout_ms}",
    }


# Create engine (synchronous)
settings = get_settings()
engine = create_engine(
    settings.database_url,
    echo=settings.debug,  # Log SQL when DEBUG=true
    pool_pre_ping=True,  # Verify connections before use
    connect_args=_connect_args(settings),
)

# Session factory
SessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
)


def get_db() -> Generator[Session, None, None]:
    """
    Dependency that provides a database session.

    Usage in FastAPI:
        @app.get("/items")
        def get_items(db: Session = Depends(get_db)):
            ...
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
