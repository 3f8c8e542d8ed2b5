"""Database configuration and session management."""

from collections.abc import Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from portfolio_engine.config import settings


# Base class for ORM models
class Base(DeclarativeBase):
    """Base class for all SQLAlchemy ORM models."""

    pass


def _connect_args(database_url: str) -> dict:
    if database_url.startswith("sqlite"):
        # FastAPI serves requests from a threadpool
        return {"check_same_thread": False}
    if database_url.startswith("postgresql"):
        return {"options": "-c lock_timeout=5000"}
    return {}


engine = create_engine(
    settings.database_url,
    pool_pre_ping=True,  # Enable connection health checks
    echo=False,  # Set to True for SQL query logging in development
    connect_args=_connect_args(settings.database_url),
)

# Create session factory
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    expire_on_commit=False,  # Prevent lazy loading errors after commit
)


# Dependency for FastAPI routes
def get_db() -> Generator[Session, None, None]:
    """
    Database session dependency for FastAPI routes.

    Yields:
        Session: SQLAlchemy database session
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
