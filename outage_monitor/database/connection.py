"""
Database connection and session management
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker, Session
import structlog
from outage_monitor.core.config import settings

logger = structlog.get_logger(__name__)

def _engine_kwargs(url: str) -> dict:
    if url.startswith("sqlite"):
        # Requests and the worker may share a SQLite file across threads
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True, "pool_recycle": 300}

# Create database engine
engine = create_engine(
    settings.database_url,
    echo=settings.debug,
    **_engine_kwargs(settings.database_url)
)

# Create session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Create base class for models
Base = declarative_base()

def get_database() -> Session:
    """Get database session"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

def init_database(bind=None):
    """Create tables and indexes that do not exist yet.

    Idempotent; every entry point calls it instead of relying on an
    in-process "already migrated" flag.
    """
    try:
        # Import all models to ensure they are registered
        from outage_monitor import models  # noqa

        Base.metadata.create_all(bind=bind or engine)
        logger.debug("Database schema ensured")
    except Exception as e:
        logger.error("Failed to initialize database", error=str(e))
        raise
