"""Database connection and session management for realsauth.

This module supports both:
- Local SQLite (default for dev)
- PostgreSQL in production via `DATABASE_URL`
"""

import logging
import os
import time

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker, Session, declarative_base

from realsauth.config import settings

logger = logging.getLogger(__name__)

DATABASE_URL = settings.database_url

CONNECT_ATTEMPTS = 3
CONNECT_RETRY_DELAY_SEC = 2


def _is_sqlite_url(database_url: str) -> bool:
    return "sqlite" in (database_url or "")


def get_engine_kwargs(database_url: str) -> dict:
    """Return deterministic create_engine kwargs for a DB URL.

    This is separated to allow deterministic unit testing without connecting.
    """
    engine_kwargs: dict = {
        "echo": os.getenv("DEBUG", "False").lower() == "true",
        "pool_pre_ping": True,
    }

    if _is_sqlite_url(database_url):
        # SQLite-specific setting required for FastAPI's threadpool.
        engine_kwargs["connect_args"] = {"check_same_thread": False}
        return engine_kwargs

    engine_kwargs["pool_size"] = int(os.getenv("DB_POOL_SIZE", "5"))
    engine_kwargs["max_overflow"] = int(os.getenv("DB_MAX_OVERFLOW", "5"))
    engine_kwargs["pool_timeout"] = int(os.getenv("DB_POOL_TIMEOUT_SEC", "30"))
    return engine_kwargs


def build_engine(database_url: str) -> Engine:
    return create_engine(database_url, **get_engine_kwargs(database_url))


# Create engine (module-level singleton)
engine = build_engine(DATABASE_URL)


@event.listens_for(engine, "connect")
def set_sqlite_pragmas(dbapi_conn, connection_record):
    """Enable WAL on SQLite so reads do not block behind writes."""
    if _is_sqlite_url(DATABASE_URL) and ":memory:" not in DATABASE_URL:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()


SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base class for declarative models
Base = declarative_base()


def get_db() -> Session:
    """Get database session (dependency for FastAPI)."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def wait_for_database(
    engine_override: Engine = None,
    attempts: int = CONNECT_ATTEMPTS,
    delay_sec: float = CONNECT_RETRY_DELAY_SEC,
) -> None:
    """Block until the database accepts a connection.

    Raises the last OperationalError once all attempts are exhausted.
    """
    use_engine = engine_override or engine
    for attempt in range(1, attempts + 1):
        try:
            with use_engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            logger.info("Database connected successfully")
            return
        except OperationalError as e:
            logger.error(f"Database connection attempt {attempt} failed: {e}")
            if attempt == attempts:
                logger.error("All database connection attempts failed")
                raise
            time.sleep(delay_sec)


def init_db():
    """Initialize database schema.

    - SQLite (default dev): use `create_all()`.
    - PostgreSQL: prefer Alembic migrations, enabled with `RUN_MIGRATIONS=true`.
    """
    # Register models on Base.metadata before create_all.
    from realsauth.database import models  # noqa: F401

    wait_for_database()

    run_migrations = os.getenv("RUN_MIGRATIONS", "False").lower() == "true"
    if run_migrations and not _is_sqlite_url(DATABASE_URL):
        from alembic import command
        from alembic.config import Config

        alembic_cfg = Config(os.getenv("ALEMBIC_INI", "alembic.ini"))
        alembic_cfg.set_main_option("sqlalchemy.url", DATABASE_URL)
        command.upgrade(alembic_cfg, "head")
        return

    Base.metadata.create_all(bind=engine)
