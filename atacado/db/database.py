"""
Database engine and session management.

Builds the SQLAlchemy engine from environment configuration with an
in-memory SQLite fallback under pytest and exposes the FastAPI dependency.
"""
import logging
import os
import sys
from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

SQLITE_MEMORY_URL = "sqlite+pysqlite:///:memory:"


def _is_pytest_runtime() -> bool:
    """Detect that we're executing under pytest.

    ``PYTEST_CURRENT_TEST`` is only set while a test runs, so also look for
    the pytest module which is imported during collection.
    """
    if os.getenv("PYTEST_RUNNING") == "1":
        return True
    if "PYTEST_CURRENT_TEST" in os.environ:
        return True
    return "pytest" in sys.modules


def _get_database_url() -> str:
    if os.getenv("DATABASE_URL"):
        return os.getenv("DATABASE_URL")

    parts = {
        "POSTGRES_USER": os.getenv("POSTGRES_USER"),
        "POSTGRES_PASSWORD": os.getenv("POSTGRES_PASSWORD"),
        "POSTGRES_HOST": os.getenv("POSTGRES_HOST"),
        "POSTGRES_PORT": os.getenv("POSTGRES_PORT"),
        "POSTGRES_DB": os.getenv("POSTGRES_DB"),
    }
    missing = [name for name, value in parts.items() if not value]
    if missing:
        raise ValueError(f"Missing required database environment variables: {', '.join(missing)}")

    return (
        f"postgresql://{parts['POSTGRES_USER']}:{parts['POSTGRES_PASSWORD']}"
        f"@{parts['POSTGRES_HOST']}:{parts['POSTGRES_PORT']}/{parts['POSTGRES_DB']}"
    )


def _resolve_url() -> tuple[str, dict]:
    """Pick the connection URL and engine kwargs.

    1. ``ATACADO_TEST_DB`` wins when set.
    2. ``TEST_DATABASE_URL`` (Postgres container runs) is used as-is.
    3. Under pytest, force in-memory SQLite shared through a StaticPool.
    4. Otherwise the configured Postgres database.
    """
    explicit_test_db = os.getenv("ATACADO_TEST_DB")
    if explicit_test_db:
        kwargs = {"connect_args": {"check_same_thread": False}} if explicit_test_db.startswith("sqlite") else {}
        return explicit_test_db, kwargs
    if os.getenv("TEST_DATABASE_URL"):
        return os.getenv("TEST_DATABASE_URL"), {}
    if _is_pytest_runtime():
        return SQLITE_MEMORY_URL, {
            "connect_args": {"check_same_thread": False},
            "poolclass": StaticPool,
        }
    return _get_database_url(), {}


def _create_engine_with_fallback(url: str, kwargs: dict):
    """Create the engine; under pytest without an explicit DB fall back to SQLite."""
    try:
        return create_engine(url, **kwargs)
    except OperationalError:
        if _is_pytest_runtime() and not os.getenv("TEST_DATABASE_URL") and not os.getenv("ATACADO_TEST_DB"):
            return create_engine(
                SQLITE_MEMORY_URL,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        raise


DATABASE_URL, _engine_kwargs = _resolve_url()
engine = _create_engine_with_fallback(DATABASE_URL, _engine_kwargs)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# In-memory SQLite has no migrations; build the schema on first use.
_SCHEMA_INIT_DONE = False


def _ensure_sqlite_schema():
    global _SCHEMA_INIT_DONE
    if _SCHEMA_INIT_DONE:
        return
    if str(engine.url).startswith("sqlite"):
        from atacado.db import models  # local import to avoid circular import at module load
        try:
            models.Base.metadata.create_all(bind=engine)
        except SQLAlchemyError:
            logger.exception("sqlite_schema_init_failed")
            raise
    _SCHEMA_INIT_DONE = True


def get_db():
    """Dependency to get a database session."""
    _ensure_sqlite_schema()
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
