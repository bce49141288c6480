"""
Shared SQLAlchemy base and helpers.
"""
from datetime import datetime, UTC

from sqlalchemy import Numeric
from sqlalchemy.orm import declarative_base

from .. import sqlite_compiler_shims  # noqa: F401


def now_utc():
    """Return an aware UTC datetime for default/updated timestamps."""
    return datetime.now(UTC)


# Currency amounts, two decimal places.
MONEY = Numeric(12, 2)

Base = declarative_base()
