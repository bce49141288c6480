"""SQLite compilation shim for PostgreSQL JSONB columns.

Installs a compiler for JSONB when the active dialect is SQLite so that the
declarative metadata can be created by test runs that substitute an
in-memory SQLite database. JSONB operators are not emulated.

Usage: imported for side-effects by atacado.db.models.
"""
from __future__ import annotations

from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.ext.compiler import compiles


@compiles(JSONB, "sqlite")
def _compile_jsonb_sqlite(element, compiler, **kw):  # pragma: no cover - trivial
    # Stored as TEXT through the generic JSON affinity.
    return "JSON"
