"""Database bootstrap utilities for the formbuilder service.

Exposes engine construction and the SQL migrations runner. The DB layer does
not leak ORM models into route handlers; repositories under
`formbuilder/logic/` own all SQL.
"""

from formbuilder.db.base import check_database, dispose_engine, get_engine, utc_timestamp
from formbuilder.db.migrations_runner import apply_migrations

__all__ = [
    "apply_migrations",
    "check_database",
    "dispose_engine",
    "get_engine",
    "utc_timestamp",
]
