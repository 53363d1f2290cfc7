# backend/repositories/errors.py
from sqlalchemy.exc import IntegrityError


class RepositoryError(Exception):
    """Base class for data-access failures that callers may want to tell apart."""


class ConflictError(RepositoryError):
    """A uniqueness or composite-key violation, or a concurrent change to the same rows."""


class IntegrityFault(RepositoryError):
    """Stored data does not have the shape the code expects (e.g. a missing column)."""


# SQLSTATE unique_violation (PostgreSQL) and the SQLite message prefix
_PG_UNIQUE_VIOLATION = "23505"
_SQLITE_UNIQUE_MESSAGES = ("UNIQUE constraint failed", "PRIMARY KEY must be unique")


def is_unique_violation(exc: IntegrityError) -> bool:
    orig = exc.orig
    if getattr(orig, "pgcode", None) == _PG_UNIQUE_VIOLATION:
        return True
    message = str(orig)
    return any(m in message for m in _SQLITE_UNIQUE_MESSAGES)
