"""Map driver errors onto the store error classes the fallback policy inspects."""

from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from deckpad.domain.exceptions import (
    PermissionDeniedError,
    RelationMissingError,
    StoreError,
)

UNDEFINED_TABLE = "42P01"
INSUFFICIENT_PRIVILEGE = "42501"


def sqlstate_of(exc: BaseException) -> Optional[str]:
    """SQLSTATE from psycopg (``pgcode``) or asyncpg (``sqlstate``) errors."""
    orig = getattr(exc, "orig", None)
    for candidate in (orig, getattr(orig, "__cause__", None)):
        if candidate is None:
            continue
        code = getattr(candidate, "pgcode", None) or getattr(candidate, "sqlstate", None)
        if code:
            return str(code)
    return None


def classify_store_error(exc: SQLAlchemyError) -> StoreError:
    code = sqlstate_of(exc)
    message = str(getattr(exc, "orig", None) or exc)
    lowered = message.lower()

    if code == UNDEFINED_TABLE or "no such table" in lowered or (
        "relation" in lowered and "does not exist" in lowered
    ):
        return RelationMissingError(message, code or UNDEFINED_TABLE)
    if code == INSUFFICIENT_PRIVILEGE or "permission denied" in lowered:
        return PermissionDeniedError(message, code or INSUFFICIENT_PRIVILEGE)
    return StoreError(message, code)
