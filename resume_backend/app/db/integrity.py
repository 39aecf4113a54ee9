"""Classification of integrity errors raised by the database driver."""

from typing import Literal

from sqlalchemy.exc import IntegrityError

ConstraintViolation = Literal["unique", "foreign_key", "check", "not_null"]

# PostgreSQL SQLSTATE codes for integrity constraint violations.
_SQLSTATE_VIOLATIONS: dict[str, ConstraintViolation] = {
    "23505": "unique",
    "23503": "foreign_key",
    "23514": "check",
    "23502": "not_null",
}

# SQLite has no SQLSTATE; it reports the constraint in the message text.
_SQLITE_MESSAGES: tuple[tuple[str, ConstraintViolation], ...] = (
    ("UNIQUE constraint failed", "unique"),
    ("FOREIGN KEY constraint failed", "foreign_key"),
    ("CHECK constraint failed", "check"),
    ("NOT NULL constraint failed", "not_null"),
)


def classify_integrity_error(err: IntegrityError) -> ConstraintViolation | None:
    """Tell which kind of constraint an IntegrityError violated.

    Args:
        err: Error raised by SQLAlchemy during flush or execute

    Returns:
        The violation kind, or None if it can not be determined
    """
    orig = err.orig
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if code in _SQLSTATE_VIOLATIONS:
        return _SQLSTATE_VIOLATIONS[code]

    message = str(orig)
    for fragment, violation in _SQLITE_MESSAGES:
        if fragment in message:
            return violation

    return None
