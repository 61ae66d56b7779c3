"""
Exceptions raised by the pga adapter itself.

Database failures (connection, BEGIN, statement, COMMIT, ROLLBACK) are not
wrapped: callers receive the driver's own exception object so that error
values are identical between callback and future styles.
"""

from __future__ import annotations


class PgaError(Exception):
    """Base class for errors raised by this package."""


class InvalidStatementError(PgaError, ValueError):
    """A value could not be interpreted as a Statement."""


class SqlTemplateError(PgaError, ValueError):
    """A SQL template referenced a missing or ambiguous argument."""


class LeaseReleasedError(PgaError, RuntimeError):
    """A connection lease was released (or used) after it was already released."""


class PoolClosedError(PgaError, RuntimeError):
    """The pool was used after shutdown."""


__all__ = [
    "PgaError",
    "InvalidStatementError",
    "SqlTemplateError",
    "LeaseReleasedError",
    "PoolClosedError",
]
