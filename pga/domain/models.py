"""
Domain models for the pga adapter.

`Statement` is the unit of work handed to the pool (SQL text plus ordered
bound values); `QueryResult` is the driver-independent outcome of executing
one statement. Both are immutable.
"""
from __future__ import annotations

from typing import Any, Dict, List, Mapping, Tuple

from pydantic import BaseModel, Field, field_validator

from pga.errors import InvalidStatementError


class Statement(BaseModel):
    """
    Parameterized SQL text plus its ordered bound values.

    Placeholders use PostgreSQL's native `$1`, `$2`, ... style for every
    backend.
    """

    text: str = Field(..., min_length=1, description="SQL text.")
    params: Tuple[Any, ...] = Field(default=(), description="Ordered bound values.")

    model_config = {
        "frozen": True,
        "arbitrary_types_allowed": True,
    }

    @field_validator("params", mode="before")
    @classmethod
    def _params_to_tuple(cls, value: Any) -> Tuple[Any, ...]:
        if value is None:
            return ()
        if isinstance(value, (str, bytes)) or not hasattr(value, "__iter__"):
            raise ValueError("params must be a sequence of values")
        return tuple(value)

    @classmethod
    def coerce(cls, value: Any) -> "Statement":
        """
        Build a Statement from any of the accepted shorthand forms.

        Accepts a Statement, a bare SQL string, a ``(text, params)`` tuple, or a
        mapping with a ``text`` key and optional ``values``/``params`` key.
        """
        if isinstance(value, Statement):
            return value
        if isinstance(value, str):
            return cls.build(value, None)
        if isinstance(value, Mapping):
            if "text" not in value:
                raise InvalidStatementError("statement mapping requires a 'text' key")
            params = value.get("values", value.get("params"))
            return cls.build(value["text"], params)
        if isinstance(value, tuple) and len(value) == 2 and isinstance(value[0], str):
            return cls.build(value[0], value[1])
        raise InvalidStatementError(f"cannot build a statement from {type(value).__name__}")

    @classmethod
    def build(cls, text: Any, params: Any) -> "Statement":
        try:
            return cls(text=text, params=params)
        except ValueError as exc:
            raise InvalidStatementError(str(exc)) from exc


class QueryResult(BaseModel):
    """
    Outcome of a single executed statement.
    """

    rows: List[Dict[str, Any]] = Field(default_factory=list, description="Returned rows.")
    row_count: int = Field(0, description="Rows returned or affected.")
    command: str = Field("", description="Command tag, e.g. SELECT or INSERT.")

    model_config = {
        "frozen": True,
    }

    @classmethod
    def from_status(cls, status: str | None, rows: List[Dict[str, Any]]) -> "QueryResult":
        """
        Build a result from a PostgreSQL command status such as ``INSERT 0 1``.

        The trailing integer of the status is the affected row count; when it
        is absent (``BEGIN``, ``CREATE TABLE``) the number of rows is used.
        """
        parts = (status or "").split()
        row_count = len(rows)
        if parts and parts[-1].isdigit():
            row_count = int(parts[-1])
            parts = [part for part in parts if not part.isdigit()]
        command = " ".join(parts).upper()
        return cls(rows=rows, row_count=row_count, command=command)


def coerce_statements(statements: Any) -> List[Statement]:
    """Coerce an iterable of statement-like values, preserving order."""
    if isinstance(statements, (str, bytes, Mapping, Statement)):
        raise InvalidStatementError("expected a sequence of statements")
    try:
        items = list(statements)
    except TypeError as exc:
        raise InvalidStatementError("expected a sequence of statements") from exc
    return [Statement.coerce(item) for item in items]


__all__ = ["Statement", "QueryResult", "coerce_statements"]
