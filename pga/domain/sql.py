"""
SQL template helper.

Turns a ``str.format``-style template into a parameterized `Statement`:

    sql("SELECT * FROM test WHERE id = {} AND name = {name}", 1, name="x")
    # Statement(text="SELECT * FROM test WHERE id = $1 AND name = $2", params=(1, "x"))

A replacement field written as ``${field}`` is inlined verbatim instead of
bound, for identifiers such as table or column names that cannot be sent as
parameters. Runs of whitespace in the template collapse to a single space.
"""

from __future__ import annotations

import re
import string
from typing import Any, Dict, List, Tuple

from pga.domain.models import Statement
from pga.errors import SqlTemplateError

_WHITESPACE = re.compile(r"\s+")
_formatter = string.Formatter()


def _lookup(field_name: str, auto_index: List[int], args: Tuple[Any, ...], kwargs: Dict[str, Any]):
    if field_name == "":
        key: Any = auto_index[0]
        auto_index[0] += 1
    elif field_name.isdigit():
        key = int(field_name)
    else:
        key = field_name

    try:
        value = args[key] if isinstance(key, int) else kwargs[key]
    except (IndexError, KeyError) as exc:
        raise SqlTemplateError(f"no argument supplied for field {{{field_name}}}") from exc
    return key, value


def sql(template: str, *args: Any, **kwargs: Any) -> Statement:
    """
    Build a Statement from a template and its arguments.

    Referencing the same argument more than once reuses a single placeholder.
    Format specs and conversions (``{0:>4}``, ``{name!r}``) are rejected.
    """
    pieces: List[str] = []
    params: List[Any] = []
    placeholders: Dict[Any, int] = {}
    auto_index = [0]

    for literal, field_name, format_spec, conversion in _formatter.parse(template):
        if field_name is None:
            pieces.append(literal)
            continue
        if format_spec or conversion:
            raise SqlTemplateError(f"format specs are not supported in SQL templates: {{{field_name}}}")

        key, value = _lookup(field_name, auto_index, args, kwargs)

        if literal.endswith("$"):
            pieces.append(literal[:-1])
            pieces.append(str(value))
            continue

        pieces.append(literal)
        if key not in placeholders:
            params.append(value)
            placeholders[key] = len(params)
        pieces.append(f"${placeholders[key]}")

    text = _WHITESPACE.sub(" ", "".join(pieces)).strip()
    if not text:
        raise SqlTemplateError("SQL template is empty")
    return Statement.build(text, params)


__all__ = ["sql"]
