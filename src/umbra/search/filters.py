"""Filter AST — typed filter expressions compiled to LanceDB SQL predicates.

LanceDB's table API takes filters as SQL strings, so every value is
rendered here and nowhere else.  Values of identifier columns must pass
:func:`umbra.identity.require_identifier` before they are interpolated.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any

from umbra.identity import require_identifier

# Columns whose values are sha256 hex digests.
IDENTIFIER_FIELDS = frozenset({"id", "content_hash"})

_FIELD_RE = re.compile(r"^[a-z_][a-z0-9_]*$")

# ------------------------------------------------------------------
# AST
# ------------------------------------------------------------------


class FilterOp(Enum):
    """Comparison operators for row filtering."""

    EQ = "eq"
    IN = "in"


@dataclass(frozen=True, slots=True)
class Comparison:
    """A single column comparison (e.g. ``id == value``).

    Attributes:
        field: Column name.
        op: Comparison operator.
        value: Value to compare against.  For ``IN``, a list of values.
    """

    field: str
    op: FilterOp
    value: Any


def eq(field: str, value: Any) -> Comparison:
    """``field == value``."""
    return Comparison(field=field, op=FilterOp.EQ, value=value)


def in_(field: str, values: list[Any]) -> Comparison:
    """``field IN values``."""
    return Comparison(field=field, op=FilterOp.IN, value=list(values))


# ------------------------------------------------------------------
# Compiler
# ------------------------------------------------------------------


def _lance_field(field: str) -> str:
    if not _FIELD_RE.fullmatch(field):
        msg = f"Invalid filter field name: {field!r}"
        raise ValueError(msg)
    return field


def _lance_quote(field: str, value: Any) -> str:
    """Render *value* as a SQL literal for a comparison on *field*."""
    if field in IDENTIFIER_FIELDS:
        return f"'{require_identifier(value)}'"
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        escaped = value.replace("'", "''")
        return f"'{escaped}'"
    msg = f"Unsupported filter value for {field!r}: {value!r}"
    raise TypeError(msg)


def compile_lance(expr: Comparison) -> str:
    """Compile a :class:`Comparison` to a LanceDB ``where`` string.

    Examples::

        compile_lance(eq("id", "ab" * 32))
        # "id = 'abab...ab'"

        compile_lance(in_("path", ["a.md", "b.md"]))
        # "path IN ('a.md', 'b.md')"

    Raises:
        MalformedIdentifierError: an identifier column is compared against
            anything other than a 64-character hex digest.
    """
    field = _lance_field(expr.field)
    if expr.op == FilterOp.IN:
        if not expr.value:
            raise ValueError("IN filter requires at least one value")
        items = ", ".join(_lance_quote(field, v) for v in expr.value)
        return f"{field} IN ({items})"
    return f"{field} = {_lance_quote(field, expr.value)}"
