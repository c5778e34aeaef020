"""
Filter expressions for the in-memory record store.

Filter expressions are opaque strings to the reindex engine; each
repository interprets them in its own query language. The SQL repository
hands them to the database. The in-memory repository understands the
subset needed by tests and small deployments::

    last_indexed_at IS NULL
    stage = 'live' AND tenant_id IS NOT NULL
    priority >= 3 AND expired = FALSE

Clauses are joined by ``AND``. Each clause is ``<field> IS [NOT] NULL`` or
``<field> <op> <literal>`` with op one of ``= != <> < <= > >=`` and literal
a quoted string, number, ``TRUE``, ``FALSE`` or ``NULL``. Comparisons
against NULL are false, as in SQL.

Tags:
    filter, parser, in-memory, indexspine
"""

from __future__ import annotations

import operator
import re
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any
from uuid import UUID

from indexspine.core.errors import FilterError
from indexspine.core.models import CandidateRecord

RecordPredicate = Callable[[CandidateRecord], bool]

_COLUMNS = ("id", "type", "external_id", "last_indexed_at", "stage", "tenant_id")

_CLAUSE = re.compile(
    r"""
    \s*(?P<field>[A-Za-z_][A-Za-z0-9_]*)\s*
    (?:
        (?P<is>IS\s+(?P<negate>NOT\s+)?NULL)
      | (?P<op><>|!=|<=|>=|=|<|>)\s*
        (?P<literal>
            '(?:[^']|'')*'
          | "(?:[^"]|"")*"
          | [-+]?\d+(?:\.\d+)?
          | TRUE | FALSE | NULL
        )
    )\s*
    """,
    re.IGNORECASE | re.VERBOSE,
)
_AND = re.compile(r"AND\b", re.IGNORECASE)

_OPERATORS: dict[str, Callable[[Any, Any], bool]] = {
    "=": operator.eq,
    "!=": operator.ne,
    "<>": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
}


@dataclass(frozen=True, slots=True)
class Clause:
    """One parsed comparison."""

    field: str
    op: str
    value: Any = None

    def evaluate(self, record: CandidateRecord) -> bool:
        actual = field_value(record, self.field)
        if self.op == "IS NULL":
            return actual is None
        if self.op == "IS NOT NULL":
            return actual is not None
        if actual is None or self.value is None:
            return False
        left, right = _coerce(actual, self.value)
        try:
            return _OPERATORS[self.op](left, right)
        except TypeError:
            return False


def field_value(record: CandidateRecord, name: str) -> Any:
    """Resolve a field against record columns first, then attributes."""
    if name in _COLUMNS:
        return getattr(record, name)
    return record.attributes.get(name)


def _parse_literal(token: str) -> Any:
    upper = token.upper()
    if upper == "NULL":
        return None
    if upper == "TRUE":
        return True
    if upper == "FALSE":
        return False
    if token[0] in "'\"":
        quote = token[0]
        return token[1:-1].replace(quote * 2, quote)
    if "." in token:
        return float(token)
    return int(token)


def _coerce(actual: Any, literal: Any) -> tuple[Any, Any]:
    """Bring a stored value and a literal to comparable types."""
    if isinstance(actual, UUID):
        return str(actual), str(literal)
    if isinstance(actual, datetime) and isinstance(literal, str):
        try:
            parsed = datetime.fromisoformat(literal)
        except ValueError:
            return actual.isoformat(), literal
        if actual.tzinfo is not None and parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=actual.tzinfo)
        return actual, parsed
    return actual, literal


def parse_filter(expression: str) -> list[Clause]:
    """Parse an expression into clauses.

    Raises:
        FilterError: on anything outside the supported grammar.
    """
    clauses: list[Clause] = []
    text = expression.strip()
    pos = 0
    if not text:
        return clauses

    while True:
        match = _CLAUSE.match(text, pos)
        if match is None:
            raise FilterError(expression, f"Cannot parse filter {expression!r} at offset {pos}")
        field = match.group("field")
        if match.group("is"):
            op = "IS NOT NULL" if match.group("negate") else "IS NULL"
            clauses.append(Clause(field=field, op=op))
        else:
            clauses.append(
                Clause(field=field, op=match.group("op"), value=_parse_literal(match.group("literal")))
            )
        pos = match.end()
        if pos >= len(text):
            return clauses
        conjunction = _AND.match(text, pos)
        if conjunction is None:
            raise FilterError(expression, f"Expected AND in filter {expression!r} at offset {pos}")
        pos = conjunction.end()


def compile_filter(expression: str | RecordPredicate | None) -> RecordPredicate:
    """Turn an expression (or a ready-made predicate) into a predicate."""
    if expression is None:
        return lambda record: True
    if callable(expression):
        return expression
    clauses = parse_filter(expression)
    return lambda record: all(clause.evaluate(record) for clause in clauses)


__all__ = [
    "Clause",
    "RecordPredicate",
    "compile_filter",
    "field_value",
    "parse_filter",
]
