"""Compile a `CriteriaSet` into a QBO Query API statement.

These functions are pure and deterministic so they can be unit-tested
without calling QuickBooks.

Statement shape:

    select * from {entity} [where a = 'x' and b IN ('p','q')]
        [orderby f asc] [orderby g desc] startposition N maxresults M
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any

from src.qbo_sdk.integrations.qbo_criteria import CriteriaSet, Criterion
from src.qbo_sdk.integrations.qbo_errors import QBOCriteriaError

# Order matters: `%` first so later substitutions are not re-escaped.
_ESCAPES: tuple[tuple[str, str], ...] = (
    ("%", "%25"),
    ("'", "%27"),
    ("=", "%3D"),
    ("<", "%3C"),
    (">", "%3E"),
    ("&", "%26"),
    ("#", "%23"),
    ("\\", "%5C"),
    ("+", "%2B"),
)


def _render_scalar(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float, Decimal)):
        return str(value)
    if isinstance(value, (date, datetime)):
        return f"'{value.isoformat()}'"
    if not isinstance(value, str):
        raise QBOCriteriaError(f"Unsupported criterion value: {value!r}")
    # Backslashes first, so the backslash added before a quote is not doubled.
    text = value.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{text}'"


def render_value(value: Any) -> str:
    """Render a criterion value as a query literal."""

    if isinstance(value, (list, tuple)):
        return "(" + ",".join(_render_scalar(v) for v in value) + ")"
    return _render_scalar(value)


def render_criterion(criterion: Criterion) -> str:
    return f"{criterion.field} {criterion.operator} {render_value(criterion.value)}"


def build_query(entity_name: str, criteria_set: CriteriaSet) -> str:
    """Render the (unescaped) query statement for `entity_name`."""

    target = "count(*)" if criteria_set.is_count else "*"
    sql = f"select {target} from {entity_name}"

    if criteria_set.raw_clause is not None:
        return sql + criteria_set.raw_clause

    if criteria_set.criteria:
        sql += " where " + " and ".join(render_criterion(c) for c in criteria_set.criteria)
    if criteria_set.asc:
        sql += f" orderby {criteria_set.asc} asc"
    if criteria_set.desc:
        sql += f" orderby {criteria_set.desc} desc"

    sql += f" startposition {criteria_set.resolved_offset}"
    sql += f" maxresults {criteria_set.resolved_limit}"
    return sql


def escape_query(query: str) -> str:
    """Percent-escape the characters QBO requires in the `query` parameter."""

    for char, replacement in _ESCAPES:
        query = query.replace(char, replacement)
    return query


def compile_query(entity_name: str, criteria_set: CriteriaSet) -> str:
    return escape_query(build_query(entity_name, criteria_set))
