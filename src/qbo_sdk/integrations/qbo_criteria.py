"""Normalize caller-supplied query criteria.

Accepted inputs (see `normalize`):
- None: no filtering.
- A string: a pre-formed clause body, passed through without validation.
- A mapping of field -> value: one criterion per key, ANDed.
- A mapping with `field` and `value` keys (and optionally `operator`).
- A `Criterion`.
- A list of any of the above, flattened left to right.

Reserved pseudo-fields (`limit`, `offset`, `asc`, `desc`, `fetchAll`,
`count`; matched case-insensitively) become control parameters of the
resulting `CriteriaSet` instead of predicates.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, replace
from datetime import date
from decimal import Decimal
from typing import Any

from src.qbo_sdk.config.settings import as_bool
from src.qbo_sdk.integrations.qbo_errors import QBOCriteriaError

DEFAULT_LIMIT = 1000
DEFAULT_OFFSET = 1

OPERATORS = frozenset({"=", "IN", "<", ">", "<=", ">=", "LIKE"})

_CONTROL_FIELDS = {"limit", "offset", "asc", "desc", "fetchall", "count"}

# datetime is a subclass of date.
_SCALAR_TYPES = (str, bool, int, float, Decimal, date)


def default_operator(value: Any) -> str:
    return "IN" if isinstance(value, (list, tuple)) else "="


@dataclass(frozen=True, slots=True)
class Criterion:
    field: str
    value: Any
    operator: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.field, str) or not self.field:
            raise QBOCriteriaError(f"Criterion field must be a non-empty string: {self.field!r}")
        op = self.operator
        if op is None:
            op = default_operator(self.value)
        op = str(op).strip().upper()
        if op not in OPERATORS:
            raise QBOCriteriaError(
                f"Unsupported operator {self.operator!r} for field {self.field}",
                details={"field": self.field, "operator": self.operator},
            )
        object.__setattr__(self, "operator", op)

        if self.field.lower() not in _CONTROL_FIELDS:
            _check_value(self.field, self.value)


def _check_value(field_name: str, value: Any) -> None:
    """Reject values that have no query-language literal (None, dicts, ...)."""

    if isinstance(value, (list, tuple)):
        if not value:
            raise QBOCriteriaError(f"Empty list for field {field_name}")
        bad = [v for v in value if not isinstance(v, _SCALAR_TYPES)]
    else:
        bad = [] if isinstance(value, _SCALAR_TYPES) else [value]
    if bad:
        raise QBOCriteriaError(
            f"Unsupported value {bad[0]!r} for field {field_name}",
            details={"field": field_name},
        )


@dataclass(frozen=True, slots=True)
class CriteriaSet:
    criteria: tuple[Criterion, ...] = ()
    limit: int | None = None
    offset: int | None = None
    asc: str | None = None
    desc: str | None = None
    fetch_all: bool = False
    is_count: bool = False
    raw_clause: str | None = None

    @property
    def resolved_limit(self) -> int:
        return self.limit if self.limit is not None else DEFAULT_LIMIT

    @property
    def resolved_offset(self) -> int:
        return self.offset if self.offset is not None else DEFAULT_OFFSET

    def next_page(self) -> "CriteriaSet":
        """Return a copy positioned at the page after this one."""
        return replace(self, offset=self.resolved_offset + self.resolved_limit)


def _as_positive_int(name: str, value: Any) -> int:
    try:
        n = int(value)
    except (TypeError, ValueError):
        raise QBOCriteriaError(f"{name} must be an integer, got {value!r}") from None
    if n < 1:
        raise QBOCriteriaError(f"{name} must be >= 1, got {n}")
    return n


def _is_shaped(obj: Mapping[str, Any]) -> bool:
    return "field" in obj and "value" in obj


def _expand(item: Any) -> list[Criterion]:
    if isinstance(item, Criterion):
        return [item]
    if not isinstance(item, Mapping):
        raise QBOCriteriaError(f"Unsupported criteria element: {item!r}")
    if _is_shaped(item):
        return [Criterion(field=item["field"], value=item["value"], operator=item.get("operator"))]
    return [Criterion(field=str(k), value=v) for k, v in item.items()]


def normalize(criteria: Any = None, *, single_condition: bool = False) -> CriteriaSet:
    """Turn raw criteria into a `CriteriaSet`.

    `single_condition=True` enables the legacy behaviour of rejecting more
    than one predicate. It is off by default; multiple predicates are ANDed.
    """

    if criteria is None:
        return CriteriaSet()

    if isinstance(criteria, str):
        clause = criteria if criteria.startswith(" ") else f" {criteria}"
        return CriteriaSet(raw_clause=clause)

    if isinstance(criteria, (list, tuple)):
        items = list(criteria)
    else:
        items = [criteria]

    flattened: list[Criterion] = []
    for item in items:
        flattened.extend(_expand(item))

    predicates: list[Criterion] = []
    control: dict[str, Any] = {}
    for c in flattened:
        name = c.field.lower()
        if name not in _CONTROL_FIELDS:
            predicates.append(c)
            continue
        # Last one wins.
        if name == "limit":
            control["limit"] = _as_positive_int("limit", c.value)
        elif name == "offset":
            control["offset"] = _as_positive_int("offset", c.value)
        elif name == "asc":
            control["asc"] = str(c.value)
        elif name == "desc":
            control["desc"] = str(c.value)
        elif name == "fetchall":
            control["fetch_all"] = as_bool(c.value)
        else:
            control["is_count"] = as_bool(c.value)

    if single_condition and len(predicates) > 1:
        raise QBOCriteriaError(
            "Only one condition allowed in where clause",
            details={"fields": [c.field for c in predicates]},
        )

    return CriteriaSet(criteria=tuple(predicates), **control)
