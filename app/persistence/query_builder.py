"""Helpers for building safe, reusable SQL fragments.

Two builders live here:

- `build_partial_update` turns a sparse mapping of field -> value into a
  `"col"=$1, "col2"=$2` assignment list for an UPDATE ... SET.
- `compose_filters` turns a sparse mapping of search filters into an
  AND-joined predicate list for a WHERE clause, driven by a per-entity
  `FilterSpec` table.

Both return a `SqlFragment`. Caller values only ever travel in
`SqlFragment.params`; the fragment text is built from column names owned by
application code and `$n` placeholders.
"""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from app.core.errors import ValidationError

TRUTHY_STRINGS = frozenset({"true", "1", "yes", "on"})


@dataclass(frozen=True, slots=True)
class SqlFragment:
    """SQL text plus its ordered positional parameters.

    Placeholders in `text` are `$start .. $start+len(params)-1`.
    """

    text: str = ""
    params: tuple[Any, ...] = ()
    start: int = 1

    def __bool__(self) -> bool:
        return bool(self.text)

    @property
    def next_placeholder(self) -> int:
        """Number to use for the first placeholder appended after this fragment."""
        return self.start + len(self.params)

    def where_clause(self) -> str:
        """`WHERE <text>`, or an empty string when nothing was applied."""
        return f"WHERE {self.text}" if self.text else ""


def _placeholder(index: int) -> str:
    return f"${index}"


def build_partial_update(
    data: Mapping[str, Any],
    column_map: Mapping[str, str] | None = None,
    *,
    start: int = 1,
) -> SqlFragment:
    """Build the SET list for a partial update.

    `data` keys are logical field names; `column_map` translates them to
    column names where they differ. Parameter order follows `data` insertion
    order.

    Example:
        >>> build_partial_update({"firstName": "Aliya", "age": 32}, {"firstName": "first_name"})
        SqlFragment(text='"first_name"=$1, "age"=$2', params=('Aliya', 32), start=1)

    Raises:
        ValidationError: `data` is empty.
    """
    if not data:
        raise ValidationError("no data")

    columns = dict(column_map or {})
    assignments: list[str] = []
    params: list[Any] = []

    for offset, (field_name, value) in enumerate(data.items()):
        column = columns.get(field_name, field_name)
        assignments.append(f'"{column}"={_placeholder(start + offset)}')
        params.append(value)

    return SqlFragment(text=", ".join(assignments), params=tuple(params), start=start)


class FilterKind(StrEnum):
    PARTIAL_CI_MATCH = "partial_ci_match"
    GTE_NUMERIC = "gte_numeric"
    LTE_NUMERIC = "lte_numeric"
    PRESENCE_BOOL = "presence_bool"


@dataclass(frozen=True, slots=True)
class FilterRule:
    """One recognized search filter.

    `column` is a trusted SQL expression. For PRESENCE_BOOL, `operator` and
    `value` are the fixed comparison emitted when the flag is set.
    """

    key: str
    kind: FilterKind
    column: str
    operator: str | None = None
    value: Any = None

    def __post_init__(self) -> None:
        if self.kind is FilterKind.PRESENCE_BOOL and self.operator is None:
            raise ValueError(f"PRESENCE_BOOL filter {self.key!r} needs an operator")


FilterSpec = Sequence[FilterRule]


def coerce_number(value: Any) -> int | float | None:
    """Coerce a raw filter value to a finite number, or None.

    Accepts ints, floats and numeric strings. Booleans, NaN and infinities
    are rejected.
    """
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, str):
        raw = value.strip()
        if not raw:
            return None
        try:
            return int(raw)
        except ValueError:
            pass
        try:
            number = float(raw)
        except ValueError:
            return None
        return number if math.isfinite(number) else None
    return None


def is_flag_set(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in TRUTHY_STRINGS
    return bool(value)


def escape_like(value: str) -> str:
    """Escape LIKE metacharacters with PostgreSQL's default escape (backslash)."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _clause_for(rule: FilterRule, raw: Any, index: int) -> tuple[str, Any] | None:
    placeholder = _placeholder(index)

    if rule.kind is FilterKind.PARTIAL_CI_MATCH:
        if not isinstance(raw, str) or not raw.strip():
            return None
        return f"LOWER({rule.column}) LIKE {placeholder}", f"%{escape_like(raw.lower())}%"

    if rule.kind in (FilterKind.GTE_NUMERIC, FilterKind.LTE_NUMERIC):
        number = coerce_number(raw)
        if number is None:
            return None
        operator = ">=" if rule.kind is FilterKind.GTE_NUMERIC else "<="
        # Threshold columns are INTEGER; a "20.5" literal would not cast.
        return f"{rule.column} {operator} {placeholder}", str(math.trunc(number))

    if rule.kind is FilterKind.PRESENCE_BOOL:
        if not is_flag_set(raw):
            return None
        return f"{rule.column} {rule.operator} {placeholder}", rule.value

    return None


def compose_filters(
    filters: Mapping[str, Any] | None,
    rules: FilterSpec,
    *,
    start: int = 1,
) -> SqlFragment:
    """Build an AND-joined predicate list from optional search filters.

    Rules are applied in `rules` order; keys in `filters` that no rule names
    are ignored. Absent, blank or malformed values skip their rule.
    Never raises on caller input.
    """
    values = filters or {}
    conditions: list[str] = []
    params: list[Any] = []

    for rule in rules:
        clause = _clause_for(rule, values.get(rule.key), start + len(params))
        if clause is None:
            continue
        condition, param = clause
        conditions.append(condition)
        params.append(param)

    return SqlFragment(text=" AND ".join(conditions), params=tuple(params), start=start)
