"""Dashboard projection: filter, sort and filter-menu counts over all cases."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Iterable, Mapping, Optional, Sequence

from casebook.models.case import Case

FILTER_FIELDS = ("case_id", "analyst_name", "status", "scope")
SORT_FIELDS = (*FILTER_FIELDS, "created_at")
DEFAULT_SORT = ("created_at", "desc")


def _as_text(value: Any) -> str:
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


def _check_field(field: str, allowed: Sequence[str]) -> None:
    if field not in allowed:
        raise ValueError(f"Unsupported field: {field}")


def _comparable(value: Any) -> Any:
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.timestamp()
    return value


def _sort_key(field: str):
    def key(case: Case):
        value = _comparable(getattr(case, field))
        # None sorts first, after that the field's natural ordering
        return (value is not None, value if value is not None else "")

    return key


def project(
    cases: Iterable[Case],
    filters: Optional[Mapping[str, Iterable[str]]] = None,
    sort: Optional[tuple[str, str]] = DEFAULT_SORT,
) -> list[Case]:
    result = list(cases)

    for field, values in (filters or {}).items():
        _check_field(field, FILTER_FIELDS)
        allowed = set(values)
        if not allowed:
            continue
        result = [c for c in result if _as_text(getattr(c, field)) in allowed]

    if sort is not None:
        field, direction = sort
        _check_field(field, SORT_FIELDS)
        if direction not in ("asc", "desc"):
            raise ValueError(f"Unsupported sort direction: {direction}")
        result.sort(key=_sort_key(field), reverse=direction == "desc")

    return result


def distinct_values(
    cases: Iterable[Case],
    fields: Sequence[str] = FILTER_FIELDS,
) -> dict[str, list[tuple[str, int]]]:
    counts: dict[str, dict[str, int]] = {f: {} for f in fields}
    for c in cases:
        for f in fields:
            v = _as_text(getattr(c, f))
            counts[f][v] = counts[f].get(v, 0) + 1
    return {f: list(by_value.items()) for f, by_value in counts.items()}


def toggle_filter(filters: Mapping[str, list[str]], field: str, value: str) -> dict[str, list[str]]:
    _check_field(field, FILTER_FIELDS)
    current = list(filters.get(field, []))
    updated = [v for v in current if v != value] if value in current else [*current, value]
    out = {k: list(v) for k, v in filters.items() if k != field}
    if updated:
        out[field] = updated
    return out


def clear_filter(filters: Mapping[str, list[str]], field: str) -> dict[str, list[str]]:
    return {k: list(v) for k, v in filters.items() if k != field}


def toggle_sort(current: Optional[tuple[str, str]], field: str) -> tuple[str, str]:
    _check_field(field, SORT_FIELDS)
    if current and current[0] == field and current[1] == "asc":
        return (field, "desc")
    return (field, "asc")
