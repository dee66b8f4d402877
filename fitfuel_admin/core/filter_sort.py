"""In-memory filtering and stable sorting of projected records.

Filters combine with AND:
- free-text search: case-insensitive substring over a fixed set of fields per collection
  (list-valued fields match when any element matches)
- categorical equality, where ``"all"`` (any case) means no constraint
- date bucket, with boundaries taken from the viewer's local midnight
"""
from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple, TypeVar

from pydantic import BaseModel

from fitfuel_admin.data.models import ALL, FilterSet, SortSpec

R = TypeVar("R")


def field_value(record: Any, name: str) -> Any:
    """Read ``name`` from a model (attribute or extra) or a mapping."""
    if isinstance(record, Mapping):
        return record.get(name)
    if isinstance(record, BaseModel):
        if name in type(record).model_fields:
            return getattr(record, name)
        extra = record.model_extra or {}
        return extra.get(name)
    return getattr(record, name, None)


def _text_matches(value: Any, term: str) -> bool:
    if value is None:
        return False
    if isinstance(value, (list, tuple, set, frozenset)):
        return any(_text_matches(v, term) for v in value)
    return term in str(value).lower()


def matches_search(record: Any, term: str, fields: Sequence[str]) -> bool:
    term = (term or "").strip().lower()
    if not term:
        return True
    return any(_text_matches(field_value(record, f), term) for f in fields)


def matches_equals(record: Any, equals: Mapping[str, Optional[str]]) -> bool:
    for name, wanted in equals.items():
        if wanted is None or str(wanted).lower() == ALL:
            continue
        if field_value(record, name) != wanted:
            return False
    return True


def local_naive(value: datetime) -> datetime:
    """Express a timestamp as a naive local wall-clock time."""
    if value.tzinfo is not None:
        return value.astimezone().replace(tzinfo=None)
    return value


def bucket_bounds(bucket: str, now: Optional[datetime] = None) -> Tuple[Optional[datetime], Optional[datetime]]:
    """Half-open ``[start, end)`` bounds of a date bucket; None means unbounded.

    Weeks start on Sunday.
    """
    now = local_naive(now or datetime.now())
    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
    if bucket == "today":
        return midnight, None
    if bucket == "yesterday":
        return midnight - timedelta(days=1), midnight
    if bucket == "week":
        days_since_sunday = (midnight.weekday() + 1) % 7
        return midnight - timedelta(days=days_since_sunday), None
    if bucket == "month":
        return midnight.replace(day=1), None
    if bucket == ALL:
        return None, None
    raise ValueError(f"Unknown date bucket: {bucket}")


def matches_date(record: Any, field: str, bucket: str, now: Optional[datetime] = None) -> bool:
    if bucket == ALL:
        return True
    value = field_value(record, field)
    if not isinstance(value, datetime):
        return False
    start, end = bucket_bounds(bucket, now)
    value = local_naive(value)
    if start is not None and value < start:
        return False
    if end is not None and value >= end:
        return False
    return True


def matches(record: Any, filters: FilterSet, search_fields: Sequence[str], now: Optional[datetime] = None) -> bool:
    return (
        matches_search(record, filters.search, search_fields)
        and matches_equals(record, filters.equals)
        and matches_date(record, filters.date_field, filters.date_bucket, now)
    )


def _sort_key(field: str, descending: bool):
    # None sorts last in both directions; strings compare case-insensitively
    def key(record: Any):
        value = field_value(record, field)
        if isinstance(value, str):
            value = value.casefold()
        elif isinstance(value, datetime):
            value = local_naive(value)
        if descending:
            return (value is not None, value)
        return (value is None, value)
    return key


def sort_records(records: Iterable[R], sort: Optional[SortSpec]) -> List[R]:
    """Stable sort: records with equal keys keep their input order in both directions."""
    records = list(records)
    if sort is None:
        return records
    descending = sort.direction == "desc"
    return sorted(records, key=_sort_key(sort.field, descending), reverse=descending)


def apply(
    records: Sequence[R],
    filters: FilterSet,
    sort: Optional[SortSpec],
    search_fields: Sequence[str],
    now: Optional[datetime] = None,
) -> List[R]:
    """Filter then sort. Recomputed from scratch on every call."""
    kept = [r for r in records if matches(r, filters, search_fields, now)]
    return sort_records(kept, sort)
