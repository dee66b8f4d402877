"""Summary counters derived from the current record list.

``recompute`` is always correct. ``patch`` is the exact incremental path for a single
known before/after change and produces the same numbers as ``recompute``.
"""
from __future__ import annotations

import math
from typing import Any, Callable, Dict, Iterable, Mapping, Optional

from pydantic import BaseModel, Field

from .filter_sort import field_value

Predicate = Callable[[Any], bool]


class AggregateDefinition:
    """Named predicates; each counter counts the records its predicate accepts."""

    def __init__(self, counters: Mapping[str, Predicate]) -> None:
        self.counters: Dict[str, Predicate] = dict(counters)

    @classmethod
    def by_value(cls, field: str, values: Iterable[Any]) -> "AggregateDefinition":
        """One counter per category value of ``field``."""
        return cls({str(v): (lambda r, v=v: field_value(r, field) == v) for v in values})

    def __iter__(self):
        return iter(self.counters)


class AggregateCounters(BaseModel):
    """Per-category counts plus the record total."""
    counts: Dict[str, int] = Field(default_factory=dict, description="Count per counter name")
    total: int = Field(default=0, description="Number of records")

    def __getitem__(self, name: str) -> int:
        return self.counts.get(name, 0)


def recompute(records: Iterable[Any], definition: AggregateDefinition) -> AggregateCounters:
    counts = {name: 0 for name in definition.counters}
    total = 0
    for record in records:
        total += 1
        for name, predicate in definition.counters.items():
            if predicate(record):
                counts[name] += 1
    return AggregateCounters(counts=counts, total=total)


def patch(
    counters: AggregateCounters,
    definition: AggregateDefinition,
    before: Optional[Any],
    after: Optional[Any],
) -> AggregateCounters:
    """Apply one record change; ``before=None`` is an insert, ``after=None`` a delete."""
    counts = dict(counters.counts)
    total = counters.total
    for name, predicate in definition.counters.items():
        delta = 0
        if before is not None and predicate(before):
            delta -= 1
        if after is not None and predicate(after):
            delta += 1
        counts[name] = counts.get(name, 0) + delta
    if before is None and after is not None:
        total += 1
    elif before is not None and after is None:
        total -= 1
    return AggregateCounters(counts=counts, total=total)


def rate(numerator: Optional[float], denominator: Optional[float]) -> float:
    """``numerator / denominator * 100``; a zero or missing denominator gives 0."""
    if not denominator or numerator is None:
        return 0.0
    value = numerator / denominator * 100
    return value if math.isfinite(value) else 0.0
