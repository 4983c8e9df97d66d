"""
Snapshot summary: a single day's completion count and rate over the
currently active habits.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Mapping

from habitlog.schemas.document import Habit
from habitlog.services.completions import is_completed
from habitlog.services.rollup import percent


@dataclass(frozen=True)
class DaySummary:
    date_key: str
    total: int
    completed: int
    remaining: int
    rate: int


def get_day_summary(
    habits: Iterable[Habit], log: Mapping[str, frozenset[str]], date_key: str
) -> DaySummary:
    active = [h for h in habits if h.active]
    completed = sum(1 for h in active if is_completed(log, date_key, h.id))
    total = len(active)
    return DaySummary(
        date_key=date_key,
        total=total,
        completed=completed,
        remaining=total - completed,
        rate=percent(completed, total),
    )
