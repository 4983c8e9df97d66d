"""
Weekly goal progress and the consistency heatmap.

Public API
----------
weekly_goal_progress(habits, log, week_starts_on, today)        -> list[GoalProgress]
consistency_heatmap(habits, log, weeks, week_starts_on, today)  -> Heatmap
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Iterable, Mapping, Optional

from habitlog.schemas.document import Habit
from habitlog.services.calendar import (
    add_days,
    date_range_inclusive,
    month_label,
    start_of_week,
    to_date_key,
)
from habitlog.services.rollup import percent

# Rate thresholds (inclusive upper bounds) for heatmap levels 1..4.
HEATMAP_LEVELS = (25, 50, 75, 100)


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class GoalProgress:
    habit_id: str
    name: str
    done: int
    target: int
    percent: int           # capped at 100
    met: bool


@dataclass(frozen=True)
class HeatmapCell:
    date_key: str
    completed: int
    rate: int
    level: int             # 0..4
    is_future: bool


@dataclass(frozen=True)
class Heatmap:
    week_starts_on: int
    weeks: list[list[HeatmapCell]]   # oldest week first, 7 cells each
    month_labels: list[str]          # per column, "" when the month is unchanged
    active_count: int


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _today() -> date:
    return date.today()


def intensity_level(rate: int) -> int:
    if rate <= 0:
        return 0
    for level, upper in enumerate(HEATMAP_LEVELS, start=1):
        if rate <= upper:
            return level
    return len(HEATMAP_LEVELS)


# ---------------------------------------------------------------------------
# Public
# ---------------------------------------------------------------------------

def weekly_goal_progress(
    habits: Iterable[Habit],
    log: Mapping[str, frozenset[str]],
    week_starts_on: int,
    today: Optional[date] = None,
) -> list[GoalProgress]:
    """Completions this week against targetPerWeek, one entry per active habit."""
    start = start_of_week(today or _today(), week_starts_on)
    keys = date_range_inclusive(to_date_key(start), to_date_key(add_days(start, 6)))
    progress = []
    for habit in habits:
        if not habit.active:
            continue
        done = sum(1 for key in keys if habit.id in log.get(key, ()))
        progress.append(GoalProgress(
            habit_id=habit.id,
            name=habit.name,
            done=done,
            target=habit.target_per_week,
            percent=min(100, percent(done, habit.target_per_week)),
            met=done >= habit.target_per_week,
        ))
    return progress


def consistency_heatmap(
    habits: Iterable[Habit],
    log: Mapping[str, frozenset[str]],
    weeks: int,
    week_starts_on: int,
    today: Optional[date] = None,
) -> Heatmap:
    """
    A weeks x 7 grid of daily completion rates over active habits. The last
    column is the week containing today; cells after today are marked
    is_future and carry no completions.
    """
    today = today or _today()
    active_ids = [h.id for h in habits if h.active]
    total = len(active_ids)
    first = add_days(start_of_week(today, week_starts_on), -7 * (weeks - 1))

    columns: list[list[HeatmapCell]] = []
    labels: list[str] = []
    previous_month: Optional[int] = None
    for w in range(weeks):
        week_start = add_days(first, 7 * w)
        labels.append(month_label(week_start) if week_start.month != previous_month else "")
        previous_month = week_start.month

        column = []
        for offset in range(7):
            d = add_days(week_start, offset)
            key = to_date_key(d)
            if d > today:
                column.append(HeatmapCell(key, 0, 0, 0, True))
                continue
            day = log.get(key, frozenset())
            completed = sum(1 for habit_id in active_ids if habit_id in day)
            rate = percent(completed, total)
            column.append(HeatmapCell(key, completed, rate, intensity_level(rate), False))
        columns.append(column)

    return Heatmap(
        week_starts_on=week_starts_on,
        weeks=columns,
        month_labels=labels,
        active_count=total,
    )
