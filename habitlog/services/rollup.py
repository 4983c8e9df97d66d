"""
Rollup engine: daily / weekly / monthly aggregates, streaks and rates.

Definition
----------
Every rollup partitions a date window into buckets and, per bucket, sums
completions of the habits that are active *now*. Inactive habits are left
out of every numerator and denominator, including for days on which they
used to be active.

Rates are integer percentages in [0, 100], rounded half away from zero.
An empty denominator (no active habits, empty range) yields 0.

Public API
----------
rollup_daily(habits, log, start_key, end_key)                 -> list[DailyPoint]
rollup_weekly(habits, log, weeks_back, week_starts_on, today)  -> list[WeeklyPoint]
rollup_monthly(habits, log, months_back, today)                -> list[MonthlyPoint]
compute_streak(habit_id, log, today)                           -> int
compute_best_streak(habit_id, log)                             -> int
completion_rate_for_habit(habit_id, log, start_key, end_key)   -> int
habit_stats(habit_id, log, window_days, today)                 -> HabitStats

All functions are pure: same inputs, same outputs, inputs never mutated.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Mapping, Optional

from habitlog.schemas.document import Habit
from habitlog.services.calendar import (
    add_days,
    add_months,
    date_range_inclusive,
    day_label,
    days_in_month,
    last_n_days,
    month_label,
    parse_date_key,
    range_label,
    start_of_month,
    start_of_week,
    to_date_key,
)
from habitlog.services.completions import completed_days

Log = Mapping[str, frozenset[str]]


# ---------------------------------------------------------------------------
# Result types (plain frozen dataclasses, recomputed on every call)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DailyPoint:
    date_key: str
    label: str
    completed: int
    total: int             # active habit count
    rate: int


@dataclass(frozen=True)
class WeeklyPoint:
    week_start: str        # date key of the first day of the week
    label: str
    completed: int
    total_possible: int    # active habit count * 7
    rate: int
    per_habit: dict[str, int]


@dataclass(frozen=True)
class MonthlyPoint:
    month_start: str
    label: str
    completed: int
    total_possible: int    # active habit count * days_in_month
    rate: int
    days_in_month: int
    per_habit: dict[str, int]


@dataclass(frozen=True)
class HabitStats:
    habit_id: str
    current_streak: int
    best_streak: int
    window_days: int
    rate: int              # completion rate over the last window_days


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _today() -> date:
    return date.today()


def percent(numerator: int, denominator: int) -> int:
    """round(100 * numerator / denominator), half away from zero; 0 if denominator is 0."""
    if denominator <= 0:
        return 0
    value = (Decimal(100) * numerator / Decimal(denominator)).quantize(
        Decimal("1"), rounding=ROUND_HALF_UP
    )
    return int(value)


def _active_ids(habits: Iterable[Habit]) -> list[str]:
    return [h.id for h in habits if h.active]


def _bucket_counts(
    active_ids: list[str], log: Log, keys: Iterable[str]
) -> dict[str, int]:
    counts = {habit_id: 0 for habit_id in active_ids}
    for key in keys:
        day = log.get(key)
        if not day:
            continue
        for habit_id in active_ids:
            if habit_id in day:
                counts[habit_id] += 1
    return counts


# ---------------------------------------------------------------------------
# Rollups
# ---------------------------------------------------------------------------

def rollup_daily(
    habits: Iterable[Habit], log: Log, start_key: str, end_key: str
) -> list[DailyPoint]:
    active_ids = _active_ids(habits)
    total = len(active_ids)
    points: list[DailyPoint] = []
    for key in date_range_inclusive(start_key, end_key):
        day = log.get(key, frozenset())
        completed = sum(1 for habit_id in active_ids if habit_id in day)
        points.append(DailyPoint(
            date_key=key,
            label=day_label(parse_date_key(key)),
            completed=completed,
            total=total,
            rate=percent(completed, total),
        ))
    return points


def rollup_weekly(
    habits: Iterable[Habit],
    log: Log,
    weeks_back: int,
    week_starts_on: int,
    today: Optional[date] = None,
) -> list[WeeklyPoint]:
    """
    `weeks_back` consecutive 7-day weeks, oldest first. The last one is the
    (possibly partial) week containing today.
    """
    active_ids = _active_ids(habits)
    current = start_of_week(today or _today(), week_starts_on)
    points: list[WeeklyPoint] = []
    for i in range(weeks_back - 1, -1, -1):
        start = add_days(current, -7 * i)
        end = add_days(start, 6)
        counts = _bucket_counts(
            active_ids, log, date_range_inclusive(to_date_key(start), to_date_key(end))
        )
        completed = sum(counts.values())
        total_possible = len(active_ids) * 7
        points.append(WeeklyPoint(
            week_start=to_date_key(start),
            label=range_label(start, end),
            completed=completed,
            total_possible=total_possible,
            rate=percent(completed, total_possible),
            per_habit=counts,
        ))
    return points


def rollup_monthly(
    habits: Iterable[Habit],
    log: Log,
    months_back: int,
    today: Optional[date] = None,
) -> list[MonthlyPoint]:
    """`months_back` calendar months, oldest first, ending with the current month."""
    active_ids = _active_ids(habits)
    current = start_of_month(today or _today())
    points: list[MonthlyPoint] = []
    for i in range(months_back - 1, -1, -1):
        start = add_months(current, -i)
        n_days = days_in_month(start)
        end = add_days(start, n_days - 1)
        counts = _bucket_counts(
            active_ids, log, date_range_inclusive(to_date_key(start), to_date_key(end))
        )
        completed = sum(counts.values())
        total_possible = len(active_ids) * n_days
        points.append(MonthlyPoint(
            month_start=to_date_key(start),
            label=month_label(start),
            completed=completed,
            total_possible=total_possible,
            rate=percent(completed, total_possible),
            days_in_month=n_days,
            per_habit=counts,
        ))
    return points


# ---------------------------------------------------------------------------
# Per-habit statistics
# ---------------------------------------------------------------------------

def compute_streak(habit_id: str, log: Log, today: Optional[date] = None) -> int:
    """
    Consecutive completed days walking back from today. 0 if today is not
    completed. The walk ends at the first gap, and the set of completed
    days is finite, so no lookback cap is needed.
    """
    done = completed_days(log, habit_id)
    streak = 0
    cursor = today or _today()
    while to_date_key(cursor) in done:
        streak += 1
        cursor = add_days(cursor, -1)
    return streak


def compute_best_streak(habit_id: str, log: Log) -> int:
    """Longest run of calendar-consecutive completed days across the whole log."""
    days = sorted(parse_date_key(key) for key in completed_days(log, habit_id))
    best = 0
    run = 0
    previous: Optional[date] = None
    for d in days:
        if previous is not None and d == add_days(previous, 1):
            run += 1
        else:
            run = 1
        best = max(best, run)
        previous = d
    return best


def completion_rate_for_habit(
    habit_id: str, log: Log, start_key: str, end_key: str
) -> int:
    keys = date_range_inclusive(start_key, end_key)
    done = sum(1 for key in keys if habit_id in log.get(key, ()))
    return percent(done, len(keys))


def habit_stats(
    habit_id: str,
    log: Log,
    window_days: int = 30,
    today: Optional[date] = None,
) -> HabitStats:
    today = today or _today()
    window = last_n_days(window_days, today=today)
    return HabitStats(
        habit_id=habit_id,
        current_streak=compute_streak(habit_id, log, today=today),
        best_streak=compute_best_streak(habit_id, log),
        window_days=window_days,
        rate=completion_rate_for_habit(habit_id, log, window.start_key, window.end_key),
    )
