"""
Tests for the rollup engine.

Covered scenarios:
  A) daily rollup over two days (worked example: 1/2 then 2/2)
  B) inactive habits excluded from numerator and denominator
  C) zero active habits -> every rate is 0
  D) weekly windows: alignment, 7-day span, month-crossing weeks
  E) monthly windows: 28 vs 31 day months, year wrap
  F) current / best streaks, including streaks longer than ten years
  G) per-habit completion rate and HabitStats
"""
from __future__ import annotations

from datetime import date

import pytest

from habitlog.services.calendar import add_days, to_date_key
from habitlog.services.rollup import (
    DailyPoint,
    HabitStats,
    completion_rate_for_habit,
    compute_best_streak,
    compute_streak,
    habit_stats,
    percent,
    rollup_daily,
    rollup_monthly,
    rollup_weekly,
)


# ---------------------------------------------------------------------------
# Rounding
# ---------------------------------------------------------------------------

class TestPercent:
    @pytest.mark.parametrize("num, den, expected", [
        (1, 2, 50),
        (1, 3, 33),
        (2, 3, 67),
        (1, 8, 13),      # 12.5 rounds away from zero
        (3, 8, 38),      # 37.5
        (7, 7, 100),
        (0, 5, 0),
    ])
    def test_rounds_half_away_from_zero(self, num, den, expected):
        assert percent(num, den) == expected

    def test_zero_denominator_is_zero(self):
        assert percent(0, 0) == 0
        assert percent(3, 0) == 0


# ---------------------------------------------------------------------------
# Daily
# ---------------------------------------------------------------------------

class TestRollupDaily:
    def test_worked_example(self, habits, log):
        points = rollup_daily(habits, log, "2026-10-19", "2026-10-20")
        assert [(p.completed, p.total, p.rate) for p in points] == [(1, 2, 50), (2, 2, 100)]
        assert points[0] == DailyPoint("2026-10-19", "Mon Oct 19", 1, 2, 50)

    def test_one_point_per_day_in_order(self, habits, log):
        points = rollup_daily(habits, log, "2026-10-15", "2026-10-21")
        assert [p.date_key for p in points] == [
            "2026-10-15", "2026-10-16", "2026-10-17", "2026-10-18",
            "2026-10-19", "2026-10-20", "2026-10-21",
        ]
        assert points[0].completed == 0
        assert points[0].rate == 0

    def test_inactive_habit_excluded(self, habits, make_habit, make_log):
        all_habits = habits + [make_habit("c", active=False)]
        log = make_log({"2026-10-19": ["a", "c"]})
        point = rollup_daily(all_habits, log, "2026-10-19", "2026-10-19")[0]
        assert (point.completed, point.total, point.rate) == (1, 2, 50)

    def test_zero_habits(self, log):
        points = rollup_daily([], log, "2026-10-19", "2026-10-20")
        assert all(p.rate == 0 and p.total == 0 for p in points)

    def test_empty_window(self, habits, log):
        assert rollup_daily(habits, log, "2026-10-20", "2026-10-19") == []

    def test_inputs_untouched(self, habits, log):
        before = dict(log)
        rollup_daily(habits, log, "2026-10-19", "2026-10-20")
        assert log == before


# ---------------------------------------------------------------------------
# Weekly
# ---------------------------------------------------------------------------

class TestRollupWeekly:
    def test_single_week_starts_on_monday(self, habits, log, today):
        (week,) = rollup_weekly(habits, log, 1, 1, today=today)
        assert week.week_start == "2026-10-19"
        assert week.label == "Oct 19 - Oct 25"
        assert week.total_possible == 2 * 7
        assert week.completed == 3
        assert week.rate == 21                    # 3 / 14 = 21.4%
        assert week.per_habit == {"a": 2, "b": 1}

    def test_sunday_start(self, habits, log, today):
        (week,) = rollup_weekly(habits, log, 1, 0, today=today)
        assert week.week_start == "2026-10-18"
        assert week.label == "Oct 18 - Oct 24"

    def test_oldest_first_seven_days_apart(self, habits, log, today):
        weeks = rollup_weekly(habits, log, 3, 1, today=today)
        assert [w.week_start for w in weeks] == ["2026-10-05", "2026-10-12", "2026-10-19"]
        assert weeks[0].completed == 0

    def test_week_crossing_month_boundary(self, habits, make_log):
        log = make_log({"2026-10-26": ["a"], "2026-11-01": ["a", "b"], "2026-11-02": ["a"]})
        (week,) = rollup_weekly(habits, log, 1, 1, today=date(2026, 11, 1))
        assert week.week_start == "2026-10-26"
        assert week.per_habit == {"a": 2, "b": 1}

    def test_per_habit_lists_idle_active_habits(self, habits, today):
        (week,) = rollup_weekly(habits, {}, 1, 1, today=today)
        assert week.per_habit == {"a": 0, "b": 0}

    def test_zero_habits(self, log, today):
        weeks = rollup_weekly([], log, 2, 1, today=today)
        assert [(w.total_possible, w.rate) for w in weeks] == [(0, 0), (0, 0)]

    def test_inactive_excluded(self, habits, make_habit, log, today):
        all_habits = habits + [make_habit("c", active=False)]
        (week,) = rollup_weekly(all_habits, log, 1, 1, today=today)
        assert week.total_possible == 14
        assert "c" not in week.per_habit


# ---------------------------------------------------------------------------
# Monthly
# ---------------------------------------------------------------------------

class TestRollupMonthly:
    def test_february_vs_march(self, habits, make_log):
        log = make_log({"2026-02-28": ["a"], "2026-03-01": ["a", "b"]})
        feb, mar = rollup_monthly(habits, log, 2, today=date(2026, 3, 15))
        assert (feb.month_start, feb.days_in_month, feb.total_possible) == ("2026-02-01", 28, 56)
        assert (mar.month_start, mar.days_in_month, mar.total_possible) == ("2026-03-01", 31, 62)
        assert feb.completed == 1
        assert mar.completed == 2
        assert feb.label == "Feb 2026"
        assert mar.per_habit == {"a": 1, "b": 1}

    def test_leap_february(self, habits):
        (feb,) = rollup_monthly(habits, {}, 1, today=date(2028, 2, 29))
        assert feb.days_in_month == 29
        assert feb.total_possible == 58

    def test_wraps_year(self, habits):
        months = rollup_monthly(habits, {}, 3, today=date(2026, 1, 10))
        assert [m.month_start for m in months] == ["2025-11-01", "2025-12-01", "2026-01-01"]

    def test_rate(self, habits, make_log):
        days = {to_date_key(date(2026, 10, d)): ["a"] for d in range(1, 32)}
        (oct_,) = rollup_monthly(habits, make_log(days), 1, today=date(2026, 10, 31))
        assert oct_.completed == 31
        assert oct_.rate == 50

    def test_zero_habits(self, log, today):
        (month,) = rollup_monthly([], log, 1, today=today)
        assert month.total_possible == 0
        assert month.rate == 0


# ---------------------------------------------------------------------------
# Streaks
# ---------------------------------------------------------------------------

@pytest.fixture()
def streak_log(make_log):
    """A done Oct 1..5, missed Oct 6, done Oct 7. B done on Oct 6 only."""
    days = {f"2026-10-0{d}": ["a"] for d in range(1, 6)}
    days["2026-10-06"] = ["b"]
    days["2026-10-07"] = ["a"]
    return make_log(days)


class TestStreaks:
    def test_best_streak(self, streak_log):
        assert compute_best_streak("a", streak_log) == 5

    def test_current_streak_stops_at_gap(self, streak_log):
        assert compute_streak("a", streak_log, today=date(2026, 10, 7)) == 1

    def test_current_streak_full_run(self, streak_log):
        assert compute_streak("a", streak_log, today=date(2026, 10, 5)) == 5

    def test_today_not_done_is_zero(self, streak_log):
        assert compute_streak("a", streak_log, today=date(2026, 10, 6)) == 0
        assert compute_streak("a", streak_log, today=date(2026, 10, 8)) == 0

    def test_other_habits_do_not_bridge_gaps(self, streak_log):
        assert compute_best_streak("b", streak_log) == 1

    def test_empty_log(self, today):
        assert compute_streak("a", {}, today=today) == 0
        assert compute_best_streak("a", {}) == 0

    def test_unknown_habit(self, streak_log):
        assert compute_best_streak("zzz", streak_log) == 0

    def test_streak_longer_than_ten_years_is_not_capped(self, today):
        n = 4000
        log = {to_date_key(add_days(today, -i)): frozenset({"a"}) for i in range(n)}
        assert compute_streak("a", log, today=today) == n
        assert compute_best_streak("a", log) == n

    def test_best_streak_across_year_boundary(self, make_log):
        log = make_log({"2025-12-30": ["a"], "2025-12-31": ["a"], "2026-01-01": ["a"]})
        assert compute_best_streak("a", log) == 3


# ---------------------------------------------------------------------------
# Rates and stats
# ---------------------------------------------------------------------------

class TestCompletionRate:
    def test_rate_over_range(self, make_log):
        log = make_log({"2026-10-01": ["a"], "2026-10-02": ["a"], "2026-10-04": ["a"]})
        assert completion_rate_for_habit("a", log, "2026-10-01", "2026-10-04") == 75

    def test_empty_range_is_zero(self, log):
        assert completion_rate_for_habit("a", log, "2026-10-21", "2026-10-20") == 0

    def test_habit_stats(self, streak_log):
        stats = habit_stats("a", streak_log, window_days=7, today=date(2026, 10, 7))
        assert stats == HabitStats(
            habit_id="a",
            current_streak=1,
            best_streak=5,
            window_days=7,
            rate=86,               # 6 of 7 days
        )
