"""
Shared pytest fixtures.

Everything runs against a fixed "today" (Wednesday 2026-10-21) so week
and month boundaries are deterministic.
"""
from datetime import date

import pytest

from habitlog.schemas.document import Document, Habit

WEDNESDAY = date(2026, 10, 21)
MONDAY_KEY = "2026-10-19"
TUESDAY_KEY = "2026-10-20"


def _habit(habit_id: str, name: str | None = None, target: int = 7, active: bool = True) -> Habit:
    return Habit(
        id=habit_id,
        name=name or habit_id.upper(),
        target_per_week=target,
        active=active,
        created_at=date(2026, 1, 1),
    )


def _log(days: dict[str, list[str]]) -> dict[str, frozenset[str]]:
    return {key: frozenset(ids) for key, ids in days.items()}


@pytest.fixture()
def today() -> date:
    return WEDNESDAY


@pytest.fixture()
def make_habit():
    return _habit


@pytest.fixture()
def make_log():
    return _log


@pytest.fixture()
def habits() -> list[Habit]:
    """A (target 5) and B (target 3), both active."""
    return [_habit("a", "Read", 5), _habit("b", "Run", 3)]


@pytest.fixture()
def log() -> dict[str, frozenset[str]]:
    """A done Monday and Tuesday, B done Tuesday only."""
    return _log({MONDAY_KEY: ["a"], TUESDAY_KEY: ["a", "b"]})


@pytest.fixture()
def doc(habits, log) -> Document:
    return Document(habits=habits, completions=log)
