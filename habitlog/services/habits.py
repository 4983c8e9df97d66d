"""
Habit management: create, edit, delete (with completion cascade),
toggle, and settings changes.

Every operation returns a new Document; the input is never modified.
"""
from __future__ import annotations

import uuid
from datetime import date
from typing import Any, Iterable, Optional

from habitlog.core.errors import (
    HabitNotFoundError,
    InvalidHabitError,
    InvalidSettingsError,
)
from habitlog.schemas.document import Document, Habit, TrackerSettings, clamp_target
from habitlog.services.calendar import parse_date_key, to_date_key
from habitlog.services.completions import remove_habit_from_log, toggle_completion


def _today() -> date:
    return date.today()


def _new_id() -> str:
    return uuid.uuid4().hex


def _clean_name(name: Any) -> str:
    cleaned = name.strip() if isinstance(name, str) else ""
    if not cleaned:
        raise InvalidHabitError("Habit name must not be empty.", field="name")
    return cleaned


def _checked_target(value: Any) -> int:
    try:
        return clamp_target(value)
    except ValueError as exc:
        raise InvalidHabitError(str(exc), field="targetPerWeek") from None


def _checked_notes(notes: Any) -> str:
    if not isinstance(notes, str):
        raise InvalidHabitError("Habit notes must be text.", field="notes")
    return notes


def _require(doc: Document, habit_id: str) -> Habit:
    habit = doc.habit(habit_id)
    if habit is None:
        raise HabitNotFoundError(habit_id)
    return habit


def create_habit(
    doc: Document,
    name: str,
    target_per_week: Any = 7,
    notes: str = "",
    today: Optional[date] = None,
) -> tuple[Document, Habit]:
    habit = Habit(
        id=_new_id(),
        name=_clean_name(name),
        target_per_week=_checked_target(target_per_week),
        active=True,
        created_at=today or _today(),
        notes=_checked_notes(notes),
    )
    return doc.model_copy(update={"habits": [*doc.habits, habit]}), habit


def update_habit(
    doc: Document,
    habit_id: str,
    *,
    name: Optional[str] = None,
    target_per_week: Any = None,
    notes: Optional[str] = None,
    active: Optional[bool] = None,
) -> Document:
    habit = _require(doc, habit_id)
    changes: dict[str, Any] = {}
    if name is not None:
        changes["name"] = _clean_name(name)
    if target_per_week is not None:
        changes["target_per_week"] = _checked_target(target_per_week)
    if notes is not None:
        changes["notes"] = _checked_notes(notes)
    if active is not None:
        changes["active"] = bool(active)

    edited = habit.model_copy(update=changes)
    habits = [edited if h.id == habit_id else h for h in doc.habits]
    return doc.model_copy(update={"habits": habits})


def delete_habit(doc: Document, habit_id: str) -> Document:
    """Remove the habit and every completion record that references it."""
    _require(doc, habit_id)
    return doc.model_copy(update={
        "habits": [h for h in doc.habits if h.id != habit_id],
        "completions": remove_habit_from_log(doc.completions, habit_id),
    })


def toggle_habit(doc: Document, habit_id: str, date_key: str) -> Document:
    _require(doc, habit_id)
    # Normalizes "2026-1-5" style keys so the log only holds canonical ones.
    key = to_date_key(parse_date_key(date_key))
    return doc.model_copy(update={
        "completions": toggle_completion(doc.completions, key, habit_id),
    })


def set_week_start(doc: Document, week_starts_on: int) -> Document:
    if isinstance(week_starts_on, bool) or week_starts_on not in (0, 1):
        raise InvalidSettingsError("weekStartsOn", week_starts_on)
    return doc.model_copy(update={
        "settings": TrackerSettings(week_starts_on=week_starts_on),
    })


def sorted_for_display(habits: Iterable[Habit]) -> list[Habit]:
    """Active habits first, then by name (case-insensitive)."""
    return sorted(habits, key=lambda h: (not h.active, h.name.casefold()))
