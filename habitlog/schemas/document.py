"""
State document schemas.

The whole tracker state is one JSON document:

    {
      "version": 1,
      "settings": {"weekStartsOn": 1},
      "habits": [{"id", "name", "targetPerWeek", "active", "createdAt", "notes"}],
      "completions": {"2026-10-19": ["<habit id>", ...]}
    }

JSON keys are camelCase; Python attributes are snake_case.
"""
from __future__ import annotations

from datetime import date
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

DOCUMENT_VERSION = 1

TARGET_MIN = 1
TARGET_MAX = 7

# date key -> ids of habits completed that day. Never holds an empty set.
CompletionLog = dict[str, frozenset[str]]


def clamp_target(value: Any) -> int:
    """Clamp a weekly target into [1, 7]. Raises ValueError for non-numbers."""
    if isinstance(value, bool):
        raise ValueError("targetPerWeek must be a number")
    try:
        n = int(value)
    except (TypeError, ValueError, OverflowError):
        raise ValueError("targetPerWeek must be a number") from None
    return max(TARGET_MIN, min(TARGET_MAX, n))


class TrackerSettings(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    week_starts_on: Literal[0, 1] = Field(
        default=1,
        alias="weekStartsOn",
        description="0 = Sunday, 1 = Monday.",
    )


class Habit(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str = Field(min_length=1)
    name: str
    target_per_week: int = Field(default=TARGET_MAX, alias="targetPerWeek")
    active: bool = True
    created_at: date = Field(default_factory=date.today, alias="createdAt")
    notes: str = ""

    @field_validator("target_per_week", mode="before")
    @classmethod
    def clamp(cls, v: Any) -> int:
        return clamp_target(v)


class Document(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    version: int = DOCUMENT_VERSION
    settings: TrackerSettings = Field(default_factory=TrackerSettings)
    habits: list[Habit] = Field(default_factory=list)
    completions: CompletionLog = Field(default_factory=dict)

    def habit(self, habit_id: str) -> Habit | None:
        for h in self.habits:
            if h.id == habit_id:
                return h
        return None
