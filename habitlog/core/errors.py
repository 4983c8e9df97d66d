"""
Custom exception hierarchy for habitlog.

Rule: every error has a machine-readable `code` string so callers
(the rendering layer, import dialogs) can branch on it without parsing
English messages.
"""
from __future__ import annotations

from typing import Any


# ---------------------------------------------------------------------------
# Exception classes
# ---------------------------------------------------------------------------

class HabitLogException(Exception):
    """Base class for all application-level errors."""
    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        payload: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class InvalidDateKeyError(HabitLogException, ValueError):
    code = "INVALID_DATE_KEY"

    def __init__(self, key: Any):
        super().__init__(
            message=f"Date key {key!r} does not match YYYY-MM-DD.",
            details={"key": str(key)},
        )


class HabitNotFoundError(HabitLogException, LookupError):
    code = "HABIT_NOT_FOUND"

    def __init__(self, habit_id: str):
        super().__init__(
            message=f"Habit {habit_id} does not exist.",
            details={"habit_id": habit_id},
        )


class InvalidHabitError(HabitLogException, ValueError):
    code = "INVALID_HABIT"

    def __init__(self, message: str, field: str | None = None):
        super().__init__(
            message=message,
            details={"field": field} if field else {},
        )


class InvalidSettingsError(HabitLogException, ValueError):
    code = "INVALID_SETTINGS"

    def __init__(self, name: str, value: Any):
        super().__init__(
            message=f"Setting {name} cannot be {value!r}.",
            details={"setting": name, "value": value},
        )


class DocumentImportError(HabitLogException):
    code = "IMPORT_ERROR"

    def __init__(self, message: str, reason: str | None = None):
        super().__init__(
            message=message,
            details={"reason": reason} if reason else {},
        )
