"""
Completion log accessors.

The log maps a date key to the frozenset of habit ids completed that day.
A day key exists only while its set is non-empty. Every writer here
returns a new dict and leaves its input untouched, so callers can detect
change by identity.
"""
from __future__ import annotations

from typing import Mapping

from habitlog.schemas.document import CompletionLog


def is_completed(log: Mapping[str, frozenset[str]], date_key: str, habit_id: str) -> bool:
    return habit_id in log.get(date_key, ())


def toggle_completion(
    log: Mapping[str, frozenset[str]], date_key: str, habit_id: str
) -> CompletionLog:
    day = log.get(date_key, frozenset())
    if habit_id in day:
        day = day - {habit_id}
    else:
        day = day | {habit_id}

    new_log = dict(log)
    if day:
        new_log[date_key] = frozenset(day)
    else:
        new_log.pop(date_key, None)
    return new_log


def remove_habit_from_log(
    log: Mapping[str, frozenset[str]], habit_id: str
) -> CompletionLog:
    """Drop habit_id from every day, then prune days left empty."""
    new_log: CompletionLog = {}
    for key, ids in log.items():
        kept = frozenset(ids) - {habit_id}
        if kept:
            new_log[key] = kept
    return new_log


def completed_days(log: Mapping[str, frozenset[str]], habit_id: str) -> set[str]:
    """All date keys on which habit_id was completed."""
    return {key for key, ids in log.items() if habit_id in ids}
