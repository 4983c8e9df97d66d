"""
Ingest service: turn loosely-shaped JSON into a typed Document, and back.

Public API
----------
default_document()              -> Document
normalize_document(raw)         -> Document   (never raises on shape problems)
import_document(text)           -> Document   (DocumentImportError on bad JSON)
export_document(doc, now)       -> dict
dumps_document(doc, now)        -> str

Normalization degrades field by field: a broken `settings` block does not
cost the user their habits, and one malformed habit does not cost them
the others.
"""
from __future__ import annotations

import json
import logging
from datetime import date, datetime, timezone
from typing import Any, Optional

from pydantic import ValidationError

from habitlog.core.config import settings as app_settings
from habitlog.core.errors import DocumentImportError, InvalidDateKeyError
from habitlog.schemas.document import (
    DOCUMENT_VERSION,
    CompletionLog,
    Document,
    Habit,
    TrackerSettings,
    TARGET_MAX,
)
from habitlog.services.calendar import parse_date_key, to_date_key

logger = logging.getLogger(__name__)

UNTITLED = "Untitled habit"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _now_utc_iso(now: Optional[datetime] = None) -> str:
    return (
        (now or datetime.now(timezone.utc))
        .astimezone(timezone.utc)
        .replace(microsecond=0)
        .isoformat()
        .replace("+00:00", "Z")
    )


def _coerce_id(value: Any) -> Optional[str]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return str(value)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _default_settings() -> TrackerSettings:
    return TrackerSettings(week_starts_on=app_settings.default_week_starts_on)


def _normalize_settings(raw: Any) -> TrackerSettings:
    if not isinstance(raw, dict):
        return _default_settings()
    try:
        return TrackerSettings.model_validate(raw)
    except ValidationError:
        logger.warning("Invalid settings %r, using defaults", raw)
        return _default_settings()


def _normalize_habit(raw: Any) -> Optional[Habit]:
    if not isinstance(raw, dict):
        return None
    habit_id = _coerce_id(raw.get("id"))
    if habit_id is None:
        return None

    name = raw.get("name")
    name = name.strip() if isinstance(name, str) else ""

    created_raw = raw.get("createdAt")
    if isinstance(created_raw, str):
        # full ISO timestamps keep only their date part
        created_raw = created_raw[:10]
    try:
        created_at = parse_date_key(created_raw)
    except InvalidDateKeyError:
        created_at = date.today()

    active = raw.get("active")
    notes = raw.get("notes")

    fields = {
        "id": habit_id,
        "name": name or UNTITLED,
        "targetPerWeek": raw.get("targetPerWeek", TARGET_MAX),
        "active": active if isinstance(active, bool) else True,
        "createdAt": created_at,
        "notes": notes if isinstance(notes, str) else "",
    }
    try:
        return Habit.model_validate(fields)
    except ValidationError:
        fields["targetPerWeek"] = TARGET_MAX
        return Habit.model_validate(fields)


def _normalize_habits(raw: Any) -> list[Habit]:
    if not isinstance(raw, list):
        return []
    habits: list[Habit] = []
    seen: set[str] = set()
    for item in raw:
        habit = _normalize_habit(item)
        if habit is None or habit.id in seen:
            logger.warning("Dropping unusable habit entry %r", item)
            continue
        seen.add(habit.id)
        habits.append(habit)
    return habits


def _normalize_completions(raw: Any) -> CompletionLog:
    if not isinstance(raw, dict):
        return {}
    log: CompletionLog = {}
    for key, ids in raw.items():
        try:
            canonical = to_date_key(parse_date_key(key))
        except InvalidDateKeyError:
            logger.warning("Dropping completions under invalid date key %r", key)
            continue
        if not isinstance(ids, list):
            continue
        day = frozenset(i for i in (_coerce_id(v) for v in ids) if i is not None)
        if day:
            log[canonical] = log.get(canonical, frozenset()) | day
    return log


# ---------------------------------------------------------------------------
# Public
# ---------------------------------------------------------------------------

def default_document() -> Document:
    return Document(settings=_default_settings())


def normalize_document(raw: Any) -> Document:
    if not isinstance(raw, dict):
        logger.warning("Document is %s, not an object; starting empty", type(raw).__name__)
        return default_document()
    return Document(
        version=DOCUMENT_VERSION,
        settings=_normalize_settings(raw.get("settings")),
        habits=_normalize_habits(raw.get("habits")),
        completions=_normalize_completions(raw.get("completions")),
    )


def import_document(text: str) -> Document:
    try:
        raw = json.loads(text)
    except (TypeError, ValueError) as exc:
        raise DocumentImportError("Import file is not valid JSON.", reason=str(exc)) from exc
    if not isinstance(raw, dict):
        raise DocumentImportError(
            "Import file must contain a JSON object.",
            reason=f"top-level value is {type(raw).__name__}",
        )
    doc = normalize_document(raw)
    logger.info(
        "Imported document: %d habits, %d days with completions",
        len(doc.habits), len(doc.completions),
    )
    return doc


def export_document(doc: Document, now: Optional[datetime] = None) -> dict[str, Any]:
    payload = to_payload(doc)
    payload["exportedAtISO"] = _now_utc_iso(now)
    return payload


def to_payload(doc: Document) -> dict[str, Any]:
    """Canonical persisted shape (no export stamp)."""
    return {
        "version": doc.version,
        "settings": doc.settings.model_dump(by_alias=True),
        "habits": [h.model_dump(mode="json", by_alias=True) for h in doc.habits],
        "completions": {
            key: sorted(ids) for key, ids in sorted(doc.completions.items())
        },
    }


def dumps_document(doc: Document, now: Optional[datetime] = None) -> str:
    return json.dumps(export_document(doc, now), ensure_ascii=False, indent=2)
