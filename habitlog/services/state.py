"""
State service: the persistence port and the tracker that owns the
document lifecycle.

The document is loaded once, held as the single source of truth, and
saved after every mutation. Rollups are never stored; every read helper
recomputes from the raw log.
"""
from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from datetime import date
from pathlib import Path
from typing import Any, Optional, Protocol

from habitlog.core.config import settings as app_settings
from habitlog.schemas.document import Document, Habit
from habitlog.services import habits as habit_ops
from habitlog.services.calendar import last_n_days, parse_date_key, to_date_key
from habitlog.services.ingest import default_document, normalize_document, to_payload
from habitlog.services.progress import (
    GoalProgress,
    Heatmap,
    consistency_heatmap,
    weekly_goal_progress,
)
from habitlog.services.rollup import (
    DailyPoint,
    HabitStats,
    MonthlyPoint,
    WeeklyPoint,
    habit_stats,
    rollup_daily,
    rollup_monthly,
    rollup_weekly,
)
from habitlog.services.summary import DaySummary, get_day_summary

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Persistence port
# ---------------------------------------------------------------------------

class DocumentStore(Protocol):
    def load(self) -> Document: ...

    def save(self, doc: Document) -> None: ...


class MemoryStore:
    """Keeps the last saved document in process. Counts saves."""

    def __init__(self, doc: Optional[Document] = None):
        self._doc = doc or default_document()
        self.saves = 0

    def load(self) -> Document:
        return self._doc

    def save(self, doc: Document) -> None:
        self._doc = doc
        self.saves += 1


class JsonFileStore:
    """One JSON file on disk. Writes go to a temp file, then os.replace."""

    def __init__(self, path: str | os.PathLike[str] | None = None):
        self.path = Path(path or app_settings.HABITLOG_DATA_PATH)

    def load(self) -> Document:
        if not self.path.exists():
            logger.info("No document at %s, starting empty", self.path)
            return default_document()
        try:
            raw: Any = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Could not read %s (%s), starting empty", self.path, exc)
            return default_document()
        return normalize_document(raw)

    def save(self, doc: Document) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(to_payload(doc), f, ensure_ascii=False, indent=2)
            os.replace(tmp, self.path)
        except BaseException:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise
        logger.debug("Saved document to %s", self.path)


# ---------------------------------------------------------------------------
# Tracker
# ---------------------------------------------------------------------------

class HabitTracker:
    """
    Owns the state document for one store. Mutations run under a lock so
    toggle read-modify-write cycles cannot interleave.
    """

    def __init__(self, store: DocumentStore):
        self._store = store
        self._lock = threading.Lock()
        self._doc = store.load()
        logger.info(
            "Loaded document: %d habits, %d days with completions",
            len(self._doc.habits), len(self._doc.completions),
        )

    @property
    def document(self) -> Document:
        return self._doc

    def _commit(self, doc: Document) -> Document:
        # caller holds the lock
        if doc is not self._doc:
            self._doc = doc
            self._store.save(doc)
        return doc

    # --- mutations ---

    def add_habit(
        self, name: str, target_per_week: Any = 7, notes: str = "",
        today: Optional[date] = None,
    ) -> Habit:
        with self._lock:
            doc, habit = habit_ops.create_habit(
                self._doc, name, target_per_week, notes, today=today
            )
            self._commit(doc)
        logger.info("Created habit %s (%s)", habit.id, habit.name)
        return habit

    def edit_habit(self, habit_id: str, **changes: Any) -> Habit:
        with self._lock:
            doc = self._commit(habit_ops.update_habit(self._doc, habit_id, **changes))
        return doc.habit(habit_id)

    def remove_habit(self, habit_id: str) -> None:
        with self._lock:
            self._commit(habit_ops.delete_habit(self._doc, habit_id))
        logger.info("Deleted habit %s and its completions", habit_id)

    def toggle(self, habit_id: str, date_key: Optional[str] = None) -> bool:
        """Toggle habit_id on date_key (default today). Returns the new state."""
        key = to_date_key(parse_date_key(date_key)) if date_key else to_date_key(date.today())
        with self._lock:
            doc = self._commit(habit_ops.toggle_habit(self._doc, habit_id, key))
        return habit_id in doc.completions.get(key, ())

    def set_week_start(self, week_starts_on: int) -> None:
        with self._lock:
            self._commit(habit_ops.set_week_start(self._doc, week_starts_on))

    def replace(self, doc: Document) -> None:
        """Swap in a whole document, e.g. after an import."""
        with self._lock:
            self._doc = doc
            self._store.save(doc)
        logger.info("Replaced document: %d habits", len(doc.habits))

    def reset(self) -> None:
        self.replace(default_document())

    # --- reads (recomputed on every call) ---

    @property
    def week_starts_on(self) -> int:
        return self._doc.settings.week_starts_on

    def daily(self, days: int = 14, today: Optional[date] = None) -> list[DailyPoint]:
        window = last_n_days(days, today=today)
        return rollup_daily(self._doc.habits, self._doc.completions,
                            window.start_key, window.end_key)

    def weekly(self, weeks_back: int = 8, today: Optional[date] = None) -> list[WeeklyPoint]:
        return rollup_weekly(self._doc.habits, self._doc.completions,
                             weeks_back, self.week_starts_on, today=today)

    def monthly(self, months_back: int = 6, today: Optional[date] = None) -> list[MonthlyPoint]:
        return rollup_monthly(self._doc.habits, self._doc.completions,
                              months_back, today=today)

    def stats(self, habit_id: str, window_days: Optional[int] = None,
              today: Optional[date] = None) -> HabitStats:
        if window_days is None:
            window_days = app_settings.STATS_WINDOW_DAYS
        return habit_stats(habit_id, self._doc.completions, window_days, today=today)

    def day_summary(self, date_key: Optional[str] = None) -> DaySummary:
        key = to_date_key(parse_date_key(date_key)) if date_key else to_date_key(date.today())
        return get_day_summary(self._doc.habits, self._doc.completions, key)

    def goal_progress(self, today: Optional[date] = None) -> list[GoalProgress]:
        return weekly_goal_progress(self._doc.habits, self._doc.completions,
                                    self.week_starts_on, today=today)

    def heatmap(self, weeks: Optional[int] = None, today: Optional[date] = None) -> Heatmap:
        if weeks is None:
            weeks = app_settings.HEATMAP_WEEKS
        return consistency_heatmap(self._doc.habits, self._doc.completions,
                                   weeks, self.week_starts_on, today=today)
