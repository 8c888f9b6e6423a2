"""
Activity ledger.

Append-only set of workout ids already folded into training load, together
with the load each one contributed to its day. Daily training-load totals are
read back from the ledger, so re-running a scoring pass never counts a
workout twice.
"""

import logging
import threading
from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, List, Optional, Protocol, Set, runtime_checkable

from .db.database import Database

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LedgerEntry:
    """One counted workout."""
    activity_id: str
    date: Optional[date]
    training_load: float = 0.0


@runtime_checkable
class ActivityLedger(Protocol):
    """Persistent set of counted activity ids."""

    def contains(self, activity_id: str) -> bool:
        ...

    def record(self, activity_id: str, day: Optional[date] = None, training_load: float = 0.0) -> bool:
        ...

    def commit(self, entries: Iterable[LedgerEntry]) -> List[str]:
        ...

    def daily_loads(self, start: date, end: date) -> Dict[date, float]:
        ...

    def counted_ids(self) -> Set[str]:
        ...

    def entries(self) -> List[LedgerEntry]:
        ...


class InMemoryActivityLedger:
    """Ledger held in process memory, guarded by a lock."""

    def __init__(self, entries: Optional[Iterable[LedgerEntry]] = None):
        self._lock = threading.Lock()
        self._entries: Dict[str, LedgerEntry] = {}
        for entry in entries or []:
            self._entries.setdefault(entry.activity_id, entry)

    def contains(self, activity_id: str) -> bool:
        with self._lock:
            return activity_id in self._entries

    def record(self, activity_id: str, day: Optional[date] = None, training_load: float = 0.0) -> bool:
        """Record one id. Returns False when it was already present."""
        return bool(self.commit([LedgerEntry(activity_id, day, training_load)]))

    def commit(self, entries: Iterable[LedgerEntry]) -> List[str]:
        """Record a batch under one lock acquisition. Returns the newly recorded ids."""
        entries = list(entries)
        inserted = []
        with self._lock:
            for entry in entries:
                if entry.activity_id in self._entries:
                    continue
                self._entries[entry.activity_id] = entry
                inserted.append(entry.activity_id)
        return inserted

    def daily_loads(self, start: date, end: date) -> Dict[date, float]:
        with self._lock:
            totals: Dict[date, float] = {}
            for entry in self._entries.values():
                if entry.date is None or not (start <= entry.date <= end):
                    continue
                totals[entry.date] = totals.get(entry.date, 0.0) + entry.training_load
            return dict(sorted(totals.items()))

    def counted_ids(self) -> Set[str]:
        with self._lock:
            return set(self._entries)

    def entries(self) -> List[LedgerEntry]:
        with self._lock:
            return sorted(
                self._entries.values(),
                key=lambda e: (e.date or date.min, e.activity_id),
            )


class SQLiteActivityLedger:
    """Ledger stored in the counted_activities table."""

    def __init__(self, db: Database):
        self.db = db

    def contains(self, activity_id: str) -> bool:
        return self.db.has_activity(activity_id)

    def record(self, activity_id: str, day: Optional[date] = None, training_load: float = 0.0) -> bool:
        """Record one id. Returns False when it was already present."""
        return bool(self.commit([LedgerEntry(activity_id, day, training_load)]))

    def commit(self, entries: Iterable[LedgerEntry]) -> List[str]:
        """
        Record a batch in a single write transaction.

        Ids already present are left untouched, including their load.
        Returns the newly recorded ids.
        """
        entries = list(entries)
        if not entries:
            return []
        inserted = self.db.insert_activities(
            (e.activity_id, e.date, e.training_load) for e in entries
        )
        if len(inserted) < len(entries):
            logger.debug(
                "Ledger commit skipped %d already counted activities",
                len(entries) - len(inserted),
            )
        return inserted

    def daily_loads(self, start: date, end: date) -> Dict[date, float]:
        return self.db.get_daily_loads(start, end)

    def counted_ids(self) -> Set[str]:
        return {row["activity_id"] for row in self.db.get_activity_rows()}

    def entries(self) -> List[LedgerEntry]:
        return [
            LedgerEntry(
                activity_id=row["activity_id"],
                date=date.fromisoformat(row["date"]) if row["date"] else None,
                training_load=row["training_load"],
            )
            for row in self.db.get_activity_rows()
        ]
