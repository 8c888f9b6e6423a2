"""SQLite database for the activity ledger and recovery score history."""

import json
import sqlite3
from contextlib import contextmanager
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from ..exceptions import StorageError
from ..models import RecoveryScore, TimeOfDay


class Database:
    """SQLite database manager for ledger entries and score snapshots."""

    def __init__(self, db_path: str = "recovery.db", timeout: float = 30.0):
        self.db_path = Path(db_path)
        self.timeout = timeout
        self._init_db()

    def _init_db(self):
        """Initialize database tables."""
        with self._get_connection() as conn:
            conn.executescript("""
                -- Workouts already folded into training load
                CREATE TABLE IF NOT EXISTS counted_activities (
                    activity_id TEXT PRIMARY KEY,
                    date TEXT,
                    training_load REAL NOT NULL DEFAULT 0,
                    recorded_at TEXT NOT NULL
                );

                -- Recovery score snapshots
                CREATE TABLE IF NOT EXISTS recovery_scores (
                    date TEXT NOT NULL,
                    time_of_day TEXT NOT NULL,
                    slot INTEGER NOT NULL,
                    overall_score INTEGER NOT NULL,
                    overall_value REAL NOT NULL,
                    heart_rate_score INTEGER,
                    hrv_score INTEGER,
                    sleep_score INTEGER,
                    training_load_score INTEGER,
                    stress_score INTEGER,
                    cooldown_adjustment INTEGER NOT NULL DEFAULT 100,
                    applied_weights TEXT,
                    recorded_at TEXT NOT NULL,
                    PRIMARY KEY (date, time_of_day)
                );

                CREATE INDEX IF NOT EXISTS idx_counted_date ON counted_activities(date);
                CREATE INDEX IF NOT EXISTS idx_scores_date ON recovery_scores(date, slot);
            """)

    def _connect(self, **kwargs) -> sqlite3.Connection:
        try:
            return sqlite3.connect(self.db_path, timeout=self.timeout, **kwargs)
        except sqlite3.Error as e:
            raise StorageError(str(e), operation="connect") from e

    @contextmanager
    def _get_connection(self):
        """Get database connection with context manager."""
        conn = self._connect()
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise StorageError(str(e), operation="query") from e
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    @contextmanager
    def _write_transaction(self):
        """Connection holding the database write lock until commit."""
        conn = self._connect(isolation_level=None)
        conn.row_factory = sqlite3.Row
        try:
            conn.execute("BEGIN IMMEDIATE")
        except sqlite3.Error as e:
            conn.close()
            raise StorageError(str(e), operation="begin") from e
        try:
            yield conn
            conn.execute("COMMIT")
        except sqlite3.Error as e:
            conn.execute("ROLLBACK")
            raise StorageError(str(e), operation="write") from e
        except Exception:
            conn.execute("ROLLBACK")
            raise
        finally:
            conn.close()

    # =========================================================================
    # Activity ledger
    # =========================================================================

    def has_activity(self, activity_id: str) -> bool:
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT 1 FROM counted_activities WHERE activity_id = ?", (activity_id,)
            ).fetchone()
            return row is not None

    def insert_activities(self, rows: Iterable[tuple]) -> List[str]:
        """
        Insert (activity_id, date, training_load) rows in one transaction.

        Returns the ids that were not already present.
        """
        recorded_at = datetime.now(timezone.utc).isoformat()
        inserted = []
        with self._write_transaction() as conn:
            for activity_id, day, training_load in rows:
                cursor = conn.execute("""
                    INSERT OR IGNORE INTO counted_activities
                    (activity_id, date, training_load, recorded_at)
                    VALUES (?, ?, ?, ?)
                """, (
                    activity_id,
                    day.isoformat() if day else None,
                    training_load,
                    recorded_at,
                ))
                if cursor.rowcount == 1:
                    inserted.append(activity_id)
        return inserted

    def get_daily_loads(self, start: date, end: date) -> Dict[date, float]:
        """Sum of counted training load per day in [start, end]."""
        with self._get_connection() as conn:
            rows = conn.execute("""
                SELECT date, SUM(training_load) as load
                FROM counted_activities
                WHERE date >= ? AND date <= ?
                GROUP BY date
                ORDER BY date
            """, (start.isoformat(), end.isoformat())).fetchall()
            return {date.fromisoformat(row["date"]): row["load"] for row in rows}

    def get_activity_rows(self) -> List[sqlite3.Row]:
        with self._get_connection() as conn:
            return conn.execute("""
                SELECT activity_id, date, training_load, recorded_at
                FROM counted_activities
                ORDER BY date, activity_id
            """).fetchall()

    # =========================================================================
    # Recovery score history
    # =========================================================================

    def save_score(self, score: RecoveryScore) -> None:
        """Save a snapshot, replacing any snapshot for the same date and time of day."""
        with self._get_connection() as conn:
            conn.execute("""
                INSERT OR REPLACE INTO recovery_scores
                (date, time_of_day, slot, overall_score, overall_value,
                 heart_rate_score, hrv_score, sleep_score, training_load_score,
                 stress_score, cooldown_adjustment, applied_weights, recorded_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """, (
                score.date.isoformat(),
                score.time_of_day.value,
                score.time_of_day.ordinal,
                score.overall_score,
                score.overall_value,
                score.heart_rate_score,
                score.hrv_score,
                score.sleep_score,
                score.training_load_score,
                score.stress_score,
                score.cooldown_adjustment,
                json.dumps(score.applied_weights, sort_keys=True),
                datetime.now(timezone.utc).isoformat(),
            ))

    def get_scores(
        self,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> List[RecoveryScore]:
        """Snapshots ordered by date, then time of day."""
        query = "SELECT * FROM recovery_scores WHERE 1 = 1"
        params: list = []
        if start:
            query += " AND date >= ?"
            params.append(start.isoformat())
        if end:
            query += " AND date <= ?"
            params.append(end.isoformat())
        query += " ORDER BY date, slot"

        with self._get_connection() as conn:
            rows = conn.execute(query, params).fetchall()
            return [self._row_to_score(row) for row in rows]

    def get_latest_score(self) -> Optional[RecoveryScore]:
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT * FROM recovery_scores ORDER BY date DESC, slot DESC LIMIT 1"
            ).fetchone()
            return self._row_to_score(row) if row else None

    @staticmethod
    def _row_to_score(row: sqlite3.Row) -> RecoveryScore:
        return RecoveryScore(
            date=date.fromisoformat(row["date"]),
            time_of_day=TimeOfDay(row["time_of_day"]),
            overall_score=row["overall_score"],
            overall_value=row["overall_value"],
            heart_rate_score=row["heart_rate_score"],
            hrv_score=row["hrv_score"],
            sleep_score=row["sleep_score"],
            training_load_score=row["training_load_score"],
            stress_score=row["stress_score"],
            applied_weights=json.loads(row["applied_weights"]) if row["applied_weights"] else {},
            cooldown_adjustment=row["cooldown_adjustment"],
        )

    def get_stats(self) -> dict:
        """Get database statistics."""
        with self._get_connection() as conn:
            activity_count = conn.execute(
                "SELECT COUNT(*) as cnt FROM counted_activities"
            ).fetchone()["cnt"]
            score_count = conn.execute(
                "SELECT COUNT(*) as cnt FROM recovery_scores"
            ).fetchone()["cnt"]
            date_range = conn.execute("""
                SELECT MIN(date) as min_date, MAX(date) as max_date
                FROM recovery_scores
            """).fetchone()

            return {
                "counted_activities": activity_count,
                "score_snapshots": score_count,
                "earliest_date": date_range["min_date"],
                "latest_date": date_range["max_date"],
                "db_path": str(self.db_path),
            }
