"""
Record storage.

RecordStore is the in-process, append-only record sequence. The
SnapshotRepository persists full copies of that sequence to an
append-only SQLite session log and restores the latest one.
"""

import json
import logging
import sqlite3
import threading
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Tuple

from .db import DEFAULT_DB_PATH, get_connection
from .models import BashRecord

logger = logging.getLogger(__name__)


class RecordStore:
    """Ordered, append-only sequence of command records.

    Writes are serialized with a lock. Readers take a snapshot, an
    immutable tuple, and never see a partially applied clear.
    """

    def __init__(self, records: Optional[Iterable[BashRecord]] = None):
        self._lock = threading.Lock()
        self._records: Tuple[BashRecord, ...] = tuple(records or ())

    def __len__(self) -> int:
        return len(self._records)

    def append(self, record: BashRecord) -> Tuple[BashRecord, ...]:
        """Append a record and return the resulting snapshot."""
        with self._lock:
            self._records = self._records + (record,)
            return self._records

    def replace(self, records: Iterable[BashRecord]) -> None:
        """Replace the whole sequence, e.g. when restoring a session."""
        with self._lock:
            self._records = tuple(records)

    def clear(self) -> int:
        """Empty the sequence atomically and return how many were dropped."""
        with self._lock:
            count = len(self._records)
            self._records = ()
            return count

    def snapshot(self) -> Tuple[BashRecord, ...]:
        """Immutable view of the records in arrival order."""
        return self._records


class SnapshotRepository:
    """Session log of full record-sequence snapshots.

    Every save appends one row holding the entire sequence; restoring
    reads the most recent row. Rows are never updated or deleted.
    """

    def __init__(self, db_path: str = DEFAULT_DB_PATH):
        """Initialize the repository with a database path.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = db_path

    def save_snapshot(self, records: Iterable[BashRecord]) -> None:
        """Persist the full record sequence as a new session log entry.

        Args:
            records: Complete record sequence to store
        """
        payload = json.dumps({"records": [r.to_dict() for r in records]})
        conn = get_connection(self.db_path)
        try:
            conn.execute(
                "INSERT INTO record_snapshot (saved_at, payload) VALUES (?, ?)",
                (datetime.now(timezone.utc).isoformat(), payload)
            )
            conn.commit()
        finally:
            conn.close()
        logger.debug("Saved snapshot to %s", self.db_path)

    def load_latest_snapshot(self) -> List[BashRecord]:
        """Return the last saved record sequence.

        Returns:
            Records of the newest snapshot, or an empty list if nothing
            was saved yet or the schema does not exist.
        """
        conn = get_connection(self.db_path)
        try:
            cursor = conn.execute(
                "SELECT payload FROM record_snapshot ORDER BY id DESC LIMIT 1"
            )
            row = cursor.fetchone()
        except sqlite3.OperationalError as e:
            if "no such table" in str(e).lower():
                return []
            raise
        finally:
            conn.close()

        if row is None:
            return []
        data = json.loads(row[0])
        records = [BashRecord.from_dict(item) for item in data.get("records", [])]
        logger.debug("Restored %d records from %s", len(records), self.db_path)
        return records

    def count_snapshots(self) -> int:
        """Number of snapshots in the session log."""
        conn = get_connection(self.db_path)
        try:
            return conn.execute("SELECT COUNT(*) FROM record_snapshot").fetchone()[0]
        finally:
            conn.close()


def get_repository(db_path: str = DEFAULT_DB_PATH) -> SnapshotRepository:
    """Get a snapshot repository for the given database path."""
    return SnapshotRepository(db_path)


def initialize_schema(db_path: str = DEFAULT_DB_PATH) -> None:
    """Create the record_snapshot table if it doesn't exist.

    Args:
        db_path: Path to SQLite database file
    """
    conn = get_connection(db_path)
    try:
        conn.execute("""
            CREATE TABLE IF NOT EXISTS record_snapshot (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                saved_at TEXT NOT NULL,
                payload TEXT NOT NULL
            )
        """)
        conn.commit()
    finally:
        conn.close()
