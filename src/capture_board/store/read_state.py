"""SQLite store for notification read receipts, with an explicit expiry rule."""

import sqlite3
from datetime import date, datetime, timezone
from enum import Enum
from pathlib import Path


class ReadExpiry(str, Enum):
    """
    How long "read" lasts.
    calendar_day: a receipt only hides the notification on the day it was written,
    so still-pending items come back the next morning.
    never: once read, always read.
    """

    CALENDAR_DAY = "calendar_day"
    NEVER = "never"


class ReadStateStore:
    """Session-scoped read receipts keyed by (notification_id, day)."""

    def __init__(
        self,
        db_path: str | Path = "capture_board.db",
        *,
        expiry: ReadExpiry = ReadExpiry.CALENDAR_DAY,
    ):
        self._db_path = Path(db_path)
        self.expiry = expiry
        self._ensure_schema()

    def _connection(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _ensure_schema(self) -> None:
        schema_path = Path(__file__).parent / "schema.sql"
        with self._connection() as conn:
            conn.executescript(schema_path.read_text())

    def mark_read(self, notification_id: str, on: date) -> None:
        """Record that a notification was dismissed on the given day."""
        now = datetime.now(timezone.utc).isoformat()
        with self._connection() as conn:
            conn.execute(
                """
                INSERT OR REPLACE INTO read_receipts (notification_id, read_on, read_at)
                VALUES (?, ?, ?)
                """,
                (notification_id, on.isoformat(), now),
            )
            conn.commit()

    def is_read(self, notification_id: str, on: date) -> bool:
        """Whether the notification counts as read on the given day."""
        with self._connection() as conn:
            if self.expiry is ReadExpiry.CALENDAR_DAY:
                row = conn.execute(
                    "SELECT 1 FROM read_receipts WHERE notification_id = ? AND read_on = ?",
                    (notification_id, on.isoformat()),
                ).fetchone()
            else:
                row = conn.execute(
                    "SELECT 1 FROM read_receipts WHERE notification_id = ?",
                    (notification_id,),
                ).fetchone()
        return row is not None

    def read_ids(self, on: date) -> set[str]:
        """All notification ids read on the given day (or ever, with expiry=never)."""
        with self._connection() as conn:
            if self.expiry is ReadExpiry.CALENDAR_DAY:
                rows = conn.execute(
                    "SELECT notification_id FROM read_receipts WHERE read_on = ?",
                    (on.isoformat(),),
                ).fetchall()
            else:
                rows = conn.execute("SELECT notification_id FROM read_receipts").fetchall()
        return {r["notification_id"] for r in rows}

    def purge_before(self, day: date) -> int:
        """Delete receipts written before a day. Returns rows removed."""
        with self._connection() as conn:
            cursor = conn.execute(
                "DELETE FROM read_receipts WHERE read_on < ?", (day.isoformat(),)
            )
            conn.commit()
            return cursor.rowcount
