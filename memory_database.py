"""
Memory Database for PocketCalc
Persists the ordered list of memory slots in SQLite

Every public method holds one lock for its whole duration, so at most one
operation touches the connection at a time. The connection and table are
created lazily by the first call.
"""
import logging
import sqlite3
import threading
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import List, Optional

import config

logger = logging.getLogger("pocketcalc.memory_database")

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S.%f"


@dataclass
class MemorySlot:
    value: float
    order: int = 0
    id: Optional[int] = None
    created_at: datetime = field(default_factory=datetime.now)


class MemoryDatabase:
    def __init__(self, db_path=None, **connect_kwargs):
        self.db_path = db_path or config.DB_PATH
        self._connect_kwargs = connect_kwargs
        self._connection = None
        self._lock = threading.Lock()

    def _get_connection_locked(self):
        """Open the connection and create the table on first use; caller holds the lock"""
        if self._connection is not None:
            return self._connection

        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        connection = sqlite3.connect(self.db_path, check_same_thread=False, **self._connect_kwargs)
        connection.row_factory = sqlite3.Row
        try:
            with connection:
                connection.execute('''
                    CREATE TABLE IF NOT EXISTS memory_items (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        value REAL NOT NULL,
                        "order" INTEGER NOT NULL DEFAULT 0,
                        created_at TEXT NOT NULL
                    )
                ''')
        except sqlite3.Error:
            connection.close()
            raise
        logger.debug("Opened memory database at %s", self.db_path)
        self._connection = connection
        return connection

    @staticmethod
    def _row_to_slot(row):
        return MemorySlot(
            id=row["id"],
            value=row["value"],
            order=row["order"],
            created_at=datetime.strptime(row["created_at"], TIMESTAMP_FORMAT),
        )

    def get_all(self) -> List[MemorySlot]:
        """Get all memory slots ordered by position (0 = top)"""
        with self._lock:
            conn = self._get_connection_locked()
            rows = conn.execute('SELECT * FROM memory_items ORDER BY "order" ASC, id DESC').fetchall()
        return [self._row_to_slot(row) for row in rows]

    def get_by_id(self, slot_id) -> Optional[MemorySlot]:
        """Get one slot, or None when it does not exist"""
        with self._lock:
            conn = self._get_connection_locked()
            row = conn.execute('SELECT * FROM memory_items WHERE id = ?', (slot_id,)).fetchone()
        return self._row_to_slot(row) if row else None

    def increment_order_for_all(self) -> int:
        """Shift every slot down one position to make room at order 0"""
        with self._lock:
            conn = self._get_connection_locked()
            with conn:
                cursor = conn.execute('UPDATE memory_items SET "order" = "order" + 1')
            return cursor.rowcount

    def insert(self, slot) -> int:
        """Insert a new slot and assign its id"""
        with self._lock:
            conn = self._get_connection_locked()
            with conn:
                cursor = conn.execute(
                    'INSERT INTO memory_items (value, "order", created_at) VALUES (?, ?, ?)',
                    (slot.value, slot.order, slot.created_at.strftime(TIMESTAMP_FORMAT)),
                )
            slot.id = cursor.lastrowid
            return cursor.rowcount

    def update(self, slot) -> int:
        """Write value and order of an existing slot"""
        with self._lock:
            conn = self._get_connection_locked()
            with conn:
                cursor = conn.execute(
                    'UPDATE memory_items SET value = ?, "order" = ? WHERE id = ?',
                    (slot.value, slot.order, slot.id),
                )
            return cursor.rowcount

    def delete(self, slot) -> int:
        with self._lock:
            conn = self._get_connection_locked()
            with conn:
                cursor = conn.execute('DELETE FROM memory_items WHERE id = ?', (slot.id,))
            return cursor.rowcount

    def delete_all(self) -> int:
        with self._lock:
            conn = self._get_connection_locked()
            with conn:
                count = conn.execute('SELECT COUNT(*) FROM memory_items').fetchone()[0]
                conn.execute('DELETE FROM memory_items')
            return count

    def close(self):
        """Close the connection; the next call reopens it"""
        with self._lock:
            if self._connection is not None:
                self._connection.close()
                self._connection = None
