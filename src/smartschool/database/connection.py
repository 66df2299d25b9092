"""SQLite connection management for the local persistent store."""

import sqlite3
from contextlib import contextmanager
from pathlib import Path


class DatabaseConnection:
    """Opens short-lived SQLite connections to the local store file.

    A fresh connection per call keeps the store usable from the sync
    worker thread as well as the event-loop thread.
    """

    BUSY_TIMEOUT_SECONDS = 5.0

    def __init__(self, db_path: str | Path):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    @contextmanager
    def get_connection(self):
        """Yield a connection that auto-commits or rolls back."""
        conn = sqlite3.connect(
            str(self.db_path), timeout=self.BUSY_TIMEOUT_SECONDS
        )
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def execute(self, sql: str, params: tuple = ()):
        """Run a single statement and return all rows."""
        with self.get_connection() as conn:
            cursor = conn.execute(sql, params)
            return cursor.fetchall()
