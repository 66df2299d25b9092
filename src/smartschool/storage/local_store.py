"""LocalStore — namespaced key-value persistence with a capacity limit.

Behaves like browser local storage: string keys, string values, and a
finite quota (``Config.LOCAL_STORE_QUOTA_BYTES``). Usage is measured the
way browsers account for it: two bytes per UTF-16 code unit of key plus
value. A write that would exceed the quota raises ``StorageQuotaError`` and
leaves the previous value in place.
"""

import sqlite3

from smartschool.config import Config
from smartschool.database.connection import DatabaseConnection
from smartschool.database.schema import initialize_database


class StorageError(Exception):
    """Base exception for local store operations."""


class StorageQuotaError(StorageError):
    """The write would exceed the local store capacity."""


def entry_size(key: str, value: str) -> int:
    """Bytes an entry occupies encoded as UTF-16; characters outside the BMP take four."""
    return len(key.encode("utf-16-le")) + len(value.encode("utf-16-le"))


class LocalStore:
    """Key-value store backed by a single SQLite table."""

    def __init__(self, db_connection: DatabaseConnection,
                 quota_bytes: int | None = None):
        self.db = db_connection
        self.quota_bytes = (
            Config.LOCAL_STORE_QUOTA_BYTES if quota_bytes is None
            else quota_bytes
        )
        initialize_database(self.db)

    @classmethod
    def from_config(cls) -> "LocalStore":
        return cls(DatabaseConnection(Config.LOCAL_STORE_PATH))

    def get(self, key: str) -> str | None:
        rows = self.db.execute(
            "SELECT value FROM local_storage WHERE key = ?", (key,)
        )
        return rows[0]["value"] if rows else None

    def set(self, key: str, value: str):
        """Store ``value`` under ``key``; raises StorageQuotaError when full."""
        try:
            self._write(key, value)
        except sqlite3.Error as e:
            raise StorageError(f"Could not write {key!r}: {e}") from e

    def _write(self, key: str, value: str):
        with self.db.get_connection() as conn:
            others = conn.execute(
                "SELECT key, value FROM local_storage WHERE key != ?", (key,)
            ).fetchall()
            current = sum(entry_size(r["key"], r["value"]) for r in others)
            needed = current + entry_size(key, value)
            if needed > self.quota_bytes:
                raise StorageQuotaError(
                    f"Writing {key!r} needs {needed} bytes; "
                    f"quota is {self.quota_bytes}"
                )
            conn.execute(
                "INSERT INTO local_storage (key, value, updated_at) "
                "VALUES (?, ?, CURRENT_TIMESTAMP) "
                "ON CONFLICT(key) DO UPDATE SET value = excluded.value, "
                "updated_at = CURRENT_TIMESTAMP",
                (key, value),
            )

    def remove(self, key: str):
        self.db.execute("DELETE FROM local_storage WHERE key = ?", (key,))

    def keys(self) -> list[str]:
        rows = self.db.execute("SELECT key FROM local_storage ORDER BY key")
        return [row["key"] for row in rows]

    def clear(self):
        self.db.execute("DELETE FROM local_storage")

    def usage_bytes(self) -> int:
        """Total bytes used across every key."""
        rows = self.db.execute("SELECT key, value FROM local_storage")
        return sum(entry_size(row["key"], row["value"]) for row in rows)

    def usage_megabytes(self) -> float:
        return round(self.usage_bytes() / 1024 / 1024, 2)
