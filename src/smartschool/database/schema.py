"""Local store schema definition and initialization."""

SCHEMA_VERSION = 1

_SCHEMA_STATEMENTS = [
    # One row per namespaced key, value kept as serialized text
    """CREATE TABLE IF NOT EXISTS local_storage (
        key TEXT PRIMARY KEY,
        value TEXT NOT NULL,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )""",

    """CREATE TABLE IF NOT EXISTS schema_version (
        version INTEGER PRIMARY KEY,
        applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )""",

    f"INSERT OR IGNORE INTO schema_version (version) VALUES ({SCHEMA_VERSION})",
]


def get_schema_version(conn) -> int:
    """Return the applied schema version, or 0 on a fresh file."""
    try:
        row = conn.execute(
            "SELECT MAX(version) AS v FROM schema_version"
        ).fetchone()
        return row["v"] or 0
    except Exception:
        return 0


def initialize_database(db_connection):
    """Create the key-value table on a fresh local store file."""
    with db_connection.get_connection() as conn:
        if get_schema_version(conn) < SCHEMA_VERSION:
            for stmt in _SCHEMA_STATEMENTS:
                conn.execute(stmt)
