"""SQLite schema management (code-first approach)."""

import logging

from src.core.db_client import get_connection


logger = logging.getLogger(__name__)


_NOW = "(strftime('%Y-%m-%dT%H:%M:%fZ', 'now'))"

_CATEGORY_CHECK = (
    "CHECK (category IN ('Ortofrutta', 'Latticini', 'Carne & Pesce', 'Dispensa', 'Surgelati', 'Casa', 'Altro'))"
)

# Collections in dependency order
COLLECTIONS = [
    "users",
    "pantry_items",
    "shopping_items",
]

# Column stamped by the store when a row is inserted, per collection
TIMESTAMP_COLUMNS: dict[str, str] = {
    "users": "created_at",
    "pantry_items": "added_at",
    "shopping_items": "created_at",
}

_TABLES: dict[str, str] = {
    "users": f"""
        CREATE TABLE IF NOT EXISTS users (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            email TEXT NOT NULL UNIQUE COLLATE NOCASE,
            password_hash TEXT NOT NULL,
            created_at TEXT NOT NULL DEFAULT {_NOW}
        )
    """,
    "pantry_items": f"""
        CREATE TABLE IF NOT EXISTS pantry_items (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            name TEXT NOT NULL CHECK (length(name) > 0),
            quantity REAL NOT NULL DEFAULT 0 CHECK (quantity >= 0),
            unit TEXT NOT NULL CHECK (unit IN ('pz', 'kg', 'g', 'l', 'ml')),
            expiry_date TEXT,
            category TEXT NOT NULL {_CATEGORY_CHECK},
            added_at TEXT NOT NULL DEFAULT {_NOW}
        )
    """,
    "shopping_items": f"""
        CREATE TABLE IF NOT EXISTS shopping_items (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            name TEXT NOT NULL CHECK (length(name) > 0),
            category TEXT NOT NULL {_CATEGORY_CHECK},
            is_checked INTEGER NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL DEFAULT {_NOW}
        )
    """,
}

_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_pantry_owner ON pantry_items (user_id, added_at)",
    "CREATE INDEX IF NOT EXISTS idx_shopping_owner ON shopping_items (user_id, created_at)",
]


async def init_db(*, db_path: str | None = None) -> None:
    """Create every table and index if missing (idempotent)."""
    logger.info("Starting SQLite schema sync...")

    conn = await get_connection(db_path=db_path)
    for collection_name in COLLECTIONS:
        await conn.execute(_TABLES[collection_name])
    for index in _INDEXES:
        await conn.execute(index)
    await conn.commit()

    logger.info("SQLite schema sync complete", extra={"collections": COLLECTIONS})
