import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Optional

from .schema import SCHEMA_SQL, INDEXES_SQL, SCHEMA_VERSION

logger = logging.getLogger(__name__)

CONFIG_DIR = Path.home() / ".wordcoach"
DB_PATH = CONFIG_DIR / "wordcoach.db"


def init_db(db_path: Optional[Path] = None) -> None:
    """Initialize the database by creating tables and indexes if they don't exist."""
    path = Path(db_path or DB_PATH)
    path.parent.mkdir(parents=True, exist_ok=True)
    with get_conn(path) as conn:
        conn.executescript(SCHEMA_SQL)
        ensure_card_native_key(conn)
        conn.executescript(INDEXES_SQL)
        ensure_schema_version(conn)
        conn.commit()
    logger.info("Card store ready at %s (schema v%s)", path, SCHEMA_VERSION)


def word_key(native_text: str) -> str:
    """Native words match regardless of case: "Haus" and "haus" are one word."""
    return native_text.strip().casefold()


def ensure_card_native_key(conn: sqlite3.Connection) -> None:
    """Add and backfill cards.native_key for stores created before schema v2."""
    cursor = conn.cursor()
    cursor.execute("PRAGMA table_info(cards)")
    columns = {row[1] for row in cursor.fetchall()}
    if "native_key" in columns:
        return
    cursor.execute("DROP INDEX IF EXISTS idx_cards_word_pair")
    cursor.execute("ALTER TABLE cards ADD COLUMN native_key TEXT NOT NULL DEFAULT ''")
    cursor.execute("SELECT id, native_text FROM cards")
    rows = cursor.fetchall()
    cursor.executemany(
        "UPDATE cards SET native_key = ? WHERE id = ?",
        [(word_key(row["native_text"]), row["id"]) for row in rows],
    )
    logger.info("Backfilled native_key on %d card(s)", len(rows))


def get_schema_version(conn: sqlite3.Connection) -> int:
    """Read the SQLite schema version from PRAGMA user_version."""
    cursor = conn.cursor()
    cursor.execute("PRAGMA user_version")
    row = cursor.fetchone()
    return int(row[0]) if row else 0


def set_schema_version(conn: sqlite3.Connection, version: int) -> None:
    """Set the SQLite schema version via PRAGMA user_version."""
    conn.execute(f"PRAGMA user_version = {int(version)}")


def ensure_schema_version(conn: sqlite3.Connection) -> None:
    """Ensure the current schema version is written to the database."""
    current = get_schema_version(conn)
    if current != SCHEMA_VERSION:
        set_schema_version(conn, SCHEMA_VERSION)


@contextmanager
def get_conn(db_path: Optional[Path] = None):
    """Context manager for SQLite connection, using row_factory for dict-like rows."""
    conn = sqlite3.connect(db_path or DB_PATH, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    try:
        yield conn
    finally:
        conn.close()
