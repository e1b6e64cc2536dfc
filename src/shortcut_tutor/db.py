"""Database initialization and connection management."""
import sqlite3
from contextlib import contextmanager
from pathlib import Path

from shortcut_tutor.errors import StorageUnavailableError

DEFAULT_DB_PATH = str(Path.home() / ".shortcut_tutor" / "tutor.db")

SCHEMA = """
CREATE TABLE IF NOT EXISTS shortcuts (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    keys TEXT NOT NULL,
    category TEXT NOT NULL,
    difficulty TEXT DEFAULT 'beginner'
);

CREATE TABLE IF NOT EXISTS review_items (
    item_id TEXT PRIMARY KEY,
    strength REAL NOT NULL DEFAULT 2.5,
    interval INTEGER NOT NULL DEFAULT 0,
    next_due_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS review_history (
    item_id TEXT NOT NULL REFERENCES review_items(item_id),
    seq INTEGER NOT NULL,
    reviewed_at TEXT NOT NULL,
    rating TEXT NOT NULL,
    PRIMARY KEY (item_id, seq)
);

CREATE INDEX IF NOT EXISTS idx_review_items_due ON review_items(next_due_at);

CREATE TABLE IF NOT EXISTS user_settings (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    key TEXT NOT NULL UNIQUE,
    value TEXT
);
"""


def get_connection(db_path: str = DEFAULT_DB_PATH) -> sqlite3.Connection:
    """Return a SQLite connection with row factory and foreign keys enabled."""
    try:
        conn = sqlite3.connect(db_path)
    except sqlite3.Error as e:
        raise StorageUnavailableError(f"Cannot open database {db_path}: {e}") from e
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


@contextmanager
def connect(db_path: str = DEFAULT_DB_PATH):
    """Connection context that closes on exit and reports sqlite errors as StorageUnavailableError."""
    conn = get_connection(db_path)
    try:
        yield conn
    except sqlite3.Error as e:
        conn.rollback()
        raise StorageUnavailableError(f"Database {db_path} failed: {e}") from e
    finally:
        conn.close()


def init_db(db_path: str = DEFAULT_DB_PATH) -> None:
    """Initialize the database, creating all tables if they don't exist."""
    try:
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        conn = get_connection(db_path)
        conn.executescript(SCHEMA)
        conn.commit()
        conn.close()
    except (sqlite3.Error, OSError) as e:
        raise StorageUnavailableError(f"Cannot initialize database {db_path}: {e}") from e
