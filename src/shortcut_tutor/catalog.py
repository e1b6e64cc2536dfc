"""Shortcut catalog: the registry of learnable shortcuts and their metadata."""
import json
from pathlib import Path

from shortcut_tutor.db import DEFAULT_DB_PATH, connect
from shortcut_tutor.models import Shortcut

CONTENT_DIR = Path(__file__).parent / "content"

CATEGORIES = ("navigation", "editing", "search", "file", "command", "debugging")
DIFFICULTIES = ("beginner", "intermediate", "advanced")


def is_seeded(db_path: str) -> bool:
    """Check whether the catalog already holds shortcuts."""
    with connect(db_path) as conn:
        count = conn.execute("SELECT COUNT(*) FROM shortcuts").fetchone()[0]
    return count > 0


def load_shortcuts(path: Path = CONTENT_DIR / "shortcuts.json") -> list[Shortcut]:
    data = json.loads(Path(path).read_text())
    return [
        Shortcut(
            id=s["id"],
            name=s["name"],
            keys=s["keys"],
            category=s["category"],
            difficulty=s.get("difficulty", "beginner"),
        )
        for s in data["shortcuts"]
    ]


def seed_shortcuts(db_path: str, path: Path = CONTENT_DIR / "shortcuts.json") -> int:
    """Insert shortcuts from the bundled JSON. Already-present ids are skipped."""
    shortcuts = load_shortcuts(path)
    added = 0
    with connect(db_path) as conn:
        for s in shortcuts:
            cur = conn.execute(
                "INSERT OR IGNORE INTO shortcuts (id, name, keys, category, difficulty) VALUES (?, ?, ?, ?, ?)",
                (s.id, s.name, s.keys, s.category, s.difficulty),
            )
            added += cur.rowcount
        conn.commit()
    return added


class ShortcutCatalog:
    """Read access to the shortcuts table."""

    def __init__(self, db_path: str = DEFAULT_DB_PATH):
        self.db_path = db_path

    def get(self, shortcut_id: str) -> Shortcut | None:
        with connect(self.db_path) as conn:
            row = conn.execute("SELECT * FROM shortcuts WHERE id = ?", (shortcut_id,)).fetchone()
        return Shortcut(**dict(row)) if row else None

    def all(self) -> list[Shortcut]:
        with connect(self.db_path) as conn:
            rows = conn.execute("SELECT * FROM shortcuts ORDER BY category, id").fetchall()
        return [Shortcut(**dict(r)) for r in rows]

    def ids(self) -> set[str]:
        return {s.id for s in self.all()}

    def matches(self, shortcut_id: str, categories=(), difficulties=()) -> bool:
        """True if the shortcut passes the category and difficulty filters.

        Empty filters match everything; ids unknown to the catalog never
        match a non-empty filter.
        """
        if not categories and not difficulties:
            return True
        shortcut = self.get(shortcut_id)
        if shortcut is None:
            return False
        if categories and shortcut.category not in categories:
            return False
        if difficulties and shortcut.difficulty not in difficulties:
            return False
        return True
