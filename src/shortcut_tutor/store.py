"""Review item storage: one scheduling record per shortcut."""
import sqlite3
from datetime import datetime

from loguru import logger

from shortcut_tutor.db import DEFAULT_DB_PATH, connect
from shortcut_tutor.models import INITIAL_STRENGTH, HistoryEntry, Rating, ReviewItem, as_utc


def new_item(item_id: str, now: datetime = None) -> ReviewItem:
    """A never-reviewed item, due immediately."""
    return ReviewItem(
        item_id=item_id,
        strength=INITIAL_STRENGTH,
        interval=0,
        next_due_at=as_utc(now),
        history=(),
    )


def extends_history(stored, history) -> bool:
    """True when ``history`` keeps every entry of ``stored``, in order, as its prefix."""
    stored = tuple(stored)
    return tuple(history[:len(stored)]) == stored


def _check_append_only(item: ReviewItem, stored_history) -> None:
    if not extends_history(stored_history, item.history):
        raise ValueError(
            f"History for {item.item_id} is append-only: the {len(stored_history)} "
            f"stored entries must be an unchanged prefix of the {len(item.history)} given"
        )


class MemoryReviewStore:
    """Dict-backed store, for tests and throwaway sessions."""

    def __init__(self, items=()):
        self._items = {}
        for item in items:
            self.upsert(item)

    def get(self, item_id: str) -> ReviewItem | None:
        return self._items.get(item_id)

    def upsert(self, item: ReviewItem) -> None:
        existing = self._items.get(item.item_id)
        if existing is not None:
            _check_append_only(item, existing.history)
        self._items[item.item_id] = item

    def all(self) -> list[ReviewItem]:
        return list(self._items.values())

    def bulk_initialize(self, item_ids, now: datetime = None) -> int:
        now = as_utc(now)
        created = 0
        for item_id in item_ids:
            if item_id not in self._items:
                self._items[item_id] = new_item(item_id, now)
                created += 1
        return created

    def update(self, item_id: str, func) -> ReviewItem | None:
        item = self._items.get(item_id)
        if item is None:
            return None
        updated = func(item)
        self.upsert(updated)
        return updated

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, item_id) -> bool:
        return item_id in self._items


class SqliteReviewStore:
    """SQLite-backed store using the review_items and review_history tables."""

    def __init__(self, db_path: str = DEFAULT_DB_PATH):
        self.db_path = db_path

    def _connect(self):
        return connect(self.db_path)

    def _read_history(self, conn: sqlite3.Connection, item_id: str) -> list:
        return conn.execute(
            "SELECT reviewed_at, rating FROM review_history WHERE item_id = ? ORDER BY seq",
            (item_id,),
        ).fetchall()

    def _read(self, conn: sqlite3.Connection, item_id: str) -> ReviewItem | None:
        row = conn.execute("SELECT * FROM review_items WHERE item_id = ?", (item_id,)).fetchone()
        if row is None:
            return None
        return _row_to_item(row, self._read_history(conn, item_id))

    def _write(self, conn: sqlite3.Connection, item: ReviewItem) -> None:
        """Write ``item`` inside the caller's transaction, appending only new history."""
        stored = _rows_to_history(self._read_history(conn, item.item_id))
        _check_append_only(item, stored)
        conn.execute(
            """INSERT INTO review_items (item_id, strength, interval, next_due_at)
            VALUES (?, ?, ?, ?)
            ON CONFLICT(item_id) DO UPDATE SET
                strength=excluded.strength,
                interval=excluded.interval,
                next_due_at=excluded.next_due_at""",
            (item.item_id, item.strength, item.interval, item.next_due_at.isoformat()),
        )
        conn.executemany(
            "INSERT INTO review_history (item_id, seq, reviewed_at, rating) VALUES (?, ?, ?, ?)",
            [
                (item.item_id, seq, entry.timestamp.isoformat(), entry.rating.value)
                for seq, entry in enumerate(item.history[len(stored):], start=len(stored))
            ],
        )

    def get(self, item_id: str) -> ReviewItem | None:
        with self._connect() as conn:
            return self._read(conn, item_id)

    def upsert(self, item: ReviewItem) -> None:
        with self._connect() as conn:
            conn.execute("BEGIN IMMEDIATE")
            try:
                self._write(conn, item)
            except ValueError:
                conn.rollback()
                raise
            conn.commit()

    def all(self) -> list[ReviewItem]:
        with self._connect() as conn:
            rows = conn.execute("SELECT * FROM review_items").fetchall()
            history = {}
            for h in conn.execute(
                "SELECT item_id, reviewed_at, rating FROM review_history ORDER BY item_id, seq"
            ):
                history.setdefault(h["item_id"], []).append(h)
        return [_row_to_item(row, history.get(row["item_id"], [])) for row in rows]

    def bulk_initialize(self, item_ids, now: datetime = None) -> int:
        """Create fresh records for ids not yet stored. Existing records are untouched."""
        due = as_utc(now).isoformat()
        created = 0
        with self._connect() as conn:
            for item_id in item_ids:
                cur = conn.execute(
                    """INSERT OR IGNORE INTO review_items (item_id, strength, interval, next_due_at)
                    VALUES (?, ?, 0, ?)""",
                    (item_id, INITIAL_STRENGTH, due),
                )
                created += cur.rowcount
            conn.commit()
        logger.debug(f"Initialized {created} new review items in {self.db_path}")
        return created

    def update(self, item_id: str, func) -> ReviewItem | None:
        """Atomically read one item, transform it with ``func`` and write it back."""
        with self._connect() as conn:
            conn.execute("BEGIN IMMEDIATE")
            item = self._read(conn, item_id)
            if item is None:
                conn.rollback()
                return None
            try:
                updated = func(item)
                self._write(conn, updated)
            except Exception:
                conn.rollback()
                raise
            conn.commit()
            return updated

    def __len__(self) -> int:
        with self._connect() as conn:
            return conn.execute("SELECT COUNT(*) FROM review_items").fetchone()[0]

    def __contains__(self, item_id) -> bool:
        with self._connect() as conn:
            row = conn.execute("SELECT 1 FROM review_items WHERE item_id = ?", (item_id,)).fetchone()
            return row is not None


def _rows_to_history(history_rows) -> tuple:
    return tuple(
        HistoryEntry(
            timestamp=datetime.fromisoformat(h["reviewed_at"]),
            rating=Rating(h["rating"]),
        )
        for h in history_rows
    )


def _row_to_item(row, history_rows) -> ReviewItem:
    return ReviewItem(
        item_id=row["item_id"],
        strength=row["strength"],
        interval=row["interval"],
        next_due_at=datetime.fromisoformat(row["next_due_at"]),
        history=_rows_to_history(history_rows),
    )
