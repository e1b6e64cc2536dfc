"""Versioned JSON export and import of review state."""
import json
from datetime import datetime
from pathlib import Path

from loguru import logger

from shortcut_tutor.errors import SchemaVersionError
from shortcut_tutor.models import HistoryEntry, Rating, ReviewItem, as_utc
from shortcut_tutor.store import extends_history

SCHEMA_VERSION = 1


def _parse_timestamp(value: str) -> datetime:
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return as_utc(datetime.fromisoformat(value))


def item_to_dict(item: ReviewItem) -> dict:
    return {
        "strength": item.strength,
        "interval": item.interval,
        "next_due_at": item.next_due_at.isoformat(),
        "history": [
            {"timestamp": h.timestamp.isoformat(), "rating": h.rating.value}
            for h in item.history
        ],
    }


def item_from_dict(item_id: str, data: dict) -> ReviewItem:
    return ReviewItem(
        item_id=item_id,
        strength=float(data["strength"]),
        interval=int(data["interval"]),
        next_due_at=_parse_timestamp(data["next_due_at"]),
        history=tuple(
            HistoryEntry(timestamp=_parse_timestamp(h["timestamp"]), rating=Rating.parse(h["rating"]))
            for h in data.get("history", [])
        ),
    )


def migrate_legacy(data: dict) -> dict:
    """Convert the unversioned ``{"shortcuts": [...]}`` layout to version 1."""
    items = {}
    for s in data["shortcuts"]:
        items[s["shortcutId"]] = {
            "strength": s["easeFactor"],
            "interval": s["interval"],
            "next_due_at": s["nextReviewDate"],
            "history": [
                {"timestamp": h["date"], "rating": h["performance"]}
                for h in s.get("reviewHistory", [])
            ],
        }
    return {"schema_version": SCHEMA_VERSION, "items": items}


def dump_state(store) -> dict:
    items = sorted(store.all(), key=lambda item: item.item_id)
    return {
        "schema_version": SCHEMA_VERSION,
        "items": {item.item_id: item_to_dict(item) for item in items},
    }


def load_state(data: dict) -> list[ReviewItem]:
    """Parse persisted state of any supported version into review items."""
    if "schema_version" not in data and "shortcuts" in data:
        data = migrate_legacy(data)
    version = data.get("schema_version")
    if version != SCHEMA_VERSION:
        raise SchemaVersionError(f"Unsupported schema version: {version!r}")
    return [item_from_dict(item_id, d) for item_id, d in data["items"].items()]


def export_state(store, file_path: str) -> int:
    """Write the store to ``file_path`` as JSON. Returns the number of items written."""
    data = dump_state(store)
    path = Path(file_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2))
    return len(data["items"])


def import_state(store, file_path: str) -> dict:
    """Load items from a JSON export into the store.

    An item is only written when its history in the file extends the stored
    history with newer reviews; stored progress is never rolled back.
    Items whose history disagrees with the stored one are counted as
    conflicts and left untouched.
    """
    items = load_state(json.loads(Path(file_path).read_text()))
    imported = 0
    skipped = 0
    conflicts = 0
    for item in items:
        existing = store.get(item.item_id)
        if existing is not None:
            if extends_history(item.history, existing.history):
                if existing != item:
                    logger.warning(f"Keeping stored progress for {item.item_id}; import is not newer")
                skipped += 1
                continue
            if not extends_history(existing.history, item.history):
                logger.warning(
                    f"Keeping stored progress for {item.item_id}; "
                    f"imported history does not match the stored reviews"
                )
                conflicts += 1
                continue
        store.upsert(item)
        imported += 1
    return {
        "filename": Path(file_path).name,
        "imported": imported,
        "skipped": skipped,
        "conflicts": conflicts,
    }
