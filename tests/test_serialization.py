# tests/test_serialization.py
import json
from datetime import datetime, timedelta, timezone

import pytest

from shortcut_tutor.db import init_db
from shortcut_tutor.errors import InvalidRatingError, SchemaVersionError
from shortcut_tutor.models import MAX_DUE_AT, Rating
from shortcut_tutor.serialization import (
    SCHEMA_VERSION, dump_state, export_state, import_state, item_from_dict, item_to_dict, load_state,
    migrate_legacy,
)
from shortcut_tutor.sm2 import apply_review
from shortcut_tutor.store import MemoryReviewStore, SqliteReviewStore, new_item


def reviewed_store(now):
    store = MemoryReviewStore()
    store.bulk_initialize(["vscode.save", "vscode.copy"], now=now)
    store.update("vscode.save", lambda i: apply_review(i, Rating.GOOD, now=now))
    return store


def test_dump_state_shape(now):
    data = dump_state(reviewed_store(now))
    assert data["schema_version"] == SCHEMA_VERSION
    assert list(data["items"]) == ["vscode.copy", "vscode.save"]
    save = data["items"]["vscode.save"]
    assert save["interval"] == 1
    assert save["history"] == [{"timestamp": now.isoformat(), "rating": "good"}]


def test_export_then_import_into_empty_sqlite_store(tmp_path, tmp_db, now):
    source = reviewed_store(now)
    path = tmp_path / "backup" / "progress.json"
    assert export_state(source, str(path)) == 2

    init_db(tmp_db)
    target = SqliteReviewStore(tmp_db)
    result = import_state(target, str(path))
    assert result == {"filename": "progress.json", "imported": 2, "skipped": 0, "conflicts": 0}
    assert sorted(target.all(), key=lambda i: i.item_id) == sorted(source.all(), key=lambda i: i.item_id)


def test_import_never_rolls_back_progress(tmp_path, now):
    store = reviewed_store(now)
    path = tmp_path / "old.json"
    export_state(store, str(path))
    store.update("vscode.save", lambda i: apply_review(i, Rating.GOOD, now=now + timedelta(days=1)))

    result = import_state(store, str(path))
    assert result["imported"] == 0
    assert result["skipped"] == 2
    assert store.get("vscode.save").interval == 6


@pytest.fixture(params=["memory", "sqlite"])
def target(request, tmp_db):
    if request.param == "memory":
        return MemoryReviewStore()
    init_db(tmp_db)
    return SqliteReviewStore(tmp_db)


def test_import_skips_divergent_history(target, tmp_path, now, log_messages):
    target.bulk_initialize(["vscode.save", "vscode.copy"], now=now)
    target.update("vscode.save", lambda i: apply_review(i, Rating.GOOD, now=now))
    kept = target.get("vscode.save")

    # Same item reviewed differently elsewhere: again, again instead of good
    other = MemoryReviewStore()
    other.bulk_initialize(["vscode.save", "vscode.copy"], now=now)
    for day in range(2):
        other.update("vscode.save", lambda i: apply_review(i, Rating.AGAIN, now=now + timedelta(days=day)))
    other.update("vscode.copy", lambda i: apply_review(i, Rating.EASY, now=now))
    path = tmp_path / "other.json"
    export_state(other, str(path))

    result = import_state(target, str(path))

    assert result["conflicts"] == 1
    assert result["imported"] == 1
    assert target.get("vscode.save") == kept
    assert target.get("vscode.copy") == other.get("vscode.copy")
    assert any("does not match" in m for m in log_messages)


def test_import_same_length_divergence_is_conflict(target, tmp_path, now):
    target.bulk_initialize(["vscode.save"], now=now)
    target.update("vscode.save", lambda i: apply_review(i, Rating.GOOD, now=now))
    kept = target.get("vscode.save")

    other = MemoryReviewStore([apply_review(new_item("vscode.save", now), Rating.EASY, now=now)])
    path = tmp_path / "other.json"
    export_state(other, str(path))

    result = import_state(target, str(path))
    assert result == {"filename": "other.json", "imported": 0, "skipped": 0, "conflicts": 1}
    assert target.get("vscode.save") == kept


def test_import_applies_newer_reviews(target, tmp_path, now):
    target.bulk_initialize(["vscode.save"], now=now)
    target.update("vscode.save", lambda i: apply_review(i, Rating.GOOD, now=now))

    ahead = MemoryReviewStore([target.get("vscode.save")])
    ahead.update("vscode.save", lambda i: apply_review(i, Rating.GOOD, now=now + timedelta(days=1)))
    path = tmp_path / "ahead.json"
    export_state(ahead, str(path))

    result = import_state(target, str(path))
    assert result["imported"] == 1
    assert target.get("vscode.save") == ahead.get("vscode.save")


def test_saturated_due_date_survives_serialization(now):
    item = new_item("vscode.save", now)
    for _ in range(30):
        item = apply_review(item, Rating.EASY, now=now)
    data = item_to_dict(item)
    assert data["next_due_at"] == "9999-12-31T23:59:59.999999+00:00"
    assert item_from_dict("vscode.save", json.loads(json.dumps(data))) == item
    assert item.next_due_at == MAX_DUE_AT


def test_load_state_unknown_version():
    with pytest.raises(SchemaVersionError):
        load_state({"schema_version": 99, "items": {}})
    with pytest.raises(SchemaVersionError):
        load_state({"items": {}})


def test_load_state_rejects_bad_rating():
    data = {"schema_version": 1, "items": {"a": {
        "strength": 2.5, "interval": 0, "next_due_at": "2023-05-01T12:00:00+00:00",
        "history": [{"timestamp": "2023-05-01T12:00:00+00:00", "rating": "superb"}],
    }}}
    with pytest.raises(InvalidRatingError):
        load_state(data)


def test_legacy_layout_is_migrated():
    legacy = {"shortcuts": [{
        "shortcutId": "shortcut1",
        "easeFactor": 2.36,
        "interval": 6,
        "nextReviewDate": "2023-05-07T12:00:00.000Z",
        "reviewHistory": [
            {"date": "2023-04-30T12:00:00.000Z", "performance": "good"},
            {"date": "2023-05-01T12:00:00.000Z", "performance": "hard"},
        ],
    }]}
    migrated = migrate_legacy(legacy)
    assert migrated["schema_version"] == SCHEMA_VERSION

    [item] = load_state(legacy)
    assert item.item_id == "shortcut1"
    assert item.strength == 2.36
    assert item.interval == 6
    assert item.next_due_at == datetime(2023, 5, 7, 12, 0, tzinfo=timezone.utc)
    assert [h.rating for h in item.history] == [Rating.GOOD, Rating.HARD]


def test_naive_timestamps_read_as_utc():
    data = {"schema_version": 1, "items": {"a": {
        "strength": 2.5, "interval": 0, "next_due_at": "2023-05-01T12:00:00",
    }}}
    [item] = load_state(data)
    assert item.next_due_at.tzinfo is not None
    assert item.history == ()


def test_export_writes_valid_json(tmp_path, now):
    path = tmp_path / "progress.json"
    export_state(reviewed_store(now), str(path))
    assert json.loads(path.read_text())["schema_version"] == 1
