# tests/test_sm2.py
from datetime import timedelta

import pytest

from shortcut_tutor.errors import InvalidRatingError
from shortcut_tutor.models import MAX_DUE_AT, Rating, ReviewItem
from shortcut_tutor.sm2 import apply_review, due_after, next_interval, next_strength


def make_item(now, strength=2.5, interval=0):
    return ReviewItem(item_id="vscode.save", strength=strength, interval=interval, next_due_at=now)


def test_first_review_easy(now):
    """Fresh item rated easy: strength 2.6, interval 1, due tomorrow."""
    result = apply_review(make_item(now), Rating.EASY, now=now)
    assert result.strength == pytest.approx(2.6)
    assert result.interval == 1
    assert result.next_due_at == now + timedelta(days=1)


def test_hard_after_six_days(now):
    """strength 2.5 - 0.14 = 2.36, interval round(6 * 2.36) = 14."""
    result = apply_review(make_item(now, interval=6), Rating.HARD, now=now)
    assert result.strength == pytest.approx(2.36)
    assert result.interval == 14
    assert result.next_due_at == now + timedelta(days=14)


def test_again_at_floor_resets_interval(now):
    result = apply_review(make_item(now, strength=1.3, interval=6), Rating.AGAIN, now=now)
    assert result.interval == 0
    assert result.strength == 1.3
    assert result.next_due_at == now


def test_good_then_good_gives_one_then_six(now):
    item = make_item(now)
    intervals = []
    for _ in range(2):
        item = apply_review(item, Rating.GOOD, now=now)
        intervals.append(item.interval)
    assert intervals == [1, 6]


@pytest.mark.parametrize("strength", [1.3, 1.8, 2.5, 4.0])
def test_early_steps_ignore_strength(now, strength):
    item = apply_review(make_item(now, strength=strength), Rating.HARD, now=now)
    assert item.interval == 1
    item = apply_review(item, Rating.EASY, now=now)
    assert item.interval == 6


def test_geometric_growth_uses_updated_strength(now):
    """Interval 6 at strength 2.5 rated easy uses 2.6, not 2.5."""
    result = apply_review(make_item(now, interval=6), Rating.EASY, now=now)
    assert result.interval == 16  # round(6 * 2.6) = 15.6 -> 16


def test_half_interval_rounds_up():
    assert next_interval(6, 4, 2.75) == 17


def test_again_relearns_from_any_interval(now):
    for interval in (0, 1, 6, 120):
        result = apply_review(make_item(now, interval=interval), Rating.AGAIN, now=now)
        assert result.interval == 0


def test_repeated_again_pins_interval_and_floors_strength(now):
    item = make_item(now, interval=30)
    strengths = []
    for _ in range(20):
        item = apply_review(item, Rating.AGAIN, now=now)
        assert item.interval == 0
        assert item.strength >= 1.3
        strengths.append(item.strength)
    assert strengths == sorted(strengths, reverse=True)
    assert strengths[-1] == 1.3


def test_no_ceiling_on_strength_or_interval(now):
    item = make_item(now)
    for _ in range(15):
        item = apply_review(item, Rating.EASY, now=now)
    assert item.strength == pytest.approx(2.5 + 15 * 0.1)
    assert item.interval > 10_000


def test_far_future_due_date_saturates(now):
    item = make_item(now)
    intervals = []
    for _ in range(30):
        item = apply_review(item, Rating.EASY, now=now)
        intervals.append(item.interval)
    assert intervals == sorted(intervals)
    assert intervals[-1] > intervals[-2]
    assert item.next_due_at == MAX_DUE_AT
    assert len(item.history) == 30


def test_due_after_adds_days_until_saturation(now):
    assert due_after(now, 6) == now + timedelta(days=6)
    assert due_after(now, 10**12) == MAX_DUE_AT
    assert due_after(MAX_DUE_AT - timedelta(days=1), 2) == MAX_DUE_AT


def test_naive_now_is_treated_as_utc(now):
    item = apply_review(make_item(now), Rating.GOOD, now=now.replace(tzinfo=None))
    assert item.next_due_at.tzinfo is not None
    assert item.next_due_at == now + timedelta(days=1)
    assert item.history[0].timestamp == now


def test_history_appended_without_mutating_input(now):
    item = make_item(now)
    later = now + timedelta(days=1)
    first = apply_review(item, Rating.GOOD, now=now)
    second = apply_review(first, "hard", now=later)
    assert item.history == ()
    assert len(first.history) == 1
    assert [h.rating for h in second.history] == [Rating.GOOD, Rating.HARD]
    assert second.history[1].timestamp == later


def test_next_strength_quality_steps():
    assert next_strength(2.5, 5) == pytest.approx(2.6)
    assert next_strength(2.5, 4) == pytest.approx(2.5)
    assert next_strength(2.5, 3) == pytest.approx(2.36)
    assert next_strength(2.5, 0) == pytest.approx(1.7)


@pytest.mark.parametrize("bad", ["perfect", 3, None, "", "ok"])
def test_invalid_rating_rejected(now, bad):
    with pytest.raises(InvalidRatingError):
        apply_review(make_item(now), bad, now=now)
