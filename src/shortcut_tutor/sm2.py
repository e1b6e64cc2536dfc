"""SM-2 spaced repetition algorithm."""
import math
from dataclasses import replace
from datetime import datetime, timedelta

from shortcut_tutor.models import MAX_DUE_AT, MIN_STRENGTH, HistoryEntry, Rating, ReviewItem, as_utc

FIRST_INTERVAL = 1
SECOND_INTERVAL = 6


def next_strength(strength: float, quality: int) -> float:
    """Ease factor after a review of the given quality, floored at 1.3."""
    new_strength = strength + (0.1 - (5 - quality) * (0.08 + (5 - quality) * 0.02))
    return max(MIN_STRENGTH, new_strength)


def next_interval(interval: int, quality: int, strength: float) -> int:
    """Days until the next review.

    Args:
        interval: Interval before this review (0 = new or relearning)
        quality: Numeric quality of the review
        strength: Ease factor already updated for this review

    Returns:
        New interval in days.
    """
    if quality < 3:
        # Failed: relearn from scratch
        return 0
    if interval == 0:
        return FIRST_INTERVAL
    if interval == 1:
        return SECOND_INTERVAL
    # Halves round up
    return math.floor(interval * strength + 0.5)


def due_after(now: datetime, interval: int) -> datetime:
    """``now`` plus ``interval`` days, saturating at MAX_DUE_AT."""
    try:
        return now + timedelta(days=interval)
    except OverflowError:
        return MAX_DUE_AT


def apply_review(item: ReviewItem, rating, now: datetime = None) -> ReviewItem:
    """Return the item's state after one review; ``item`` is left untouched."""
    rating = Rating.parse(rating)
    now = as_utc(now)
    quality = rating.quality

    strength = next_strength(item.strength, quality)
    interval = next_interval(item.interval, quality, strength)

    return replace(
        item,
        strength=strength,
        interval=interval,
        next_due_at=due_after(now, interval),
        history=item.history + (HistoryEntry(timestamp=now, rating=rating),),
    )
