"""Data classes for the tutor domain model."""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from shortcut_tutor.errors import InvalidRatingError

INITIAL_STRENGTH = 2.5
MIN_STRENGTH = 1.3


class Rating(str, Enum):
    """Self-assessed recall for one review, ordered again < hard < good < easy."""

    AGAIN = "again"
    HARD = "hard"
    GOOD = "good"
    EASY = "easy"

    @property
    def quality(self) -> int:
        return _QUALITY[self]

    @classmethod
    def parse(cls, value) -> "Rating":
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        raise InvalidRatingError(f"Unknown rating: {value!r}")

    def __lt__(self, other):
        if not isinstance(other, Rating):
            return NotImplemented
        return self.quality < other.quality

    def __le__(self, other):
        if not isinstance(other, Rating):
            return NotImplemented
        return self.quality <= other.quality

    def __gt__(self, other):
        if not isinstance(other, Rating):
            return NotImplemented
        return self.quality > other.quality

    def __ge__(self, other):
        if not isinstance(other, Rating):
            return NotImplemented
        return self.quality >= other.quality


# No quality 1 or 2: a review is either failed or a graded success.
_QUALITY = {Rating.AGAIN: 0, Rating.HARD: 3, Rating.GOOD: 4, Rating.EASY: 5}


# Latest representable due date; schedules further out saturate here.
MAX_DUE_AT = datetime.max.replace(tzinfo=timezone.utc)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(dt: datetime = None) -> datetime:
    """Current time when ``dt`` is None; naive datetimes are taken to be UTC."""
    if dt is None:
        return utcnow()
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


@dataclass(frozen=True)
class HistoryEntry:
    timestamp: datetime
    rating: Rating


@dataclass(frozen=True)
class ReviewItem:
    item_id: str
    strength: float = INITIAL_STRENGTH
    interval: int = 0
    next_due_at: datetime = field(default_factory=utcnow)
    history: tuple = ()

    def is_due(self, now: datetime) -> bool:
        return self.next_due_at <= now

    @property
    def review_count(self) -> int:
        return len(self.history)


@dataclass(frozen=True)
class ReviewResult:
    item_id: str
    rating: Rating
    response_time_ms: int = 0


@dataclass
class ReviewConfig:
    max_items: Optional[int] = None
    focus_on_difficult: bool = False
    categories: frozenset = frozenset()
    difficulties: frozenset = frozenset()


@dataclass
class ReviewSession:
    session_id: str
    created_at: datetime
    item_ids: tuple
    completed: bool = False
    results: Optional[tuple] = None


@dataclass
class Shortcut:
    id: str
    name: str
    keys: str
    category: str
    difficulty: str = "beginner"
