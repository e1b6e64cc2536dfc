"""Mastery statistics over the review store."""
import math
from datetime import datetime

from shortcut_tutor.models import INITIAL_STRENGTH, MIN_STRENGTH, Rating, as_utc


def get_mastery_label(level: float) -> str:
    if level >= 80:
        return "MASTERED"
    elif level >= 50:
        return "FAMILIAR"
    elif level >= 20:
        return "LEARNING"
    return "STRUGGLING"


def get_mastery_color(level: float) -> str:
    if level >= 80:
        return "green"
    elif level >= 50:
        return "yellow"
    elif level >= 20:
        return "dark_orange"
    return "red"


def calc_mastery_level(average_strength: float) -> int:
    """Map average strength onto 0-100, where the initial 2.5 counts as 100."""
    if average_strength <= 0:
        return 0
    level = (average_strength - MIN_STRENGTH) / (INITIAL_STRENGTH - MIN_STRENGTH) * 100
    return max(0, min(100, math.floor(level + 0.5)))


def get_statistics(store, now: datetime = None) -> dict:
    now = as_utc(now)
    items = store.all()
    total = len(items)
    due = sum(1 for item in items if item.is_due(now))
    average = sum(item.strength for item in items) / total if total else 0.0

    ratings = [entry.rating for item in items for entry in item.history]
    recalled = sum(1 for r in ratings if r != Rating.AGAIN)
    return {
        "total_items": total,
        "due_items": due,
        "new_items": sum(1 for item in items if not item.history),
        "average_strength": round(average, 2),
        "mastery_level": calc_mastery_level(average),
        "reviews": len(ratings),
        "retention": round(recalled / len(ratings) * 100, 1) if ratings else 0.0,
    }


def summarize_results(results) -> dict:
    """Per-rating counts and mean response time for one completed session."""
    counts = {rating.value: 0 for rating in Rating}
    for r in results:
        counts[r.rating.value] += 1
    total = len(results)
    avg_time = sum(r.response_time_ms for r in results) / total if total else 0.0
    return {
        "total_items": total,
        "rating_counts": counts,
        "recalled": counts["good"] + counts["easy"],
        "average_response_time_ms": round(avg_time),
    }
