"""Due-set selection: which items should be reviewed now."""
from datetime import datetime

from shortcut_tutor.models import ReviewConfig, as_utc


def due_items(store, config: ReviewConfig = None, now: datetime = None, catalog=None) -> list[str]:
    """Return ids of items whose next review is at or before ``now``.

    Args:
        store: Review item store to read from
        config: Optional cap, ordering and category/difficulty filters
        now: Reference time (defaults to the current UTC time)
        catalog: Shortcut catalog, required when filters are set

    Returns:
        Item ids ordered by id, or by ascending strength when
        ``focus_on_difficult`` is set, capped to ``max_items``.
    """
    config = config or ReviewConfig()
    now = as_utc(now)

    if (config.categories or config.difficulties) and catalog is None:
        raise ValueError("Category or difficulty filters need a shortcut catalog")

    due = [item for item in store.all() if item.is_due(now)]
    if catalog is not None:
        due = [
            item for item in due
            if catalog.matches(item.item_id, config.categories, config.difficulties)
        ]

    if config.focus_on_difficult:
        due.sort(key=lambda item: (item.strength, item.item_id))
    else:
        due.sort(key=lambda item: item.item_id)

    if config.max_items and config.max_items > 0:
        due = due[:config.max_items]

    return [item.item_id for item in due]
