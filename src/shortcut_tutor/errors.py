"""Exceptions raised by the scheduling engine."""


class ShortcutTutorError(Exception):
    """Base class for all tutor errors."""


class ItemNotFoundError(ShortcutTutorError, KeyError):
    """A review referenced an item id that is not in the store."""

    def __init__(self, item_id: str):
        super().__init__(item_id)
        self.item_id = item_id

    def __str__(self) -> str:
        return f"Review item not found: {self.item_id}"


class StorageUnavailableError(ShortcutTutorError):
    """The backing store could not be read or written."""


class InvalidRatingError(ShortcutTutorError, ValueError):
    """A rating outside again/hard/good/easy was supplied."""


class SchemaVersionError(ShortcutTutorError, ValueError):
    """Persisted state carries a schema version this code cannot read."""
