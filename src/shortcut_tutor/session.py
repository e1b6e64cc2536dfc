"""Review session coordination: batch due items, feed results back through SM-2."""
import uuid
from datetime import datetime

from loguru import logger

from shortcut_tutor.errors import ItemNotFoundError
from shortcut_tutor.events import REVIEW_RECORDED, SESSION_COMPLETED, EventBus
from shortcut_tutor.models import Rating, ReviewConfig, ReviewItem, ReviewResult, ReviewSession, as_utc
from shortcut_tutor.selector import due_items
from shortcut_tutor.sm2 import apply_review
from shortcut_tutor.stats import summarize_results


def to_result(raw) -> ReviewResult:
    """Build a ReviewResult from a ReviewResult or a mapping, validating the rating."""
    if isinstance(raw, ReviewResult):
        return ReviewResult(raw.item_id, Rating.parse(raw.rating), raw.response_time_ms)
    return ReviewResult(
        item_id=raw["item_id"],
        rating=Rating.parse(raw["rating"]),
        response_time_ms=int(raw.get("response_time_ms", 0)),
    )


class SessionCoordinator:
    """Creates review sessions and applies their outcomes to the store.

    The store, catalog and event bus are injected; nothing is shared at
    module level, so separate coordinators never see each other's state.
    """

    def __init__(self, store, catalog=None, events: EventBus = None):
        self.store = store
        self.catalog = catalog
        self.events = events or EventBus()

    def initialize(self, item_ids, now: datetime = None) -> int:
        """Seed review items for ids not yet in the store."""
        created = self.store.bulk_initialize(item_ids, now=now)
        logger.info(f"Added {created} new shortcuts to the review pool")
        return created

    def create_session(self, config: ReviewConfig = None, now: datetime = None) -> ReviewSession:
        now = as_utc(now)
        item_ids = due_items(self.store, config, now=now, catalog=self.catalog)
        session = ReviewSession(
            session_id=f"review-{uuid.uuid4().hex[:12]}",
            created_at=now,
            item_ids=tuple(item_ids),
        )
        logger.info(f"Created session {session.session_id} with {len(item_ids)} items")
        return session

    def _apply(self, result: ReviewResult, now: datetime) -> ReviewItem | None:
        updated = self.store.update(
            result.item_id, lambda item: apply_review(item, result.rating, now=now)
        )
        if updated is not None:
            self.events.publish(REVIEW_RECORDED, {"item": updated, "result": result})
        return updated

    def record_review(self, item_id: str, rating, response_time_ms: int = 0,
                      now: datetime = None) -> ReviewItem:
        """Apply a single review outside of a session."""
        result = ReviewResult(item_id, Rating.parse(rating), response_time_ms)
        updated = self._apply(result, as_utc(now))
        if updated is None:
            raise ItemNotFoundError(item_id)
        return updated

    def complete_session(self, session: ReviewSession, results, now: datetime = None) -> ReviewSession:
        """Apply ``results`` in order and mark the session completed.

        Results for ids missing from the store are logged and skipped. A
        repeated id is applied once per occurrence, so the last one wins.
        Every rating is validated before anything is written.
        """
        if session.completed:
            raise ValueError(f"Session {session.session_id} is already completed")
        now = as_utc(now)
        parsed = [to_result(r) for r in results]

        skipped = []
        for result in parsed:
            if self._apply(result, now) is None:
                logger.warning(
                    f"Skipping review of unknown item {result.item_id} "
                    f"in session {session.session_id}"
                )
                skipped.append(result.item_id)

        session.completed = True
        session.results = tuple(parsed)

        summary = summarize_results(parsed)
        summary["skipped"] = skipped
        logger.info(
            f"Completed session {session.session_id}: "
            f"{summary['total_items'] - len(skipped)} reviews applied, {len(skipped)} skipped"
        )
        self.events.publish(SESSION_COMPLETED, {"session": session, "summary": summary})
        return session
