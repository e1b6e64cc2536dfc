"""Outbound notifications for progression and reward collaborators."""
from loguru import logger

REVIEW_RECORDED = "review_recorded"
SESSION_COMPLETED = "session_completed"


class EventBus:
    """Synchronous publish/subscribe.

    Handlers are called in subscription order. A failing handler is logged
    and does not stop delivery to the others or reach the publisher.
    """

    def __init__(self):
        self._handlers = {}

    def subscribe(self, event: str, handler):
        """Register ``handler`` for ``event``; returns a function that unsubscribes it."""
        self._handlers.setdefault(event, []).append(handler)

        def unsubscribe():
            self.unsubscribe(event, handler)

        return unsubscribe

    def unsubscribe(self, event: str, handler) -> None:
        handlers = self._handlers.get(event, [])
        if handler in handlers:
            handlers.remove(handler)

    def handlers(self, event: str) -> list:
        return list(self._handlers.get(event, []))

    def publish(self, event: str, payload) -> int:
        """Deliver ``payload`` to every handler of ``event``; returns how many succeeded."""
        delivered = 0
        for handler in self.handlers(event):
            try:
                handler(payload)
            except Exception:
                logger.exception(f"Handler {handler!r} failed for event {event}")
                continue
            delivered += 1
        return delivered
