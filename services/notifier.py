"""In-process publish/subscribe for order lifecycle events."""
import logging
from typing import Any, Callable, Dict, List

from monitoring import subscriber_failures_counter

logger = logging.getLogger(__name__)

ORDER_CREATED = "ORDER_CREATED"
ORDER_STATUS_UPDATED = "ORDER_STATUS_UPDATED"

Subscriber = Callable[[str, Dict[str, Any]], None]


def _subscriber_name(subscriber: Subscriber) -> str:
    return getattr(subscriber, "__name__", type(subscriber).__name__)


class EventNotifier:
    """
    Synchronous fan-out of events to subscribers.

    Subscribers run in subscription order. A subscriber that raises is
    logged and skipped; the remaining subscribers still run and the caller
    of ``notify`` never sees the error. Events are not stored, so a
    subscriber added later never receives earlier events.
    """

    def __init__(self):
        self._subscribers: List[Subscriber] = []

    @property
    def subscribers(self) -> List[Subscriber]:
        return list(self._subscribers)

    def subscribe(self, subscriber: Subscriber) -> None:
        self._subscribers.append(subscriber)

    def unsubscribe(self, subscriber: Subscriber) -> None:
        self._subscribers = [s for s in self._subscribers if s is not subscriber]

    def notify(self, event_name: str, payload: Dict[str, Any]) -> int:
        """
        Deliver an event to every current subscriber.

        Args:
            event_name: Event name, e.g. ``ORDER_CREATED``
            payload: Event data

        Returns:
            Number of subscribers that handled the event without raising
        """
        delivered = 0
        # Iterate over a snapshot so subscribers may unsubscribe themselves
        for subscriber in list(self._subscribers):
            try:
                subscriber(event_name, payload)
                delivered += 1
            except Exception:
                subscriber_failures_counter.add(1, {
                    "event": event_name,
                    "subscriber": _subscriber_name(subscriber)
                })
                logger.exception("Event subscriber failed", extra={
                    "event": event_name,
                    "subscriber": _subscriber_name(subscriber)
                })

        logger.debug("Event published", extra={
            "event": event_name,
            "delivered": delivered,
            "subscriber_count": len(self._subscribers)
        })
        return delivered
