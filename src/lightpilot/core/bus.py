"""
In-process event bus.

Modules never call each other directly: the autopilot publishes suggestion
and apply events, the learning module publishes preference updates, and the
host publishes approvals and profile changes. Delivery is synchronous on the
publishing thread, which may be a timer or loop thread rather than the host's.
"""

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, UTC
from typing import Any, Callable, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass
class Event:
    """
    Something that happened to a user's autopilot.

    Attributes:
        type: Dotted event name, e.g. "autopilot.suggestion_added"
        source: Who published it ("autopilot", "learning", "host", ...)
        user_id: User the event concerns, if any
        item_id: Schedule item the event concerns, if any
        payload: Event-specific data
        timestamp: Publish time (UTC)
    """

    type: str
    source: str
    user_id: Optional[str] = None
    item_id: Optional[str] = None
    payload: Dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=_utc_now)


class EventFilter:
    """
    Subscription filter on event type and user.

    An event_type ending in ".*" matches every type under that prefix, so
    "autopilot.*" receives all autopilot events.
    """

    def __init__(
        self,
        event_type: Optional[str] = None,
        user_id: Optional[str] = None,
    ):
        self.event_type = event_type
        self.user_id = user_id

    def matches(self, event: Event) -> bool:
        if self.event_type:
            if self.event_type.endswith(".*"):
                if not event.type.startswith(self.event_type[:-1]):
                    return False
            elif event.type != self.event_type:
                return False

        if self.user_id and event.user_id != self.user_id:
            return False

        return True

    def __repr__(self) -> str:
        return f"EventFilter(event_type={self.event_type!r}, user_id={self.user_id!r})"


EventHandler = Callable[[Event], None]


def _handler_name(handler: EventHandler) -> str:
    return getattr(handler, "__qualname__", None) or repr(handler)


class EventBus:
    """
    Synchronous publish/subscribe for lightpilot events.

    The handler list is replaced, never mutated, so publish() iterates a
    stable snapshot without holding the lock. A failing handler is logged
    and skipped; the remaining handlers still run.
    """

    def __init__(self) -> None:
        self._handlers: Tuple[Tuple[EventFilter, EventHandler], ...] = ()
        self._lock = threading.Lock()

    def subscribe(
        self,
        handler: EventHandler,
        event_filter: Optional[EventFilter] = None,
    ) -> None:
        """
        Register a handler.

        Args:
            handler: Called with each matching Event
            event_filter: Which events to deliver (None = all)
        """
        if event_filter is None:
            event_filter = EventFilter()

        with self._lock:
            self._handlers = self._handlers + ((event_filter, handler),)
        logger.debug(f"Subscribed {_handler_name(handler)} with {event_filter}")

    def publish(self, event: Event) -> None:
        """Deliver an event to every matching handler, in subscription order."""
        logger.debug(f"Publishing {event.type} from {event.source} (user={event.user_id})")

        for event_filter, handler in self._handlers:
            if not event_filter.matches(event):
                continue
            try:
                handler(event)
            except Exception as e:
                logger.error(
                    f"Error in event handler {_handler_name(handler)} "
                    f"for event {event.type}: {e}",
                    exc_info=True,
                )

    def unsubscribe(self, handler: EventHandler) -> None:
        """Remove a handler from every subscription it was registered under."""
        with self._lock:
            self._handlers = tuple((f, h) for f, h in self._handlers if h != handler)
        logger.debug(f"Unsubscribed {_handler_name(handler)}")

    def handler_count(self) -> int:
        return len(self._handlers)

    def subscriptions(self) -> List[EventFilter]:
        """Filters of all current subscriptions (for debugging)."""
        return [f for f, _ in self._handlers]
