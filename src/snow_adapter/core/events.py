"""Synchronous in-process event bus."""

import logging
from enum import Enum
from typing import Any

from snow_adapter.core.interfaces import EventHandler, EventPublisher

logger = logging.getLogger(__name__)


def _event_name(event: str | Enum) -> str:
    return str(event.value) if isinstance(event, Enum) else event


class EventBus(EventPublisher):
    """Fan-out publisher: one ``publish()`` calls every subscribed handler.

    Handlers run in subscription order on the caller's thread. Events are
    never deduplicated.
    """

    def __init__(self) -> None:
        self._handlers: dict[str, list[EventHandler]] = {}

    def subscribe(self, event: str, handler: EventHandler) -> None:
        """Register a handler for an event."""
        self._handlers.setdefault(_event_name(event), []).append(handler)

    def unsubscribe(self, event: str, handler: EventHandler) -> None:
        """Remove a handler; unknown handlers are ignored."""
        handlers = self._handlers.get(_event_name(event), [])
        if handler in handlers:
            handlers.remove(handler)

    def publish(self, event: str, payload: dict[str, Any]) -> None:
        """Call each handler subscribed to ``event`` with ``payload``."""
        handlers = list(self._handlers.get(_event_name(event), []))
        logger.debug("Publishing %s to %d handler(s)", _event_name(event), len(handlers))
        for handler in handlers:
            handler(payload)

    def handler_count(self, event: str) -> int:
        """Return the number of handlers subscribed to an event."""
        return len(self._handlers.get(_event_name(event), []))
