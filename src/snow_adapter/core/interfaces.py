"""Abstract interfaces for adapter collaborators.

The adapter publishes lifecycle events through an ``EventPublisher`` rather
than inheriting an emitter, so hosts can plug in their own event channel.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

EventHandler = Callable[[dict[str, Any]], Any]


class EventPublisher(ABC):
    """Abstract interface for publishing named events to subscribers.

    Implementations: EventBus
    """

    @abstractmethod
    def subscribe(self, event: str, handler: EventHandler) -> None:
        """Register a handler for an event.

        Args:
            event: Event name (e.g., 'ONLINE')
            handler: Callable receiving the event payload
        """

    @abstractmethod
    def unsubscribe(self, event: str, handler: EventHandler) -> None:
        """Remove a previously registered handler.

        Args:
            event: Event name
            handler: Handler to remove
        """

    @abstractmethod
    def publish(self, event: str, payload: dict[str, Any]) -> None:
        """Deliver a payload to every handler subscribed to an event.

        Args:
            event: Event name
            payload: Event payload
        """
