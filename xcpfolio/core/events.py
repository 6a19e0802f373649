"""
Subscribe/unsubscribe message channels used for wallet and order updates.
"""

import logging
from typing import Callable, Generic, List, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Subscription:
    """Handle returned by ``EventChannel.subscribe``."""

    def __init__(self, channel: "EventChannel", callback: Callable) -> None:
        self._channel = channel
        self._callback = callback
        self.active = True

    def unsubscribe(self) -> None:
        """Safe to call more than once."""
        if self.active:
            self._channel._remove(self._callback)
            self.active = False


class EventChannel(Generic[T]):
    """Synchronous fan-out of messages to subscribers.

    Subscribing the same callback twice returns the existing subscription.
    A failing subscriber is logged and never blocks the others.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._subscriptions: List[Subscription] = []

    def subscribe(self, callback: Callable[[T], None]) -> Subscription:
        for existing in self._subscriptions:
            if existing._callback == callback:
                return existing
        subscription = Subscription(self, callback)
        self._subscriptions.append(subscription)
        return subscription

    def _remove(self, callback: Callable) -> None:
        self._subscriptions = [s for s in self._subscriptions if s._callback != callback]

    def publish(self, message: T) -> None:
        for subscription in list(self._subscriptions):
            try:
                subscription._callback(message)
            except Exception:  # noqa: BLE001
                logger.exception("Subscriber on %s channel failed", self.name)

    def __len__(self) -> int:
        return len(self._subscriptions)
