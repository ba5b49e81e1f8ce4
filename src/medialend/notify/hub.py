"""One-shot availability notifications."""

import logging
from threading import RLock
from typing import Protocol

from ..catalog.items import normalize_identifier

logger = logging.getLogger(__name__)


class ItemObserver(Protocol):
    """Anything that wants to hear when an item can be borrowed again."""

    def on_item_available(self, identifier: str) -> None: ...


class NotificationHub:
    """Per-item subscriber lists that are drained on publish.

    Subscriptions are not durable: a publish with no subscribers is lost,
    and each subscriber is notified at most once.
    """

    def __init__(self):
        self._subscribers: dict[str, list[ItemObserver]] = {}
        self._lock = RLock()

    def subscribe(self, identifier: str, observer: ItemObserver) -> bool:
        """Register an observer for the next availability of an item.

        Returns:
            False if an equal observer is already waiting on the item
        """
        with self._lock:
            waiting = self._subscribers.setdefault(normalize_identifier(identifier), [])
            if observer in waiting:
                return False
            waiting.append(observer)
            return True

    def subscriber_count(self, identifier: str) -> int:
        return len(self._subscribers.get(normalize_identifier(identifier), []))

    def publish_available(self, identifier: str) -> int:
        """Notify and forget every observer of an item.

        Returns:
            Number of observers notified
        """
        with self._lock:
            observers = self._subscribers.pop(normalize_identifier(identifier), [])

        logger.info("Item %s available, notifying %d subscriber(s)", identifier, len(observers))
        for observer in observers:
            observer.on_item_available(identifier)
        return len(observers)
