"""
Subscriptions: single-slot delivery channels holding only the latest undelivered config.

- offer() never blocks; if the slot is still full the new value is dropped for that subscriber.
- SubscriberRegistry keeps subscriptions in registration order, keyed by id.
"""

from __future__ import annotations

import itertools
import queue
from typing import Generic, Iterator, TypeVar

import structlog

logger = structlog.get_logger(__name__)

ConfigT = TypeVar("ConfigT")

_ids = itertools.count(1)


class Subscription(Generic[ConfigT]):
    """Read side handed to callers by ConfigLoader.subscribe()."""

    def __init__(self):
        self.id = next(_ids)
        self._slot: queue.Queue[ConfigT] = queue.Queue(maxsize=1)

    def offer(self, value: ConfigT) -> bool:
        """Non-blocking write; False if the slot already holds an undelivered value."""
        try:
            self._slot.put_nowait(value)
        except queue.Full:
            return False
        return True

    def get(self, timeout: float | None = None) -> ConfigT:
        """
        Block until a value is available.

        Raises:
            queue.Empty: If timeout elapses first.
        """
        return self._slot.get(timeout=timeout)

    def get_nowait(self) -> ConfigT:
        """Return the pending value or raise queue.Empty."""
        return self._slot.get_nowait()

    def pending(self) -> bool:
        return not self._slot.empty()

    def __repr__(self) -> str:
        return f"Subscription(id={self.id}, pending={self.pending()})"


class SubscriberRegistry(Generic[ConfigT]):
    """Ordered collection of subscriptions. Not thread-safe; the loader lock guards it."""

    def __init__(self):
        self._subs: dict[int, Subscription[ConfigT]] = {}

    def add(self) -> Subscription[ConfigT]:
        sub: Subscription[ConfigT] = Subscription()
        self._subs[sub.id] = sub
        return sub

    def broadcast(self, value: ConfigT) -> int:
        """Offer the same value to every subscription; return how many accepted it."""
        delivered = 0
        for sub in self._subs.values():
            if sub.offer(value):
                delivered += 1
            else:
                logger.debug("subscriber_slot_full", subscription_id=sub.id)
        return delivered

    def __len__(self) -> int:
        return len(self._subs)

    def __iter__(self) -> Iterator[Subscription[ConfigT]]:
        return iter(list(self._subs.values()))
