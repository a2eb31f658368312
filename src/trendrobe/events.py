"""Change notifications for wardrobe and styling tip mutations."""

import logging
import threading
from collections import defaultdict
from functools import lru_cache
from typing import Any, Callable, Literal

Topic = Literal["wardrobe_changed", "styling_tips_changed"]
Subscriber = Callable[[str, Any], None]
"""Called with the user ID and the post-mutation snapshot."""


class ChangeNotifier:
    """
    Explicit publish/subscribe registry.

    Every subscriber of a topic receives the same snapshot object, in subscription order.
    """

    def __init__(self):
        self._subscribers: dict[str, list[Subscriber]] = defaultdict(list)
        self._lock = threading.Lock()

    def subscribe(self, topic: Topic, callback: Subscriber) -> Callable[[], None]:
        """Register a callback and return a function that unregisters it."""
        with self._lock:
            self._subscribers[topic].append(callback)

        def unsubscribe():
            with self._lock:
                if callback in self._subscribers[topic]:
                    self._subscribers[topic].remove(callback)

        return unsubscribe

    def publish(self, topic: Topic, user_id: str, snapshot: Any):
        with self._lock:
            subscribers = list(self._subscribers[topic])

        for callback in subscribers:
            try:
                callback(user_id, snapshot)
            except Exception:
                # Delivery continues to the remaining subscribers
                logging.exception(f"Subscriber for {topic!r} failed")


def log_change(user_id: str, snapshot: Any):
    logging.info(f"Snapshot for user {user_id!r} now has {len(snapshot)} entries")


@lru_cache
def get_notifier() -> ChangeNotifier:
    """Get the process-wide change notifier. Use as a FastAPI dependency."""
    notifier = ChangeNotifier()
    notifier.subscribe("wardrobe_changed", log_change)
    notifier.subscribe("styling_tips_changed", log_change)
    return notifier
