"""Process-wide publish/subscribe bus with named topics."""

import logging
from collections import defaultdict

logger = logging.getLogger(__name__)


class NotificationBus:
    """
    Fan-out of change notifications to independent observers.

    Stores publish a topic after each completed write; observers subscribe
    for as long as they live and release their subscription on teardown.
    A failing observer is logged and does not stop the others.
    """

    def __init__(self):
        self._subscribers = defaultdict(list)

    def subscribe(self, topic, callback):
        """
        Register ``callback`` for ``topic``.

        Returns:
            function: Call it to unsubscribe.
        """
        self._subscribers[topic].append(callback)

        def unsubscribe():
            self.unsubscribe(topic, callback)

        return unsubscribe

    def unsubscribe(self, topic, callback):
        callbacks = self._subscribers.get(topic, [])
        if callback in callbacks:
            callbacks.remove(callback)

    def publish(self, topic, payload=None):
        """Call every subscriber of ``topic`` with ``payload``; returns how many ran."""
        delivered = 0
        # Copy so observers may unsubscribe while being notified
        for callback in list(self._subscribers.get(topic, [])):
            try:
                callback(payload)
                delivered += 1
            except Exception:
                logger.exception("Observer for %s failed", topic)
        return delivered

    def subscriber_count(self, topic):
        return len(self._subscribers.get(topic, []))
