"""
Event Bus
=========

Push channel between the core and whatever shell is attached to it
(settings UI, desktop notifications). The core publishes events without
knowing how they are delivered.

Events:
    print-job-update       - list of recent jobs (dicts)
    printer-status-change  - {'name': ..., 'status': ...}
    notification           - {'title': ..., 'body': ..., 'urgency': ...}
"""

import logging
import threading
from typing import Callable, Dict, List, Any

logger = logging.getLogger(__name__)

PRINT_JOB_UPDATE = 'print-job-update'
PRINTER_STATUS_CHANGE = 'printer-status-change'
NOTIFICATION = 'notification'

Subscriber = Callable[[str, Any], None]


class EventBus:
    """Fan-out of named events to subscribers."""

    def __init__(self):
        self._subscribers: Dict[str, List[Subscriber]] = {}
        self._lock = threading.Lock()

    def subscribe(self, event: str, callback: Subscriber) -> Callable[[], None]:
        """Register callback(event, payload). Returns an unsubscribe function."""
        with self._lock:
            self._subscribers.setdefault(event, []).append(callback)

        def unsubscribe():
            with self._lock:
                callbacks = self._subscribers.get(event, [])
                if callback in callbacks:
                    callbacks.remove(callback)

        return unsubscribe

    def publish(self, event: str, payload: Any = None):
        """Deliver payload to every subscriber of event."""
        with self._lock:
            callbacks = list(self._subscribers.get(event, []))

        for callback in callbacks:
            try:
                callback(event, payload)
            except Exception:
                logger.exception("Subscriber for %s failed", event)


class Notifier:
    """User-visible notifications, delivered through the event bus."""

    def __init__(self, events: EventBus):
        self.events = events

    def notify(self, title: str, body: str, is_error: bool = False):
        if is_error:
            logger.warning("%s: %s", title, body.replace('\n', ' | '))
        else:
            logger.info("%s: %s", title, body.replace('\n', ' | '))

        self.events.publish(NOTIFICATION, {
            'title': title,
            'body': body,
            'urgency': 'critical' if is_error else 'normal',
        })
