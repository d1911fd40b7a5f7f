"""
Printer Status Monitor
======================

Polls the printer enumeration backend and publishes a
printer-status-change event whenever a printer's status code differs
from the last one seen.
"""

import logging
import threading
from typing import Dict, List, Optional

from .backends import PrinterBackend
from .config import STATUS_POLL_INTERVAL
from .events import EventBus, PRINTER_STATUS_CHANGE

logger = logging.getLogger(__name__)


class PrinterStatusMonitor:
    """Background checker for printer status changes."""

    def __init__(self, backend: Optional[PrinterBackend], events: EventBus,
                 interval: float = STATUS_POLL_INTERVAL):
        self.backend = backend
        self.events = events
        self.interval = interval

        self._cache: Dict[str, int] = {}
        self._lock = threading.Lock()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self):
        """Starts the background checker thread."""
        if self.backend is None:
            logger.warning("No printer backend available, status monitor disabled")
            return

        if self._thread and self._thread.is_alive():
            return

        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, daemon=True, name="PrinterStatus")
        self._thread.start()
        logger.info("Printer status monitor started (every %ss)", self.interval)

    def stop(self):
        """Stops the background checker."""
        self._stop.set()
        if self._thread:
            self._thread.join(timeout=1.0)
            self._thread = None

    def _loop(self):
        while not self._stop.wait(self.interval):
            self.poll()

    def poll(self) -> List[dict]:
        """
        Run one check.

        Returns:
            The change events published during this check
        """
        if self.backend is None:
            return []

        try:
            printers = self.backend.list_printers()
        except Exception as e:
            logger.error("Failed to check printer status: %s", e)
            return []

        changes = []
        with self._lock:
            for printer in printers:
                if self._cache.get(printer.name) != printer.status:
                    self._cache[printer.name] = printer.status
                    changes.append({'name': printer.name, 'status': printer.status})

        for change in changes:
            self.events.publish(PRINTER_STATUS_CHANGE, change)
        return changes

    def get_cached_status(self, printer_name: str) -> Optional[int]:
        """Last observed status, None if never observed."""
        with self._lock:
            return self._cache.get(printer_name)
