"""
Raw Device Protocol
===================

Sends raw ESC/POS bytes to a printer's TCP port (usually 9100).
Used for the paper cut after the spooler has printed a job.
"""

import logging
import socket
from typing import Optional

from .config import PRINTER_RAW_PORT
from .errors import DeviceProtocolError

logger = logging.getLogger(__name__)


# ESC/POS commands
FEED = b'\x1b\x64'  # Feed n lines
CUT = b'\x1d\x56\x00'  # Cut

CUT_COMMAND = FEED + bytes([6]) + CUT


class CutSender:
    """Best-effort raw TCP sender. Never raises to the caller."""

    def __init__(self, timeout: Optional[float] = None):
        # None keeps the transport's default connect behaviour
        self.timeout = timeout

    def _send_raw(self, host: str, port: int, data: bytes):
        """Connect, write data, close the write side."""
        try:
            sock = socket.create_connection((host, port), timeout=self.timeout)
        # Malformed hosts fail with UnicodeError (too long for idna) or TypeError
        except (OSError, ValueError, TypeError) as e:
            raise DeviceProtocolError(f'Connection to {host}:{port} failed: {e}') from e

        try:
            sock.sendall(data)
            sock.shutdown(socket.SHUT_WR)
        except OSError as e:
            raise DeviceProtocolError(f'Write to {host}:{port} failed: {e}') from e
        finally:
            sock.close()

    def send_cut(self, printer_ip: str, port: int = PRINTER_RAW_PORT) -> bool:
        """
        Feed six lines and cut.

        Returns:
            True if the command was written, False on any socket error
        """
        try:
            logger.info("Cutting: %s:%s", printer_ip, port)
            self._send_raw(printer_ip, port, CUT_COMMAND)
        except DeviceProtocolError as e:
            logger.warning("Cut error: %s", e)
            return False

        logger.info("Cut sent to %s:%s", printer_ip, port)
        return True
