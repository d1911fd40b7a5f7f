"""
HTTP Server Runner
==================

Runs the Flask app on a background thread so the listening port can be
swapped at runtime.
"""

import os
import socket
import logging
import threading
from typing import Optional, Tuple

from flask import Flask
from werkzeug.serving import make_server, BaseWSGIServer, select_address_family, get_sockaddr

from .config import HOST
from .errors import PortConflictError
from .store import ConfigStore

logger = logging.getLogger(__name__)

LISTEN_BACKLOG = 128


def is_port_available(port: int, host: str = HOST) -> bool:
    """Check whether port can be bound on host."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    try:
        sock.bind((host, port))
        return True
    except OSError:
        return False
    finally:
        sock.close()


def bind_listener(host: str, port: int) -> socket.socket:
    """
    Bind and listen on host:port.

    werkzeug's make_server exits the process when its own bind fails, so
    the socket is prepared here and handed over by descriptor.

    Raises:
        PortConflictError: port cannot be bound
    """
    family = select_address_family(host, port)
    sock = socket.socket(family, socket.SOCK_STREAM)
    try:
        if os.name != 'nt':
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.bind(get_sockaddr(host, port, family))
        sock.listen(LISTEN_BACKLOG)
    except OSError as e:
        sock.close()
        logger.error("Port %s is already in use: %s", port, e)
        raise PortConflictError(port) from e
    return sock


class ServerRunner:
    """Owns the listening HTTP server."""

    def __init__(self, app: Flask, store: ConfigStore, host: str = HOST):
        self.app = app
        self.store = store
        self.host = host
        self.port: Optional[int] = None
        self._server: Optional[BaseWSGIServer] = None
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()
        self._stopped = threading.Event()

    @property
    def running(self) -> bool:
        return self._server is not None

    def start(self, port: Optional[int] = None):
        """
        Start listening.

        Raises:
            PortConflictError: port already in use
        """
        port = port or self.store.port
        with self._lock:
            self._attach(port, *self._launch(port))
        self._stopped.clear()

    def _launch(self, port: int) -> Tuple[BaseWSGIServer, threading.Thread]:
        """Bind port and serve it on a new thread. Leaves the current server alone."""
        sock = bind_listener(self.host, port)
        try:
            # make_server duplicates the descriptor
            server = make_server(self.host, port, self.app, threaded=True, fd=sock.fileno())
        finally:
            sock.close()

        thread = threading.Thread(target=server.serve_forever, daemon=True, name=f'http-{port}')
        thread.start()
        return server, thread

    def _attach(self, port: int, server: BaseWSGIServer, thread: threading.Thread):
        self._server = server
        self._thread = thread
        self.port = port
        logger.info("Server running on http://%s:%s", self.host, port)

    def stop(self):
        with self._lock:
            self._stop()
        self._stopped.set()

    def _stop(self):
        if self._server is not None:
            self._server.shutdown()
            self._server.server_close()
            self._server = None
        if self._thread is not None:
            self._thread.join(timeout=5)
            self._thread = None

    def change_port(self, new_port: int) -> str:
        """
        Move the server to new_port and persist it.

        The new port is bound before the current server is shut down, so
        the current server keeps running when new_port is taken.

        Raises:
            PortConflictError: new_port already in use
        """
        new_port = int(new_port)
        if not 0 < new_port < 65536:
            raise ValueError(f'Invalid port: {new_port}')
        with self._lock:
            if not is_port_available(new_port, self.host):
                raise PortConflictError(new_port)

            server, thread = self._launch(new_port)
            self._stop()
            self._attach(new_port, server, thread)

        self.store.save({'port': new_port})
        return f'Server restarted on port {new_port}'

    def serve_forever(self):
        """Block until stop() is called."""
        while not self._stopped.wait(1):
            pass
