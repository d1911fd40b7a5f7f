"""
Base Backends
=============

Abstract rendering/printing and printer enumeration backends.
"""

import os
import logging
import tempfile
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, List

import requests

from ..config import URL_FETCH_TIMEOUT
from ..models import PrinterInfo

logger = logging.getLogger(__name__)


@dataclass
class PrintOptions:
    """Options passed to the spooler for one job."""

    device_name: str
    paper_width: int
    print_background: bool = True
    margins: str = 'none'
    silent: bool = True
    title: str = 'Receipt'


@dataclass
class PrintResult:
    """Outcome of a backend print call."""

    success: bool
    message: str = ''
    failure_reason: Optional[str] = None

    @classmethod
    def ok(cls, message: str = '') -> 'PrintResult':
        return cls(success=True, message=message)

    @classmethod
    def failed(cls, reason: str) -> 'PrintResult':
        return cls(success=False, failure_reason=reason or 'Print failed')


class RenderSession(ABC):
    """
    Rendering context for a single job.

    Use as a context manager; close() runs on every exit path.
    """

    def __enter__(self) -> 'RenderSession':
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    @abstractmethod
    def load_content(self, html: str):
        """
        Load HTML markup.

        Raises:
            Exception: when the content cannot be loaded
        """
        pass

    @abstractmethod
    def load_url(self, url: str):
        """
        Load a URL.

        Raises:
            Exception: when the URL cannot be loaded
        """
        pass

    @abstractmethod
    def print(self, options: PrintOptions) -> PrintResult:
        """Submit the loaded document to the spooler."""
        pass

    def close(self):
        """Release the rendering context."""
        pass


class FileRenderSession(RenderSession):
    """
    Loaded document kept as a temporary HTML file for a spooler command.

    URLs are fetched with requests and stored like inline content.
    """

    def __init__(self, fetch_timeout: int = URL_FETCH_TIMEOUT):
        self._fetch_timeout = fetch_timeout
        self._html: Optional[str] = None
        self._file: Optional[str] = None

    def _store(self, html: str):
        self._html = html
        self._write(html)

    def _write(self, html: str):
        if self._file is None:
            fd, self._file = tempfile.mkstemp(prefix='receipt-', suffix='.html')
            os.close(fd)
        with open(self._file, 'w', encoding='utf-8') as f:
            f.write(html)

    def load_content(self, html: str):
        self._store(html)

    def load_url(self, url: str):
        response = requests.get(url, timeout=self._fetch_timeout)
        response.raise_for_status()
        self._store(response.text)

    @staticmethod
    def _remove(path: str):
        try:
            os.remove(path)
        except OSError as e:
            logger.debug("Could not remove %s: %s", path, e)

    def close(self):
        if self._file:
            self._remove(self._file)
            self._file = None


class RenderBackend(ABC):
    """Factory for rendering sessions."""

    name = 'base'

    @abstractmethod
    def open_session(self) -> RenderSession:
        pass


class PrinterBackend(ABC):
    """Enumerates installed printers."""

    name = 'base'

    @abstractmethod
    def list_printers(self) -> List[PrinterInfo]:
        """
        Get installed printers.

        Raises:
            BackendUnavailable: when the print system cannot be queried
        """
        pass
