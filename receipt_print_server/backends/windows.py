"""
Windows Backend
===============

Printer enumeration and HTML printing through the Windows spooler.
Uses pywin32 (pip install receipt-print-server[windows]).
"""

import sys
import logging
import threading
from typing import List

from .base import RenderBackend, RenderSession, FileRenderSession, PrinterBackend, PrintOptions, PrintResult
from ..config import URL_FETCH_TIMEOUT, SPOOL_FILE_TTL
from ..errors import BackendUnavailable
from ..models import PrinterInfo

logger = logging.getLogger(__name__)


def _check_platform():
    if sys.platform != 'win32':
        raise BackendUnavailable("Windows backend requires Windows")


def page_style(options: PrintOptions) -> str:
    """CSS carrying the paper width, margins and background setting."""
    margin = ' margin: 0;' if options.margins == 'none' else ''
    css = f'@page {{ size: {options.paper_width}mm auto;{margin} }}'
    if options.print_background:
        css += ' * { -webkit-print-color-adjust: exact; print-color-adjust: exact; }'
    return f'<style>{css}</style>'


def with_page_style(html: str, options: PrintOptions) -> str:
    """Insert page_style() before </head>, or ahead of the document without one."""
    style = page_style(options)
    index = html.lower().find('</head>')
    if index == -1:
        return style + html
    return html[:index] + style + html[index:]


class WindowsSession(FileRenderSession):
    """
    Prints the loaded document through the shell's `printto` verb.

    The shell verb takes no page options, so they travel inside the
    document as CSS.
    """

    def __init__(self, fetch_timeout: int = URL_FETCH_TIMEOUT, cleanup_delay: float = SPOOL_FILE_TTL):
        super().__init__(fetch_timeout)
        self._cleanup_delay = cleanup_delay

    def print(self, options: PrintOptions) -> PrintResult:
        if not self._file:
            return PrintResult.failed('Nothing loaded')

        try:
            import win32api

            self._write(with_page_style(self._html, options))

            # printto hands the file to the registered HTML handler and returns
            win32api.ShellExecute(0, 'printto', self._file, f'"{options.device_name}"', '.', 0)
            return PrintResult.ok(f'Spooled to {options.device_name}')

        except ImportError as e:
            return PrintResult.failed(f'Missing module: {e}. Install: pip install pywin32')
        except Exception as e:
            return PrintResult.failed(str(e))

    def close(self):
        if not self._file:
            return
        timer = threading.Timer(self._cleanup_delay, self._remove, (self._file,))
        timer.daemon = True
        timer.start()
        self._file = None



class WindowsRenderBackend(RenderBackend):
    name = 'windows'

    def __init__(self):
        _check_platform()

    def open_session(self) -> RenderSession:
        return WindowsSession()


class WindowsPrinterBackend(PrinterBackend):
    name = 'windows'

    def __init__(self):
        _check_platform()

    def list_printers(self) -> List[PrinterInfo]:
        try:
            import win32print

            printers = win32print.EnumPrinters(
                win32print.PRINTER_ENUM_LOCAL | win32print.PRINTER_ENUM_CONNECTIONS, None, 2
            )
            try:
                default_name = win32print.GetDefaultPrinter()
            except Exception:
                default_name = None

            return [
                PrinterInfo(
                    name=p['pPrinterName'],
                    display_name=p.get('pComment') or p['pPrinterName'],
                    is_default=(p['pPrinterName'] == default_name),
                    status=p.get('Status', 0),
                )
                for p in printers
            ]

        except ImportError as e:
            raise BackendUnavailable(f'Missing module: {e}. Install: pip install pywin32') from e
