"""
CUPS Backend
============

Spools HTML receipts with `lp` and enumerates printers with `lpstat`.
URL jobs are fetched with requests and spooled like inline content.
"""

import os
import re
import shutil
import logging
import subprocess
from typing import List, Sequence

from .base import RenderBackend, RenderSession, FileRenderSession, PrinterBackend, PrintOptions, PrintResult
from ..config import LP_PATH, LPSTAT_PATH, URL_FETCH_TIMEOUT
from ..errors import BackendUnavailable
from ..models import PrinterInfo

logger = logging.getLogger(__name__)

# CUPS printer-state values (RFC 8011)
STATE_IDLE = 3
STATE_PROCESSING = 4
STATE_STOPPED = 5

_PRINTER_LINE = re.compile(r'^printer (?P<name>\S+) (?P<state>is idle|now printing|disabled)')
_DESCRIPTION_LINE = re.compile(r'^\s+Description: (?P<description>.*)$')
_DEFAULT_LINE = re.compile(r'^system default destination: (?P<name>\S+)')

# Receipt rolls have no fixed length; give CUPS a long page
ROLL_LENGTH_MM = 297


def _run(cmd: Sequence[str]) -> subprocess.CompletedProcess:
    env = dict(os.environ, LANG='C', LC_ALL='C')
    return subprocess.run(list(cmd), capture_output=True, text=True, env=env)


class CupsSession(FileRenderSession):
    """Spools the loaded document with `lp`."""

    def __init__(self, lp_path: str = LP_PATH, fetch_timeout: int = URL_FETCH_TIMEOUT):
        super().__init__(fetch_timeout)
        self._lp_path = lp_path

    def print(self, options: PrintOptions) -> PrintResult:
        if not self._file:
            return PrintResult.failed('Nothing loaded')

        if shutil.which(self._lp_path) is None:
            return PrintResult.failed(f"CUPS not available: '{self._lp_path}' not found in PATH")

        cmd = [
            self._lp_path,
            '-d', options.device_name,
            '-t', options.title,
            '-o', f'media=Custom.{options.paper_width}x{ROLL_LENGTH_MM}mm',
        ]
        if options.margins == 'none':
            for side in ('left', 'right', 'top', 'bottom'):
                cmd.extend(['-o', f'page-{side}=0'])
        cmd.append(self._file)

        proc = _run(cmd)
        if proc.returncode != 0:
            out = (proc.stdout or '') + (proc.stderr or '')
            return PrintResult.failed(f'lp failed (rc={proc.returncode}): {out.strip()}')

        return PrintResult.ok((proc.stdout or '').strip())


class CupsRenderBackend(RenderBackend):
    """Rendering backend using the CUPS command line tools."""

    name = 'cups'

    def __init__(self, lp_path: str = LP_PATH):
        self.lp_path = lp_path

    def open_session(self) -> RenderSession:
        return CupsSession(self.lp_path)


class CupsPrinterBackend(PrinterBackend):
    """Printer enumeration using `lpstat`."""

    name = 'cups'

    def __init__(self, lpstat_path: str = LPSTAT_PATH):
        self.lpstat_path = lpstat_path

    def _lpstat(self, *args: str) -> str:
        if shutil.which(self.lpstat_path) is None:
            raise BackendUnavailable(f"CUPS not available: '{self.lpstat_path}' not found in PATH")

        proc = _run([self.lpstat_path, *args])
        out = (proc.stdout or '') + (proc.stderr or '')
        if proc.returncode != 0 and 'no destinations' not in out.lower() \
                and 'no system default' not in out.lower():
            raise BackendUnavailable(f'lpstat failed (rc={proc.returncode}): {out.strip()}')
        return proc.stdout or ''

    def list_printers(self) -> List[PrinterInfo]:
        default_name = None
        for line in self._lpstat('-d').splitlines():
            match = _DEFAULT_LINE.match(line)
            if match:
                default_name = match.group('name')

        printers: List[PrinterInfo] = []
        for line in self._lpstat('-l', '-p').splitlines():
            match = _PRINTER_LINE.match(line)
            if match:
                state = match.group('state')
                if state == 'is idle':
                    status = STATE_IDLE
                elif state == 'now printing':
                    status = STATE_PROCESSING
                else:
                    status = STATE_STOPPED

                name = match.group('name')
                printers.append(PrinterInfo(
                    name=name,
                    is_default=(name == default_name),
                    status=status,
                ))
                continue

            match = _DESCRIPTION_LINE.match(line)
            if match and printers and match.group('description').strip():
                printers[-1].display_name = match.group('description').strip()

        return printers
