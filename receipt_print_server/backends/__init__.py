"""
Receipt Print Server Backends
=============================

Rendering/printing and printer enumeration backends.
"""

from typing import Optional

from .base import RenderBackend, RenderSession, PrinterBackend, PrintOptions, PrintResult
from .cups import CupsRenderBackend, CupsPrinterBackend
from .windows import WindowsRenderBackend, WindowsPrinterBackend
from ..config import BACKEND
from ..errors import BackendUnavailable

__all__ = [
    'RenderBackend', 'RenderSession', 'PrinterBackend', 'PrintOptions', 'PrintResult',
    'CupsRenderBackend', 'CupsPrinterBackend', 'WindowsRenderBackend', 'WindowsPrinterBackend',
]

# Backend registry: name -> (render backend, printer backend)
BACKENDS = {
    'cups': (CupsRenderBackend, CupsPrinterBackend),
    'windows': (WindowsRenderBackend, WindowsPrinterBackend),
}


def get_render_backend(name: str = BACKEND) -> Optional[RenderBackend]:
    """Create the rendering backend, or None if it is not usable here."""
    classes = BACKENDS.get(name)
    if not classes:
        return None
    try:
        return classes[0]()
    except BackendUnavailable:
        return None


def get_printer_backend(name: str = BACKEND) -> Optional[PrinterBackend]:
    """Create the printer enumeration backend, or None if it is not usable here."""
    classes = BACKENDS.get(name)
    if not classes:
        return None
    try:
        return classes[1]()
    except BackendUnavailable:
        return None
