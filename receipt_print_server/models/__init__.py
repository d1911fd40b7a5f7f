"""
Receipt Print Server Models
"""

from .printer import PrinterInfo
from .job import PrintJob, PENDING, COMPLETED, FAILED
from .settings import Settings

__all__ = ['PrinterInfo', 'PrintJob', 'Settings', 'PENDING', 'COMPLETED', 'FAILED']
