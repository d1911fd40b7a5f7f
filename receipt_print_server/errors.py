"""
Print Server Errors
===================
"""

from typing import List, Optional


class PrintServerError(Exception):
    """Base class for print server errors."""


class ValidationError(PrintServerError):
    """Request is missing required fields. Raised before any job exists."""


class BackendUnavailable(PrintServerError):
    """No rendering or enumeration backend is available."""


class PrintFailure(PrintServerError):
    """The backend reported that a print job failed."""

    def __init__(self, reason: str, job_id: Optional[int] = None):
        super().__init__(reason)
        self.reason = reason
        self.job_id = job_id


class DeviceProtocolError(PrintServerError):
    """Raw socket connect or write to a printer failed."""


class ConfigIOError(PrintServerError):
    """Config file could not be written."""


class PortConflictError(PrintServerError):
    """Requested listening port is already bound."""

    def __init__(self, port: int, suggestions: Optional[List[int]] = None):
        self.port = port
        self.suggestions = suggestions or [port + 1, port + 10, 9999]
        alternatives = ', '.join(str(p) for p in self.suggestions[:-1])
        super().__init__(
            f'Port {port} is already in use. Try: {alternatives}, or {self.suggestions[-1]}'
        )


class JobStateError(PrintServerError):
    """Invalid print job status transition."""
