"""
Print Job Model
===============

Represents a print job in the queue.
"""

from datetime import datetime
from dataclasses import dataclass, field
from typing import Optional, Dict, Any

from ..errors import JobStateError

PENDING = 'pending'
COMPLETED = 'completed'
FAILED = 'failed'

STATUSES = (PENDING, COMPLETED, FAILED)


@dataclass
class PrintJob:
    """Print job state."""

    id: int
    printer_name: str
    paper_width: int

    # Status
    status: str = PENDING  # pending, completed, failed
    error: Optional[str] = None

    # Timestamps
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        data = {
            'id': self.id,
            'printerName': self.printer_name,
            'status': self.status,
            'timestamp': self.timestamp.isoformat(),
            'paperWidth': self.paper_width,
        }
        if self.status == FAILED:
            data['error'] = self.error
        return data

    @property
    def is_terminal(self) -> bool:
        return self.status != PENDING

    def complete(self):
        """Mark job as completed."""
        self._check_pending(COMPLETED)
        self.status = COMPLETED

    def fail(self, error: str):
        """Mark job as failed."""
        self._check_pending(FAILED)
        self.status = FAILED
        self.error = error or 'Print failed'

    def _check_pending(self, target: str):
        if self.status != PENDING:
            raise JobStateError(f'Job {self.id}: cannot move from {self.status} to {target}')
