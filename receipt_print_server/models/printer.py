"""
Printer Model
=============

An installed printer as reported by the enumeration backend.
"""

from dataclasses import dataclass
from typing import Dict, Any


@dataclass
class PrinterInfo:
    """Installed printer and its last reported status code."""

    name: str
    display_name: str = ""
    is_default: bool = False
    status: int = 0

    def __post_init__(self):
        if not self.display_name:
            self.display_name = self.name
        self.status = int(self.status or 0)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'name': self.name,
            'displayName': self.display_name,
            'isDefault': bool(self.is_default),
            'status': self.status,
        }
