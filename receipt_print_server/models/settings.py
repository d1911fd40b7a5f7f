"""
Settings Model
==============

Persisted server settings. Field names on disk are camelCase so existing
printer-config.json files stay readable.
"""

from dataclasses import dataclass, field
from typing import Dict, Any, List

from ..config import DEFAULT_PORT
from ..errors import ValidationError

# JSON key -> attribute name
FIELDS = {
    'port': 'port',
    'printerAliases': 'printer_aliases',
    'printerPaperWidths': 'printer_paper_widths',
    'favoritePrinters': 'favorite_printers',
    'printerIPs': 'printer_ips',
}


def _unique(items) -> List[str]:
    seen = []
    for item in items or []:
        if item not in seen:
            seen.append(item)
    return seen


@dataclass
class Settings:
    """Server settings."""

    port: int = DEFAULT_PORT
    printer_aliases: Dict[str, str] = field(default_factory=dict)
    printer_paper_widths: Dict[str, int] = field(default_factory=dict)
    favorite_printers: List[str] = field(default_factory=list)
    printer_ips: Dict[str, str] = field(default_factory=dict)

    # Keys we don't know about, written back untouched
    extra: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        self.favorite_printers = _unique(self.favorite_printers)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        data = dict(self.extra)
        for key, attr in FIELDS.items():
            value = getattr(self, attr)
            data[key] = list(value) if isinstance(value, list) else (
                dict(value) if isinstance(value, dict) else value)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Settings':
        """Create from dictionary."""
        settings = cls()
        settings.update(data)
        return settings

    def update(self, partial: Dict[str, Any]):
        """
        Shallow merge: keys in partial replace the current values wholesale.

        Every value is checked before anything is applied.

        Raises:
            ValidationError: a known key has a value of the wrong shape
        """
        changes = {}
        for key, value in partial.items():
            attr = FIELDS.get(key)
            try:
                changes[key] = _coerce(attr, value)
            except (TypeError, ValueError) as e:
                raise ValidationError(f'Invalid value for {key}: {value!r}') from e

        for key, value in changes.items():
            attr = FIELDS.get(key)
            if attr is None:
                self.extra[key] = value
            else:
                setattr(self, attr, value)


def _coerce(attr, value):
    if attr is None:
        return value
    if attr == 'port':
        if isinstance(value, bool):
            raise TypeError('port must be a number')
        port = int(value)
        if not 0 < port < 65536:
            raise ValueError('port out of range')
        return port
    if attr == 'favorite_printers':
        if isinstance(value, (str, dict)):
            raise TypeError('expected a list')
        return _unique(value)
    if value is not None and not isinstance(value, dict):
        raise TypeError('expected an object')
    if attr == 'printer_paper_widths':
        widths = {name: int(width) for name, width in (value or {}).items()}
        if any(width <= 0 for width in widths.values()):
            raise ValueError('paper widths must be positive')
        return widths
    return dict(value or {})
