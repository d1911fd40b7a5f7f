"""
Config Store
============

Loads the persisted settings once, holds them in memory and writes them
back on explicit save requests.
"""

import json
import logging
import threading
from pathlib import Path
from typing import Optional, Dict, Any

from .config import DATA_DIR, CONFIG_FILENAME, PRINTER_IP_DEFAULT, DEFAULT_PAPER_WIDTH
from .errors import ConfigIOError, ValidationError
from .models import Settings

logger = logging.getLogger(__name__)


class ConfigStore:
    """Single in-memory settings instance backed by a JSON file."""

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path else Path(DATA_DIR) / CONFIG_FILENAME
        self._lock = threading.Lock()
        self.settings = self.load()

    def load(self) -> Settings:
        """Read settings from disk. Missing or corrupt files yield defaults."""
        try:
            if self.path.exists():
                with open(self.path, 'r', encoding='utf-8') as f:
                    data = json.load(f)
                if not isinstance(data, dict):
                    raise ValueError('config root is not an object')
                settings = Settings.from_dict(data)
                logger.info("Config loaded from %s", self.path)
                return settings
        except (OSError, ValueError, TypeError, ValidationError) as e:
            logger.error("Failed to load config from %s: %s", self.path, e)

        return Settings()

    def save(self, partial: Optional[Dict[str, Any]] = None) -> bool:
        """
        Merge partial into the current settings and persist everything.

        Args:
            partial: Top-level keys to replace (camelCase, as on disk)

        Returns:
            True when written. False when partial is rejected (nothing
            changes) or the write fails (the in-memory settings stay merged).
        """
        with self._lock:
            if partial:
                try:
                    if not isinstance(partial, dict):
                        raise ValidationError('config must be an object')
                    self.settings.update(partial)
                except ValidationError as e:
                    logger.error("Rejected config update: %s", e)
                    return False
            data = self.settings.to_dict()

            try:
                self._write(data)
            except ConfigIOError as e:
                logger.error("Failed to save config: %s", e)
                return False

        logger.info("Config saved to %s", self.path)
        return True

    def _write(self, data: Dict[str, Any]):
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=2)
        except OSError as e:
            raise ConfigIOError(f'{self.path}: {e}') from e

    def to_dict(self) -> Dict[str, Any]:
        with self._lock:
            return self.settings.to_dict()

    @property
    def port(self) -> int:
        return self.settings.port

    def resolve_printer_ip(self, printer_name: str) -> str:
        """IP address used for raw commands to this printer."""
        return self.settings.printer_ips.get(printer_name) or PRINTER_IP_DEFAULT

    def paper_width_for(self, printer_name: str, default: int = DEFAULT_PAPER_WIDTH) -> int:
        """Configured paper width for this printer, or default."""
        return int(self.settings.printer_paper_widths.get(printer_name) or default)
