"""
Local Command Channel
=====================

Process-internal commands for a desktop shell (settings window, tray).
Every command returns plain JSON-compatible data.

Usage:
    channel = CommandChannel(services, runner)
    channel.handle('get-print-queue')
    channel.handle('remove-job', job_id)
"""

import logging
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from .app import Services, get_local_ip, list_printers
from .config import DEFAULT_PAPER_WIDTH, CUT_SPACING_MARKER, CUT_SPACING_MM
from .errors import PrintServerError, PortConflictError
from .events import Notifier
from .server import ServerRunner

logger = logging.getLogger(__name__)


def build_test_page(printer_name: str, paper_width: int) -> str:
    """Self-contained test receipt, already fitted to the paper width."""
    now = datetime.now().strftime('%Y-%m-%d %H:%M:%S')
    return f"""<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<style>
@page {{ size: {paper_width}mm auto; margin: 0; }}
body {{
    width: {paper_width}mm;
    font-family: monospace;
    margin: 0;
    padding: 10mm;
    font-size: 12pt;
}}
h1 {{
    text-align: center;
    border-top: 2px solid #000;
    border-bottom: 2px solid #000;
    padding: 5mm 0;
}}
.line {{
    border-top: 1px dashed #000;
    margin: 5mm 0;
}}
.center {{ text-align: center; }}
</style>
</head>
<body>
<h1>TEST PRINT</h1>
<div class="center"><strong>RESTAURANT PRINT SERVER</strong></div>
<div class="line"></div>
<p><strong>Printer:</strong> {printer_name}</p>
<p><strong>Paper Width:</strong> {paper_width}mm</p>
<p><strong>Time:</strong> {now}</p>
<div class="line"></div>
<div class="center">Print OK</div>
<div class="{CUT_SPACING_MARKER}" style="height: {CUT_SPACING_MM}mm"></div>
</body>
</html>"""


class CommandChannel:
    """Dispatches named commands to the core."""

    def __init__(self, services: Services, runner: Optional[ServerRunner] = None):
        self.services = services
        self.runner = runner
        self.notifier = Notifier(services.events)

        self._commands: Dict[str, Callable[..., Any]] = {
            'get-printers': self.get_printers,
            'test-print': self.test_print,
            'get-server-status': self.get_server_status,
            'get-autolaunch-status': self.get_autolaunch_status,
            'set-autolaunch': self.set_autolaunch,
            'save-config': self.save_config,
            'get-config': self.get_config,
            'change-port': self.change_port,
            'get-print-queue': self.get_print_queue,
            'remove-job': self.remove_job,
            'clear-failed-jobs': self.clear_failed_jobs,
            'show-notification': self.show_notification,
        }

    @property
    def commands(self):
        return sorted(self._commands)

    def handle(self, command: str, *args, **kwargs) -> Any:
        """Run a command by name."""
        handler = self._commands.get(command)
        if handler is None:
            raise ValueError(f'Unknown command: {command}')
        return handler(*args, **kwargs)

    # =========================================================================
    # Printers
    # =========================================================================

    def get_printers(self):
        try:
            return [p.to_dict() for p in list_printers(self.services)]
        except Exception as e:
            logger.warning("get-printers failed: %s", e)
            return []

    def test_print(self, printer_name: str, paper_width: int = DEFAULT_PAPER_WIDTH):
        width = self.services.store.paper_width_for(printer_name, paper_width)
        try:
            message = self.services.manager.print_job(
                printer_name, content=build_test_page(printer_name, width), paper_width=width
            )
            return {'success': True, 'message': message}
        except PrintServerError as e:
            return {'success': False, 'message': str(e)}

    # =========================================================================
    # Server
    # =========================================================================

    def get_server_status(self):
        port = self.runner.port if self.runner and self.runner.port else self.services.store.port
        return {
            'running': bool(self.runner and self.runner.running),
            'port': port,
            'url': f'http://{get_local_ip()}:{port}',
        }

    def change_port(self, new_port: int):
        if self.runner is None:
            return {'success': False, 'message': 'Server is not managed by this process'}
        try:
            return {'success': True, 'message': self.runner.change_port(int(new_port))}
        except (PortConflictError, OSError, ValueError) as e:
            return {'success': False, 'message': str(e)}

    def get_autolaunch_status(self):
        return False

    def set_autolaunch(self, enabled: bool):
        return {'success': False, 'message': 'Auto-launch not supported'}

    # =========================================================================
    # Config
    # =========================================================================

    def save_config(self, new_config: Dict[str, Any]):
        return {'success': self.services.store.save(new_config or {})}

    def get_config(self):
        return self.services.store.to_dict()

    # =========================================================================
    # Queue
    # =========================================================================

    def get_print_queue(self):
        return [j.to_dict() for j in self.services.manager.get_recent_jobs()]

    def remove_job(self, job_id: int):
        return {'success': self.services.manager.remove_job(job_id)}

    def clear_failed_jobs(self):
        return {'success': True, 'removed': self.services.manager.clear_failed_jobs()}

    # =========================================================================
    # Notifications
    # =========================================================================

    def show_notification(self, title: str, message: str):
        self.notifier.notify(title, message)
        return {'success': True}
