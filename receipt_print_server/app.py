"""
Receipt Print Server - HTTP Application
=======================================

Local HTTP surface for POS systems and web apps.

Run: python -m receipt_print_server
"""

import socket
import logging
from dataclasses import dataclass
from typing import Optional

from flask import Flask, request, jsonify, current_app
from flask_cors import CORS

from . import __version__
from .backends import RenderBackend, PrinterBackend, get_render_backend, get_printer_backend
from .config import MAX_CONTENT_LENGTH, PRINTER_IP_DEFAULT, PRINTER_RAW_PORT
from .errors import ValidationError, BackendUnavailable, PrintFailure
from .events import EventBus
from .jobs import PrintJobManager
from .monitor import PrinterStatusMonitor
from .protocol import CutSender
from .store import ConfigStore

logger = logging.getLogger(__name__)

EXTENSION_KEY = 'receipt_print_server'


@dataclass
class Services:
    """Everything the HTTP and command surfaces talk to."""

    store: ConfigStore
    events: EventBus
    manager: PrintJobManager
    monitor: PrinterStatusMonitor
    printer_backend: Optional[PrinterBackend]
    cut_sender: CutSender


def build_services(store: Optional[ConfigStore] = None,
                   render_backend: Optional[RenderBackend] = None,
                   printer_backend: Optional[PrinterBackend] = None,
                   cut_sender: Optional[CutSender] = None,
                   events: Optional[EventBus] = None,
                   **manager_options) -> Services:
    """Wire the core together. Missing backends are picked from config."""
    store = store or ConfigStore()
    events = events or EventBus()
    cut_sender = cut_sender or CutSender()
    if render_backend is None:
        render_backend = get_render_backend()
    if printer_backend is None:
        printer_backend = get_printer_backend()

    manager = PrintJobManager(render_backend, store, events=events, cut_sender=cut_sender,
                              **manager_options)
    monitor = PrinterStatusMonitor(printer_backend, events)
    return Services(store=store, events=events, manager=manager, monitor=monitor,
                    printer_backend=printer_backend, cut_sender=cut_sender)


def get_local_ip() -> str:
    """First non-loopback IPv4 address of this machine."""
    try:
        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        try:
            # No packets are sent; this only selects the outgoing interface
            sock.connect(('10.255.255.255', 1))
            ip = sock.getsockname()[0]
        finally:
            sock.close()
        if not ip.startswith('127.'):
            return ip
    except OSError:
        pass
    return 'localhost'


def list_printers(services: Services):
    """Installed printers. Raises BackendUnavailable without a backend."""
    if services.printer_backend is None:
        raise BackendUnavailable('No printer backend available')
    return services.printer_backend.list_printers()


def _services() -> Services:
    return current_app.extensions[EXTENSION_KEY]


def _json_body() -> dict:
    """Request JSON object. Missing, malformed or non-object bodies read as {}."""
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


# =============================================================================
# Application Setup
# =============================================================================

def create_app(services: Optional[Services] = None) -> Flask:
    """Create the Flask app bound to services."""
    app = Flask(__name__)
    app.config['MAX_CONTENT_LENGTH'] = MAX_CONTENT_LENGTH
    CORS(app, origins='*', methods=['GET', 'POST'])

    app.extensions[EXTENSION_KEY] = services or build_services()

    # =========================================================================
    # Status
    # =========================================================================

    @app.route('/status', methods=['GET'])
    def status():
        """Server status."""
        return jsonify({
            'running': True,
            'version': __version__,
            'port': _services().store.port,
            'ip': get_local_ip(),
            'printer_ip_default': PRINTER_IP_DEFAULT,
            'printer_raw_port': PRINTER_RAW_PORT,
        })

    # =========================================================================
    # Printers
    # =========================================================================

    @app.route('/printers', methods=['GET'])
    def printers():
        """List installed printers."""
        try:
            found = list_printers(_services())
        except Exception as e:
            logger.error("Failed to list printers: %s", e)
            return jsonify({'success': False, 'error': str(e)}), 500

        return jsonify({
            'success': True,
            'printers': [p.to_dict() for p in found],
        })

    # =========================================================================
    # Printing
    # =========================================================================

    @app.route('/cut', methods=['POST'])
    def cut():
        """Send the cut command to printerIp or the default printer IP."""
        data = _json_body()
        ip = data.get('printerIp') or PRINTER_IP_DEFAULT

        _services().cut_sender.send_cut(ip, PRINTER_RAW_PORT)

        return jsonify({
            'success': True,
            'message': f'Cut sent to {ip}:{PRINTER_RAW_PORT}',
        })

    @app.route('/print', methods=['POST'])
    def print_document():
        """Print HTML content or a URL, then cut."""
        data = _json_body()

        try:
            message = _services().manager.print_job(
                data.get('printerName'),
                content=data.get('content'),
                url=data.get('url'),
                paper_width=data.get('paperWidth'),
            )
        except ValidationError as e:
            return jsonify({'success': False, 'error': str(e)}), 400
        except (BackendUnavailable, PrintFailure) as e:
            return jsonify({'success': False, 'error': str(e)}), 500

        return jsonify({'success': True, 'message': message})

    # =========================================================================
    # Job History
    # =========================================================================

    @app.route('/jobs', methods=['GET'])
    def jobs():
        """Recent jobs, most recent first."""
        recent = _services().manager.get_recent_jobs()
        return jsonify({
            'success': True,
            'jobs': [j.to_dict() for j in recent],
            'count': len(recent),
        })

    return app
