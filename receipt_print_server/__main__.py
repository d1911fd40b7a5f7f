"""
Receipt Print Server - Entry Point

Run: python -m receipt_print_server
"""

import sys
import logging

from . import __version__
from .app import build_services, create_app, get_local_ip
from .commands import CommandChannel
from .config import HOST, PORT_OVERRIDE, LOG_LEVEL, PRINTER_IP_DEFAULT, PRINTER_RAW_PORT, BACKEND
from .errors import PortConflictError
from .server import ServerRunner


def main():
    """Run the service."""
    logging.basicConfig(
        level=getattr(logging, LOG_LEVEL, logging.INFO),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    services = build_services()
    app = create_app(services)
    runner = ServerRunner(app, services.store, host=HOST)
    # Desktop shells attach here
    app.extensions['receipt_print_server_commands'] = CommandChannel(services, runner)

    port = int(PORT_OVERRIDE) if PORT_OVERRIDE else services.store.port

    print("=" * 60)
    print("  Receipt Print Server")
    print("=" * 60)
    print(f"  Version: {__version__}")
    print(f"  Backend: {BACKEND}")
    print(f"  Config:  {services.store.path}")
    print(f"  Local:   http://localhost:{port}")
    print(f"  Network: http://{get_local_ip()}:{port}")
    print(f"  Default printer IP: {PRINTER_IP_DEFAULT}:{PRINTER_RAW_PORT}")
    print("=" * 60)
    print("  API Endpoints:")
    print("    GET  /status    - Server status")
    print("    GET  /printers  - List printers")
    print("    POST /cut       - Send cut command")
    print("    POST /print     - Print HTML or URL")
    print("    GET  /jobs      - Recent print jobs")
    print("=" * 60)

    try:
        runner.start(port)
    except PortConflictError as e:
        print(f"  {e}")
        return 1

    services.monitor.start()

    try:
        runner.serve_forever()
    except KeyboardInterrupt:
        pass
    finally:
        services.monitor.stop()
        runner.stop()
    return 0


if __name__ == '__main__':
    sys.exit(main())
