#!/usr/bin/env python
"""
Receipt Print Server - Standalone Entry Point

Run directly:
    python main.py

Or with environment variables:
    PRINT_SERVER_PORT=9200 PRINTER_IP_DEFAULT=192.168.1.50 python main.py
"""

import os
import sys

# Ensure package is importable when running directly
if __name__ == '__main__':
    package_dir = os.path.dirname(os.path.abspath(__file__))
    if package_dir not in sys.path:
        sys.path.insert(0, package_dir)

from receipt_print_server.__main__ import main


if __name__ == '__main__':
    sys.exit(main())
