"""
Receipt Print Server
====================

Local print server for thermal receipt printers.

Renders HTML or a URL through the OS spooler, then sends a raw ESC/POS
feed-and-cut command to the printer over TCP port 9100.

Usage:
    python -m receipt_print_server

API Endpoints:
    GET  /status    - Server status
    GET  /printers  - Installed printers
    POST /cut       - Send cut command
    POST /print     - Submit print job
    GET  /jobs      - Recent print jobs
"""

__version__ = '3.0.0'
__author__ = 'Restaurant Print Server'
