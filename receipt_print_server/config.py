"""
Receipt Print Server Configuration
"""

import os
import sys

# =============================================================================
# Server Configuration
# =============================================================================

HOST = os.environ.get('PRINT_SERVER_HOST', '0.0.0.0')
DEFAULT_PORT = 9100
PORT_OVERRIDE = os.environ.get('PRINT_SERVER_PORT')
DEBUG = os.environ.get('PRINT_SERVER_DEBUG', 'false').lower() == 'true'
LOG_LEVEL = os.environ.get('PRINT_SERVER_LOG_LEVEL', 'INFO').upper()

# Max accepted request body (HTML receipts can carry inline images)
MAX_CONTENT_LENGTH = 50 * 1024 * 1024

# =============================================================================
# Printer Defaults
# =============================================================================

# Fallback for printers without an entry in printerIPs
PRINTER_IP_DEFAULT = os.environ.get('PRINTER_IP_DEFAULT', '192.168.68.100')
PRINTER_RAW_PORT = 9100

DEFAULT_PAPER_WIDTH = 80  # mm

# Content carrying this marker has already been adjusted to the paper width
CUT_SPACING_MARKER = 'cut-spacing'
CUT_SPACING_MM = 30

# =============================================================================
# Job Timing
# =============================================================================

# Wait between content load and the print call (seconds)
SETTLE_DELAY = float(os.environ.get('PRINT_SETTLE_DELAY', '0.5'))

# Wait between a successful print and the cut command (seconds)
CUT_DELAY = float(os.environ.get('PRINT_CUT_DELAY', '1.2'))

# Concurrent jobs for the same printer are not serialized unless enabled
SERIALIZE_PER_PRINTER = os.environ.get('PRINT_SERIALIZE_PER_PRINTER', 'false').lower() == 'true'

RECENT_JOBS_LIMIT = 20

# =============================================================================
# Printer Status Monitoring
# =============================================================================

STATUS_POLL_INTERVAL = float(os.environ.get('PRINTER_STATUS_INTERVAL', '10'))

# =============================================================================
# Backends
# =============================================================================

# cups, windows or auto
BACKEND = os.environ.get('PRINT_BACKEND', 'auto').lower()
if BACKEND == 'auto':
    BACKEND = 'windows' if sys.platform == 'win32' else 'cups'

LP_PATH = os.environ.get('PRINT_LP_PATH', 'lp')
LPSTAT_PATH = os.environ.get('PRINT_LPSTAT_PATH', 'lpstat')

# Timeout for fetching URL content (seconds)
URL_FETCH_TIMEOUT = 30

# Windows print handlers read the spooled file after ShellExecute returns;
# it is removed this many seconds after the session closes
SPOOL_FILE_TTL = 60

# =============================================================================
# Storage Configuration
# =============================================================================

DATA_DIR = os.environ.get('PRINT_SERVER_DATA_DIR', os.path.expanduser('~/.receipt_print_server'))
CONFIG_FILENAME = 'printer-config.json'
