"""
Receipt Print Server Client
===========================

Python SDK for talking to a running Receipt Print Server.

Usage:
    from receipt_print_server.client import PrintClient

    client = PrintClient('http://192.168.1.20:9100')

    # List printers
    printers = client.list_printers()

    # Print a receipt
    client.print_html('Kitchen', '<html><body>Order #12</body></html>')

    # Cut without printing
    client.cut('192.168.68.100')
"""

import requests
from typing import Dict, Any, Optional, List


class PrintClient:
    """Client for Receipt Print Server."""

    def __init__(self, base_url: str = 'http://localhost:9100', timeout: int = 60):
        """
        Initialize client.

        Args:
            base_url: Base URL of the print server
            timeout: Request timeout in seconds
        """
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout

    def _request(self, method: str, endpoint: str, data: Dict = None) -> Dict[str, Any]:
        """Make API request."""
        url = f'{self.base_url}{endpoint}'

        try:
            if method == 'GET':
                response = requests.get(url, timeout=self.timeout)
            elif method == 'POST':
                response = requests.post(url, json=data or {}, timeout=self.timeout)
            else:
                raise ValueError(f'Unknown method: {method}')

            return response.json()

        except requests.exceptions.Timeout:
            return {'success': False, 'error': 'Request timeout'}
        except requests.exceptions.ConnectionError:
            return {'success': False, 'error': f'Cannot connect to {self.base_url}'}
        except ValueError as e:
            return {'success': False, 'error': str(e)}

    # =========================================================================
    # Status
    # =========================================================================

    def status(self) -> Dict[str, Any]:
        """Server status."""
        return self._request('GET', '/status')

    def is_online(self) -> bool:
        """Check if the server is running."""
        return bool(self.status().get('running'))

    # =========================================================================
    # Printers
    # =========================================================================

    def list_printers(self) -> List[Dict[str, Any]]:
        """List installed printers."""
        result = self._request('GET', '/printers')
        return result.get('printers', [])

    # =========================================================================
    # Printing
    # =========================================================================

    def print_html(self, printer_name: str, content: str,
                   paper_width: Optional[int] = None) -> Dict[str, Any]:
        """
        Print HTML content.

        Args:
            printer_name: Spooler device name
            content: HTML markup
            paper_width: Paper width override in mm
        """
        data = {'printerName': printer_name, 'content': content}
        if paper_width:
            data['paperWidth'] = paper_width
        return self._request('POST', '/print', data)

    def print_url(self, printer_name: str, url: str,
                  paper_width: Optional[int] = None) -> Dict[str, Any]:
        """Print the page at url."""
        data = {'printerName': printer_name, 'url': url}
        if paper_width:
            data['paperWidth'] = paper_width
        return self._request('POST', '/print', data)

    def cut(self, printer_ip: Optional[str] = None) -> Dict[str, Any]:
        """Send a cut command to printer_ip (server default if omitted)."""
        data = {'printerIp': printer_ip} if printer_ip else {}
        return self._request('POST', '/cut', data)

    # =========================================================================
    # Jobs
    # =========================================================================

    def list_jobs(self) -> List[Dict[str, Any]]:
        """Recent print jobs, most recent first."""
        result = self._request('GET', '/jobs')
        return result.get('jobs', [])
