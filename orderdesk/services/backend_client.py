"""ERP backend API client for order submission."""
import logging
from typing import Any, Dict, Optional

import requests
from flask import current_app, has_app_context

from orderdesk.exceptions import SubmissionError

logger = logging.getLogger(__name__)


class OrderBackendClient:
    """HTTP client for the ERP backend order endpoints.

    The backend recomputes every total itself; this client only transports
    the order and returns the persisted order. Failed calls are not retried.
    """

    def __init__(self, base_url: str, token: Optional[str] = None, timeout: float = 10):
        """
        Initialize backend client.

        Args:
            base_url: Backend API root, e.g. https://erp.example.com/api
            token: Bearer token sent on every request
            timeout: Seconds before a request is abandoned
        """
        if not base_url:
            raise ValueError("ORDERDESK_BACKEND_URL is required")

        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.headers = {
            'Content-Type': 'application/json',
            'Accept': 'application/json',
        }
        if token:
            self.headers['Authorization'] = f'Bearer {token}'

    @classmethod
    def from_config(cls, config=None) -> 'OrderBackendClient':
        """Build a client from the Flask app configuration."""
        if config is None:
            config = current_app.config
        return cls(
            base_url=config.get('ORDERDESK_BACKEND_URL'),
            token=config.get('ORDERDESK_BACKEND_TOKEN'),
            timeout=config.get('ORDERDESK_BACKEND_TIMEOUT', 10),
        )

    def _request(self, method: str, path: str, body: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        logger.info(f"[BACKEND] {method} {path}")

        try:
            response = requests.request(
                method, url, json=body, headers=self.headers, timeout=self.timeout
            )
        except requests.RequestException as e:
            logger.error(f"[BACKEND] {method} {path} failed: {e}")
            raise SubmissionError(f'Could not reach the order backend: {e}')

        if not response.ok:
            message = _error_message(response)
            logger.error(f"[BACKEND] {method} {path} -> {response.status_code}: {message}")
            status_code = response.status_code if 400 <= response.status_code < 500 else 502
            raise SubmissionError(message, status_code=status_code, backend_status=response.status_code)

        try:
            data = response.json()
        except ValueError:
            raise SubmissionError('Order backend returned an invalid response',
                                  backend_status=response.status_code)

        if not isinstance(data, dict) or 'data' not in data:
            raise SubmissionError('Order backend response has no data',
                                  backend_status=response.status_code)
        return data

    def create_purchase_order(self, body: Dict[str, Any]) -> Dict[str, Any]:
        """
        Create a purchase order.

        Returns:
            Response envelope ``{data: PurchaseOrder, meta?}``

        Raises:
            SubmissionError: on transport or backend error
        """
        return self._request('POST', '/purchase-orders', body)

    def update_purchase_order(self, order_id: int, body: Dict[str, Any]) -> Dict[str, Any]:
        return self._request('PUT', f'/purchase-orders/{order_id}', body)

    def get_purchase_order(self, order_id: int) -> Dict[str, Any]:
        return self._request('GET', f'/purchase-orders/{order_id}')

    def create_sales_order(self, body: Dict[str, Any]) -> Dict[str, Any]:
        return self._request('POST', '/sales-orders', body)

    def get_sales_order(self, order_id: int) -> Dict[str, Any]:
        return self._request('GET', f'/sales-orders/{order_id}')


def _error_message(response) -> str:
    """Extract ``error.message`` (or ``message``) from an error response."""
    try:
        payload = response.json()
    except ValueError:
        payload = None

    if isinstance(payload, dict):
        error = payload.get('error')
        if isinstance(error, dict) and error.get('message'):
            return str(error['message'])
        if payload.get('message'):
            return str(payload['message'])

    return f'Order backend error ({response.status_code})'


def get_backend_client() -> OrderBackendClient:
    """Client for the current app (tests may set app.extensions['order_backend_client'])."""
    if has_app_context():
        client = current_app.extensions.get('order_backend_client')
        if client is not None:
            return client
    return OrderBackendClient.from_config()
