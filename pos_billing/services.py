from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import requests

from pos_billing.config import Settings
from pos_billing.errors import NetworkError

logger = logging.getLogger(__name__)


class HttpBackend:
    """
    Inventory service and bill persistence over the shop's REST API.

    GET  /api/stock  -> list of {barcode, name, price, quantity}
    POST /api/bills  <- {items, customerMobile}
    """

    STOCK_PATH = "/api/stock"
    BILLS_PATH = "/api/bills"

    def __init__(self, settings: Settings, session: Optional[requests.Session] = None):
        self.base_url = settings.api_url.rstrip("/")
        self.timeout = settings.timeout
        self.session = session or requests.Session()
        if settings.token:
            self.session.headers["Authorization"] = f"Bearer {settings.token}"

    def _error_message(self, response: Optional[requests.Response], default: str) -> str:
        if response is None:
            return default
        try:
            body = response.json()
        except ValueError:
            return default
        if isinstance(body, dict) and isinstance(body.get("error"), str) and body["error"]:
            return body["error"]
        return default

    def fetch_products(self) -> List[Dict[str, Any]]:
        default = "Could not load product stock."
        try:
            response = self.session.get(self.base_url + self.STOCK_PATH, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.HTTPError as e:
            logger.error("stock fetch failed: %s", e)
            raise NetworkError(self._error_message(e.response, default)) from e
        except requests.RequestException as e:
            logger.error("stock fetch failed: %s", e)
            raise NetworkError(default) from e
        except ValueError as e:
            logger.error("stock response parsing failed: %s", e)
            raise NetworkError(default) from e

        if data is None:
            return []
        if not isinstance(data, list):
            raise NetworkError(default)
        return data

    def submit_bill(self, items: List[Dict[str, Any]], customer_reference: Optional[str]) -> None:
        default = "Failed to finalize bill"
        payload = {"items": items, "customerMobile": customer_reference or ""}
        try:
            response = self.session.post(self.base_url + self.BILLS_PATH, json=payload, timeout=self.timeout)
            response.raise_for_status()
        except requests.HTTPError as e:
            logger.error("bill submission failed: %s", e)
            raise NetworkError(self._error_message(e.response, default)) from e
        except requests.RequestException as e:
            logger.error("bill submission failed: %s", e)
            raise NetworkError(default) from e
        logger.info("bill submitted: items=%d", len(items))
