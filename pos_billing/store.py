from __future__ import annotations

import copy
import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pos_billing.errors import NetworkError

logger = logging.getLogger(__name__)


class InMemoryBackend:
    """
    Inventory service and bill persistence kept in memory.

    Holds:
    - product records as the inventory service would return them
    - every submitted bill payload, in order
    - a list of log lines (for demos and tests)

    Stock is not decremented on submission; the real server owns that.
    """

    def __init__(self) -> None:
        self.products: List[Dict[str, Any]] = []
        self.bills: List[Dict[str, Any]] = []
        self.fetch_calls = 0
        self.submit_calls = 0

        self.logs: List[str] = []
        self._fail_submit: Optional[str] = None
        self._fail_fetch: Optional[str] = None

    def log(self, message: str) -> None:
        self.logs.append(message)
        logger.info(message)

    # Seed helpers
    def add_product(self, barcode: str, name: str, price: Decimal, quantity: Decimal) -> None:
        self.products.append({"barcode": barcode, "name": name, "price": price, "quantity": quantity})

    def fail_next_submit(self, message: str = "Failed to finalize bill") -> None:
        self._fail_submit = message

    def fail_next_fetch(self, message: str = "Could not load product stock.") -> None:
        self._fail_fetch = message

    def fetch_products(self) -> List[Dict[str, Any]]:
        self.fetch_calls += 1
        if self._fail_fetch is not None:
            message, self._fail_fetch = self._fail_fetch, None
            self.log(f"[backend] fetch FAILED: {message}")
            raise NetworkError(message)
        self.log(f"[backend] fetch products={len(self.products)}")
        return copy.deepcopy(self.products)

    def submit_bill(self, items: List[Dict[str, Any]], customer_reference: Optional[str]) -> None:
        self.submit_calls += 1
        if self._fail_submit is not None:
            message, self._fail_submit = self._fail_submit, None
            self.log(f"[backend] submit FAILED: {message}")
            raise NetworkError(message)
        self.bills.append({"items": copy.deepcopy(items), "customerMobile": customer_reference})
        self.log(f"[backend] bill stored: items={len(items)} customer={customer_reference}")
