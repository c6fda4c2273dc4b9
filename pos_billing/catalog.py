from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from pos_billing.errors import NotFoundError
from pos_billing.models import Product

logger = logging.getLogger(__name__)

LOW_STOCK_THRESHOLD = 10


class CatalogIndex:
    """
    Snapshot of the inventory service: barcode -> price/stock.

    The snapshot is trusted until the next explicit refresh(); stock checks
    made against it are optimistic and may be stale relative to the server.
    """

    def __init__(self, products: Iterable[Union[Product, Mapping[str, Any]]] = ()) -> None:
        self._products: Dict[str, Product] = {}
        if products:
            self.refresh(products)

    def refresh(self, products: Iterable[Union[Product, Mapping[str, Any]]]) -> None:
        snapshot: Dict[str, Product] = {}
        for record in products:
            product = record if isinstance(record, Product) else Product.from_dict(dict(record))
            snapshot[product.barcode] = product
        self._products = snapshot
        logger.info("catalog refreshed: %d products", len(snapshot))

    def lookup(self, barcode: str) -> Optional[Product]:
        return self._products.get(barcode)

    def require(self, barcode: str) -> Product:
        product = self.lookup(barcode)
        if product is None:
            raise NotFoundError(f"Product {barcode} not found")
        return product

    def low_stock(self, threshold: Union[int, Decimal] = LOW_STOCK_THRESHOLD) -> List[Product]:
        return [p for p in self._products.values() if p.quantity < threshold]

    def __len__(self) -> int:
        return len(self._products)

    def __contains__(self, barcode: object) -> bool:
        return barcode in self._products

    def __iter__(self):
        return iter(self._products.values())
