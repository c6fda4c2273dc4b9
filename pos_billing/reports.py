"""
Sales report over finalized bills.

Products are aggregated by name (manual items have no barcode) and sorted by
revenue, highest first. The "simple" level carries the product table, total
revenue and bill count; "all" adds average bill value, items sold and the
top product.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple, Union

from pos_billing.errors import ValidationError
from pos_billing.features import REPORT_LEVELS
from pos_billing.models import Bill

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ProductSales:
    product: str
    quantity: Decimal
    revenue: Decimal


@dataclass(frozen=True, slots=True)
class SalesReport:
    products: Tuple[ProductSales, ...]
    total_revenue: Decimal
    bill_count: int
    average_bill_value: Optional[Decimal] = None
    items_sold: Optional[Decimal] = None
    top_product: Optional[str] = None


def _parse_day(day: Union[date, str, None]) -> Optional[date]:
    if day is None or day == "":
        return None
    if isinstance(day, datetime):
        return day.date()
    if isinstance(day, date):
        return day
    try:
        return date.fromisoformat(str(day).strip())
    except ValueError:
        raise ValidationError(f"Date filter must look like YYYY-MM-DD, got {day!r}") from None


def _bill_day(bill: Bill) -> date:
    created = bill.created_at
    if created.tzinfo is not None:
        created = created.astimezone(timezone.utc)
    return created.date()


def filter_by_day(bills: Iterable[Bill], day: Union[date, str, None]) -> List[Bill]:
    wanted = _parse_day(day)
    if wanted is None:
        return list(bills)
    return [bill for bill in bills if _bill_day(bill) == wanted]


def sales_summary(
    bills: Iterable[Bill], day: Union[date, str, None] = None, level: str = "all"
) -> SalesReport:
    if level not in REPORT_LEVELS or level == "none":
        raise ValidationError(f"Unknown report level {level!r}")

    selected = filter_by_day(bills, day)

    totals: Dict[str, List[Decimal]] = {}
    for bill in selected:
        for line in bill.lines:
            quantity, revenue = totals.setdefault(line.name, [Decimal("0"), Decimal("0")])
            totals[line.name] = [quantity + line.quantity, revenue + line.subtotal]

    products = tuple(
        sorted(
            (ProductSales(product=name, quantity=q, revenue=r) for name, (q, r) in totals.items()),
            key=lambda row: row.revenue,
            reverse=True,
        )
    )
    total_revenue = sum((bill.total for bill in selected), Decimal("0.00"))
    logger.info("sales report: bills=%d products=%d revenue=%s", len(selected), len(products), total_revenue)

    if level == "simple":
        return SalesReport(products=products, total_revenue=total_revenue, bill_count=len(selected))

    return SalesReport(
        products=products,
        total_revenue=total_revenue,
        bill_count=len(selected),
        average_bill_value=total_revenue / len(selected) if selected else Decimal("0.00"),
        items_sold=sum((row.quantity for row in products), Decimal("0")),
        top_product=products[0].product if products else None,
    )
