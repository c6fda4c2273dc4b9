from __future__ import annotations

import logging
import queue
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple

from pos_billing import cart as engine
from pos_billing.catalog import CatalogIndex
from pos_billing.config import Settings
from pos_billing.errors import BillingError, EmptyCartError, FeatureDisabledError, NetworkError, ValidationError
from pos_billing.features import FeatureSet, capabilities_for, normalize_plan
from pos_billing.models import Bill, Cart, LineItem, Unit
from pos_billing.receipt import CsvReceiptExporter
from pos_billing.reports import SalesReport, sales_summary
from pos_billing.services import HttpBackend

logger = logging.getLogger(__name__)


class Backend(Protocol):
    def fetch_products(self) -> List[Dict[str, Any]]: ...

    def submit_bill(self, items: List[Dict[str, Any]], customer_reference: Optional[str]) -> None: ...


ReceiptExporter = Callable[[Bill], Any]


@dataclass(frozen=True, slots=True)
class InputEvent:
    barcode: str
    quantity: Any = 1
    unit: Any = Unit.COUNT
    name: Optional[str] = None
    price: Any = None
    source: str = "manual"


@dataclass(frozen=True, slots=True)
class InputResult:
    event: InputEvent
    error: Optional[BillingError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class InputQueue:
    """
    Channel between input producers (scanner callback, entry form) and the
    billing session. Producers may run on other threads; the session drains
    events one at a time.
    """

    def __init__(self) -> None:
        self._events: "queue.Queue[InputEvent]" = queue.Queue()

    def put(self, event: InputEvent) -> None:
        self._events.put(event)

    def put_scan(self, barcode: str) -> None:
        # a scan always adds one piece
        self.put(InputEvent(barcode=barcode.strip(), quantity=1, unit=Unit.COUNT, source="scanner"))

    def put_entry(self, barcode: str, quantity: Any = 1, unit: Any = Unit.COUNT,
                  name: Optional[str] = None, price: Any = None) -> None:
        self.put(InputEvent(barcode=barcode, quantity=quantity, unit=unit, name=name, price=price))

    def get_nowait(self) -> Optional[InputEvent]:
        try:
            return self._events.get_nowait()
        except queue.Empty:
            return None

    def __len__(self) -> int:
        return self._events.qsize()


class Step(ABC):
    def __init__(self, session: "BillingSession"):
        self.session = session

    @abstractmethod
    def name(self) -> str: ...

    @abstractmethod
    def execute(self) -> None: ...

    def run(self) -> None:
        self.session.log(f"[bill] STEP {self.name()}")
        self.execute()
        self.session.log(f"[bill] STEP {self.name()} OK")


class SubmitBill(Step):
    def __init__(self, session: "BillingSession", snapshot: Cart):
        super().__init__(session)
        self.snapshot = snapshot

    def name(self) -> str:
        return "SubmitBill"

    def execute(self) -> None:
        items = [line.to_dict() for line in self.snapshot.lines]
        self.session.backend.submit_bill(items, self.snapshot.customer_reference)


class ClearCart(Step):
    def name(self) -> str:
        return "ClearCart"

    def execute(self) -> None:
        self.session._cart = engine.reset(self.session._cart)


class ExportReceipt(Step):
    def __init__(self, session: "BillingSession", bill: Bill, exporter: ReceiptExporter):
        super().__init__(session)
        self.bill = bill
        self.exporter = exporter

    def name(self) -> str:
        return "ExportReceipt"

    def execute(self) -> None:
        self.exporter(self.bill)


class BillingSession:
    """
    One billing counter: the current cart, the catalog snapshot it is checked
    against, and the collaborators a finalized bill goes to.

    All cart changes go through the pure functions in pos_billing.cart; the
    session only swaps in the new cart once a transition succeeded.
    """

    def __init__(
        self,
        backend: Backend,
        plan: Any = None,
        catalog: Optional[CatalogIndex] = None,
        exporter: Optional[ReceiptExporter] = None,
    ) -> None:
        self.backend = backend
        self.plan = normalize_plan(plan)
        self.catalog = catalog if catalog is not None else CatalogIndex()
        self.exporter = exporter

        self._cart = Cart.empty()
        self.last_bill: Optional[Bill] = None
        self.bills: List[Bill] = []
        self.logs: List[str] = []

    @classmethod
    def from_settings(cls, settings: Settings) -> "BillingSession":
        exporter = CsvReceiptExporter(settings.receipt_dir) if settings.receipt_dir else None
        return cls(HttpBackend(settings), plan=settings.plan, exporter=exporter)

    def log(self, message: str) -> None:
        self.logs.append(message)
        logger.info(message)

    @property
    def features(self) -> FeatureSet:
        return capabilities_for(self.plan)

    @property
    def cart(self) -> Cart:
        return self._cart

    @property
    def lines(self) -> Tuple[LineItem, ...]:
        return self._cart.lines

    def total(self) -> Decimal:
        return engine.calculate_total(self._cart)

    def refresh_catalog(self) -> None:
        products = self.backend.fetch_products()
        try:
            self.catalog.refresh(products)
        except ValidationError as e:
            self.log(f"[catalog] refresh FAILED: {e}")
            raise NetworkError(f"Invalid product data from server: {e}") from e
        self.log(f"[catalog] refreshed products={len(self.catalog)}")

    def low_stock(self):
        if not self.features.low_stock_alert:
            raise FeatureDisabledError("low_stock_alert", self.plan)
        return self.catalog.low_stock()

    def sales_report(self, day: Any = None, bills: Optional[List[Bill]] = None) -> SalesReport:
        level = self.features.reports
        if level == "none":
            raise FeatureDisabledError("reports", self.plan)
        return sales_summary(self.bills if bills is None else bills, day=day, level=level)

    def add_item(self, barcode: str, quantity: Any = 1, unit: Any = Unit.COUNT,
                 name: Optional[str] = None, price: Any = None) -> Cart:
        try:
            self._cart = engine.add_item(
                self._cart, self.catalog, barcode, quantity, unit,
                name=name, price=price, features=self.features,
            )
        except BillingError as e:
            self.log(f"[cart] REJECTED add {barcode or name!r}: {e}")
            raise
        return self._cart

    def add_manual_item(self, name: str, price: Any, quantity: Any = 1, unit: Any = Unit.COUNT) -> Cart:
        return self.add_item("", quantity, unit, name=name, price=price)

    def remove_line(self, index: int) -> Cart:
        self._cart = engine.remove_line(self._cart, index)
        return self._cart

    def set_discount(self, index: int, amount: Any) -> Cart:
        try:
            self._cart = engine.set_discount(self._cart, index, amount)
        except BillingError as e:
            self.log(f"[cart] REJECTED discount line={index}: {e}")
            raise
        return self._cart

    def set_customer(self, reference: Optional[str]) -> Cart:
        if not self.features.external_sharing:
            raise FeatureDisabledError("external_sharing", self.plan)
        self._cart = engine.set_customer(self._cart, reference)
        return self._cart

    def reset(self) -> Cart:
        self._cart = engine.reset(self._cart)
        return self._cart

    def drain(self, inputs: InputQueue) -> List[InputResult]:
        results: List[InputResult] = []
        while (event := inputs.get_nowait()) is not None:
            try:
                self.add_item(event.barcode, event.quantity, event.unit, name=event.name, price=event.price)
            except BillingError as e:
                results.append(InputResult(event, e))
            else:
                results.append(InputResult(event))
        return results

    def finalize(self) -> Bill:
        snapshot = self._cart
        if not snapshot.lines:
            raise EmptyCartError("Cannot finalize an empty bill.")

        total = engine.calculate_total(snapshot)
        self.log(f"[bill] FINALIZE START lines={len(snapshot.lines)} total={total} customer={snapshot.customer_reference}")

        try:
            for step in (SubmitBill(self, snapshot), ClearCart(self)):
                step.run()
        except BillingError as e:
            self.log(f"[bill] FINALIZE FAILED: {e}")
            raise

        bill = Bill(
            bill_id=uuid.uuid4().hex,
            lines=snapshot.lines,
            customer_reference=snapshot.customer_reference,
            total=total,
            created_at=datetime.now(timezone.utc),
        )
        self.last_bill = bill
        self.bills.append(bill)

        if self.features.receipt_export and self.exporter is not None:
            try:
                ExportReceipt(self, bill, self.exporter).run()
            except Exception as e:
                # the bill is already stored; a missing receipt does not undo it
                logger.exception("receipt export failed for bill %s", bill.bill_id)
                self.log(f"[bill] RECEIPT FAILED: {e}")

        self.log(f"[bill] FINALIZE OK bill={bill.bill_id}")
        return bill
