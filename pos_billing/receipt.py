"""Receipt table for a finalized bill, plus a CSV writer for it."""

from __future__ import annotations

import csv
import logging
import os
from pathlib import Path
from typing import List, Union

from pos_billing.models import Bill, ReceiptRow, money

logger = logging.getLogger(__name__)

HEADER = ReceiptRow("Product", "Price", "Quantity", "Unit", "Discount", "Subtotal")


def build_receipt(bill: Bill) -> List[ReceiptRow]:
    rows = [HEADER]
    for line in bill.lines:
        rows.append(
            ReceiptRow(
                product=line.name,
                price=str(money(line.price)),
                quantity=str(line.quantity),
                unit=line.unit.value,
                discount=str(money(line.discount)),
                subtotal=str(money(line.subtotal)),
            )
        )
    rows.append(ReceiptRow(product="Total", subtotal=str(money(bill.total))))
    return rows


class CsvReceiptExporter:
    def __init__(self, directory: Union[str, os.PathLike]):
        self.directory = Path(directory)

    def __call__(self, bill: Bill) -> Path:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self.directory / f"Receipt-{bill.bill_id}.csv"
        with open(path, "w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            for row in build_receipt(bill):
                writer.writerow(row.cells)
        logger.info("receipt written: %s", path)
        return path
