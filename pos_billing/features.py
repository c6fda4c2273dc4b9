from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict

DEFAULT_PLAN = "free"

# Sales report depth, least to most.
REPORT_LEVELS = ("none", "simple", "all")


@dataclass(frozen=True, slots=True)
class FeatureSet:
    manual_entry: bool
    # Whether the discount column is shown. Presentation only: discount
    # bounds are enforced on every plan.
    discounts: bool
    receipt_export: bool
    external_sharing: bool
    low_stock_alert: bool
    reports: str = "none"


# Ordered from the most restrictive tier up.
PLAN_FEATURES: Dict[str, FeatureSet] = {
    "free": FeatureSet(
        manual_entry=False, discounts=True, receipt_export=False,
        external_sharing=False, low_stock_alert=False, reports="none",
    ),
    "299": FeatureSet(
        manual_entry=False, discounts=True, receipt_export=True,
        external_sharing=False, low_stock_alert=False, reports="simple",
    ),
    "699": FeatureSet(
        manual_entry=True, discounts=True, receipt_export=True,
        external_sharing=True, low_stock_alert=True, reports="all",
    ),
    "1499": FeatureSet(
        manual_entry=True, discounts=True, receipt_export=True,
        external_sharing=True, low_stock_alert=True, reports="all",
    ),
}


def normalize_plan(plan: Any) -> str:
    tier = "" if plan is None else str(plan).strip().lower()
    return tier if tier in PLAN_FEATURES else DEFAULT_PLAN


def capabilities_for(plan: Any) -> FeatureSet:
    """Unknown or missing tiers get the free plan."""
    return PLAN_FEATURES[normalize_plan(plan)]
