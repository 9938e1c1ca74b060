"""Metric selection and primary-unit resolution.

Selection is driven by an explicit SelectionPolicy value passed per call:
either every concept under a taxonomy, or a named allow-list (key metrics,
income / balance / cash-flow statements).  Keys a filing does not report
are skipped silently: most companies omit some curated concepts.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Literal

from bottomtick.models import RawDataPoint, RawFactDocument, RawMetric
from bottomtick.xbrl_mappings import (
    BALANCE_METRICS,
    CASHFLOW_METRICS,
    EXTRACT_METRICS,
    INCOME_METRICS,
    KEY_METRICS,
)

PRIMARY_UNIT = "USD"

_CAPITAL = re.compile(r"([A-Z])")


@dataclass(frozen=True)
class SelectionPolicy:
    kind: Literal["all", "named"]
    name: str
    keys: tuple[str, ...] = ()
    taxonomy: str = "us-gaap"

    @classmethod
    def all(cls, taxonomy: str = "us-gaap") -> SelectionPolicy:
        return cls(kind="all", name="all", taxonomy=taxonomy)

    @classmethod
    def named(cls, name: str, keys: tuple[str, ...] | list[str], taxonomy: str = "us-gaap") -> SelectionPolicy:
        return cls(kind="named", name=name, keys=tuple(keys), taxonomy=taxonomy)


KEY_POLICY = SelectionPolicy.named("key", KEY_METRICS)
INCOME_POLICY = SelectionPolicy.named("income", INCOME_METRICS)
BALANCE_POLICY = SelectionPolicy.named("balance", BALANCE_METRICS)
CASHFLOW_POLICY = SelectionPolicy.named("cashflow", CASHFLOW_METRICS)
EXTRACT_POLICY = SelectionPolicy.named("extract", EXTRACT_METRICS)
ALL_POLICY = SelectionPolicy.all()

_VIEW_POLICIES: dict[str, SelectionPolicy] = {
    "detailed": ALL_POLICY,
    "quarterly": ALL_POLICY,
    "charts": ALL_POLICY,
    "income": INCOME_POLICY,
    "balance": BALANCE_POLICY,
    "cashflow": CASHFLOW_POLICY,
}


def policy_for_view(view: str | None) -> SelectionPolicy:
    """Selection policy for a view name; anything unrecognised gets the key metrics."""
    if not view:
        return KEY_POLICY
    return _VIEW_POLICIES.get(str(view).lower().strip(), KEY_POLICY)


def select_metrics(doc: RawFactDocument, policy: SelectionPolicy) -> list[str]:
    """Metric keys to process, in policy order (document order for `all`)."""
    available = doc.taxonomy(policy.taxonomy)
    if policy.kind == "all":
        return list(available)
    return [key for key in policy.keys if key in available]


def resolve_primary_unit(metric: RawMetric) -> tuple[str, list[RawDataPoint]] | None:
    """Pick USD when reported, otherwise the first unit in document order.

    Returns None when the metric has no units or the chosen array is empty.
    """
    if not metric.units:
        return None
    unit = PRIMARY_UNIT if PRIMARY_UNIT in metric.units else next(iter(metric.units))
    points = metric.units.get(unit) or []
    if not points:
        return None
    return unit, points


def humanize(key: str) -> str:
    """NetIncomeLoss → "Net Income Loss"."""
    return _CAPITAL.sub(r" \1", key).strip()
