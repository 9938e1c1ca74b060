"""View assembly: the seam the dashboard renders against.

build_view() is a pure function of (facts, view, window): it selects the
concepts for the view, normalizes them, attaches trends, and applies the
view's post-processing (chart truncation, quarterly categories, forward
estimates).  Absent or malformed facts produce an empty view, never an error.
"""

from __future__ import annotations

import logging
from datetime import date
from enum import Enum
from typing import Any

from bottomtick.extractor import policy_for_view
from bottomtick.forecast import generate_forward_estimates
from bottomtick.models import ProcessedMetric, RawFactDocument, ViewResult
from bottomtick.series import assemble, extract_metrics
from bottomtick.trends import classify, clamp_window
from bottomtick.xbrl_mappings import CATEGORY_ORDER, CATEGORY_RULES, OTHER

log = logging.getLogger(__name__)

CHART_MAX_POINTS = 24           # six years of quarters


class ViewType(str, Enum):
    DEFAULT = "default"
    DETAILED = "detailed"
    QUARTERLY = "quarterly"
    INCOME = "income"
    BALANCE = "balance"
    CASHFLOW = "cashflow"
    CHARTS = "charts"
    FORWARD = "forward"

    @classmethod
    def parse(cls, value: str | ViewType | None) -> ViewType:
        """Unknown or missing view names fall back to DEFAULT."""
        if isinstance(value, ViewType):
            return value
        if not value:
            return cls.DEFAULT
        try:
            return cls(str(value).lower().strip())
        except ValueError:
            return cls.DEFAULT

    @property
    def extended(self) -> bool:
        """Views that show per-quarter trend-curve deltas."""
        return self in (ViewType.DETAILED, ViewType.QUARTERLY, ViewType.CHARTS)


# Ticker suffix → view ("AAPL.q"); longest suffixes first so ".ch" wins over ".c"
_SUFFIXES: tuple[tuple[str, ViewType], ...] = (
    (".ch", ViewType.CHARTS),
    (".cf", ViewType.CASHFLOW),
    (".d", ViewType.DETAILED),
    (".q", ViewType.QUARTERLY),
    (".i", ViewType.INCOME),
    (".b", ViewType.BALANCE),
    (".c", ViewType.CASHFLOW),
    (".f", ViewType.FORWARD),
)


def parse_ticker_query(text: str) -> tuple[str, ViewType]:
    """"aapl.q" → ("AAPL", QUARTERLY); a bare ticker maps to DEFAULT."""
    clean = text.strip()
    lower = clean.lower()
    for suffix, view in _SUFFIXES:
        if lower.endswith(suffix) and len(clean) > len(suffix):
            return clean[: -len(suffix)].upper(), view
    return clean.upper(), ViewType.DEFAULT


def categorize(name: str) -> str:
    """Quarterly-view group for a humanized metric name."""
    low = name.lower()
    for rule in CATEGORY_RULES:
        if any(keyword in low for keyword in rule.keywords):
            return rule.category
    return OTHER


def format_value(value: float, unit: str) -> str:
    """Display formatting: $1.23B / $4.56M / $7.89K for USD, $x.xx per share."""
    if unit == "USD":
        av = abs(value)
        if av >= 1e9:
            return f"${value / 1e9:.2f}B"
        if av >= 1e6:
            return f"${value / 1e6:.2f}M"
        if av >= 1e3:
            return f"${value / 1e3:.2f}K"
        return f"${value:,.0f}" if value == int(value) else f"${value:,.2f}"
    if unit == "USD/shares":
        return f"${value:.2f}"
    return f"{value:,.0f}" if value == int(value) else f"{value:,}"


def _coerce_document(facts: Any) -> RawFactDocument:
    if facts is None:
        return RawFactDocument()
    if isinstance(facts, RawFactDocument):
        return facts
    return RawFactDocument.parse(facts)


def _truncate(metric: ProcessedMetric, max_points: int) -> ProcessedMetric:
    if len(metric.data_points) <= max_points:
        return metric
    return metric.model_copy(update={"data_points": tuple(metric.descending()[:max_points])})


def _group(metrics: list[ProcessedMetric]) -> dict[str, list[str]]:
    groups: dict[str, list[str]] = {category: [] for category in CATEGORY_ORDER}
    for metric in metrics:
        groups[metric.category or OTHER].append(metric.name)
    return {category: names for category, names in groups.items() if names}


def build_view(
    facts: RawFactDocument | dict | None,
    view_type: str | ViewType | None = ViewType.DEFAULT,
    short_term_window: int = 3,
    *,
    chart_max_points: int = CHART_MAX_POINTS,
    as_of: date | None = None,
) -> ViewResult:
    """Assemble the metrics + period axis for one view of a company's facts."""
    doc = _coerce_document(facts)
    view = ViewType.parse(view_type)
    window = clamp_window(short_term_window)

    metrics = extract_metrics(doc, policy_for_view(view.value))

    if view is ViewType.CHARTS:
        metrics = [_truncate(m, chart_max_points) for m in metrics]

    enriched: list[ProcessedMetric] = []
    for metric in metrics:
        update: dict[str, Any] = {
            "trend": classify(metric, short_term_window=window, extended=view.extended),
        }
        if view is ViewType.QUARTERLY:
            update["category"] = categorize(metric.name)
        enriched.append(metric.model_copy(update=update))

    bundle = assemble(enriched)
    result = ViewResult(metrics=bundle.metrics, periods=bundle.periods)

    if view is ViewType.QUARTERLY:
        result.categories = _group(bundle.metrics)
    if view is ViewType.FORWARD:
        try:
            result.forward = generate_forward_estimates(doc, as_of=as_of)
        except Exception as exc:
            log.warning("Forward estimates failed: %s", exc)

    log.debug(
        "Built %s view: %d metrics across %d periods",
        view.value, len(result.metrics), len(result.periods),
    )
    return result
