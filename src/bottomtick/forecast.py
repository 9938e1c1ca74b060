"""Forward EPS / sales estimates extrapolated from reported history.

A simple projection for the `forward` view: trailing-four-quarter
growth of EPS, damped and capped, compounded forward.  It is a heuristic
display aid, not a forecasting model.
"""

from __future__ import annotations

import logging
from datetime import date

from bottomtick.models import (
    AnalysisMetrics,
    AnnualEstimate,
    ForwardEstimates,
    ProcessedDataPoint,
    QuarterlyEstimate,
    RawFactDocument,
    RawMetric,
)
from bottomtick.periods import parse_date
from bottomtick.series import process_metric
from bottomtick.xbrl_mappings import (
    EPS_CONCEPT,
    NET_INCOME_CONCEPT,
    REVENUE_CONCEPTS,
    SHARES_CONCEPT,
)

log = logging.getLogger(__name__)

MIN_HISTORY = 8                 # two years of quarters
GOOD_HISTORY = 12
EPS_GROWTH_DAMPING = 0.8
EPS_GROWTH_FLOOR, EPS_GROWTH_CAP = -20.0, 25.0
ESTIMATE_VARIANCE = 0.10
ASSUMED_PE = 17.5
QUARTERS_AHEAD = 8

_QUARTER_MONTH = {1: "Mar-", 2: "Jun-", 3: "Sep-", 4: "Dec-"}


def _history(gaap: dict[str, RawMetric], key: str) -> list[ProcessedDataPoint]:
    metric = process_metric(key, gaap[key])
    return metric.ascending() if metric is not None else []


def growth_rate(points: list[ProcessedDataPoint]) -> float:
    """Last four quarters vs. the four before, in percent.  0 when not computable."""
    if len(points) < 4:
        return 0.0
    recent = sum(p.value for p in points[-4:])
    previous = sum(p.value for p in points[-8:-4])
    if previous == 0:
        return 0.0
    return (recent - previous) / abs(previous) * 100


def _add_quarters(d: date, quarters: int) -> tuple[int, int]:
    """(year, month) `quarters` quarters after d."""
    months = d.year * 12 + (d.month - 1) + quarters * 3
    return months // 12, months % 12 + 1


def _signed(pct: float, digits: int = 0) -> str:
    return f"{'+' if pct >= 0 else ''}{pct:.{digits}f}%"


def generate_forward_estimates(
    doc: RawFactDocument,
    as_of: date | None = None,
) -> ForwardEstimates | None:
    """Project EPS and sales forward.  None when the filing lacks enough history."""
    gaap = doc.taxonomy("us-gaap")
    revenue_key = next((k for k in REVENUE_CONCEPTS if k in gaap), None)
    if revenue_key is None or any(
        k not in gaap for k in (NET_INCOME_CONCEPT, SHARES_CONCEPT, EPS_CONCEPT)
    ):
        return None

    revenue = _history(gaap, revenue_key)
    net_income = _history(gaap, NET_INCOME_CONCEPT)
    eps = _history(gaap, EPS_CONCEPT)
    if min(len(revenue), len(net_income), len(eps)) < MIN_HISTORY:
        log.debug(
            "Not enough history for estimates (revenue=%d, net_income=%d, eps=%d)",
            len(revenue), len(net_income), len(eps),
        )
        return None

    revenue_growth = growth_rate(revenue)
    net_income_growth = growth_rate(net_income)
    eps_growth = growth_rate(eps)

    latest_revenue = revenue[-1].value
    net_margin = net_income[-1].value / latest_revenue * 100 if latest_revenue else 0.0

    projected = min(max(eps_growth * EPS_GROWTH_DAMPING, EPS_GROWTH_FLOOR), EPS_GROWTH_CAP)
    current_year = (as_of or date.today()).year
    latest_eps = eps[-1]

    # ── Annual: this year and next ──
    annual: list[AnnualEstimate] = []
    for i in range(2):
        projected_eps = latest_eps.value * (1 + projected / 100) ** i
        variance = abs(projected_eps * ESTIMATE_VARIANCE)
        annual.append(AnnualEstimate(
            year=str(current_year + i),
            eps=round(projected_eps, 2),
            high=round(projected_eps + variance, 2),
            low=round(projected_eps - variance, 2),
            price_target=float(round(projected_eps * ASSUMED_PE)),
        ))

    # ── Quarterly: next eight quarters ──
    quarterly_growth = projected / 4
    avg_revenue = sum(p.value for p in revenue[-4:]) / 4
    last_date = parse_date(latest_eps.date)
    quarterly: list[QuarterlyEstimate] = []
    for i in range(1, QUARTERS_AHEAD + 1):
        projected_eps = latest_eps.value * (1 + quarterly_growth / 100) ** i
        year, month = _add_quarters(last_date, i)
        quarter = (month - 1) // 3 + 1

        prior = next(
            (p for p in eps if p.quarter == f"Q{quarter}" and p.year == str(year - 1)),
            None,
        )
        if prior is not None and prior.value != 0:
            change = (projected_eps - prior.value) / abs(prior.value) * 100
        else:
            change = quarterly_growth

        sales = avg_revenue * (1 + revenue_growth / 400) ** i
        quarterly.append(QuarterlyEstimate(
            quarter=f"{_QUARTER_MONTH[quarter]}{str(year)[-2:]}",
            eps=round(projected_eps, 2),
            change=_signed(change),
            sales=round(sales / 1e9, 1),
            sales_change=f"{'+' if revenue_growth >= 0 else ''}{round(revenue_growth / 4)}%",
        ))

    return ForwardEstimates(
        annual_estimates=annual,
        quarterly_estimates=quarterly,
        analysis_metrics=AnalysisMetrics(
            revenue_growth_rate=round(revenue_growth, 1),
            net_income_growth_rate=round(net_income_growth, 1),
            eps_growth_rate=round(eps_growth, 1),
            net_margin=round(net_margin, 1),
            data_quality="Good" if len(revenue) >= GOOD_HISTORY else "Limited",
        ),
    )
