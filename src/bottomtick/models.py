"""Pydantic models for raw SEC company facts and the normalized series built from them."""

from __future__ import annotations

import logging
import math
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator
from pydantic.alias_generators import to_camel

log = logging.getLogger(__name__)

Trend = Literal["up", "down", "neutral"]

TAXONOMIES = ("us-gaap", "dei", "ifrs-full")


def _safe(v: Any) -> float | None:
    """Convert a value to float, returning None for invalid/missing values."""
    if v is None or isinstance(v, bool):
        return None
    try:
        f = float(v)
        if math.isnan(f) or math.isinf(f):
            return None
        return f
    except (TypeError, ValueError, OverflowError):
        return None


class _CamelModel(BaseModel):
    """Snake-case in Python, camelCase on the wire (matches the UI contract)."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Raw companyfacts documents (as stored on disk)
# ---------------------------------------------------------------------------

class RawDataPoint(BaseModel):
    """One reported observation inside a unit array."""
    model_config = ConfigDict(extra="ignore")

    end: str | None = None
    val: float | None = None
    accn: str = ""
    fy: int | None = None
    fp: str | None = None
    form: str | None = None
    filed: str | None = None
    frame: str | None = None
    start: str | None = None

    @field_validator("val", mode="before")
    @classmethod
    def coerce_val(cls, v: Any) -> float | None:
        return _safe(v)

    @field_validator("fy", mode="before")
    @classmethod
    def coerce_fy(cls, v: Any) -> int | None:
        f = _safe(v)
        return int(f) if f is not None else None

    @field_validator("accn", mode="before")
    @classmethod
    def coerce_accn(cls, v: Any) -> str:
        return "" if v is None else str(v)

    @field_validator("end", "fp", "form", "filed", "frame", "start", mode="before")
    @classmethod
    def blank_to_none(cls, v: Any) -> str | None:
        if v is None:
            return None
        s = str(v).strip()
        return s or None

    @property
    def usable(self) -> bool:
        return self.val is not None and self.end is not None


class RawMetric(BaseModel):
    """One concept (e.g. NetIncomeLoss) with its observations per unit."""
    label: str | None = None
    description: str | None = None
    units: dict[str, list[RawDataPoint]] = {}

    @classmethod
    def parse(cls, obj: Any) -> RawMetric | None:
        """Tolerant constructor: returns None for entries without usable units.

        Non-list unit arrays and malformed points are dropped individually.
        """
        if not isinstance(obj, dict) or not isinstance(obj.get("units"), dict):
            return None

        units: dict[str, list[RawDataPoint]] = {}
        for unit_name, points in obj["units"].items():
            if not isinstance(points, list):
                continue
            parsed: list[RawDataPoint] = []
            for point in points:
                if not isinstance(point, dict):
                    continue
                try:
                    parsed.append(RawDataPoint.model_validate(point))
                except ValidationError:
                    continue
            units[str(unit_name)] = parsed

        label = obj.get("label")
        description = obj.get("description")
        return cls(
            label=label if isinstance(label, str) else None,
            description=description if isinstance(description, str) else None,
            units=units,
        )


class RawFactDocument(_CamelModel):
    """A company's companyfacts document: {cik, entityName, facts: {taxonomy: {key: metric}}}."""
    cik: str | None = None
    entity_name: str | None = None
    facts: dict[str, dict[str, RawMetric]] = {}

    @classmethod
    def parse(cls, obj: Any) -> RawFactDocument:
        """Minimal shape validation; anything unrecognisable becomes empty."""
        if not isinstance(obj, dict):
            return cls()

        # Accept either the whole document or just its `facts` mapping
        raw_facts = obj.get("facts") if "facts" in obj else obj
        if not isinstance(raw_facts, dict):
            raw_facts = {}

        facts: dict[str, dict[str, RawMetric]] = {}
        for taxonomy, metrics in raw_facts.items():
            if not isinstance(metrics, dict) or taxonomy in ("cik", "entityName"):
                continue
            parsed: dict[str, RawMetric] = {}
            for key, raw_metric in metrics.items():
                metric = RawMetric.parse(raw_metric)
                if metric is None:
                    log.debug("Skipping %s:%s (no units)", taxonomy, key)
                    continue
                parsed[str(key)] = metric
            facts[str(taxonomy)] = parsed

        cik = obj.get("cik")
        entity_name = obj.get("entityName")
        return cls(
            cik=str(cik) if cik is not None else None,
            entity_name=entity_name if isinstance(entity_name, str) else None,
            facts=facts,
        )

    def taxonomy(self, name: str = "us-gaap") -> dict[str, RawMetric]:
        return self.facts.get(name, {})


# ---------------------------------------------------------------------------
# Normalized series
# ---------------------------------------------------------------------------

class ProcessedDataPoint(_CamelModel):
    model_config = ConfigDict(frozen=True)

    value: float
    period: str          # canonical "{year}-Q{n}"
    date: str            # ISO period-end date
    quarter: str         # "Q{n}"
    year: str
    filed: str | None = None


class QuarterlyTrend(_CamelModel):
    quarter: str         # "6Q ago" … "1Q ago"
    trend_percent: float


class TrendResult(_CamelModel):
    overall_trend: Trend = "neutral"
    short_term_trend: Trend = "neutral"
    latest_value: float = 0.0
    quarterly_trends: list[QuarterlyTrend] = []


class ProcessedMetric(_CamelModel):
    """One concept's deduplicated series, most recent point first."""
    model_config = ConfigDict(frozen=True)

    key: str
    name: str
    description: str
    unit: str
    data_points: tuple[ProcessedDataPoint, ...]
    category: str | None = None
    trend: TrendResult | None = None

    def ascending(self) -> list[ProcessedDataPoint]:
        """Oldest first: the order the trend classifier fits against."""
        return sorted(self.data_points, key=lambda p: p.date)

    def descending(self) -> list[ProcessedDataPoint]:
        """Most recent first: the order tables render."""
        return sorted(self.data_points, key=lambda p: p.date, reverse=True)

    @property
    def periods(self) -> set[str]:
        return {p.period for p in self.data_points}


# ---------------------------------------------------------------------------
# Forward estimates
# ---------------------------------------------------------------------------

class AnnualEstimate(_CamelModel):
    year: str
    eps: float
    high: float
    low: float
    price_target: float


class QuarterlyEstimate(_CamelModel):
    quarter: str         # e.g. "Mar-26"
    eps: float
    change: str          # e.g. "+12%"
    sales: float         # billions
    sales_change: str


class AnalysisMetrics(_CamelModel):
    revenue_growth_rate: float
    net_income_growth_rate: float
    eps_growth_rate: float
    net_margin: float
    data_quality: Literal["Good", "Limited"]


class ForwardEstimates(_CamelModel):
    annual_estimates: list[AnnualEstimate]
    quarterly_estimates: list[QuarterlyEstimate]
    analysis_metrics: AnalysisMetrics


# ---------------------------------------------------------------------------
# View + HTTP payloads
# ---------------------------------------------------------------------------

class ViewResult(_CamelModel):
    metrics: list[ProcessedMetric] = []
    periods: list[str] = []
    categories: dict[str, list[str]] | None = None
    forward: ForwardEstimates | None = None


class TickerEntry(BaseModel):
    cik: str
    title: str = ""


class TickerResponse(_CamelModel):
    ticker: str
    cik: str
    title: str
    entity_name: str | None = None
    view: str
    financial_data: Literal["available", "not_loaded"]
    facts: dict | None = None
    metrics: list[ProcessedMetric] = []
    periods: list[str] = []
    categories: dict[str, list[str]] | None = None
    forward: ForwardEstimates | None = None

    def to_wire(self) -> dict:
        """camelCase dict; entityName and facts are always present, null when not loaded."""
        body = self.model_dump(by_alias=True, exclude_none=True)
        body.setdefault("entityName", None)
        body.setdefault("facts", None)
        return body
