"""Series assembly: raw metrics → ProcessedMetric list + global period axis."""

from __future__ import annotations

import logging
from typing import NamedTuple

import pandas as pd

from bottomtick.extractor import (
    SelectionPolicy,
    humanize,
    resolve_primary_unit,
    select_metrics,
)
from bottomtick.models import ProcessedMetric, RawFactDocument, RawMetric
from bottomtick.periods import normalize, sort_periods

log = logging.getLogger(__name__)


class SeriesBundle(NamedTuple):
    metrics: list[ProcessedMetric]
    periods: list[str]          # union of all metric periods, most recent first


def process_metric(key: str, raw: RawMetric) -> ProcessedMetric | None:
    """Unit resolution + normalization for one concept.

    None when nothing usable survives: the metric is dropped, not emitted empty.
    """
    resolved = resolve_primary_unit(raw)
    if resolved is None:
        log.debug("Skipping %s (no usable unit)", key)
        return None
    unit, points = resolved

    data_points = normalize(points)
    if not data_points:
        log.debug("Skipping %s (no usable data points in %s)", key, unit)
        return None

    name = humanize(key)
    return ProcessedMetric(
        key=key,
        name=name,
        description=raw.description or name,
        unit=unit,
        data_points=tuple(data_points),
    )


def extract_metrics(doc: RawFactDocument, policy: SelectionPolicy) -> list[ProcessedMetric]:
    """Process every selected concept; one bad concept never stops its siblings."""
    available = doc.taxonomy(policy.taxonomy)
    metrics: list[ProcessedMetric] = []
    for key in select_metrics(doc, policy):
        try:
            metric = process_metric(key, available[key])
        except Exception as exc:
            log.warning("Failed to process %s: %s", key, exc)
            continue
        if metric is not None:
            metrics.append(metric)
    return metrics


def assemble(metrics: list[ProcessedMetric]) -> SeriesBundle:
    periods: set[str] = set()
    for metric in metrics:
        periods |= metric.periods
    return SeriesBundle(metrics=list(metrics), periods=sort_periods(periods))


def to_frame(bundle: SeriesBundle) -> pd.DataFrame:
    """Metric × period table for display: rows are metrics, columns most recent first.

    Cells a metric did not report are NaN.
    """
    rows = {
        metric.name: {p.period: p.value for p in metric.data_points}
        for metric in bundle.metrics
    }
    df = pd.DataFrame.from_dict(rows, orient="index")
    return df.reindex(columns=bundle.periods)
