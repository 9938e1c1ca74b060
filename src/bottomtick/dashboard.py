"""Ticker → response assembly shared by the HTTP app, the MCP server and the CLI.

Resolves a symbol through the stored ticker map, loads the company's facts
and runs them through build_view().  An unknown ticker raises TickerNotFound;
a company whose facts are missing or unreadable still gets a response, with
financialData = "not_loaded".
"""

from __future__ import annotations

import logging

from bottomtick.config import get_config
from bottomtick.errors import TickerNotFound
from bottomtick.models import ProcessedMetric, RawFactDocument, TickerResponse
from bottomtick.series import SeriesBundle, to_frame
from bottomtick.storage import load_facts, lookup_ticker
from bottomtick.trends import clamp_window
from bottomtick.views import ViewType, build_view

log = logging.getLogger(__name__)


def _dei_section(doc: RawFactDocument) -> dict:
    return {
        key: metric.model_dump(exclude_none=True)
        for key, metric in doc.taxonomy("dei").items()
    }


def get_ticker_data(
    symbol: str,
    view: str | None = None,
    window: int | None = None,
) -> TickerResponse:
    """Full dashboard payload for one ticker and view."""
    found = lookup_ticker(symbol)
    if found is None:
        raise TickerNotFound(symbol.strip().upper())
    ticker, entry = found

    config = get_config()
    window = clamp_window(config.short_term_window if window is None else window)
    view_name = view or ViewType.DEFAULT.value

    doc = load_facts(entry.cik)
    if doc is None:
        log.info("Facts for %s (CIK %s) not loaded", ticker, entry.cik)
        return TickerResponse(
            ticker=ticker,
            cik=entry.cik,
            title=entry.title,
            view=view_name,
            financial_data="not_loaded",
        )

    result = build_view(
        doc,
        view_name,
        short_term_window=window,
        chart_max_points=config.chart_max_points,
    )
    return TickerResponse(
        ticker=ticker,
        cik=entry.cik,
        title=entry.title,
        entity_name=doc.entity_name,
        view=view_name,
        financial_data="available",
        facts={"entityName": doc.entity_name, "dei": _dei_section(doc)},
        metrics=result.metrics,
        periods=result.periods,
        categories=result.categories,
        forward=result.forward,
    )


def get_ticker_table(symbol: str, view: str | None = None) -> dict:
    """Metric × period table: {"columns": [periods], "rows": [{"metric", "unit", "values"}]}.

    Missing cells are None.
    """
    data = get_ticker_data(symbol, view)
    df = to_frame(SeriesBundle(metrics=data.metrics, periods=data.periods))
    df = df.astype(object).where(df.notna(), None)
    units = {m.name: m.unit for m in data.metrics}
    rows = [
        {"metric": name, "unit": units.get(name, ""), "values": list(values)}
        for name, values in zip(df.index, df.to_numpy().tolist())
    ]
    return {"ticker": data.ticker, "columns": list(df.columns), "rows": rows}


def find_metric(metrics: list[ProcessedMetric], wanted: str) -> ProcessedMetric | None:
    """Match by XBRL key or humanized name, case-insensitively."""
    low = wanted.strip().lower()
    for metric in metrics:
        if metric.key.lower() == low or metric.name.lower() == low:
            return metric
    return None
