"""BottomTick MCP server: normalized SEC financial series as agent tools.

Tools
─────
  1. lookup_ticker      : ticker → CIK + company title
  2. get_ticker_view    : metrics, periods and trends for one dashboard view
                           ("AAPL", "AAPL.q", "MSFT.ch" …)
  3. get_metric_trends  : one metric's series and trend classification
"""

from __future__ import annotations

from fastmcp import FastMCP

from bottomtick.dashboard import find_metric, get_ticker_data
from bottomtick.errors import TickerNotFound
from bottomtick.storage import lookup_ticker as _lookup
from bottomtick.trends import classify, clamp_window
from bottomtick.views import ViewType, parse_ticker_query

mcp = FastMCP(name="BottomTick")


@mcp.tool()
def lookup_ticker(symbol: str) -> dict:
    """Resolve a ticker symbol to its 10-digit SEC CIK and company title."""
    found = _lookup(symbol)
    if found is None:
        return {"error": str(TickerNotFound(symbol.strip().upper()))}
    ticker, entry = found
    return {"ticker": ticker, "cik": entry.cik, "title": entry.title}


@mcp.tool()
def get_ticker_view(query: str, window: int = 3) -> dict:
    """Get normalized quarterly financial series for a company.

    `query` is a ticker with an optional view suffix:
      .d detailed   .q quarterly (grouped by category)   .i income
      .b balance    .c / .cf cash flow   .ch charts (last 24 quarters)
      .f forward estimates
    `window` is the short-term trend window in quarters (1-6).
    Periods are listed most recent first.
    """
    ticker, view = parse_ticker_query(query)
    try:
        data = get_ticker_data(ticker, view.value, clamp_window(window))
    except TickerNotFound as exc:
        return {"error": str(exc)}
    return data.to_wire()


@mcp.tool()
def get_metric_trends(symbol: str, metric: str, window: int = 3) -> dict:
    """Trend analysis for one metric (XBRL key like "NetIncomeLoss" or display name).

    Returns overall trend (quadratic fit over the full history), short-term
    trend over the last `window` quarters, and per-quarter fitted deltas.
    """
    try:
        data = get_ticker_data(symbol, ViewType.DETAILED.value, clamp_window(window))
    except TickerNotFound as exc:
        return {"error": str(exc)}
    if data.financial_data != "available":
        return {"error": f"Financial data for {data.ticker} is not loaded"}

    found = find_metric(data.metrics, metric)
    if found is None:
        return {"error": f"Metric {metric} not found for {data.ticker}"}

    trend = found.trend or classify(found, short_term_window=clamp_window(window), extended=True)
    return {
        "ticker": data.ticker,
        "metric": found.key,
        "name": found.name,
        "unit": found.unit,
        "series": [p.model_dump(by_alias=True, exclude_none=True) for p in found.data_points],
        "trend": trend.model_dump(by_alias=True),
    }


# ═══════════════════════════════════════════════════════════════════════════
#  ENTRY POINT
# ═══════════════════════════════════════════════════════════════════════════

if __name__ == "__main__":
    import sys

    # STDIO by default (local MCP clients); --sse for remote hosting
    if "--sse" in sys.argv:
        mcp.run(transport="sse")
    else:
        mcp.run()
