"""BottomTick command line.

Usage:

  # Dashboard views (ticker with optional view suffix)
  bottomtick view AAPL
  bottomtick view AAPL.q
  bottomtick view MSFT.ch 4

  # Metric × period table
  bottomtick table AAPL.i

  # Trend summary for every key metric
  bottomtick trends NVDA 6

  # Store maintenance
  bottomtick update-tickers
  bottomtick fetch-facts AAPL
  bottomtick process-corpus data/raw data/companyfacts
  bottomtick extract-corpus data/companyfacts data/processed

  # Servers
  bottomtick serve 8877
  bottomtick mcp --sse
"""

from __future__ import annotations

import json
import logging
import sys

from bottomtick.config import get_config


def _fmt(val, indent=2):
    """Pretty-print a value."""
    if isinstance(val, dict):
        return json.dumps(val, indent=indent, default=str)
    if isinstance(val, list):
        return json.dumps(val[:20], indent=indent, default=str)  # Cap at 20 items
    return str(val)


def _header(title: str):
    print(f"\n{'='*60}")
    print(f"  {title}")
    print(f"{'='*60}\n")


def _arrow(trend: str) -> str:
    return {"up": "↑", "down": "↓"}.get(trend, "→")


def cmd_view(query: str, window: int | None = None):
    """Print the metrics of one dashboard view, latest value first."""
    from bottomtick.dashboard import get_ticker_data
    from bottomtick.errors import TickerNotFound
    from bottomtick.views import format_value, parse_ticker_query

    ticker, view = parse_ticker_query(query)
    _header(f"{ticker} | view={view.value}")
    try:
        data = get_ticker_data(ticker, view.value, window)
    except TickerNotFound as e:
        print(f"  {e}")
        return

    print(f"  Company:  {data.entity_name or data.title}")
    print(f"  CIK:      {data.cik}")
    if data.financial_data != "available":
        print("\n  Financial data not loaded. Run: bottomtick fetch-facts", ticker)
        return
    print(f"  Periods:  {len(data.periods)} ({data.periods[-1] if data.periods else '?'} … "
          f"{data.periods[0] if data.periods else '?'})\n")

    for m in data.metrics:
        latest = m.data_points[0]
        t = m.trend
        trend = f"{_arrow(t.overall_trend)}{_arrow(t.short_term_trend)}" if t else ""
        cat = f"  [{m.category}]" if m.category else ""
        print(f"    {m.name[:44]:44s}  {format_value(latest.value, m.unit):>14s}  "
              f"{latest.period}  {trend}{cat}")

    if data.forward:
        print("\n  Forward estimates:")
        print(_fmt(data.forward.model_dump(by_alias=True)))


def cmd_table(query: str):
    """Print the metric × period table for the most recent eight quarters."""
    from bottomtick.dashboard import get_ticker_table
    from bottomtick.errors import TickerNotFound
    from bottomtick.views import format_value, parse_ticker_query

    ticker, view = parse_ticker_query(query)
    _header(f"Table: {ticker} | view={view.value}")
    try:
        table = get_ticker_table(ticker, view.value)
    except TickerNotFound as e:
        print(f"  {e}")
        return
    if not table["rows"]:
        print("  No data.")
        return

    cols = table["columns"][:8]
    print(f"  {'Metric':36s}" + "".join(f"{c:>12s}" for c in cols))
    for row in table["rows"]:
        cells = [
            format_value(v, row["unit"]) if v is not None else "-"
            for v in row["values"][: len(cols)]
        ]
        print(f"  {row['metric'][:36]:36s}" + "".join(f"{c:>12s}" for c in cells))


def cmd_trends(ticker: str, window: int | None = None):
    """Overall / short-term trend and fitted quarterly deltas per key metric."""
    from bottomtick.dashboard import get_ticker_data
    from bottomtick.errors import TickerNotFound

    _header(f"Trends: {ticker.upper()} | window={window or get_config().short_term_window}")
    try:
        data = get_ticker_data(ticker, "detailed", window)
    except TickerNotFound as e:
        print(f"  {e}")
        return
    for m in data.metrics:
        t = m.trend
        if t is None:
            continue
        deltas = "  ".join(f"{q.quarter}:{q.trend_percent:+.1f}%" for q in t.quarterly_trends)
        print(f"    {m.name[:40]:40s}  overall={t.overall_trend:7s}  short={t.short_term_trend:7s}")
        if deltas:
            print(f"      {deltas}")


def cmd_update_tickers():
    """Refresh the stored ticker map from SEC."""
    _header("Update ticker list")
    from bottomtick.errors import UpstreamFetchError
    from bottomtick.sec_client import update_ticker_map
    try:
        print(_fmt(update_ticker_map()))
    except UpstreamFetchError as e:
        print(_fmt(e.to_dict()))


def cmd_fetch_facts(ticker: str):
    """Download one company's companyfacts into the store."""
    _header(f"Fetch companyfacts: {ticker.upper()}")
    from bottomtick.errors import UpstreamFetchError
    from bottomtick.sec_client import get_sec_client
    from bottomtick.storage import lookup_ticker, save_facts

    found = lookup_ticker(ticker)
    if found is None:
        print(f"  Ticker {ticker.upper()} not found. Run: bottomtick update-tickers")
        return
    _, entry = found
    try:
        payload = get_sec_client().fetch_company_facts(entry.cik)
    except UpstreamFetchError as e:
        print(f"  ERROR: {e}")
        return
    path = save_facts(entry.cik, payload)
    print(f"  Saved {entry.title} (CIK {entry.cik}) → {path}")


def cmd_process_corpus(input_dir: str, output_dir: str):
    """Compact a directory of raw companyfacts files."""
    _header(f"Process corpus: {input_dir} → {output_dir}")
    from bottomtick.batch import process_corpus
    stats = process_corpus(input_dir, output_dir)
    print(_fmt(stats.to_dict()))


def cmd_extract_corpus(input_dir: str, output_dir: str):
    """Write curated, normalized extracts of a directory of companyfacts files."""
    _header(f"Extract corpus: {input_dir} → {output_dir}")
    from bottomtick.batch import extract_corpus
    stats = extract_corpus(input_dir, output_dir)
    print(_fmt(stats.to_dict()))


def cmd_serve(port: int | None = None):
    """Run the HTTP API."""
    import uvicorn
    from bottomtick.app import app
    port = port or get_config().port
    print(f"\n  BottomTick API → http://localhost:{port}\n")
    uvicorn.run(app, host="0.0.0.0", port=port, log_level="info")


def cmd_mcp(transport: str | None = None):
    """Run the MCP server (STDIO, or SSE with --sse)."""
    from bottomtick.server import mcp
    if transport == "--sse":
        mcp.run(transport="sse")
    else:
        mcp.run()


COMMANDS = {
    "view": (cmd_view, "ticker[.suffix] [window]"),
    "table": (cmd_table, "ticker[.suffix]"),
    "trends": (cmd_trends, "ticker [window]"),
    "update-tickers": (cmd_update_tickers, ""),
    "fetch-facts": (cmd_fetch_facts, "ticker"),
    "process-corpus": (cmd_process_corpus, "input_dir output_dir"),
    "extract-corpus": (cmd_extract_corpus, "input_dir output_dir"),
    "serve": (cmd_serve, "[port]"),
    "mcp": (cmd_mcp, "[--sse]"),
}


def main(argv: list[str] | None = None):
    argv = sys.argv[1:] if argv is None else argv
    if not argv or argv[0] in ("-h", "--help", "help"):
        print("\nBottomTick")
        print("=" * 44)
        print("\nUsage: bottomtick <command> [args]\n")
        print("Commands:")
        for cmd, (_, args) in COMMANDS.items():
            print(f"  {cmd:16s}  {args}")
        print("\nView suffixes: .d detailed  .q quarterly  .i income  .b balance")
        print("               .c/.cf cash flow  .ch charts  .f forward")
        print()
        return

    logging.basicConfig(
        level=get_config().log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    cmd_name = argv[0].lower()
    if cmd_name not in COMMANDS:
        print(f"Unknown command: {cmd_name}")
        print(f"Available: {', '.join(COMMANDS.keys())}")
        return

    fn, _ = COMMANDS[cmd_name]
    args = argv[1:]

    # Parse arguments based on command
    if cmd_name in ("view", "trends"):
        if not args:
            print(f"Usage: bottomtick {cmd_name} {COMMANDS[cmd_name][1]}")
            return
        window = int(args[1]) if len(args) > 1 else None
        fn(args[0], window)
    elif cmd_name in ("table", "fetch-facts"):
        if not args:
            print(f"Usage: bottomtick {cmd_name} {COMMANDS[cmd_name][1]}")
            return
        fn(args[0])
    elif cmd_name in ("process-corpus", "extract-corpus"):
        if len(args) < 2:
            print(f"Usage: bottomtick {cmd_name} {COMMANDS[cmd_name][1]}")
            return
        fn(args[0], args[1])
    elif cmd_name == "serve":
        fn(int(args[0]) if args else None)
    elif cmd_name == "mcp":
        fn(args[0] if args else None)
    else:
        fn(*args)


if __name__ == "__main__":
    main()
