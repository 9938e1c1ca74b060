"""BottomTick HTTP API: ticker lookup + normalized financial series for the dashboard.

Endpoints:
  GET  /health                         : liveness + store status
  GET  /api/tickers                    : stored ticker → CIK map
  GET  /api/tickers/{symbol}           : metrics, periods and trends for one view
  GET  /api/tickers/{symbol}/table     : metric × period table
  POST /api/tickers/update             : refresh the ticker map from SEC

Run:  python -m bottomtick.app
Open: http://localhost:{PORT}  (default 8877)
"""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from bottomtick.config import get_config
from bottomtick.dashboard import get_ticker_data, get_ticker_table
from bottomtick.errors import TickerNotFound, UpstreamFetchError
from bottomtick.sec_client import update_ticker_map
from bottomtick.storage import load_ticker_map

log = logging.getLogger(__name__)

app = FastAPI(title="BottomTick")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _not_found(exc: TickerNotFound) -> JSONResponse:
    return JSONResponse(status_code=404, content={"error": str(exc)})


# ═══════════════════════════════════════════════════════════════════════════
#  Health check
# ═══════════════════════════════════════════════════════════════════════════

@app.get("/health")
async def health():
    config = get_config()
    return {
        "status": "ok",
        "tickers": len(load_ticker_map()),
        "factsDir": config.facts_dir.is_dir(),
    }


# ═══════════════════════════════════════════════════════════════════════════
#  Tickers
# ═══════════════════════════════════════════════════════════════════════════

@app.get("/api/tickers")
def list_tickers():
    return {ticker: entry.model_dump() for ticker, entry in load_ticker_map().items()}


@app.post("/api/tickers/update")
def refresh_tickers():
    try:
        return update_ticker_map()
    except UpstreamFetchError as exc:
        log.warning("Ticker update failed: %s", exc)
        return JSONResponse(status_code=502, content=exc.to_dict())


@app.get("/api/tickers/{symbol}")
def ticker_data(
    symbol: str,
    view: str = "default",
    window: int | None = None,
):
    try:
        data = get_ticker_data(symbol, view, window)
    except TickerNotFound as exc:
        return _not_found(exc)
    except Exception:
        log.exception("Error fetching ticker data for %s", symbol)
        return JSONResponse(status_code=500, content={"error": "Failed to fetch ticker data"})
    return data.to_wire()


@app.get("/api/tickers/{symbol}/table")
def ticker_table(symbol: str, view: str = "default"):
    try:
        return get_ticker_table(symbol, view)
    except TickerNotFound as exc:
        return _not_found(exc)
    except Exception:
        log.exception("Error building table for %s", symbol)
        return JSONResponse(status_code=500, content={"error": "Failed to fetch ticker data"})


# ═══════════════════════════════════════════════════════════════════════════
#  Entry point
# ═══════════════════════════════════════════════════════════════════════════

if __name__ == "__main__":
    import uvicorn

    port = get_config().port
    print(f"\n  BottomTick API → http://localhost:{port}\n")
    uvicorn.run(app, host="0.0.0.0", port=port, log_level="info")
