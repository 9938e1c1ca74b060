"""Direct SEC EDGAR API client for the store-refresh jobs.

Uses only public SEC endpoints (no API key needed, just User-Agent header):
  - files/company_tickers.json          : ticker→CIK resolution
  - api/xbrl/companyfacts/CIK{cik}.json : ALL XBRL facts for a company

Rate limited to 8 req/sec per SEC guidelines.  Nothing on the request path
calls SEC: the dashboard reads only what these jobs have stored.
"""

from __future__ import annotations

import logging
import threading
import time

import requests

from bottomtick.errors import UpstreamFetchError
from bottomtick.models import TickerEntry
from bottomtick.storage import normalize_cik, save_ticker_map

log = logging.getLogger(__name__)

# ═══════════════════════════════════════════════════════════════════════════
#  Constants
# ═══════════════════════════════════════════════════════════════════════════

SEC_BASE = "https://www.sec.gov"
DATA_BASE = "https://data.sec.gov"
TICKERS_URL = f"{SEC_BASE}/files/company_tickers.json"
COMPANY_FACTS_URL = f"{DATA_BASE}/api/xbrl/companyfacts/CIK{{cik}}.json"

# SEC requires a descriptive User-Agent with contact email
DEFAULT_USER_AGENT = "BottomTick bottomtick@example.com"

# Rate limiting: SEC allows up to 10 req/s; we use 8 to stay safe
MAX_REQUESTS_PER_SECOND = 8.0
MIN_REQUEST_INTERVAL = 1.0 / MAX_REQUESTS_PER_SECOND

_RETRY_STATUSES = (500, 502, 503, 504)


# ═══════════════════════════════════════════════════════════════════════════
#  SEC EDGAR Client
# ═══════════════════════════════════════════════════════════════════════════

class SECClient:
    """HTTP client for SEC EDGAR public files.

    Thread-safe rate limiting; every failure surfaces as UpstreamFetchError.
    """

    def __init__(self, user_agent: str = DEFAULT_USER_AGENT):
        self.user_agent = user_agent
        self.headers = {
            "User-Agent": user_agent,
            "Accept-Encoding": "gzip, deflate",
        }
        self._last_request_time = 0.0
        self._rate_lock = threading.Lock()

    # ── Rate-limited HTTP request ─────────────────────────────────────

    def _throttle(self) -> None:
        with self._rate_lock:
            elapsed = time.time() - self._last_request_time
            if elapsed < MIN_REQUEST_INTERVAL:
                time.sleep(MIN_REQUEST_INTERVAL - elapsed)
            self._last_request_time = time.time()

    def _request(self, url: str, timeout: int = 30, retries: int = 2) -> requests.Response:
        """GET with rate limiting and retry on 429 / 5xx / connection errors."""
        for attempt in range(1 + retries):
            self._throttle()
            try:
                resp = requests.get(url, headers=self.headers, timeout=timeout)
            except (requests.exceptions.ConnectionError, requests.exceptions.Timeout) as exc:
                if attempt < retries:
                    wait = min(2 ** attempt, 8)
                    log.warning("Request to %s failed, retrying in %ds: %s", url, wait, exc)
                    time.sleep(wait)
                    continue
                raise UpstreamFetchError(0, str(exc)) from exc

            if resp.status_code == 429 or resp.status_code in _RETRY_STATUSES:
                if attempt < retries:
                    wait = min(2 ** attempt, 10)
                    log.warning("SEC %d, retrying in %ds…", resp.status_code, wait)
                    time.sleep(wait)
                    continue

            if not resp.ok:
                raise UpstreamFetchError(resp.status_code, resp.reason or "")
            return resp

        # Only reachable with a negative retry count
        raise UpstreamFetchError(0, f"Failed after {retries + 1} attempts: {url}")

    def _request_json(self, url: str, timeout: int = 30) -> dict:
        resp = self._request(url, timeout=timeout)
        try:
            return resp.json()
        except ValueError as exc:
            raise UpstreamFetchError(resp.status_code, f"Invalid JSON from {url}") from exc

    # ── Ticker list ───────────────────────────────────────────────────

    def fetch_company_tickers(self) -> dict[str, TickerEntry]:
        """Download company_tickers.json → {TICKER: TickerEntry(cik=10-digit, title)}.

        SEC format: {"0": {"cik_str": 320193, "ticker": "AAPL", "title": "Apple Inc."}, ...}
        """
        log.info("Fetching %s", TICKERS_URL)
        raw = self._request_json(TICKERS_URL)
        if not isinstance(raw, dict):
            raise UpstreamFetchError(200, "Unexpected company_tickers.json format")
        return build_ticker_map(raw)

    # ── XBRL Company Facts ────────────────────────────────────────────

    def fetch_company_facts(self, cik: str | int) -> dict:
        """Download the full companyfacts document for one CIK.

        The response can be large (10-50MB for big filers).
        """
        padded = normalize_cik(cik)
        if padded is None:
            raise ValueError(f"Invalid CIK {cik!r}")
        log.info("Fetching XBRL companyfacts for CIK %s", padded)
        return self._request_json(COMPANY_FACTS_URL.format(cik=padded), timeout=60)


def build_ticker_map(raw: dict) -> dict[str, TickerEntry]:
    mapping: dict[str, TickerEntry] = {}
    for entry in raw.values():
        if not isinstance(entry, dict):
            continue
        ticker = str(entry.get("ticker") or "").strip().upper()
        cik = normalize_cik(entry.get("cik_str"))
        if ticker and cik:
            mapping[ticker] = TickerEntry(cik=cik, title=str(entry.get("title") or ""))
    return mapping


def update_ticker_map(client: SECClient | None = None, path=None) -> dict:
    """Refresh the stored ticker map from SEC.

    The stored map is replaced only after a complete, successful download;
    an UpstreamFetchError leaves it untouched.
    """
    client = client or get_sec_client()
    mapping = client.fetch_company_tickers()
    if not mapping:
        raise UpstreamFetchError(200, "SEC returned an empty ticker list")
    save_ticker_map(mapping, path)
    return {
        "success": True,
        "count": len(mapping),
        "message": "Ticker list updated successfully",
    }


# ═══════════════════════════════════════════════════════════════════════════
#  Module-level singleton: shared across the app
# ═══════════════════════════════════════════════════════════════════════════

_client: SECClient | None = None


def get_sec_client() -> SECClient:
    """Get or create the shared SECClient singleton.

    Reads EDGAR_IDENTITY from config for the User-Agent header.
    """
    global _client
    if _client is None:
        from bottomtick.config import get_config
        config = get_config()
        _client = SECClient(user_agent=config.edgar_identity)
    return _client
