"""On-disk store for companyfacts documents and the ticker → CIK map.

Layout (under settings.data_dir by default):
    companyfacts/CIK0000320193.json  : raw SEC companyfacts, one per company
    company_tickers.json             : {"AAPL": {"cik": "0000320193", "title": "Apple Inc."}}

Read failures degrade GRACEFULLY: a missing, corrupt, or slow file is logged
and reported as "not available" (None / {}), never raised to the caller.
Writes go through a temp file + os.replace so readers never see a partial file.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from pathlib import Path
from typing import Any

from bottomtick.config import get_config
from bottomtick.models import RawFactDocument, TickerEntry

log = logging.getLogger(__name__)

# Shared pool for bounded-time filing reads; a timed-out read finishes in
# the background and its result is discarded.
_io_pool = ThreadPoolExecutor(max_workers=4, thread_name_prefix="facts-io")


def normalize_cik(cik: str | int | None) -> str | None:
    """"320193" / 320193 / "CIK0000320193" → "0000320193".  None if not numeric."""
    if cik is None:
        return None
    clean = str(cik).strip().upper()
    if clean.startswith("CIK"):
        clean = clean[3:]
    if not clean.isdigit():
        return None
    return clean.zfill(10)


def facts_path(cik: str | int, facts_dir: Path | None = None) -> Path | None:
    padded = normalize_cik(cik)
    if padded is None:
        return None
    return Path(facts_dir or get_config().facts_dir) / f"CIK{padded}.json"


def write_json(path: Path, payload: Any, indent: int | None = None) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            json.dump(payload, fh, indent=indent)
        os.replace(tmp, path)
    except BaseException:
        if os.path.exists(tmp):
            os.unlink(tmp)
        raise


def read_json(path: Path) -> Any:
    with open(path, encoding="utf-8") as fh:
        return json.load(fh)


# ── Companyfacts documents ────────────────────────────────────────────

def _read_document(path: Path) -> RawFactDocument:
    return RawFactDocument.parse(read_json(path))


def load_facts(
    cik: str | int,
    timeout: float | None = None,
    facts_dir: Path | None = None,
) -> RawFactDocument | None:
    """Load and shape-validate one company's facts.  None = data not available."""
    path = facts_path(cik, facts_dir)
    if path is None:
        log.warning("Invalid CIK %r", cik)
        return None
    if not path.exists():
        log.info("No companyfacts file for CIK %s", cik)
        return None

    timeout = get_config().load_timeout if timeout is None else timeout
    future = _io_pool.submit(_read_document, path)
    try:
        return future.result(timeout=timeout)
    except FutureTimeout:
        log.warning("Timed out after %.1fs reading %s", timeout, path)
        return None
    except (OSError, ValueError) as exc:
        # ValueError covers json.JSONDecodeError and UnicodeDecodeError
        log.warning("Could not read %s: %s", path, exc)
        return None


def save_facts(cik: str | int, payload: dict, facts_dir: Path | None = None) -> Path:
    path = facts_path(cik, facts_dir)
    if path is None:
        raise ValueError(f"Invalid CIK {cik!r}")
    write_json(path, payload)
    return path


# ── Ticker map ────────────────────────────────────────────────────────

def load_ticker_map(path: Path | None = None) -> dict[str, TickerEntry]:
    """Read the ticker map.  Missing or corrupt file → {}."""
    path = Path(path or get_config().tickers_path)
    try:
        raw = read_json(path)
    except FileNotFoundError:
        log.info("Ticker map %s not found", path)
        return {}
    except (OSError, ValueError) as exc:
        log.warning("Could not read ticker map %s: %s", path, exc)
        return {}

    if not isinstance(raw, dict):
        log.warning("Ticker map %s is not a JSON object", path)
        return {}

    mapping: dict[str, TickerEntry] = {}
    for ticker, entry in raw.items():
        if not isinstance(entry, dict):
            continue
        cik = normalize_cik(entry.get("cik"))
        if cik is None:
            continue
        mapping[str(ticker).upper()] = TickerEntry(cik=cik, title=str(entry.get("title") or ""))
    return mapping


def lookup_ticker(
    symbol: str,
    mapping: dict[str, TickerEntry] | None = None,
) -> tuple[str, TickerEntry] | None:
    """Case-insensitive ticker lookup → (TICKER, entry), or None."""
    ticker = symbol.strip().upper()
    if not ticker:
        return None
    if mapping is None:
        mapping = load_ticker_map()
    entry = mapping.get(ticker)
    return (ticker, entry) if entry is not None else None


def save_ticker_map(mapping: dict[str, TickerEntry], path: Path | None = None) -> Path:
    path = Path(path or get_config().tickers_path)
    payload = {ticker: entry.model_dump() for ticker, entry in mapping.items()}
    write_json(path, payload, indent=2)
    log.info("Saved %d tickers to %s", len(payload), path)
    return path
