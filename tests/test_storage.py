"""Tests for the on-disk facts store and ticker map."""

import json
import time

from conftest import make_doc, make_metric

from bottomtick import storage
from bottomtick.models import TickerEntry
from bottomtick.storage import (
    facts_path,
    load_facts,
    load_ticker_map,
    lookup_ticker,
    normalize_cik,
    save_facts,
    save_ticker_map,
)


def test_normalize_cik():
    assert normalize_cik(320193) == "0000320193"
    assert normalize_cik("320193") == "0000320193"
    assert normalize_cik("CIK0000320193") == "0000320193"
    assert normalize_cik("abc") is None
    assert normalize_cik(None) is None


def test_facts_round_trip(store):
    doc = make_doc({"Revenues": make_metric([1.0, 2.0])})
    path = save_facts(320193, doc)
    assert path == store.facts_dir / "CIK0000320193.json"
    loaded = load_facts("320193")
    assert loaded.entity_name == "Apple Inc."
    assert "Revenues" in loaded.taxonomy()


def test_missing_facts_is_none(store):
    assert load_facts(789019) is None
    assert load_facts("not-a-cik") is None


def test_corrupt_facts_is_none(store):
    path = facts_path(320193)
    path.parent.mkdir(parents=True)
    path.write_text("{ not json")
    assert load_facts(320193) is None


def test_slow_read_times_out(store, monkeypatch):
    save_facts(320193, make_doc({"Revenues": make_metric([1.0, 2.0])}))

    def slow_read(path):
        time.sleep(0.5)
        return storage.RawFactDocument.parse({})

    monkeypatch.setattr(storage, "_read_document", slow_read)
    assert load_facts(320193, timeout=0.05) is None


def test_wrong_shape_is_empty_document(store):
    path = facts_path(320193)
    path.parent.mkdir(parents=True)
    path.write_text(json.dumps([1, 2, 3]))
    doc = load_facts(320193)
    assert doc is not None
    assert doc.facts == {}


def test_ticker_map_round_trip(store):
    save_ticker_map({"AAPL": TickerEntry(cik="0000320193", title="Apple Inc.")})
    mapping = load_ticker_map()
    assert mapping["AAPL"].cik == "0000320193"
    assert lookup_ticker("aapl", mapping) == ("AAPL", mapping["AAPL"])
    assert lookup_ticker(" AAPL ") is not None
    assert lookup_ticker("ZZZZ") is None
    assert lookup_ticker("") is None


def test_ticker_map_missing_or_corrupt(store):
    assert load_ticker_map() == {}
    store.tickers_path.write_text("not json")
    assert load_ticker_map() == {}


def test_ticker_map_skips_bad_entries(store):
    store.tickers_path.write_text(json.dumps({
        "aapl": {"cik": 320193, "title": "Apple Inc."},
        "BAD": {"cik": "x"},
        "WORSE": "nope",
    }))
    mapping = load_ticker_map()
    assert list(mapping) == ["AAPL"]
    assert mapping["AAPL"].cik == "0000320193"


def test_save_leaves_no_temp_files(store):
    save_ticker_map({"MSFT": TickerEntry(cik="0000789019", title="Microsoft")})
    assert [p.name for p in store.tickers_path.parent.iterdir()] == ["company_tickers.json"]
