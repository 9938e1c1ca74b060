"""Tests for the offline corpus jobs: compaction and curated extraction."""

import json

from bottomtick.batch import (
    compact_document,
    extract_corpus,
    extract_document,
    process_corpus,
)
from bottomtick.cli import main


RAW = {
    "cik": 320193,
    "entityName": "Apple Inc.",
    "facts": {
        "dei": {
            "EntityCommonStockSharesOutstanding": {
                "label": "Shares", "description": "d",
                "units": {"shares": [{"end": "2024-10-18", "val": 15e9, "accn": "a"}]},
            },
        },
        "us-gaap": {
            "Revenues": {
                "label": "Revenues",
                "description": "Total revenue",
                "units": {
                    "USD": [
                        {"end": "2024-06-29", "val": 2, "accn": "b", "start": "2024-03-31",
                         "filed": "2024-08-02", "frame": "CY2024Q2"},
                        {"end": "2024-03-30", "val": 1, "accn": "a"},
                        {"end": "2024-09-28", "val": None},
                    ],
                    "EUR": [{"end": "2024-03-30", "val": None}],
                },
            },
            "Empty": {"label": "Empty", "units": {"USD": []}},
            "NoUnits": {"label": "NoUnits"},
        },
        "srt": {"Ignored": {"units": {"USD": [{"end": "2024-03-30", "val": 1}]}}},
    },
}


def test_compact_document():
    doc, count = compact_document(RAW)
    assert doc["cik"] == 320193
    assert doc["entityName"] == "Apple Inc."
    assert set(doc["facts"]) == {"dei", "us-gaap"}

    revenues = doc["facts"]["us-gaap"]["Revenues"]
    assert revenues["description"] == "Total revenue"
    assert list(revenues["units"]) == ["USD"]
    points = revenues["units"]["USD"]
    assert [p["end"] for p in points] == ["2024-03-30", "2024-06-29"]
    assert "start" not in points[1]
    assert "filed" not in points[0]
    assert points[1]["frame"] == "CY2024Q2"
    assert "Empty" not in doc["facts"]["us-gaap"]
    assert "NoUnits" not in doc["facts"]["us-gaap"]

    # dei kept but only us-gaap / ifrs-full series are counted
    assert "EntityCommonStockSharesOutstanding" in doc["facts"]["dei"]
    assert count == 1


def test_process_corpus(tmp_path):
    src, out = tmp_path / "raw", tmp_path / "out"
    src.mkdir()
    (src / "CIK0000320193.json").write_text(json.dumps(RAW, indent=4))
    (src / "CIK0000000002.json").write_text("{ broken")
    (src / "CIK0000000003.json").write_text(json.dumps([1, 2]))
    (src / "notes.txt").write_text("ignored")

    stats = process_corpus(src, out, max_workers=2)
    assert stats.processed == 1
    assert stats.errors == 2
    assert stats.metrics == 1
    assert stats.original_bytes > stats.processed_bytes > 0
    assert stats.savings_pct > 0

    written = json.loads((out / "CIK0000320193.json").read_text())
    assert written["facts"]["us-gaap"]["Revenues"]["units"]["USD"][0]["val"] == 1
    assert sorted(p.name for p in out.iterdir()) == ["CIK0000320193.json"]


def test_process_empty_corpus(tmp_path):
    stats = process_corpus(tmp_path, tmp_path / "out")
    assert stats.to_dict() == {
        "processed": 0,
        "errors": 0,
        "metrics": 0,
        "original_bytes": 0,
        "processed_bytes": 0,
        "savings_pct": 0.0,
    }


# --- Curated extraction ---

EXTRACT_RAW = {
    "cik": 320193,
    "entityName": "Apple Inc.",
    "facts": {
        "dei": {
            "EntityRegistrantName": {
                "description": "Registrant name",
                "units": {"pure": [
                    {"end": "2024-09-28", "val": "Apple Inc.", "filed": "2024-11-01"},
                    {"end": "2023-09-30", "val": "Apple Computer", "filed": "2023-11-03"},
                ]},
            },
            "EntityCommonStockSharesOutstanding": {
                "units": {"shares": [
                    {"end": "2024-01-19", "val": 16e9},
                    {"end": "2024-10-18", "val": 15e9, "filed": "2024-11-01"},
                    {"end": "2024-12-01", "val": None},
                ]},
            },
            "AmendmentFlag": {"units": {"pure": [{"end": "2024-09-28", "val": "false"}]}},
        },
        "us-gaap": {
            "Goodwill": {"units": {"USD": [{"end": "2024-06-29", "val": 5}]}},
            "Revenues": {
                "description": "Total revenue",
                "units": {"USD": [
                    {"end": "2024-03-30", "val": 90, "filed": "2024-05-03"},
                    {"end": "2024-03-30", "val": 91, "filed": "2024-08-02"},
                    {"end": "2024-06-29", "val": 85, "filed": "2024-08-02"},
                    {"end": "2024-09-28", "val": None},
                ]},
            },
            "CustomConcept": {"units": {"USD": [{"end": "2024-06-29", "val": 1}]}},
        },
    },
}


def test_extract_document_series():
    doc, count = extract_document(EXTRACT_RAW)
    assert doc["cik"] == 320193
    assert doc["entityName"] == "Apple Inc."
    assert doc["processedAt"]
    assert count == 2

    gaap = doc["facts"]["us-gaap"]
    # curated order, unknown concepts dropped
    assert list(gaap) == ["Revenues", "Goodwill"]

    revenues = gaap["Revenues"]
    assert revenues["description"] == "Total revenue"
    assert revenues["unit"] == "USD"
    # one point per quarter, later filing wins, newest first
    assert [(p["period"], p["value"]) for p in revenues["dataPoints"]] == [
        ("2024-Q2", 85.0),
        ("2024-Q1", 91.0),
    ]
    assert revenues["dataPoints"][0] == {
        "value": 85.0,
        "period": "2024-Q2",
        "date": "2024-06-29",
        "quarter": "Q2",
        "year": "2024",
        "filed": "2024-08-02",
    }
    assert gaap["Goodwill"]["description"] == "Goodwill"


def test_extract_document_dei_snapshot():
    doc, _ = extract_document(EXTRACT_RAW)
    dei = doc["facts"]["dei"]
    assert set(dei) == {"EntityRegistrantName", "EntityCommonStockSharesOutstanding"}
    assert dei["EntityRegistrantName"] == {
        "description": "Registrant name",
        "unit": "pure",
        "value": "Apple Inc.",
        "end": "2024-09-28",
        "filed": "2024-11-01",
    }
    shares = dei["EntityCommonStockSharesOutstanding"]
    assert shares["value"] == 15e9
    assert shares["end"] == "2024-10-18"
    assert shares["description"] == ""


def test_extract_document_without_facts():
    doc, count = extract_document({"cik": 1, "entityName": "Shell Co"})
    assert count == 0
    assert doc["facts"] == {"us-gaap": {}, "dei": {}}


def test_extract_corpus(tmp_path):
    src, out = tmp_path / "companyfacts", tmp_path / "processed"
    src.mkdir()
    (src / "CIK0000320193.json").write_text(json.dumps(EXTRACT_RAW, indent=4))
    (src / "CIK0000000002.json").write_text("{ broken")

    stats = extract_corpus(src, out, max_workers=2)
    assert stats.processed == 1
    assert stats.errors == 1
    assert stats.metrics == 2

    written = json.loads((out / "CIK0000320193.json").read_text())
    assert list(written["facts"]["us-gaap"]) == ["Revenues", "Goodwill"]


def test_extract_corpus_command(tmp_path, capsys):
    src, out = tmp_path / "companyfacts", tmp_path / "processed"
    src.mkdir()
    (src / "CIK0000320193.json").write_text(json.dumps(EXTRACT_RAW))

    main(["extract-corpus", str(src), str(out)])
    assert '"processed": 1' in capsys.readouterr().out
    assert (out / "CIK0000320193.json").exists()
