"""Offline corpus jobs over a directory of CIK*.json companyfacts files.

compact: keeps every us-gaap / dei / ifrs-full concept, but per observation
only the fields the dashboard reads (end, val, accn, fy, fp, form, filed,
frame), drops null values and empty units, and sorts each unit array by end.

extract: keeps only the curated us-gaap concepts, already normalized into
quarterly series (newest first), plus a latest-value snapshot of the main
dei concepts.

Files are independent: each worker reads one input and writes one output.
Counters are aggregated in the coordinating thread from returned results,
so a failing file bumps `errors` and the run continues.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Callable

from bottomtick.extractor import EXTRACT_POLICY
from bottomtick.models import RawFactDocument
from bottomtick.periods import parse_date
from bottomtick.series import extract_metrics
from bottomtick.storage import write_json, read_json
from bottomtick.xbrl_mappings import DEI_SNAPSHOT_CONCEPTS

log = logging.getLogger(__name__)

KEPT_TAXONOMIES = ("us-gaap", "dei", "ifrs-full")
# dei is company metadata, not a financial series, so it is kept but not counted
COUNTED_TAXONOMIES = ("us-gaap", "ifrs-full")
POINT_FIELDS = ("end", "val", "accn", "fy", "fp", "form", "filed", "frame")
PROGRESS_EVERY = 100


@dataclass
class BatchStats:
    processed: int = 0
    errors: int = 0
    metrics: int = 0
    original_bytes: int = 0
    processed_bytes: int = 0

    @property
    def savings_pct(self) -> float:
        if self.original_bytes <= 0:
            return 0.0
        return round((self.original_bytes - self.processed_bytes) / self.original_bytes * 100, 1)

    def to_dict(self) -> dict:
        return {
            "processed": self.processed,
            "errors": self.errors,
            "metrics": self.metrics,
            "original_bytes": self.original_bytes,
            "processed_bytes": self.processed_bytes,
            "savings_pct": self.savings_pct,
        }


def _compact_points(values: Any) -> list[dict]:
    if not isinstance(values, list):
        return []
    points = [
        {field: item[field] for field in POINT_FIELDS if item.get(field) is not None}
        for item in values
        if isinstance(item, dict) and item.get("val") is not None
    ]
    # Points without an end date sort first rather than breaking the sort
    points.sort(key=lambda p: str(p.get("end") or ""))
    return points


def compact_document(raw: dict) -> tuple[dict, int]:
    """Compact one companyfacts document.  Returns (document, unit-series count)."""
    out: dict[str, Any] = {
        "cik": raw.get("cik"),
        "entityName": raw.get("entityName"),
        "facts": {},
    }
    count = 0
    facts = raw.get("facts") or {}

    for taxonomy in KEPT_TAXONOMIES:
        concepts = facts.get(taxonomy)
        if not isinstance(concepts, dict):
            continue
        kept: dict[str, Any] = {}
        for key, metric in concepts.items():
            if not isinstance(metric, dict) or not isinstance(metric.get("units"), dict):
                continue
            units: dict[str, list[dict]] = {}
            for unit_name, values in metric["units"].items():
                points = _compact_points(values)
                if points:
                    units[unit_name] = points
            if not units:
                continue
            kept[key] = {
                "label": metric.get("label"),
                "description": metric.get("description"),
                "units": units,
            }
            if taxonomy in COUNTED_TAXONOMIES:
                count += len(units)
        out["facts"][taxonomy] = kept

    return out, count


def _latest_dei(metric: Any) -> dict | None:
    """Latest observation (by end date) of the first unit, or None."""
    if not isinstance(metric, dict) or not isinstance(metric.get("units"), dict):
        return None
    if not metric["units"]:
        return None
    unit, values = next(iter(metric["units"].items()))
    if not isinstance(values, list):
        return None
    points = [
        item for item in values
        if isinstance(item, dict) and item.get("end") and item.get("val") is not None
    ]
    if not points:
        return None
    latest = max(points, key=lambda p: parse_date(str(p["end"])) or date.min)
    return {
        "description": metric.get("description") or "",
        "unit": unit,
        "value": latest["val"],
        "end": latest["end"],
        "filed": latest.get("filed"),
    }


def extract_document(raw: dict) -> tuple[dict, int]:
    """Curated, normalized extract of one document.  Returns (document, metric count)."""
    doc = RawFactDocument.parse(raw)
    gaap = {
        metric.key: {
            "description": metric.description,
            "unit": metric.unit,
            "dataPoints": [p.model_dump(by_alias=True, exclude_none=True) for p in metric.data_points],
        }
        for metric in extract_metrics(doc, EXTRACT_POLICY)
    }

    # dei values can be strings (EntityRegistrantName), so they are read unparsed
    facts = raw.get("facts") if isinstance(raw.get("facts"), dict) else {}
    dei_raw = facts.get("dei") if isinstance(facts.get("dei"), dict) else {}
    dei: dict[str, dict] = {}
    for key in DEI_SNAPSHOT_CONCEPTS:
        snapshot = _latest_dei(dei_raw.get(key))
        if snapshot is not None:
            dei[key] = snapshot

    out = {
        "cik": raw.get("cik"),
        "entityName": raw.get("entityName"),
        "processedAt": datetime.now(timezone.utc).isoformat(),
        "facts": {"us-gaap": gaap, "dei": dei},
    }
    return out, len(gaap)


Transform = Callable[[dict], tuple[dict, int]]


def process_file(
    src: Path,
    output_dir: Path,
    transform: Transform = compact_document,
) -> tuple[int, int, int]:
    """Rewrite src into output_dir.  Returns (metric count, input bytes, output bytes)."""
    raw = read_json(src)
    if not isinstance(raw, dict):
        raise ValueError(f"{src.name}: not a JSON object")
    doc, count = transform(raw)
    dest = output_dir / src.name
    write_json(dest, doc, indent=2)
    return count, src.stat().st_size, dest.stat().st_size


def process_corpus(
    input_dir: str | Path,
    output_dir: str | Path,
    max_workers: int = 4,
    transform: Transform = compact_document,
) -> BatchStats:
    """Run transform over every CIK*.json under input_dir, writing into output_dir."""
    input_dir, output_dir = Path(input_dir), Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    files = sorted(p for p in input_dir.glob("CIK*.json") if p.is_file())
    log.info("Found %d CIK files to process in %s", len(files), input_dir)

    stats = BatchStats()
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = {executor.submit(process_file, f, output_dir, transform): f for f in files}
        for future in as_completed(futures):
            src = futures[future]
            try:
                count, in_bytes, out_bytes = future.result()
            except Exception as exc:
                log.error("Error processing %s: %s", src.name, exc)
                stats.errors += 1
                continue
            stats.processed += 1
            stats.metrics += count
            stats.original_bytes += in_bytes
            stats.processed_bytes += out_bytes
            if stats.processed % PROGRESS_EVERY == 0:
                log.info("Processed %d/%d files…", stats.processed, len(files))

    log.info(
        "Corpus %s complete: %d processed, %d errors, %d metrics, %.1f%% smaller",
        transform.__name__, stats.processed, stats.errors, stats.metrics, stats.savings_pct,
    )
    return stats


def extract_corpus(
    input_dir: str | Path,
    output_dir: str | Path,
    max_workers: int = 4,
) -> BatchStats:
    """Write the curated extract of every CIK*.json under input_dir into output_dir."""
    return process_corpus(input_dir, output_dir, max_workers, transform=extract_document)
