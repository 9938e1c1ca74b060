"""Shared fixtures: synthetic companyfacts documents and a temp-dir store."""

import pytest

from bottomtick.config import Settings, reset_config


def quarter_end(i: int, start_year: int = 2015) -> str:
    """ISO end date of the i-th calendar quarter after start_year Q1."""
    year = start_year + i // 4
    month = 3 * (i % 4 + 1)
    day = 31 if month in (3, 12) else 30
    return f"{year}-{month:02d}-{day}"


def make_points(values, start_year: int = 2015, filed: bool = True) -> list[dict]:
    points = []
    for i, v in enumerate(values):
        end = quarter_end(i, start_year)
        point = {"end": end, "val": v, "accn": f"0000-{i}", "form": "10-Q"}
        if filed:
            point["filed"] = end
        points.append(point)
    return points


def make_metric(values, unit: str = "USD", label: str | None = None, **kw) -> dict:
    return {"label": label, "description": label, "units": {unit: make_points(values, **kw)}}


def make_doc(metrics: dict, cik: int = 320193, entity: str = "Apple Inc.") -> dict:
    return {
        "cik": cik,
        "entityName": entity,
        "facts": {
            "dei": {
                "EntityCommonStockSharesOutstanding": make_metric([15_000_000_000], unit="shares"),
            },
            "us-gaap": metrics,
        },
    }


@pytest.fixture
def store(tmp_path):
    """Point the settings singleton at an empty on-disk store under tmp_path."""
    settings = Settings(data_dir=tmp_path)
    reset_config(settings)
    yield settings
    reset_config(None)
