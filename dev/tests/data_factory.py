"""Deterministic test data factory for Parquet metadata tests.

Writes a small set of Parquet files with varied schemas, row group layouts,
codecs, and key/value metadata. Both conftest.py and ad-hoc local runs
delegate to ``seed_files()`` so that everyone sees identical data.
"""

from __future__ import annotations

import json
import random
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Any

import pyarrow as pa
import pyarrow.parquet as pq

# ---------------------------------------------------------------------------
# Reproducible randomness
# ---------------------------------------------------------------------------

_RNG = random.Random(42)

_NAMES = [
    "Alice", "Bob", "Charlie", "Diana", "Eve", "Frank", "Grace",
    "Hank", "Ivy", "Jack", "Karen", "Leo", "Mona", "Nick", "Olivia",
]
_REGIONS = ["us-east", "us-west", "eu-west", "eu-central", "ap-south"]
_BROWSERS = ["Chrome", "Firefox", "Safari", "Edge"]
_OS_LIST = ["Windows", "macOS", "Linux", "iOS", "Android"]

ORDERS_ROWS = 50
ORDERS_ROW_GROUP_SIZE = 20

ORDERS_METADATA = {
    "owner": "analytics-team",
    "writer.options": json.dumps({"source": "data_factory", "version": 3}),
}


def _random_ts(start: datetime, end: datetime) -> datetime:
    delta = end - start
    return start + timedelta(seconds=_RNG.randint(0, int(delta.total_seconds())))


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------


def seed_files(root: Path) -> dict[str, Path]:
    """Write every fixture file under *root* and return ``{name: path}``."""
    _RNG.seed(42)
    root.mkdir(parents=True, exist_ok=True)

    files: dict[str, Path] = {}
    files["orders"] = write_orders(
        root / "orders.parquet",
        1,
        ORDERS_ROWS,
        row_group_size=ORDERS_ROW_GROUP_SIZE,
        metadata=ORDERS_METADATA,
    )
    files["orders_a"] = write_orders(root / "orders_a.parquet", 1, 2, metadata={"owner": "a-team"})
    files["orders_b"] = write_orders(root / "orders_b.parquet", 3, 4, metadata={"owner": "b-team"})
    files["orders_empty"] = write_orders(root / "orders_empty.parquet", 1, 0)
    files["points"] = write_points(root / "points.parquet")
    files["events"] = write_events(root / "events.parquet")
    files["not_parquet"] = root / "not_parquet.parquet"
    files["not_parquet"].write_text("this is not a parquet file\n")
    return files


# ---------------------------------------------------------------------------
# orders: flat schema, nulls, multiple row groups, key/value metadata
# ---------------------------------------------------------------------------

ORDERS_SCHEMA = pa.schema([
    pa.field("order_id", pa.int64(), nullable=False),
    pa.field("customer_name", pa.string()),
    pa.field("region", pa.string()),
    pa.field("amount", pa.float64()),
    pa.field("is_priority", pa.bool_()),
    pa.field("order_date", pa.date32()),
    pa.field("created_at", pa.timestamp("us")),
])


def orders_table(id_start: int, id_end: int) -> pa.Table:
    rows: list[dict[str, Any]] = []
    start, end = datetime(2024, 1, 1), datetime(2024, 4, 30)
    for oid in range(id_start, id_end + 1):
        ts = _random_ts(start, end)
        rows.append({
            "order_id": oid,
            "customer_name": _RNG.choice(_NAMES),
            "region": None if oid % 10 == 0 else _RNG.choice(_REGIONS),
            "amount": round(_RNG.uniform(10.0, 999.99), 2),
            "is_priority": _RNG.random() > 0.7,
            "order_date": ts.date(),
            "created_at": ts,
        })
    return pa.Table.from_pylist(rows, schema=ORDERS_SCHEMA)


def write_orders(
    path: Path,
    id_start: int,
    id_end: int,
    *,
    compression: str = "snappy",
    row_group_size: int | None = None,
    metadata: dict[str, str] | None = None,
) -> Path:
    table = orders_table(id_start, id_end)
    if metadata:
        table = table.replace_schema_metadata(metadata)
    pq.write_table(table, path, compression=compression, row_group_size=row_group_size)
    return path


# ---------------------------------------------------------------------------
# points: tiny x/y/z schema for projection tests
# ---------------------------------------------------------------------------

POINTS_SCHEMA = pa.schema([
    pa.field("x", pa.int32()),
    pa.field("y", pa.int32()),
    pa.field("z", pa.string()),
])


def write_points(path: Path) -> Path:
    table = pa.table(
        {
            "x": [1, 2, 3, 4],
            "y": [10, 20, 30, 40],
            "z": ["a", "b", "c", None],
        },
        schema=POINTS_SCHEMA,
    )
    pq.write_table(table, path, compression="none")
    return path


# ---------------------------------------------------------------------------
# events: nested struct column
# ---------------------------------------------------------------------------

EVENTS_SCHEMA = pa.schema([
    pa.field("event_id", pa.int64(), nullable=False),
    pa.field("device", pa.struct([
        pa.field("browser", pa.string()),
        pa.field("os", pa.string()),
    ])),
    pa.field("event_date", pa.date32()),
])


def write_events(path: Path, rows: int = 12) -> Path:
    data = [
        {
            "event_id": i,
            "device": {"browser": _RNG.choice(_BROWSERS), "os": _RNG.choice(_OS_LIST)},
            "event_date": date(2024, 3, 1) + timedelta(days=i % 7),
        }
        for i in range(rows)
    ]
    pq.write_table(pa.Table.from_pylist(data, schema=EVENTS_SCHEMA), path)
    return path
