"""Render the metadata snapshot as a JSON-compatible document.

The document is built bottom-up (statistics, column chunk, row group, file)
as plain dicts and only turned into text once, by :func:`render_metadata`.
Key order follows the field lists below, not alphabetical order, so dumps
stay diff-friendly.
"""

from __future__ import annotations

import json
import logging
import math
from collections.abc import Callable
from typing import Any

from parquet_meta.model import (
    ColumnChunkMetadata,
    FileMetadata,
    FileMetadataTree,
    PhysicalType,
    RowGroupMetadata,
    Statistics,
)

log = logging.getLogger(__name__)


# ─── statistics ───────────────────────────────────────────────


def _native(value: Any) -> Any:
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return value


def _as_text(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, (bytes, bytearray, memoryview)):
        raw = bytes(value)
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError:
            return raw.hex()
    return str(value)


_RENDERERS: dict[str, Callable[[Any], Any]] = {
    PhysicalType.BOOLEAN.value: _native,
    PhysicalType.INT32.value: _native,
    PhysicalType.INT64.value: _native,
    PhysicalType.FLOAT.value: _native,
    PhysicalType.DOUBLE.value: _native,
    PhysicalType.INT96.value: _as_text,
    PhysicalType.BYTE_ARRAY.value: _as_text,
    PhysicalType.FIXED_LEN_BYTE_ARRAY.value: _as_text,
}


def statistics_to_value(stats: Statistics) -> dict[str, Any]:
    """Convert one column chunk's statistics into a uniform dict."""
    render = _RENDERERS.get(str(stats.physical_type), _as_text)
    return {
        "min": render(stats.min),
        "max": render(stats.max),
        "distinct_count": stats.distinct_count,
        "null_count": stats.null_count,
        "is_min_max_deprecated": stats.is_min_max_deprecated,
    }


# ─── file metadata ────────────────────────────────────────────


def _reject_constant(name: str) -> Any:
    raise ValueError(f"non-standard JSON constant {name}")


def parse_metadata_value(value: str) -> Any:
    """Return *value* decoded as JSON, or unchanged if it is not JSON.

    Only standard JSON is accepted, so `NaN` and `Infinity` stay strings.
    """
    try:
        return json.loads(value, parse_constant=_reject_constant)
    except ValueError:
        log.debug("Key/value entry is not JSON, keeping raw string")
        return value


def file_metadata_to_value(md: FileMetadata) -> dict[str, Any]:
    return {
        "version": md.version,
        "num_rows": md.num_rows,
        "created_by": md.created_by,
        "metadata": {k: parse_metadata_value(v) for k, v in md.key_value_metadata.items()},
    }


def column_to_value(cc: ColumnChunkMetadata) -> dict[str, Any]:
    return {
        "column_type": cc.column_type,
        "column_path": cc.column_path,
        "encodings": list(cc.encodings),
        "file_path": cc.file_path,
        "file_offset": cc.file_offset,
        "num_values": cc.num_values,
        "compression": cc.compression,
        "compressed_size": cc.compressed_size,
        "uncompressed_size": cc.uncompressed_size,
        "data_page_offset": cc.data_page_offset,
        "index_page_offset": cc.index_page_offset,
        "dict_page_offset": cc.dictionary_page_offset,
        "statistics": statistics_to_value(cc.statistics) if cc.statistics else None,
        "bloomfilter_offset": cc.bloom_filter_offset,
        "bloomfilter_length": cc.bloom_filter_length,
        "offset_index_offset": cc.offset_index_offset,
        "offset_index_length": cc.offset_index_length,
        "column_index_offset": cc.column_index_offset,
        "column_index_length": cc.column_index_length,
    }


def row_group_to_value(rg: RowGroupMetadata) -> dict[str, Any]:
    return {
        "ordinal": rg.ordinal,
        "total_byte_size": rg.total_byte_size,
        "num_rows": rg.num_rows,
        "num_columns": rg.num_columns,
        "columns": [column_to_value(c) for c in rg.columns],
    }


def metadata_to_value(tree: FileMetadataTree) -> dict[str, Any]:
    """Walk the whole metadata tree into one nested dict."""
    return {
        "file_metadata": file_metadata_to_value(tree.file_metadata),
        "num_row_groups": tree.num_row_groups,
        "row_groups": [row_group_to_value(rg) for rg in tree.row_groups],
    }


def _json_safe(value: Any) -> Any:
    """Turn row and document values into ones JSON can hold.

    Non-finite floats become null and bytes become text, the same way
    statistics are rendered.
    """
    if isinstance(value, dict):
        return {k: _json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_safe(v) for v in value]
    if isinstance(value, float):
        return _native(value)
    if isinstance(value, (bytes, bytearray, memoryview)):
        return _as_text(value)
    return value


def to_json(value: Any, *, pretty: bool = True) -> str:
    """Serialize a generic value, keeping insertion order of keys."""
    value = _json_safe(value)
    if pretty:
        return json.dumps(value, indent=2, default=str, allow_nan=False)
    return json.dumps(value, default=str, allow_nan=False)


def render_metadata(tree: FileMetadataTree) -> str:
    return to_json(metadata_to_value(tree))
