"""Snapshot of a Parquet file's footer metadata.

These dataclasses are captured once when a file is opened and never
mutated afterwards. They carry physical values only; rendering them into a
JSON document is the job of :mod:`parquet_meta.serializers`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class PhysicalType(str, Enum):
    BOOLEAN = "BOOLEAN"
    INT32 = "INT32"
    INT64 = "INT64"
    INT96 = "INT96"
    FLOAT = "FLOAT"
    DOUBLE = "DOUBLE"
    BYTE_ARRAY = "BYTE_ARRAY"
    FIXED_LEN_BYTE_ARRAY = "FIXED_LEN_BYTE_ARRAY"


@dataclass(frozen=True)
class Statistics:
    """Min/max and count summary of one column chunk."""

    physical_type: str
    min: Any = None
    max: Any = None
    distinct_count: int | None = None
    null_count: int | None = None
    is_min_max_deprecated: bool = False


@dataclass(frozen=True)
class ColumnChunkMetadata:
    column_type: str
    column_path: str
    compression: str
    compressed_size: int
    uncompressed_size: int
    num_values: int
    file_offset: int = 0
    data_page_offset: int | None = None
    encodings: tuple[str, ...] = ()
    file_path: str | None = None
    index_page_offset: int | None = None
    dictionary_page_offset: int | None = None
    statistics: Statistics | None = None
    bloom_filter_offset: int | None = None
    bloom_filter_length: int | None = None
    offset_index_offset: int | None = None
    offset_index_length: int | None = None
    column_index_offset: int | None = None
    column_index_length: int | None = None


@dataclass(frozen=True)
class RowGroupMetadata:
    ordinal: int
    total_byte_size: int
    num_rows: int
    columns: tuple[ColumnChunkMetadata, ...] = ()

    @property
    def num_columns(self) -> int:
        return len(self.columns)

    @property
    def compressed_size(self) -> int:
        """Sum of the compressed sizes of every column chunk in the group."""
        return sum(c.compressed_size for c in self.columns)


@dataclass(frozen=True)
class FileMetadata:
    version: int
    num_rows: int
    created_by: str | None = None
    key_value_metadata: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class FileMetadataTree:
    """Root of the inspected document: file-level fields plus row groups."""

    file_metadata: FileMetadata
    row_groups: tuple[RowGroupMetadata, ...] = ()

    @property
    def num_row_groups(self) -> int:
        return len(self.row_groups)
