"""Per-column and per-file size accounting over row group metadata."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from parquet_meta.model import RowGroupMetadata
from parquet_meta.serializers import to_json


@dataclass
class ColumnSize:
    """Running compressed/uncompressed totals for one column path."""

    compressed_size: int = 0
    uncompressed_size: int = 0
    compression_ratio: float | None = None

    def __post_init__(self) -> None:
        self._refresh_ratio()

    def add(self, compressed_size: int, uncompressed_size: int) -> None:
        self.compressed_size += compressed_size
        self.uncompressed_size += uncompressed_size
        self._refresh_ratio()

    def _refresh_ratio(self) -> None:
        if self.compressed_size and self.uncompressed_size:
            self.compression_ratio = self.compressed_size / self.uncompressed_size
        else:
            self.compression_ratio = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "compressed_size": self.compressed_size,
            "uncompressed_size": self.uncompressed_size,
            "compression_ratio": self.compression_ratio,
        }


def aggregate_column_sizes(row_groups: Iterable[RowGroupMetadata]) -> dict[str, ColumnSize]:
    """Fold every column chunk of every row group into per-path totals.

    The result is ordered by the first time each column path was seen,
    which is the schema declaration order for ordinary files.
    """
    sizes: dict[str, ColumnSize] = {}
    for rg in row_groups:
        for cc in rg.columns:
            existing = sizes.get(cc.column_path)
            if existing is None:
                sizes[cc.column_path] = ColumnSize(cc.compressed_size, cc.uncompressed_size)
            else:
                existing.add(cc.compressed_size, cc.uncompressed_size)
    return sizes


def column_sizes_to_value(sizes: dict[str, ColumnSize]) -> dict[str, dict[str, Any]]:
    return {path: size.to_dict() for path, size in sizes.items()}


def render_column_sizes(sizes: dict[str, ColumnSize]) -> str:
    return to_json(column_sizes_to_value(sizes))


def total_size(row_groups: Iterable[RowGroupMetadata], *, uncompressed: bool = False) -> int:
    """Size of the file's data in bytes.

    ``uncompressed=True`` sums each row group's ``total_byte_size`` field as
    written in the footer; otherwise the compressed sizes of the column
    chunks are summed. The two are independent quantities.
    """
    if uncompressed:
        return sum(rg.total_byte_size for rg in row_groups)
    return sum(rg.compressed_size for rg in row_groups)
