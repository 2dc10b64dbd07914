"""Read-only operations over a single Parquet file."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from itertools import islice
from pathlib import Path
from typing import Any

from parquet_meta.model import FileMetadataTree
from parquet_meta.serializers import render_metadata, to_json
from parquet_meta.sizes import (
    ColumnSize,
    aggregate_column_sizes,
    render_column_sizes,
    total_size,
)
from parquet_meta.table_file import DEFAULT_BATCH_SIZE, TableFile

log = logging.getLogger(__name__)


class Inspector:
    """Owns one open file and the metadata snapshot taken when it was opened."""

    def __init__(self, path: str | Path, *, batch_size: int = DEFAULT_BATCH_SIZE) -> None:
        self._file = TableFile.open(path)
        self.path = self._file.path
        try:
            self.metadata: FileMetadataTree = self._file.metadata()
        except Exception:
            self._file.close()
            raise
        self._batch_size = batch_size

    def __enter__(self) -> Inspector:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self._file.close()

    # ─── rows ─────────────────────────────────────────────────

    def projection(self, columns: Iterable[str]) -> list[str] | None:
        """Top-level field names to read, in the file's own order.

        Returns ``None`` (read everything) when *columns* is empty. Names
        that are not in the schema are silently dropped.
        """
        wanted = set(columns)
        if not wanted:
            return None
        return [name for name in self._file.field_names if name in wanted]

    def rows(self, columns: Iterable[str] = (), limit: int = 0) -> Iterator[dict[str, Any]]:
        """Lazily yield rows as dicts; ``limit == 0`` means no limit."""
        projection = self.projection(columns)
        log.debug("Reading %s with projection %s, limit %d", self.path, projection, limit)
        if projection == []:
            # nothing requested exists: one empty record per row
            source: Iterator[dict[str, Any]] = ({} for _ in range(self.row_count()))
        else:
            source = self._file.iter_rows(projection, batch_size=self._batch_size)
        if limit:
            source = islice(source, limit)
        return source

    def preview(self, columns: Iterable[str] = (), limit: int = 0) -> Iterator[str]:
        """Lazily yield one compact JSON document per row."""
        for row in self.rows(columns, limit):
            yield to_json(row, pretty=False)

    # ─── metadata ─────────────────────────────────────────────

    def schema_text(self) -> str:
        return self._file.schema_text()

    def row_count(self) -> int:
        return sum(rg.num_rows for rg in self.metadata.row_groups)

    def dump_metadata(self) -> str:
        return render_metadata(self.metadata)

    def total_size(self, uncompressed: bool = False) -> int:
        return total_size(self.metadata.row_groups, uncompressed=uncompressed)

    def column_sizes(self) -> dict[str, ColumnSize]:
        return aggregate_column_sizes(self.metadata.row_groups)

    def column_sizes_text(self) -> str:
        return render_column_sizes(self.column_sizes())

    def file_info(self) -> list[dict[str, Any]]:
        """Overview of the file as a list of key/value rows."""
        md = self.metadata.file_metadata
        return [
            {"Key": "Path", "Value": self.path},
            {"Key": "Format Version", "Value": md.version},
            {"Key": "Created By", "Value": md.created_by or "unknown"},
            {"Key": "Rows", "Value": self.row_count()},
            {"Key": "Row Groups", "Value": self.metadata.num_row_groups},
            {"Key": "Columns", "Value": self._file.num_columns},
            {"Key": "Compressed Size", "Value": self.total_size()},
            {"Key": "Uncompressed Size", "Value": self.total_size(uncompressed=True)},
            {"Key": "Metadata Keys", "Value": ", ".join(md.key_value_metadata) or "-"},
        ]
