"""Thin wrapper over :class:`pyarrow.parquet.ParquetFile`.

pyarrow owns every byte-level concern (page layout, encodings, codecs).
This module only opens files, converts the footer into the snapshot types
of :mod:`parquet_meta.model`, and exposes lazy row/batch iteration.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from pathlib import Path
from typing import Any

import pyarrow as pa
import pyarrow.parquet as pq

from parquet_meta.errors import TableFileError
from parquet_meta.model import (
    ColumnChunkMetadata,
    FileMetadata,
    FileMetadataTree,
    RowGroupMetadata,
    Statistics,
)

log = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 65536


def _optional(obj: Any, name: str) -> Any:
    """Read an attribute that some pyarrow releases lack or refuse to return."""
    try:
        return getattr(obj, name)
    except (AttributeError, NotImplementedError):
        return None


def _decode(value: bytes | str) -> str:
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return value


def _format_major_version(format_version: str) -> int:
    try:
        return int(str(format_version).split(".", 1)[0])
    except ValueError:
        return 0


def _build_statistics(stats: Any) -> Statistics:
    has_min_max = stats.has_min_max
    return Statistics(
        physical_type=str(stats.physical_type),
        min=stats.min_raw if has_min_max else None,
        max=stats.max_raw if has_min_max else None,
        distinct_count=stats.distinct_count if stats.has_distinct_count else None,
        null_count=stats.null_count if stats.has_null_count else None,
        is_min_max_deprecated=bool(_optional(stats, "is_min_max_deprecated")),
    )


def _build_column(chunk: Any) -> ColumnChunkMetadata:
    statistics = _build_statistics(chunk.statistics) if chunk.is_stats_set else None
    return ColumnChunkMetadata(
        column_type=str(chunk.physical_type),
        column_path=chunk.path_in_schema,
        compression=str(chunk.compression),
        compressed_size=chunk.total_compressed_size,
        uncompressed_size=chunk.total_uncompressed_size,
        num_values=chunk.num_values,
        file_offset=chunk.file_offset,
        data_page_offset=chunk.data_page_offset,
        encodings=tuple(dict.fromkeys(str(e) for e in chunk.encodings)),
        file_path=chunk.file_path or None,
        index_page_offset=_optional(chunk, "index_page_offset"),
        dictionary_page_offset=chunk.dictionary_page_offset,
        statistics=statistics,
        bloom_filter_offset=_optional(chunk, "bloom_filter_offset"),
        bloom_filter_length=_optional(chunk, "bloom_filter_length"),
        offset_index_offset=_optional(chunk, "offset_index_offset"),
        offset_index_length=_optional(chunk, "offset_index_length"),
        column_index_offset=_optional(chunk, "column_index_offset"),
        column_index_length=_optional(chunk, "column_index_length"),
    )


def build_metadata_tree(md: pq.FileMetaData) -> FileMetadataTree:
    """Convert a pyarrow footer into a :class:`FileMetadataTree` snapshot."""
    kv: dict[str, str] = {}
    for key, value in (md.metadata or {}).items():
        kv[_decode(key)] = _decode(value)

    row_groups = []
    for i in range(md.num_row_groups):
        rg = md.row_group(i)
        columns = tuple(_build_column(rg.column(j)) for j in range(rg.num_columns))
        row_groups.append(
            RowGroupMetadata(
                ordinal=i,
                total_byte_size=rg.total_byte_size,
                num_rows=rg.num_rows,
                columns=columns,
            )
        )

    file_md = FileMetadata(
        version=_format_major_version(md.format_version),
        num_rows=md.num_rows,
        created_by=md.created_by,
        key_value_metadata=kv,
    )
    return FileMetadataTree(file_metadata=file_md, row_groups=tuple(row_groups))


class TableFile:
    """An open Parquet file. Each instance owns its own file handle."""

    def __init__(self, path: str, parquet_file: pq.ParquetFile) -> None:
        self.path = path
        self._file = parquet_file
        self._metadata: FileMetadataTree | None = None

    @classmethod
    def open(cls, path: str | Path) -> TableFile:
        path = str(path)
        try:
            parquet_file = pq.ParquetFile(path)
        except OSError as exc:
            raise TableFileError(path, exc.strerror or str(exc)) from exc
        log.debug("Opened %s (%d row groups)", path, parquet_file.metadata.num_row_groups)
        return cls(path, parquet_file)

    def __enter__(self) -> TableFile:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self._file.close()

    def metadata(self) -> FileMetadataTree:
        if self._metadata is None:
            self._metadata = build_metadata_tree(self._file.metadata)
        return self._metadata

    @property
    def arrow_schema(self) -> pa.Schema:
        return self._file.schema_arrow

    @property
    def field_names(self) -> list[str]:
        return list(self._file.schema_arrow.names)

    @property
    def num_columns(self) -> int:
        """Number of leaf columns."""
        return self._file.metadata.num_columns

    @property
    def key_value_metadata(self) -> dict[bytes, bytes]:
        """Raw footer key/value pairs, exactly as stored."""
        return dict(self._file.metadata.metadata or {})

    def schema_text(self) -> str:
        """The Parquet schema in the format's own message notation."""
        # pyarrow prefixes the dump with the object's default repr line
        text = repr(self._file.schema)
        return text.split("\n", 1)[-1].rstrip()

    def iter_batches(
        self,
        columns: Sequence[str] | None = None,
        *,
        batch_size: int = DEFAULT_BATCH_SIZE,
    ) -> Iterator[pa.RecordBatch]:
        cols = list(columns) if columns is not None else None
        try:
            yield from self._file.iter_batches(batch_size=batch_size, columns=cols)
        except OSError as exc:
            raise TableFileError(self.path, exc.strerror or str(exc)) from exc

    def iter_rows(
        self,
        columns: Sequence[str] | None = None,
        *,
        batch_size: int = DEFAULT_BATCH_SIZE,
    ) -> Iterator[dict[str, Any]]:
        for batch in self.iter_batches(columns, batch_size=batch_size):
            yield from batch.to_pylist()
