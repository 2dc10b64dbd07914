"""Exception types raised by parquet-meta."""

from __future__ import annotations


class ParquetMetaError(Exception):
    """Base exception for all parquet-meta errors."""


class ConfigurationError(ParquetMetaError):
    """Raised for invalid settings before any output is touched."""


class SchemaMismatchError(ParquetMetaError):
    """Raised when input files do not share an identical schema."""


class TableFileError(ParquetMetaError):
    """Raised when a file cannot be opened, read, or written."""

    def __init__(self, path: str, message: str) -> None:
        super().__init__(f"{path}: {message}")
        self.path = path
