"""Inspect and rewrite Parquet files."""

__version__ = "0.1.0"
