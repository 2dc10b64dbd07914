"""Writer configuration and its layered resolution."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

import yaml

from parquet_meta.errors import ConfigurationError
from parquet_meta.table_file import DEFAULT_BATCH_SIZE

CONFIG_FILE = Path.home() / ".parquet-meta.yaml"

# codec name accepted on the command line -> name pyarrow expects
CODECS: dict[str, str] = {
    "none": "none",
    "uncompressed": "none",
    "snappy": "snappy",
    "gzip": "gzip",
    "brotli": "brotli",
    "lz4": "lz4",
    "lz4_raw": "lz4",
    "zstd": "zstd",
}

ENV_VAR_MAP: dict[str, str] = {
    "PARQUET_META_COMPRESSION": "compression",
    "PARQUET_META_COMPRESSION_LEVEL": "compression_level",
    "PARQUET_META_ROW_GROUP_SIZE": "row_group_size",
    "PARQUET_META_BATCH_SIZE": "batch_size",
}

_INT_FIELDS = {"compression_level", "row_group_size", "data_page_size", "batch_size"}
_BOOL_FIELDS = {"use_dictionary", "write_statistics"}


def normalize_codec(name: str) -> str:
    """Map a user-supplied codec name to pyarrow's spelling."""
    codec = CODECS.get(str(name).strip().lower())
    if codec is None:
        available = ", ".join(sorted(CODECS))
        raise ConfigurationError(f"Unknown compression codec '{name}'. Available: {available}")
    return codec


@dataclass
class WriterConfig:
    """Settings for the output file and the input read loop."""

    compression: str = "snappy"
    compression_level: int | None = None
    row_group_size: int | None = None
    data_page_size: int | None = None
    use_dictionary: bool = True
    write_statistics: bool = True
    batch_size: int = DEFAULT_BATCH_SIZE
    format_version: str = "2.6"

    def __post_init__(self) -> None:
        self.compression = normalize_codec(self.compression)
        if self.batch_size <= 0:
            raise ConfigurationError(f"batch_size must be positive, got {self.batch_size}")
        if self.row_group_size is not None and self.row_group_size <= 0:
            raise ConfigurationError(
                f"row_group_size must be positive, got {self.row_group_size}"
            )

    def writer_options(self) -> dict[str, Any]:
        """Keyword arguments for :class:`pyarrow.parquet.ParquetWriter`."""
        options: dict[str, Any] = {
            "compression": self.compression,
            "use_dictionary": self.use_dictionary,
            "write_statistics": self.write_statistics,
            "version": self.format_version,
        }
        if self.compression_level is not None:
            options["compression_level"] = self.compression_level
        if self.data_page_size is not None:
            options["data_page_size"] = self.data_page_size
        return options


def load_config_file() -> dict[str, Any]:
    """Load ~/.parquet-meta.yaml if it exists."""
    if not CONFIG_FILE.exists():
        return {}
    try:
        with open(CONFIG_FILE) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as exc:
        raise ConfigurationError(
            f"Config file {CONFIG_FILE} contains invalid YAML:\n  {exc}"
        ) from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Config file {CONFIG_FILE} must be a YAML mapping, got {type(data).__name__}"
        )
    return data


def _resolve_placeholders(value: str) -> str:
    """Expand ``${VAR_NAME}`` tokens in *value* using the environment."""

    def _replacer(match: re.Match[str]) -> str:
        var = match.group(1)
        env_val = os.environ.get(var)
        if env_val is None:
            raise ConfigurationError(
                f"Environment variable ${{{var}}} referenced in config but not set"
            )
        return env_val

    return re.sub(r"\$\{(\w+)\}", _replacer, value)


def _coerce(key: str, value: Any) -> Any:
    """Coerce YAML or environment values to the field's type.

    Environment variables and ``${VAR}`` placeholders always arrive as
    strings, while YAML may already have produced ints and bools.
    """
    if isinstance(value, str):
        value = _resolve_placeholders(value)
    if value is None:
        return None
    if key in _INT_FIELDS:
        try:
            return int(value)
        except (TypeError, ValueError):
            raise ConfigurationError(f"'{key}' must be an integer, got {value!r}") from None
    if key in _BOOL_FIELDS:
        if isinstance(value, bool):
            return value
        return str(value).strip().lower() in ("1", "true", "yes", "on")
    return str(value)


def _writer_section(file_config: dict[str, Any]) -> dict[str, Any]:
    section = file_config.get("writer", {}) or {}
    if not isinstance(section, dict):
        raise ConfigurationError(f"'writer' in {CONFIG_FILE} must be a mapping")
    known = {f.name for f in fields(WriterConfig)}
    unknown = sorted(set(section) - known)
    if unknown:
        raise ConfigurationError(
            f"Unknown writer setting(s) in {CONFIG_FILE}: {', '.join(unknown)}"
        )
    return {k: _coerce(k, v) for k, v in section.items()}


def _apply_env_overrides(props: dict[str, Any]) -> dict[str, Any]:
    """Overlay environment variables onto writer settings."""
    for env_key, prop_key in ENV_VAR_MAP.items():
        value = os.environ.get(env_key)
        if value:
            props[prop_key] = _coerce(prop_key, value)
    return props


def resolve_writer_config(**overrides: Any) -> WriterConfig:
    """Build a :class:`WriterConfig` from flags, env vars, and the config file.

    Priority: explicit keyword arguments (CLI flags) > env vars >
    ~/.parquet-meta.yaml > built-in defaults. ``None`` overrides are ignored.
    """
    props = _writer_section(load_config_file())
    props = _apply_env_overrides(props)
    for key, value in overrides.items():
        if value is not None:
            props[key] = value
    return WriterConfig(**props)
