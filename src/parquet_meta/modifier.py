"""Schema-checked streaming rewrite of one or more Parquet files.

Every variant (merge, prune, compression translation, masking) is the same
loop: the inputs' record batches are streamed, in input order, through an
optional per-batch transform into a single :class:`pyarrow.parquet.ParquetWriter`.
Row groups are not merged; the writer decides the output's physical layout.
The output is written in place, so a failure part-way leaves a partial file
behind.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from contextlib import ExitStack
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Any

import pyarrow as pa
import pyarrow.compute as pc
import pyarrow.parquet as pq

from parquet_meta.config import WriterConfig
from parquet_meta.errors import ConfigurationError, SchemaMismatchError, TableFileError
from parquet_meta.table_file import TableFile

log = logging.getLogger(__name__)

# the writer stores its own serialized Arrow schema under this key
ARROW_SCHEMA_KEY = b"ARROW:schema"

MASK_TEXT = "***"

BatchTransform = Callable[[pa.RecordBatch], pa.RecordBatch]


class ModifierState(str, Enum):
    OPENED = "opened"
    WRITING = "writing"
    CLOSED = "closed"
    FAILED = "failed"


@dataclass
class RewriteResult:
    output_path: str
    input_count: int
    rows_written: int = 0
    batches_written: int = 0
    columns: list[str] = field(default_factory=list)


@dataclass
class MaskPolicy:
    """Columns to redact, each mapped to its sentinel.

    A sentinel of ``None`` selects the default for the column's type.
    Strings given for non-string columns are cast to the column type.
    """

    columns: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def for_columns(cls, names: Iterable[str], value: Any = None) -> MaskPolicy:
        return cls({name: value for name in names})


def _field_label(f: pa.Field) -> str:
    return f"{f.type}{'' if f.nullable else ' not null'}"


def describe_schema_difference(expected: pa.Schema, actual: pa.Schema) -> str:
    """Human-readable description of the first difference between two schemas."""
    if expected.names != actual.names:
        missing = [n for n in expected.names if n not in actual.names]
        extra = [n for n in actual.names if n not in expected.names]
        parts = []
        if missing:
            parts.append(f"missing {', '.join(missing)}")
        if extra:
            parts.append(f"unexpected {', '.join(extra)}")
        return "; ".join(parts) or "field order differs"
    for a, b in zip(expected, actual):
        if not a.equals(b):
            return f"field '{a.name}' is {_field_label(b)}, expected {_field_label(a)}"
    return "schemas differ"


def default_sentinel(data_type: pa.DataType) -> pa.Scalar:
    """The redaction value used when a mask policy gives none."""
    t = data_type
    if pa.types.is_string(t) or pa.types.is_large_string(t):
        return pa.scalar(MASK_TEXT, type=t)
    if pa.types.is_binary(t) or pa.types.is_large_binary(t):
        return pa.scalar(MASK_TEXT.encode(), type=t)
    if pa.types.is_fixed_size_binary(t):
        return pa.scalar(b"*" * t.byte_width, type=t)
    if pa.types.is_boolean(t):
        return pa.scalar(False, type=t)
    if pa.types.is_integer(t):
        return pa.scalar(0, type=t)
    if pa.types.is_float32(t) or pa.types.is_float64(t):
        return pa.scalar(0.0, type=t)
    if pa.types.is_decimal(t):
        return pa.scalar(Decimal(0), type=t)
    if pa.types.is_date32(t):
        return pa.scalar(0, type=pa.int32()).cast(t)
    if pa.types.is_date64(t) or pa.types.is_timestamp(t):
        return pa.scalar(0, type=pa.int64()).cast(t)
    raise ConfigurationError(f"No default mask value for type {t}; pass an explicit value")


def sentinel_for(f: pa.Field, value: Any) -> pa.Scalar:
    if value is None:
        return default_sentinel(f.type)
    try:
        if isinstance(value, str) and not pa.types.is_string(f.type):
            return pa.scalar(value).cast(f.type)
        return pa.scalar(value, type=f.type)
    except (pa.ArrowInvalid, pa.ArrowNotImplementedError, pa.ArrowTypeError, TypeError) as exc:
        raise ConfigurationError(
            f"Mask value {value!r} is not valid for column '{f.name}' ({f.type}): {exc}"
        ) from exc


def mask_array(column: pa.Array, sentinel: pa.Scalar) -> pa.Array:
    """Replace every non-null value of *column* with *sentinel*."""
    return pc.if_else(pc.is_valid(column), sentinel, pa.scalar(None, type=column.type))


def masking_transform(schema: pa.Schema, policy: MaskPolicy) -> BatchTransform:
    unknown = [name for name in policy.columns if name not in schema.names]
    if unknown:
        raise ConfigurationError(f"Cannot mask unknown column(s): {', '.join(unknown)}")
    if not policy.columns:
        raise ConfigurationError("No columns selected for masking")
    sentinels = {
        name: sentinel_for(schema.field(name), value) for name, value in policy.columns.items()
    }

    def _transform(batch: pa.RecordBatch) -> pa.RecordBatch:
        arrays = [
            mask_array(batch.column(i), sentinels[name]) if name in sentinels else batch.column(i)
            for i, name in enumerate(batch.schema.names)
        ]
        return pa.RecordBatch.from_arrays(arrays, schema=batch.schema)

    return _transform


class Modifier:
    """Owns a validated set of open input files and one output path.

    Construction opens every input and checks that all of them share the
    first input's schema; nothing is written until :meth:`rewrite`.
    """

    def __init__(self, inputs: Sequence[str | Path], output: str | Path) -> None:
        if not inputs:
            raise ConfigurationError("At least one input file is required")
        self.input_paths = [str(p) for p in inputs]
        self.output_path = str(output)
        target = Path(output).resolve()
        for p in self.input_paths:
            if Path(p).resolve() == target:
                raise ConfigurationError(f"Output {self.output_path} is also an input file")

        with ExitStack() as stack:
            self._inputs = [stack.enter_context(TableFile.open(p)) for p in self.input_paths]
            self.schema: pa.Schema = self._inputs[0].arrow_schema
            for tf in self._inputs[1:]:
                other = tf.arrow_schema
                if not other.equals(self.schema, check_metadata=False):
                    raise SchemaMismatchError(
                        f"Schema of {tf.path} differs from {self.input_paths[0]}: "
                        f"{describe_schema_difference(self.schema, other)}"
                    )
            self._stack = stack.pop_all()

        self.state = ModifierState.OPENED
        log.debug("Validated %d input(s) for %s", len(self._inputs), self.output_path)

    def __enter__(self) -> Modifier:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self._stack.close()

    @property
    def key_value_metadata(self) -> dict[bytes, bytes]:
        """The first input's footer key/value pairs, as carried to the output."""
        kv = self._inputs[0].key_value_metadata
        kv.pop(ARROW_SCHEMA_KEY, None)
        return kv

    def _retained_columns(self, columns: Iterable[str] | None) -> list[str] | None:
        if columns is None:
            return None
        wanted = set(columns)
        unknown = sorted(wanted - set(self.schema.names))
        if unknown:
            raise ConfigurationError(f"Unknown column(s): {', '.join(unknown)}")
        retained = [name for name in self.schema.names if name in wanted]
        if not retained:
            raise ConfigurationError("At least one column must be kept")
        return retained

    def output_schema(self, columns: list[str] | None = None) -> pa.Schema:
        fields = self.schema if columns is None else [self.schema.field(n) for n in columns]
        return pa.schema(list(fields), metadata=self.key_value_metadata)

    def rewrite(
        self,
        config: WriterConfig | None = None,
        columns: Iterable[str] | None = None,
        transform: BatchTransform | None = None,
    ) -> RewriteResult:
        """Stream every input, in order, into the output file.

        *columns* keeps only the named columns (original order and types);
        *transform* is applied to each record batch before it is written.
        """
        if self.state is not ModifierState.OPENED:
            raise ConfigurationError(
                f"Cannot rewrite: modifier is {self.state.value}, open a new one"
            )
        config = config or WriterConfig()
        retained = self._retained_columns(columns)
        schema = self.output_schema(retained)
        result = RewriteResult(
            output_path=self.output_path,
            input_count=len(self._inputs),
            columns=list(schema.names),
        )

        log.debug(
            "Writing %s with %s compression from %d input(s)",
            self.output_path,
            config.compression,
            len(self._inputs),
        )
        self.state = ModifierState.WRITING
        try:
            with pq.ParquetWriter(self.output_path, schema, **config.writer_options()) as writer:
                for tf in self._inputs:
                    for batch in tf.iter_batches(retained, batch_size=config.batch_size):
                        if retained is not None:
                            batch = batch.select(retained)
                        if transform is not None:
                            batch = transform(batch)
                        writer.write_batch(batch, row_group_size=config.row_group_size)
                        result.rows_written += batch.num_rows
                        result.batches_written += 1
                    log.debug("Copied %s", tf.path)
        except OSError as exc:
            self.state = ModifierState.FAILED
            raise TableFileError(self.output_path, exc.strerror or str(exc)) from exc
        except Exception:
            self.state = ModifierState.FAILED
            raise

        self.state = ModifierState.CLOSED
        log.info("Wrote %d rows to %s", result.rows_written, self.output_path)
        return result

    def merge(self, config: WriterConfig | None = None) -> RewriteResult:
        """Concatenate all inputs, rows in input order."""
        return self.rewrite(config)

    def prune(self, config: WriterConfig | None = None, drop: Iterable[str] = ()) -> RewriteResult:
        """Rewrite without the columns named in *drop*."""
        drop = set(drop)
        unknown = sorted(drop - set(self.schema.names))
        if unknown:
            raise ConfigurationError(f"Cannot prune unknown column(s): {', '.join(unknown)}")
        keep = [name for name in self.schema.names if name not in drop]
        return self.rewrite(config, columns=keep)

    def translate_compression(self, config: WriterConfig) -> RewriteResult:
        """Re-encode every column chunk under ``config.compression``."""
        return self.rewrite(config)

    def mask(
        self, config: WriterConfig | None = None, policy: MaskPolicy | None = None
    ) -> RewriteResult:
        """Rewrite with the policy's columns replaced by sentinel values."""
        transform = masking_transform(self.schema, policy or MaskPolicy())
        return self.rewrite(config, transform=transform)
