"""Tests for the schema-checked rewrite pipeline."""

import pyarrow as pa
import pyarrow.parquet as pq
import pytest

from data_factory import ORDERS_SCHEMA
from parquet_meta.config import WriterConfig
from parquet_meta.errors import ConfigurationError, SchemaMismatchError, TableFileError
from parquet_meta.modifier import (
    MASK_TEXT,
    MaskPolicy,
    Modifier,
    ModifierState,
    default_sentinel,
    describe_schema_difference,
)

# ── construction ──────────────────────────────────────────────────────────


def test_requires_inputs(tmp_path):
    with pytest.raises(ConfigurationError):
        Modifier([], tmp_path / "out.parquet")


def test_schema_mismatch_fails_before_writing(data_files, tmp_path):
    out = tmp_path / "out.parquet"
    with pytest.raises(SchemaMismatchError) as exc_info:
        Modifier([data_files["orders"], data_files["points"]], out)
    assert "points.parquet" in str(exc_info.value)
    assert not out.exists()


def test_missing_input_fails(data_files, tmp_path):
    with pytest.raises(TableFileError):
        Modifier([data_files["orders"], tmp_path / "missing.parquet"], tmp_path / "out.parquet")


def test_metadata_differences_do_not_count_as_mismatch(data_files, tmp_path):
    with Modifier([data_files["orders_a"], data_files["orders_b"]], tmp_path / "o.parquet") as m:
        assert m.state is ModifierState.OPENED


def _write_single_column(path, field, values):
    pq.write_table(pa.table({field.name: values}, schema=pa.schema([field])), path)
    return path


@pytest.mark.parametrize(
    "first, second",
    [
        (pa.field("x", pa.int32()), pa.field("x", pa.int64())),
        (pa.field("x", pa.int64(), nullable=False), pa.field("x", pa.int64())),
        (pa.field("x", pa.float64()), pa.field("x", pa.int64())),
    ],
)
def test_same_names_different_structure_is_mismatch(tmp_path, first, second):
    a = _write_single_column(tmp_path / "a.parquet", first, [1, 2])
    b = _write_single_column(tmp_path / "b.parquet", second, [3, 4])
    out = tmp_path / "out.parquet"
    with pytest.raises(SchemaMismatchError) as exc_info:
        Modifier([a, b], out)
    assert "field 'x'" in str(exc_info.value)
    assert not out.exists()


def test_output_may_not_be_an_input(points_file, tmp_path):
    before = points_file.read_bytes()
    with pytest.raises(ConfigurationError, match="also an input"):
        Modifier([points_file], points_file)
    assert points_file.read_bytes() == before


def test_describe_schema_difference():
    a = pa.schema([("x", pa.int32()), ("y", pa.string())])
    assert "missing y" in describe_schema_difference(a, pa.schema([("x", pa.int32())]))
    b = pa.schema([("x", pa.int64()), ("y", pa.string())])
    assert "field 'x'" in describe_schema_difference(a, b)


# ── merge ─────────────────────────────────────────────────────────────────


def test_round_trip_single_file(orders_file, tmp_path):
    out = tmp_path / "copy.parquet"
    with Modifier([orders_file], out) as modifier:
        result = modifier.merge()
    assert result.rows_written == 50
    assert pq.read_table(out).equals(pq.read_table(orders_file))


def test_merge_concatenates_in_input_order(data_files, tmp_path):
    out = tmp_path / "merged.parquet"
    with Modifier([data_files["orders_a"], data_files["orders_b"]], out) as modifier:
        result = modifier.merge()
    assert pq.read_table(out, columns=["order_id"]).column(0).to_pylist() == [1, 2, 3, 4]
    assert result.input_count == 2
    assert result.columns == ORDERS_SCHEMA.names


def test_merge_reversed_order(data_files, tmp_path):
    out = tmp_path / "merged.parquet"
    with Modifier([data_files["orders_b"], data_files["orders_a"]], out) as modifier:
        modifier.merge()
    assert pq.read_table(out, columns=["order_id"]).column(0).to_pylist() == [3, 4, 1, 2]


def test_merge_carries_first_input_metadata(data_files, tmp_path):
    out = tmp_path / "merged.parquet"
    with Modifier([data_files["orders_a"], data_files["orders_b"]], out) as modifier:
        modifier.merge()
    assert pq.read_metadata(out).metadata[b"owner"] == b"a-team"


def test_merge_respects_row_group_size(orders_file, tmp_path):
    out = tmp_path / "small_groups.parquet"
    with Modifier([orders_file], out) as modifier:
        modifier.merge(WriterConfig(row_group_size=10))
    md = pq.read_metadata(out)
    assert md.num_rows == 50
    assert md.num_row_groups == 5


# ── prune ─────────────────────────────────────────────────────────────────


def test_prune_keeps_remaining_columns_in_order(orders_file, tmp_path):
    out = tmp_path / "pruned.parquet"
    with Modifier([orders_file], out) as modifier:
        result = modifier.prune(drop=["region", "amount"])
    table = pq.read_table(out)
    expected = [n for n in ORDERS_SCHEMA.names if n not in ("region", "amount")]
    assert table.schema.names == expected
    assert result.columns == expected
    original = pq.read_table(orders_file, columns=expected)
    assert table.equals(original)


def test_prune_unknown_column(orders_file, tmp_path):
    out = tmp_path / "pruned.parquet"
    with Modifier([orders_file], out) as modifier:
        with pytest.raises(ConfigurationError):
            modifier.prune(drop=["nope"])
    assert not out.exists()


def test_prune_every_column(points_file, tmp_path):
    with Modifier([points_file], tmp_path / "pruned.parquet") as modifier:
        with pytest.raises(ConfigurationError):
            modifier.prune(drop=["x", "y", "z"])


# ── compression ───────────────────────────────────────────────────────────


@pytest.mark.parametrize("codec, stored", [("gzip", "GZIP"), ("zstd", "ZSTD"), ("none", "UNCOMPRESSED")])
def test_translate_compression(orders_file, tmp_path, codec, stored):
    out = tmp_path / f"{codec}.parquet"
    with Modifier([orders_file], out) as modifier:
        modifier.translate_compression(WriterConfig(compression=codec))
    md = pq.read_metadata(out)
    for i in range(md.num_row_groups):
        for j in range(md.num_columns):
            assert md.row_group(i).column(j).compression == stored
    assert pq.read_table(out).equals(pq.read_table(orders_file))


# ── masking ───────────────────────────────────────────────────────────────


def test_mask_default_keeps_nulls(orders_file, tmp_path):
    out = tmp_path / "masked.parquet"
    with Modifier([orders_file], out) as modifier:
        modifier.mask(policy=MaskPolicy.for_columns(["region", "amount"]))
    masked = pq.read_table(out)
    original = pq.read_table(orders_file)
    regions = masked.column("region").to_pylist()
    for before, after in zip(original.column("region").to_pylist(), regions):
        assert after == (None if before is None else MASK_TEXT)
    assert None in regions
    assert set(masked.column("amount").to_pylist()) == {0.0}
    assert masked.column("order_id").equals(original.column("order_id"))
    assert masked.schema.equals(original.schema, check_metadata=False)


def test_mask_explicit_value_is_cast(points_file, tmp_path):
    out = tmp_path / "masked.parquet"
    with Modifier([points_file], out) as modifier:
        modifier.mask(policy=MaskPolicy({"x": "-1", "z": "redacted"}))
    table = pq.read_table(out)
    assert table.column("x").to_pylist() == [-1, -1, -1, -1]
    assert table.column("z").to_pylist() == ["redacted", "redacted", "redacted", None]
    assert table.column("y").to_pylist() == [10, 20, 30, 40]


def test_mask_invalid_value(points_file, tmp_path):
    with Modifier([points_file], tmp_path / "masked.parquet") as modifier:
        with pytest.raises(ConfigurationError):
            modifier.mask(policy=MaskPolicy({"x": "not-a-number"}))


def test_mask_unknown_column(points_file, tmp_path):
    with Modifier([points_file], tmp_path / "masked.parquet") as modifier:
        with pytest.raises(ConfigurationError):
            modifier.mask(policy=MaskPolicy.for_columns(["nope"]))


def test_mask_requires_columns(points_file, tmp_path):
    with Modifier([points_file], tmp_path / "masked.parquet") as modifier:
        with pytest.raises(ConfigurationError):
            modifier.mask(policy=MaskPolicy())


def test_default_sentinels():
    assert default_sentinel(pa.string()).as_py() == MASK_TEXT
    assert default_sentinel(pa.int16()).as_py() == 0
    assert default_sentinel(pa.bool_()).as_py() is False
    assert str(default_sentinel(pa.date32()).as_py()) == "1970-01-01"
    with pytest.raises(ConfigurationError):
        default_sentinel(pa.list_(pa.int32()))


# ── lifecycle ─────────────────────────────────────────────────────────────


def test_modifier_is_single_use(points_file, tmp_path):
    with Modifier([points_file], tmp_path / "out.parquet") as modifier:
        modifier.merge()
        assert modifier.state is ModifierState.CLOSED
        with pytest.raises(ConfigurationError):
            modifier.merge()


def test_unwritable_output_marks_failed(points_file, tmp_path):
    out = tmp_path / "no" / "such" / "dir" / "out.parquet"
    with Modifier([points_file], out) as modifier:
        with pytest.raises(TableFileError) as exc_info:
            modifier.merge()
        assert modifier.state is ModifierState.FAILED
    assert exc_info.value.path == str(out)
