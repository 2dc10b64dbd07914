import pyarrow as pa
import pytest

from parquet_meta.cli import _friendly_error, _run
from parquet_meta.errors import ConfigurationError, SchemaMismatchError, TableFileError


def _table_file_error(cause):
    try:
        raise TableFileError("data/x.parquet", "boom") from cause
    except TableFileError as exc:
        return exc


def test_friendly_error_file_not_found(capsys):
    with pytest.raises(SystemExit):
        _friendly_error(_table_file_error(FileNotFoundError(2, "missing")))

    captured = capsys.readouterr()
    assert "File not found" in captured.err
    assert "data/x.parquet" in captured.err


def test_friendly_error_permission(capsys):
    with pytest.raises(SystemExit):
        _friendly_error(_table_file_error(PermissionError(13, "denied")))

    captured = capsys.readouterr()
    assert "Permission denied" in captured.err


def test_friendly_error_directory(capsys):
    with pytest.raises(SystemExit):
        _friendly_error(_table_file_error(IsADirectoryError(21, "dir")))

    captured = capsys.readouterr()
    assert "is a directory" in captured.err


def test_friendly_error_invalid_parquet(capsys):
    with pytest.raises(SystemExit):
        _friendly_error(pa.ArrowInvalid("Parquet magic bytes not found"), "junk.parquet")

    captured = capsys.readouterr()
    assert "Invalid Parquet file" in captured.err
    assert "junk.parquet" in captured.err


def test_friendly_error_schema_mismatch(capsys):
    with pytest.raises(SystemExit):
        _friendly_error(SchemaMismatchError("field 'x' is int64, expected int32"))

    captured = capsys.readouterr()
    assert "Schema mismatch" in captured.err
    assert "field 'x'" in captured.err


def test_friendly_error_config(capsys):
    with pytest.raises(SystemExit):
        _friendly_error(ConfigurationError("Unknown compression codec 'lzo'"))

    captured = capsys.readouterr()
    assert "Config error" in captured.err


def test_friendly_error_generic(capsys):
    with pytest.raises(SystemExit):
        _friendly_error(ValueError("Some random error"))

    captured = capsys.readouterr()
    assert "Error:" in captured.err
    assert "Some random error" in captured.err


def test_run_passes_through_result():
    assert _run(lambda: 42) == 42


def test_run_exits_with_status_one():
    def _boom():
        raise ConfigurationError("nope")

    with pytest.raises(SystemExit) as exc_info:
        _run(_boom)
    assert exc_info.value.code == 1
