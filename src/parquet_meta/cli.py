"""Parquet Metadata Explorer CLI."""

from __future__ import annotations

import logging
from pathlib import Path

import pyarrow as pa
import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler

from parquet_meta import __version__, formatters
from parquet_meta.config import WriterConfig, resolve_writer_config
from parquet_meta.errors import ConfigurationError, SchemaMismatchError, TableFileError
from parquet_meta.inspector import Inspector
from parquet_meta.modifier import MaskPolicy, Modifier
from parquet_meta.output import OutputFormat


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"parquet-meta {__version__}")
        raise typer.Exit()


app = typer.Typer(
    name="parquet-meta",
    help="Inspect and rewrite Parquet files.",
    no_args_is_help=True,
)
console = Console()
err_console = Console(stderr=True)


# ─── error handling ───────────────────────────────────────────


def _friendly_error(e: Exception, path: str | None = None) -> None:
    """Print a friendly error message instead of a raw traceback."""
    msg = str(e).lower()

    if isinstance(e, SchemaMismatchError):
        err_console.print(
            f"[red bold]Schema mismatch:[/red bold] {e}\n"
            "  All input files must have identical column names, types, and nullability."
        )
    elif isinstance(e, ConfigurationError):
        err_console.print(f"[red bold]Config error:[/red bold] {e}")
    elif isinstance(e, TableFileError):
        cause = e.__cause__
        if isinstance(cause, FileNotFoundError):
            err_console.print(f"[red bold]File not found:[/red bold] '{e.path}'")
        elif isinstance(cause, PermissionError):
            err_console.print(
                f"[red bold]Permission denied:[/red bold] '{e.path}'\n"
                "  Check the file and directory permissions."
            )
        elif isinstance(cause, IsADirectoryError):
            err_console.print(
                f"[red bold]Not a file:[/red bold] '{e.path}' is a directory.\n"
                "  Pass the path of a single Parquet file."
            )
        else:
            err_console.print(f"[red bold]I/O error:[/red bold] {e}")
    elif isinstance(e, pa.ArrowInvalid) or "magic bytes" in msg:
        err_console.print(
            f"[red bold]Invalid Parquet file:[/red bold] '{path or 'unknown'}'\n  {e}"
        )
    elif isinstance(e, pa.ArrowNotImplementedError):
        err_console.print(f"[red bold]Unsupported:[/red bold] {e}")
    else:
        err_console.print(f"[red bold]Error:[/red bold] {e}")
    raise SystemExit(1)


def _run(fn, path: str | None = None):
    """Execute *fn* with friendly error handling."""
    try:
        return fn()
    except SystemExit:
        raise
    except Exception as e:
        _friendly_error(e, path)


def _configure_logging(verbose: bool) -> None:
    logger = logging.getLogger("parquet_meta")
    logger.handlers.clear()
    logger.addHandler(RichHandler(console=err_console, show_path=False))
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    logger.propagate = False


# ─── global callback ─────────────────────────────────────────


@app.callback()
def main(
    ctx: typer.Context,
    output: OutputFormat = typer.Option(  # noqa: B008
        OutputFormat.JSON, "--output", "-o", help="Output format (json, table, csv)"
    ),
    env_file: Path | None = typer.Option(  # noqa: B008
        None,
        "--env-file",
        "-e",
        help="Path to .env file to load",
        exists=True,
        dir_okay=False,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug output to stderr"),
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit",
        callback=_version_callback,
        is_eager=True,
    ),
):
    """Inspect and rewrite Parquet files."""
    if env_file:
        load_dotenv(env_file, override=True)
    else:
        load_dotenv()

    _configure_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["output_format"] = output


# ─── inspection ──────────────────────────────────────────────


@app.command()
def cat(
    path: str = typer.Argument(help="The path to the Parquet file"),
    limit: int = typer.Option(
        0, "--limit", "-l", min=0, help="Maximum number of rows to print, 0 means no limit"
    ),
    columns: list[str] | None = typer.Option(  # noqa: B008
        None, "--column", "-c", help="Only print this top-level column (repeatable)"
    ),
):
    """Print the rows of a Parquet file, one JSON document per line."""

    def _do():
        with Inspector(path) as inspector:
            for line in inspector.preview(columns or (), limit):
                typer.echo(line)

    _run(_do, path)


@app.command("row-count")
def row_count(path: str = typer.Argument(help="The path to the Parquet file")):
    """Print the number of rows in the Parquet file."""

    def _do():
        with Inspector(path) as inspector:
            typer.echo(inspector.row_count())

    _run(_do, path)


@app.command()
def schema(path: str = typer.Argument(help="The path to the Parquet file")):
    """Print the Parquet schema."""

    def _do():
        with Inspector(path) as inspector:
            typer.echo(inspector.schema_text())

    _run(_do, path)


@app.command()
def meta(path: str = typer.Argument(help="The path to the Parquet file")):
    """Print the full footer metadata as JSON."""

    def _do():
        with Inspector(path) as inspector:
            typer.echo(inspector.dump_metadata())

    _run(_do, path)


@app.command()
def size(
    path: str = typer.Argument(help="The path to the Parquet file"),
    uncompressed: bool = typer.Option(
        False, "--uncompressed", "-u", help="Print the uncompressed size"
    ),
):
    """Print the size in bytes of the data in the Parquet file."""

    def _do():
        with Inspector(path) as inspector:
            typer.echo(inspector.total_size(uncompressed=uncompressed))

    _run(_do, path)


@app.command("column-size")
def column_size(
    ctx: typer.Context,
    path: str = typer.Argument(help="The path to the Parquet file"),
):
    """Print the size in bytes and compression ratio of every column."""
    fmt: OutputFormat = ctx.obj["output_format"]

    def _do():
        with Inspector(path) as inspector:
            formatters.render_column_sizes(console, inspector.column_sizes(), fmt=fmt)

    _run(_do, path)


@app.command()
def info(
    ctx: typer.Context,
    path: str = typer.Argument(help="The path to the Parquet file"),
):
    """Show a file overview: version, writer, rows, row groups, sizes, metadata keys."""
    fmt: OutputFormat = ctx.obj["output_format"]

    def _do():
        with Inspector(path) as inspector:
            formatters.render_file_info(console, inspector, fmt=fmt)

    _run(_do, path)


# ─── modification ────────────────────────────────────────────


_COMPRESSION_HELP = "Output compression codec (none, snappy, gzip, brotli, lz4, lz4_raw, zstd)"


def _writer_config(
    compression: str | None,
    compression_level: int | None,
    row_group_size: int | None,
) -> WriterConfig:
    return resolve_writer_config(
        compression=compression,
        compression_level=compression_level,
        row_group_size=row_group_size,
    )


@app.command()
def merge(
    inputs: list[str] = typer.Argument(help="Input files to merge, in order"),  # noqa: B008
    output: str = typer.Argument(help="The merged output file"),
    compression: str | None = typer.Option(None, "--compression", "-z", help=_COMPRESSION_HELP),
    compression_level: int | None = typer.Option(None, "--compression-level"),
    row_group_size: int | None = typer.Option(
        None, "--row-group-size", min=1, help="Maximum rows per output row group"
    ),
):
    """Merge multiple Parquet files into one.

    Row groups are not merged, files are placed one after the other. Merging
    many small files still yields small row groups, which usually leads to
    poor query performance.
    """

    def _do():
        config = _writer_config(compression, compression_level, row_group_size)
        with Modifier(inputs, output) as modifier:
            result = modifier.merge(config)
        formatters.render_rewrite_result(console, result)

    _run(_do, ", ".join(inputs))


@app.command()
def prune(
    input_file: str = typer.Argument(help="The input file"),
    output_file: str = typer.Argument(help="The pruned output file"),
    columns: list[str] = typer.Option(  # noqa: B008
        ..., "--column", "-c", help="Column to remove (repeatable)"
    ),
    compression: str | None = typer.Option(None, "--compression", "-z", help=_COMPRESSION_HELP),
    compression_level: int | None = typer.Option(None, "--compression-level"),
    row_group_size: int | None = typer.Option(None, "--row-group-size", min=1),
):
    """Remove column(s) from a Parquet file and save it to a new file.

    The remaining columns are not changed.
    """

    def _do():
        config = _writer_config(compression, compression_level, row_group_size)
        with Modifier([input_file], output_file) as modifier:
            result = modifier.prune(config, drop=columns)
        formatters.render_rewrite_result(console, result)

    _run(_do, input_file)


@app.command("trans-compression")
def trans_compression(
    input_file: str = typer.Argument(help="The input file"),
    output_file: str = typer.Argument(help="The re-compressed output file"),
    compression: str = typer.Option(..., "--compression", "-z", help=_COMPRESSION_HELP),
    compression_level: int | None = typer.Option(None, "--compression-level"),
    row_group_size: int | None = typer.Option(None, "--row-group-size", min=1),
):
    """Rewrite a Parquet file under a different compression codec."""

    def _do():
        config = _writer_config(compression, compression_level, row_group_size)
        with Modifier([input_file], output_file) as modifier:
            result = modifier.translate_compression(config)
        formatters.render_rewrite_result(console, result)

    _run(_do, input_file)


@app.command()
def masking(
    input_file: str = typer.Argument(help="The input file"),
    output_file: str = typer.Argument(help="The masked output file"),
    columns: list[str] = typer.Option(  # noqa: B008
        ..., "--column", "-c", help="Column to mask (repeatable)"
    ),
    value: str | None = typer.Option(
        None, "--value", help="Replacement value, cast to each column's type"
    ),
    compression: str | None = typer.Option(None, "--compression", "-z", help=_COMPRESSION_HELP),
    compression_level: int | None = typer.Option(None, "--compression-level"),
    row_group_size: int | None = typer.Option(None, "--row-group-size", min=1),
):
    """Replace the values of column(s) with a mask and write a new Parquet file.

    Without --value, strings become '***', numbers 0, booleans false, and
    dates/timestamps the epoch. Nulls stay null.
    """

    def _do():
        config = _writer_config(compression, compression_level, row_group_size)
        with Modifier([input_file], output_file) as modifier:
            result = modifier.mask(config, MaskPolicy.for_columns(columns, value))
        formatters.render_rewrite_result(console, result)

    _run(_do, input_file)
