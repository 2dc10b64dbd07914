"""Rich formatters for Parquet metadata display."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table as RichTable

from parquet_meta.output import OutputFormat, emit, emit_document
from parquet_meta.serializers import parse_metadata_value
from parquet_meta.sizes import column_sizes_to_value
from parquet_meta.utils import format_bytes, format_ratio, truncate_path

if TYPE_CHECKING:
    from parquet_meta.inspector import Inspector
    from parquet_meta.modifier import RewriteResult
    from parquet_meta.sizes import ColumnSize


def _size_color(ratio: float | None) -> str:
    """Return a Rich color tag for a compression ratio."""
    if ratio is None:
        return "white"
    if ratio <= 0.5:
        return "green"
    elif ratio <= 0.9:
        return "yellow"
    return "red"


# ─── info ─────────────────────────────────────────────────────


def render_file_info(
    console: Console, inspector: Inspector, fmt: OutputFormat = OutputFormat.TABLE
) -> None:
    """Render a file overview plus its key/value metadata."""
    data = inspector.file_info()

    if fmt != OutputFormat.TABLE:
        emit(console, data, ["Key", "Value"], fmt, title="File Info")
        return

    sizes = {"Compressed Size", "Uncompressed Size"}
    info = RichTable(show_header=False, box=None, padding=(0, 2))
    info.add_column("Key", style="bold cyan")
    info.add_column("Value")
    for row in data:
        if row["Key"] == "Metadata Keys":
            continue
        value = row["Value"]
        if row["Key"] in sizes:
            value = f"{format_bytes(value)} ({value:,} bytes)"
        elif row["Key"] == "Path":
            value = truncate_path(value)
        info.add_row(row["Key"], str(value))

    console.print(Panel(info, title="[bold]File Info[/bold]", border_style="blue"))

    kv = inspector.metadata.file_metadata.key_value_metadata
    if kv:
        rows = []
        for key, value in kv.items():
            parsed = parse_metadata_value(value)
            kind = "json" if not isinstance(parsed, str) else "text"
            shown = value if len(value) <= 80 else value[:77] + "..."
            rows.append({"Key": escape(key), "Value": f"{escape(shown)} [dim]({kind})[/dim]"})
        emit(
            console,
            rows,
            ["Key", "Value"],
            OutputFormat.TABLE,
            title="Key/Value Metadata",
            column_styles={"Key": {"style": "cyan"}},
        )


# ─── column sizes ─────────────────────────────────────────────


def collect_column_sizes(sizes: dict[str, ColumnSize]) -> list[dict[str, Any]]:
    """Flatten per-column sizes into rows for table and CSV output."""
    total = sum(s.compressed_size for s in sizes.values()) or 1
    return [
        {
            "Column": path,
            "Compressed": size.compressed_size,
            "Uncompressed": size.uncompressed_size,
            "Ratio": format_ratio(size.compression_ratio),
            "Share": f"{size.compressed_size / total * 100:.1f}%",
        }
        for path, size in sizes.items()
    ]


def render_column_sizes(
    console: Console, sizes: dict[str, ColumnSize], fmt: OutputFormat = OutputFormat.JSON
) -> None:
    """Render per-column sizes; JSON mode prints the column-size document."""
    if fmt == OutputFormat.JSON:
        emit_document(column_sizes_to_value(sizes))
        return

    data = collect_column_sizes(sizes)
    columns = ["Column", "Compressed", "Uncompressed", "Ratio", "Share"]
    if fmt == OutputFormat.CSV:
        emit(console, data, columns, fmt)
        return

    styled = []
    for row, size in zip(data, sizes.values()):
        color = _size_color(size.compression_ratio)
        styled.append(
            {
                "Column": escape(row["Column"]),
                "Compressed": format_bytes(row["Compressed"]),
                "Uncompressed": format_bytes(row["Uncompressed"]),
                "Ratio": f"[{color}]{row['Ratio']}[/{color}]",
                "Share": row["Share"],
            }
        )
    right = {"justify": "right"}
    emit(
        console,
        styled,
        columns,
        OutputFormat.TABLE,
        title="Column Sizes",
        column_styles={
            "Column": {"style": "cyan"},
            "Compressed": right,
            "Uncompressed": right,
            "Ratio": right,
            "Share": right,
        },
    )


# ─── rewrite ──────────────────────────────────────────────────


def render_rewrite_result(console: Console, result: RewriteResult) -> None:
    """Print a one-line summary of a finished rewrite."""
    inputs = result.input_count
    console.print(
        f"[green]✓[/green] Wrote {result.rows_written:,} rows "
        f"({len(result.columns)} column{'s' if len(result.columns) != 1 else ''}) "
        f"from {inputs} file{'s' if inputs != 1 else ''} to [cyan]{result.output_path}[/cyan]"
    )
