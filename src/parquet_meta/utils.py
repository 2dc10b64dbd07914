"""Utility functions for formatting and conversion."""

from __future__ import annotations


def format_bytes(num_bytes: int | float) -> str:
    """Convert bytes to human-readable string."""
    for unit in ("B", "KB", "MB", "GB", "TB"):
        if abs(num_bytes) < 1024.0:
            return f"{num_bytes:.1f} {unit}"
        num_bytes /= 1024.0
    return f"{num_bytes:.1f} PB"


def format_ratio(ratio: float | None) -> str:
    """Render a compression ratio, or a dash when it is undefined."""
    if ratio is None:
        return "-"
    return f"{ratio:.3f}"


def truncate_path(path: str | None, max_length: int = 60) -> str:
    """Truncate a file path for display, keeping the filename visible."""
    if not path:
        return ""
    if len(path) <= max_length:
        return path
    filename = path.rsplit("/", 1)[-1]
    return f".../{filename}"
