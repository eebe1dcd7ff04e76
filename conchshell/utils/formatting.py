"""Plain-text formatting helpers for tables and durations."""

from __future__ import annotations

from typing import Any, List, Optional


def format_table(
    headers: List[str],
    rows: List[List[Any]],
    min_width: int = 8,
    max_col_width: Optional[int] = None,
) -> str:
    """Format data as a simple ASCII table.

    Args:
        headers: Column headers.
        rows: Data rows.
        min_width: Minimum column width.
        max_col_width: Clip longer cells to this width with ``...``.

    Returns:
        Formatted table string, or an empty string when there are no rows.
    """
    if not rows:
        return ""

    def clip(val: Any) -> str:
        s = "" if val is None else str(val)
        if max_col_width is not None and len(s) > max_col_width:
            return s[: max_col_width - 3] + "..."
        return s

    clipped_headers = [clip(h) for h in headers]
    clipped_rows = [[clip(item) for item in row] for row in rows]

    all_data = [clipped_headers] + clipped_rows
    col_widths = []
    for col_idx in range(len(clipped_headers)):
        max_width = max(len(row[col_idx]) for row in all_data)
        col_widths.append(max(max_width, min_width))

    def format_row(row_data: List[str]) -> str:
        return "| " + " | ".join(
            f"{item:<{col_widths[i]}}" for i, item in enumerate(row_data)
        ) + " |"

    lines = [format_row(clipped_headers)]
    lines.append("|-" + "-+-".join("-" * width for width in col_widths) + "-|")
    for row in clipped_rows:
        lines.append(format_row(row))

    return "\n".join(lines)


def format_duration(seconds: float) -> str:
    """Return a concise human-readable duration string.

    Examples:
        0.5 -> "500ms"; 42 -> "42s"; 3725 -> "1h2m5s"; 93784 -> "26h3m4s".

    Hours are the largest unit, so long durations read as e.g. "50h0m0s".
    """
    if seconds < 0:
        return "-" + format_duration(-seconds)
    if seconds < 1.0:
        return f"{seconds * 1000.0:.0f}ms"

    total = int(round(seconds))
    hours, rem = divmod(total, 3600)
    minutes, secs = divmod(rem, 60)

    parts = []
    if hours:
        parts.append(f"{hours}h")
    if hours or minutes:
        parts.append(f"{minutes}m")
    parts.append(f"{secs}s")
    return "".join(parts)


def format_duration_hms(seconds: float) -> str:
    """Return ``H:MM:SS`` with total hours, as spreadsheets read durations.

    Examples:
        90 -> "0:01:30"; 93784 -> "26:03:04"; -30 -> "-0:00:30".
    """
    if seconds < 0:
        return "-" + format_duration_hms(-seconds)
    total = int(seconds)
    hours, rem = divmod(total, 3600)
    minutes, secs = divmod(rem, 60)
    return f"{hours}:{minutes:02d}:{secs:02d}"
