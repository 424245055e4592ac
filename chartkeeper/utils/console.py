"""
Console output utilities for chartkeeper using Rich.

User-facing output for CLI commands goes through this module; diagnostic
output goes through :mod:`chartkeeper.utils.logger`.
"""

from __future__ import annotations

import os
import sys
import threading
from typing import Any, Dict, List, Optional

from rich.table import Table
from rich.theme import Theme
from rich.console import Console
from rich.markdown import Markdown

CHARTKEEPER_THEME = Theme(
    {
        "success": "bold green",
        "error": "bold red",
        "warning": "bold yellow",
        "info": "bold cyan",
        "dim": "dim",
        "highlight": "bold magenta",
    }
)

UPDATE_TYPE_COLORS = {
    "major": "red",
    "minor": "yellow",
    "patch": "green",
    "new": "cyan",
    "downgrade": "red",
    "update": "yellow",
}

_console: Optional[Console] = None
_console_lock = threading.Lock()


def _should_use_color() -> bool:
    """Return True if colored output should be enabled."""
    if os.environ.get("NO_COLOR") or os.environ.get("CI"):
        return False
    try:
        return sys.stdout.isatty()
    except (AttributeError, OSError):
        return False


def _get_console() -> Console:
    """Return the process-wide Rich Console, creating it on first use."""
    global _console

    if _console is None:
        with _console_lock:
            if _console is None:
                use_color = _should_use_color()
                _console = Console(
                    theme=CHARTKEEPER_THEME,
                    no_color=not use_color,
                    highlight=use_color,
                )
    return _console


def reconfigure_console() -> None:
    """Drop the cached console so the next call re-reads ``NO_COLOR``."""
    global _console
    with _console_lock:
        _console = None


def get_raw_console() -> Console:
    """Return the underlying Rich Console instance."""
    return _get_console()


def print_success(message: str, *, prefix: str = "[OK]") -> None:
    _get_console().print(f"{prefix} {message}", style="success", markup=False)


def print_error(message: str, *, prefix: str = "[ERROR]") -> None:
    _get_console().print(f"{prefix} {message}", style="error", markup=False)


def print_warning(message: str, *, prefix: str = "[WARNING]") -> None:
    _get_console().print(f"{prefix} {message}", style="warning", markup=False)


def print_table(
    rows: List[Dict[str, Any]],
    *,
    headers: Optional[List[str]] = None,
    title: Optional[str] = None,
    column_styles: Optional[Dict[str, str]] = None,
) -> None:
    """Render row dictionaries as a Rich table.

    Args:
        rows: Row dictionaries; missing cells render empty.
        headers: Column order. Defaults to the keys of the first row.
        title: Optional table title.
        column_styles: Optional style per column header.
    """
    if not rows:
        return

    headers = headers or list(rows[0].keys())
    column_styles = column_styles or {}

    table = Table(title=title, show_header=True, header_style="bold")
    for header in headers:
        table.add_column(header, style=column_styles.get(header), overflow="fold")

    for row in rows:
        table.add_row(*(str(row.get(header, "")) for header in headers))

    _get_console().print(table)


def print_markdown(text: str, *, render: bool = True) -> None:
    """Print a markdown document, rendered by Rich or as plain text."""
    console = _get_console()
    if render:
        console.print(Markdown(text))
    else:
        console.print(text, markup=False, highlight=False)


def colorize_update_type(update_type: str) -> str:
    """Return a Rich-markup colored update type label."""
    color = UPDATE_TYPE_COLORS.get(update_type.lower())
    return f"[{color}]{update_type}[/{color}]" if color else update_type
