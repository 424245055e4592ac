"""
Shared context object for chartkeeper CLI commands.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Optional

import click

if TYPE_CHECKING:
    from chartkeeper.config import ChartKeeperConfig


class ChartKeeperContext:
    """Per-invocation state shared by every chartkeeper subcommand.

    Attributes:
        config_path: Configuration file in use, if any.
        verbose: Verbosity level (0=WARNING, 1=INFO, 2+=DEBUG).
        color: Whether colored terminal output is enabled.
        config: Loaded configuration; ``None`` until the group callback runs.
    """

    __slots__ = ("config_path", "verbose", "color", "config")

    def __init__(self) -> None:
        self.config_path: Optional[Path] = None
        self.verbose: int = 0
        self.color: bool = True
        self.config: Optional["ChartKeeperConfig"] = None


#: Click decorator for injecting :class:`ChartKeeperContext` into commands.
pass_context = click.make_pass_decorator(ChartKeeperContext, ensure=True)
