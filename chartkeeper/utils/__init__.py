"""
Utility helpers for chartkeeper.

This package provides reusable utilities used across chartkeeper:

- Console output helpers (Rich-based)
- Logging configuration and retrieval
- Async HTTP client
- Semantic-version helpers

Only symbols listed in ``__all__`` are considered part of the public API.
"""

from __future__ import annotations

from chartkeeper.utils.logger import (
    get_logger,
    level_for_verbosity,
    setup_logging,
)
from chartkeeper.utils.console import (
    colorize_update_type,
    get_raw_console,
    print_error,
    print_markdown,
    print_success,
    print_table,
    print_warning,
    reconfigure_console,
)
from chartkeeper.utils.http import HTTPClient
from chartkeeper.utils.version_utils import get_update_type, parse_version

__all__ = [
    # Console
    "print_error",
    "print_table",
    "print_success",
    "print_warning",
    "print_markdown",
    "get_raw_console",
    "reconfigure_console",
    "colorize_update_type",
    # Logging
    "get_logger",
    "setup_logging",
    "level_for_verbosity",
    # HTTP
    "HTTPClient",
    # Versions
    "get_update_type",
    "parse_version",
]
