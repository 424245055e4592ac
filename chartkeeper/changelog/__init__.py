"""
Changelog discovery, caching, pruning and rendering.

    from chartkeeper.changelog import ChangelogFinder, prune
"""

from __future__ import annotations

from chartkeeper.changelog.cache import ChangelogCache
from chartkeeper.changelog.finder import ChangelogFinder, discover_source_repositories
from chartkeeper.changelog.formatter import (
    VersionSpan,
    format_changelog,
    format_multiple,
    truncate,
)
from chartkeeper.changelog.pruner import (
    PruneResult,
    extract_version_range,
    find_version_line,
    prune,
)
from chartkeeper.changelog.repository_parser import parse_repository_url

__all__ = [
    "ChangelogCache",
    "ChangelogFinder",
    "discover_source_repositories",
    "VersionSpan",
    "format_changelog",
    "format_multiple",
    "truncate",
    "PruneResult",
    "extract_version_range",
    "find_version_line",
    "prune",
    "parse_repository_url",
]
