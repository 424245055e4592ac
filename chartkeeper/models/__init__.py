"""
Unified data model exports for chartkeeper.

Example:
    >>> from chartkeeper.models import ChartDependency, VersionUpdate, ChangelogResult
"""

from __future__ import annotations

from chartkeeper.models.dependency import (
    ChartDependency,
    ChartVersionInfo,
    VersionUpdate,
)
from chartkeeper.models.changelog import (
    ChangelogResult,
    ReleaseNotes,
    RepositoryFile,
    RepositoryInfo,
)
from chartkeeper.models.registry import RegistryCredential
from chartkeeper.models.rules import DependencyGroup, IgnoreRule

__all__ = [
    "ChartDependency",
    "ChartVersionInfo",
    "VersionUpdate",
    "ChangelogResult",
    "ReleaseNotes",
    "RepositoryFile",
    "RepositoryInfo",
    "DependencyGroup",
    "IgnoreRule",
    "RegistryCredential",
]
