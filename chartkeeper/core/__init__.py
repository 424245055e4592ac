"""
Core functionality exports for chartkeeper.

Importing from here keeps user-facing imports clean and stable:

    from chartkeeper.core import VersionResolver, version_parser
"""

from __future__ import annotations

from chartkeeper.core import version_parser
from chartkeeper.core.version_parser import ConstraintType, VersionConstraint
from chartkeeper.core.version_source import HelmRepositoryVersionSource, VersionSource
from chartkeeper.core.version_resolver import (
    UpdateStrategy,
    VersionResolver,
    select_best_version,
)

__all__ = [
    "version_parser",
    "ConstraintType",
    "VersionConstraint",
    "HelmRepositoryVersionSource",
    "VersionSource",
    "UpdateStrategy",
    "VersionResolver",
    "select_best_version",
]
