"""
Update policy models: ignore rules and dependency groups.

Both are read from configuration and applied by
:class:`~chartkeeper.core.version_resolver.VersionResolver`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List


@dataclass
class IgnoreRule:
    """
    Excludes a dependency, or some of its candidate versions, from updates.

    A rule with neither ``versions`` nor ``update_types`` ignores the
    dependency entirely.

    Attributes:
        dependency_name: Chart name or glob pattern (``bitnami-*``).
        versions: Exact versions, constraints (``>=2.0.0``) or globs
            (``1.*``) whose matching candidates are skipped.
        update_types: ``major``/``minor``/``patch`` updates to skip.
    """

    dependency_name: str
    versions: List[str] = field(default_factory=list)
    update_types: List[str] = field(default_factory=list)

    @property
    def ignores_everything(self) -> bool:
        return not self.versions and not self.update_types


@dataclass
class DependencyGroup:
    """
    Batches updates whose chart name matches one of ``patterns``.

    Attributes:
        patterns: Glob patterns matched against chart names.
        update_types: When non-empty, only these update types join the group.
    """

    patterns: List[str] = field(default_factory=list)
    update_types: List[str] = field(default_factory=list)
