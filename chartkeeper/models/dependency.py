"""
Dependency and update data models for chartkeeper.

A :class:`ChartDependency` is what manifest scanning hands to the core;
:class:`VersionUpdate` is what the resolver hands back.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Tuple

from chartkeeper.utils.version_utils import get_update_type

#: Repository types a dependency may declare.
REPO_TYPES: Tuple[str, ...] = ("helm", "oci")


@dataclass
class ChartDependency:
    """
    A chart dependency whose declared version is known.

    Attributes:
        chart_name: Name of the chart.
        repo_url: Helm repository URL or OCI registry reference.
        repo_type: ``"helm"`` for classic index-based repositories,
            ``"oci"`` for OCI registries.
        current_version: Version currently declared in the manifest.
        manifest_path: File the dependency was read from (informational).
        document_index: Index of the YAML document within the manifest.
        version_path: Key path to the version field inside the document.
    """

    chart_name: str
    repo_url: str
    repo_type: str = "helm"
    current_version: str = ""
    manifest_path: Optional[str] = None
    document_index: int = 0
    version_path: List[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.repo_type not in REPO_TYPES:
            raise ValueError(
                f"repo_type must be one of {', '.join(REPO_TYPES)}, got {self.repo_type!r}"
            )

    @classmethod
    def from_reference(
        cls,
        chart_name: str,
        repo_url: str,
        current_version: str,
        repo_type: Optional[str] = None,
    ) -> "ChartDependency":
        """Build a dependency, inferring ``oci`` from an ``oci://`` URL."""
        if repo_type is None:
            repo_type = "oci" if repo_url.startswith("oci://") else "helm"
        return cls(
            chart_name=chart_name,
            repo_url=repo_url,
            repo_type=repo_type,
            current_version=current_version,
        )

    def __str__(self) -> str:
        return f"{self.chart_name}@{self.current_version} ({self.repo_url})"


@dataclass(frozen=True)
class ChartVersionInfo:
    """One version published by a chart repository."""

    version: str
    app_version: Optional[str] = None
    created: Optional[datetime] = None
    digest: Optional[str] = None


@dataclass(frozen=True)
class VersionUpdate:
    """
    The resolver's decision for one dependency.

    Attributes:
        dependency: The dependency being updated.
        current_version: Version declared today.
        new_version: Version proposed as the update.
        release_notes_url: Best-guess link to the chart's release page.
    """

    dependency: ChartDependency
    current_version: str
    new_version: str
    release_notes_url: Optional[str] = None

    @property
    def update_type(self) -> str:
        """Semantic classification of the change (``major``/``minor``/...)."""
        return get_update_type(self.current_version, self.new_version)

    @property
    def chart_name(self) -> str:
        return self.dependency.chart_name

    def __str__(self) -> str:
        return f"{self.chart_name}: {self.current_version} → {self.new_version}"
