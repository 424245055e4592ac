"""Update selection for chart dependencies.

:class:`VersionResolver` answers "which version should this dependency
move to?". For every dependency it asks a :class:`VersionSource` for the
published versions, keeps those strictly newer than the current version
that the configured :class:`UpdateStrategy` allows and that no ignore rule
excludes, and proposes the highest one.

Strategies:

* ``patch``: same major and minor as the current version
* ``minor``: same major as the current version
* ``major`` / ``all``: any newer version

Pre-releases compete like any other version under SemVer precedence.

Typical usage::

    from chartkeeper.utils.http import HTTPClient
    from chartkeeper.core import HelmRepositoryVersionSource, VersionResolver

    async with HTTPClient() as http:
        resolver = VersionResolver(
            version_source=HelmRepositoryVersionSource(http),
            strategy="minor",
        )
        for update in await resolver.check_for_updates(dependencies):
            print(update)
"""

from __future__ import annotations

import asyncio
import re
from enum import Enum
from fnmatch import fnmatchcase
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from chartkeeper.core import version_parser
from chartkeeper.core.version_source import VersionSource
from chartkeeper.models.dependency import ChartDependency, VersionUpdate
from chartkeeper.models.rules import DependencyGroup, IgnoreRule
from chartkeeper.utils.logger import get_logger
from chartkeeper.utils.version_utils import get_update_type, parse_version

logger = get_logger("version_resolver")

__all__ = ["UpdateStrategy", "VersionResolver", "select_best_version"]

#: Key under which :meth:`VersionResolver.group_updates` collects leftovers.
UNGROUPED = "ungrouped"

_GITHUB_PAGES_RE = re.compile(r"https?://([^.]+)\.github\.io/([^/]+)")
_GITHUB_REPO_RE = re.compile(r"github\.com/([^/]+)/([^/]+)")


class UpdateStrategy(str, Enum):
    """Which newer versions an update may move to."""

    PATCH = "patch"
    MINOR = "minor"
    MAJOR = "major"
    ALL = "all"

    @classmethod
    def coerce(cls, value: Union[str, "UpdateStrategy"]) -> "UpdateStrategy":
        """Accept an enum member or its (case-insensitive) string value."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            choices = ", ".join(member.value for member in cls)
            raise ValueError(
                f"Invalid update strategy {value!r}; expected one of: {choices}"
            ) from None


# ---------------------------------------------------------------------------
# Pure selection
# ---------------------------------------------------------------------------


def _strategy_allows(strategy: UpdateStrategy, current: Any, candidate: Any) -> bool:
    if strategy is UpdateStrategy.PATCH:
        return candidate.major == current.major and candidate.minor == current.minor
    if strategy is UpdateStrategy.MINOR:
        return candidate.major == current.major
    return True


def select_best_version(
    available: Iterable[str],
    current_version: str,
    strategy: Union[str, UpdateStrategy] = UpdateStrategy.ALL,
    ignore_rules: Sequence[IgnoreRule] = (),
) -> Optional[str]:
    """Pick the highest version the strategy allows.

    Args:
        available: Published versions, any order. Invalid strings are
            skipped.
        current_version: Version currently in use.
        strategy: Update strategy.
        ignore_rules: Rules already known to apply to this dependency;
            candidates they exclude are removed before the maximum is
            taken.

    Returns:
        The selected version string (as published), or ``None`` when the
        current version is not a valid semantic version or no candidate
        qualifies.

    Example::

        >>> select_best_version(["1.2.4", "1.3.0", "2.0.0"], "1.2.3", "patch")
        '1.2.4'
        >>> select_best_version(["1.3.0", "2.0.0"], "1.2.3", "patch") is None
        True
    """
    strategy = UpdateStrategy.coerce(strategy)
    current = parse_version(current_version)
    if current is None:
        return None

    candidates: List[str] = []
    for version in available:
        parsed = parse_version(version)
        if parsed is None or not parsed > current:
            continue
        if not _strategy_allows(strategy, current, parsed):
            continue
        if any(_rule_excludes(rule, current_version, version) for rule in ignore_rules):
            continue
        candidates.append(version)

    ordered = version_parser.sort(candidates)
    return ordered[-1] if ordered else None


# ---------------------------------------------------------------------------
# Ignore rules
# ---------------------------------------------------------------------------


def _name_matches(name: str, pattern: str) -> bool:
    return name == pattern or fnmatchcase(name, pattern)


def _version_matches(version: str, pattern: str) -> bool:
    if version_parser.compare(version, pattern) == 0:
        return True
    # Globs like ``1.*`` are not npm ranges; try them as text first
    if "*" in pattern and fnmatchcase(version, pattern):
        return True
    return version_parser.version_satisfies(version, pattern)


def _rule_excludes(rule: IgnoreRule, current_version: str, candidate: str) -> bool:
    if rule.ignores_everything:
        return True
    if any(_version_matches(candidate, pattern) for pattern in rule.versions):
        return True
    if rule.update_types and get_update_type(current_version, candidate) in rule.update_types:
        return True
    return False


# ---------------------------------------------------------------------------
# Resolver
# ---------------------------------------------------------------------------


class VersionResolver:
    """Selects the best update for each dependency.

    Args:
        version_source: Where available versions come from.
        strategy: Update strategy (enum member or string).
        ignore_rules: Rules excluding dependencies or candidate versions.
        groups: Named dependency groups used by :meth:`group_updates`.
    """

    def __init__(
        self,
        version_source: VersionSource,
        strategy: Union[str, UpdateStrategy] = UpdateStrategy.ALL,
        ignore_rules: Optional[Sequence[IgnoreRule]] = None,
        groups: Optional[Mapping[str, DependencyGroup]] = None,
    ) -> None:
        self.version_source = version_source
        self.strategy = UpdateStrategy.coerce(strategy)
        self.ignore_rules: List[IgnoreRule] = list(ignore_rules or [])
        self.groups: Dict[str, DependencyGroup] = dict(groups or {})

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def check_for_updates(
        self,
        dependencies: Sequence[ChartDependency],
    ) -> List[VersionUpdate]:
        """Resolve updates for *dependencies* concurrently.

        A dependency whose versions cannot be fetched is logged and
        skipped; the rest of the batch is unaffected.

        Returns:
            At most one :class:`VersionUpdate` per dependency, in input
            order. An empty list means everything is up to date.
        """
        tasks = [self.check_dependency(dependency) for dependency in dependencies]
        results = await asyncio.gather(*tasks, return_exceptions=True)

        updates: List[VersionUpdate] = []
        for dependency, result in zip(dependencies, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                logger.warning(
                    "Skipping %s: could not fetch available versions (%s)",
                    dependency.chart_name,
                    result,
                )
                continue
            if result is not None:
                updates.append(result)
        return updates

    async def check_dependency(self, dependency: ChartDependency) -> Optional[VersionUpdate]:
        """Resolve the update for a single dependency.

        Raises:
            Whatever the version source raises for this dependency.
        """
        rules = self.rules_for(dependency.chart_name)
        if any(rule.ignores_everything for rule in rules):
            logger.debug("Ignoring %s by configuration", dependency.chart_name)
            return None

        infos = await self.version_source.get_versions(dependency)
        return self.resolve(dependency, [info.version for info in infos])

    def resolve(
        self,
        dependency: ChartDependency,
        available_versions: Iterable[str],
    ) -> Optional[VersionUpdate]:
        """Choose the update for *dependency* from known versions (no I/O)."""
        rules = self.rules_for(dependency.chart_name)
        new_version = select_best_version(
            available_versions,
            dependency.current_version,
            self.strategy,
            rules,
        )
        if new_version is None:
            logger.debug(
                "%s %s is up to date under strategy %s",
                dependency.chart_name,
                dependency.current_version,
                self.strategy.value,
            )
            return None

        return VersionUpdate(
            dependency=dependency,
            current_version=dependency.current_version,
            new_version=new_version,
            release_notes_url=release_notes_url(dependency),
        )

    def rules_for(self, chart_name: str) -> List[IgnoreRule]:
        """Ignore rules whose name pattern matches *chart_name*."""
        return [rule for rule in self.ignore_rules if _name_matches(chart_name, rule.dependency_name)]

    def group_updates(self, updates: Iterable[VersionUpdate]) -> Dict[str, List[VersionUpdate]]:
        """Bucket updates by the first configured group they match.

        Updates matching no group are collected under ``"ungrouped"``,
        which is always present in the result.
        """
        grouped: Dict[str, List[VersionUpdate]] = {name: [] for name in self.groups}
        grouped[UNGROUPED] = []

        for update in updates:
            for name, group in self.groups.items():
                if self._matches_group(update, group):
                    grouped[name].append(update)
                    break
            else:
                grouped[UNGROUPED].append(update)

        return {name: items for name, items in grouped.items() if items or name == UNGROUPED}

    @staticmethod
    def _matches_group(update: VersionUpdate, group: DependencyGroup) -> bool:
        if not any(fnmatchcase(update.chart_name, pattern) for pattern in group.patterns):
            return False
        return not group.update_types or update.update_type in group.update_types


def release_notes_url(dependency: ChartDependency) -> Optional[str]:
    """Best-guess releases page for a chart, or ``None``."""
    url = dependency.repo_url
    if "bitnami" in url:
        return "https://github.com/bitnami/charts/releases"

    match = _GITHUB_PAGES_RE.search(url)
    if match:
        return f"https://github.com/{match.group(1)}/{match.group(2)}/releases"

    match = _GITHUB_REPO_RE.search(url)
    if match:
        repo = match.group(2)
        if repo.endswith(".git"):
            repo = repo[: -len(".git")]
        return f"https://github.com/{match.group(1)}/{repo}/releases"

    return None
