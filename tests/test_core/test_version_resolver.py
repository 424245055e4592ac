"""Unit tests for chartkeeper.core.version_resolver.

Test Coverage:
- UpdateStrategy coercion
- select_best_version under each strategy
- Ignore rules (whole dependency, versions, update types, name globs)
- Batch resolution with per-dependency failure isolation
- Dependency grouping
- Release notes URL guessing
"""

from __future__ import annotations

import asyncio
from typing import Dict, List

import pytest

from chartkeeper.core.version_resolver import (
    UNGROUPED,
    UpdateStrategy,
    VersionResolver,
    release_notes_url,
    select_best_version,
)
from chartkeeper.exceptions import RegistryError
from chartkeeper.models import (
    ChartDependency,
    ChartVersionInfo,
    DependencyGroup,
    IgnoreRule,
    VersionUpdate,
)


class FakeVersionSource:
    """In-memory version source; unknown charts raise RegistryError."""

    def __init__(self, versions: Dict[str, List[str]]) -> None:
        self.versions = versions
        self.calls: List[str] = []

    async def get_versions(self, dependency: ChartDependency) -> List[ChartVersionInfo]:
        self.calls.append(dependency.chart_name)
        await asyncio.sleep(0)
        if dependency.chart_name not in self.versions:
            raise RegistryError("not found", chart_name=dependency.chart_name)
        return [ChartVersionInfo(version=v) for v in self.versions[dependency.chart_name]]


def _dep(name: str, version: str, repo_url: str = "https://charts.example.com") -> ChartDependency:
    return ChartDependency(chart_name=name, repo_url=repo_url, current_version=version)


AVAILABLE = ["1.2.3", "1.2.4", "1.3.0", "2.0.0", "1.2.2"]


@pytest.mark.unit
class TestUpdateStrategy:
    def test_coerce_string(self) -> None:
        assert UpdateStrategy.coerce("Minor") is UpdateStrategy.MINOR
        assert UpdateStrategy.coerce(" patch ") is UpdateStrategy.PATCH

    def test_coerce_member(self) -> None:
        assert UpdateStrategy.coerce(UpdateStrategy.ALL) is UpdateStrategy.ALL

    def test_invalid_strategy(self) -> None:
        with pytest.raises(ValueError, match="Invalid update strategy"):
            UpdateStrategy.coerce("latest")


@pytest.mark.unit
class TestSelectBestVersion:
    """Tests for the pure selection function."""

    @pytest.mark.parametrize(
        "strategy,expected",
        [("patch", "1.2.4"), ("minor", "1.3.0"), ("major", "2.0.0"), ("all", "2.0.0")],
    )
    def test_strategies(self, strategy: str, expected: str) -> None:
        assert select_best_version(AVAILABLE, "1.2.3", strategy) == expected

    def test_patch_with_no_patch_release(self) -> None:
        """Edge case: only minor/major releases exist, so patch finds nothing."""
        assert select_best_version(["1.3.0", "2.0.0"], "1.2.3", "patch") is None

    def test_never_older_or_equal(self) -> None:
        assert select_best_version(["1.0.0", "1.2.3", "1.2.3+build"], "1.2.3") is None

    def test_invalid_current_version(self) -> None:
        assert select_best_version(AVAILABLE, "latest") is None

    def test_invalid_candidates_skipped(self) -> None:
        assert select_best_version(["junk", "1.2", "1.2.5"], "1.2.3", "patch") == "1.2.5"

    def test_prerelease_competes(self) -> None:
        assert select_best_version(["1.2.4", "1.2.5-rc.1"], "1.2.3", "patch") == "1.2.5-rc.1"

    def test_order_independent(self) -> None:
        assert select_best_version(list(reversed(AVAILABLE)), "1.2.3") == "2.0.0"

    def test_ignore_rule_versions(self) -> None:
        rules = [IgnoreRule(dependency_name="app", versions=["2.0.0"])]
        assert select_best_version(AVAILABLE, "1.2.3", "all", rules) == "1.3.0"

    def test_ignore_rule_constraint_and_glob(self) -> None:
        by_range = [IgnoreRule(dependency_name="app", versions=[">=1.3.0"])]
        by_glob = [IgnoreRule(dependency_name="app", versions=["2.*"])]

        assert select_best_version(AVAILABLE, "1.2.3", "all", by_range) == "1.2.4"
        assert select_best_version(AVAILABLE, "1.2.3", "all", by_glob) == "1.3.0"

    def test_ignore_rule_update_types(self) -> None:
        rules = [IgnoreRule(dependency_name="app", update_types=["major"])]
        assert select_best_version(AVAILABLE, "1.2.3", "all", rules) == "1.3.0"


@pytest.mark.unit
class TestVersionResolver:
    """Tests for VersionResolver."""

    @pytest.mark.asyncio
    async def test_check_for_updates(self) -> None:
        """Happy path: one update per outdated dependency, input order kept."""
        source = FakeVersionSource({"app": AVAILABLE, "db": ["3.0.0", "3.0.1"]})
        resolver = VersionResolver(source, strategy="minor")

        updates = await resolver.check_for_updates([_dep("app", "1.2.3"), _dep("db", "3.0.1")])

        assert [(u.chart_name, u.new_version) for u in updates] == [("app", "1.3.0")]
        assert updates[0].current_version == "1.2.3"
        assert updates[0].update_type == "minor"

    @pytest.mark.asyncio
    async def test_failure_is_isolated(self) -> None:
        """Edge case: a failing lookup skips that dependency only."""
        source = FakeVersionSource({"app": AVAILABLE})
        resolver = VersionResolver(source)

        updates = await resolver.check_for_updates([_dep("missing", "1.0.0"), _dep("app", "1.2.3")])

        assert [u.chart_name for u in updates] == ["app"]

    @pytest.mark.asyncio
    async def test_ignored_dependency_not_fetched(self) -> None:
        source = FakeVersionSource({"app": AVAILABLE})
        resolver = VersionResolver(source, ignore_rules=[IgnoreRule(dependency_name="ap*")])

        assert await resolver.check_for_updates([_dep("app", "1.2.3")]) == []
        assert source.calls == []

    @pytest.mark.asyncio
    async def test_deterministic(self) -> None:
        source = FakeVersionSource({"app": AVAILABLE})
        resolver = VersionResolver(source, strategy="patch")

        first = await resolver.check_dependency(_dep("app", "1.2.3"))
        second = await resolver.check_dependency(_dep("app", "1.2.3"))

        assert first == second
        assert first is not None and first.new_version == "1.2.4"

    @pytest.mark.asyncio
    async def test_check_dependency_propagates_errors(self) -> None:
        resolver = VersionResolver(FakeVersionSource({}))

        with pytest.raises(RegistryError):
            await resolver.check_dependency(_dep("missing", "1.0.0"))

    def test_resolve_sets_release_notes_url(self) -> None:
        resolver = VersionResolver(FakeVersionSource({}))
        dependency = _dep("redis", "17.0.0", "https://charts.bitnami.com/bitnami")

        update = resolver.resolve(dependency, ["17.1.0"])

        assert update is not None
        assert update.release_notes_url == "https://github.com/bitnami/charts/releases"

    def test_rules_for_matches_globs(self) -> None:
        rules = [
            IgnoreRule(dependency_name="bitnami-*", update_types=["major"]),
            IgnoreRule(dependency_name="app"),
        ]
        resolver = VersionResolver(FakeVersionSource({}), ignore_rules=rules)

        assert resolver.rules_for("bitnami-redis") == [rules[0]]
        assert resolver.rules_for("app") == [rules[1]]
        assert resolver.rules_for("other") == []


@pytest.mark.unit
class TestGroupUpdates:
    def _update(self, name: str, current: str, new: str) -> VersionUpdate:
        return VersionUpdate(dependency=_dep(name, current), current_version=current, new_version=new)

    def test_first_matching_group_wins(self) -> None:
        groups = {
            "monitoring": DependencyGroup(patterns=["prometheus*", "grafana"]),
            "everything": DependencyGroup(patterns=["*"]),
        }
        resolver = VersionResolver(FakeVersionSource({}), groups=groups)
        updates = [
            self._update("prometheus-stack", "1.0.0", "1.1.0"),
            self._update("grafana", "6.0.0", "7.0.0"),
            self._update("redis", "1.0.0", "1.0.1"),
        ]

        grouped = resolver.group_updates(updates)

        assert [u.chart_name for u in grouped["monitoring"]] == ["prometheus-stack", "grafana"]
        assert [u.chart_name for u in grouped["everything"]] == ["redis"]
        assert grouped[UNGROUPED] == []

    def test_update_type_filter(self) -> None:
        groups = {"minor-and-patch": DependencyGroup(patterns=["*"], update_types=["minor", "patch"])}
        resolver = VersionResolver(FakeVersionSource({}), groups=groups)
        major = self._update("app", "1.0.0", "2.0.0")
        minor = self._update("db", "1.0.0", "1.1.0")

        grouped = resolver.group_updates([major, minor])

        assert grouped == {"minor-and-patch": [minor], UNGROUPED: [major]}

    def test_empty_groups_dropped(self) -> None:
        resolver = VersionResolver(
            FakeVersionSource({}), groups={"unused": DependencyGroup(patterns=["nothing"])}
        )
        assert resolver.group_updates([]) == {UNGROUPED: []}


@pytest.mark.unit
class TestReleaseNotesUrl:
    @pytest.mark.parametrize(
        "repo_url,expected",
        [
            ("https://charts.bitnami.com/bitnami", "https://github.com/bitnami/charts/releases"),
            ("https://org.github.io/helm-charts", "https://github.com/org/helm-charts/releases"),
            ("https://github.com/org/charts.git", "https://github.com/org/charts/releases"),
            ("https://charts.example.com", None),
        ],
    )
    def test_guesses(self, repo_url: str, expected: str) -> None:
        assert release_notes_url(_dep("app", "1.0.0", repo_url)) == expected
