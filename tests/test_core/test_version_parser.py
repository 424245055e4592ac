"""Unit tests for chartkeeper.core.version_parser.

Test Coverage:
- Constraint parsing (exact, ranges, invalid input, surrounding whitespace)
- SemVer precedence (ordering laws, pre-releases, build metadata)
- Range matching for caret, tilde, comparison, hyphen and X-ranges
- Sorting (invalid entries dropped, stability, ascending/descending duality)
- Filters and reductions (filter_versions, max/min_satisfying)
"""

from __future__ import annotations

import itertools

import pytest

from chartkeeper.core import version_parser
from chartkeeper.core.version_parser import ConstraintType


VALID_VERSIONS = [
    "0.0.1",
    "0.1.0",
    "1.0.0-alpha",
    "1.0.0-alpha.1",
    "1.0.0-beta",
    "1.0.0-rc.2",
    "1.0.0-rc.10",
    "1.0.0",
    "1.2.3",
    "1.10.0",
    "2.0.0",
]


@pytest.mark.unit
class TestParse:
    """Tests for parse()."""

    def test_exact_version(self) -> None:
        """Happy path: a plain version is an exact constraint."""
        constraint = version_parser.parse("1.2.3")

        assert constraint.is_valid is True
        assert constraint.type is ConstraintType.EXACT
        assert constraint.range is not None
        assert constraint.error is None

    @pytest.mark.parametrize(
        "expression",
        ["^1.2.3", "~1.2.3", ">=1.0.0", "<2.0.0", ">=1.0.0 <2.0.0", "1.0.0 - 2.0.0", "1.2.x", "*"],
    )
    def test_ranges(self, expression: str) -> None:
        constraint = version_parser.parse(expression)

        assert constraint.is_valid is True
        assert constraint.type is ConstraintType.RANGE

    def test_whitespace_preserved_in_original(self) -> None:
        """Edge case: surrounding whitespace is kept but does not break parsing."""
        constraint = version_parser.parse("  ~1.2.0 ")

        assert constraint.original == "  ~1.2.0 "
        assert constraint.is_valid is True

    @pytest.mark.parametrize("expression", ["", "   ", "latest", "not-a-version"])
    def test_invalid_input(self, expression: str) -> None:
        """Invalid input yields a structured result, never an exception."""
        constraint = version_parser.parse(expression)

        assert constraint.is_valid is False
        assert constraint.range is None
        assert constraint.error
        assert constraint.type is ConstraintType.PATTERN

    def test_parse_is_deterministic(self) -> None:
        assert version_parser.parse("^1.2.0") == version_parser.parse("^1.2.0")

    def test_validity_helpers(self) -> None:
        assert version_parser.is_valid_version("1.2.3")
        assert version_parser.is_valid_version("v1.2.3")
        assert not version_parser.is_valid_version("1.2")
        assert version_parser.is_valid_constraint("^1.2")
        assert not version_parser.is_valid_constraint("latest")


@pytest.mark.unit
class TestCompare:
    """Tests for compare()."""

    def test_basic_ordering(self) -> None:
        assert version_parser.compare("1.2.3", "1.10.0") == -1
        assert version_parser.compare("2.0.0", "1.99.99") == 1
        assert version_parser.compare("1.2.3", "1.2.3") == 0

    def test_prerelease_below_release(self) -> None:
        assert version_parser.compare("1.0.0-rc.1", "1.0.0") == -1
        assert version_parser.compare("1.0.0-alpha", "1.0.0-beta") == -1

    def test_numeric_prerelease_identifiers(self) -> None:
        """rc.2 < rc.10: numeric identifiers compare as numbers."""
        assert version_parser.compare("1.0.0-rc.2", "1.0.0-rc.10") == -1

    @pytest.mark.parametrize(
        "left,right",
        [("1.0.0+a", "1.0.0+b"), ("1.0.0", "1.0.0+build.5"), ("2.1.0-rc.1+x", "2.1.0-rc.1+y")],
    )
    def test_build_metadata_ignored(self, left: str, right: str) -> None:
        assert version_parser.compare(left, right) == 0

    def test_v_prefix_tolerated(self) -> None:
        assert version_parser.compare("v1.2.3", "1.2.3") == 0

    @pytest.mark.parametrize("left,right", [("1.2", "1.2.3"), ("1.2.3", "junk"), ("", "1.0.0")])
    def test_invalid_returns_none(self, left: str, right: str) -> None:
        assert version_parser.compare(left, right) is None

    def test_total_order_laws(self) -> None:
        """Reflexive, antisymmetric and transitive over a mixed sample."""
        for a in VALID_VERSIONS:
            assert version_parser.compare(a, a) == 0

        for a, b in itertools.product(VALID_VERSIONS, repeat=2):
            result = version_parser.compare(a, b)
            assert result in (-1, 0, 1)
            assert result == -version_parser.compare(b, a)

        for a, b, c in itertools.permutations(VALID_VERSIONS, 3):
            if version_parser.compare(a, b) <= 0 and version_parser.compare(b, c) <= 0:
                assert version_parser.compare(a, c) <= 0


@pytest.mark.unit
class TestSatisfies:
    """Range semantics of satisfies()."""

    @pytest.mark.parametrize(
        "version,expression,expected",
        [
            # caret
            ("1.9.0", "^1.2.3", True),
            ("1.2.3", "^1.2.3", True),
            ("2.0.0", "^1.2.3", False),
            ("0.2.9", "^0.2.3", True),
            ("0.3.0", "^0.2.3", False),
            ("0.0.3", "^0.0.3", True),
            ("0.0.4", "^0.0.3", False),
            # tilde
            ("1.2.9", "~1.2.3", True),
            ("1.3.0", "~1.2.3", False),
            # comparisons
            ("1.0.0", ">1.0.0", False),
            ("1.0.0", ">=1.0.0", True),
            ("2.0.0", "<2.0.0", False),
            ("2.0.0", "<=2.0.0", True),
            ("1.0.0", "=1.0.0", True),
            # conjunction
            ("1.5.0", ">=1.0.0 <2.0.0", True),
            ("2.0.0", ">=1.0.0 <2.0.0", False),
            # hyphen range is inclusive
            ("2.0.0", "1.0.0 - 2.0.0", True),
            ("2.0.1", "1.0.0 - 2.0.0", False),
            # x-ranges
            ("1.2.7", "1.2.x", True),
            ("1.3.0", "1.2.x", False),
            ("1.9.9", "1.x", True),
            ("3.0.0", "*", True),
            # union
            ("3.1.0", "1.x || 3.x", True),
            ("2.1.0", "1.x || 3.x", False),
        ],
    )
    def test_range_semantics(self, version: str, expression: str, expected: bool) -> None:
        assert version_parser.version_satisfies(version, expression) is expected

    def test_surrounding_whitespace(self) -> None:
        assert version_parser.version_satisfies("1.2.5", "  ~1.2.0  ") is True

    def test_invalid_constraint_is_false(self) -> None:
        assert version_parser.satisfies("1.0.0", version_parser.parse("latest")) is False

    def test_invalid_version_is_false(self) -> None:
        assert version_parser.satisfies("one.two", version_parser.parse("*")) is False

    def test_build_metadata_matches_exact(self) -> None:
        assert version_parser.version_satisfies("1.2.3+build.1", "1.2.3") is True

    @pytest.mark.parametrize(
        "version,expression,expected",
        [
            ("1.0.0", "1.0.0+build", True),
            ("1.0.0+other", "1.0.0+build", True),
            ("1.0.0+other", "=1.0.0+build", True),
            ("1.0.0", ">=1.0.0+build", True),
            ("1.0.0", "1.0.0+build.1 - 2.0.0+build.2", True),
            ("1.0.1", "=1.0.0+build", False),
        ],
    )
    def test_constraint_build_metadata_ignored(self, version: str, expression: str, expected: bool) -> None:
        """Edge case: build metadata on the constraint side never affects equality."""
        constraint = version_parser.parse(expression)

        assert constraint.is_valid is True
        assert version_parser.satisfies(version, constraint) is expected

    def test_exact_with_build_metadata_keeps_type(self) -> None:
        constraint = version_parser.parse("1.0.0+build")

        assert constraint.type == version_parser.ConstraintType.EXACT
        assert constraint.original == "1.0.0+build"


@pytest.mark.unit
class TestSorting:
    """Tests for sort() and sort_descending()."""

    def test_sort_drops_invalid(self) -> None:
        result = version_parser.sort(["2.0.0", "junk", "1.10.0", "1.2.0", "", "1.0.0"])
        assert result == ["1.0.0", "1.2.0", "1.10.0", "2.0.0"]

    def test_sort_descending_is_reverse(self) -> None:
        versions = ["1.0.0+b", "2.0.0", "1.0.0+a", "0.9.0", "bad", "1.0.0-rc.1"]

        assert version_parser.sort_descending(versions) == list(
            reversed(version_parser.sort(versions))
        )

    def test_stable_for_equal_precedence(self) -> None:
        assert version_parser.sort(["1.0.0+b", "1.0.0+a"]) == ["1.0.0+b", "1.0.0+a"]

    def test_idempotent(self) -> None:
        once = version_parser.sort(VALID_VERSIONS[::-1])
        assert version_parser.sort(once) == once
        assert once == VALID_VERSIONS

    def test_empty(self) -> None:
        assert version_parser.sort([]) == []
        assert version_parser.sort_descending(["junk"]) == []


@pytest.mark.unit
class TestFilters:
    """Tests for filter_versions(), max_satisfying() and min_satisfying()."""

    AVAILABLE = ["1.0.0", "1.5.0", "2.0.0", "1.2.0", "junk"]

    def test_filter_keeps_input_order(self) -> None:
        constraint = version_parser.parse("^1.0.0")
        assert version_parser.filter_versions(self.AVAILABLE, constraint) == [
            "1.0.0",
            "1.5.0",
            "1.2.0",
        ]

    def test_max_and_min(self) -> None:
        constraint = version_parser.parse("^1.0.0")

        assert version_parser.max_satisfying(self.AVAILABLE, constraint) == "1.5.0"
        assert version_parser.min_satisfying(self.AVAILABLE, constraint) == "1.0.0"

    def test_no_match_returns_none(self) -> None:
        constraint = version_parser.parse(">=3.0.0")

        assert version_parser.max_satisfying(self.AVAILABLE, constraint) is None
        assert version_parser.min_satisfying(self.AVAILABLE, constraint) is None

    def test_invalid_constraint_filters_everything(self) -> None:
        constraint = version_parser.parse("latest")
        assert version_parser.filter_versions(self.AVAILABLE, constraint) == []
