"""Semantic-version parsing, comparison and range matching for chartkeeper.

Versions follow SemVer 2.0 precedence: ``major.minor.patch`` compare
numerically, a pre-release sorts below its release, and build metadata
never affects ordering or equality.

Constraints use the npm range grammar understood by
:class:`semantic_version.NpmSpec`:

* exact versions: ``1.2.3``
* caret ranges: ``^1.2.3`` (the left-most non-zero component is pinned,
  so ``^0.2.3`` allows ``0.2.x`` and ``^0.0.3`` only ``0.0.3``)
* tilde ranges: ``~1.2.3`` (major.minor pinned)
* comparisons: ``>1.0.0``, ``>=1.0.0``, ``<2.0.0``, ``<=2.0.0``, ``=1.0.0``
* hyphen ranges: ``1.0.0 - 2.0.0``
* X-ranges: ``1.2.x``, ``1.x``, ``*``
* conjunctions: ``>=1.0.0 <2.0.0`` and unions: ``1.x || 3.x``

No function in this module raises on bad input. Parse failures come back
as an invalid :class:`VersionConstraint` (or ``None`` / ``False``) so a
batch of dependencies can skip malformed data and keep going.

Typical usage::

    from chartkeeper.core import version_parser

    constraint = version_parser.parse("^1.2.0")
    version_parser.satisfies("1.9.0", constraint)      # True
    version_parser.compare("1.2.3+a", "1.2.3+b")       # 0
    version_parser.sort_descending(["1.0.0", "junk", "2.0.0"])
    # ['2.0.0', '1.0.0']
"""

from __future__ import annotations

import re
from enum import Enum
from functools import cmp_to_key
from dataclasses import dataclass
from typing import Iterable, List, Optional

import semantic_version

from chartkeeper.utils.logger import get_logger
from chartkeeper.utils.version_utils import parse_version, precedence_cmp

logger = get_logger("version_parser")

__all__ = [
    "ConstraintType",
    "VersionConstraint",
    "parse",
    "parse_version",
    "compare",
    "satisfies",
    "version_satisfies",
    "filter_versions",
    "max_satisfying",
    "min_satisfying",
    "is_valid_version",
    "is_valid_constraint",
    "sort",
    "sort_descending",
]


# Build metadata on a comparator; never part of range matching
_BUILD_METADATA_RE = re.compile(r"\+[0-9A-Za-z.-]+")


class ConstraintType(str, Enum):
    """Classification of a parsed constraint."""

    EXACT = "exact"
    RANGE = "range"
    PATTERN = "pattern"


@dataclass(frozen=True)
class VersionConstraint:
    """A parsed version expression.

    Attributes:
        original: The input string, verbatim (surrounding whitespace kept).
        type: ``exact`` for a single version, ``range`` for any other valid
            expression, ``pattern`` for input that failed to parse.
        range: Compiled npm-style range, or ``None`` when invalid.
        is_valid: Whether the expression parsed.
        error: Diagnostic message for invalid input.
    """

    original: str
    type: ConstraintType
    range: Optional[semantic_version.NpmSpec]
    is_valid: bool
    error: Optional[str] = None


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def parse(constraint: str) -> VersionConstraint:
    """Parse a version constraint string.

    Args:
        constraint: Version or range expression. Whitespace around the
            expression is tolerated and preserved in ``original``.

    Returns:
        A :class:`VersionConstraint`; ``is_valid`` is ``False`` (with a
        non-empty ``error``) for empty input or anything the npm range
        grammar rejects.

    Example::

        >>> parse(" ~1.2.0 ").type
        <ConstraintType.RANGE: 'range'>
        >>> parse("latest").is_valid
        False
    """
    trimmed = constraint.strip()

    if not trimmed:
        return VersionConstraint(
            original=constraint,
            type=ConstraintType.PATTERN,
            range=None,
            is_valid=False,
            error="Empty constraint string",
        )

    # semantic_version turns "=1.0.0+b" into a strict build match
    try:
        spec = semantic_version.NpmSpec(_BUILD_METADATA_RE.sub("", trimmed))
    except ValueError as exc:
        return VersionConstraint(
            original=constraint,
            type=ConstraintType.PATTERN,
            range=None,
            is_valid=False,
            error=str(exc) or "Invalid semver constraint",
        )

    constraint_type = (
        ConstraintType.EXACT if parse_version(trimmed) is not None else ConstraintType.RANGE
    )
    return VersionConstraint(
        original=constraint,
        type=constraint_type,
        range=spec,
        is_valid=True,
    )


def is_valid_version(version: str) -> bool:
    """Return ``True`` if *version* is a complete semantic version."""
    return parse_version(version) is not None


def is_valid_constraint(constraint: str) -> bool:
    """Return ``True`` if *constraint* parses as a version expression."""
    return parse(constraint).is_valid


# ---------------------------------------------------------------------------
# Comparison
# ---------------------------------------------------------------------------


def compare(left: str, right: str) -> Optional[int]:
    """Compare two versions by SemVer precedence.

    Returns:
        ``-1``, ``0`` or ``1``; ``None`` when either side is not a valid
        version. Build metadata is ignored, so ``1.0.0+a`` equals
        ``1.0.0+b``.
    """
    parsed_left = parse_version(left)
    parsed_right = parse_version(right)
    if parsed_left is None or parsed_right is None:
        return None
    return precedence_cmp(parsed_left, parsed_right)


def _compare_valid(left: str, right: str) -> int:
    """Comparator for strings already known to be valid versions."""
    result = compare(left, right)
    assert result is not None
    return result


def sort(versions: Iterable[str]) -> List[str]:
    """Sort versions ascending; invalid entries are dropped.

    The sort is stable, so entries of equal precedence (differing only in
    build metadata) keep their input order.
    """
    valid = [version for version in versions if is_valid_version(version)]
    return sorted(valid, key=cmp_to_key(_compare_valid))


def sort_descending(versions: Iterable[str]) -> List[str]:
    """Sort versions descending; always the exact reverse of :func:`sort`."""
    return list(reversed(sort(versions)))


# ---------------------------------------------------------------------------
# Range matching
# ---------------------------------------------------------------------------


def satisfies(version: str, constraint: VersionConstraint) -> bool:
    """Return ``True`` if *version* falls inside *constraint*.

    ``False`` when the constraint is invalid or the version does not parse.
    Pre-release versions only match ranges that mention a pre-release of
    the same ``major.minor.patch``, as in npm.
    """
    if not constraint.is_valid or constraint.range is None:
        return False

    parsed = parse_version(version)
    if parsed is None:
        return False

    try:
        return bool(constraint.range.match(parsed))
    except (TypeError, ValueError) as exc:
        logger.debug("Cannot match %s against %r: %s", version, constraint.original, exc)
        return False


def version_satisfies(version: str, constraint: str) -> bool:
    """Parse *constraint* and test *version* against it in one call."""
    return satisfies(version, parse(constraint))


def filter_versions(versions: Iterable[str], constraint: VersionConstraint) -> List[str]:
    """Return the versions that satisfy *constraint*, in input order."""
    if not constraint.is_valid:
        return []
    return [version for version in versions if satisfies(version, constraint)]


def max_satisfying(versions: Iterable[str], constraint: VersionConstraint) -> Optional[str]:
    """Return the highest version satisfying *constraint*, or ``None``."""
    matching = sort(filter_versions(versions, constraint))
    return matching[-1] if matching else None


def min_satisfying(versions: Iterable[str], constraint: VersionConstraint) -> Optional[str]:
    """Return the lowest version satisfying *constraint*, or ``None``."""
    matching = sort(filter_versions(versions, constraint))
    return matching[0] if matching else None
