"""
Semantic-version helpers for chartkeeper.

This module turns version strings into :class:`semantic_version.Version`
objects and classifies the change between two versions. Chart versions
follow SemVer 2.0 (``MAJOR.MINOR.PATCH[-PRERELEASE][+BUILD]``), so these
helpers deliberately do not accept PEP 440 spellings.
"""

from __future__ import annotations

from typing import Optional

import semantic_version


def parse_version(value: Optional[str]) -> Optional[semantic_version.Version]:
    """Parse a strict semantic version, tolerating surrounding noise.

    Leading/trailing whitespace and a single leading ``v`` or ``=`` are
    ignored, so ``" v1.2.3 "`` parses like ``"1.2.3"``. Partial versions
    (``"1.2"``) are rejected.

    Args:
        value: Version string to parse.

    Returns:
        The parsed version, or ``None`` when *value* is not a valid
        semantic version.

    Examples:
        >>> str(parse_version("v1.2.3-rc.1+build.5"))
        '1.2.3-rc.1+build.5'
        >>> parse_version("1.2") is None
        True
    """
    if value is None:
        return None

    text = value.strip()
    if text[:1] in ("v", "V", "="):
        text = text[1:].strip()

    try:
        return semantic_version.Version(text)
    except ValueError:
        return None


def precedence_cmp(left: semantic_version.Version, right: semantic_version.Version) -> int:
    """Three-way SemVer precedence comparison; build metadata is ignored."""
    return (left > right) - (left < right)


def get_update_type(
    current_version: Optional[str],
    target_version: Optional[str],
) -> str:
    """Determine the semantic update type between two versions.

    Args:
        current_version: Currently deployed version, or ``None`` if unknown.
        target_version: Target version to compare against.

    Returns:
        One of:
            - ``"new"``       : No current version exists
            - ``"same"``      : Versions have equal precedence
            - ``"downgrade"`` : Target version is lower than current
            - ``"major"``     : Major version change
            - ``"minor"``     : Minor version change
            - ``"patch"``     : Patch-level change
            - ``"update"``    : Pre-release to release (same core version)
            - ``"unknown"``   : Missing or invalid versions

    Examples:
        >>> get_update_type("1.0.0", "2.0.0")
        'major'
        >>> get_update_type("1.2.3-rc.1", "1.2.3")
        'update'
    """
    if target_version is None:
        return "unknown"

    if current_version is None:
        return "new" if parse_version(target_version) is not None else "unknown"

    current = parse_version(current_version)
    target = parse_version(target_version)
    if current is None or target is None:
        return "unknown"

    order = precedence_cmp(target, current)
    if order == 0:
        return "same"
    if order < 0:
        return "downgrade"

    if current.major != target.major:
        return "major"
    if current.minor != target.minor:
        return "minor"
    if current.patch != target.patch:
        return "patch"

    return "update"
