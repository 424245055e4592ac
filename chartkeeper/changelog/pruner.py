"""Cut a changelog down to the sections between two versions.

Given the full text of a changelog plus the current and target versions,
:func:`prune` returns the text from the target version's header down to,
but not including, the current version's header. The current version's
section describes what is already deployed, so it is left out.

Recognised version headers::

    ## [1.2.3] - 2024-01-15        Keep a Changelog
    ## 1.2.3 / ### v1.2.3          markdown headings
    1.2.3 / v1.2.3:                bare version lines
    1.2.3 - 2024-01-15             version with date
    - 1.2.3 / * version 1.2.3      bullets
    Version 1.2.3                  prose headers
    1.2.3 (2024-01-15)             underlined with ===, --- or +++
    ==================

Sections titled "Unreleased", "Upcoming" or "Next release" are never
taken as a version header unless the requested version itself says
"unreleased".

When either header cannot be located the whole text comes back unchanged
with ``versions_found=False``; pruning never loses the document.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional, Sequence

from chartkeeper.utils.logger import get_logger

logger = get_logger("changelog.pruner")

__all__ = ["PruneResult", "prune", "find_version_line", "extract_version_range"]

_UNDERLINE_RE = re.compile(r"^[=\-+]{3,}\s*$")
_UNRELEASED_MARKERS = ("unreleased", "upcoming", "next release")

# Any version-looking header, used to find where a section ends
_GENERIC_HEADER_RES = (
    re.compile(r"^#+\s*\[?\d+\.\d+"),
    re.compile(r"^#+\s*v\d+\.\d+", re.IGNORECASE),
    re.compile(r"^v?\d+\.\d+\.\d+", re.IGNORECASE),
    re.compile(r"^[*\-+]\s*v?\d+\.\d+", re.IGNORECASE),
    re.compile(r"^version\s+\d+\.\d+", re.IGNORECASE),
    re.compile(r"^\d{4}-\d{2}-\d{2}"),
)
_HAS_VERSION_RE = re.compile(r"\d+\.\d+")

# ``1.2.3`` must not match inside ``1.2.30`` or ``1.2.3-rc.1``
_VERSION_END = r"(?![\w.]|-\w)"


@dataclass(frozen=True)
class PruneResult:
    """Outcome of :func:`prune`.

    Attributes:
        pruned_text: Extracted sections, or the original text on failure.
        versions_found: Whether both version headers were located.
        warning: Why the original text was returned, when it was.
    """

    pruned_text: str
    versions_found: bool
    warning: Optional[str] = None


def _strip_v(version: str) -> str:
    version = version.strip()
    return version[1:] if version[:1] in ("v", "V") else version


def _header_patterns(version: str) -> List["re.Pattern[str]"]:
    v = re.escape(version) + _VERSION_END
    return [
        re.compile(rf"^#+\s*\[?v?{v}\]?", re.IGNORECASE),
        re.compile(rf"^#+\s*\[v?{v}\]\s*-", re.IGNORECASE),
        re.compile(rf"^v?{v}:?\s*$", re.IGNORECASE),
        re.compile(rf"^v?{v}\s*-\s*\d{{4}}", re.IGNORECASE),
        re.compile(rf"^[*\-+]\s*(version\s+)?v?{v}", re.IGNORECASE),
        re.compile(rf"^version\s+v?{v}", re.IGNORECASE),
    ]


def _is_unreleased(line: str) -> bool:
    lowered = line.lower()
    return any(marker in lowered for marker in _UNRELEASED_MARKERS)


def _is_underline(line: str) -> bool:
    return bool(_UNDERLINE_RE.match(line))


def _looks_like_header(line: str) -> bool:
    return any(pattern.match(line) for pattern in _GENERIC_HEADER_RES)


def find_version_line(lines: Sequence[str], version: str) -> Optional[int]:
    """Return the index of the header line for *version*, or ``None``.

    A leading ``v`` on *version* is ignored, and headers may carry one
    too, so ``v1.2.3`` and ``1.2.3`` find the same line.
    """
    normalized = _strip_v(version)
    if not normalized:
        return None

    wants_unreleased = "unreleased" in version.lower()
    patterns = _header_patterns(normalized)
    contains_version = re.compile(re.escape(normalized) + _VERSION_END, re.IGNORECASE)

    for index, raw in enumerate(lines):
        line = raw.strip()

        if not wants_unreleased and _is_unreleased(line):
            continue

        if any(pattern.match(line) for pattern in patterns):
            return index

        if index + 1 < len(lines) and _is_underline(lines[index + 1].strip()):
            if line and not _is_underline(line) and contains_version.search(line):
                return index

    return None


def _find_next_header(lines: Sequence[str], start: int) -> Optional[int]:
    for index in range(start, len(lines)):
        line = lines[index].strip()
        if _looks_like_header(line):
            return index
        if index + 1 < len(lines) and _is_underline(lines[index + 1].strip()):
            if _HAS_VERSION_RE.search(line) and not _is_underline(line):
                return index
    return None


def extract_version_range(lines: Sequence[str], start_line: int, end_line: int) -> str:
    """Join ``lines[start_line:end_line + 1]``, trimming blank edge lines.

    An out-of-range start or ``start_line > end_line`` gives ``""``; an
    ``end_line`` past the end is clamped to the last line. Interior
    formatting is kept verbatim.
    """
    if start_line < 0 or start_line >= len(lines):
        return ""
    if end_line < 0 or end_line >= len(lines):
        end_line = len(lines) - 1
    if start_line > end_line:
        return ""

    selected = list(lines[start_line:end_line + 1])
    while selected and not selected[0].strip():
        selected.pop(0)
    while selected and not selected[-1].strip():
        selected.pop()
    return "\n".join(selected)


def prune(*, current_version: str, target_version: str, changelog_text: str) -> PruneResult:
    """Extract the changelog sections relevant to an upgrade.

    Works for newest-first changelogs (the common case) and for
    oldest-first ones, where the range runs from the section after the
    current version through the end of the target version's section.
    When both versions are the same, that version's section is returned.

    Never raises; see :class:`PruneResult`.
    """
    lines = changelog_text.split("\n")

    target_line = find_version_line(lines, target_version)
    current_line = find_version_line(lines, current_version)

    if target_line is None or current_line is None:
        warning = (
            f"Could not find version headers for {target_version} and/or {current_version}"
        )
        logger.debug(warning)
        return PruneResult(pruned_text=changelog_text, versions_found=False, warning=warning)

    if target_line < current_line:
        start, end = target_line, current_line - 1
    else:
        # Oldest first (or same version): skip the current section and
        # stop where the target section ends
        start = target_line
        if target_line > current_line:
            following = _find_next_header(lines, current_line + 1)
            if following is not None and following <= target_line:
                start = following
        next_header = _find_next_header(lines, target_line + 1)
        end = next_header - 1 if next_header is not None else len(lines) - 1

    return PruneResult(
        pruned_text=extract_version_range(lines, start, end),
        versions_found=True,
    )
