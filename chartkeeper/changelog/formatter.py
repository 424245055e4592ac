"""Render changelog lookups as Markdown for pull-request bodies."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Mapping, Optional

from chartkeeper.constants import DEFAULT_MAX_CHANGELOG_LENGTH
from chartkeeper.models.changelog import ChangelogResult

_FENCE = "```"


@dataclass(frozen=True)
class VersionSpan:
    """Versions (and optional pruned text) rendered for one chart."""

    current_version: str
    target_version: str
    pruned_changelog: Optional[str] = None


def truncate(text: str, max_length: int, url: Optional[str] = None) -> str:
    """Shorten *text* to about *max_length* characters.

    The cut prefers, in order, a newline, a sentence end and a space that
    fall within the last fifth of the limit. A cut landing inside a code
    fence is moved past the closing fence when that fence ends within
    120% of the limit. Truncated text gets an ellipsis and, when *url* is
    given, a link to the full content.
    """
    if len(text) <= max_length:
        return text

    threshold = max_length * 0.8
    cut = max_length

    newline = text.rfind("\n", 0, max_length + 1)
    if newline > threshold:
        cut = newline
    else:
        period = text.rfind(". ", 0, max_length + 2)
        if period > threshold:
            cut = period + 1
        else:
            space = text.rfind(" ", 0, max_length + 1)
            if space > threshold:
                cut = space

    if text[:cut].count(_FENCE) % 2:
        fence_end = text.find(_FENCE, cut)
        if fence_end != -1 and fence_end < max_length * 1.2:
            cut = fence_end + len(_FENCE)

    truncated = text[:cut].strip() + "\n\n..."
    if url:
        truncated += f"\n\n*Content truncated. [View full content]({url})*"
    return truncated


def format_changelog(
    chart_name: str,
    current_version: str,
    target_version: str,
    result: ChangelogResult,
    pruned_changelog: Optional[str] = None,
    max_length: int = DEFAULT_MAX_CHANGELOG_LENGTH,
) -> str:
    """Render one chart's section.

    *pruned_changelog*, when given, replaces the full changelog text.
    """
    lines: List[str] = [f"### 📦 {chart_name} ({current_version} → {target_version})", ""]

    changelog = (pruned_changelog or result.changelog_text) if result.found else None
    notes = result.release_notes if result.found else None

    if not changelog and not notes:
        lines.append("No changelog or release notes found for this update.")
        lines.append("")
        if result.source_url:
            lines.append(f"[View commit history]({result.source_url}/commits)")
        return "\n".join(lines)

    if changelog:
        lines += ["#### Changelog", "", truncate(changelog, max_length, result.changelog_url), ""]
        if result.changelog_url:
            lines += [f"[View full changelog]({result.changelog_url})", ""]

    if notes:
        lines += ["#### Release Notes", "", truncate(notes, max_length, result.release_notes_url), ""]
        if result.release_notes_url:
            lines += [f"[View release]({result.release_notes_url})", ""]

    return "\n".join(lines).strip()


def format_multiple(
    results: Mapping[str, ChangelogResult],
    spans: Mapping[str, VersionSpan],
    max_length: int = DEFAULT_MAX_CHANGELOG_LENGTH,
) -> str:
    """Render several charts under one ``## Changelogs`` heading.

    Charts without an entry in *spans* are left out. Returns ``""`` when
    *results* is empty.
    """
    if not results:
        return ""

    lines: List[str] = ["## Changelogs", ""]
    for chart_name, result in results.items():
        span = spans.get(chart_name)
        if span is None:
            continue
        lines.append(
            format_changelog(
                chart_name,
                span.current_version,
                span.target_version,
                result,
                pruned_changelog=span.pruned_changelog,
                max_length=max_length,
            )
        )
        lines += ["", "---", ""]

    return "\n".join(lines).strip()
