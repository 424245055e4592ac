"""
Changelog discovery data models for chartkeeper.

These records cross the boundary between the changelog finder, the
platform clients and whatever renders the final document. They are
frozen: a cached :class:`ChangelogResult` must read back exactly as it
was stored.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

#: Platforms understood by the repository URL parser.
PLATFORMS = ("github", "gitlab", "bitbucket")


@dataclass(frozen=True)
class ChangelogResult:
    """
    Outcome of a changelog lookup for one (repository, version) pair.

    A negative result (``found=False``) carries no changelog or release
    notes; a positive one carries at least one of ``changelog_text`` or
    ``release_notes``.

    Attributes:
        source_url: Repository the result was obtained from (or the first
            candidate tried, for a negative result).
        found: Whether any documentation was found.
        changelog_text: Full text of the changelog file.
        changelog_url: Browser URL of the changelog file.
        release_notes: Body of the release matching the target version.
        release_notes_url: Browser URL of that release.
        error: Why the lookup failed, for negative results.

    Raises:
        ValueError: If the fields contradict ``found``.
    """

    source_url: str
    found: bool
    changelog_text: Optional[str] = None
    changelog_url: Optional[str] = None
    release_notes: Optional[str] = None
    release_notes_url: Optional[str] = None
    error: Optional[str] = None

    def __post_init__(self) -> None:
        success_fields = (
            self.changelog_text,
            self.changelog_url,
            self.release_notes,
            self.release_notes_url,
        )
        if not self.found and any(value is not None for value in success_fields):
            raise ValueError("A negative ChangelogResult cannot carry changelog data")
        if self.found and not (self.changelog_text or self.release_notes):
            raise ValueError(
                "A positive ChangelogResult needs changelog_text or release_notes"
            )

    @classmethod
    def not_found(cls, source_url: str, error: str) -> "ChangelogResult":
        return cls(source_url=source_url, found=False, error=error)

    @property
    def has_changelog(self) -> bool:
        return bool(self.changelog_text)

    @property
    def has_release_notes(self) -> bool:
        return bool(self.release_notes)


@dataclass(frozen=True)
class RepositoryFile:
    """An entry of a repository directory listing."""

    name: str
    path: str
    type: str = "file"
    size: int = 0
    html_url: str = ""
    download_url: str = ""

    @property
    def is_file(self) -> bool:
        return self.type == "file"


@dataclass(frozen=True)
class RepositoryInfo:
    """
    Platform identity parsed from a repository URL.

    Attributes:
        platform: ``github``, ``gitlab``, ``bitbucket`` or ``unknown``.
        owner: Owner, organisation, group or workspace.
        repo: Repository name without ``.git``.
        url: The URL that was parsed (whitespace-trimmed).
    """

    platform: str
    owner: str
    repo: str
    url: str

    @property
    def is_known(self) -> bool:
        return self.platform in PLATFORMS

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"


@dataclass(frozen=True)
class ReleaseNotes:
    """Body and browser URL of a published release."""

    body: str
    url: str
