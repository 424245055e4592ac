"""Changelog and release-notes discovery for chart updates.

For a :class:`~chartkeeper.models.VersionUpdate` the finder:

1. returns a cached result for ``(repo_url, new_version)`` when one is
   live;
2. derives candidate source repositories from the chart repository URL
   (GitHub Pages, Bitnami, direct GitHub, GHCR, ...);
3. for each candidate in order, picks the platform client and, at the
   same time, looks for a changelog file in the repository root and for
   the release matching the new version;
4. stops at the first candidate that produced either, and caches the
   outcome (negative outcomes too).

Lookups never raise. Every failure is narrowed to the smallest step it
affects, logged, and the search moves on; a complete miss comes back as a
``found=False`` result carrying an ``error`` message.

Typical usage::

    async with HTTPClient() as http:
        finder = ChangelogFinder(http, github_token=os.environ["GITHUB_TOKEN"])
        result = await finder.find_changelog(update)
        if result.found:
            print(result.changelog_url or result.release_notes_url)
"""

from __future__ import annotations

import asyncio
import re
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from chartkeeper.changelog.cache import ChangelogCache
from chartkeeper.changelog.clients import (
    BitbucketClient,
    BitbucketCredentials,
    GitHubClient,
    GitLabClient,
    RepositoryClient,
)
from chartkeeper.changelog.repository_parser import parse_repository_url
from chartkeeper.constants import CHANGELOG_FILENAMES, CHANGELOG_NOT_FOUND, DEFAULT_CACHE_TTL
from chartkeeper.models.changelog import ChangelogResult, ReleaseNotes, RepositoryInfo
from chartkeeper.models.dependency import ChartDependency, VersionUpdate
from chartkeeper.utils.http import HTTPClient
from chartkeeper.utils.logger import get_logger

logger = get_logger("changelog.finder")

__all__ = ["ChangelogFinder", "CHANGELOG_FILENAMES", "discover_source_repositories"]

#: Builds a client for a parsed repository, or ``None`` when unavailable.
ClientFactory = Callable[[RepositoryInfo], Optional[RepositoryClient]]

_GITHUB_PAGES_RE = re.compile(r"https?://([^.]+)\.github\.io/([^/]+)")
_GITHUB_RE = re.compile(r"github\.com/([^/]+)/([^/]+)")
_RAW_GITHUB_RE = re.compile(r"raw\.githubusercontent\.com/([^/]+)/([^/]+)")
_GHCR_RE = re.compile(r"ghcr\.io/([^/]+)/([^/]+)")


def discover_source_repositories(dependency: ChartDependency) -> List[str]:
    """Guess which source repositories may hold the chart's changelog.

    Rules contribute candidates in a fixed order and duplicates are kept.
    When no rule applies the chart repository URL itself is the only
    candidate.

    >>> dep = ChartDependency("app", "https://org.github.io/helm", "helm", "1.0.0")
    >>> discover_source_repositories(dep)[:2]
    ['https://github.com/org/helm', 'https://github.com/org/charts']
    """
    repo_url = dependency.repo_url
    chart = dependency.chart_name
    urls: List[str] = []

    if dependency.repo_type == "helm":
        match = _GITHUB_PAGES_RE.search(repo_url)
        if match:
            org, repo = match.groups()
            urls.append(f"https://github.com/{org}/{repo}")
            urls.append(f"https://github.com/{org}/charts")
            urls.append(f"https://github.com/{org}/helm-charts")

        if "bitnami" in repo_url:
            urls.append("https://github.com/bitnami/charts")
            urls.append(f"https://github.com/bitnami/{chart}")

        match = _GITHUB_RE.search(repo_url)
        if match:
            urls.append(f"https://github.com/{match.group(1)}/{match.group(2)}")

        match = _RAW_GITHUB_RE.search(repo_url)
        if match:
            urls.append(f"https://github.com/{match.group(1)}/{match.group(2)}")

    elif dependency.repo_type == "oci":
        if "ghcr.io" in repo_url:
            match = _GHCR_RE.search(repo_url)
            if match:
                urls.append(f"https://github.com/{match.group(1)}/{match.group(2)}")
                urls.append(f"https://github.com/{match.group(1)}/charts")
        elif "registry-1.docker.io/bitnamicharts" in repo_url:
            urls.append("https://github.com/bitnami/charts")
            urls.append(f"https://github.com/bitnami/{chart}")

    if not urls and repo_url:
        urls.append(repo_url)
    return urls


class ChangelogFinder:
    """Finds changelogs and release notes across GitHub, GitLab and Bitbucket.

    A platform is only searched when credentials for it were supplied.

    Args:
        http_client: Shared HTTP client used by every platform client.
        github_token: Token enabling GitHub lookups.
        gitlab_token: Token enabling GitLab lookups.
        bitbucket_credentials: ``(username, app_password)`` enabling
            Bitbucket lookups.
        cache: Cache instance to use; a private one is created when
            omitted. Pass a shared instance to share results between
            finders.
        cache_ttl: Lifetime of cached results in seconds.
        enable_cache: Turn caching off entirely.
        client_factory: Replaces :meth:`create_client`; mainly for tests.
    """

    def __init__(
        self,
        http_client: HTTPClient,
        *,
        github_token: Optional[str] = None,
        gitlab_token: Optional[str] = None,
        bitbucket_credentials: Optional[BitbucketCredentials] = None,
        cache: Optional[ChangelogCache] = None,
        cache_ttl: float = DEFAULT_CACHE_TTL,
        enable_cache: bool = True,
        client_factory: Optional[ClientFactory] = None,
    ) -> None:
        self.http_client = http_client
        self.github_token = github_token
        self.gitlab_token = gitlab_token
        self.bitbucket_credentials = bitbucket_credentials
        self.cache = cache if cache is not None else ChangelogCache()
        self.cache_ttl = cache_ttl
        self.enable_cache = enable_cache
        self._client_factory = client_factory or self.create_client

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def find_changelog(self, update: VersionUpdate) -> ChangelogResult:
        """Find documentation for *update*. Never raises."""
        repo_url = update.dependency.repo_url
        version = update.new_version

        if self.enable_cache:
            cached = self.cache.get(repo_url, version)
            if cached is not None:
                logger.debug("Changelog cache hit for %s@%s", repo_url, version)
                return cached

        try:
            source_urls = self.discover_source_repositories(update.dependency)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Source discovery failed for %s: %s", update.chart_name, exc)
            source_urls = [repo_url] if repo_url else []

        result: Optional[ChangelogResult] = None
        for source_url in source_urls:
            try:
                attempt = await self._find_from_url(source_url, version)
            except Exception as exc:  # noqa: BLE001
                logger.debug("Changelog lookup in %s failed: %s", source_url, exc)
                continue

            if attempt.found:
                result = attempt
                break
            logger.debug("No changelog in %s: %s", source_url, attempt.error)

        if result is None:
            result = ChangelogResult.not_found(
                source_urls[0] if source_urls else repo_url,
                CHANGELOG_NOT_FOUND,
            )

        if self.enable_cache:
            self.cache.set(repo_url, version, result, self.cache_ttl)
        return result

    async def find_changelogs(
        self,
        updates: Sequence[VersionUpdate],
    ) -> Dict[str, ChangelogResult]:
        """Look up several updates concurrently, keyed by chart name.

        When two updates share a chart name only the first is looked up.
        """
        unique: Dict[str, VersionUpdate] = {}
        for update in updates:
            unique.setdefault(update.chart_name, update)

        results = await asyncio.gather(
            *(self.find_changelog(update) for update in unique.values()),
            return_exceptions=True,
        )

        by_chart: Dict[str, ChangelogResult] = {}
        for (chart_name, update), result in zip(unique.items(), results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                logger.warning("Changelog lookup for %s failed: %s", chart_name, result)
                result = ChangelogResult.not_found(update.dependency.repo_url, str(result))
            by_chart[chart_name] = result
        return by_chart

    def discover_source_repositories(self, dependency: ChartDependency) -> List[str]:
        return discover_source_repositories(dependency)

    def create_client(self, info: RepositoryInfo) -> Optional[RepositoryClient]:
        """Instantiate the client for *info*'s platform if credentials allow."""
        if info.platform == "github" and self.github_token:
            return GitHubClient(self.http_client, info.owner, info.repo, token=self.github_token)
        if info.platform == "gitlab" and self.gitlab_token:
            return GitLabClient(self.http_client, info.full_name, token=self.gitlab_token)
        if info.platform == "bitbucket" and self.bitbucket_credentials:
            return BitbucketClient(
                self.http_client,
                info.owner,
                info.repo,
                credentials=self.bitbucket_credentials,
            )
        return None

    async def find_changelog_file(
        self,
        client: RepositoryClient,
        source_url: str,
    ) -> Optional[Tuple[str, str]]:
        """Return ``(text, url)`` of the highest-priority changelog file.

        Priority follows :data:`CHANGELOG_FILENAMES`, not listing order.
        A file whose content cannot be fetched is skipped in favour of the
        next name.
        """
        try:
            files = await client.list_files()
        except Exception as exc:  # noqa: BLE001
            logger.debug("Cannot list files in %s: %s", source_url, exc)
            return None

        by_name = {entry.name: entry for entry in files if entry.is_file}
        for filename in CHANGELOG_FILENAMES:
            entry = by_name.get(filename)
            if entry is None:
                continue
            try:
                text = await client.get_file_content(entry.path or filename)
            except Exception as exc:  # noqa: BLE001
                logger.debug("Cannot read %s in %s: %s", filename, source_url, exc)
                continue
            if not text.strip():
                continue
            url = entry.html_url or f"{source_url.rstrip('/')}/blob/main/{filename}"
            return text, url

        return None

    async def find_release_notes(
        self,
        client: RepositoryClient,
        version: str,
    ) -> Optional[ReleaseNotes]:
        """Ask the client for release notes; any failure means ``None``."""
        try:
            notes = await client.get_release_notes(version)
        except Exception as exc:  # noqa: BLE001
            logger.debug("Release notes lookup for %s failed: %s", version, exc)
            return None
        return notes if notes and notes.body else None

    def clear_cache(self) -> None:
        self.cache.clear()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _find_from_url(self, source_url: str, version: str) -> ChangelogResult:
        info = parse_repository_url(source_url)
        if not info.is_known:
            return ChangelogResult.not_found(source_url, "Unknown repository platform")

        client = self._client_factory(info)
        if client is None:
            return ChangelogResult.not_found(source_url, f"No client available for {info.platform}")

        changelog, notes = await asyncio.gather(
            self.find_changelog_file(client, source_url),
            self.find_release_notes(client, version),
        )
        if changelog is None and notes is None:
            return ChangelogResult.not_found(source_url, CHANGELOG_NOT_FOUND)

        return ChangelogResult(
            source_url=source_url,
            found=True,
            changelog_text=changelog[0] if changelog else None,
            changelog_url=changelog[1] if changelog else None,
            release_notes=notes.body if notes else None,
            release_notes_url=notes.url if notes else None,
        )
