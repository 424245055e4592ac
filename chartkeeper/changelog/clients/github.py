"""GitHub REST API client for changelog discovery."""

from __future__ import annotations

import base64
import binascii
from typing import Any, Dict, List, Optional
from urllib.parse import quote

from chartkeeper.constants import GITHUB_API_URL, GITHUB_API_VERSION
from chartkeeper.exceptions import ChartKeeperError, RepositoryError
from chartkeeper.models.changelog import ReleaseNotes, RepositoryFile
from chartkeeper.utils.http import HTTPClient
from chartkeeper.utils.logger import get_logger

logger = get_logger("changelog.github")


class GitHubClient:
    """Reads files and releases of ``owner/repo`` through the contents API.

    Args:
        http_client: Shared HTTP client.
        owner: Repository owner or organisation.
        repo: Repository name.
        token: Personal access or Actions token; anonymous when ``None``.
        api_url: API root, overridable for GitHub Enterprise.
    """

    platform = "github"

    def __init__(
        self,
        http_client: HTTPClient,
        owner: str,
        repo: str,
        token: Optional[str] = None,
        api_url: str = GITHUB_API_URL,
    ) -> None:
        self.http_client = http_client
        self.owner = owner
        self.repo = repo
        self.api_url = api_url.rstrip("/")
        self._headers: Dict[str, str] = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": GITHUB_API_VERSION,
        }
        if token:
            self._headers["Authorization"] = f"Bearer {token}"

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"

    def _contents_url(self, path: str = "") -> str:
        return f"{self.api_url}/repos/{self.owner}/{self.repo}/contents/{quote(path)}"

    async def _get_contents(self, path: str, ref: Optional[str]) -> Any:
        params = {"ref": ref} if ref else None
        return await self.http_client.get_json(
            self._contents_url(path), headers=self._headers, params=params
        )

    async def list_files(self, ref: Optional[str] = None) -> List[RepositoryFile]:
        """List the repository root."""
        try:
            data = await self._get_contents("", ref)
        except ChartKeeperError as exc:
            raise RepositoryError(
                f"Failed to list files in {self.full_name}: {exc.message}",
                platform=self.platform,
                repository=self.full_name,
                original_error=exc,
            ) from exc

        if not isinstance(data, list):
            return []

        return [
            RepositoryFile(
                name=item.get("name", ""),
                path=item.get("path", ""),
                type="file" if item.get("type") == "file" else "dir",
                size=item.get("size") or 0,
                html_url=item.get("html_url") or "",
                download_url=item.get("download_url") or "",
            )
            for item in data
            if isinstance(item, dict)
        ]

    async def get_file_content(self, path: str, ref: Optional[str] = None) -> str:
        """Return the decoded text of a file."""
        try:
            data = await self._get_contents(path, ref)
        except ChartKeeperError as exc:
            raise RepositoryError(
                f"Failed to get content for {path} in {self.full_name}: {exc.message}",
                platform=self.platform,
                repository=self.full_name,
                path=path,
                original_error=exc,
            ) from exc

        if isinstance(data, list):
            raise RepositoryError(
                f"Path {path} is a directory, not a file",
                platform=self.platform,
                repository=self.full_name,
                path=path,
            )
        if data.get("type") != "file":
            raise RepositoryError(
                f"Path {path} is not a file (type: {data.get('type')})",
                platform=self.platform,
                repository=self.full_name,
                path=path,
            )
        if not data.get("content"):
            raise RepositoryError(
                f"No content found for file {path}",
                platform=self.platform,
                repository=self.full_name,
                path=path,
            )

        try:
            return base64.b64decode(data["content"]).decode("utf-8", errors="replace")
        except (binascii.Error, ValueError) as exc:
            raise RepositoryError(
                f"Cannot decode content of {path}",
                platform=self.platform,
                repository=self.full_name,
                path=path,
                original_error=exc,
            ) from exc

    def tag_candidates(self, version: str) -> List[str]:
        return [version, f"v{version}", f"release-{version}", f"{self.repo}-{version}"]

    async def get_release_notes(self, version: str) -> Optional[ReleaseNotes]:
        """Find the release for *version* under its usual tag spellings."""
        for tag in self.tag_candidates(version):
            url = f"{self.api_url}/repos/{self.owner}/{self.repo}/releases/tags/{quote(tag, safe='')}"
            try:
                data = await self.http_client.get_json(url, headers=self._headers)
            except ChartKeeperError as exc:
                logger.debug("No GitHub release %s for %s: %s", tag, self.full_name, exc.message)
                continue

            if isinstance(data, dict) and data.get("body"):
                return ReleaseNotes(body=data["body"], url=data.get("html_url") or "")

        return None
