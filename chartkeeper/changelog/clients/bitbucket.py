"""Bitbucket Cloud API 2.0 client for changelog discovery.

Bitbucket has no releases API, so :meth:`BitbucketClient.get_release_notes`
always returns ``None`` and only changelog files can be found here.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from chartkeeper.constants import BITBUCKET_API_URL, BITBUCKET_WEB_URL
from chartkeeper.exceptions import ChartKeeperError, RepositoryError
from chartkeeper.models.changelog import ReleaseNotes, RepositoryFile
from chartkeeper.utils.http import HTTPClient

#: ``(username, app_password)`` pair used for HTTP basic auth.
BitbucketCredentials = Tuple[str, str]

_DEFAULT_BRANCHES = ("main", "master")


class BitbucketClient:
    """Reads the source tree of ``workspace/repo_slug``.

    Without an explicit ``ref`` the ``main`` branch is tried first and
    ``master`` second.
    """

    platform = "bitbucket"

    def __init__(
        self,
        http_client: HTTPClient,
        workspace: str,
        repo_slug: str,
        credentials: Optional[BitbucketCredentials] = None,
        api_url: str = BITBUCKET_API_URL,
    ) -> None:
        self.http_client = http_client
        self.workspace = workspace
        self.repo_slug = repo_slug
        self.api_url = api_url.rstrip("/")
        self._request_kwargs: Dict[str, Any] = {"auth": credentials} if credentials else {}

    @property
    def full_name(self) -> str:
        return f"{self.workspace}/{self.repo_slug}"

    def _src_url(self, revision: str, path: str = "") -> str:
        return f"{self.api_url}/repositories/{self.workspace}/{self.repo_slug}/src/{revision}/{path}"

    def _revisions(self, ref: Optional[str]) -> Tuple[str, ...]:
        if ref is None or ref == "main":
            return _DEFAULT_BRANCHES
        return (ref,)

    async def list_files(self, ref: Optional[str] = None) -> List[RepositoryFile]:
        first_error: Optional[ChartKeeperError] = None

        for revision in self._revisions(ref):
            try:
                data = await self.http_client.get_json(self._src_url(revision), **self._request_kwargs)
            except ChartKeeperError as exc:
                first_error = first_error or exc
                continue
            return self._to_files(data, revision)

        assert first_error is not None
        raise RepositoryError(
            f"Failed to list files in {self.full_name}: {first_error.message}",
            platform=self.platform,
            repository=self.full_name,
            original_error=first_error,
        ) from first_error

    def _to_files(self, data: Any, revision: str) -> List[RepositoryFile]:
        values = data.get("values", []) if isinstance(data, dict) else []
        files = []
        for item in values:
            path = item.get("path", "")
            files.append(
                RepositoryFile(
                    name=path.rsplit("/", 1)[-1] or path,
                    path=path,
                    type="file" if item.get("type") == "commit_file" else "dir",
                    size=item.get("size") or 0,
                    html_url=f"{BITBUCKET_WEB_URL}/{self.full_name}/src/{revision}/{path}",
                    download_url=((item.get("links") or {}).get("self") or {}).get("href", ""),
                )
            )
        return files

    async def get_file_content(self, path: str, ref: Optional[str] = None) -> str:
        first_error: Optional[ChartKeeperError] = None

        for revision in self._revisions(ref):
            try:
                return await self.http_client.get_text(
                    self._src_url(revision, path), **self._request_kwargs
                )
            except ChartKeeperError as exc:
                first_error = first_error or exc

        assert first_error is not None
        raise RepositoryError(
            f"Failed to get content for {path} in {self.full_name}: {first_error.message}",
            platform=self.platform,
            repository=self.full_name,
            path=path,
            original_error=first_error,
        ) from first_error

    async def get_release_notes(self, version: str) -> Optional[ReleaseNotes]:
        return None
