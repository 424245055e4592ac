"""GitLab API v4 client for changelog discovery."""

from __future__ import annotations

import base64
import binascii
from typing import Dict, List, Optional
from urllib.parse import quote

from chartkeeper.constants import GITLAB_BASE_URL
from chartkeeper.exceptions import ChartKeeperError, RepositoryError
from chartkeeper.models.changelog import ReleaseNotes, RepositoryFile
from chartkeeper.utils.http import HTTPClient
from chartkeeper.utils.logger import get_logger

logger = get_logger("changelog.gitlab")


class GitLabClient:
    """Reads the tree, files and releases of one GitLab project.

    Args:
        http_client: Shared HTTP client.
        project_path: ``group/project`` (subgroups allowed).
        token: Sent as ``PRIVATE-TOKEN`` when given.
        base_url: Instance root, ``https://gitlab.com`` by default.
    """

    platform = "gitlab"

    def __init__(
        self,
        http_client: HTTPClient,
        project_path: str,
        token: Optional[str] = None,
        base_url: str = GITLAB_BASE_URL,
    ) -> None:
        self.http_client = http_client
        self.project_path = project_path
        self.base_url = base_url.rstrip("/")
        self._project_id = quote(project_path, safe="")
        self._headers: Dict[str, str] = {"PRIVATE-TOKEN": token} if token else {}

    @property
    def _api(self) -> str:
        return f"{self.base_url}/api/v4/projects/{self._project_id}"

    def _error(self, message: str, exc: Optional[Exception] = None, path: Optional[str] = None) -> RepositoryError:
        return RepositoryError(
            message,
            platform=self.platform,
            repository=self.project_path,
            path=path,
            original_error=exc,
        )

    async def list_files(self, ref: Optional[str] = None) -> List[RepositoryFile]:
        params = {"path": "", "recursive": "false"}
        if ref:
            params["ref"] = ref

        try:
            data = await self.http_client.get_json(
                f"{self._api}/repository/tree", headers=self._headers, params=params
            )
        except ChartKeeperError as exc:
            raise self._error(
                f"Failed to list files in {self.project_path}: {exc.message}", exc
            ) from exc

        if not isinstance(data, list):
            return []

        branch = ref or "main"
        web_root = f"{self.base_url}/{self.project_path}"
        return [
            RepositoryFile(
                name=item.get("name", ""),
                path=item.get("path", ""),
                type="file" if item.get("type") == "blob" else "dir",
                # The tree endpoint does not report sizes
                size=0,
                html_url=f"{web_root}/-/blob/{branch}/{item.get('path', '')}",
                download_url=f"{web_root}/-/raw/{branch}/{item.get('path', '')}",
            )
            for item in data
            if isinstance(item, dict)
        ]

    async def get_file_content(self, path: str, ref: Optional[str] = None) -> str:
        params = {"ref": ref} if ref else None
        url = f"{self._api}/repository/files/{quote(path, safe='')}"

        try:
            data = await self.http_client.get_json(url, headers=self._headers, params=params)
        except ChartKeeperError as exc:
            raise self._error(
                f"Failed to get content for {path} in {self.project_path}: {exc.message}",
                exc,
                path,
            ) from exc

        content = data.get("content") if isinstance(data, dict) else None
        if not content:
            raise self._error(f"No content found for file {path}", path=path)

        if data.get("encoding") != "base64":
            return content
        try:
            return base64.b64decode(content).decode("utf-8", errors="replace")
        except (binascii.Error, ValueError) as exc:
            raise self._error(f"Cannot decode content of {path}", exc, path) from exc

    async def get_release_notes(self, version: str) -> Optional[ReleaseNotes]:
        for tag in (version, f"v{version}", f"release-{version}"):
            try:
                data = await self.http_client.get_json(
                    f"{self._api}/releases/{quote(tag, safe='')}", headers=self._headers
                )
            except ChartKeeperError as exc:
                logger.debug("No GitLab release %s for %s: %s", tag, self.project_path, exc.message)
                continue

            if isinstance(data, dict) and data.get("description"):
                links = data.get("_links") or {}
                return ReleaseNotes(body=data["description"], url=links.get("self", ""))

        return None
