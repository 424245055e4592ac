"""Chart version lookup for chartkeeper.

The resolver only needs "which versions exist for this dependency". That
question is answered by a :class:`VersionSource`; the stock implementation,
:class:`HelmRepositoryVersionSource`, reads classic Helm repository
indexes (``index.yaml``) and OCI registry tag lists.

Each repository index is fetched at most once per source instance, even
when many charts from the same repository are resolved concurrently.

Typical usage::

    from chartkeeper.utils.http import HTTPClient
    from chartkeeper.core.version_source import HelmRepositoryVersionSource

    async with HTTPClient() as http:
        source = HelmRepositoryVersionSource(http)
        versions = await source.get_versions(dependency)
"""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Any, Dict, List, Optional, Protocol, Sequence

import yaml

from chartkeeper.exceptions import NetworkError, RegistryError
from chartkeeper.models.dependency import ChartDependency, ChartVersionInfo
from chartkeeper.models.registry import RegistryCredential, find_credential
from chartkeeper.utils.http import HTTPClient
from chartkeeper.utils.logger import get_logger

logger = get_logger("version_source")

__all__ = ["VersionSource", "HelmRepositoryVersionSource"]


class VersionSource(Protocol):
    """Anything that can list the published versions of a dependency.

    Implementations return versions in any order and raise on lookup
    failure; the resolver treats a failure as "no update" for that
    dependency only.
    """

    async def get_versions(self, dependency: ChartDependency) -> List[ChartVersionInfo]:
        ...


class HelmRepositoryVersionSource:
    """Version source backed by Helm repository indexes and OCI registries.

    Args:
        http_client: Shared :class:`HTTPClient` (owns the connection pool).
        concurrent_limit: Maximum number of index/tag fetches in flight.
        registry_credentials: Credentials for private registries. The
            first one matching a dependency's repository URL authenticates
            both ``index.yaml`` fetches and OCI tag listing.
    """

    def __init__(
        self,
        http_client: HTTPClient,
        concurrent_limit: int = 10,
        registry_credentials: Optional[Sequence[RegistryCredential]] = None,
    ) -> None:
        self.http_client = http_client
        self.registry_credentials = list(registry_credentials or [])
        self._semaphore = asyncio.Semaphore(concurrent_limit)

        # index URL → parsed ``entries`` mapping
        self._index_cache: Dict[str, Dict[str, List[ChartVersionInfo]]] = {}
        # tags-list URL → versions
        self._tags_cache: Dict[str, List[ChartVersionInfo]] = {}

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def get_versions(self, dependency: ChartDependency) -> List[ChartVersionInfo]:
        """Return every version the dependency's repository publishes.

        Raises:
            RegistryError: The index or tag list could not be fetched or
                parsed, or the chart is absent from the index.
        """
        if dependency.repo_type == "oci":
            return await self._get_oci_versions(dependency)
        return await self._get_helm_versions(dependency)

    def auth_headers(self, repo_url: str) -> Dict[str, str]:
        """Request headers authenticating against *repo_url*'s registry."""
        credential = find_credential(self.registry_credentials, repo_url)
        header = credential.authorization_header() if credential else None
        if header is None:
            return {}
        logger.debug("Using %s credentials for %s", credential.auth_type, credential.registry)
        return {"Authorization": header}

    def clear_cache(self) -> None:
        self._index_cache.clear()
        self._tags_cache.clear()

    def cache_stats(self) -> Dict[str, int]:
        return {
            "helm_index_cache_size": len(self._index_cache),
            "oci_tags_cache_size": len(self._tags_cache),
        }

    # ------------------------------------------------------------------
    # Helm repositories
    # ------------------------------------------------------------------

    async def _get_helm_versions(self, dependency: ChartDependency) -> List[ChartVersionInfo]:
        index_url = normalize_helm_index_url(dependency.repo_url)
        entries = await self._get_index(
            index_url, dependency.chart_name, self.auth_headers(dependency.repo_url)
        )

        if dependency.chart_name not in entries:
            raise RegistryError(
                f"Chart '{dependency.chart_name}' not found in repository index",
                chart_name=dependency.chart_name,
                url=index_url,
            )
        return entries[dependency.chart_name]

    async def _get_index(
        self,
        index_url: str,
        chart_name: str,
        headers: Dict[str, str],
    ) -> Dict[str, List[ChartVersionInfo]]:
        if index_url in self._index_cache:
            return self._index_cache[index_url]

        async with self._semaphore:
            # Another coroutine may have populated it while we waited
            if index_url in self._index_cache:
                return self._index_cache[index_url]

            logger.debug("Fetching Helm index %s", index_url)
            try:
                text = await self.http_client.get_text(index_url, headers=headers)
            except NetworkError as exc:
                raise RegistryError(
                    f"Failed to fetch Helm repository index: {exc.message}",
                    chart_name=chart_name,
                    url=index_url,
                    status_code=exc.status_code,
                ) from exc

            entries = parse_helm_index(text, index_url=index_url)
            self._index_cache[index_url] = entries
            return entries

    # ------------------------------------------------------------------
    # OCI registries
    # ------------------------------------------------------------------

    async def _get_oci_versions(self, dependency: ChartDependency) -> List[ChartVersionInfo]:
        _, tags_url = oci_tags_url(dependency.repo_url, dependency.chart_name)

        if tags_url in self._tags_cache:
            return self._tags_cache[tags_url]

        headers = self.auth_headers(dependency.repo_url)

        async with self._semaphore:
            if tags_url in self._tags_cache:
                return self._tags_cache[tags_url]

            logger.debug("Listing OCI tags %s", tags_url)
            try:
                data = await self.http_client.get_json(tags_url, headers=headers)
            except NetworkError as exc:
                raise RegistryError(
                    f"Failed to list OCI tags: {exc.message}",
                    chart_name=dependency.chart_name,
                    url=tags_url,
                    status_code=exc.status_code,
                ) from exc

            tags = data.get("tags") if isinstance(data, dict) else None
            # OCI tags cannot contain '+', Helm publishes build metadata with '_'
            versions = [
                ChartVersionInfo(version=str(tag).replace("_", "+"))
                for tag in tags or []
            ]
            self._tags_cache[tags_url] = versions
            return versions


# ---------------------------------------------------------------------------
# URL and document helpers
# ---------------------------------------------------------------------------


def normalize_helm_index_url(repo_url: str) -> str:
    """Return the ``index.yaml`` URL for a Helm repository base URL."""
    base = repo_url.strip().rstrip("/")
    if base.endswith("/index.yaml"):
        return base
    return f"{base}/index.yaml"


def oci_tags_url(repo_url: str, chart_name: str) -> "tuple[str, str]":
    """Return ``(registry_host, tags_list_url)`` for an OCI chart reference.

    ``oci://ghcr.io/org/charts`` + ``app`` maps to
    ``https://ghcr.io/v2/org/charts/app/tags/list``.
    """
    reference = repo_url.strip()
    for prefix in ("oci://", "https://", "http://"):
        if reference.startswith(prefix):
            reference = reference[len(prefix):]
            break
    reference = reference.strip("/")

    registry, _, repository = reference.partition("/")
    path = f"{repository}/{chart_name}" if repository else chart_name
    return registry, f"https://{registry}/v2/{path}/tags/list"


def parse_helm_index(text: str, *, index_url: str = "") -> Dict[str, List[ChartVersionInfo]]:
    """Parse a Helm ``index.yaml`` document into chart → versions.

    Raises:
        RegistryError: The document is not valid YAML or has no
            ``entries`` mapping.
    """
    try:
        document = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise RegistryError(f"Invalid Helm index YAML: {exc}", url=index_url) from exc

    if not isinstance(document, dict) or not isinstance(document.get("entries"), dict):
        raise RegistryError("Helm index has no 'entries' mapping", url=index_url)

    entries: Dict[str, List[ChartVersionInfo]] = {}
    for chart_name, records in document["entries"].items():
        versions: List[ChartVersionInfo] = []
        for record in records or []:
            if not isinstance(record, dict) or record.get("version") is None:
                continue
            versions.append(
                ChartVersionInfo(
                    version=str(record["version"]),
                    app_version=_optional_str(record.get("appVersion")),
                    created=record.get("created") if isinstance(record.get("created"), datetime) else None,
                    digest=_optional_str(record.get("digest")),
                )
            )
        entries[str(chart_name)] = versions

    return entries


def _optional_str(value: Any) -> Optional[str]:
    return None if value is None else str(value)
