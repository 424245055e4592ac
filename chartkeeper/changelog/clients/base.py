"""The contract every source-control platform client fulfils."""

from __future__ import annotations

from typing import List, Optional, Protocol, runtime_checkable

from chartkeeper.models.changelog import ReleaseNotes, RepositoryFile


@runtime_checkable
class RepositoryClient(Protocol):
    """Read-only access to one repository on one platform.

    ``list_files`` and ``get_file_content`` raise
    :class:`~chartkeeper.exceptions.RepositoryError` on failure.
    ``get_release_notes`` tries the platform's conventional tag spellings
    and returns ``None`` when none of them has a release with a body.
    """

    async def list_files(self, ref: Optional[str] = None) -> List[RepositoryFile]:
        ...

    async def get_file_content(self, path: str, ref: Optional[str] = None) -> str:
        ...

    async def get_release_notes(self, version: str) -> Optional[ReleaseNotes]:
        ...
