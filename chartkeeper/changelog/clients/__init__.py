"""
Source-control platform clients used by the changelog finder.

Each client is independent and satisfies :class:`RepositoryClient`.
"""

from __future__ import annotations

from chartkeeper.changelog.clients.base import RepositoryClient
from chartkeeper.changelog.clients.bitbucket import BitbucketClient, BitbucketCredentials
from chartkeeper.changelog.clients.github import GitHubClient
from chartkeeper.changelog.clients.gitlab import GitLabClient

__all__ = [
    "RepositoryClient",
    "BitbucketClient",
    "BitbucketCredentials",
    "GitHubClient",
    "GitLabClient",
]
