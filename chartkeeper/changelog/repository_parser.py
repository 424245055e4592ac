"""Recognise GitHub, GitLab and Bitbucket repository URLs."""

from __future__ import annotations

import re

from chartkeeper.models.changelog import RepositoryInfo

_DOMAINS = r"(github\.com|gitlab\.com|bitbucket\.org)"
_HTTPS_RE = re.compile(rf"^https?://{_DOMAINS}/([^/]+)/([^/\s#?]+)", re.IGNORECASE)
_SSH_RE = re.compile(rf"^git@{_DOMAINS}:([^/]+)/(.+?)(?:\.git)?$", re.IGNORECASE)
_GIT_SUFFIX_RE = re.compile(r"\.git$", re.IGNORECASE)


def _platform_for(domain: str) -> str:
    domain = domain.lower()
    for platform in ("github", "gitlab", "bitbucket"):
        if platform in domain:
            return platform
    return "unknown"


def parse_repository_url(url: str) -> RepositoryInfo:
    """Split a repository URL into platform, owner and repository name.

    HTTPS (``https://github.com/org/repo``, with or without ``.git``, a
    trailing path, query or fragment) and SSH
    (``git@gitlab.com:group/repo.git``) forms are understood. Anything
    else yields platform ``"unknown"`` with empty owner and repo.

    >>> parse_repository_url("git@github.com:org/repo.git").full_name
    'org/repo'
    """
    normalized = url.strip()

    match = _HTTPS_RE.match(normalized) or _SSH_RE.match(normalized)
    if match is None:
        return RepositoryInfo(platform="unknown", owner="", repo="", url=normalized)

    domain, owner, repo = match.groups()
    repo = _GIT_SUFFIX_RE.sub("", repo).rstrip("/").strip()
    return RepositoryInfo(
        platform=_platform_for(domain),
        owner=owner,
        repo=repo,
        url=normalized,
    )
