"""
Centralized constants for chartkeeper.

This module defines immutable configuration values used across chartkeeper,
including network settings, platform endpoints, changelog discovery rules,
and logging formats. All values are intended to be treated as read-only.
"""

from typing import Final, Sequence

# ---------------------------------------------------------------------------
# Project metadata
# ---------------------------------------------------------------------------

#: HTTP User-Agent template used for outbound requests.
USER_AGENT_TEMPLATE: Final[str] = (
    "chartkeeper/{version} (https://github.com/chartkeeper/chartkeeper)"
)

# ---------------------------------------------------------------------------
# Platform endpoints
# ---------------------------------------------------------------------------

#: Base URL for the GitHub REST API.
GITHUB_API_URL: Final[str] = "https://api.github.com"

#: GitHub REST API version header value.
GITHUB_API_VERSION: Final[str] = "2022-11-28"

#: Base URL of the public GitLab instance.
GITLAB_BASE_URL: Final[str] = "https://gitlab.com"

#: Base URL for the Bitbucket Cloud API.
BITBUCKET_API_URL: Final[str] = "https://api.bitbucket.org/2.0"

#: Web URL for Bitbucket Cloud repositories.
BITBUCKET_WEB_URL: Final[str] = "https://bitbucket.org"

# ---------------------------------------------------------------------------
# HTTP configuration
# ---------------------------------------------------------------------------

#: Default network timeout in seconds.
DEFAULT_TIMEOUT: Final[int] = 30

#: Maximum number of retries for failed HTTP requests.
DEFAULT_MAX_RETRIES: Final[int] = 3

# ---------------------------------------------------------------------------
# Update resolution
# ---------------------------------------------------------------------------

#: Default update strategy when none is configured.
DEFAULT_UPDATE_STRATEGY: Final[str] = "all"

#: Recognised update strategies.
UPDATE_STRATEGIES: Final[Sequence[str]] = ("patch", "minor", "major", "all")

#: Update types that ignore rules and groups may reference.
UPDATE_TYPES: Final[Sequence[str]] = ("major", "minor", "patch")

# ---------------------------------------------------------------------------
# Changelog discovery
# ---------------------------------------------------------------------------

#: Default changelog cache lifetime in seconds.
DEFAULT_CACHE_TTL: Final[int] = 3600

#: Whether the changelog cache is enabled by default.
DEFAULT_CACHE_ENABLED: Final[bool] = True

#: Whether changelog discovery is enabled by default.
DEFAULT_CHANGELOG_ENABLED: Final[bool] = True

#: Error reported when no candidate repository yielded a changelog.
CHANGELOG_NOT_FOUND: Final[str] = "Changelog not found"

#: Changelog file names probed in priority order.
CHANGELOG_FILENAMES: Final[Sequence[str]] = tuple(
    f"{stem}{suffix}"
    for base in ("CHANGELOG", "HISTORY", "RELEASES", "NEWS")
    for stem in (base, base.lower())
    for suffix in (".md", ".rst", ".txt", "")
)

#: Maximum characters of changelog text rendered per section.
DEFAULT_MAX_CHANGELOG_LENGTH: Final[int] = 5000

# ---------------------------------------------------------------------------
# Environment variables
# ---------------------------------------------------------------------------

ENV_CONFIG: Final[str] = "CHARTKEEPER_CONFIG"
ENV_UPDATE_STRATEGY: Final[str] = "CHARTKEEPER_UPDATE_STRATEGY"
ENV_GITHUB_TOKEN: Final[str] = "GITHUB_TOKEN"
ENV_GITLAB_TOKEN: Final[str] = "GITLAB_TOKEN"
ENV_BITBUCKET_USERNAME: Final[str] = "BITBUCKET_USERNAME"
ENV_BITBUCKET_APP_PASSWORD: Final[str] = "BITBUCKET_APP_PASSWORD"

# ---------------------------------------------------------------------------
# Logging configuration
# ---------------------------------------------------------------------------

#: Timestamp format for verbose logging.
LOG_DATE_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S"

#: Default log format (non-verbose).
LOG_DEFAULT_FORMAT: Final[str] = "%(levelname)s: %(message)s"

#: Verbose log format including timestamp and logger name.
LOG_VERBOSE_FORMAT: Final[str] = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
