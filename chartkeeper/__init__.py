"""
chartkeeper: update decisions and release documentation for chart dependencies

chartkeeper answers two questions for a dependency whose declared version
is known:

    • Which newer version should be proposed, given an update strategy?
    • What changed between the two versions (changelog excerpt and
      release notes), gathered from GitHub, GitLab or Bitbucket?

It is the decision core of an automation pipeline; it never edits
manifests, commits, or opens pull requests itself.

Example:
    >>> from chartkeeper.core import version_parser
    >>> version_parser.compare("1.2.3", "1.10.0")
    -1
"""

from __future__ import annotations

from chartkeeper.__version__ import __version__

# ---------------------------------------------------------------------------
# Package Metadata
# ---------------------------------------------------------------------------

__author__ = "chartkeeper Contributors"
__license__ = "Apache-2.0"
__description__ = "Version resolution and changelog discovery for Helm chart dependencies."

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

from chartkeeper.core import (  # noqa: E402
    HelmRepositoryVersionSource,
    UpdateStrategy,
    VersionResolver,
)
from chartkeeper.changelog import (  # noqa: E402
    ChangelogCache,
    ChangelogFinder,
    prune,
)
from chartkeeper.models import (  # noqa: E402
    ChangelogResult,
    ChartDependency,
    VersionUpdate,
)

__all__ = [
    "__version__",
    "ChangelogCache",
    "ChangelogFinder",
    "ChangelogResult",
    "ChartDependency",
    "HelmRepositoryVersionSource",
    "UpdateStrategy",
    "VersionResolver",
    "VersionUpdate",
    "prune",
]
