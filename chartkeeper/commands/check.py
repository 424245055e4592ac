"""Check command implementation for chartkeeper.

Resolves the best update for one chart dependency under the configured
update strategy and ignore rules.

Typical usage::

    $ chartkeeper check redis --repo https://charts.bitnami.com/bitnami --current 17.0.0

    # Stay on the current major, machine-readable output
    $ chartkeeper check app --repo oci://ghcr.io/org/charts --current 1.4.2 \\
        --strategy minor --format json
"""

from __future__ import annotations

import sys
import json
import click
import asyncio
from typing import Any, Dict, List, Optional

from rich.markup import escape

from chartkeeper.constants import UPDATE_STRATEGIES
from chartkeeper.context import pass_context, ChartKeeperContext
from chartkeeper.core import HelmRepositoryVersionSource, VersionResolver, version_parser
from chartkeeper.exceptions import ChartKeeperError
from chartkeeper.models import ChartDependency, VersionUpdate
from chartkeeper.models.dependency import REPO_TYPES
from chartkeeper.utils import (
    HTTPClient,
    colorize_update_type,
    get_raw_console,
    get_logger,
    print_error,
    print_success,
    print_table,
    print_warning,
)

logger = get_logger("commands.check")


@click.command()
@click.argument("chart")
@click.option("--repo", "repo_url", required=True, help="Helm repository URL or OCI reference.")
@click.option("--current", "current_version", required=True, help="Version currently in use.")
@click.option(
    "--strategy",
    type=click.Choice(list(UPDATE_STRATEGIES), case_sensitive=False),
    default=None,
    help="Update strategy (defaults to the configured one).",
)
@click.option(
    "--repo-type",
    type=click.Choice(list(REPO_TYPES), case_sensitive=False),
    default=None,
    help="Repository type; inferred from an oci:// URL when omitted.",
)
@click.option(
    "--format",
    "-f",
    "output_format",
    type=click.Choice(["table", "json"], case_sensitive=False),
    default="table",
    help="Output format.",
)
@pass_context
def check(
    ctx: ChartKeeperContext,
    chart: str,
    repo_url: str,
    current_version: str,
    strategy: Optional[str],
    repo_type: Optional[str],
    output_format: str,
) -> None:
    """Find the best available update for CHART.

    Exits 1 when an update is available (or the lookup failed) and 0 when
    the chart is up to date.
    """
    try:
        dependency = ChartDependency.from_reference(chart, repo_url, current_version, repo_type)
    except ValueError as exc:
        raise click.BadParameter(str(exc)) from exc

    try:
        update = asyncio.run(_check_async(ctx, dependency, strategy, output_format))
    except ChartKeeperError as exc:
        print_error(f"{exc}")
        sys.exit(1)
    except Exception as exc:
        print_error(f"Unexpected error: {exc}")
        logger.exception("Error in check command")
        sys.exit(1)

    sys.exit(1 if update else 0)


async def _check_async(
    ctx: ChartKeeperContext,
    dependency: ChartDependency,
    strategy: Optional[str],
    output_format: str,
) -> Optional[VersionUpdate]:
    config = ctx.config
    effective_strategy = (strategy or (config.update_strategy if config else "all")).lower()

    if not version_parser.is_valid_version(dependency.current_version):
        print_warning(
            f"Current version {dependency.current_version!r} is not a semantic version; "
            "no update can be proposed"
        )

    async with HTTPClient() as http:
        source = HelmRepositoryVersionSource(
            http, registry_credentials=config.registry_credentials if config else None
        )
        resolver = VersionResolver(
            version_source=source,
            strategy=effective_strategy,
            ignore_rules=config.ignore if config else None,
            groups=config.groups if config else None,
        )
        infos = await source.get_versions(dependency)

    available = [info.version for info in infos]
    update = resolver.resolve(dependency, available)
    latest = version_parser.sort_descending(available)[:1]

    if output_format == "json":
        _display_json(dependency, update, latest[0] if latest else None, effective_strategy)
    else:
        _display_table(dependency, update, latest[0] if latest else None, effective_strategy)

    return update


def _row(
    dependency: ChartDependency,
    update: Optional[VersionUpdate],
    latest: Optional[str],
    strategy: str,
) -> Dict[str, Any]:
    return {
        "chart": dependency.chart_name,
        "repository": dependency.repo_url,
        "current_version": dependency.current_version,
        "latest_version": latest,
        "new_version": update.new_version if update else None,
        "update_type": update.update_type if update else None,
        "strategy": strategy,
        "release_notes_url": update.release_notes_url if update else None,
    }


def _display_table(
    dependency: ChartDependency,
    update: Optional[VersionUpdate],
    latest: Optional[str],
    strategy: str,
) -> None:
    row = _row(dependency, update, latest, strategy)
    rows: List[Dict[str, str]] = [
        {
            "Chart": row["chart"],
            "Current": row["current_version"],
            "Latest": row["latest_version"] or "-",
            "Proposed": row["new_version"] or "-",
            "Update Type": colorize_update_type(row["update_type"]) if update else "-",
            "Strategy": strategy,
        }
    ]
    print_table(
        rows,
        title="Chart Update",
        column_styles={"Chart": "bold cyan", "Current": "dim", "Proposed": "bold green"},
    )

    if update:
        print_warning(f"Update available: {update}")
        if update.release_notes_url:
            get_raw_console().print(
                f"[dim]Release notes:[/dim] {escape(update.release_notes_url)}", highlight=False, soft_wrap=True
            )
    else:
        print_success(f"{dependency.chart_name} is up to date under strategy '{strategy}'")


def _display_json(
    dependency: ChartDependency,
    update: Optional[VersionUpdate],
    latest: Optional[str],
    strategy: str,
) -> None:
    print(json.dumps(_row(dependency, update, latest, strategy), indent=2))
