"""Changelog command implementation for chartkeeper.

Finds the changelog and release notes for a chart update, narrows the
changelog to the versions between ``--from`` and ``--to`` and prints the
Markdown section that would go into a pull-request body.

A failed lookup is reported in the output and never changes the exit
status, so scripts can call this unconditionally.

Typical usage::

    $ chartkeeper changelog app --repo https://org.github.io/charts --from 1.0.0 --to 1.2.0
    $ chartkeeper changelog redis --repo https://charts.bitnami.com/bitnami \\
        --from 17.0.0 --to 18.1.0 --format json
"""

from __future__ import annotations

import json
import click
import asyncio
from typing import Any, Dict, Optional

from chartkeeper.changelog import ChangelogFinder, format_changelog, prune
from chartkeeper.constants import DEFAULT_MAX_CHANGELOG_LENGTH
from chartkeeper.context import pass_context, ChartKeeperContext
from chartkeeper.models import ChangelogResult, ChartDependency, VersionUpdate
from chartkeeper.models.dependency import REPO_TYPES
from chartkeeper.utils import HTTPClient, get_logger, print_markdown, print_warning

logger = get_logger("commands.changelog")


@click.command()
@click.argument("chart")
@click.option("--repo", "repo_url", required=True, help="Helm repository URL or OCI reference.")
@click.option("--from", "current_version", required=True, help="Version currently in use.")
@click.option("--to", "target_version", required=True, help="Version being upgraded to.")
@click.option(
    "--repo-type",
    type=click.Choice(list(REPO_TYPES), case_sensitive=False),
    default=None,
    help="Repository type; inferred from an oci:// URL when omitted.",
)
@click.option("--no-prune", is_flag=True, help="Show the whole changelog, not just the range.")
@click.option(
    "--max-length",
    type=click.IntRange(min=100),
    default=DEFAULT_MAX_CHANGELOG_LENGTH,
    show_default=True,
    help="Truncate each section to about this many characters.",
)
@click.option("--render", is_flag=True, help="Render the Markdown in the terminal.")
@click.option(
    "--format",
    "-f",
    "output_format",
    type=click.Choice(["markdown", "json"], case_sensitive=False),
    default="markdown",
    help="Output format.",
)
@pass_context
def changelog(
    ctx: ChartKeeperContext,
    chart: str,
    repo_url: str,
    current_version: str,
    target_version: str,
    repo_type: Optional[str],
    no_prune: bool,
    max_length: int,
    render: bool,
    output_format: str,
) -> None:
    """Show what changed in CHART between two versions."""
    config = ctx.config
    if config is not None and not config.changelog_enabled:
        print_warning("Changelog lookups are disabled by configuration")
        return

    try:
        dependency = ChartDependency.from_reference(chart, repo_url, current_version, repo_type)
    except ValueError as exc:
        raise click.BadParameter(str(exc)) from exc

    update = VersionUpdate(
        dependency=dependency,
        current_version=current_version,
        new_version=target_version,
    )
    result, pruned = asyncio.run(_changelog_async(ctx, update, prune_text=not no_prune))

    if output_format == "json":
        click.echo(json.dumps(_to_json(update, result, pruned), indent=2))
        return

    document = format_changelog(
        chart,
        current_version,
        target_version,
        result,
        pruned_changelog=pruned,
        max_length=max_length,
    )
    if render:
        print_markdown(document)
    else:
        click.echo(document)


async def _changelog_async(
    ctx: ChartKeeperContext,
    update: VersionUpdate,
    *,
    prune_text: bool,
) -> "tuple[ChangelogResult, Optional[str]]":
    config = ctx.config

    async with HTTPClient() as http:
        if config is not None:
            finder = ChangelogFinder(
                http,
                github_token=config.github_token,
                gitlab_token=config.gitlab_token,
                bitbucket_credentials=config.bitbucket_credentials,
                cache_ttl=config.cache_ttl,
                enable_cache=config.cache_enabled,
            )
        else:
            finder = ChangelogFinder(http)

        if not any((finder.github_token, finder.gitlab_token, finder.bitbucket_credentials)):
            print_warning(
                "No GITHUB_TOKEN, GITLAB_TOKEN or Bitbucket credentials set; "
                "changelog lookups will find nothing"
            )

        result = await finder.find_changelog(update)

    if not result.found:
        logger.info("No changelog found for %s: %s", update.chart_name, result.error)
        return result, None

    pruned: Optional[str] = None
    if prune_text and result.changelog_text:
        outcome = prune(
            current_version=update.current_version,
            target_version=update.new_version,
            changelog_text=result.changelog_text,
        )
        if outcome.warning:
            logger.info(outcome.warning)
        pruned = outcome.pruned_text if outcome.versions_found else None

    return result, pruned


def _to_json(
    update: VersionUpdate,
    result: ChangelogResult,
    pruned: Optional[str],
) -> Dict[str, Any]:
    return {
        "chart": update.chart_name,
        "current_version": update.current_version,
        "target_version": update.new_version,
        "source_url": result.source_url,
        "found": result.found,
        "changelog_url": result.changelog_url,
        "changelog_text": pruned if pruned is not None else result.changelog_text,
        "pruned": pruned is not None,
        "release_notes": result.release_notes,
        "release_notes_url": result.release_notes_url,
        "error": result.error,
    }
