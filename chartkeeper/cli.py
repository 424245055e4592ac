"""
Command-line interface for chartkeeper.

This module provides the main CLI entry point and handles global options,
configuration loading, and command registration.
"""

from __future__ import annotations

import os
import sys
import logging
from pathlib import Path
from typing import Optional

import click

from chartkeeper.config import load_config
from chartkeeper.constants import ENV_CONFIG
from chartkeeper.__version__ import __version__
from chartkeeper.context import ChartKeeperContext
from chartkeeper.exceptions import ChartKeeperError, ConfigError
from chartkeeper.utils.console import print_error, print_warning, reconfigure_console
from chartkeeper.utils.logger import get_logger, level_for_verbosity, setup_logging

logger = get_logger("cli")


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to configuration file.",
    envvar=ENV_CONFIG,
)
@click.option(
    "--verbose",
    "-v",
    count=True,
    help="Increase verbosity (can be repeated: -v, -vv).",
)
@click.option(
    "--color/--no-color",
    default=True,
    help="Enable or disable colored output.",
    envvar="CHARTKEEPER_COLOR",
)
@click.version_option(
    version=__version__,
    prog_name="chartkeeper",
    message="%(prog)s %(version)s",
)
@click.pass_context
def cli(
    ctx: click.Context,
    config: Optional[Path],
    verbose: int,
    color: bool,
) -> None:
    """chartkeeper: update decisions and changelogs for Helm chart dependencies.

    \b
    Available commands:
      chartkeeper check        Find the best update for a chart
      chartkeeper changelog    Show what changed between two chart versions

    \b
    Examples:
      chartkeeper check redis --repo https://charts.bitnami.com/bitnami --current 17.0.0
      chartkeeper -v changelog app --repo https://org.github.io/charts --from 1.0.0 --to 1.2.0

    Use ``chartkeeper COMMAND --help`` for command-specific options.
    """
    # NO_COLOR must be settled before the console and log handler are built
    if color:
        os.environ.pop("NO_COLOR", None)
    else:
        os.environ["NO_COLOR"] = "1"
    reconfigure_console()

    level = level_for_verbosity(verbose)
    setup_logging(level=level, verbose=verbose >= 2)
    logger.debug("Logging initialized at %s level", logging.getLevelName(level))

    try:
        loaded_config = load_config(config)
    except ConfigError as exc:
        print_error(str(exc))
        raise SystemExit(1) from exc

    chartkeeper_ctx = ChartKeeperContext()
    chartkeeper_ctx.config_path = config or loaded_config.source_path
    chartkeeper_ctx.color = color
    chartkeeper_ctx.verbose = verbose
    chartkeeper_ctx.config = loaded_config
    ctx.obj = chartkeeper_ctx

    logger.debug("chartkeeper v%s", __version__)
    logger.debug("Config path: %s", chartkeeper_ctx.config_path)
    logger.debug("Verbosity: %s | Color: %s", verbose, color)


# Register CLI subcommands
try:
    from chartkeeper.commands.check import check
    from chartkeeper.commands.changelog import changelog

    cli.add_command(check)
    cli.add_command(changelog)

except ImportError as exc:
    sys.stderr.write(f"FATAL: Failed to import CLI commands: {exc}\n")
    sys.exit(1)


def main() -> int:
    """Main entry point for the chartkeeper CLI.

    Returns:
        Exit code:
            0   Success
            1   Update available, or an application error
            2   Usage error (Click)
            130 Interrupted by user (Ctrl+C)
    """
    try:
        cli(standalone_mode=False)
        return 0

    except SystemExit as exc:
        return exc.code if isinstance(exc.code, int) else 1

    except click.ClickException as exc:
        exc.show()
        return exc.exit_code

    except click.Abort:
        print_warning("\nOperation cancelled by user")
        return 130

    except ChartKeeperError as exc:
        print_error(str(exc))
        logger.debug(
            "ChartKeeperError details: %s",
            exc.details or "<none>",
            exc_info=True,
        )
        return 1

    except KeyboardInterrupt:
        print_warning("\nOperation cancelled by user")
        return 130

    except Exception as exc:
        print_error(f"Unexpected error: {exc}")
        logger.exception("Unhandled exception in CLI")
        return 1


if __name__ == "__main__":
    sys.exit(main())
