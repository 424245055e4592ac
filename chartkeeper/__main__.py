"""
Allow ``python -m chartkeeper`` as an alias for the ``chartkeeper`` command.
"""

from __future__ import annotations

import sys


def _print_startup_error(exc: ImportError) -> None:
    """Explain on stderr why the CLI could not be loaded."""
    try:
        from chartkeeper.__version__ import __version__ as version
    except ImportError:
        version = "<unknown>"

    sys.stderr.write("chartkeeper could not start: a required module failed to import.\n")
    sys.stderr.write(f"Python version: {sys.version.split()[0]}\n")
    sys.stderr.write(f"chartkeeper version: {version}\n")
    sys.stderr.write("\n")
    sys.stderr.write(f"ImportError: {exc}\n")


def main() -> int:
    try:
        from chartkeeper.cli import main as cli_main
    except ImportError as exc:
        _print_startup_error(exc)
        return 1

    return cli_main()


if __name__ == "__main__":
    sys.exit(main())
