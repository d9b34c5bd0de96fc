"""
Executable module for dotnet-check-updates.

``python -m dotnet_check_updates`` behaves exactly like the
``dotnet-check-updates`` console script.
"""

from __future__ import annotations

import sys


def _print_startup_error(exc: ImportError) -> None:
    """Report a CLI that failed to import, with enough context for a bug report."""
    sys.stderr.write("dotnet-check-updates could not start.\n")
    sys.stderr.write(f"Python version: {sys.version}\n")
    try:
        from dotnet_check_updates.__version__ import __version__
    except ImportError:
        __version__ = "<unknown>"
    sys.stderr.write(f"dotnet-check-updates version: {__version__}\n")
    sys.stderr.write("\n")
    sys.stderr.write(f"ImportError: {exc}\n")


def main() -> int:
    """Run the CLI and return its exit code."""
    try:
        # Import lazily so a broken dependency produces a readable message
        from dotnet_check_updates.cli import main as cli_main
    except ImportError as exc:
        _print_startup_error(exc)
        return 1

    return cli_main()


if __name__ == "__main__":
    sys.exit(main())
