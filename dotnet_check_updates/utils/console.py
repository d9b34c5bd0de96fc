"""
Console output utilities for dotnet-check-updates using Rich.

This module provides user-facing output helpers for the command.
For diagnostic or debug output, use :mod:`dotnet_check_updates.utils.logger`.

Guidelines:
- print_* functions: user-facing status messages
- create_tree / confirm: structured or interactive CLI output
- Logging should never go through this module
"""

from __future__ import annotations

import os
import sys
import threading
from typing import Iterable, Optional

from rich.console import Console, ConsoleOptions, RenderableType, RenderResult
from rich.markup import escape
from rich.theme import Theme
from rich.tree import Tree

from dotnet_check_updates.exceptions import PromptCanceledError
from dotnet_check_updates.models.upgrade import UpgradeType
from dotnet_check_updates.models.version import VersionRange
from dotnet_check_updates.utils.version_utils import get_upgrade_type, version_string

# ---------------------------------------------------------------------------
# Theme configuration
# ---------------------------------------------------------------------------

CHECK_UPDATES_THEME = Theme(
    {
        "success": "bold green",
        "error": "bold red",
        "warning": "bold yellow",
        "info": "bold cyan",
        "dim": "dim",
        "highlight": "bold magenta",
    }
)

# ---------------------------------------------------------------------------
# Console lifecycle management
# ---------------------------------------------------------------------------

_console: Optional[Console] = None
_console_lock = threading.Lock()
_color_override: Optional[bool] = None


def _should_use_color() -> bool:
    """Return True if colored output should be enabled."""
    if _color_override is not None:
        return _color_override
    if os.environ.get("NO_COLOR"):
        return False
    if os.environ.get("CI"):
        return False
    try:
        return sys.stdout.isatty()
    except (AttributeError, OSError):
        return False


def _get_console() -> Console:
    """Return a singleton Rich Console instance."""
    global _console

    if _console is None:
        with _console_lock:
            if _console is None:
                use_color = _should_use_color()
                _console = Console(
                    theme=CHECK_UPDATES_THEME,
                    no_color=not use_color,
                    highlight=False,
                )
    return _console


def reconfigure_console(color: Optional[bool] = None) -> None:
    """Reset the global console instance.

    Args:
        color: Force colours on or off; ``None`` decides from the
            environment (``NO_COLOR``, ``CI``, tty).
    """
    global _console, _color_override
    with _console_lock:
        _color_override = color
        _console = None


# ---------------------------------------------------------------------------
# Status message helpers
# ---------------------------------------------------------------------------


def print_success(message: str, *, prefix: str = "[OK]") -> None:
    """Print a success message."""
    _get_console().print(f"{escape(prefix)} {message}", style="success")


def print_error(message: str, *, prefix: str = "[ERROR]") -> None:
    """Print an error message."""
    _get_console().print(f"{escape(prefix)} {escape(message)}", style="error")


def print_warning(message: str, *, prefix: str = "[WARNING]") -> None:
    """Print a warning message."""
    _get_console().print(f"{escape(prefix)} {message}", style="warning")


def print_markup(markup: str = "") -> None:
    """Print a line of Rich markup."""
    _get_console().print(markup)


def print_line(text: str = "") -> None:
    """Print a line of plain text, without markup processing."""
    _get_console().print(text, markup=False)


def print_renderable(renderable: RenderableType) -> None:
    _get_console().print(renderable)


# ---------------------------------------------------------------------------
# Trees
# ---------------------------------------------------------------------------


class AsciiGuides:
    """Render a tree with ``+--``/``|`` guide lines.

    Rich picks ASCII guides when the output encoding is not UTF, so the
    wrapped renderable is rendered with an ASCII encoding.
    """

    def __init__(self, renderable: RenderableType) -> None:
        self.renderable = renderable

    def __rich_console__(self, console: Console, options: ConsoleOptions) -> RenderResult:
        ascii_options = options.copy()
        ascii_options.encoding = "ascii"
        yield from console.render(self.renderable, ascii_options)


def create_tree(label: str) -> Tree:
    """Return a tree whose root label is shown as plain text."""
    return Tree(escape(label))


def tree_renderable(tree: Tree, *, ascii_tree: bool = False) -> RenderableType:
    return AsciiGuides(tree) if ascii_tree else tree


def print_tree(tree: Tree, *, ascii_tree: bool = False) -> None:
    _get_console().print(tree_renderable(tree, ascii_tree=ascii_tree))


# ---------------------------------------------------------------------------
# Version formatting
# ---------------------------------------------------------------------------


def get_upgraded_version_string(
    old: VersionRange,
    new: VersionRange,
    original: Optional[VersionRange] = None,
) -> str:
    """Return Rich markup for ``new`` highlighting what changed.

    Major upgrades colour the whole version, minor upgrades everything
    after the major number, patch upgrades everything after the minor
    number and pre-release changes everything after the first ``-``.

    Example:
        >>> get_upgraded_version_string(VersionRange.parse("1.0.0"), VersionRange.parse("1.2.0"))
        '1.[cyan]2.0[/]'
    """
    upgrade_type = get_upgrade_type(old, new)
    text = escape(version_string(new, original))

    if upgrade_type is UpgradeType.MAJOR:
        return f"[red]{text}[/]"

    if upgrade_type is UpgradeType.MINOR:
        major, _, rest = text.partition(".")
        return f"{major}.[cyan]{rest}[/]"

    if upgrade_type is UpgradeType.PATCH:
        parts = text.split(".")
        if len(parts) < 3:
            return text
        return f"{parts[0]}.{parts[1]}.[green]{'.'.join(parts[2:])}[/]"

    if upgrade_type is UpgradeType.RELEASE:
        head, _, release = text.partition("-")
        return f"{head}-[magenta]{release}[/]"

    return text


# ---------------------------------------------------------------------------
# User interaction
# ---------------------------------------------------------------------------


def confirm(message: str, *, default: bool = False) -> bool:
    """Prompt the user for a yes/no confirmation.

    The prompt accepts common yes/no inputs. Behavior is as follows:

    - "y", "yes"   → return True
    - "n", "no"    → return False
    - empty input  → return `default`
    - any other input (invalid) → return `default`
    - Ctrl+C / EOF → raise :class:`PromptCanceledError`

    Args:
        message: Prompt message (Rich markup) shown to the user.
        default: Default choice used when the user presses Enter or
            provides an unrecognized response.

    Returns:
        True if confirmed, False otherwise.
    """
    console = _get_console()
    suffix = escape(" [Y/n]: " if default else " [y/N]: ")
    console.print(f"{message}{suffix}", end="")

    try:
        response = input().strip().lower()
    except (KeyboardInterrupt, EOFError) as exc:
        console.print()
        raise PromptCanceledError("Prompt was canceled") from exc

    if not response:
        return default

    if response in ("y", "yes"):
        return True
    if response in ("n", "no"):
        return False

    # Invalid input → fall back to default
    return default


# ---------------------------------------------------------------------------
# Advanced / internal helpers
# ---------------------------------------------------------------------------


def get_raw_console() -> Console:
    """Return the underlying Rich Console instance."""
    return _get_console()


def longest(values: Iterable[str]) -> int:
    return max((len(value) for value in values), default=0)
