"""
Run settings shared by the dotnet-check-updates commands.

The CLI merges defaults, the configuration file and command-line options
into one :class:`CheckUpdatesContext`, validates it, and hands it to the
check or interactive flow.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import List, Optional

from dotnet_check_updates.constants import (
    CLI_NAME,
    DEFAULT_CONCURRENCY,
    DEFAULT_DEPTH,
    MAX_CONCURRENCY,
    MAX_DEPTH,
    OPTION_FLAGS,
)
from dotnet_check_updates.models.upgrade import UpgradeTarget


@dataclass
class CheckUpdatesContext:
    """Settings of one invocation.

    Attributes:
        cwd: Working directory option as given, if any.
        project: Explicit project path.
        solution: Explicit solution path.
        recurse: Search sub-directories for projects.
        depth: Recursion depth; ``0`` is unlimited.
        include: Raw include filter values.
        exclude: Raw exclude filter values.
        target: Upgrade target.
        upgrade: Write upgrades to disk.
        restore: Run ``dotnet restore`` after writing.
        list_all: Also list packages without an upgrade.
        interactive: Confirm each upgrade. Implies ``upgrade``.
        concurrency: Package lookups running at once per project.
        show_absolute: Show absolute paths.
        show_package_count: Show package counts in solution trees.
        ascii_tree: Draw trees with ASCII guides.
        sources: NuGet feed service index URLs.
        use_nuget_config: Read package sources from ``nuget.config``.
        show_progress: Show the lookup progress bar.
        show_stack_trace: Print tracebacks of errors.
        verbose: Verbosity level (0=WARNING, 1=INFO, 2+=DEBUG).
        color: Whether colored terminal output is enabled.
    """

    cwd: Optional[str] = None
    project: Optional[str] = None
    solution: Optional[str] = None
    recurse: bool = False
    depth: int = DEFAULT_DEPTH
    include: List[str] = field(default_factory=list)
    exclude: List[str] = field(default_factory=list)
    target: UpgradeTarget = UpgradeTarget.LATEST
    upgrade: bool = False
    restore: bool = False
    list_all: bool = False
    interactive: bool = False
    concurrency: int = DEFAULT_CONCURRENCY
    show_absolute: bool = False
    show_package_count: bool = False
    ascii_tree: bool = False
    sources: List[str] = field(default_factory=list)
    use_nuget_config: bool = True
    show_progress: bool = True
    show_stack_trace: bool = False
    verbose: int = 0
    color: Optional[bool] = None

    def __post_init__(self) -> None:
        if self.interactive:
            self.upgrade = True

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate(self) -> List[str]:
        """Return validation errors, empty when the settings are usable."""
        errors: List[str] = []

        if self.project and self.solution:
            errors.append("Only one of --project, --solution may be specified.")

        for name, (low, high) in (("depth", (0, MAX_DEPTH)), ("concurrency", (1, MAX_CONCURRENCY))):
            value = getattr(self, name)
            if not low <= value <= high:
                errors.append(f"{OPTION_FLAGS[name]} must be between {low} and {high}.")

        cwd = self.resolve_cwd()

        if self.solution and not os.path.isfile(os.path.join(cwd, self.solution)):
            errors.append(f"Solution {self.solution} does not exist.")

        if self.project and not os.path.isfile(os.path.join(cwd, self.project)):
            errors.append(f"Project {self.project} does not exist.")

        if self.cwd and not os.path.isdir(self.cwd):
            errors.append(f"Directory {self.cwd} does not exist.")

        return errors

    # ------------------------------------------------------------------
    # Paths and help text
    # ------------------------------------------------------------------

    def resolve_cwd(self) -> str:
        """Return the absolute working directory of the run."""
        return os.path.abspath(self.cwd or os.getcwd())

    def format_path(self, path: str, cwd: str) -> str:
        """Show ``path`` relative to ``cwd`` unless absolute paths were asked for."""
        if self.show_absolute:
            return path
        return path.replace(cwd, "", 1).lstrip("/\\") if cwd else path

    def get_upgrade_command_help_text(self) -> str:
        """Return markup suggesting the command line that applies upgrades."""
        parts = [CLI_NAME]
        if self.cwd:
            parts.append(f"--cwd {self.cwd}")
        if self.project:
            parts.append(f"--project {self.project}")
        if self.solution:
            parts.append(f"--solution {self.solution}")
        if self.recurse:
            parts.append("-r")
            if self.depth != DEFAULT_DEPTH:
                parts.append(f"-d {self.depth}")
        parts.append("-u")
        return f"\nRun [cyan]{' '.join(parts)}[/] to upgrade"

