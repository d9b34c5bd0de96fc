"""Check command implementation for dotnet-check-updates.

Finds the projects to inspect, resolves the best NuGet version for each
package reference and shows the result as one tree per solution (or a
single tree of projects). With ``--upgrade`` the new versions are written
back to the project files, optionally followed by ``dotnet restore``.

The command orchestrates these core components:

1. **ProjectDiscovery**: finds projects, solutions and the shared
   ``Directory.*.props`` files that apply to them.
2. **ProjectFileReader**: parses every discovered file.
3. **PackageUpgradeService**: picks the best version per reference,
   backed by one :class:`MultiSourceNuGetService` shared by all lookups.
4. **ProjectFileWriter**: patches the ``Version`` attributes in place.

Typical usage::

    # Show available upgrades for the projects in the current directory
    $ dotnet-check-updates

    # Search sub-directories and apply minor upgrades
    $ dotnet-check-updates -r -t minor -u
"""

from __future__ import annotations

import os
import asyncio
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from rich.padding import Padding
from rich.markup import escape
from rich.progress import BarColumn, Progress, TaskProgressColumn, TextColumn
from rich.table import Table
from rich.tree import Tree

from dotnet_check_updates.context import CheckUpdatesContext
from dotnet_check_updates.exceptions import CheckUpdatesError
from dotnet_check_updates.constants import (
    MSG_ALL_PACKAGES_LATEST,
    MSG_NO_PACKAGES_MATCH_FILTERS,
    SLN_EXTENSION,
    SLNX_EXTENSION,
)
from dotnet_check_updates.core import (
    PackageUpgradeService,
    ProjectDiscovery,
    ProjectDiscoveryRequest,
    ProjectDiscoveryResult,
    ProjectFileReader,
    ProjectFileWriter,
    check_for_upgrades,
    create_nuget_service,
    get_projects_package_versions,
    prepare_projects,
    read_projects,
    resolve_package_sources,
    split_filters,
)
from dotnet_check_updates.core.upgrader import ProjectUpgrades
from dotnet_check_updates.models import ProjectFile
from dotnet_check_updates.utils import (
    HTTPClient,
    create_tree,
    get_logger,
    get_raw_console,
    get_upgraded_version_string,
    longest,
    print_line,
    print_markup,
    print_tree,
    print_warning,
)
from dotnet_check_updates.utils.version_utils import version_string

logger = get_logger("commands.check")


# ---------------------------------------------------------------------------
# Loading projects
# ---------------------------------------------------------------------------


@dataclass
class LoadedProjects:
    """Discovered files and their parsed, filtered contents.

    Attributes:
        cwd: Absolute working directory.
        discovery: Paths returned by discovery.
        projects: Parsed files, filters applied, in discovery order.
    """

    cwd: str
    discovery: ProjectDiscoveryResult
    projects: List[ProjectFile] = field(default_factory=list)

    @property
    def package_count(self) -> int:
        return sum(project.package_count for project in self.projects)

    def by_path(self) -> Dict[str, ProjectFile]:
        return {project.file_path: project for project in self.projects}


async def load_projects(ctx: CheckUpdatesContext) -> LoadedProjects:
    """Discover, read and filter the files to check.

    Raises:
        ProjectParseError: A discovered file cannot be parsed.
    """
    cwd = ctx.resolve_cwd()
    request = ProjectDiscoveryRequest(
        cwd=cwd,
        recurse=ctx.recurse,
        depth=ctx.depth,
        project=ctx.project,
        solution=ctx.solution,
    )
    discovery = ProjectDiscovery().discover_projects_and_solutions(request)

    reader = ProjectFileReader()
    projects = await read_projects(reader, discovery.project_files)
    for project in projects:
        logger.info("Found %s (%d packages)", project.file_path, project.package_count)

    projects = prepare_projects(
        projects,
        split_filters(ctx.include),
        split_filters(ctx.exclude),
    )
    return LoadedProjects(cwd, discovery, projects)


def print_discovered(ctx: CheckUpdatesContext, loaded: LoadedProjects) -> None:
    """Show the discovered solutions and projects before resolving."""
    projects = loaded.by_path()
    solution_map = loaded.discovery.solution_project_map

    if solution_map:
        for solution, members in solution_map.items():
            tree = create_tree(ctx.format_path(solution, loaded.cwd))
            for member in members:
                label = ctx.format_path(member, loaded.cwd)
                project = projects.get(member)
                if ctx.show_package_count and project is not None:
                    label += f" (packages: {project.package_count})"
                tree.add(escape(label))
            print_tree(tree, ascii_tree=ctx.ascii_tree)
        return

    tree = create_tree("Projects")
    for project in loaded.projects:
        tree.add(escape(ctx.format_path(project.file_path, loaded.cwd)))
    print_tree(tree, ascii_tree=ctx.ascii_tree)


# ---------------------------------------------------------------------------
# Resolving upgrades
# ---------------------------------------------------------------------------


async def resolve_upgrades(
    ctx: CheckUpdatesContext,
    loaded: LoadedProjects,
) -> List[ProjectUpgrades]:
    """Resolve upgrades for every loaded project.

    One HTTP client and one NuGet service are shared by all lookups so
    each package is fetched at most once per run.
    """
    sources = resolve_package_sources(
        loaded.cwd,
        ctx.sources,
        use_nuget_config=ctx.use_nuget_config,
    )
    logger.debug("Package sources: %s", ", ".join(source.url for source in sources))

    async with HTTPClient(max_concurrency=ctx.concurrency) as http:
        service = PackageUpgradeService(create_nuget_service(http, [s.url for s in sources]))
        total = loaded.package_count

        with Progress(
            TextColumn("{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            console=get_raw_console(),
            transient=True,
            disable=not ctx.show_progress,
        ) as progress:
            task = progress.add_task(
                f"[green]Fetching latest information for {total} packages[/]",
                total=total,
            )

            return await get_projects_package_versions(
                loaded.projects,
                service,
                ctx.target,
                concurrency=ctx.concurrency,
                on_package=lambda: progress.advance(task),
            )


def apply_upgrades(results: Sequence[ProjectUpgrades]) -> List[ProjectFile]:
    """Return every project with its resolved ranges applied."""
    return [project.update_package_references(upgrades) for project, upgrades in results]


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def setup_grid(
    ctx: CheckUpdatesContext,
    original: ProjectFile,
    updated: ProjectFile,
    longest_name: int,
    longest_version: int,
) -> Tuple[Table, bool]:
    """Build the aligned ``name  old  →  new`` grid of one project.

    Returns:
        The grid and whether any package was upgraded.
    """
    grid = Table.grid(padding=(0, 1))
    for _ in range(4):
        grid.add_column(no_wrap=True)

    upgrades = {upgrade.name.lower(): upgrade for upgrade in check_for_upgrades(original, updated)}

    for reference in sorted(original.package_references, key=lambda r: r.name):
        upgrade = upgrades.get(reference.name.lower())
        old = version_string(reference.version)

        if upgrade is not None:
            grid.add_row(
                escape(reference.name.ljust(longest_name)),
                escape(old.ljust(longest_version)),
                "→",
                get_upgraded_version_string(
                    upgrade.old_version,
                    upgrade.new_version,
                    upgrade.original_version,
                ),
            )
        elif ctx.list_all:
            grid.add_row(
                escape(reference.name.ljust(longest_name)),
                " " * longest_version,
                " ",
                escape(old),
            )

    return grid, bool(upgrades)


def setup_grid_in_tree(
    ctx: CheckUpdatesContext,
    tree: Tree,
    original: ProjectFile,
    updated: ProjectFile,
    cwd: str,
    longest_name: int,
    longest_version: int,
    *,
    hide_if_no_upgrade: bool = False,
) -> Optional[ProjectFile]:
    """Add one project to ``tree``.

    Returns:
        ``updated`` when it carries upgrades, else ``None``.
    """
    if original.package_count == 0:
        return None

    grid, has_upgrades = setup_grid(ctx, original, updated, longest_name, longest_version)
    path = escape(ctx.format_path(original.file_path, cwd))

    if not has_upgrades and not ctx.list_all:
        if not hide_if_no_upgrade:
            tree.add(path).add(MSG_ALL_PACKAGES_LATEST)
        return None

    tree.add(path).add(Padding(grid, (0, 0, 1, 0)))
    return updated if has_upgrades else None


def _longest_lengths(projects: Sequence[ProjectFile]) -> Tuple[int, int]:
    references = [r for project in projects for r in project.package_references]
    return (
        longest(r.name for r in references),
        longest(version_string(r.version) for r in references),
    )


def render_solution_upgrades(
    ctx: CheckUpdatesContext,
    cwd: str,
    solution_map: Dict[str, List[str]],
    original_projects: Sequence[ProjectFile],
    new_projects: Sequence[ProjectFile],
    *,
    hide_if_no_upgrade: bool = False,
) -> List[ProjectFile]:
    """Print one upgrade tree per solution.

    Returns:
        Updated projects that carry upgrades, each listed once.
    """
    originals = {project.file_path: project for project in original_projects}
    updates = {project.file_path: project for project in new_projects}
    longest_name, longest_version = _longest_lengths(original_projects)
    upgraded: Dict[str, ProjectFile] = {}

    for solution, members in solution_map.items():
        tree = create_tree(ctx.format_path(solution, cwd))

        if not members:
            tree.add("No projects found.")

        for member in members:
            original = originals.get(member)
            if original is None:
                logger.warning("Solution project %s not found in original projects", member)
                continue
            updated = updates.get(member)
            if updated is None:
                logger.warning("Solution project %s not found in new projects", member)
                continue

            result = setup_grid_in_tree(
                ctx,
                tree,
                original,
                updated,
                cwd,
                longest_name,
                longest_version,
                hide_if_no_upgrade=hide_if_no_upgrade,
            )
            if result is not None:
                upgraded[result.file_path] = result

        print_markup()
        print_tree(tree, ascii_tree=ctx.ascii_tree)

    return list(upgraded.values())


def render_upgrades(
    ctx: CheckUpdatesContext,
    loaded: LoadedProjects,
    new_projects: Sequence[ProjectFile],
    *,
    hide_if_no_upgrade: bool = False,
) -> List[ProjectFile]:
    """Print the upgrade trees and return the upgraded projects."""
    solution_map = loaded.discovery.solution_project_map
    if solution_map:
        return render_solution_upgrades(
            ctx,
            loaded.cwd,
            solution_map,
            loaded.projects,
            new_projects,
            hide_if_no_upgrade=hide_if_no_upgrade,
        )

    longest_name, longest_version = _longest_lengths(loaded.projects)
    tree = create_tree("Projects")
    upgraded: List[ProjectFile] = []

    for original, updated in zip(loaded.projects, new_projects):
        result = setup_grid_in_tree(
            ctx,
            tree,
            original,
            updated,
            loaded.cwd,
            longest_name,
            longest_version,
            hide_if_no_upgrade=hide_if_no_upgrade,
        )
        if result is not None:
            upgraded.append(result)

    print_markup()
    print_tree(tree, ascii_tree=ctx.ascii_tree)
    return upgraded


# ---------------------------------------------------------------------------
# Saving and restoring
# ---------------------------------------------------------------------------


async def save_projects(
    ctx: CheckUpdatesContext,
    projects: Sequence[ProjectFile],
    cwd: str,
) -> None:
    """Write the upgraded projects to disk.

    Raises:
        FileOperationError: A file cannot be written.
    """
    writer = ProjectFileWriter()
    for project in projects:
        print_markup(f"Upgrading packages in [yellow]{escape(ctx.format_path(project.file_path, cwd))}[/]")
        await writer.save_async(project)


async def _run_restore(path: str) -> int:
    try:
        process = await asyncio.create_subprocess_exec(
            "dotnet",
            "restore",
            path,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT,
        )
    except OSError as exc:
        raise CheckUpdatesError(
            f"Unable to run dotnet restore: {exc}",
            details={"path": path},
        ) from exc

    assert process.stdout is not None
    async for line in process.stdout:
        print_line(line.decode(errors="replace").rstrip())

    return await process.wait()


def restore_targets(
    solution_map: Dict[str, List[str]],
    upgraded: Sequence[ProjectFile],
) -> List[str]:
    """Return the paths ``dotnet restore`` is run against.

    Solutions containing an upgraded file are restored as a whole;
    without solutions each upgraded project is restored, skipping
    properties files which cannot be restored on their own.
    """
    upgraded_paths = {project.file_path for project in upgraded}

    if solution_map:
        return [
            solution
            for solution, members in solution_map.items()
            if solution.lower().endswith((SLN_EXTENSION, SLNX_EXTENSION))
            and upgraded_paths.intersection(members)
        ]

    targets = []
    for project in upgraded:
        if project.is_props_file:
            logger.info("Not restoring properties file %s", project.file_path)
            continue
        targets.append(project.file_path)
    return targets


async def restore_packages(
    solution_map: Dict[str, List[str]],
    upgraded: Sequence[ProjectFile],
) -> None:
    print_markup("Restoring packages...")
    for target in restore_targets(solution_map, upgraded):
        logger.debug("Running dotnet restore %s", target)
        code = await _run_restore(target)
        if code != 0:
            print_warning(f"dotnet restore {escape(os.path.basename(target))} exited with code {code}")


async def finish_upgrade(
    ctx: CheckUpdatesContext,
    loaded: LoadedProjects,
    upgraded: Sequence[ProjectFile],
) -> None:
    """Save upgraded projects, then restore or print the restore hint."""
    await save_projects(ctx, upgraded, loaded.cwd)

    if ctx.restore:
        await restore_packages(loaded.discovery.solution_project_map, upgraded)
    else:
        print_markup("Run [blue]dotnet restore[/] to install new versions")


# ---------------------------------------------------------------------------
# Command entry point
# ---------------------------------------------------------------------------


def check_updates(ctx: CheckUpdatesContext) -> None:
    """Run the non-interactive check (and upgrade, with ``--upgrade``)."""
    asyncio.run(_check_async(ctx))


async def _check_async(ctx: CheckUpdatesContext) -> None:
    loaded = await load_projects(ctx)
    print_discovered(ctx, loaded)

    if loaded.package_count == 0:
        print_markup()
        print_markup(MSG_NO_PACKAGES_MATCH_FILTERS)
        return

    results = await resolve_upgrades(ctx, loaded)
    new_projects = apply_upgrades(results)
    upgraded = render_upgrades(ctx, loaded, new_projects)

    if not upgraded:
        return

    if ctx.upgrade:
        await finish_upgrade(ctx, loaded, upgraded)
    else:
        print_markup(ctx.get_upgrade_command_help_text())
