"""Interactive upgrade selection for dotnet-check-updates.

Resolves upgrades like the check command, then asks about every
available upgrade, grouped by solution and project. Only the confirmed
upgrades are written. Cancelling a prompt (Ctrl+C or end of input)
aborts the run before anything is saved.
"""

from __future__ import annotations

import asyncio
from typing import Dict, List, Optional, Sequence, Tuple

from rich.markup import escape

from dotnet_check_updates.constants import (
    MSG_ALL_PACKAGES_LATEST,
    MSG_CHOOSE_PACKAGES,
    MSG_NO_PACKAGES_MATCH_FILTERS,
    MSG_UPGRADING_SELECTED,
)
from dotnet_check_updates.context import CheckUpdatesContext
from dotnet_check_updates.commands.check import (
    LoadedProjects,
    finish_upgrade,
    load_projects,
    print_discovered,
    render_upgrades,
    resolve_upgrades,
)
from dotnet_check_updates.core import get_project_package_upgrades
from dotnet_check_updates.models import PackageUpgrade, PackageUpgradeMap, ProjectFile
from dotnet_check_updates.utils import (
    confirm,
    get_logger,
    get_upgraded_version_string,
    longest,
    print_markup,
)
from dotnet_check_updates.utils.version_utils import version_string

logger = get_logger("commands.interactive")

#: Project path -> upgrades available for it.
UpgradesByProject = Dict[str, List[PackageUpgrade]]


def format_upgrade_choice(
    upgrade: PackageUpgrade,
    longest_name: int,
    longest_version: int,
) -> str:
    """Return the markup shown for one upgrade in the selection."""
    old = version_string(upgrade.old_version)
    new = get_upgraded_version_string(
        upgrade.old_version,
        upgrade.new_version,
        upgrade.original_version,
    )
    return f"{escape(upgrade.name.ljust(longest_name))} {escape(old.ljust(longest_version))} → {new}"


def _groups(ctx: CheckUpdatesContext, loaded: LoadedProjects) -> List[Tuple[str, List[str]]]:
    """Return ``(title, project paths)`` pairs in prompt order."""
    solution_map = loaded.discovery.solution_project_map
    if solution_map:
        return [
            (ctx.format_path(solution, loaded.cwd), sorted(members))
            for solution, members in solution_map.items()
        ]
    return [("Projects", sorted(project.file_path for project in loaded.projects))]


def select_upgrades(
    ctx: CheckUpdatesContext,
    loaded: LoadedProjects,
    available: UpgradesByProject,
) -> Dict[str, PackageUpgradeMap]:
    """Ask about every available upgrade.

    A file listed in several solutions is asked about once.

    Returns:
        Project path to the confirmed upgrades.

    Raises:
        PromptCanceledError: The user cancelled a prompt.
    """
    all_upgrades = [upgrade for upgrades in available.values() for upgrade in upgrades]
    longest_name = longest(upgrade.name for upgrade in all_upgrades)
    longest_version = longest(version_string(upgrade.old_version) for upgrade in all_upgrades)

    selected: Dict[str, PackageUpgradeMap] = {}
    asked = set()

    for title, paths in _groups(ctx, loaded):
        pending = [path for path in paths if available.get(path) and path not in asked]
        if not pending:
            continue

        print_markup()
        print_markup(f"[bold]{escape(title)}[/]")

        for path in pending:
            asked.add(path)
            print_markup(f"  [yellow]{escape(ctx.format_path(path, loaded.cwd))}[/]")

            chosen = PackageUpgradeMap()
            for upgrade in available[path]:
                label = format_upgrade_choice(upgrade, longest_name, longest_version)
                if confirm(f"    {label}"):
                    chosen[upgrade.name] = upgrade.new_version

            if chosen:
                selected[path] = chosen

    logger.debug("Selected upgrades in %d files", len(selected))
    return selected


def apply_selection(
    projects: Sequence[ProjectFile],
    selected: Dict[str, PackageUpgradeMap],
) -> List[ProjectFile]:
    return [
        project.update_package_references(selected.get(project.file_path, PackageUpgradeMap()))
        for project in projects
    ]


# ---------------------------------------------------------------------------
# Command entry point
# ---------------------------------------------------------------------------


def interactive_updates(ctx: CheckUpdatesContext) -> None:
    """Run the check, confirming each upgrade before it is written.

    Prompts block on standard input, so they run between two event loops:
    one resolving upgrades and one saving the confirmed ones.
    """
    found = asyncio.run(_find_available(ctx))
    if found is None:
        return

    loaded, available = found

    print_markup()
    print_markup(MSG_CHOOSE_PACKAGES)
    selected = select_upgrades(ctx, loaded, available)

    new_projects = apply_selection(loaded.projects, selected)

    print_markup()
    print_markup(MSG_UPGRADING_SELECTED)
    upgraded = render_upgrades(ctx, loaded, new_projects, hide_if_no_upgrade=True)

    if upgraded:
        asyncio.run(finish_upgrade(ctx, loaded, upgraded))


async def _find_available(ctx: CheckUpdatesContext) -> Optional[Tuple[LoadedProjects, UpgradesByProject]]:
    loaded = await load_projects(ctx)
    print_discovered(ctx, loaded)

    if loaded.package_count == 0:
        print_markup()
        print_markup(MSG_NO_PACKAGES_MATCH_FILTERS)
        return None

    results = await resolve_upgrades(ctx, loaded)
    available: UpgradesByProject = {
        project.file_path: get_project_package_upgrades(project, upgrades)
        for project, upgrades in results
    }

    if not any(available.values()):
        print_markup()
        print_markup(MSG_ALL_PACKAGES_LATEST)
        return None

    return loaded, available
