"""
Orchestration helpers shared by the check and interactive flows.

Reads the discovered files, applies the include/exclude filters, fills
in target frameworks for files that declare none, resolves upgrades per
project with bounded concurrency, and compares original and updated
projects.
"""

from __future__ import annotations

import asyncio
from dataclasses import replace
from typing import Callable, Iterable, List, Optional, Sequence, Tuple, TypeVar

from dotnet_check_updates.core.filters import Filter, is_included
from dotnet_check_updates.core.parser import ProjectFileReader
from dotnet_check_updates.core.upgrade_service import PackageUpgradeService
from dotnet_check_updates.models.framework import Framework
from dotnet_check_updates.models.package_reference import PackageReference
from dotnet_check_updates.models.project_file import ProjectFile
from dotnet_check_updates.models.upgrade import (
    PackageUpgrade,
    PackageUpgradeMap,
    PackageVersionUpgrade,
    UpgradeTarget,
)
from dotnet_check_updates.utils.logger import get_logger

logger = get_logger("upgrader")

T = TypeVar("T")

#: Called once for every package whose lookup finished.
ProgressCallback = Callable[[], None]

ProjectUpgrades = Tuple[ProjectFile, PackageUpgradeMap]


def chunked(items: Sequence[T], size: int) -> List[Sequence[T]]:
    """Split ``items`` into consecutive chunks of at most ``size``.

    Example:
        >>> chunked([1, 2, 3, 4, 5], 2)
        [[1, 2], [3, 4], [5]]
    """
    size = max(size, 1)
    return [items[index : index + size] for index in range(0, len(items), size)]


# ---------------------------------------------------------------------------
# Preparing projects
# ---------------------------------------------------------------------------


async def read_projects(
    reader: ProjectFileReader,
    file_paths: Iterable[str],
) -> List[ProjectFile]:
    """Read every file concurrently, keeping the input order."""
    return list(await asyncio.gather(*(reader.read_project_file_async(p) for p in file_paths)))


def filter_package_references(
    project: ProjectFile,
    include: Sequence[Filter],
    exclude: Sequence[Filter],
) -> ProjectFile:
    """Drop references the filters rule out.

    Dropped references are neither looked up nor written.
    """
    if not include and not exclude:
        return project

    references = tuple(
        reference
        for reference in project.package_references
        if is_included(reference.name, include, exclude)
    )
    if len(references) == project.package_count:
        return project

    return replace(project, package_references=references)


def widen_target_frameworks(projects: Sequence[ProjectFile]) -> List[ProjectFile]:
    """Give files without target frameworks the union of all frameworks.

    Properties files (and projects inheriting ``TargetFramework`` from
    one) declare no frameworks of their own; the frameworks of every
    discovered file are the best available approximation.
    """
    all_frameworks: List[Framework] = []
    for project in projects:
        for framework in project.target_frameworks:
            if framework not in all_frameworks:
                all_frameworks.append(framework)

    result: List[ProjectFile] = []
    for project in projects:
        if not project.target_frameworks:
            logger.info(
                "%s (%d packages) updated to use target frameworks %s",
                project.file_path,
                project.package_count,
                ", ".join(str(f) for f in all_frameworks) or "<none>",
            )
            project = project.with_target_frameworks(tuple(all_frameworks))
        result.append(project)

    return result


def prepare_projects(
    projects: Sequence[ProjectFile],
    include: Sequence[Filter],
    exclude: Sequence[Filter],
) -> List[ProjectFile]:
    filtered = [filter_package_references(p, include, exclude) for p in projects]
    return widen_target_frameworks(filtered)


# ---------------------------------------------------------------------------
# Resolving upgrades
# ---------------------------------------------------------------------------


async def get_project_package_versions(
    project: ProjectFile,
    service: PackageUpgradeService,
    target: UpgradeTarget,
    *,
    concurrency: int = 1,
    on_package: Optional[ProgressCallback] = None,
) -> ProjectUpgrades:
    """Resolve upgrades for every reference of ``project``.

    With ``concurrency`` above one, references are looked up in chunks of
    that size, all lookups of a chunk running at once.

    Returns:
        ``project`` and a mapping of package name to resolved range.
    """
    upgrades = PackageUpgradeMap()

    logger.debug("Upgrading packages for %s (%d)", project.file_path, project.package_count)

    async def resolve(reference: PackageReference) -> Optional[PackageVersionUpgrade]:
        upgrade = await service.get_package_upgrade(project.target_frameworks, reference, target)
        if on_package is not None:
            on_package()
        return upgrade

    references = project.package_references

    if concurrency > 1:
        for chunk in chunked(references, concurrency):
            results = await asyncio.gather(*(resolve(r) for r in chunk))
            for upgrade in results:
                if upgrade is not None:
                    upgrades[upgrade.name] = upgrade.version
    else:
        for reference in references:
            upgrade = await resolve(reference)
            if upgrade is not None:
                upgrades[upgrade.name] = upgrade.version

    return project, upgrades


async def get_projects_package_versions(
    projects: Sequence[ProjectFile],
    service: PackageUpgradeService,
    target: UpgradeTarget,
    *,
    concurrency: int = 1,
    on_package: Optional[ProgressCallback] = None,
) -> List[ProjectUpgrades]:
    """Resolve upgrades project by project, in order."""
    results: List[ProjectUpgrades] = []
    for project in projects:
        results.append(
            await get_project_package_versions(
                project,
                service,
                target,
                concurrency=concurrency,
                on_package=on_package,
            )
        )
    return results


def get_project_package_upgrades(
    project: ProjectFile,
    upgrades: PackageUpgradeMap,
) -> List[PackageUpgrade]:
    """List the references whose resolved range differs from the current one."""
    result: List[PackageUpgrade] = []

    for reference in project.package_references:
        version = upgrades.get(reference.name)
        if version is not None and version != reference.version:
            result.append(
                PackageUpgrade(
                    reference.name,
                    reference.version,
                    version,
                    reference.original_version,
                )
            )

    return result


def check_for_upgrades(original: ProjectFile, updated: ProjectFile) -> List[PackageUpgrade]:
    """Compare two versions of a project, ordered by package name."""
    result: List[PackageUpgrade] = []

    for reference in sorted(original.package_references, key=lambda r: r.name):
        new_reference = updated.find_package(reference.name)
        if new_reference is not None and new_reference.version != reference.version:
            result.append(
                PackageUpgrade(
                    reference.name,
                    reference.version,
                    new_reference.version,
                    new_reference.original_version,
                )
            )

    return result
