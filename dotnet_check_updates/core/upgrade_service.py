"""
Upgrade resolution.

Finds the best version a package reference can move to: the highest
published version that the upgrade target allows, that fits the shape of
the current range, and that supports at least one of the project's
target frameworks.
"""

from __future__ import annotations

from typing import Iterable, Optional

from dotnet_check_updates.core.nuget_service import NuGetService
from dotnet_check_updates.models.framework import any_compatible, Framework
from dotnet_check_updates.models.package_reference import PackageReference
from dotnet_check_updates.models.upgrade import PackageVersionUpgrade, UpgradeTarget
from dotnet_check_updates.models.version import VersionRange
from dotnet_check_updates.utils.logger import get_logger
from dotnet_check_updates.utils.version_utils import (
    new_version_satisfies_target_and_range,
    to_version_range,
)

logger = get_logger("upgrade")


class PackageUpgradeService:
    """Resolve package upgrades against a NuGet service.

    Args:
        nuget_service: Source of package versions and their frameworks.

    Example:
        >>> service = PackageUpgradeService(nuget)
        >>> upgrade = await service.get_package_upgrade(
        ...     [parse_framework("net8.0")],
        ...     PackageReference.from_strings("Serilog", "2.10.0"),
        ...     UpgradeTarget.LATEST,
        ... )
        >>> upgrade.get_version_string() if upgrade else None
        '4.0.1'
    """

    def __init__(self, nuget_service: NuGetService) -> None:
        self.nuget_service = nuget_service

    async def get_package_upgrade(
        self,
        target_frameworks: Iterable[Framework],
        package: PackageReference,
        target: UpgradeTarget,
    ) -> Optional[PackageVersionUpgrade]:
        """Return the upgrade for ``package``, or ``None``.

        Candidates are tried from the highest version down and the first
        framework-compatible one wins. If a candidate that passes the
        target check has no framework metadata at all, the search stops
        without an upgrade rather than guessing.

        Raises:
            UnsupportedRangeError: The chosen version cannot be mapped
                onto the shape of the current range.
        """
        if package.version == VersionRange.NONE:
            return None

        logger.debug("Searching upgrades for %s %s", package.name, package.version)

        frameworks = list(target_frameworks)
        versions = sorted(await self.nuget_service.get_package_versions(package.name))

        for version in reversed(versions):
            if not new_version_satisfies_target_and_range(package.version, version, target):
                continue

            supported = await self.nuget_service.get_supported_frameworks(
                package.name,
                version.to_normalized_string(),
            )

            if not supported:
                logger.warning(
                    "No supported frameworks found for %s %s while searching for version %s",
                    package.name,
                    package.version,
                    version,
                )
                return None

            if any_compatible(frameworks, supported):
                new_version = to_version_range(version, package.version)
                logger.debug(
                    "Upgrade found for %s %s -> %s",
                    package.name,
                    package.version,
                    new_version,
                )
                return PackageVersionUpgrade(package.name, new_version)

        return None
