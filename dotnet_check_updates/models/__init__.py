"""
Unified data model exports for dotnet-check-updates.

This module re-exports the core data models so callers can import them
directly from ``dotnet_check_updates.models`` instead of individual
submodules.

Example:
    >>> from dotnet_check_updates.models import NuGetVersion, VersionRange
"""

from __future__ import annotations

from dotnet_check_updates.models.version import (
    FloatBehavior,
    FloatRange,
    NuGetVersion,
    VersionRange,
)
from dotnet_check_updates.models.framework import (
    Framework,
    any_compatible,
    is_compatible,
    parse_framework,
)
from dotnet_check_updates.models.upgrade import (
    PackageUpgrade,
    PackageUpgradeMap,
    PackageVersionUpgrade,
    UpgradeTarget,
    UpgradeType,
)
from dotnet_check_updates.models.package_reference import PackageReference
from dotnet_check_updates.models.project_file import Import, ProjectFile

__all__ = [
    "NuGetVersion",
    "VersionRange",
    "FloatRange",
    "FloatBehavior",
    "Framework",
    "parse_framework",
    "is_compatible",
    "any_compatible",
    "UpgradeTarget",
    "UpgradeType",
    "PackageVersionUpgrade",
    "PackageUpgrade",
    "PackageUpgradeMap",
    "PackageReference",
    "ProjectFile",
    "Import",
]
