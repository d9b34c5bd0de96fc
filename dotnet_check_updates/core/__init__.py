"""
Core functionality exports for dotnet-check-updates.

This module provides convenient access to the core subsystems. Importing
from here keeps command imports clean and stable:

    from dotnet_check_updates.core import ProjectFileReader
"""

from __future__ import annotations

from dotnet_check_updates.core.filters import Filter, is_included, split_filters
from dotnet_check_updates.core.parser import ProjectFileReader, parse_project_file
from dotnet_check_updates.core.writer import ProjectFileWriter, project_file_to_xml
from dotnet_check_updates.core.solution import SolutionParser
from dotnet_check_updates.core.discovery import (
    ProjectDiscovery,
    ProjectDiscoveryRequest,
    ProjectDiscoveryResult,
    get_search_patterns,
)
from dotnet_check_updates.core.catalog_reader import CatalogFrameworkReader
from dotnet_check_updates.core.nuget_service import (
    DefaultNuGetService,
    MultiSourceNuGetService,
    NuGetApiClient,
    NuGetService,
    V3FeedService,
    create_nuget_service,
)
from dotnet_check_updates.core.package_sources import PackageSource, resolve_package_sources
from dotnet_check_updates.core.upgrade_service import PackageUpgradeService
from dotnet_check_updates.core.upgrader import (
    check_for_upgrades,
    get_project_package_upgrades,
    get_project_package_versions,
    get_projects_package_versions,
    prepare_projects,
    read_projects,
)

__all__ = [
    "Filter",
    "split_filters",
    "is_included",
    "ProjectFileReader",
    "parse_project_file",
    "ProjectFileWriter",
    "project_file_to_xml",
    "SolutionParser",
    "ProjectDiscovery",
    "ProjectDiscoveryRequest",
    "ProjectDiscoveryResult",
    "get_search_patterns",
    "CatalogFrameworkReader",
    "NuGetService",
    "NuGetApiClient",
    "DefaultNuGetService",
    "V3FeedService",
    "MultiSourceNuGetService",
    "create_nuget_service",
    "PackageSource",
    "resolve_package_sources",
    "PackageUpgradeService",
    "read_projects",
    "prepare_projects",
    "get_project_package_versions",
    "get_projects_package_versions",
    "get_project_package_upgrades",
    "check_for_upgrades",
]
