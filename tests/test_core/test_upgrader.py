"""Unit tests for dotnet_check_updates.core.upgrader."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import List, Optional
from unittest.mock import MagicMock

import pytest

from dotnet_check_updates.core.filters import split_filters
from dotnet_check_updates.core.parser import ProjectFileReader
from dotnet_check_updates.core.upgrader import (
    check_for_upgrades,
    chunked,
    filter_package_references,
    get_project_package_upgrades,
    get_project_package_versions,
    get_projects_package_versions,
    prepare_projects,
    read_projects,
    widen_target_frameworks,
)
from dotnet_check_updates.models.framework import Framework, parse_framework
from dotnet_check_updates.models.package_reference import PackageReference
from dotnet_check_updates.models.project_file import ProjectFile
from dotnet_check_updates.models.upgrade import (
    PackageUpgradeMap,
    PackageVersionUpgrade,
    UpgradeTarget,
)
from dotnet_check_updates.models.version import VersionRange


def project(path: str, frameworks: List[str], **packages: str) -> ProjectFile:
    return ProjectFile(
        file_path=path,
        target_frameworks=tuple(parse_framework(f) for f in frameworks),
        package_references=tuple(
            PackageReference.from_strings(name, version) for name, version in packages.items()
        ),
    )


class RecordingUpgradeService:
    """Upgrade service bumping every package to 9.0.0.

    Tracks how many lookups run at once.
    """

    def __init__(self, skip: Optional[List[str]] = None) -> None:
        self.skip = skip or []
        self.active = 0
        self.max_active = 0
        self.calls: List[str] = []

    async def get_package_upgrade(
        self,
        target_frameworks: List[Framework],
        package: PackageReference,
        target: UpgradeTarget,
    ) -> Optional[PackageVersionUpgrade]:
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        self.calls.append(package.name)
        await asyncio.sleep(0)
        self.active -= 1
        if package.name in self.skip:
            return None
        return PackageVersionUpgrade(package.name, VersionRange.parse("9.0.0"))


@pytest.mark.unit
class TestChunked:
    """Tests for chunked."""

    def test_even_and_remainder(self) -> None:
        assert chunked([1, 2, 3, 4, 5], 2) == [[1, 2], [3, 4], [5]]

    def test_empty(self) -> None:
        assert chunked([], 3) == []

    def test_size_below_one_is_one(self) -> None:
        assert chunked([1, 2], 0) == [[1], [2]]


@pytest.mark.unit
class TestPrepareProjects:
    """Tests for filtering references and widening frameworks."""

    def test_filters_drop_references(self) -> None:
        app = project("/r/App.csproj", ["net8.0"], Serilog="2.0.0", Newtonsoft_Json="13.0.1")

        result = filter_package_references(app, split_filters(["Serilog"]), [])

        assert [r.name for r in result.package_references] == ["Serilog"]

    def test_no_filters_returns_same_project(self) -> None:
        app = project("/r/App.csproj", ["net8.0"], Serilog="2.0.0")

        assert filter_package_references(app, [], []) is app

    def test_nothing_filtered_returns_same_project(self) -> None:
        app = project("/r/App.csproj", ["net8.0"], Serilog="2.0.0")

        assert filter_package_references(app, [], split_filters(["Moq"])) is app

    def test_props_files_get_all_frameworks(self) -> None:
        """Test files without frameworks inherit the union of the others."""
        projects = [
            project("/r/A.csproj", ["net6.0"]),
            project("/r/B.csproj", ["net8.0", "net6.0"]),
            project("/r/Directory.Build.props", [], Serilog="2.0.0"),
        ]

        widened = widen_target_frameworks(projects)

        assert [str(f) for f in widened[2].target_frameworks] == ["net6.0", "net8.0"]
        assert widened[0] is projects[0]

    def test_prepare_projects(self) -> None:
        projects = [
            project("/r/A.csproj", ["net6.0"], Serilog="2.0.0", Moq="4.0.0"),
            project("/r/Directory.Packages.props", [], Serilog="2.0.0"),
        ]

        prepared = prepare_projects(projects, [], split_filters(["Moq"]))

        assert [r.name for r in prepared[0].package_references] == ["Serilog"]
        assert prepared[1].target_frameworks == prepared[0].target_frameworks


@pytest.mark.unit
class TestGetProjectPackageVersions:
    """Tests for resolving the upgrades of one project."""

    @pytest.mark.asyncio
    async def test_sequential(self) -> None:
        app = project("/r/App.csproj", ["net8.0"], A="1.0.0", B="1.0.0", C="1.0.0")
        service = RecordingUpgradeService(skip=["B"])

        result, upgrades = await get_project_package_versions(app, service, UpgradeTarget.LATEST)

        assert result is app
        assert sorted(upgrades) == ["A", "C"]
        assert service.calls == ["A", "B", "C"]
        assert service.max_active == 1

    @pytest.mark.asyncio
    async def test_concurrency_bounds_lookups(self) -> None:
        app = project(
            "/r/App.csproj", ["net8.0"], A="1.0.0", B="1.0.0", C="1.0.0", D="1.0.0", E="1.0.0"
        )
        service = RecordingUpgradeService()

        _, upgrades = await get_project_package_versions(
            app, service, UpgradeTarget.LATEST, concurrency=2
        )

        assert len(upgrades) == 5
        assert service.max_active == 2

    @pytest.mark.asyncio
    async def test_progress_callback(self) -> None:
        app = project("/r/App.csproj", ["net8.0"], A="1.0.0", B="1.0.0")
        on_package = MagicMock()

        await get_project_package_versions(
            app, RecordingUpgradeService(skip=["A"]), UpgradeTarget.LATEST, on_package=on_package
        )

        assert on_package.call_count == 2

    @pytest.mark.asyncio
    async def test_projects_in_order(self) -> None:
        projects = [
            project("/r/A.csproj", ["net8.0"], A="1.0.0"),
            project("/r/B.csproj", ["net8.0"], B="1.0.0"),
        ]
        service = RecordingUpgradeService()

        results = await get_projects_package_versions(projects, service, UpgradeTarget.MINOR)

        assert [p.file_path for p, _ in results] == ["/r/A.csproj", "/r/B.csproj"]
        assert service.calls == ["A", "B"]


@pytest.mark.unit
class TestComparingProjects:
    """Tests for get_project_package_upgrades and check_for_upgrades."""

    def test_unchanged_versions_are_not_upgrades(self) -> None:
        app = project("/r/App.csproj", ["net8.0"], A="1.0.0", B="2.0.0", C="1.0.0")
        upgrades = PackageUpgradeMap(
            {"a": VersionRange.parse("1.5.0"), "B": VersionRange.parse("2.0.0")}
        )

        result = get_project_package_upgrades(app, upgrades)

        assert len(result) == 1
        assert result[0].name == "A"
        assert result[0].old_version == VersionRange.parse("1.0.0")
        assert result[0].new_version == VersionRange.parse("1.5.0")

    def test_check_for_upgrades_sorts_by_name(self) -> None:
        original = project("/r/App.csproj", ["net8.0"], Zeta="1.0.0", Alpha="1.0.0", Mid="1.0.0")
        updated = original.update_package_references(
            PackageUpgradeMap(
                {"Zeta": VersionRange.parse("2.0.0"), "Alpha": VersionRange.parse("1.1.0")}
            )
        )

        result = check_for_upgrades(original, updated)

        assert [u.name for u in result] == ["Alpha", "Zeta"]
        assert result[1].original_version == VersionRange.parse("1.0.0")

    def test_check_for_upgrades_without_changes(self) -> None:
        original = project("/r/App.csproj", ["net8.0"], A="1.0.0")

        assert check_for_upgrades(original, original) == []


@pytest.mark.integration
class TestReadProjects:
    """Tests for reading several files at once."""

    @pytest.mark.asyncio
    async def test_keeps_input_order(self, tmp_path: Path) -> None:
        paths = []
        for name in ["B", "A"]:
            path = tmp_path / f"{name}.csproj"
            path.write_text(
                '<Project Sdk="Microsoft.NET.Sdk">'
                "<PropertyGroup><TargetFramework>net8.0</TargetFramework></PropertyGroup>"
                f'<ItemGroup><PackageReference Include="{name}" Version="1.0.0" /></ItemGroup>'
                "</Project>",
                encoding="utf-8",
            )
            paths.append(str(path))

        projects = await read_projects(ProjectFileReader(), paths)

        assert [p.package_references[0].name for p in projects] == ["B", "A"]
