"""Tests for the interactive upgrade flow."""

from __future__ import annotations

import asyncio
from pathlib import Path
from unittest.mock import patch

import pytest

from dotnet_check_updates.commands.check import LoadedProjects
from dotnet_check_updates.commands.interactive import (
    apply_selection,
    format_upgrade_choice,
    interactive_updates,
    select_upgrades,
)
from dotnet_check_updates.constants import MSG_ALL_PACKAGES_LATEST, MSG_CHOOSE_PACKAGES
from dotnet_check_updates.context import CheckUpdatesContext
from dotnet_check_updates.core.discovery import ProjectDiscoveryResult
from dotnet_check_updates.exceptions import PromptCanceledError
from dotnet_check_updates.models.package_reference import PackageReference
from dotnet_check_updates.models.project_file import ProjectFile
from dotnet_check_updates.models.upgrade import PackageUpgrade, PackageUpgradeMap
from dotnet_check_updates.models.version import VersionRange
from dotnet_check_updates.utils.console import reconfigure_console

PROJECT = (
    '<Project Sdk="Microsoft.NET.Sdk">\n'
    "  <PropertyGroup>\n"
    "    <TargetFramework>net8.0</TargetFramework>\n"
    "  </PropertyGroup>\n"
    "  <ItemGroup>\n"
    '    <PackageReference Include="Serilog" Version="2.0.0" />\n'
    '    <PackageReference Include="Moq" Version="4.0.0" />\n'
    "  </ItemGroup>\n"
    "</Project>\n"
)


def canned_upgrades(**versions: str):
    async def resolve(ctx: CheckUpdatesContext, loaded: LoadedProjects):
        upgrades = {name: VersionRange.parse(v) for name, v in versions.items()}
        return [(project, PackageUpgradeMap(upgrades)) for project in loaded.projects]

    return resolve


def upgrade(name: str, old: str, new: str) -> PackageUpgrade:
    return PackageUpgrade(name, VersionRange.parse(old), VersionRange.parse(new))


@pytest.fixture(autouse=True)
def plain_console():
    reconfigure_console(color=False)
    yield
    reconfigure_console()


@pytest.fixture
def project_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    (tmp_path / "App.csproj").write_text(PROJECT, encoding="utf-8")
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.mark.integration
class TestInteractiveUpdates:
    """Tests for the whole interactive flow, answering prompts through stdin."""

    def test_only_confirmed_upgrades_are_written(
        self, project_dir: Path, capsys: pytest.CaptureFixture
    ) -> None:
        resolve = canned_upgrades(Serilog="3.1.0", Moq="4.20.0")

        with patch("dotnet_check_updates.commands.interactive.resolve_upgrades", resolve), patch(
            "builtins.input", side_effect=["y", ""]
        ):
            interactive_updates(CheckUpdatesContext(interactive=True))

        text = (project_dir / "App.csproj").read_text(encoding="utf-8")
        assert '<PackageReference Include="Serilog" Version="3.1.0" />' in text
        assert '<PackageReference Include="Moq" Version="4.0.0" />' in text
        out = capsys.readouterr().out
        assert MSG_CHOOSE_PACKAGES in out
        assert "[y/N]" in out

    def test_declining_everything_writes_nothing(self, project_dir: Path) -> None:
        resolve = canned_upgrades(Serilog="3.1.0")

        with patch("dotnet_check_updates.commands.interactive.resolve_upgrades", resolve), patch(
            "builtins.input", side_effect=["n"]
        ):
            interactive_updates(CheckUpdatesContext(interactive=True))

        assert (project_dir / "App.csproj").read_text(encoding="utf-8") == PROJECT

    def test_cancel_aborts_before_saving(self, project_dir: Path) -> None:
        resolve = canned_upgrades(Serilog="3.1.0", Moq="4.20.0")

        with patch("dotnet_check_updates.commands.interactive.resolve_upgrades", resolve), patch(
            "builtins.input", side_effect=["y", EOFError()]
        ):
            with pytest.raises(PromptCanceledError):
                interactive_updates(CheckUpdatesContext(interactive=True))

        assert (project_dir / "App.csproj").read_text(encoding="utf-8") == PROJECT

    def test_nothing_to_upgrade(self, project_dir: Path, capsys: pytest.CaptureFixture) -> None:
        resolve = canned_upgrades(Serilog="2.0.0")

        with patch("dotnet_check_updates.commands.interactive.resolve_upgrades", resolve), patch(
            "builtins.input"
        ) as prompt:
            interactive_updates(CheckUpdatesContext(interactive=True))

        prompt.assert_not_called()
        assert MSG_ALL_PACKAGES_LATEST in capsys.readouterr().out

    def test_prompts_run_outside_the_event_loop(self, project_dir: Path) -> None:
        loop_running = []

        def answer() -> str:
            try:
                asyncio.get_running_loop()
            except RuntimeError:
                loop_running.append(False)
            else:
                loop_running.append(True)
            return "y"

        resolve = canned_upgrades(Serilog="3.1.0", Moq="4.20.0")

        with patch("dotnet_check_updates.commands.interactive.resolve_upgrades", resolve), patch(
            "builtins.input", side_effect=answer
        ):
            interactive_updates(CheckUpdatesContext(interactive=True))

        assert loop_running == [False, False]
        assert 'Version="3.1.0"' in (project_dir / "App.csproj").read_text(encoding="utf-8")


@pytest.mark.unit
class TestSelectUpgrades:
    """Tests for select_upgrades and helpers."""

    def test_shared_project_is_asked_once(self) -> None:
        """Test a file listed by two solutions is only prompted for once."""
        shared = ProjectFile(
            "/r/Directory.Packages.props",
            package_references=(PackageReference.from_strings("Serilog", "2.0.0"),),
        )
        loaded = LoadedProjects(
            "/r",
            ProjectDiscoveryResult(
                [shared.file_path],
                {"/r/A.sln": [shared.file_path], "/r/B.sln": [shared.file_path]},
            ),
            [shared],
        )
        available = {shared.file_path: [upgrade("Serilog", "2.0.0", "3.0.0")]}

        with patch("dotnet_check_updates.commands.interactive.confirm", return_value=True) as confirm:
            selected = select_upgrades(CheckUpdatesContext(), loaded, available)

        assert confirm.call_count == 1
        assert selected[shared.file_path]["serilog"] == VersionRange.parse("3.0.0")

    def test_projects_without_upgrades_are_skipped(self) -> None:
        loaded = LoadedProjects(
            "/r",
            ProjectDiscoveryResult(["/r/A.csproj", "/r/B.csproj"]),
            [ProjectFile("/r/A.csproj"), ProjectFile("/r/B.csproj")],
        )
        available = {"/r/A.csproj": [], "/r/B.csproj": [upgrade("Moq", "4.0.0", "4.1.0")]}

        with patch("dotnet_check_updates.commands.interactive.confirm", return_value=False) as confirm:
            selected = select_upgrades(CheckUpdatesContext(), loaded, available)

        assert confirm.call_count == 1
        assert selected == {}

    def test_apply_selection(self) -> None:
        projects = [
            ProjectFile(
                "/r/A.csproj",
                package_references=(PackageReference.from_strings("Moq", "4.0.0"),),
            ),
            ProjectFile("/r/B.csproj"),
        ]

        result = apply_selection(
            projects, {"/r/A.csproj": PackageUpgradeMap({"Moq": VersionRange.parse("4.1.0")})}
        )

        assert result[0].needs_update is True
        assert result[1] is projects[1]

    def test_format_upgrade_choice(self) -> None:
        label = format_upgrade_choice(upgrade("Moq", "4.0.0", "4.1.0"), 7, 6)

        assert label == "Moq     4.0.0  → 4.[cyan]1.0[/]"
