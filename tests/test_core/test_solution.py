"""Unit tests for dotnet_check_updates.core.solution."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from dotnet_check_updates.core.solution import SolutionParser
from dotnet_check_updates.exceptions import SolutionParseError

CSHARP = "{FAE04EC0-301F-11D3-BF4B-00C04F79EFBC}"
FOLDER = "{2150E333-8FDC-42A3-9474-1A3956D46DE8}"


def sln_text(*projects) -> str:
    lines = [
        "Microsoft Visual Studio Solution File, Format Version 12.00",
        "# Visual Studio Version 17",
    ]
    for index, (type_guid, name, path) in enumerate(projects):
        lines.append(
            f'Project("{type_guid}") = "{name}", "{path}", "{{00000000-0000-0000-0000-00000000000{index}}}"'
        )
        lines.append("EndProject")
    lines.append("Global")
    lines.append("EndGlobal")
    return "\n".join(lines) + "\n"


@pytest.mark.unit
class TestSolutionParser:
    """Tests for listing solution members."""

    def test_sln_members_are_absolute(self, tmp_path: Path) -> None:
        solution = tmp_path / "App.sln"
        solution.write_text(
            sln_text(
                (CSHARP, "App", "src\\App\\App.csproj"),
                (CSHARP, "App.Tests", "tests/App.Tests/App.Tests.csproj"),
            )
        )

        paths = SolutionParser().get_project_paths(str(solution))

        assert paths == [
            os.path.join(str(tmp_path), "src", "App", "App.csproj"),
            os.path.join(str(tmp_path), "tests", "App.Tests", "App.Tests.csproj"),
        ]

    def test_solution_folders_are_skipped(self, tmp_path: Path) -> None:
        solution = tmp_path / "App.sln"
        solution.write_text(
            sln_text(
                (FOLDER, "src", "src"),
                (CSHARP, "App", "src\\App\\App.csproj"),
            )
        )

        paths = SolutionParser().get_project_paths(str(solution))

        assert paths == [os.path.join(str(tmp_path), "src", "App", "App.csproj")]

    def test_sln_with_bom(self, tmp_path: Path) -> None:
        solution = tmp_path / "App.sln"
        solution.write_bytes(b"\xef\xbb\xbf" + sln_text((CSHARP, "App", "App.csproj")).encode())

        assert SolutionParser().get_project_paths(str(solution)) == [
            os.path.join(str(tmp_path), "App.csproj")
        ]

    def test_slnx(self, tmp_path: Path) -> None:
        solution = tmp_path / "App.slnx"
        solution.write_text(
            "<Solution>\n"
            '  <Folder Name="/src/">\n'
            '    <Project Path="src/App/App.csproj" />\n'
            "  </Folder>\n"
            '  <Project Path="tests/App.Tests/App.Tests.fsproj" />\n'
            "</Solution>\n"
        )

        paths = SolutionParser().get_project_paths(str(solution))

        assert paths == [
            os.path.join(str(tmp_path), "src", "App", "App.csproj"),
            os.path.join(str(tmp_path), "tests", "App.Tests", "App.Tests.fsproj"),
        ]

    def test_invalid_slnx(self, tmp_path: Path) -> None:
        solution = tmp_path / "App.slnx"
        solution.write_text("<Solution>")

        with pytest.raises(SolutionParseError):
            SolutionParser().get_project_paths(str(solution))

    def test_missing_solution(self, tmp_path: Path) -> None:
        with pytest.raises(SolutionParseError) as exc_info:
            SolutionParser().get_project_paths(str(tmp_path / "Missing.sln"))

        assert "Unable to read solution" in str(exc_info.value)
