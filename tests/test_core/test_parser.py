"""Unit tests for dotnet_check_updates.core.parser."""

from __future__ import annotations

import codecs
from pathlib import Path
from typing import Iterable, Tuple

import pytest

from dotnet_check_updates.core.parser import (
    ProjectFileReader,
    decode_project_bytes,
    detect_encoding,
    is_project_path,
    parse_less_strict_project_file,
    parse_project_file,
)
from dotnet_check_updates.exceptions import ProjectParseError
from dotnet_check_updates.models.framework import parse_framework
from dotnet_check_updates.models.version import VersionRange


def project_xml(
    packages: Iterable[Tuple[str, str]],
    frameworks: str = "<TargetFramework>net5.0</TargetFramework>",
    sdk: str = 'Sdk="Microsoft.NET.Sdk"',
) -> str:
    items = "\n".join(
        f'    <PackageReference Include="{name}" Version="{version}" />' for name, version in packages
    )
    return (
        f"<Project {sdk}>\n"
        "  <PropertyGroup>\n"
        f"    {frameworks}\n"
        "  </PropertyGroup>\n"
        "  <ItemGroup>\n"
        f"{items}\n"
        "  </ItemGroup>\n"
        "</Project>\n"
    )


@pytest.mark.unit
class TestParseProjectFile:
    """Tests for strict project parsing."""

    def test_parses_package_references(self) -> None:
        project = parse_project_file(
            project_xml([("Flurl", "3.0.0"), ("Flurl.Http", "[3.0.1]")]),
            "App.csproj",
        )

        assert [p.name for p in project.package_references] == ["Flurl", "Flurl.Http"]
        assert project.package_references[1].version == VersionRange.parse("[3.0.1]")
        assert project.sdk == "Microsoft.NET.Sdk"
        assert project.target_frameworks == (parse_framework("net5.0"),)
        assert project.needs_update is False

    def test_multiple_target_frameworks(self) -> None:
        project = parse_project_file(
            project_xml([], "<TargetFrameworks>net6.0;netstandard2.0;net6.0</TargetFrameworks>"),
            "Lib.csproj",
        )

        assert [str(f) for f in project.target_frameworks] == ["net6.0", "netstandard2.0"]

    def test_unsupported_frameworks_are_ignored(self) -> None:
        project = parse_project_file(
            project_xml([], "<TargetFrameworks>net8.0;portable-net45+win8</TargetFrameworks>"),
            "Lib.csproj",
        )

        assert [str(f) for f in project.target_frameworks] == ["net8.0"]

    def test_package_version_elements(self) -> None:
        text = (
            '<Project Sdk="Microsoft.NET.Sdk"><PropertyGroup><TargetFramework>net8.0</TargetFramework>'
            '</PropertyGroup><ItemGroup><PackageVersion Include="Serilog" Version="3.0.0" />'
            "</ItemGroup></Project>"
        )

        assert parse_project_file(text, "App.csproj").find_package("serilog") is not None

    def test_references_without_version_are_skipped(self) -> None:
        """Test centrally managed references (no Version) are not checked."""
        text = project_xml([("Kept", "1.0.0")]).replace(
            "  </ItemGroup>",
            '    <PackageReference Include="Central" />\n'
            '    <PackageReference Include="Blank" Version=" " />\n'
            "  </ItemGroup>",
        )

        assert [p.name for p in parse_project_file(text, "App.csproj").package_references] == ["Kept"]

    def test_invalid_versions_are_skipped(self) -> None:
        text = project_xml([("Good", "1.0.0"), ("Bad", "$(BadVersion)")])

        assert [p.name for p in parse_project_file(text, "App.csproj").package_references] == ["Good"]

    def test_imports_are_collected(self) -> None:
        text = project_xml([]).replace(
            "</Project>",
            "  <Import Project=\"$([MSBuild]::GetPathOfFileAbove('Directory.Build.props', '$(MSBuildThisFileDirectory)../'))\" />\n</Project>",
        )

        imports = parse_project_file(text, "App.csproj").imports

        assert len(imports) == 1
        assert "GetPathOfFileAbove" in imports[0].project

    @pytest.mark.parametrize(
        "text,message",
        [
            ("<Project", "Unable to read XML"),
            ("<Root />", "Project element not found"),
            (project_xml([], sdk=""), "Sdk attribute is missing"),
            (project_xml([], sdk='Sdk="Custom.Sdk"'), "Unsupported Sdk 'Custom.Sdk'"),
            (project_xml([], frameworks=""), "TargetFramework(s) are not specified"),
            (
                project_xml([], frameworks="<TargetFramework>portable-net45+win8</TargetFramework>"),
                "TargetFramework(s) are not specified",
            ),
        ],
    )
    def test_errors(self, text: str, message: str) -> None:
        with pytest.raises(ProjectParseError) as exc_info:
            parse_project_file(text, "App.csproj")

        assert message in str(exc_info.value)


@pytest.mark.unit
class TestParseLessStrict:
    """Tests for properties file parsing."""

    def test_props_without_sdk_or_frameworks(self) -> None:
        text = (
            "<Project>\n  <ItemGroup>\n"
            '    <PackageReference Include="StyleCop.Analyzers" Version="1.1.118" />\n'
            "  </ItemGroup>\n</Project>\n"
        )

        project = parse_less_strict_project_file(text, "Directory.Build.props")

        assert project.sdk is None
        assert project.target_frameworks == ()
        assert project.package_count == 1
        assert project.is_props_file

    def test_namespaced_project(self) -> None:
        """Test legacy projects using the MSBuild namespace are read."""
        text = (
            '<Project xmlns="http://schemas.microsoft.com/developer/msbuild/2003">'
            '<ItemGroup><PackageVersion Include="Serilog" Version="3.0.0" /></ItemGroup></Project>'
        )

        assert parse_less_strict_project_file(text, "Directory.Packages.props").package_count == 1


@pytest.mark.unit
class TestEncoding:
    """Tests for encoding detection."""

    def test_utf8_bom(self) -> None:
        data = codecs.BOM_UTF8 + b"<Project />"

        assert detect_encoding(data) == ("utf-8", codecs.BOM_UTF8)
        assert decode_project_bytes(data) == ("<Project />", "utf-8", codecs.BOM_UTF8)

    @pytest.mark.parametrize(
        "bom,codec",
        [
            (codecs.BOM_UTF16_LE, "utf-16-le"),
            (codecs.BOM_UTF16_BE, "utf-16-be"),
            (codecs.BOM_UTF32_LE, "utf-32-le"),
            (codecs.BOM_UTF32_BE, "utf-32-be"),
        ],
    )
    def test_wide_boms_keep_byte_order(self, bom: bytes, codec: str) -> None:
        """Test each byte order mark maps to the codec of its byte order."""
        data = bom + "<Project />".encode(codec)

        assert decode_project_bytes(data) == ("<Project />", codec, bom)

    def test_declared_encoding(self) -> None:
        data = b'<?xml version="1.0" encoding="ISO-8859-1"?><Project />'

        assert detect_encoding(data) == ("iso8859-1", b"")

    def test_default_is_utf8(self) -> None:
        assert detect_encoding(b"<Project />") == ("utf-8", b"")

    def test_undecodable(self) -> None:
        with pytest.raises(ProjectParseError):
            decode_project_bytes(b"<Project>\x80\x81</Project>", "App.csproj")


@pytest.mark.unit
class TestProjectFileReader:
    """Tests for reading project files from disk."""

    def test_reads_project(self, tmp_path: Path) -> None:
        path = tmp_path / "App.csproj"
        path.write_bytes(codecs.BOM_UTF8 + project_xml([("Serilog", "2.0.0")]).encode("utf-8"))

        project = ProjectFileReader().read_project_file(str(path))

        assert project.file_path == str(path)
        assert project.bom == codecs.BOM_UTF8
        assert project.package_count == 1

    def test_props_are_parsed_loosely(self, tmp_path: Path) -> None:
        path = tmp_path / "Directory.Build.props"
        path.write_text("<Project />")

        assert ProjectFileReader().read_project_file(str(path)).package_count == 0

    @pytest.mark.asyncio
    async def test_async_read(self, tmp_path: Path) -> None:
        path = tmp_path / "App.fsproj"
        path.write_text(project_xml([("FSharp.Core", "6.0.0")]))

        project = await ProjectFileReader().read_project_file_async(str(path))

        assert project.package_references[0].name == "FSharp.Core"

    def test_is_project_path(self) -> None:
        assert is_project_path("src/App.CSPROJ")
        assert is_project_path("src/App.fsproj")
        assert not is_project_path("Directory.Build.props")
