"""Unit tests for dotnet_check_updates.models.package_reference."""

from __future__ import annotations

import pytest

from dotnet_check_updates.exceptions import InvalidVersionError
from dotnet_check_updates.models.package_reference import PackageReference
from dotnet_check_updates.models.version import VersionRange


@pytest.mark.unit
class TestPackageReference:
    """Tests for creating and upgrading package references."""

    @pytest.mark.parametrize("version", [None, "", "   "])
    def test_blank_version_is_none(self, version) -> None:
        reference = PackageReference.from_strings("Serilog", version)

        assert reference.version == VersionRange.NONE
        assert reference.has_version is False
        assert reference.get_version_string() == ""

    def test_invalid_version_raises(self) -> None:
        with pytest.raises(InvalidVersionError):
            PackageReference.from_strings("Serilog", "not a version")

    def test_has_name_ignores_case(self) -> None:
        assert PackageReference.from_strings("Serilog", "1.0").has_name("SERILOG")

    def test_with_version_keeps_first_original(self) -> None:
        """Test repeated upgrades remember the range read from the file."""
        reference = PackageReference.from_strings("Serilog", "[1.0,)")

        once = reference.with_version(VersionRange.parse("2.0.0"))
        twice = once.with_version(VersionRange.parse("3.0.0"))

        assert twice.original_version == reference.version
        assert twice.version == VersionRange.parse("3.0.0")

    def test_version_string_keeps_bracket_notation(self) -> None:
        """Test an upgraded ``[1.0,)`` range is written as ``[x,)``."""
        reference = PackageReference.from_strings("Serilog", "[1.0,)").with_version(
            VersionRange(VersionRange.parse("3.0.0").min_version, True)
        )

        assert reference.get_version_string() == "[3.0.0,)"

    def test_version_string_short_form(self) -> None:
        reference = PackageReference.from_strings("Serilog", "1.0").with_version(
            VersionRange.parse("2.1.0")
        )

        assert reference.get_version_string() == "2.1.0"

    def test_exact_version_string(self) -> None:
        assert PackageReference.from_strings("Serilog", "[1.2.3]").get_version_string() == "[1.2.3]"
