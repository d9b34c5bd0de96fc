"""Unit tests for dotnet_check_updates.models.upgrade."""

from __future__ import annotations

import pytest

from dotnet_check_updates.exceptions import InvalidUpgradeTargetError
from dotnet_check_updates.models.upgrade import (
    PackageUpgrade,
    PackageUpgradeMap,
    PackageVersionUpgrade,
    UpgradeTarget,
    UpgradeType,
    valid_target_names,
)
from dotnet_check_updates.models.version import VersionRange


@pytest.mark.unit
class TestUpgradeTargetParse:
    """Tests for UpgradeTarget.parse."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("latest", UpgradeTarget.LATEST),
            ("Greatest", UpgradeTarget.GREATEST),
            ("MAJOR", UpgradeTarget.MAJOR),
            ("minor", UpgradeTarget.MINOR),
            ("patch", UpgradeTarget.PATCH),
            ("prereleasemajor", UpgradeTarget.PRERELEASE_MAJOR),
            ("PreReleaseMinor", UpgradeTarget.PRERELEASE_MINOR),
            ("pre-major", UpgradeTarget.PRERELEASE_MAJOR),
            ("pre-minor", UpgradeTarget.PRERELEASE_MINOR),
            ("pre-patch", UpgradeTarget.PRERELEASE_PATCH),
            ("prerelease_patch", UpgradeTarget.PRERELEASE_PATCH),
        ],
    )
    def test_valid_values(self, value: str, expected: UpgradeTarget) -> None:
        assert UpgradeTarget.parse(value) is expected

    def test_invalid_value_lists_valid_names(self) -> None:
        """Test the error message names every accepted spelling."""
        with pytest.raises(InvalidUpgradeTargetError) as exc_info:
            UpgradeTarget.parse("newest")

        message = str(exc_info.value)
        assert "Invalid upgrade target 'newest'" in message
        for name in valid_target_names():
            assert name in message

    def test_prerelease_targets(self) -> None:
        assert UpgradeTarget.GREATEST.include_prereleases
        assert UpgradeTarget.PRERELEASE_PATCH.include_prereleases
        assert not UpgradeTarget.LATEST.include_prereleases
        assert not UpgradeTarget.MAJOR.include_prereleases

    def test_str(self) -> None:
        assert str(UpgradeTarget.PRERELEASE_MINOR) == "prereleaseminor"


@pytest.mark.unit
class TestPackageUpgradeMap:
    """Tests for the case-insensitive upgrade mapping."""

    def test_lookup_ignores_case(self) -> None:
        upgrades = PackageUpgradeMap({"Serilog": VersionRange.parse("3.0.0")})

        assert "serilog" in upgrades
        assert upgrades["SERILOG"] == VersionRange.parse("3.0.0")
        assert upgrades.get("NLog") is None

    def test_keeps_last_spelling(self) -> None:
        upgrades = PackageUpgradeMap()
        upgrades["serilog"] = VersionRange.parse("2.0.0")
        upgrades["Serilog"] = VersionRange.parse("3.0.0")

        assert list(upgrades) == ["Serilog"]
        assert len(upgrades) == 1

    def test_delete(self) -> None:
        upgrades = PackageUpgradeMap({"Serilog": VersionRange.parse("3.0.0")})

        del upgrades["SERILOG"]

        assert len(upgrades) == 0


@pytest.mark.unit
class TestPackageUpgrade:
    """Tests for upgrade value objects."""

    @pytest.mark.parametrize(
        "old,new,expected",
        [
            ("1.0.0", "2.0.0", UpgradeType.MAJOR),
            ("1.0.0", "1.1.0", UpgradeType.MINOR),
            ("1.0.0", "1.0.1", UpgradeType.PATCH),
            ("1.0.0-alpha", "1.0.0-beta", UpgradeType.RELEASE),
            ("[1.0.0]", "[3.0.0]", UpgradeType.MAJOR),
        ],
    )
    def test_upgrade_type(self, old: str, new: str, expected: UpgradeType) -> None:
        upgrade = PackageUpgrade("Pkg", VersionRange.parse(old), VersionRange.parse(new))

        assert upgrade.upgrade_type is expected

    def test_version_upgrade_string(self) -> None:
        assert PackageVersionUpgrade("Pkg", VersionRange.parse("[2.0.0]")).get_version_string() == "[2.0.0]"
