"""Unit tests for dotnet_check_updates.utils.version_utils.

Covers target evaluation for every upgrade target, the gate on the shape
of the current range, mapping chosen versions back onto that shape, and
upgrade-type classification.
"""

from __future__ import annotations

from typing import List, Optional

import pytest

from dotnet_check_updates.exceptions import UnsupportedRangeError
from dotnet_check_updates.models.upgrade import UpgradeTarget, UpgradeType
from dotnet_check_updates.models.version import NuGetVersion, VersionRange
from dotnet_check_updates.utils.version_utils import (
    get_upgrade_type,
    is_exact,
    new_version_satisfies_target_and_range,
    satisfies_target,
    to_version_range,
    version_string,
)


def v(text: str) -> NuGetVersion:
    return NuGetVersion.parse(text)


def r(text: str) -> VersionRange:
    return VersionRange.parse(text)


def pick(current: str, candidates: List[str], target: UpgradeTarget) -> Optional[str]:
    """Walk candidates highest first and keep the best accepted one."""
    version_range = r(current)
    best: Optional[NuGetVersion] = None
    for candidate in sorted((v(c) for c in candidates), reverse=True):
        if not new_version_satisfies_target_and_range(version_range, candidate, target):
            continue
        if best is None or candidate > best:
            best = candidate
    return str(best) if best is not None else None


CANDIDATES = [
    "1.0.0",
    "1.0.1",
    "1.0.2-alpha",
    "1.1.0",
    "1.1.1-beta",
    "2.0.0",
    "2.1.0",
    "3.0.0-rc.1",
]


@pytest.mark.unit
class TestTargets:
    """Tests for the version each target selects from a feed listing."""

    @pytest.mark.parametrize(
        "target,expected",
        [
            (UpgradeTarget.LATEST, "2.1.0"),
            (UpgradeTarget.GREATEST, "3.0.0-rc.1"),
            (UpgradeTarget.MAJOR, "2.1.0"),
            (UpgradeTarget.MINOR, "1.1.0"),
            (UpgradeTarget.PATCH, "1.0.1"),
            (UpgradeTarget.PRERELEASE_MAJOR, "3.0.0-rc.1"),
            (UpgradeTarget.PRERELEASE_MINOR, "1.1.1-beta"),
            (UpgradeTarget.PRERELEASE_PATCH, "1.0.2-alpha"),
        ],
    )
    def test_selected_version(self, target: UpgradeTarget, expected: str) -> None:
        assert pick("1.0.0", CANDIDATES, target) == expected

    def test_latest_ignores_prerelease(self) -> None:
        """Test LATEST stays on stable versions while GREATEST takes the top."""
        candidates = ["1.0.1", "1.0.2-alpha"]

        assert pick("1.0.0", candidates, UpgradeTarget.LATEST) == "1.0.1"
        assert pick("1.0.0", candidates, UpgradeTarget.GREATEST) == "1.0.2-alpha"

    def test_patch_without_newer_patch(self) -> None:
        assert pick("1.0.1", ["1.1.0", "2.0.0"], UpgradeTarget.PATCH) is None

    def test_minor_does_not_cross_major(self) -> None:
        assert pick("1.5.0", ["2.0.0", "2.1.0"], UpgradeTarget.MINOR) is None

    def test_satisfies_target_with_current(self) -> None:
        """Test a candidate below the current version is rejected."""
        version_range = r("1.0.0")

        assert not satisfies_target(version_range, v("2.0.0"), v("1.5.0"), UpgradeTarget.GREATEST)
        assert satisfies_target(version_range, v("1.5.0"), v("2.0.0"), UpgradeTarget.GREATEST)


@pytest.mark.unit
class TestRangeGate:
    """Tests for which range shapes may be upgraded."""

    def test_exact_range_is_upgraded(self) -> None:
        assert new_version_satisfies_target_and_range(r("[1.0.0]"), v("2.0.0"), UpgradeTarget.LATEST)

    def test_inclusive_lower_bound_is_upgraded(self) -> None:
        assert new_version_satisfies_target_and_range(r("[1.0.0,)"), v("2.0.0"), UpgradeTarget.LATEST)

    @pytest.mark.parametrize("text", ["[1.0.0,2.0.0)", "(,3.0.0]", "[1.0.0,5.0.0]"])
    def test_upper_bounded_range_is_never_upgraded(self, text: str) -> None:
        assert not new_version_satisfies_target_and_range(r(text), v("2.5.0"), UpgradeTarget.GREATEST)

    def test_exclusive_lower_bound_is_not_upgraded(self) -> None:
        assert not new_version_satisfies_target_and_range(r("(1.0.0,)"), v("2.0.0"), UpgradeTarget.LATEST)


@pytest.mark.unit
class TestToVersionRange:
    """Tests for shaping a chosen version like the range it replaces."""

    def test_exact_stays_exact(self) -> None:
        result = to_version_range(v("2.0.0"), r("[1.0.0]"))

        assert is_exact(result)
        assert result.min_version == v("2.0.0")

    def test_lower_bound_keeps_inclusivity(self) -> None:
        result = to_version_range(v("2.0.0"), r("(1.0.0,)"))

        assert result.min_version == v("2.0.0")
        assert result.is_min_inclusive is False
        assert result.has_upper_bound is False

    def test_bounded_range_is_unsupported(self) -> None:
        with pytest.raises(UnsupportedRangeError):
            to_version_range(v("2.0.0"), r("[1.0.0,3.0.0)"))


@pytest.mark.unit
class TestVersionString:
    """Tests for rendering ranges back into project files."""

    def test_exact(self) -> None:
        assert version_string(r("[1.2.3]")) == "[1.2.3]"

    def test_short_form(self) -> None:
        assert version_string(r("1.2")) == "1.2.0"

    def test_bracket_spelling_is_kept(self) -> None:
        assert version_string(r("[1.0,)")) == "[1.0.0,)"

    def test_bracket_spelling_from_other(self) -> None:
        """Test a new range written without brackets follows the old spelling."""
        new = VersionRange(v("3.0.0"), True)

        assert version_string(new, r("[1.0,)")) == "[3.0.0,)"
        assert version_string(new, r("1.0")) == "3.0.0"

    def test_floating(self) -> None:
        assert version_string(r("1.*")) == "1.*"


@pytest.mark.unit
class TestGetUpgradeType:
    """Tests for classifying version changes."""

    @pytest.mark.parametrize(
        "old,new,expected",
        [
            ("1.0.0", "2.0.0", UpgradeType.MAJOR),
            ("1.0.0", "1.2.0", UpgradeType.MINOR),
            ("1.0.0", "1.0.5", UpgradeType.PATCH),
            ("1.0.0-alpha", "1.0.0-beta", UpgradeType.RELEASE),
            ("1.0.0-zzz", "1.0.0-rc999", UpgradeType.NONE),
            ("1.0.0", "1.0.0", UpgradeType.NONE),
            ("[1.0.0]", "[1.1.0]", UpgradeType.MINOR),
        ],
    )
    def test_classification(self, old: str, new: str, expected: UpgradeType) -> None:
        assert get_upgrade_type(r(old), r(new)) is expected

    def test_upper_bound_only_is_not_comparable(self) -> None:
        assert get_upgrade_type(r("(,1.0.0]"), r("2.0.0")) is UpgradeType.NONE
