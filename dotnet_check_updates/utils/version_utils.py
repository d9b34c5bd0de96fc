"""
Version range helpers for dotnet-check-updates.

This module implements the rules deciding whether a candidate version is
an acceptable upgrade for a range under an :class:`UpgradeTarget`, maps a
chosen version back onto the shape of the original range, and classifies
version changes for display.
"""

from __future__ import annotations

from typing import Optional

from dotnet_check_updates.exceptions import UnsupportedRangeError
from dotnet_check_updates.models.upgrade import UpgradeTarget, UpgradeType
from dotnet_check_updates.models.version import (
    FloatBehavior,
    FloatRange,
    NuGetVersion,
    VersionRange,
)

_FLOAT_FOR_TARGET = {
    UpgradeTarget.LATEST: None,
    UpgradeTarget.GREATEST: FloatBehavior.ABSOLUTE_LATEST,
    UpgradeTarget.MAJOR: FloatBehavior.MAJOR,
    UpgradeTarget.MINOR: FloatBehavior.MINOR,
    UpgradeTarget.PATCH: FloatBehavior.PATCH,
    UpgradeTarget.PRERELEASE_MAJOR: FloatBehavior.PRERELEASE_MAJOR,
    UpgradeTarget.PRERELEASE_MINOR: FloatBehavior.PRERELEASE_MINOR,
    UpgradeTarget.PRERELEASE_PATCH: FloatBehavior.PRERELEASE_PATCH,
}


def is_exact(version_range: VersionRange) -> bool:
    """Return ``True`` for pinned ranges such as ``[1.0]``."""
    return (
        version_range.has_lower_and_upper_bounds
        and version_range.min_version == version_range.max_version
    )


# ---------------------------------------------------------------------------
# Component comparisons
# ---------------------------------------------------------------------------


def _better_major(candidate: NuGetVersion, floor: NuGetVersion) -> bool:
    return candidate.major > floor.major


def _better_minor(candidate: NuGetVersion, floor: NuGetVersion) -> bool:
    return candidate.major == floor.major and candidate.minor > floor.minor


def _better_patch(candidate: NuGetVersion, floor: NuGetVersion) -> bool:
    return (
        candidate.major == floor.major
        and candidate.minor == floor.minor
        and candidate.patch > floor.patch
    )


# ---------------------------------------------------------------------------
# Target evaluation
# ---------------------------------------------------------------------------


def satisfies_target(
    version_range: VersionRange,
    current: Optional[NuGetVersion],
    considering: NuGetVersion,
    target: UpgradeTarget,
) -> bool:
    """Decide whether ``considering`` is an upgrade under ``target``.

    Args:
        version_range: Range the candidate is evaluated against.
        current: Version being replaced, if known.
        considering: Candidate version.
        target: Upgrade policy.

    Returns:
        ``True`` if the candidate passes the numeric condition of the
        target and is better than ``current`` under the combined range
        and floating behaviour.
    """
    min_version = version_range.min_version or NuGetVersion(0, 0, 0)
    extra = True

    if target is UpgradeTarget.GREATEST:
        current = current or version_range.min_version
    elif target in (UpgradeTarget.MAJOR, UpgradeTarget.MINOR, UpgradeTarget.PATCH):
        current = current or version_range.min_version
        extra = _component_check(target, considering, min_version)
    elif target in (
        UpgradeTarget.PRERELEASE_MAJOR,
        UpgradeTarget.PRERELEASE_MINOR,
        UpgradeTarget.PRERELEASE_PATCH,
    ):
        # "-0" sorts below every other pre-release of the same numbers
        min_version = min_version.with_release("0")
        extra = _component_check(target, considering, min_version)

    behavior = _FLOAT_FOR_TARGET[target]
    if behavior is not None:
        version_range = version_range.with_float(FloatRange(behavior, min_version))

    return extra and version_range.is_better(current, considering)


def _component_check(
    target: UpgradeTarget,
    considering: NuGetVersion,
    floor: NuGetVersion,
) -> bool:
    if target in (UpgradeTarget.MAJOR, UpgradeTarget.PRERELEASE_MAJOR):
        return _better_major(considering, floor)
    if target in (UpgradeTarget.MINOR, UpgradeTarget.PRERELEASE_MINOR):
        return _better_minor(considering, floor)
    return _better_patch(considering, floor)


def new_version_satisfies_target_and_range(
    version_range: VersionRange,
    version: NuGetVersion,
    target: UpgradeTarget,
) -> bool:
    """Gate a candidate on the shape of the current range, then the target.

    Only exact ranges and inclusive lower-bound-only ranges are upgraded;
    ranges with an upper bound are never touched.
    """
    exact = is_exact(version_range)

    if not exact and version_range.has_upper_bound:
        return False

    if exact:
        pinned = VersionRange(
            version_range.min_version,
            True,
            float_range=version_range.float_range,
        )
        return satisfies_target(pinned, None, version, target)

    if version_range.has_lower_bound and version_range.is_min_inclusive:
        return satisfies_target(version_range, None, version, target)

    return False


# ---------------------------------------------------------------------------
# Range shaping and formatting
# ---------------------------------------------------------------------------


def to_version_range(version: NuGetVersion, original: VersionRange) -> VersionRange:
    """Build a range around ``version`` with the shape of ``original``.

    Raises:
        UnsupportedRangeError: ``original`` is neither exact nor
            lower-bound-only.
    """
    if is_exact(original):
        return VersionRange(version, True, version, True)

    if original.has_lower_bound and not original.has_upper_bound:
        return VersionRange(version, original.is_min_inclusive, None, False)

    raise UnsupportedRangeError(
        f"Unsupported version range '{original.original_string or original}'",
        range=original.to_normalized_string(),
    )


def _uses_brackets(text: Optional[str]) -> bool:
    return bool(text) and ("[" in text or "(" in text)  # type: ignore[operator]


def version_string(
    version_range: VersionRange,
    other: Optional[VersionRange] = None,
) -> str:
    """Render a range for a project file or for display.

    Bracket notation is kept when the range (or ``other``, typically the
    range it replaces) was written with brackets; otherwise the shortest
    spelling is used.

    Example:
        >>> version_string(VersionRange.parse("[1.0,)"))
        '[1.0.0,)'
        >>> version_string(VersionRange.parse("1.0"))
        '1.0.0'
    """
    if is_exact(version_range):
        return version_range.to_short_string()

    if other is not None and _uses_brackets(other.original_string):
        return version_range.to_normalized_string().replace(" ", "")

    if _uses_brackets(version_range.original_string):
        return version_range.to_normalized_string().replace(" ", "")

    return version_range.to_short_string()


def get_upgrade_type(lhs: VersionRange, rhs: VersionRange) -> UpgradeType:
    """Classify the change from ``lhs`` to ``rhs``.

    Examples:
        >>> get_upgrade_type(VersionRange.parse("1.0.0"), VersionRange.parse("2.0.0"))
        <UpgradeType.MAJOR: 'major'>
        >>> get_upgrade_type(VersionRange.parse("1.0.0-zzz"), VersionRange.parse("1.0.0-rc999"))
        <UpgradeType.NONE: 'none'>
    """
    comparable = (is_exact(lhs) and is_exact(rhs)) or (
        lhs.has_lower_bound and rhs.has_lower_bound
    )
    if not comparable:
        return UpgradeType.NONE

    old = lhs.min_version
    new = rhs.min_version
    assert old is not None and new is not None

    if new.major > old.major:
        return UpgradeType.MAJOR
    if new.minor > old.minor:
        return UpgradeType.MINOR
    if new.patch > old.patch:
        return UpgradeType.PATCH
    if new.release.upper() > old.release.upper():
        return UpgradeType.RELEASE

    return UpgradeType.NONE
