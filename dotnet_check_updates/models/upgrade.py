"""
Upgrade policy and upgrade result models.

This module defines the upgrade targets a user can select on the command
line, the classification of a version change used for display, and the
value objects produced by upgrade resolution.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterator, List, Mapping, MutableMapping, Optional, Tuple

from dotnet_check_updates.exceptions import InvalidUpgradeTargetError
from dotnet_check_updates.models.version import VersionRange


class UpgradeTarget(Enum):
    """Policy deciding which available version counts as the upgrade."""

    #: Latest non-pre-release version.
    LATEST = "latest"
    #: Latest version, including pre-releases.
    GREATEST = "greatest"
    #: Latest version with a greater major component.
    MAJOR = "major"
    #: Latest version with the same major and a greater minor component.
    MINOR = "minor"
    #: Latest version with the same major/minor and a greater patch.
    PATCH = "patch"
    PRERELEASE_MAJOR = "prereleasemajor"
    PRERELEASE_MINOR = "prereleaseminor"
    PRERELEASE_PATCH = "prereleasepatch"

    @classmethod
    def parse(cls, value: str) -> "UpgradeTarget":
        """Convert a command-line spelling into an :class:`UpgradeTarget`.

        Matching is case-insensitive and accepts the ``pre-major``,
        ``pre-minor`` and ``pre-patch`` aliases.

        Raises:
            InvalidUpgradeTargetError: ``value`` names no target.
        """
        key = value.strip().lower()
        if key in _TARGET_ALIASES:
            return _TARGET_ALIASES[key]

        for target in cls:
            if target.value == key.replace("-", "").replace("_", ""):
                return target

        raise InvalidUpgradeTargetError(value, valid_target_names())

    @property
    def include_prereleases(self) -> bool:
        return self in (
            UpgradeTarget.GREATEST,
            UpgradeTarget.PRERELEASE_MAJOR,
            UpgradeTarget.PRERELEASE_MINOR,
            UpgradeTarget.PRERELEASE_PATCH,
        )

    @property
    def display_name(self) -> str:
        return self.value

    def __str__(self) -> str:
        return self.value


_TARGET_ALIASES: Dict[str, UpgradeTarget] = {
    "pre-major": UpgradeTarget.PRERELEASE_MAJOR,
    "pre-minor": UpgradeTarget.PRERELEASE_MINOR,
    "pre-patch": UpgradeTarget.PRERELEASE_PATCH,
}


def valid_target_names() -> List[str]:
    """Return every accepted ``--target`` spelling."""
    return [target.value for target in UpgradeTarget] + list(_TARGET_ALIASES)


class UpgradeType(Enum):
    """Kind of change between two versions, used for colouring output."""

    NONE = "none"
    MAJOR = "major"
    MINOR = "minor"
    PATCH = "patch"
    RELEASE = "release"


@dataclass(frozen=True)
class PackageVersionUpgrade:
    """Resolved upgrade for a single package.

    Attributes:
        name: Package identifier.
        version: Range that replaces the package's current range.
    """

    name: str
    version: VersionRange

    def get_version_string(self) -> str:
        from dotnet_check_updates.utils.version_utils import version_string

        return version_string(self.version)


@dataclass(frozen=True)
class PackageUpgrade:
    """A package reference paired with the version it upgrades to.

    Produced by orchestration for display and for the interactive
    selection.

    Attributes:
        name: Package identifier.
        old_version: Range found in the project file.
        new_version: Resolved replacement range.
        original_version: Original range text used for formatting.
    """

    name: str
    old_version: VersionRange
    new_version: VersionRange
    original_version: Optional[VersionRange] = None

    @property
    def upgrade_type(self) -> UpgradeType:
        from dotnet_check_updates.utils.version_utils import get_upgrade_type

        return get_upgrade_type(self.old_version, self.new_version)


class PackageUpgradeMap(MutableMapping[str, VersionRange]):
    """Mapping of package name to upgraded range, ignoring name case.

    Example:
        >>> upgrades = PackageUpgradeMap({"Serilog": VersionRange.parse("3.0.0")})
        >>> "serilog" in upgrades
        True
    """

    def __init__(self, items: Optional[Mapping[str, VersionRange]] = None) -> None:
        self._data: Dict[str, Tuple[str, VersionRange]] = {}
        if items:
            self.update(items)

    def __getitem__(self, name: str) -> VersionRange:
        return self._data[name.lower()][1]

    def __setitem__(self, name: str, version: VersionRange) -> None:
        self._data[name.lower()] = (name, version)

    def __delitem__(self, name: str) -> None:
        del self._data[name.lower()]

    def __iter__(self) -> Iterator[str]:
        return (name for name, _ in self._data.values())

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"PackageUpgradeMap({dict(self.items())!r})"
