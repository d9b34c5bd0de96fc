"""
Package reference model.

A :class:`PackageReference` is one ``PackageReference`` or
``PackageVersion`` element of a project file. Instances are immutable;
upgrading a reference produces a new value that remembers the range it
was created from so the upgraded version can be written back using the
original notation.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional

from dotnet_check_updates.models.version import VersionRange


@dataclass(frozen=True)
class PackageReference:
    """A package name and the version range a project requests.

    Attributes:
        name: Package identifier as written in the project file.
        version: Requested range; :attr:`VersionRange.NONE` when the
            element carries no usable ``Version`` attribute.
        original_version: Range this reference had before the first
            upgrade, or ``None`` if it was never upgraded.
    """

    name: str
    version: VersionRange
    original_version: Optional[VersionRange] = None

    @classmethod
    def from_strings(cls, name: str, version: Optional[str]) -> "PackageReference":
        """Create a reference from raw attribute values.

        Blank versions map to :attr:`VersionRange.NONE`.

        Raises:
            InvalidVersionError: ``version`` is not blank and not a valid range.
        """
        if version is None or not version.strip():
            return cls(name, VersionRange.NONE)
        return cls(name, VersionRange.parse(version))

    @property
    def has_version(self) -> bool:
        return self.version != VersionRange.NONE

    def has_name(self, name: str) -> bool:
        """Case-insensitive name comparison."""
        return self.name.lower() == name.lower()

    def with_version(self, version: VersionRange) -> "PackageReference":
        """Return a copy using ``version``, keeping the first original range."""
        return replace(
            self,
            version=version,
            original_version=self.original_version or self.version,
        )

    def get_version_string(self) -> str:
        """Render the version for the project file.

        Upgraded references keep the bracket notation of the range they
        replaced.
        """
        from dotnet_check_updates.utils.version_utils import version_string

        if not self.has_version:
            return ""

        return version_string(self.version, self.original_version)
