"""
Project file model.

A :class:`ProjectFile` is the in-memory view of one ``.csproj``/``.fsproj``
or shared properties file: its target frameworks, package references,
SDK, imports and the source text with its encoding. Updating package
references returns a new instance flagged as needing a write; the source
text itself is only patched when the file is serialized.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field, replace
from typing import Mapping, Optional, Protocol, Tuple

from dotnet_check_updates.models.framework import Framework
from dotnet_check_updates.models.package_reference import PackageReference
from dotnet_check_updates.models.version import VersionRange

_PATH_OF_FILE_ABOVE_RE = re.compile(
    r"::GetPathOfFileAbove\(\s*['\"]\s*([\$\(\)\w\./]+)['\"]\s*,"
    r"\s*['\"]\s*([\$\(\)\w\./]+)\s*['\"]\s*\)"
)

_THIS_FILE_DIRECTORY = "$(MSBuildThisFileDirectory)"


class PathFinder(Protocol):
    def get_path_of_file_above(self, file_name: str, start_directory: str) -> str:
        ...


@dataclass(frozen=True)
class Import:
    """The ``Project`` attribute of an MSBuild ``Import`` element.

    Only the ``$([MSBuild]::GetPathOfFileAbove('file', 'dir'))`` form is
    understood; any other expression is returned unchanged.
    """

    project: str

    def get_imported_project_path(self, finder: PathFinder, this_file_directory: str) -> str:
        """Resolve the imported file.

        Args:
            finder: Object searching parent directories for a file.
            this_file_directory: Directory of the file holding the import,
                substituted for ``$(MSBuildThisFileDirectory)``.

        Returns:
            Path of the imported file, ``""`` when the file was not found,
            or the raw expression when it is not a ``GetPathOfFileAbove``
            call.
        """
        match = _PATH_OF_FILE_ABOVE_RE.search(self.project)
        if match is None:
            return self.project

        file_name = match.group(1)
        directory = this_file_directory.rstrip("/" + os.sep) + os.sep
        start = match.group(2).replace(_THIS_FILE_DIRECTORY, directory)

        return finder.get_path_of_file_above(file_name, start)


@dataclass(frozen=True)
class ProjectFile:
    """A parsed project or properties file.

    Attributes:
        file_path: Absolute path of the file.
        target_frameworks: Frameworks from ``TargetFramework(s)``.
        package_references: References in document order.
        sdk: Value of the ``Sdk`` attribute, if any.
        imports: ``Import`` elements in document order.
        encoding: Python codec name used to decode the file.
        bom: Byte order mark the file started with, empty if none.
        source_text: Decoded file contents, without the byte order mark.
        needs_update: Set when references changed since parsing.
    """

    file_path: str
    target_frameworks: Tuple[Framework, ...] = ()
    package_references: Tuple[PackageReference, ...] = ()
    sdk: Optional[str] = None
    imports: Tuple[Import, ...] = ()
    encoding: str = "utf-8"
    bom: bytes = b""
    source_text: str = field(default="", repr=False, compare=False)
    needs_update: bool = False

    @property
    def package_count(self) -> int:
        return len(self.package_references)

    @property
    def is_props_file(self) -> bool:
        return self.file_path.lower().endswith(".props")

    def find_index_by_name(self, name: str) -> int:
        for index, reference in enumerate(self.package_references):
            if reference.has_name(name):
                return index
        return -1

    def find_package(self, name: str) -> Optional[PackageReference]:
        """Return the first reference named ``name`` (case-insensitive)."""
        index = self.find_index_by_name(name)
        return self.package_references[index] if index > -1 else None

    def with_target_frameworks(self, frameworks: Tuple[Framework, ...]) -> "ProjectFile":
        return replace(self, target_frameworks=tuple(frameworks))

    def update_package_references(self, packages: Mapping[str, VersionRange]) -> "ProjectFile":
        """Apply upgraded ranges, preserving reference order.

        Args:
            packages: Package name to new range; lookups should ignore
                case, e.g. a :class:`PackageUpgradeMap`.

        Returns:
            A new :class:`ProjectFile` marked as needing an update, or
            ``self`` when no reference is affected.
        """
        changed = False
        references = []

        for reference in self.package_references:
            version = packages.get(reference.name)
            if version is None:
                references.append(reference)
            else:
                references.append(reference.with_version(version))
                changed = True

        if not changed:
            return self

        return replace(self, package_references=tuple(references), needs_update=True)
