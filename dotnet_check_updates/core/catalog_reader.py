"""
Framework extraction from NuGet catalog entries.

A catalog entry (the JSON document a registration leaf points at) lists
``dependencyGroups`` with a ``targetFramework`` each, and
``packageEntries`` whose ``fullName`` paths (``lib/net6.0/Foo.dll``)
name frameworks through their folder segments. Both are read here.
"""

from __future__ import annotations

import json
import re
from typing import Any, Dict, Mapping, Optional, Set

from dotnet_check_updates.models.framework import Framework, parse_framework

_PATH_SEPARATORS_RE = re.compile(r"[/\\]")


def _string_property(element: Mapping[str, Any], name: str) -> Optional[str]:
    value = element.get(name)
    return value if isinstance(value, str) else None


class CatalogFrameworkReader:
    """Read the supported frameworks of a catalog entry.

    Path segments repeat across packages (``lib``, ``net6.0``), so the
    reader remembers which segments parsed to a framework and which did
    not. The cache lives as long as the reader.
    """

    def __init__(self) -> None:
        self.known_frameworks: Dict[str, Framework] = {}
        self.invalid_path_parts: Set[str] = set()

    def read_frameworks_from_json(self, catalog_json: str) -> Set[Framework]:
        """Parse ``catalog_json`` and return its frameworks."""
        document = json.loads(catalog_json)
        return self.read_frameworks(document if isinstance(document, dict) else None)

    def read_frameworks(self, catalog: Optional[Mapping[str, Any]]) -> Set[Framework]:
        """Return the frameworks named by a decoded catalog entry."""
        frameworks: Set[Framework] = set()

        if not catalog:
            return frameworks

        groups = catalog.get("dependencyGroups")
        if isinstance(groups, list):
            for group in groups:
                if not isinstance(group, dict):
                    continue
                name = _string_property(group, "targetFramework")
                if name is None:
                    continue
                framework = parse_framework(name)
                if framework is not None:
                    frameworks.add(framework)

        entries = catalog.get("packageEntries")
        if isinstance(entries, list):
            for entry in entries:
                if not isinstance(entry, dict):
                    continue
                full_name = _string_property(entry, "fullName")
                if full_name is None:
                    continue
                file_name = _string_property(entry, "name") or ""

                for part in _PATH_SEPARATORS_RE.split(full_name):
                    part = part.strip()
                    if not part or part == file_name:
                        continue
                    framework = self._parse_path_part(part)
                    if framework is not None:
                        frameworks.add(framework)

        return frameworks

    def _parse_path_part(self, part: str) -> Optional[Framework]:
        known = self.known_frameworks.get(part)
        if known is not None:
            return known

        if part in self.invalid_path_parts:
            return None

        framework = parse_framework(part)
        if framework is None:
            self.invalid_path_parts.add(part)
        else:
            self.known_frameworks[part] = framework
        return framework
