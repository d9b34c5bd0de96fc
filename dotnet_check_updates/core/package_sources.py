"""
Package source resolution.

Works out which NuGet feeds a run queries. Explicitly configured
sources win; otherwise ``nuget.config`` files between the filesystem
root and the working directory are merged the way NuGet merges them
(farther files first, ``<clear/>`` dropping everything inherited so
far); with nothing configured the public gallery is used.

Example ``nuget.config``::

    <configuration>
      <packageSources>
        <clear />
        <add key="nuget.org" value="https://api.nuget.org/v3/index.json" />
        <add key="internal" value="https://pkgs.example.com/v3/index.json" />
      </packageSources>
      <disabledPackageSources>
        <add key="internal" value="true" />
      </disabledPackageSources>
    </configuration>
"""

from __future__ import annotations

import os
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from dotnet_check_updates.constants import NUGET_CONFIG_FILES, NUGET_ORG_INDEX
from dotnet_check_updates.exceptions import FileOperationError
from dotnet_check_updates.utils import get_logger, safe_read_file

logger = get_logger("sources")

DEFAULT_SOURCE_NAME = "nuget.org"


@dataclass(frozen=True)
class PackageSource:
    """A configured NuGet feed.

    Attributes:
        name: Key of the source in ``nuget.config``.
        url: Service index URL.
        protocol_version: Feed protocol, ``2`` or ``3``.
    """

    name: str
    url: str
    protocol_version: int = 3

    @property
    def is_http(self) -> bool:
        return self.url.lower().startswith(("http://", "https://"))

    @property
    def is_v3(self) -> bool:
        return self.protocol_version == 3 or self.url.lower().endswith(".json")


DEFAULT_SOURCE = PackageSource(DEFAULT_SOURCE_NAME, NUGET_ORG_INDEX)


def find_nuget_config_files(start_directory: str) -> List[str]:
    """Return ``nuget.config`` files from the root down to ``start_directory``."""
    found: List[str] = []
    directory = os.path.abspath(start_directory)

    while True:
        try:
            entries = set(os.listdir(directory))
        except OSError:
            entries = set()

        for name in NUGET_CONFIG_FILES:
            if name in entries:
                found.append(os.path.join(directory, name))
                break

        parent = os.path.dirname(directory)
        if parent == directory:
            break
        directory = parent

    found.reverse()
    return found


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1] if tag.startswith("{") else tag


def _section(root: ET.Element, name: str) -> Optional[ET.Element]:
    for child in root:
        if isinstance(child.tag, str) and _local_name(child.tag) == name:
            return child
    return None


def _apply_config(
    path: str,
    sources: Dict[str, PackageSource],
    disabled: Dict[str, bool],
) -> None:
    try:
        root = ET.fromstring(safe_read_file(path))
    except (ET.ParseError, FileOperationError) as exc:
        logger.warning("Ignoring unreadable NuGet configuration %s: %s", path, exc)
        return

    config_dir = os.path.dirname(path)

    package_sources = _section(root, "packageSources")
    if package_sources is not None:
        for element in package_sources:
            tag = _local_name(element.tag) if isinstance(element.tag, str) else ""
            if tag == "clear":
                sources.clear()
            elif tag == "add":
                key = element.get("key")
                value = element.get("value")
                if not key or not value:
                    continue
                if not value.lower().startswith(("http://", "https://")):
                    value = os.path.normpath(os.path.join(config_dir, value))
                protocol = element.get("protocolVersion") or "2"
                sources[key.lower()] = PackageSource(
                    key,
                    value,
                    3 if protocol.strip() == "3" else 2,
                )

    disabled_sources = _section(root, "disabledPackageSources")
    if disabled_sources is not None:
        for element in disabled_sources:
            tag = _local_name(element.tag) if isinstance(element.tag, str) else ""
            if tag == "clear":
                disabled.clear()
            elif tag == "add" and element.get("key"):
                disabled[element.get("key", "").lower()] = (
                    (element.get("value") or "").strip().lower() == "true"
                )


def read_nuget_config_sources(config_files: Sequence[str]) -> List[PackageSource]:
    """Merge ``config_files`` (farthest first) into enabled sources.

    The public gallery is assumed configured before the first file, as
    the machine-wide NuGet configuration does.
    """
    sources: Dict[str, PackageSource] = {DEFAULT_SOURCE_NAME: DEFAULT_SOURCE}
    disabled: Dict[str, bool] = {}

    for path in config_files:
        logger.debug("Reading NuGet configuration %s", path)
        _apply_config(path, sources, disabled)

    return [source for key, source in sources.items() if not disabled.get(key)]


def resolve_package_sources(
    cwd: str,
    explicit_sources: Optional[Sequence[str]] = None,
    *,
    use_nuget_config: bool = True,
) -> List[PackageSource]:
    """Return the feeds to query, in priority order.

    Args:
        cwd: Working directory ``nuget.config`` lookup starts from.
        explicit_sources: Feed URLs from the command line or config
            file; when given, nothing else is consulted.
        use_nuget_config: Whether to read ``nuget.config`` files.

    Returns:
        HTTP v3 sources. Sources that are local folders or v2 feeds are
        logged and left out. Falls back to the public gallery.
    """
    if explicit_sources:
        candidates = [
            PackageSource(url, url, 3) for url in dict.fromkeys(s.strip() for s in explicit_sources) if url
        ]
    elif use_nuget_config:
        candidates = read_nuget_config_sources(find_nuget_config_files(cwd))
    else:
        candidates = []

    sources: List[PackageSource] = []
    for source in candidates:
        if not source.is_http:
            logger.info("Skipping local package source %s (%s)", source.name, source.url)
            continue
        if not source.is_v3:
            logger.info("Skipping NuGet v2 package source %s (%s)", source.name, source.url)
            continue
        logger.debug("Enabled package source %s %s", source.name, source.url)
        sources.append(source)

    return sources or [DEFAULT_SOURCE]
