"""
Project file writer.

Upgraded versions are written by patching the ``Version`` attribute of
each affected ``PackageReference``/``PackageVersion`` start tag inside
the original text. Nothing else in the file changes: whitespace,
comments, attribute order, quoting, the XML declaration and the encoding
(including a UTF-8 byte order mark) all survive.
"""

from __future__ import annotations

import asyncio
import re
from typing import List, Optional, Tuple
from xml.parsers import expat

from dotnet_check_updates.constants import PACKAGE_ELEMENTS
from dotnet_check_updates.exceptions import ProjectParseError
from dotnet_check_updates.models.project_file import ProjectFile
from dotnet_check_updates.models.version import VersionRange
from dotnet_check_updates.utils import get_logger
from dotnet_check_updates.utils.filesystem import safe_write_bytes

logger = get_logger("writer")

_START_TAG_RE = re.compile(
    rb"""<[^\s/>]+(?:\s+[^\s=/>]+\s*=\s*(?:"[^"]*"|'[^']*'))*\s*/?>""",
)
_VERSION_ATTRIBUTE_RE = re.compile(rb"""(?<=\s)Version\s*=\s*(["'])(.*?)\1""", re.DOTALL)

# (byte offset of the start tag, Include value, Version value)
_Element = Tuple[int, str, Optional[str]]


def _local_name(tag: str) -> str:
    return tag.rsplit(":", 1)[-1]


def _find_package_elements(text: str) -> List[_Element]:
    parser = expat.ParserCreate()
    found: List[_Element] = []

    def start_element(name: str, attributes: dict) -> None:
        if _local_name(name) in PACKAGE_ELEMENTS:
            found.append(
                (
                    parser.CurrentByteIndex,
                    attributes.get("Include", ""),
                    attributes.get("Version"),
                )
            )

    parser.StartElementHandler = start_element
    parser.Parse(text, True)
    return found


def _escape_attribute(value: str, quote: bytes) -> bytes:
    escaped = value.replace("&", "&amp;").replace("<", "&lt;")
    escaped = escaped.replace('"', "&quot;") if quote == b'"' else escaped.replace("'", "&apos;")
    return escaped.encode("utf-8")


def project_file_to_xml(project: ProjectFile) -> str:
    """Return the text of ``project`` with upgraded versions applied.

    Files that were not updated come back exactly as they were read.
    Elements whose ``Include`` matches no reference, or whose ``Version``
    is blank or already equal, are left untouched.

    Raises:
        ProjectParseError: The stored text is no longer well-formed XML.
    """
    if not project.needs_update:
        return project.source_text

    text = project.source_text
    data = text.encode("utf-8")

    try:
        elements = _find_package_elements(text)
    except expat.ExpatError as exc:
        raise ProjectParseError(
            f"Unable to read XML {project.file_path}",
            file_path=project.file_path,
        ) from exc

    patches: List[Tuple[int, int, bytes]] = []

    for offset, name, old_version in elements:
        reference = project.find_package(name)
        if reference is None or old_version is None:
            continue

        current = VersionRange.try_parse(old_version)
        if current is None or current == reference.version:
            continue

        tag = _START_TAG_RE.match(data, offset)
        if tag is None:
            logger.warning("Could not locate %s element in %s", name, project.file_path)
            continue

        attribute = _VERSION_ATTRIBUTE_RE.search(data, tag.start(), tag.end())
        if attribute is None:
            continue

        quote = attribute.group(1)
        patches.append(
            (
                attribute.start(2),
                attribute.end(2),
                _escape_attribute(reference.get_version_string(), quote),
            )
        )

    for start, end, value in sorted(patches, reverse=True):
        data = data[:start] + value + data[end:]

    return data.decode("utf-8")


def encode_project_text(project: ProjectFile, text: str) -> bytes:
    """Encode ``text`` the way ``project`` was originally encoded."""
    return project.bom + text.encode(project.encoding)


class ProjectFileWriter:
    """Persist updated project files."""

    def save(self, project: ProjectFile) -> None:
        """Write ``project`` to its path if it was updated."""
        if not project.file_path or not project.needs_update:
            return

        text = project_file_to_xml(project)
        safe_write_bytes(project.file_path, encode_project_text(project, text))
        logger.info("Updated %s", project.file_path)

    async def save_async(self, project: ProjectFile) -> None:
        await asyncio.to_thread(self.save, project)
