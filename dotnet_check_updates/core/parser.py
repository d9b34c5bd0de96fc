"""Project file parser for SDK-style MSBuild projects.

Reads ``.csproj``/``.fsproj`` projects and shared properties files
(``Directory.Build.props``, ``Directory.Packages.props``) into
:class:`~dotnet_check_updates.models.ProjectFile` values:

- ``Sdk`` attribute of the ``Project`` root (validated for projects)
- ``TargetFramework`` / ``TargetFrameworks`` (semicolon separated)
- ``PackageReference`` and ``PackageVersion`` items with ``Include`` and
  ``Version`` attributes, in document order
- ``Import`` elements (``Project`` attribute)
- The source encoding and byte order mark, so the file can be
  written back unchanged apart from patched versions

Typical usage::

    from dotnet_check_updates.core.parser import ProjectFileReader

    reader = ProjectFileReader()
    project = reader.read_project_file("src/App/App.csproj")

    for reference in project.package_references:
        print(reference.name, reference.get_version_string())
"""

from __future__ import annotations

import asyncio
import codecs
import re
import xml.etree.ElementTree as ET
from typing import List, Optional, Tuple

from dotnet_check_updates.constants import (
    PACKAGE_ELEMENTS,
    PROJECT_EXTENSIONS,
    SUPPORTED_SDKS,
)
from dotnet_check_updates.exceptions import InvalidVersionError, ProjectParseError
from dotnet_check_updates.models.framework import Framework, parse_framework
from dotnet_check_updates.models.package_reference import PackageReference
from dotnet_check_updates.models.project_file import Import, ProjectFile
from dotnet_check_updates.utils import get_logger
from dotnet_check_updates.utils.filesystem import safe_read_bytes

logger = get_logger("parser")

ERR_FAILED_TO_READ_XML = "Unable to read XML {0}"
ERR_PROJECT_NOT_FOUND = "Unsupported file: Project element not found in '{0}'"
ERR_SDK_ATTRIBUTE_MISSING = "Unsupported Project format: Sdk attribute is missing in '{0}'"
ERR_UNSUPPORTED_SDK = "Unsupported Project format: Unsupported Sdk '{0}' supported sdks are: '{1}'"
ERR_TARGET_FRAMEWORK_MISSING = "Unsupported Project format: TargetFramework(s) are not specified"

_DECLARED_ENCODING_RE = re.compile(
    rb"""^\s*<\?xml[^>]*?encoding\s*=\s*["']([A-Za-z0-9._-]+)["']""",
)

_BOMS: Tuple[Tuple[bytes, str], ...] = (
    (codecs.BOM_UTF32_LE, "utf-32-le"),
    (codecs.BOM_UTF32_BE, "utf-32-be"),
    (codecs.BOM_UTF8, "utf-8"),
    (codecs.BOM_UTF16_LE, "utf-16-le"),
    (codecs.BOM_UTF16_BE, "utf-16-be"),
)


# ---------------------------------------------------------------------------
# Encoding detection
# ---------------------------------------------------------------------------


def detect_encoding(data: bytes) -> Tuple[str, bytes]:
    """Work out how to decode raw project file bytes.

    A byte order mark wins, then the encoding named in the XML
    declaration, then UTF-8.

    Returns:
        ``(codec name, byte order mark)``; the codec never expects a BOM.
    """
    for bom, encoding in _BOMS:
        if data.startswith(bom):
            return encoding, bom

    match = _DECLARED_ENCODING_RE.match(data[:256])
    if match:
        try:
            return codecs.lookup(match.group(1).decode("ascii")).name, b""
        except LookupError:
            logger.debug("Unknown declared encoding %r", match.group(1))

    return "utf-8", b""


def decode_project_bytes(data: bytes, file_path: str = "") -> Tuple[str, str, bytes]:
    """Decode project file bytes.

    Returns:
        ``(text without byte order mark, codec name, byte order mark)``

    Raises:
        ProjectParseError: The bytes cannot be decoded.
    """
    encoding, bom = detect_encoding(data)
    data = data[len(bom) :]

    try:
        text = data.decode(encoding)
    except UnicodeDecodeError as exc:
        raise ProjectParseError(
            ERR_FAILED_TO_READ_XML.format(file_path),
            file_path=file_path,
        ) from exc

    return text, encoding, bom


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1] if tag.startswith("{") else tag


def _iter_local(root: ET.Element, name: str):
    for element in root.iter():
        if isinstance(element.tag, str) and _local_name(element.tag) == name:
            yield element


def _load_root(text: str, file_path: str) -> ET.Element:
    try:
        root = ET.fromstring(text)
    except ET.ParseError as exc:
        raise ProjectParseError(
            ERR_FAILED_TO_READ_XML.format(file_path),
            file_path=file_path,
        ) from exc

    if _local_name(root.tag) != "Project":
        raise ProjectParseError(
            ERR_PROJECT_NOT_FOUND.format(file_path),
            file_path=file_path,
        )

    return root


def _read_target_frameworks(root: ET.Element) -> Optional[str]:
    for name in ("TargetFramework", "TargetFrameworks"):
        element = next(_iter_local(root, name), None)
        if element is not None:
            return element.text or ""
    return None


def _parse_frameworks(value: Optional[str]) -> Tuple[Framework, ...]:
    frameworks: List[Framework] = []

    for moniker in (value or "").split(";"):
        moniker = moniker.strip()
        if not moniker:
            continue

        framework = parse_framework(moniker)
        if framework is None:
            logger.debug("Ignoring unsupported target framework %r", moniker)
            continue

        if framework not in frameworks:
            frameworks.append(framework)

    return tuple(frameworks)


def _read_package_references(root: ET.Element, file_path: str) -> Tuple[PackageReference, ...]:
    references: List[PackageReference] = []

    for element in root.iter():
        if not isinstance(element.tag, str):
            continue
        if _local_name(element.tag) not in PACKAGE_ELEMENTS:
            continue

        name = (element.get("Include") or "").strip()
        version = element.get("Version") or ""

        if not name or not version.strip():
            continue

        try:
            references.append(PackageReference.from_strings(name, version))
        except InvalidVersionError:
            logger.warning(
                "Skipping %s in %s: unsupported version %r",
                name,
                file_path,
                version,
            )

    return tuple(references)


def _read_imports(root: ET.Element) -> Tuple[Import, ...]:
    return tuple(
        Import(element.get("Project", ""))
        for element in _iter_local(root, "Import")
        if element.get("Project")
    )


def parse_less_strict_project_file(
    text: str,
    file_path: str,
    *,
    encoding: str = "utf-8",
    bom: bytes = b"",
) -> ProjectFile:
    """Parse a project or properties file without enforcing project rules.

    The ``Sdk`` attribute and target frameworks are optional.

    Args:
        text: XML content, without byte order mark.
        file_path: Path recorded on the result and used in errors.
        encoding: Codec the text was decoded with.
        bom: Byte order mark the file started with.

    Raises:
        ProjectParseError: The XML is unreadable or the root is not
            ``Project``.
    """
    root = _load_root(text, file_path)

    return ProjectFile(
        file_path=file_path,
        target_frameworks=_parse_frameworks(_read_target_frameworks(root)),
        package_references=_read_package_references(root, file_path),
        sdk=root.get("Sdk"),
        imports=_read_imports(root),
        encoding=encoding,
        bom=bom,
        source_text=text,
    )


def parse_project_file(
    text: str,
    file_path: str,
    *,
    encoding: str = "utf-8",
    bom: bytes = b"",
) -> ProjectFile:
    """Parse a ``.csproj``/``.fsproj`` file.

    In addition to :func:`parse_less_strict_project_file` this requires a
    supported ``Sdk`` attribute and at least one target framework.

    Raises:
        ProjectParseError: The file is not a supported SDK-style project.
    """
    root = _load_root(text, file_path)

    sdk = root.get("Sdk")
    if sdk is None:
        raise ProjectParseError(
            ERR_SDK_ATTRIBUTE_MISSING.format(file_path),
            file_path=file_path,
        )

    if sdk not in SUPPORTED_SDKS:
        raise ProjectParseError(
            ERR_UNSUPPORTED_SDK.format(sdk, ", ".join(SUPPORTED_SDKS)),
            file_path=file_path,
        )

    if _read_target_frameworks(root) is None:
        raise ProjectParseError(ERR_TARGET_FRAMEWORK_MISSING, file_path=file_path)

    project = parse_less_strict_project_file(
        text,
        file_path,
        encoding=encoding,
        bom=bom,
    )

    if not project.target_frameworks:
        raise ProjectParseError(ERR_TARGET_FRAMEWORK_MISSING, file_path=file_path)

    return project


def is_project_path(file_path: str) -> bool:
    """Return ``True`` for ``.csproj``/``.fsproj`` paths."""
    return file_path.lower().endswith(tuple(PROJECT_EXTENSIONS))


# ---------------------------------------------------------------------------
# Reader
# ---------------------------------------------------------------------------


class ProjectFileReader:
    """Read project files from disk.

    Projects are parsed strictly; every other file (``.props``) loosely.
    """

    def read_project_file(self, file_path: str) -> ProjectFile:
        data = safe_read_bytes(file_path)
        text, encoding, bom = decode_project_bytes(data, file_path)

        parse = parse_project_file if is_project_path(file_path) else parse_less_strict_project_file
        project = parse(text, file_path, encoding=encoding, bom=bom)

        logger.debug(
            "Read %s (%d packages, %d frameworks)",
            file_path,
            project.package_count,
            len(project.target_frameworks),
        )
        return project

    async def read_project_file_async(self, file_path: str) -> ProjectFile:
        return await asyncio.to_thread(self.read_project_file, file_path)
