"""
Target framework model.

Parses target framework monikers as they appear in project files
(``net8.0``, ``netstandard2.0``, ``net472``) and in package metadata
(``.NETStandard2.0``, ``.NETFramework,Version=v4.7.2``), and decides
whether a package built for one framework can be consumed by a project
targeting another.

Example:
    >>> project = parse_framework("net6.0")
    >>> package = parse_framework(".NETStandard2.0")
    >>> is_compatible(project, package)
    True
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Tuple

from packaging.version import InvalidVersion, Version

NET_STANDARD = ".NETStandard"
NET_CORE_APP = ".NETCoreApp"
NET_FRAMEWORK = ".NETFramework"
ANY = "Any"

#: Short moniker prefix -> framework identifier. Longer prefixes first.
_SHORT_IDENTIFIERS: Tuple[Tuple[str, str], ...] = (
    ("netstandard", NET_STANDARD),
    ("netcoreapp", NET_CORE_APP),
    ("netcore", ".NETCore"),
    ("netmf", ".NETMicroFramework"),
    ("net", NET_FRAMEWORK),
    ("monoandroid", "MonoAndroid"),
    ("monotouch", "MonoTouch"),
    ("monomac", "MonoMac"),
    ("xamarinios", "Xamarin.iOS"),
    ("xamarinmac", "Xamarin.Mac"),
    ("xamarintvos", "Xamarin.TVOS"),
    ("xamarinwatchos", "Xamarin.WatchOS"),
    ("uap", "UAP"),
    ("tizen", "Tizen"),
    ("wpa", "WindowsPhoneApp"),
    ("wp", "WindowsPhone"),
    ("win", "Windows"),
    ("sl", "Silverlight"),
)

_LONG_IDENTIFIERS: Dict[str, str] = {
    identifier.lower(): identifier for _, identifier in _SHORT_IDENTIFIERS
}

_SHORT_NAMES: Dict[str, str] = {identifier: short for short, identifier in _SHORT_IDENTIFIERS}

_ANY_NAMES = frozenset({"", "any", "agnostic", "dotnet"})

_LONG_RE = re.compile(
    r"^(?P<identifier>[.A-Za-z]+?)\s*(?:,\s*Version\s*=\s*v?|v)?(?P<version>[\d.]*)"
    r"(?:,\s*Profile\s*=\s*\w+)?$",
    re.IGNORECASE,
)
_SHORT_RE = re.compile(
    r"^(?P<identifier>[a-z]+?)(?P<version>\d[\d.]*)?(?:-(?P<platform>[a-z]+)[\d.]*)?$",
    re.IGNORECASE,
)

#: Highest .NET Standard version consumable by a framework family
#: from the given minimum version on, newest thresholds first.
_NET_STANDARD_FALLBACKS: Dict[str, Tuple[Tuple[Version, Version], ...]] = {
    NET_CORE_APP: (
        (Version("3.0"), Version("2.1")),
        (Version("2.0"), Version("2.0")),
        (Version("1.0"), Version("1.6")),
    ),
    NET_FRAMEWORK: (
        (Version("4.6.1"), Version("2.0")),
        (Version("4.6"), Version("1.3")),
        (Version("4.5.1"), Version("1.2")),
        (Version("4.5"), Version("1.1")),
    ),
    "MonoAndroid": ((Version("0"), Version("2.1")),),
    "Xamarin.iOS": ((Version("0"), Version("2.1")),),
    "Xamarin.Mac": ((Version("0"), Version("2.1")),),
    "Xamarin.TVOS": ((Version("0"), Version("2.1")),),
    "Xamarin.WatchOS": ((Version("0"), Version("2.1")),),
    "UAP": ((Version("10.0.16299"), Version("2.0")),),
    "Tizen": (
        (Version("6.0"), Version("2.1")),
        (Version("4.0"), Version("2.0")),
    ),
}


@dataclass(frozen=True)
class Framework:
    """A parsed target framework.

    Attributes:
        identifier: Framework family, e.g. ``.NETCoreApp``.
        version: Framework version.
        platform: Optional OS platform for ``net5.0+`` monikers, lowercase.
    """

    identifier: str
    version: Version
    platform: str = ""

    @property
    def is_any(self) -> bool:
        return self.identifier == ANY

    def get_short_folder_name(self) -> str:
        """Return the moniker used in project files, e.g. ``net8.0``."""
        if self.is_any:
            return "any"

        release = self.version.release
        if self.identifier == NET_CORE_APP and self.version.major >= 5:
            name = f"net{release[0]}.{release[1] if len(release) > 1 else 0}"
            return f"{name}-{self.platform}" if self.platform else name

        short = _SHORT_NAMES.get(self.identifier, self.identifier.lower())
        if self.identifier in (NET_CORE_APP, NET_STANDARD):
            return f"{short}{release[0]}.{release[1] if len(release) > 1 else 0}"

        digits = "".join(str(part) for part in release).rstrip("0") or "0"
        if len(release) >= 2 and release[1] == 0 and len(digits) == 1:
            digits += "0"
        return f"{short}{digits}"

    def __str__(self) -> str:
        return self.get_short_folder_name()


ANY_FRAMEWORK = Framework(ANY, Version("0"))


def _parse_framework_version(text: str) -> Optional[Version]:
    if not text:
        return Version("0")

    # Compact spellings such as "472" mean 4.7.2
    if "." not in text and len(text) > 1:
        text = ".".join(text)

    try:
        return Version(text)
    except InvalidVersion:
        return None


def parse_framework(value: Optional[str]) -> Optional[Framework]:
    """Parse a target framework moniker.

    Args:
        value: Short (``net6.0``) or long (``.NETStandard,Version=v2.0``)
            framework name.

    Returns:
        The parsed :class:`Framework`, or ``None`` for unknown or
        unsupported monikers such as ``portable-net45+win8``.
    """
    text = (value or "").strip()

    if text.lower() in _ANY_NAMES:
        return ANY_FRAMEWORK

    if text.startswith("."):
        return _parse_long(text)

    if "," in text:
        return _parse_long(text)

    return _parse_short(text)


def _parse_long(text: str) -> Optional[Framework]:
    match = _LONG_RE.match(text)
    if match is None:
        return None

    identifier = _LONG_IDENTIFIERS.get(match.group("identifier").lower())
    if identifier is None:
        return None

    version = _parse_framework_version(match.group("version"))
    if version is None:
        return None

    return Framework(identifier, version)


def _parse_short(text: str) -> Optional[Framework]:
    match = _SHORT_RE.match(text)
    if match is None:
        return None

    short = match.group("identifier").lower()
    identifier = next((ident for prefix, ident in _SHORT_IDENTIFIERS if prefix == short), None)
    if identifier is None:
        return None

    raw_version = match.group("version") or ""
    platform = (match.group("platform") or "").lower()

    if identifier == NET_FRAMEWORK and "." in raw_version:
        # net5.0 and later are .NET (Core) releases
        version = _parse_framework_version(raw_version)
        if version is None:
            return None
        if version.major >= 5:
            return Framework(NET_CORE_APP, version, platform)
        return Framework(NET_FRAMEWORK, version) if not platform else None

    if platform:
        return None

    version = _parse_framework_version(raw_version)
    if version is None:
        return None

    return Framework(identifier, version)


# ---------------------------------------------------------------------------
# Compatibility
# ---------------------------------------------------------------------------


def _net_standard_limit(project: Framework) -> Optional[Version]:
    for minimum, limit in _NET_STANDARD_FALLBACKS.get(project.identifier, ()):
        if project.version >= minimum:
            return limit
    return None


def is_compatible(project: Framework, package: Framework) -> bool:
    """Return ``True`` if ``package`` assets can be used by ``project``.

    Args:
        project: Framework the consuming project targets.
        package: Framework a package version was built for.
    """
    if package.is_any:
        return True

    if project.identifier == package.identifier:
        if package.platform and package.platform != project.platform:
            return False
        return package.version <= project.version

    if package.identifier == NET_STANDARD:
        limit = _net_standard_limit(project)
        return limit is not None and package.version <= limit

    return False


def any_compatible(
    project_frameworks: Iterable[Framework],
    package_frameworks: Iterable[Framework],
) -> bool:
    """Return ``True`` if any project/package framework pair is compatible."""
    package_frameworks = list(package_frameworks)
    return any(
        is_compatible(ours, theirs)
        for ours in project_frameworks
        for theirs in package_frameworks
    )
