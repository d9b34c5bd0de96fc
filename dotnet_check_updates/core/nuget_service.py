"""
NuGet registry services.

Two questions are asked of a feed: which versions of a package exist,
and which target frameworks a given version supports. Answers come from
the v3 flat container (``index.json`` and the ``.nuspec``) with the
registration catalog entry as a fallback when the nuspec names no
frameworks.

Services:

- :class:`DefaultNuGetService` talks to ``api.nuget.org`` directly.
- :class:`V3FeedService` works with any v3 feed by reading its service
  index first.
- :class:`MultiSourceNuGetService` tries a list of services in order and
  caches the answers for the rest of the run.

Typical usage::

    async with HTTPClient() as http:
        service = MultiSourceNuGetService([DefaultNuGetService(http)])
        versions = await service.get_package_versions("Serilog")
"""

from __future__ import annotations

import httpx
import asyncio
import xml.etree.ElementTree as ET
from typing import Dict, Iterable, List, Optional, Protocol, Sequence, Set, Tuple

from dotnet_check_updates.constants import (
    FLAT_CONTAINER_PATH,
    NUGET_ORG_BASE,
    NUGET_ORG_INDEX,
    PACKAGE_BASE_ADDRESS_TYPE,
    REGISTRATION_PATH,
    REGISTRATIONS_BASE_URL_TYPE,
)
from dotnet_check_updates.core.catalog_reader import CatalogFrameworkReader
from dotnet_check_updates.exceptions import CheckUpdatesError, NuGetError
from dotnet_check_updates.models.framework import ANY_FRAMEWORK, Framework, parse_framework
from dotnet_check_updates.models.version import NuGetVersion
from dotnet_check_updates.utils.http import HTTPClient
from dotnet_check_updates.utils.logger import get_logger

logger = get_logger("nuget")


class NuGetService(Protocol):
    """Registry lookups needed to resolve upgrades."""

    async def get_package_versions(self, package_id: str) -> List[NuGetVersion]:
        ...

    async def get_supported_frameworks(self, package_id: str, version: str) -> Set[Framework]:
        ...


# ---------------------------------------------------------------------------
# Nuspec parsing
# ---------------------------------------------------------------------------


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1] if tag.startswith("{") else tag


def _children(element: ET.Element, name: str) -> List[ET.Element]:
    return [child for child in element if _local_name(child.tag) == name]


def _add_framework(frameworks: Set[Framework], value: Optional[str]) -> None:
    framework = ANY_FRAMEWORK if not value else parse_framework(value)
    if framework is not None:
        frameworks.add(framework)


def _read_grouped(section: ET.Element, item_name: str, frameworks: Set[Framework]) -> None:
    """Read a ``<dependencies>``/``<references>`` style section.

    Groups contribute their ``targetFramework``; items outside any group
    apply to every framework.
    """
    groups = _children(section, "group")
    for group in groups:
        _add_framework(frameworks, group.get("targetFramework"))

    if not groups and _children(section, item_name):
        frameworks.add(ANY_FRAMEWORK)


def parse_nuspec_frameworks(nuspec: str) -> Set[Framework]:
    """Return the frameworks a ``.nuspec`` document declares.

    Frameworks come from ``dependencies`` and ``references`` groups and
    from ``frameworkAssembly`` entries. An empty result means the nuspec
    says nothing about frameworks.

    Raises:
        NuGetError: The document is not XML.
    """
    try:
        root = ET.fromstring(nuspec)
    except ET.ParseError as exc:
        raise NuGetError("Invalid nuspec document") from exc

    frameworks: Set[Framework] = set()
    metadata = next(iter(_children(root, "metadata")), None)
    if metadata is None:
        return frameworks

    for section in _children(metadata, "dependencies"):
        _read_grouped(section, "dependency", frameworks)

    for section in _children(metadata, "references"):
        _read_grouped(section, "reference", frameworks)

    for section in _children(metadata, "frameworkAssemblies"):
        for assembly in _children(section, "frameworkAssembly"):
            names = (assembly.get("targetFramework") or "").split(",")
            for name in names:
                _add_framework(frameworks, name.strip())

    return frameworks


# ---------------------------------------------------------------------------
# API client
# ---------------------------------------------------------------------------


def _package_path(package_id: str) -> str:
    return package_id.lower()


class NuGetApiClient:
    """Flat container and registration requests against one feed.

    Args:
        http: Shared HTTP client.
        package_base_address: Flat container root, e.g.
            ``https://api.nuget.org/v3-flatcontainer``.
        registrations_base_url: Registration root used for the catalog
            fallback; ``None`` disables it.
        catalog_reader: Reader for catalog entries.
    """

    def __init__(
        self,
        http: HTTPClient,
        package_base_address: str,
        registrations_base_url: Optional[str] = None,
        catalog_reader: Optional[CatalogFrameworkReader] = None,
    ) -> None:
        self.http = http
        self.package_base_address = package_base_address.rstrip("/")
        self.registrations_base_url = (
            registrations_base_url.rstrip("/") if registrations_base_url else None
        )
        self.catalog_reader = catalog_reader or CatalogFrameworkReader()

    async def get_package_versions(self, package_id: str) -> List[NuGetVersion]:
        """Return every published version; unknown packages yield ``[]``."""
        package = _package_path(package_id)
        url = f"{self.package_base_address}/{package}/index.json"

        try:
            data = await self.http.get_json(url)
        except NuGetError as exc:
            if exc.status_code == 404:
                return []
            raise

        versions: List[NuGetVersion] = []
        for value in data.get("versions") or []:
            version = NuGetVersion.try_parse(value) if isinstance(value, str) else None
            if version is None:
                logger.debug("Ignoring version %r of %s", value, package_id)
                continue
            versions.append(version)

        return versions

    async def get_supported_frameworks(self, package_id: str, version: str) -> Set[Framework]:
        """Read the frameworks of one version from its nuspec."""
        package = _package_path(package_id)
        version = version.lower()
        url = f"{self.package_base_address}/{package}/{version}/{package}.nuspec"

        text = await self.http.get_text(url)
        try:
            return parse_nuspec_frameworks(text)
        except NuGetError as exc:
            raise NuGetError(
                f"Failed to get {url}",
                url=url,
                package_name=package_id,
            ) from exc

    async def get_supported_frameworks_from_catalog(
        self,
        package_id: str,
        version: str,
    ) -> Set[Framework]:
        """Read the frameworks of one version from its catalog entry."""
        if not self.registrations_base_url:
            return set()

        package = _package_path(package_id)
        url = f"{self.registrations_base_url}/{package}/{version.lower()}.json"

        leaf = await self.http.get_json(url)
        catalog_entry = leaf.get("catalogEntry")

        if not isinstance(catalog_entry, str) or not catalog_entry.startswith(("http://", "https://")):
            return set()

        catalog = await self.http.get_json(catalog_entry)
        return self.catalog_reader.read_frameworks(catalog)


# ---------------------------------------------------------------------------
# Services
# ---------------------------------------------------------------------------


class _ApiClientService:
    """Shared behaviour of services backed by a :class:`NuGetApiClient`."""

    async def _get_api_client(self) -> NuGetApiClient:
        raise NotImplementedError

    async def get_package_versions(self, package_id: str) -> List[NuGetVersion]:
        client = await self._get_api_client()
        return await client.get_package_versions(package_id)

    async def get_supported_frameworks(self, package_id: str, version: str) -> Set[Framework]:
        client = await self._get_api_client()
        frameworks = await client.get_supported_frameworks(package_id, version)

        if not frameworks:
            frameworks = await client.get_supported_frameworks_from_catalog(package_id, version)

        return frameworks


class DefaultNuGetService(_ApiClientService):
    """Service for the public NuGet gallery.

    The gallery's flat container and registration addresses are well
    known, so the service index is never fetched.
    """

    def __init__(
        self,
        http: HTTPClient,
        *,
        base_url: str = NUGET_ORG_BASE,
        catalog_reader: Optional[CatalogFrameworkReader] = None,
    ) -> None:
        base_url = base_url.rstrip("/")
        self.source = base_url
        self.client = NuGetApiClient(
            http,
            f"{base_url}/{FLAT_CONTAINER_PATH}",
            f"{base_url}/{REGISTRATION_PATH}",
            catalog_reader,
        )

    async def _get_api_client(self) -> NuGetApiClient:
        return self.client


def _find_resource(resources: Iterable[object], resource_type: str) -> Optional[str]:
    for resource in resources:
        if not isinstance(resource, dict):
            continue
        types = resource.get("@type")
        if isinstance(types, str):
            types = [types]
        if not isinstance(types, list):
            continue
        if any(isinstance(t, str) and t.startswith(resource_type) for t in types):
            url = resource.get("@id")
            if isinstance(url, str) and url:
                return url
    return None


class V3FeedService(_ApiClientService):
    """Service for an arbitrary NuGet v3 feed.

    The feed's service index is fetched once to locate its
    ``PackageBaseAddress`` and ``RegistrationsBaseUrl`` resources.

    Args:
        http: Shared HTTP client.
        index_url: Service index, e.g. ``https://example.org/v3/index.json``.
        catalog_reader: Reader for catalog entries.
    """

    def __init__(
        self,
        http: HTTPClient,
        index_url: str,
        *,
        catalog_reader: Optional[CatalogFrameworkReader] = None,
    ) -> None:
        self.http = http
        self.source = index_url
        self.catalog_reader = catalog_reader
        self._client: Optional[NuGetApiClient] = None
        self._lock = asyncio.Lock()

    async def _get_api_client(self) -> NuGetApiClient:
        if self._client is not None:
            return self._client

        async with self._lock:
            if self._client is None:
                index = await self.http.get_json(self.source)
                resources = index.get("resources") or []

                base_address = _find_resource(resources, PACKAGE_BASE_ADDRESS_TYPE)
                if base_address is None:
                    raise NuGetError(
                        f"Feed {self.source} has no {PACKAGE_BASE_ADDRESS_TYPE} resource",
                        url=self.source,
                    )

                self._client = NuGetApiClient(
                    self.http,
                    base_address,
                    _find_resource(resources, REGISTRATIONS_BASE_URL_TYPE),
                    self.catalog_reader,
                )
                logger.debug("Feed %s uses %s", self.source, base_address)

        return self._client


def _service_name(service: object) -> str:
    source = getattr(service, "source", None)
    name = type(service).__name__
    return f"{name}({source})" if source else name


class MultiSourceNuGetService:
    """Ask several services in order, keeping the first non-empty answer.

    A failing source is logged and skipped; cancellation is never
    swallowed. Answers are cached for the lifetime of the instance, so
    repeated lookups of a package shared by several projects only hit
    the network once.

    Args:
        services: Services in priority order.
    """

    def __init__(self, services: Sequence[NuGetService]) -> None:
        self.services = list(services)
        self._versions: Dict[str, List[NuGetVersion]] = {}
        self._frameworks: Dict[Tuple[str, str], Set[Framework]] = {}
        self._locks: Dict[object, asyncio.Lock] = {}

    def _lock_for(self, key: object) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        return lock

    async def get_package_versions(self, package_id: str) -> List[NuGetVersion]:
        key = package_id.lower()

        if key in self._versions:
            return self._versions[key]

        async with self._lock_for(key):
            if key in self._versions:
                return self._versions[key]

            found: List[NuGetVersion] = []
            for service in self.services:
                try:
                    found = await service.get_package_versions(package_id)
                except (CheckUpdatesError, httpx.HTTPError, OSError, ValueError) as exc:
                    logger.warning(
                        "%s failed to get %s versions: %s",
                        _service_name(service),
                        package_id,
                        exc,
                    )
                    continue

                if found:
                    logger.debug(
                        "%s versions resolved by %s",
                        package_id,
                        _service_name(service),
                    )
                    break

            self._versions[key] = found
            return found

    async def get_supported_frameworks(self, package_id: str, version: str) -> Set[Framework]:
        key = (package_id.lower(), version.lower())

        if key in self._frameworks:
            return self._frameworks[key]

        async with self._lock_for(key):
            if key in self._frameworks:
                return self._frameworks[key]

            found: Set[Framework] = set()
            for service in self.services:
                try:
                    found = await service.get_supported_frameworks(package_id, version)
                except (CheckUpdatesError, httpx.HTTPError, OSError, ValueError) as exc:
                    logger.warning(
                        "%s failed to get %s %s frameworks: %s",
                        _service_name(service),
                        package_id,
                        version,
                        exc,
                    )
                    continue

                if found:
                    logger.debug(
                        "%s %s frameworks resolved by %s",
                        package_id,
                        version,
                        _service_name(service),
                    )
                    break

            self._frameworks[key] = found
            return found


def create_nuget_service(
    http: HTTPClient,
    source_urls: Sequence[str],
    catalog_reader: Optional[CatalogFrameworkReader] = None,
) -> MultiSourceNuGetService:
    """Build the service used for a run from feed service index URLs.

    The public gallery gets the fast :class:`DefaultNuGetService`; every
    other feed a :class:`V3FeedService`. One catalog reader is shared so
    its cache spans all feeds.
    """
    catalog_reader = catalog_reader or CatalogFrameworkReader()
    services: List[NuGetService] = []

    for url in source_urls:
        if url.rstrip("/").lower() == NUGET_ORG_INDEX.lower():
            services.append(DefaultNuGetService(http, catalog_reader=catalog_reader))
        else:
            services.append(V3FeedService(http, url, catalog_reader=catalog_reader))

    return MultiSourceNuGetService(services)
