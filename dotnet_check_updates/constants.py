"""
Centralized constants for dotnet-check-updates.

This module defines immutable values used across the tool, including
registry endpoints, project file names and patterns, CLI defaults, and
logging formats. All values are intended to be treated as read-only.
"""

from typing import Final, Mapping, Sequence

# ---------------------------------------------------------------------------
# Project metadata
# ---------------------------------------------------------------------------

#: Name of the command line program.
CLI_NAME: Final[str] = "dotnet-check-updates"

#: HTTP User-Agent template used for outbound requests.
USER_AGENT_TEMPLATE: Final[str] = "dotnet-check-updates/{version}"

# ---------------------------------------------------------------------------
# NuGet endpoints
# ---------------------------------------------------------------------------

#: Service index of the public NuGet gallery.
NUGET_ORG_INDEX: Final[str] = "https://api.nuget.org/v3/index.json"

#: Base address of the public NuGet gallery.
NUGET_ORG_BASE: Final[str] = "https://api.nuget.org"

#: Flat container (package base address) path relative to the base URL.
FLAT_CONTAINER_PATH: Final[str] = "v3-flatcontainer"

#: Registration path used to locate catalog entries.
REGISTRATION_PATH: Final[str] = "v3/registration5-gz-semver2"

#: Service index resource types understood by the generic feed service.
PACKAGE_BASE_ADDRESS_TYPE: Final[str] = "PackageBaseAddress/3.0.0"
REGISTRATIONS_BASE_URL_TYPE: Final[str] = "RegistrationsBaseUrl"

# ---------------------------------------------------------------------------
# HTTP configuration
# ---------------------------------------------------------------------------

#: Default network timeout in seconds.
DEFAULT_TIMEOUT: Final[int] = 30

#: Maximum number of retries for failed HTTP requests.
DEFAULT_MAX_RETRIES: Final[int] = 3

# ---------------------------------------------------------------------------
# Project files and patterns
# ---------------------------------------------------------------------------

CSPROJ_EXTENSION: Final[str] = ".csproj"
FSPROJ_EXTENSION: Final[str] = ".fsproj"
SLN_EXTENSION: Final[str] = ".sln"
SLNX_EXTENSION: Final[str] = ".slnx"
PROPS_EXTENSION: Final[str] = ".props"

#: Extensions of project files that are parsed strictly.
PROJECT_EXTENSIONS: Final[Sequence[str]] = (CSPROJ_EXTENSION, FSPROJ_EXTENSION)

CSPROJ_PATTERN: Final[str] = "*" + CSPROJ_EXTENSION
FSPROJ_PATTERN: Final[str] = "*" + FSPROJ_EXTENSION
SLN_PATTERN: Final[str] = "*" + SLN_EXTENSION

DIRECTORY_BUILD_PROPS: Final[str] = "Directory.Build.props"
DIRECTORY_PACKAGES_PROPS: Final[str] = "Directory.Packages.props"

#: Shared property files discovered by walking up from each project.
SHARED_PROPS_FILES: Final[Sequence[str]] = (
    DIRECTORY_BUILD_PROPS,
    DIRECTORY_PACKAGES_PROPS,
)

#: NuGet configuration file names, in lookup order.
NUGET_CONFIG_FILES: Final[Sequence[str]] = ("nuget.config", "NuGet.config", "NuGet.Config")

#: Project SDKs accepted by the strict parser.
SUPPORTED_SDKS: Final[Sequence[str]] = (
    "Microsoft.NET.Sdk",
    "Microsoft.NET.Sdk.Web",
    "Microsoft.NET.Sdk.BlazorWebAssembly",
    "Microsoft.NET.Sdk.Razor",
    "Microsoft.NET.Sdk.Worker",
    "Microsoft.NET.Sdk.WindowsDesktop",
)

#: Elements that carry package name/version attributes.
PACKAGE_ELEMENTS: Final[Sequence[str]] = ("PackageReference", "PackageVersion")

# ---------------------------------------------------------------------------
# CLI defaults and limits
# ---------------------------------------------------------------------------

DEFAULT_DEPTH: Final[int] = 4
MAX_DEPTH: Final[int] = 16

DEFAULT_CONCURRENCY: Final[int] = 8
MAX_CONCURRENCY: Final[int] = 32

DEFAULT_TARGET: Final[str] = "latest"

#: Option flag names used in validation messages.
OPTION_FLAGS: Final[Mapping[str, str]] = {
    "cwd": "--cwd",
    "project": "--project",
    "solution": "--solution",
    "depth": "--depth",
    "concurrency": "--concurrency",
    "target": "--target",
}

# ---------------------------------------------------------------------------
# User-facing messages
# ---------------------------------------------------------------------------

MSG_CHOOSE_PACKAGES: Final[str] = "Choose which packages to update"
MSG_UPGRADING_SELECTED: Final[str] = "Upgrading selected packages"
MSG_NO_PACKAGES_MATCH_FILTERS: Final[str] = "No packages matched provided filters."
MSG_ALL_PACKAGES_LATEST: Final[str] = "All packages match their latest versions."

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

#: Name of the configuration file looked up in the working directory.
CONFIG_FILE_NAME: Final[str] = "dotnet-check-updates.toml"

#: Table holding the settings inside the configuration file.
CONFIG_SECTION: Final[str] = "dotnet-check-updates"

# ---------------------------------------------------------------------------
# Security constraints
# ---------------------------------------------------------------------------

#: Maximum allowed file size (in bytes) when reading project files.
MAX_FILE_SIZE: Final[int] = 10 * 1024 * 1024  # 10 MB

# ---------------------------------------------------------------------------
# Logging configuration
# ---------------------------------------------------------------------------

#: Environment variable enabling diagnostic logging.
ENV_ENABLE_LOGGING: Final[str] = "DCU_ENABLE_LOGGING"

#: Environment variable selecting the diagnostic log level.
ENV_LOG_LEVEL: Final[str] = "DCU_LOGLEVEL"

#: Timestamp format for verbose logging.
LOG_DATE_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S"

#: Default log format (non-verbose).
LOG_DEFAULT_FORMAT: Final[str] = "%(levelname)s: %(message)s"

#: Verbose log format including timestamp and logger name.
LOG_VERBOSE_FORMAT: Final[str] = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
