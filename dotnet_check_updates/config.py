"""Configuration file loader for dotnet-check-updates.

Handles discovery, loading, parsing, and validation of the optional
``dotnet-check-updates.toml`` file. Settings live under the
``[dotnet-check-updates]`` table.

Discovery order:

1. Explicit path from ``--config`` or ``DCU_CONFIG``
2. ``dotnet-check-updates.toml`` in the working directory

Configuration precedence: defaults < config file < CLI args.

Typical usage::

    config = load_config()  # Auto-discover
    config = load_config(Path("custom.toml"))  # Explicit path

Example (``dotnet-check-updates.toml``)::

    [dotnet-check-updates]
    target = "minor"
    recurse = true
    depth = 2
    exclude = ["Microsoft.*"]
    sources = ["https://api.nuget.org/v3/index.json"]
"""

from __future__ import annotations


import tomli as tomllib
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple
from dataclasses import dataclass, field

from dotnet_check_updates.exceptions import ConfigError, InvalidUpgradeTargetError
from dotnet_check_updates.models.upgrade import UpgradeTarget
from dotnet_check_updates.utils.logger import get_logger
from dotnet_check_updates.constants import (
    CONFIG_FILE_NAME,
    CONFIG_SECTION,
    DEFAULT_CONCURRENCY,
    DEFAULT_DEPTH,
    DEFAULT_TARGET,
    MAX_CONCURRENCY,
    MAX_DEPTH,
)

logger = get_logger("config")


@dataclass
class CheckUpdatesConfig:
    """Parsed and validated configuration.

    All fields have defaults, so empty config files are valid.

    Attributes:
        target: Upgrade target name, e.g. ``latest`` or ``minor``.
        concurrency: Package lookups running at once per project.
        depth: Sub-directory depth searched with ``recurse``.
        recurse: Search sub-directories for projects.
        ascii_tree: Draw trees with ASCII guides.
        show_absolute: Show absolute paths.
        include: Include filters.
        exclude: Exclude filters.
        sources: NuGet feed service index URLs.
        use_nuget_config: Read package sources from ``nuget.config`` files.
        source_path: Path to loaded config file, or ``None`` if using defaults.
    """

    target: str = DEFAULT_TARGET
    concurrency: int = DEFAULT_CONCURRENCY
    depth: int = DEFAULT_DEPTH
    recurse: bool = False
    ascii_tree: bool = False
    show_absolute: bool = False
    include: List[str] = field(default_factory=list)
    exclude: List[str] = field(default_factory=list)
    sources: List[str] = field(default_factory=list)
    use_nuget_config: bool = True

    # Metadata (not a user-facing option)
    source_path: Optional[Path] = field(default=None, repr=False)

    def to_log_dict(self) -> Dict[str, Any]:
        """Return configuration as dictionary for debug logging.

        Excludes ``source_path`` metadata.
        """
        return {name: getattr(self, name) for name in _OPTION_TYPES}


#: Option name -> (expected type, human readable type name)
_OPTION_TYPES: Dict[str, Tuple[type, str]] = {
    "target": (str, "a string"),
    "concurrency": (int, "an integer"),
    "depth": (int, "an integer"),
    "recurse": (bool, "a boolean"),
    "ascii_tree": (bool, "a boolean"),
    "show_absolute": (bool, "a boolean"),
    "include": (list, "a list of strings"),
    "exclude": (list, "a list of strings"),
    "sources": (list, "a list of strings"),
    "use_nuget_config": (bool, "a boolean"),
}

#: Inclusive bounds of integer options.
_OPTION_RANGES: Dict[str, Tuple[int, int]] = {
    "concurrency": (1, MAX_CONCURRENCY),
    "depth": (0, MAX_DEPTH),
}


def discover_config_file(
    explicit_path: Optional[Path] = None,
    cwd: Optional[Path] = None,
) -> Optional[Path]:
    """Find the configuration file to load.

    Args:
        explicit_path: Explicit config path. If provided, must exist.
        cwd: Directory searched for ``dotnet-check-updates.toml``;
            defaults to the process working directory.

    Returns:
        Resolved path to config file, or ``None`` if not found.

    Raises:
        ConfigError: Explicit path provided but does not exist.
    """
    if explicit_path is not None:
        resolved = explicit_path.resolve()
        if not resolved.is_file():
            raise ConfigError(
                f"Configuration file not found: {explicit_path}",
                config_path=str(explicit_path),
            )
        logger.debug("Using explicit config: %s", resolved)
        return resolved

    candidate = (cwd or Path.cwd()) / CONFIG_FILE_NAME
    if candidate.is_file():
        logger.debug("Found %s: %s", CONFIG_FILE_NAME, candidate)
        return candidate

    logger.debug("No configuration file found")
    return None


def load_config(
    config_path: Optional[Path] = None,
    cwd: Optional[Path] = None,
) -> CheckUpdatesConfig:
    """Load and validate configuration.

    Returns config with defaults if no file is found.

    Raises:
        ConfigError: File cannot be parsed, has unknown keys, or invalid values.
    """
    resolved = discover_config_file(config_path, cwd)

    if resolved is None:
        logger.debug("No config file found, using defaults")
        return CheckUpdatesConfig()

    logger.info("Loading configuration from %s", resolved)
    raw = _read_toml(resolved)

    section = raw.get(CONFIG_SECTION, {})
    if not isinstance(section, dict):
        raise ConfigError(
            f"[{CONFIG_SECTION}] must be a table",
            config_path=str(resolved),
        )

    if not section:
        logger.debug("Config file found but no [%s] section, using defaults", CONFIG_SECTION)
        return CheckUpdatesConfig(source_path=resolved)

    config = _parse_section(section, config_path=str(resolved))
    config.source_path = resolved

    logger.debug("Loaded configuration: %s", config.to_log_dict())
    return config


def _read_toml(path: Path) -> Dict[str, Any]:
    """Read and parse a TOML file.

    Raises:
        ConfigError: File cannot be read or is invalid TOML.
    """
    try:
        with open(path, "rb") as fh:
            return tomllib.load(fh)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(
            f"Invalid TOML in {path.name}: {exc}",
            config_path=str(path),
        ) from exc
    except OSError as exc:
        raise ConfigError(
            f"Cannot read configuration file {path}: {exc}",
            config_path=str(path),
        ) from exc


def _parse_section(
    section: Dict[str, Any],
    *,
    config_path: str,
) -> CheckUpdatesConfig:
    """Parse and validate the ``[dotnet-check-updates]`` table.

    Rejects unknown keys, type mismatches and out-of-range values.

    Raises:
        ConfigError: Unknown keys or invalid values.
    """
    config = CheckUpdatesConfig()

    unknown = set(section.keys()) - set(_OPTION_TYPES)
    if unknown:
        raise ConfigError(
            f"Unknown configuration keys: {', '.join(sorted(unknown))}",
            config_path=config_path,
        )

    for name, value in section.items():
        expected, type_name = _OPTION_TYPES[name]

        # bool is a subclass of int; reject it for integer options
        valid = isinstance(value, expected) and not (expected is int and isinstance(value, bool))
        if valid and expected is list:
            valid = all(isinstance(item, str) for item in value)

        if not valid:
            raise ConfigError(
                f"{name} must be {type_name}, got {type(value).__name__}",
                config_path=config_path,
                option=name,
            )

        if name in _OPTION_RANGES:
            low, high = _OPTION_RANGES[name]
            if not low <= value <= high:
                raise ConfigError(
                    f"{name} must be between {low} and {high}, got {value}",
                    config_path=config_path,
                    option=name,
                )

        if name == "target":
            try:
                UpgradeTarget.parse(value)
            except InvalidUpgradeTargetError as exc:
                raise ConfigError(
                    str(exc),
                    config_path=config_path,
                    option=name,
                ) from exc

        setattr(config, name, list(value) if expected is list else value)

    return config
