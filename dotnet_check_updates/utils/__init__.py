"""
Utility helpers for dotnet-check-updates.

This package provides reusable utilities used across the tool, including:

- Console output helpers (Rich-based)
- Logging configuration and retrieval
- Filesystem safety helpers and project file globbing
- Async HTTP client utilities
- Version range helpers

Only symbols listed in ``__all__`` are considered part of the public API.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Logging utilities
# ---------------------------------------------------------------------------

from dotnet_check_updates.utils.logger import (
    disable_logging,
    get_logger,
    is_logging_configured,
    level_from_environment,
    setup_logging,
)

# ---------------------------------------------------------------------------
# Filesystem utilities
# ---------------------------------------------------------------------------

from dotnet_check_updates.utils.filesystem import (
    FileFinder,
    safe_read_bytes,
    safe_read_file,
    safe_write_bytes,
)

# ---------------------------------------------------------------------------
# Console utilities
# ---------------------------------------------------------------------------

from dotnet_check_updates.utils.console import (
    confirm,
    create_tree,
    get_raw_console,
    get_upgraded_version_string,
    longest,
    print_error,
    print_line,
    print_markup,
    print_renderable,
    print_success,
    print_tree,
    print_warning,
    reconfigure_console,
    tree_renderable,
)

# ---------------------------------------------------------------------------
# HTTP utilities
# ---------------------------------------------------------------------------

from dotnet_check_updates.utils.http import HTTPClient

# ---------------------------------------------------------------------------
# Version utilities
# ---------------------------------------------------------------------------

from dotnet_check_updates.utils.version_utils import get_upgrade_type, version_string

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

__all__ = [
    # Console
    "confirm",
    "create_tree",
    "print_tree",
    "print_line",
    "print_error",
    "print_markup",
    "print_success",
    "print_warning",
    "longest",
    "get_raw_console",
    "print_renderable",
    "tree_renderable",
    "reconfigure_console",
    "get_upgraded_version_string",
    # Logging
    "get_logger",
    "setup_logging",
    "disable_logging",
    "is_logging_configured",
    "level_from_environment",
    # Filesystem
    "FileFinder",
    "safe_read_file",
    "safe_read_bytes",
    "safe_write_bytes",
    # HTTP
    "HTTPClient",
    # Version utilities
    "get_upgrade_type",
    "version_string",
]
