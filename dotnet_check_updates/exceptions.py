"""
Custom exception hierarchy for dotnet-check-updates.

This module defines structured exception types used across the tool.
All exceptions inherit from :class:`CheckUpdatesError` and support
optional structured metadata via the ``details`` attribute to improve
diagnostics and logging.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping, MutableMapping, Optional


class CheckUpdatesError(Exception):
    """Base exception for all dotnet-check-updates errors.

    It supports structured metadata via ``details`` for richer error
    reporting and debugging.

    Args:
        message: Human-readable error message.
        details: Optional structured metadata describing the error.
    """

    __slots__ = ("message", "details")

    def __init__(
        self,
        message: str,
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self.message: str = message
        self.details: MutableMapping[str, Any] = dict(details) if details else {}
        super().__init__(message)

    def __str__(self) -> str:
        if not self.details:
            return self.message
        formatted = ", ".join(f"{k}={v}" for k, v in self.details.items())
        return f"{self.message} ({formatted})"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, details={dict(self.details)!r})"
        )


def _add_if(details: MutableMapping[str, Any], key: str, value: Any) -> None:
    """Add a key to ``details`` only if ``value`` is not ``None``."""
    if value is not None:
        details[key] = value


def _truncate(text: str, max_length: int = 200) -> str:
    """Truncate long text for safe logging or error reporting."""
    if len(text) <= max_length:
        return text
    return text[:max_length] + "..."


# ---------------------------------------------------------------------------
# Versions and targets
# ---------------------------------------------------------------------------


class InvalidVersionError(CheckUpdatesError):
    """Raised when a NuGet version or version range cannot be parsed.

    Args:
        message: Error description.
        value: The offending string.
    """

    __slots__ = ("value",)

    def __init__(self, message: str, *, value: Optional[str] = None) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "value", value)
        super().__init__(message, details)
        self.value = value


class UnsupportedRangeError(CheckUpdatesError):
    """Raised when a version range has a shape that cannot be upgraded."""

    __slots__ = ("range",)

    def __init__(self, message: str, *, range: Optional[str] = None) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "range", range)
        super().__init__(message, details)
        self.range = range


class InvalidUpgradeTargetError(CheckUpdatesError):
    """Raised for an unknown upgrade target name.

    Args:
        value: The rejected target string.
        valid_values: Accepted spellings, listed in the message.
    """

    __slots__ = ("value", "valid_values")

    def __init__(self, value: str, valid_values: Iterable[str]) -> None:
        self.value = value
        self.valid_values = list(valid_values)
        super().__init__(
            f"Invalid upgrade target '{value}'. "
            f"Valid values are: {', '.join(self.valid_values)}"
        )


# ---------------------------------------------------------------------------
# Project files
# ---------------------------------------------------------------------------


class ProjectParseError(CheckUpdatesError):
    """Raised when a project or properties file cannot be parsed.

    Args:
        message: Error description.
        file_path: Path to the file being parsed.
    """

    __slots__ = ("file_path",)

    def __init__(
        self,
        message: str,
        *,
        file_path: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.file_path = file_path


class SolutionParseError(CheckUpdatesError):
    """Raised when a solution file cannot be read."""

    __slots__ = ("file_path",)

    def __init__(self, message: str, *, file_path: Optional[str] = None) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "file", file_path)
        super().__init__(message, details)
        self.file_path = file_path


# ---------------------------------------------------------------------------
# Network
# ---------------------------------------------------------------------------


class NetworkError(CheckUpdatesError):
    """Raised when HTTP or network operations fail.

    Args:
        message: Error description.
        url: URL being accessed.
        status_code: HTTP status code, if available.
        response_body: Raw response body, truncated for safety.
    """

    __slots__ = ("url", "status_code", "response_body")

    def __init__(
        self,
        message: str,
        *,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None,
    ) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "url", url)
        _add_if(details, "status_code", status_code)

        if response_body is not None:
            details["response"] = _truncate(response_body)

        super().__init__(message, details)

        self.url = url
        self.status_code = status_code
        self.response_body = response_body


class NuGetError(NetworkError):
    """Raised for failures related to a NuGet feed.

    Args:
        message: Error description.
        package_name: Name of the package involved.
        **kwargs: Additional arguments forwarded to ``NetworkError``.
    """

    __slots__ = ("package_name",)

    def __init__(
        self,
        message: str,
        *,
        package_name: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)

        self.package_name = package_name
        if package_name is not None:
            self.details["package"] = package_name


# ---------------------------------------------------------------------------
# Filesystem and configuration
# ---------------------------------------------------------------------------


class FileOperationError(CheckUpdatesError):
    """Raised when file system operations fail.

    Args:
        message: Error description.
        file_path: Path to the file involved.
        operation: Operation being performed (read/write).
        original_error: Original exception that triggered this error.
    """

    __slots__ = ("file_path", "operation", "original_error")

    def __init__(
        self,
        message: str,
        *,
        file_path: Optional[str] = None,
        operation: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "path", file_path)
        _add_if(details, "operation", operation)
        _add_if(
            details,
            "original_error",
            str(original_error) if original_error else None,
        )

        super().__init__(message, details)

        self.file_path = file_path
        self.operation = operation
        self.original_error = original_error


class ConfigError(CheckUpdatesError):
    """Raised when the configuration file is invalid.

    Args:
        message: Error description.
        config_path: Path of the configuration file.
        option: Offending option name, if any.
    """

    __slots__ = ("config_path", "option")

    def __init__(
        self,
        message: str,
        *,
        config_path: Optional[str] = None,
        option: Optional[str] = None,
    ) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "path", config_path)
        _add_if(details, "option", option)
        super().__init__(message, details)

        self.config_path = config_path
        self.option = option


# ---------------------------------------------------------------------------
# User interaction
# ---------------------------------------------------------------------------


class PromptCanceledError(CheckUpdatesError):
    """Raised when the user aborts an interactive prompt."""
