"""
Filesystem utilities for dotnet-check-updates.

This module provides safe helpers for reading and atomically writing
project files, glob-based file discovery that honours ``.gitignore``,
and the MSBuild-style upward search for a file. All filesystem errors
are normalized to ``FileOperationError``.
"""

from __future__ import annotations

import os
import fnmatch
import tempfile
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Union

from gitignore_parser import parse_gitignore

from dotnet_check_updates.utils.logger import get_logger
from dotnet_check_updates.exceptions import FileOperationError
from dotnet_check_updates.constants import MAX_FILE_SIZE


logger = get_logger("filesystem")

PathLike = Union[str, Path]


def _validated_file(path: Path) -> Path:
    """Validate and resolve a file path."""
    if not path.exists():
        raise FileOperationError(
            f"File not found: {path}",
            file_path=str(path),
            operation="read",
        )
    if not path.is_file():
        raise FileOperationError(
            f"Not a file: {path}",
            file_path=str(path),
            operation="read",
        )
    return path.resolve()


def _atomic_write(target: Path, content: bytes) -> None:
    """Atomically write bytes to a file using a temporary file + replace."""
    target.parent.mkdir(parents=True, exist_ok=True)
    temp_path: Optional[Path] = None

    try:
        with tempfile.NamedTemporaryFile(
            mode="wb",
            dir=str(target.parent),
            delete=False,
            prefix=f".{target.name}.",
            suffix=".tmp",
        ) as tmp:
            temp_path = Path(tmp.name)
            tmp.write(content)
            tmp.flush()
            os.fsync(tmp.fileno())

        temp_path.replace(target)

    except Exception as exc:
        if temp_path and temp_path.exists():
            try:
                temp_path.unlink()
                logger.debug("Cleaned up temporary file: %s", temp_path)
            except OSError as cleanup_exc:
                logger.warning(
                    "Failed to clean up temporary file %s: %s",
                    temp_path,
                    cleanup_exc,
                )

        raise FileOperationError(
            f"Atomic write failed: {exc}",
            file_path=str(target),
            operation="write",
            original_error=exc,
        ) from exc


def safe_read_bytes(
    file_path: PathLike,
    *,
    max_size: Optional[int] = MAX_FILE_SIZE,
) -> bytes:
    """Read a file's raw bytes with an optional size limit.

    Args:
        file_path: Path to the file.
        max_size: Maximum allowed file size in bytes (None disables limit).

    Returns:
        File contents.
    """
    path = _validated_file(Path(file_path))
    size = path.stat().st_size

    if max_size is not None and size > max_size:
        raise FileOperationError(
            f"File too large: {size} bytes (max {max_size})",
            file_path=str(path),
            operation="read",
        )

    try:
        return path.read_bytes()
    except OSError as exc:
        raise FileOperationError(
            f"Failed to read file: {exc}",
            file_path=str(path),
            operation="read",
            original_error=exc,
        ) from exc


def safe_read_file(
    file_path: PathLike,
    *,
    max_size: Optional[int] = MAX_FILE_SIZE,
    encoding: str = "utf-8-sig",
) -> str:
    """Read a text file, stripping a UTF-8 byte order mark if present."""
    data = safe_read_bytes(file_path, max_size=max_size)
    try:
        return data.decode(encoding)
    except UnicodeDecodeError as exc:
        raise FileOperationError(
            f"Failed to decode file: {exc}",
            file_path=str(file_path),
            operation="read",
            original_error=exc,
        ) from exc


def safe_write_bytes(file_path: PathLike, content: bytes) -> None:
    """Write ``content`` to ``file_path`` using atomic replacement."""
    _atomic_write(Path(file_path), content)


# ---------------------------------------------------------------------------
# File discovery
# ---------------------------------------------------------------------------


def _glob_ignore_name_case(base: Path, pattern: str) -> List[Path]:
    """Glob ``pattern`` under ``base``, ignoring case in the last component."""
    directories, _, name = pattern.rpartition("/")
    name = name.lower()
    candidates = base.glob(f"{directories}/*" if directories else "*")
    return sorted(path for path in candidates if fnmatch.fnmatchcase(path.name.lower(), name))


class FileFinder:
    """Locate files below or above a directory.

    Glob results under a directory holding a ``.gitignore`` exclude the
    paths that file ignores.
    """

    def get_matching_paths(
        self,
        base_directory: PathLike,
        patterns: Union[str, Iterable[str]],
    ) -> List[str]:
        """Return absolute paths under ``base_directory`` matching ``patterns``.

        Args:
            base_directory: Directory the patterns are relative to.
            patterns: One glob or several, e.g. ``"*/*.csproj"`` or
                ``"**/*.fsproj"``.

        Returns:
            Matching file paths in order of first match, without duplicates.
            File names match case-insensitively, so ``App.CSPROJ`` is found
            by ``*.csproj``.
        """
        base = Path(os.path.abspath(base_directory))
        if not base.is_dir():
            return []

        if isinstance(patterns, str):
            patterns = [patterns]

        ignored = self._gitignore_matcher(base)
        seen = set()
        results: List[str] = []

        for pattern in patterns:
            for match in _glob_ignore_name_case(base, pattern):
                path = str(match)
                if path in seen or not match.is_file():
                    continue
                if ignored is not None and ignored(path):
                    logger.debug("Skipping ignored file: %s", path)
                    continue
                seen.add(path)
                results.append(path)

        return results

    @staticmethod
    def _gitignore_matcher(base: Path) -> Optional[Callable[[str], bool]]:
        gitignore_path = base / ".gitignore"
        if not gitignore_path.is_file():
            return None
        return parse_gitignore(gitignore_path)

    def get_path_of_file_above(self, file_name: str, start_directory: str) -> str:
        """Search ``start_directory`` and its parents for ``file_name``.

        Relative start directories are resolved against the current
        working directory.

        Returns:
            The first matching path, or ``""`` when no parent holds the file.
        """
        directory = os.path.normpath(os.path.join(os.getcwd(), start_directory))

        while True:
            candidate = os.path.join(directory, file_name)
            if os.path.isfile(candidate):
                return candidate

            parent = os.path.dirname(directory)
            if parent == directory:
                return ""
            directory = parent
