"""
Solution file parsing.

Lists the project paths referenced by classic ``.sln`` solutions and by
XML ``.slnx`` solutions. Paths are returned absolute, resolved against
the solution's directory.
"""

from __future__ import annotations

import os
import re
import xml.etree.ElementTree as ET
from typing import List

from dotnet_check_updates.constants import SLNX_EXTENSION
from dotnet_check_updates.exceptions import FileOperationError, SolutionParseError
from dotnet_check_updates.utils import get_logger, safe_read_file

logger = get_logger("solution")

_PROJECT_LINE_RE = re.compile(
    r'^\s*Project\(\s*"\{[^}]*\}"\s*\)\s*=\s*"[^"]*"\s*,\s*"(?P<path>[^"]*)"',
    re.MULTILINE,
)

#: Solution folders are listed as projects of this type.
_SOLUTION_FOLDER_TYPE = "{2150E333-8FDC-42A3-9474-1A3956D46DE8}"


def _normalize(solution_dir: str, relative: str) -> str:
    relative = relative.replace("\\", "/")
    return os.path.normpath(os.path.join(solution_dir, relative))


class SolutionParser:
    """Extract member project paths from solution files."""

    def get_project_paths(self, solution_path: str) -> List[str]:
        """Return absolute paths of the projects in ``solution_path``.

        Raises:
            SolutionParseError: The solution cannot be read or parsed.
        """
        try:
            content = safe_read_file(solution_path)
        except FileOperationError as exc:
            raise SolutionParseError(
                f"Unable to read solution {solution_path}",
                file_path=solution_path,
            ) from exc

        solution_dir = os.path.dirname(os.path.abspath(solution_path))

        if solution_path.lower().endswith(SLNX_EXTENSION):
            paths = self._parse_slnx(content, solution_path)
        else:
            paths = self._parse_sln(content)

        result = [_normalize(solution_dir, path) for path in paths]
        logger.debug("Solution %s lists %d projects", solution_path, len(result))
        return result

    @staticmethod
    def _parse_sln(content: str) -> List[str]:
        paths: List[str] = []
        for match in _PROJECT_LINE_RE.finditer(content):
            if _SOLUTION_FOLDER_TYPE in match.group(0).upper():
                continue
            paths.append(match.group("path"))
        return paths

    @staticmethod
    def _parse_slnx(content: str, solution_path: str) -> List[str]:
        try:
            root = ET.fromstring(content)
        except ET.ParseError as exc:
            raise SolutionParseError(
                f"Unable to read solution {solution_path}",
                file_path=solution_path,
            ) from exc

        return [
            element.get("Path", "")
            for element in root.iter("Project")
            if element.get("Path")
        ]
