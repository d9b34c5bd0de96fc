"""
Project and solution discovery.

Works out which files a run operates on: an explicit project, the
members of an explicit solution, or the projects found by globbing the
working directory (falling back to solutions found there). Shared
properties files (``Directory.Build.props``, ``Directory.Packages.props``)
above each project are added, together with properties files they import
through ``GetPathOfFileAbove``.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

from dotnet_check_updates.constants import (
    CSPROJ_PATTERN,
    FSPROJ_PATTERN,
    MAX_DEPTH,
    PROJECT_EXTENSIONS,
    SHARED_PROPS_FILES,
    SLN_PATTERN,
)
from dotnet_check_updates.core.parser import ProjectFileReader
from dotnet_check_updates.core.solution import SolutionParser
from dotnet_check_updates.exceptions import CheckUpdatesError
from dotnet_check_updates.utils import get_logger
from dotnet_check_updates.utils.filesystem import FileFinder

logger = get_logger("discovery")


@dataclass
class ProjectDiscoveryRequest:
    """Inputs controlling discovery.

    Attributes:
        cwd: Working directory globs are relative to.
        recurse: Search sub-directories.
        depth: Maximum sub-directory depth; ``0`` means unlimited.
        project: Explicit project path.
        solution: Explicit solution path.
    """

    cwd: str = ""
    recurse: bool = False
    depth: int = 0
    project: Optional[str] = None
    solution: Optional[str] = None


@dataclass
class ProjectDiscoveryResult:
    """Files found by discovery.

    Attributes:
        project_files: Projects and properties files, sorted ordinally.
        solution_project_map: Solution path to its member files, sorted.
    """

    project_files: List[str] = field(default_factory=list)
    solution_project_map: Dict[str, List[str]] = field(default_factory=dict)


def get_search_patterns(recurse: bool, depth: int) -> List[str]:
    """Return the glob patterns used to find project files.

    Example:
        >>> get_search_patterns(True, 1)
        ['*.csproj', '*.fsproj', '*/*.csproj', '*/*.fsproj']
        >>> get_search_patterns(True, 0)
        ['**/*.csproj', '**/*.fsproj']
    """
    cs_pattern = CSPROJ_PATTERN
    fs_pattern = FSPROJ_PATTERN
    patterns = [cs_pattern, fs_pattern]

    if not recurse:
        return patterns

    if depth <= 0:
        return ["**/" + CSPROJ_PATTERN, "**/" + FSPROJ_PATTERN]

    for _ in range(min(depth, MAX_DEPTH)):
        cs_pattern = "*/" + cs_pattern
        fs_pattern = "*/" + fs_pattern
        patterns.append(cs_pattern)
        patterns.append(fs_pattern)

    return patterns


def _is_project_path(path: str) -> bool:
    return path.lower().endswith(tuple(PROJECT_EXTENSIONS))


def _is_within(path: str, directory: str) -> bool:
    try:
        return os.path.commonpath([path, directory]) == directory
    except ValueError:
        return False


class ProjectDiscovery:
    """Resolve the set of files to check.

    Args:
        file_finder: Glob and upward file search.
        solution_parser: Lists the projects of a solution.
        reader: Reads properties files to follow their imports.
    """

    def __init__(
        self,
        file_finder: Optional[FileFinder] = None,
        solution_parser: Optional[SolutionParser] = None,
        reader: Optional[ProjectFileReader] = None,
    ) -> None:
        self.file_finder = file_finder or FileFinder()
        self.solution_parser = solution_parser or SolutionParser()
        self.reader = reader or ProjectFileReader()

    def discover_projects_and_solutions(
        self,
        request: ProjectDiscoveryRequest,
    ) -> ProjectDiscoveryResult:
        cwd = os.path.abspath(request.cwd or os.getcwd())
        projects: List[str] = []
        solutions: Dict[str, List[str]] = {}

        if request.project:
            projects.append(os.path.join(cwd, request.project))
        elif request.solution:
            solution = os.path.join(cwd, request.solution)
            solutions[solution] = self._get_solution_projects(solution)
        else:
            patterns = get_search_patterns(request.recurse, request.depth)
            logger.debug("Searching %s with patterns %s", cwd, patterns)
            projects.extend(self.file_finder.get_matching_paths(cwd, patterns))

            if not projects:
                for solution in self.file_finder.get_matching_paths(cwd, SLN_PATTERN):
                    solutions[solution] = self._get_solution_projects(solution)

        projects = [os.path.normpath(p) for p in projects]
        files: Set[str] = set(projects)

        for project in projects:
            files.update(self._find_props_files(os.path.dirname(project), cwd))

        for solution, members in list(solutions.items()):
            solution_dir = os.path.dirname(solution)
            solution_files: Set[str] = set(members)
            for member in members:
                solution_files.update(self._find_props_files(os.path.dirname(member), solution_dir))
            solutions[solution] = sorted(solution_files)
            files.update(solution_files)

        result = ProjectDiscoveryResult(sorted(files), solutions)
        logger.debug(
            "Discovered %d files in %d solutions",
            len(result.project_files),
            len(result.solution_project_map),
        )
        return result

    # ------------------------------------------------------------------

    def _get_solution_projects(self, solution: str) -> List[str]:
        paths = self.solution_parser.get_project_paths(solution)
        return [path for path in paths if _is_project_path(path)]

    def _find_props_files(self, start_dir: str, stop_dir: str) -> List[str]:
        """Collect shared properties files from ``start_dir`` up to ``stop_dir``.

        A project outside ``stop_dir`` only contributes its own directory.
        """
        found: List[str] = []
        directory = os.path.normpath(start_dir)
        stop_dir = os.path.normpath(stop_dir)

        while True:
            for name in SHARED_PROPS_FILES:
                candidate = os.path.join(directory, name)
                if os.path.isfile(candidate):
                    found.append(candidate)
                    found.extend(self._follow_imports(candidate, set(found)))

            if directory == stop_dir:
                break

            parent = os.path.dirname(directory)
            if parent == directory or not _is_within(parent, stop_dir):
                break
            directory = parent

        return found

    def _follow_imports(self, props_file: str, seen: Set[str]) -> List[str]:
        try:
            props = self.reader.read_project_file(props_file)
        except CheckUpdatesError as exc:
            logger.debug("Not following imports of %s: %s", props_file, exc)
            return []

        found: List[str] = []
        this_dir = os.path.dirname(props_file)

        for item in props.imports:
            imported = item.get_imported_project_path(self.file_finder, this_dir)
            if not imported or not os.path.isfile(imported):
                continue

            imported = os.path.normpath(imported)
            if imported in seen:
                continue

            seen.add(imported)
            found.append(imported)
            found.extend(self._follow_imports(imported, seen))

        return found
