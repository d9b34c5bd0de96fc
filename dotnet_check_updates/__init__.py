"""
dotnet-check-updates: find and apply NuGet package upgrades

dotnet-check-updates inspects ``.csproj``/``.fsproj`` projects, solutions
and shared ``Directory.*.props`` files, resolves the best available NuGet
version for every ``PackageReference`` under a chosen upgrade target and
rewrites the project files in place without disturbing their formatting.

Features include:
    • Upgrade targets: latest, greatest, major, minor, patch and
      pre-release variants
    • Target framework aware resolution
    • Central package management (Directory.Packages.props)
    • Include / exclude filters with glob support
    • Interactive selection and optional ``dotnet restore``
"""

from __future__ import annotations

from dotnet_check_updates.__version__ import __version__

# ---------------------------------------------------------------------------
# Package Metadata
# ---------------------------------------------------------------------------

__author__ = "dotnet-check-updates Contributors"
__license__ = "MIT"
__description__ = "Check NuGet package references in .NET projects for upgrades."

__all__ = [
    "__version__",
]
