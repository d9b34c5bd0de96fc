"""Command flows run by the dotnet-check-updates CLI."""

from __future__ import annotations

from dotnet_check_updates.commands.check import check_updates
from dotnet_check_updates.commands.interactive import interactive_updates

__all__ = [
    "check_updates",
    "interactive_updates",
]
