"""CLI command modules for prmerge."""

from prmerge.command.branches import BranchesCommand
from prmerge.command.merge import MergeCommand

__all__ = ["BranchesCommand", "MergeCommand"]
