"""Workflow nodes for the merge state machine."""

from prmerge.workflow.nodes.check_permissions import CheckPermissions
from prmerge.workflow.nodes.check_working_tree import CheckWorkingTree
from prmerge.workflow.nodes.cleanup import Cleanup
from prmerge.workflow.nodes.merge import Merge
from prmerge.workflow.nodes.prepare import Prepare
from prmerge.workflow.nodes.select_strategy import SelectStrategy
from prmerge.workflow.nodes.validate import ValidatePullRequest

__all__ = [
    "CheckPermissions",
    "CheckWorkingTree",
    "ValidatePullRequest",
    "SelectStrategy",
    "Prepare",
    "Merge",
    "Cleanup",
]
