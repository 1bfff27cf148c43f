"""Graph workflow definition."""

from pydantic_graph import Graph

from prmerge.core.config import MergeState
from prmerge.core.log import logger


def create_workflow():
    """Create the merge workflow graph.

    CheckPermissions → CheckWorkingTree → ValidatePullRequest →
        SelectStrategy → Prepare → Merge → Cleanup

    Every check node may end the run early with a MergeResult.

    Returns:
        Graph workflow with MergeState as state_type
    """
    logger.spew("Building merge workflow graph")

    # Node classes must be local names here, so the string return
    # annotations of each node's run() can be resolved
    from prmerge.workflow.nodes.check_permissions import CheckPermissions
    from prmerge.workflow.nodes.check_working_tree import CheckWorkingTree
    from prmerge.workflow.nodes.cleanup import Cleanup
    from prmerge.workflow.nodes.merge import Merge
    from prmerge.workflow.nodes.prepare import Prepare
    from prmerge.workflow.nodes.select_strategy import SelectStrategy
    from prmerge.workflow.nodes.validate import ValidatePullRequest

    return Graph(
        nodes=(
            CheckPermissions,
            CheckWorkingTree,
            ValidatePullRequest,
            SelectStrategy,
            Prepare,
            Merge,
            Cleanup,
        ),
        state_type=MergeState,
    )
