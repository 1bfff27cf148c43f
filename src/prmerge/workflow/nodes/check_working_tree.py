"""CheckWorkingTree node - refuse to run on a dirty checkout."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic_graph import BaseNode, End, GraphRunContext

from prmerge.core.config import MergeState
from prmerge.core.log import logger
from prmerge.core.result import MergeResult, MergeStatus
from prmerge.workflow.deps import MergeDeps


@dataclass
class CheckWorkingTree(BaseNode[MergeState, MergeDeps, MergeResult]):
    """Stop when the local repository has uncommitted changes."""

    async def run(
        self, ctx: GraphRunContext[MergeState, MergeDeps]
    ) -> "ValidatePullRequest | End[MergeResult]":
        if ctx.deps.git.has_uncommitted_changes():
            logger.error("Local working repository not clean.")
            return End(MergeResult(status=MergeStatus.DIRTY_WORKING_DIR))

        from prmerge.workflow.nodes.validate import ValidatePullRequest
        return ValidatePullRequest()
