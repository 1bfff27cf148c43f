"""Cleanup node - restore the checkout and delete temporary branches."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic_graph import BaseNode, End, GraphRunContext

from prmerge.core.config import MergeState
from prmerge.core.log import logger
from prmerge.core.result import MergeResult, MergeStatus
from prmerge.workflow.deps import MergeDeps


@dataclass
class Cleanup(BaseNode[MergeState, MergeDeps, MergeResult]):
    """Switch back to the recorded checkout, then delete the temporary
    branches. A checked-out branch cannot be deleted, so the order
    matters."""

    async def run(
        self, ctx: GraphRunContext[MergeState, MergeDeps]
    ) -> End[MergeResult]:
        ctx.deps.git.run(
            ["checkout", "-f", ctx.state.previous_branch_or_revision]
        )
        ctx.state.restored = True

        await ctx.state.strategy.cleanup(ctx.state.pull_request)
        ctx.state.cleaned_up = True

        logger.info(
            f"Successfully merged PR #{ctx.state.pr_number}",
            target_branches=list(ctx.state.pull_request.target_branches),
        )
        return End(MergeResult(status=MergeStatus.SUCCESS))
