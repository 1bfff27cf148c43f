"""Merge node - run the selected strategy."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic_graph import BaseNode, End, GraphRunContext

from prmerge.core.config import MergeState
from prmerge.core.result import MergeResult, MergeStatus
from prmerge.workflow.deps import MergeDeps


@dataclass
class Merge(BaseNode[MergeState, MergeDeps, MergeResult]):
    """Land the pull request with the strategy."""

    async def run(
        self, ctx: GraphRunContext[MergeState, MergeDeps]
    ) -> "Cleanup | End[MergeResult]":
        """Returns:
            Cleanup, or End with FAILED. The caller restores the
            checkout and deletes temporary branches on failure.
        """
        failure = await ctx.state.strategy.merge(ctx.state.pull_request)
        if failure is not None:
            return End(MergeResult(status=MergeStatus.FAILED, failure=failure))

        from prmerge.workflow.nodes.cleanup import Cleanup
        return Cleanup()
