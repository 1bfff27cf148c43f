"""Prepare node - remember the checkout and fetch branches."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic_graph import BaseNode, GraphRunContext

from prmerge.core.config import MergeState
from prmerge.workflow.deps import MergeDeps


@dataclass
class Prepare(BaseNode[MergeState, MergeDeps]):
    """Record the current branch or revision, then fetch."""

    async def run(
        self, ctx: GraphRunContext[MergeState, MergeDeps]
    ) -> "Merge":
        ctx.state.previous_branch_or_revision = (
            ctx.deps.git.get_current_branch_or_revision()
        )
        await ctx.state.strategy.prepare(ctx.state.pull_request)

        from prmerge.workflow.nodes.merge import Merge
        return Merge()
