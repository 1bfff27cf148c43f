"""SelectStrategy node - pick the merge strategy from configuration."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic_graph import BaseNode, GraphRunContext

from prmerge.core.config import MergeState
from prmerge.core.log import logger
from prmerge.strategy import ApiMergeStrategy, LocalCherryPickStrategy
from prmerge.workflow.deps import MergeDeps


@dataclass
class SelectStrategy(BaseNode[MergeState, MergeDeps]):
    """Use the API strategy when api_merge is configured, otherwise
    cherry-pick locally. The choice never depends on the PR."""

    async def run(
        self, ctx: GraphRunContext[MergeState, MergeDeps]
    ) -> "Prepare":
        api_merge = ctx.deps.config.api_merge
        if api_merge is not None:
            ctx.state.strategy = ApiMergeStrategy(
                ctx.deps.git, ctx.deps.github, api_merge
            )
        else:
            ctx.state.strategy = LocalCherryPickStrategy(ctx.deps.git)

        logger.debug(
            f"Using {type(ctx.state.strategy).__name__}",
        )

        from prmerge.workflow.nodes.prepare import Prepare
        return Prepare()
