"""ValidatePullRequest node - load the PR and check it can merge."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic_graph import BaseNode, End, GraphRunContext

from prmerge.core.config import MergeState
from prmerge.core.log import logger
from prmerge.core.result import MergeResult, MergeStatus
from prmerge.merge.failures import PullRequestFailure
from prmerge.merge.pull_request import load_and_validate_pull_request
from prmerge.workflow.deps import MergeDeps


@dataclass
class ValidatePullRequest(BaseNode[MergeState, MergeDeps, MergeResult]):
    """Fetch the pull request and resolve its target branches."""

    async def run(
        self, ctx: GraphRunContext[MergeState, MergeDeps]
    ) -> "SelectStrategy | End[MergeResult]":
        """Validate the PR, honouring the force flag for non-fatal
        failures.

        Returns:
            SelectStrategy, or End with FAILED
        """
        with logger.span(f"Validating PR #{ctx.state.pr_number}"):
            result = await load_and_validate_pull_request(
                ctx.deps.github,
                ctx.deps.config,
                ctx.deps.resolver,
                ctx.state.pr_number,
                ignore_non_fatal_failures=ctx.state.force,
            )

        if isinstance(result, PullRequestFailure):
            return End(MergeResult(status=MergeStatus.FAILED, failure=result))

        if result.has_caretaker_note:
            logger.warn(
                f"PR #{result.pr_number} has a caretaker note. Please "
                "read it before merging."
            )
        ctx.state.pull_request = result

        from prmerge.workflow.nodes.select_strategy import SelectStrategy
        return SelectStrategy()
