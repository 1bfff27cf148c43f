"""CheckPermissions node - verify the token can merge."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic_graph import BaseNode, End, GraphRunContext

from prmerge.core.config import MergeState
from prmerge.core.log import logger
from prmerge.core.result import MergeResult, MergeStatus
from prmerge.merge.failures import PullRequestFailure
from prmerge.workflow.deps import MergeDeps


@dataclass
class CheckPermissions(BaseNode[MergeState, MergeDeps, MergeResult]):
    """Check the token has every OAuth scope merging needs."""

    async def run(
        self, ctx: GraphRunContext[MergeState, MergeDeps]
    ) -> "CheckWorkingTree | End[MergeResult]":
        """Require "repo" ("public_repo" suffices for public
        repositories) and "workflow", since PRs may touch workflow
        files.

        Returns:
            CheckWorkingTree, or End with AUTH_ERROR
        """
        private = ctx.deps.github.config.private

        def test_scopes(scopes: list[str], missing: list[str]) -> None:
            if "repo" not in scopes:
                if private:
                    missing.append("repo")
                elif "public_repo" not in scopes:
                    missing.append("public_repo")
            if "workflow" not in scopes:
                missing.append("workflow")

        error = await ctx.deps.github.check_oauth_scopes(test_scopes)
        if error is not None:
            logger.error(error)
            return End(MergeResult(
                status=MergeStatus.AUTH_ERROR,
                failure=PullRequestFailure.insufficient_permissions_to_merge(
                    error
                ),
            ))

        from prmerge.workflow.nodes.check_working_tree import (
            CheckWorkingTree,
        )
        return CheckWorkingTree()
