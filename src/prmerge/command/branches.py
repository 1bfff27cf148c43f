"""Branches command - shows where a pull request would be merged."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel, Field
from pydantic_settings import CliPositionalArg

from prmerge.command.merge import create_resolver
from prmerge.core.log import logger
from prmerge.git.github import GithubClient

if TYPE_CHECKING:
    from prmerge.core.config import State


class BranchesCommand(BaseModel):
    """Show the target branches of a pull request without merging it."""

    pr_number: CliPositionalArg[int] = Field(
        description="Number of the pull request"
    )

    async def run_workflow(self, state: State) -> int:
        """Resolve and log the target branches.

        Returns:
            Exit code (0=resolved, 1=not found or unresolvable)
        """
        async with GithubClient(state.config.github) as github:
            data = await github.get_pull_request(self.pr_number)
        if data is None:
            logger.error(f"Pull request #{self.pr_number} not found")
            return 1

        resolution = await create_resolver(state.config).resolve(
            data.labels, data.base_ref_name
        )
        if not resolution.ok:
            logger.error(str(resolution.error))
            return 1

        logger.info(
            f"PR #{self.pr_number} ({data.base_ref_name}) merges into: "
            f"{', '.join(resolution.branches)}"
        )
        return 0
