"""Merge command - merges a pull request into its target branches."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel, Field
from pydantic_settings import CliPositionalArg

from prmerge.core.log import logger
from prmerge.core.prompt import Confirm, confirm
from prmerge.core.result import MergeResult, MergeStatus
from prmerge.git.client import GitClient
from prmerge.git.github import GithubApiRequestError, GithubClient
from prmerge.merge.lts_branch import NpmLtsBranchCheck
from prmerge.merge.target_label import TargetLabelResolver
from prmerge.merge.task import MergeTask

if TYPE_CHECKING:
    from prmerge.core.config import Config, State


def create_resolver(
    config: Config, confirm: Confirm = confirm
) -> TargetLabelResolver:
    return TargetLabelResolver(
        config.release_trains, NpmLtsBranchCheck(config.lts, confirm)
    )


def create_merge_task(
    config: Config, github: GithubClient, confirm: Confirm = confirm
) -> MergeTask:
    """Wire a MergeTask from configuration."""
    git = GitClient(
        config.workdir, config.github, verbose=config.merge.verbose_git
    )
    return MergeTask(
        config.merge, git, github, create_resolver(config, confirm)
    )


def report_result(pr_number: int, result: MergeResult) -> None:
    """Log one summary for the terminal status of a merge."""
    match result.status:
        case MergeStatus.SUCCESS:
            logger.info(f"Successfully merged the pull request: #{pr_number}")
        case MergeStatus.DIRTY_WORKING_DIR:
            logger.error(
                "Local working repository not clean. Please make sure "
                "there are no uncommitted changes."
            )
        case MergeStatus.UNKNOWN_VCS_ERROR:
            logger.error(
                "An unknown Git error has been thrown. Please check the "
                "output above for details."
            )
        case MergeStatus.AUTH_ERROR:
            logger.error(
                "The GitHub token does not have the permissions needed to "
                "merge."
            )
            logger.error(result.failure.message)
        case MergeStatus.FAILED:
            logger.warn("Could not merge the specified pull request.")
            logger.error(result.failure.message)


class MergeCommand(BaseModel):
    """Merge a pull request into every branch its target label
    resolves to.

    The pull request is validated first (labels, CI, draft state, CLA),
    then merged with the configured strategy: through the GitHub merge
    API with cherry-picks into the other branches, or by cherry-picking
    into every branch locally and pushing.
    """

    pr_number: CliPositionalArg[int] = Field(
        description="Number of the pull request to merge"
    )
    force: bool = Field(
        default=False,
        description="Ignore non-fatal failures such as pending CI jobs",
    )

    async def run_workflow(
        self, state: State, confirm: Confirm = confirm
    ) -> int:
        """Run the merge, offering a forced retry for non-fatal
        failures.

        Args:
            state: State instance with config loaded
            confirm: Confirmation prompt

        Returns:
            Exit code (0=success, 1=failure)
        """
        async with GithubClient(state.config.github) as github:
            task = create_merge_task(state.config, github, confirm)
            try:
                result = await task.merge(self.pr_number, force=self.force)
                report_result(self.pr_number, result)

                if (
                    result.status == MergeStatus.FAILED
                    and result.failure.non_fatal
                    and not self.force
                ):
                    logger.warn(
                        "The pull request above failed due to non-critical "
                        "errors. This error can be forcibly ignored if "
                        "desired."
                    )
                    if confirm("Do you want to forcibly proceed with merging?"):
                        result = await task.merge(self.pr_number, force=True)
                        report_result(self.pr_number, result)
            except GithubApiRequestError as e:
                if e.status != 401:
                    raise
                logger.error(f"Github API request failed: {e.message}")
                logger.error(
                    "Please ensure that your provided token is valid."
                )
                return 1

        return 0 if result.status == MergeStatus.SUCCESS else 1
