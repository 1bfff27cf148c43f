"""MergeTask - drives one pull request through the merge workflow."""

from __future__ import annotations

from pydantic_graph import End

from prmerge.core.config import MergeConfig, MergeState
from prmerge.core.log import logger
from prmerge.core.result import MergeResult, MergeStatus
from prmerge.git.client import CommandError, GitClient
from prmerge.git.github import GithubClient
from prmerge.merge.target_label import TargetLabelResolver
from prmerge.workflow.deps import MergeDeps


class MergeTask:
    """Merges pull requests into all of their target branches.

    The local checkout is always restored: on success before the
    temporary branches are deleted, and on failure or git errors by a
    best-effort checkout when the run ends. A CommandError from git
    ends the run with UNKNOWN_VCS_ERROR; every other exception
    propagates.
    """

    def __init__(
        self,
        config: MergeConfig,
        git: GitClient,
        github: GithubClient,
        resolver: TargetLabelResolver,
    ):
        self.deps = MergeDeps(
            config=config, git=git, github=github, resolver=resolver
        )

    async def merge(self, pr_number: int, force: bool = False) -> MergeResult:
        """Merge a pull request.

        Args:
            pr_number: Number of the pull request
            force: Ignore non-fatal failures such as pending CI

        Returns:
            MergeResult with the terminal status
        """
        from prmerge.workflow.graph import create_workflow
        from prmerge.workflow.nodes.check_permissions import CheckPermissions

        state = MergeState(pr_number=pr_number, force=force)
        workflow = create_workflow()
        result: MergeResult | None = None

        try:
            with logger.span(f"Merging PR #{pr_number}", force=force):
                async with workflow.iter(
                    CheckPermissions(), state=state, deps=self.deps
                ) as run:
                    async for node in run:
                        if isinstance(node, End):
                            result = node.data
        except CommandError as e:
            logger.error(str(e))
            return MergeResult(status=MergeStatus.UNKNOWN_VCS_ERROR)
        finally:
            await self._restore(state)

        if result is None:
            raise RuntimeError("Merge workflow ended without a result")
        return result

    async def _restore(self, state: MergeState) -> None:
        """Restore the checkout and delete temporary branches, if the
        run got far enough to change either."""
        git = self.deps.git
        if state.previous_branch_or_revision and not state.restored:
            git.run_graceful(
                ["checkout", "-f", state.previous_branch_or_revision]
            )
            state.restored = True
        if state.strategy is not None and state.pull_request is not None \
                and not state.cleaned_up:
            await state.strategy.cleanup(state.pull_request)
            state.cleaned_up = True


__all__ = ["MergeTask"]
