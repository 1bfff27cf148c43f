"""Merge through the GitHub merge API, cherry-picking into the rest."""

from __future__ import annotations

from prmerge.core.config import ApiMergeConfig, MergeMethod
from prmerge.core.log import logger
from prmerge.git.client import GitClient
from prmerge.git.github import GithubApiRequestError, GithubClient
from prmerge.merge.failures import PullRequestFailure
from prmerge.merge.pull_request import PullRequest
from prmerge.merge.target_label import matches_pattern
from prmerge.strategy.base import MergeStrategy


class ApiMergeStrategy(MergeStrategy):
    """Merges the PR into its base branch with the GitHub API.

    The resulting commits are then cherry-picked into the remaining
    target branches and pushed. A dry-run cherry-pick runs before the
    API merge, so the PR is not merged at all when another target branch
    would conflict.
    """

    def __init__(
        self, git: GitClient, github: GithubClient, config: ApiMergeConfig
    ):
        super().__init__(git)
        self.github = github
        self.config = config

    def get_merge_method(self, pr: PullRequest) -> MergeMethod:
        """Merge method from the first label override that matches."""
        for override in self.config.labels:
            if any(matches_pattern(label, override.pattern)
                   for label in pr.labels):
                return override.method
        return self.config.default

    async def merge(self, pr: PullRequest) -> PullRequestFailure | None:
        base = pr.github_target_branch
        if base not in pr.target_branches:
            return PullRequestFailure.mismatching_target_branch(
                list(pr.target_branches)
            )

        failure = self.check_required_base_sha(pr)
        if failure is not None:
            return failure

        method = self.get_merge_method(pr)
        cherry_pick_branches = [b for b in pr.target_branches if b != base]

        failed_branches = self.cherry_pick_into_target_branches(
            self.get_pull_request_revision_range(pr),
            cherry_pick_branches,
            dry_run=True,
        )
        if failed_branches:
            return PullRequestFailure.merge_conflicts(failed_branches)

        try:
            response = await self.github.merge_pull_request(
                pr.pr_number, method, sha=pr.head_sha
            )
        except GithubApiRequestError as e:
            if e.status in (403, 404):
                return PullRequestFailure.insufficient_permissions_to_merge()
            raise

        if response.status == 405:
            return PullRequestFailure.merge_conflicts([base])
        if response.status != 200 or not response.sha:
            logger.error(
                "GitHub merge API did not merge the pull request",
                status=response.status,
                message=response.message,
            )
            return PullRequestFailure.unknown_merge_error()

        logger.info(
            f"Merged PR #{pr.pr_number} into {base} with method {method}",
            sha=response.sha,
        )
        if not cherry_pick_branches:
            return None

        # The merge commit(s) only exist upstream
        self.fetch_target_branches([base])

        commit_count = 1 if method == "squash" else pr.commit_count
        failed_branches = self.cherry_pick_into_target_branches(
            f"{response.sha}~{commit_count}..{response.sha}",
            cherry_pick_branches,
            link_to_original_commits=True,
        )
        if failed_branches:
            return PullRequestFailure.merge_conflicts(failed_branches)

        self.push_target_branches(cherry_pick_branches)
        return None


__all__ = ["ApiMergeStrategy"]
