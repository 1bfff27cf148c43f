"""Base class for strategies that land a pull request on its targets."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass

from prmerge.core.log import logger
from prmerge.git.client import GitClient
from prmerge.merge.failures import PullRequestFailure
from prmerge.merge.pull_request import PullRequest

# Local branch holding the fetched head of the pull request
TEMP_PR_HEAD_BRANCH = "merge_pr_head"


@dataclass
class TargetBranchState:
    """Working state of one target branch during a merge.

    remote_sha is the upstream SHA seen when the branch was fetched.
    Pushes are leased on it, so a concurrent push to the branch makes
    ours fail instead of being overwritten.
    """

    branch: str
    local_branch: str
    remote_sha: str


class MergeStrategy(ABC):
    """Lands a pull request on every target branch.

    Lifecycle: prepare() fetches the PR head and all target branches into
    temporary local branches, merge() does the strategy-specific work
    and cleanup() deletes the temporary branches again.
    """

    def __init__(self, git: GitClient):
        self.git = git
        self.target_states: dict[str, TargetBranchState] = {}

    @staticmethod
    def get_local_target_branch_name(branch: str) -> str:
        """Temporary local branch for a target branch."""
        return f"merge_pr_target_{branch.replace('/', '_')}"

    @staticmethod
    def get_pull_request_revision_range(pr: PullRequest) -> str:
        """Revision range covering every commit of the pull request."""
        return (
            f"{TEMP_PR_HEAD_BRANCH}~{pr.commit_count}..{TEMP_PR_HEAD_BRANCH}"
        )

    def get_pull_request_base_revision(self, pr: PullRequest) -> str:
        """SHA of the commit the pull request is based on."""
        return self.git.rev_parse(f"{TEMP_PR_HEAD_BRANCH}~{pr.commit_count}")

    async def prepare(self, pr: PullRequest) -> None:
        """Fetch the PR head and every target branch."""
        with logger.span("Fetching pull request and target branches"):
            self.fetch_target_branches(
                pr.target_branches,
                f"refs/pull/{pr.pr_number}/head:refs/heads/"
                f"{TEMP_PR_HEAD_BRANCH}",
            )

    @abstractmethod
    async def merge(self, pr: PullRequest) -> PullRequestFailure | None:
        """Land the pull request.

        Returns:
            None on success, otherwise the reason the merge failed
        """

    async def cleanup(self, pr: PullRequest) -> None:
        """Delete every temporary branch. Never raises on git errors."""
        branches = [
            self.get_local_target_branch_name(branch)
            for branch in pr.target_branches
        ]
        branches.append(TEMP_PR_HEAD_BRANCH)
        for branch in branches:
            self.git.run_graceful(["branch", "-D", branch])
        # Backup ref left by rewriting the PR commit messages
        self.git.run_graceful([
            "update-ref", "-d",
            f"refs/original/refs/heads/{TEMP_PR_HEAD_BRANCH}",
        ])
        self.target_states.clear()

    def fetch_target_branches(
        self, branches: Iterable[str], *extra_refspecs: str
    ) -> None:
        """Fetch branches into their temporary local branches.

        Records the fetched SHA of each branch as its push lease.
        """
        branches = list(branches)
        refspecs = [
            f"refs/heads/{branch}:refs/heads/"
            f"{self.get_local_target_branch_name(branch)}"
            for branch in branches
        ]
        # Force, so leftovers of an interrupted run are overwritten
        self.git.run([
            "fetch", "-q", "-f", self.git.repo_git_url,
            *refspecs, *extra_refspecs,
        ])
        for branch in branches:
            local_branch = self.get_local_target_branch_name(branch)
            self.target_states[branch] = TargetBranchState(
                branch=branch,
                local_branch=local_branch,
                remote_sha=self.git.rev_parse(f"refs/heads/{local_branch}"),
            )

    def push_target_branches(self, branches: Iterable[str]) -> None:
        """Push the local target branches upstream in one push.

        Each branch is leased on the SHA recorded when it was fetched.
        """
        branches = list(branches)
        leases = []
        refspecs = []
        for branch in branches:
            state = self.target_states[branch]
            leases.append(
                f"--force-with-lease=refs/heads/{branch}:{state.remote_sha}"
            )
            refspecs.append(
                f"refs/heads/{state.local_branch}:refs/heads/{branch}"
            )

        with logger.span("Pushing target branches", branches=branches):
            self.git.run(["push", self.git.repo_git_url, *leases, *refspecs])

    def cherry_pick_into_target_branches(
        self,
        revision_range: str,
        target_branches: Iterable[str],
        dry_run: bool = False,
        link_to_original_commits: bool = False,
    ) -> list[str]:
        """Cherry-pick a revision range onto several target branches.

        A failed cherry-pick is aborted right away, since an unfinished
        one blocks every later git operation. With dry_run the changes
        are not committed, and every branch is hard-reset after its
        attempt whatever the outcome.

        Args:
            revision_range: Commits to cherry-pick, e.g. "a~2..a"
            target_branches: Branches whose temporary local branch
                receives the commits
            dry_run: Only check whether the commits apply cleanly
            link_to_original_commits: Record the original SHA in each
                commit message ("-x")

        Returns:
            Branches the commits could not be applied to
        """
        cherry_pick_args = []
        if dry_run:
            cherry_pick_args.append("--no-commit")
        if link_to_original_commits:
            cherry_pick_args.append("-x")
        cherry_pick_args.append(revision_range)

        failed_branches = []
        for branch in target_branches:
            self.git.run(
                ["checkout", self.get_local_target_branch_name(branch)]
            )
            result = self.git.run_graceful(["cherry-pick", *cherry_pick_args])
            if not result.success:
                self.git.run_graceful(["cherry-pick", "--abort"])
                failed_branches.append(branch)
                logger.debug(f"Cherry-pick into {branch} failed")
            if dry_run:
                self.git.run(["reset", "--hard", "HEAD"])
        return failed_branches

    def check_required_base_sha(
        self, pr: PullRequest
    ) -> PullRequestFailure | None:
        """Check the PR head contains the commit its base requires."""
        if pr.required_base_sha and not self.git.has_commit(
            TEMP_PR_HEAD_BRANCH, pr.required_base_sha
        ):
            return PullRequestFailure.unsatisfied_base_sha()
        return None


__all__ = [
    "MergeStrategy",
    "TEMP_PR_HEAD_BRANCH",
    "TargetBranchState",
]
