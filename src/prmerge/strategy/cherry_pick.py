"""Merge by cherry-picking locally and pushing every target branch."""

from __future__ import annotations

import shlex

from prmerge.core.log import logger
from prmerge.git.client import CommandError
from prmerge.merge.failures import PullRequestFailure
from prmerge.merge.pull_request import PullRequest
from prmerge.strategy.base import TEMP_PR_HEAD_BRANCH, MergeStrategy

# Accepts the generated todo list and squash messages unchanged
NON_INTERACTIVE_EDITOR_ENV = {
    "GIT_SEQUENCE_EDITOR": "true",
    "GIT_EDITOR": "true",
}


def pull_request_reference(pr_number: int) -> str:
    """Trailer linking a commit to the pull request it landed with."""
    return f"PR Close #{pr_number}"


def message_filter_script(pr_number: int) -> str:
    """Shell script for filter-branch --msg-filter.

    Appends the pull request reference to the message on stdin unless
    the message already contains it.
    """
    reference = shlex.quote(pull_request_reference(pr_number))
    return (
        "msg=$(cat); "
        f"case \"$msg\" in *{reference}*) printf '%s\\n' \"$msg\" ;; "
        f"*) printf '%s\\n\\n%s\\n' \"$msg\" {reference} ;; esac"
    )


class LocalCherryPickStrategy(MergeStrategy):
    """Autosquashes the PR commits and cherry-picks them into every
    target branch locally.

    fixup! and squash! commits are folded into the commits they name,
    and every commit message gets a reference to the pull request.
    Branches are pushed only once the commits applied to all of them,
    with a lease on the SHA each branch had when it was fetched.
    """

    async def merge(self, pr: PullRequest) -> PullRequestFailure | None:
        failure = self.check_required_base_sha(pr)
        if failure is not None:
            return failure

        # Pin the base to a SHA so the range cannot move mid-merge
        base_sha = self.get_pull_request_base_revision(pr)
        revision_range = f"{base_sha}..{TEMP_PR_HEAD_BRANCH}"

        self.autosquash(base_sha)
        self.reference_pull_request(pr.pr_number, revision_range)

        failed_branches = self.cherry_pick_into_target_branches(
            revision_range, pr.target_branches
        )
        if failed_branches:
            return PullRequestFailure.merge_conflicts(failed_branches)

        self.push_target_branches(pr.target_branches)
        logger.info(
            f"Pushed PR #{pr.pr_number} to "
            f"{', '.join(pr.target_branches)}"
        )
        return None

    def autosquash(self, base_sha: str) -> None:
        """Fold fixup! and squash! commits of the PR head branch.

        The rebase checks the head branch out; the previous checkout is
        restored afterwards, since rewriting messages needs it.

        Raises:
            CommandError: If the rebase fails. It is aborted first.
        """
        previous = self.git.get_current_branch_or_revision()
        with logger.span("Autosquashing pull request commits"):
            try:
                self.git.run(
                    [
                        "rebase", "--interactive", "--autosquash",
                        base_sha, TEMP_PR_HEAD_BRANCH,
                    ],
                    env=NON_INTERACTIVE_EDITOR_ENV,
                )
            except CommandError:
                self.git.run_graceful(["rebase", "--abort"])
                raise
            finally:
                self.git.run_graceful(["checkout", "-f", previous])

    def reference_pull_request(
        self, pr_number: int, revision_range: str
    ) -> None:
        """Rewrite every commit message in the range to reference the PR."""
        self.git.run(
            [
                "filter-branch", "-f", "--msg-filter",
                message_filter_script(pr_number), revision_range,
            ],
            env={"FILTER_BRANCH_SQUELCH_WARNING": "1"},
        )


__all__ = [
    "LocalCherryPickStrategy",
    "message_filter_script",
    "pull_request_reference",
]
