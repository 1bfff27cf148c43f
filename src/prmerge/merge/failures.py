"""Typed failures that stop a pull request from being merged."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class PullRequestFailure(BaseModel):
    """A reason why a pull request cannot be merged.

    Instances are immutable and are only created through the named
    factories below. Non-fatal failures (pending or failing CI) can be
    bypassed by the caller with a forced retry.
    """

    model_config = ConfigDict(frozen=True)

    message: str
    non_fatal: bool = False

    @classmethod
    def cla_unsigned(cls) -> PullRequestFailure:
        return cls(message=(
            "CLA has not been signed. Please make sure the PR author "
            "has signed the CLA."
        ))

    @classmethod
    def failing_ci_jobs(cls) -> PullRequestFailure:
        return cls(message="Failing CI jobs.", non_fatal=True)

    @classmethod
    def pending_ci_jobs(cls) -> PullRequestFailure:
        return cls(message="Pending CI jobs.", non_fatal=True)

    @classmethod
    def not_merge_ready(cls) -> PullRequestFailure:
        return cls(message="Not marked as merge ready.")

    @classmethod
    def is_draft(cls) -> PullRequestFailure:
        return cls(message="Pull request is still in draft.")

    @classmethod
    def is_closed(cls) -> PullRequestFailure:
        return cls(message="Pull request is already closed.")

    @classmethod
    def is_merged(cls) -> PullRequestFailure:
        return cls(message="Pull request is already merged.")

    @classmethod
    def no_target_label(cls) -> PullRequestFailure:
        return cls(message="No target branch could be determined for PR.")

    @classmethod
    def mismatching_target_branch(
        cls, allowed_branches: list[str]
    ) -> PullRequestFailure:
        return cls(message=(
            "Pull request is set to wrong base branch. Please update "
            "the PR in the Github UI to one of the following branches: "
            f"{', '.join(allowed_branches)}."
        ))

    @classmethod
    def unsatisfied_base_sha(cls) -> PullRequestFailure:
        return cls(message=(
            "Pull request has not been rebased recently and could be "
            "bypassing CI checks. Please rebase the PR."
        ))

    @classmethod
    def merge_conflicts(
        cls, failed_branches: list[str]
    ) -> PullRequestFailure:
        return cls(message=(
            "Could not merge pull request into the following branches "
            f"due to merge conflicts: {', '.join(failed_branches)}. "
            "Please rebase the PR or update the target label."
        ))

    @classmethod
    def unknown_merge_error(cls) -> PullRequestFailure:
        return cls(message="Unknown merge error occurred.")

    @classmethod
    def not_found(cls) -> PullRequestFailure:
        return cls(message="Pull request could not be found upstream.")

    @classmethod
    def insufficient_permissions_to_merge(
        cls,
        message: str = (
            "Insufficient Github API permissions to merge pull request. "
            "Please ensure that your auth token has write access."
        ),
    ) -> PullRequestFailure:
        return cls(message=message)

    @classmethod
    def has_breaking_changes(cls, label: str) -> PullRequestFailure:
        return cls(message=(
            f"Cannot merge into branch for \"{label}\" as the pull "
            "request has breaking changes. Breaking changes can only "
            "be merged with the \"target: major\" label."
        ))

    @classmethod
    def has_deprecations(cls, label: str) -> PullRequestFailure:
        return cls(message=(
            f"Cannot merge into branch for \"{label}\" as the pull "
            "request contains deprecations. Deprecations can only be "
            "merged with the \"target: minor\" or \"target: major\" "
            "label."
        ))

    @classmethod
    def has_feature_commits(cls, label: str) -> PullRequestFailure:
        return cls(message=(
            f"Cannot merge into branch for \"{label}\" as the pull "
            "request has commits with the \"feat\" type. New features "
            "can only be merged with the \"target: minor\" or "
            "\"target: major\" label."
        ))

    @classmethod
    def missing_breaking_change_label(cls) -> PullRequestFailure:
        return cls(message=(
            "Pull request has breaking change commits but is missing "
            "the breaking change label."
        ))

    @classmethod
    def missing_breaking_change_commit(cls) -> PullRequestFailure:
        return cls(message=(
            "Pull request has the breaking change label but does not "
            "contain any breaking change commits."
        ))

    @classmethod
    def from_target_label_error(cls, error: Exception) -> PullRequestFailure:
        """Wrap an expected target-label resolution error."""
        return cls(message=str(error))


__all__ = ["PullRequestFailure"]
