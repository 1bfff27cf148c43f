"""Loading and validation of pull requests before merging."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from prmerge.core.config import MergeConfig
from prmerge.core.log import logger
from prmerge.git.github import GithubClient, PullRequestData
from prmerge.merge.commit_message import CommitMessage, parse_commit_message
from prmerge.merge.failures import PullRequestFailure
from prmerge.merge.target_label import (
    InvalidTargetLabelError,
    NoTargetLabelError,
    TargetLabel,
    TargetLabelResolver,
    matches_pattern,
)


class PullRequest(BaseModel):
    """A pull request that passed validation and can be merged.

    Only created by load_and_validate_pull_request(); target_branches is
    computed once there and never changes afterwards.
    """

    model_config = ConfigDict(frozen=True)

    pr_number: int
    url: str
    title: str
    labels: tuple[str, ...]
    github_target_branch: str
    target_branches: tuple[str, ...]
    commit_count: int
    head_sha: str
    head_ref_name: str
    head_repository: str | None = None
    maintainer_can_modify: bool = False
    required_base_sha: str | None = None
    has_caretaker_note: bool = False
    ci_status: str | None = None


def _has_label(labels: list[str], pattern: str | None) -> bool:
    return pattern is not None and any(
        matches_pattern(label, pattern) for label in labels
    )


def _check_pending_state(data: PullRequestData) -> PullRequestFailure | None:
    if data.is_draft:
        return PullRequestFailure.is_draft()
    if data.state == "CLOSED":
        return PullRequestFailure.is_closed()
    if data.state == "MERGED":
        return PullRequestFailure.is_merged()
    return None


def _check_changes_allowed(
    commits: list[CommitMessage],
    label: TargetLabel,
    config: MergeConfig,
) -> PullRequestFailure | None:
    """Check commit content against what the target label allows.

    Breaking changes need "target: major". Features and deprecations
    need a minor or major target.
    """
    commits = [
        commit for commit in commits
        if commit.scope not in config.target_label_exempt_scopes
    ]
    has_breaking_changes = any(c.breaking_changes for c in commits)
    has_deprecations = any(c.deprecations for c in commits)
    has_feature_commits = any(c.type == "feat" for c in commits)

    if label.pattern == "target: minor" and has_breaking_changes:
        return PullRequestFailure.has_breaking_changes(label.pattern)
    if label.pattern in ("target: patch", "target: rc", "target: lts"):
        if has_breaking_changes:
            return PullRequestFailure.has_breaking_changes(label.pattern)
        if has_feature_commits:
            return PullRequestFailure.has_feature_commits(label.pattern)
        if has_deprecations:
            return PullRequestFailure.has_deprecations(label.pattern)
    return None


def _check_breaking_change_labeling(
    commits: list[CommitMessage],
    labels: list[str],
    config: MergeConfig,
) -> PullRequestFailure | None:
    has_label = config.breaking_change_label in labels
    has_commit = any(c.breaking_changes for c in commits)
    if has_commit and not has_label:
        return PullRequestFailure.missing_breaking_change_label()
    if has_label and not has_commit:
        return PullRequestFailure.missing_breaking_change_commit()
    return None


async def load_and_validate_pull_request(
    github: GithubClient,
    config: MergeConfig,
    resolver: TargetLabelResolver,
    pr_number: int,
    ignore_non_fatal_failures: bool = False,
) -> PullRequest | PullRequestFailure:
    """Fetch a pull request and check that it can be merged.

    Checks run in a fixed order and the first violation is returned:
    existence, merge-ready and CLA labels, a single target label, open
    and non-draft state, commit content against the target label,
    breaking change labeling, CI status and finally target branch
    resolution.

    Args:
        github: Hosting API client
        config: Merge configuration
        resolver: Target label resolver for the active release trains
        pr_number: Number of the pull request
        ignore_non_fatal_failures: Skip failures marked non-fatal (CI)

    Returns:
        The validated PullRequest, or the first PullRequestFailure
    """
    data = await github.get_pull_request(pr_number)
    if data is None:
        return PullRequestFailure.not_found()

    labels = data.labels
    if config.merge_ready_label and not _has_label(
        labels, config.merge_ready_label
    ):
        return PullRequestFailure.not_merge_ready()
    if config.cla_signed_label and not _has_label(
        labels, config.cla_signed_label
    ):
        return PullRequestFailure.cla_unsigned()

    try:
        target_label = resolver.get_target_label(labels)
    except NoTargetLabelError:
        return PullRequestFailure.no_target_label()
    except InvalidTargetLabelError as e:
        return PullRequestFailure.from_target_label_error(e)

    commits = [parse_commit_message(m) for m in data.commit_messages]
    failure = (
        _check_pending_state(data)
        or _check_changes_allowed(commits, target_label, config)
        or _check_breaking_change_labeling(commits, labels, config)
    )
    if failure is not None:
        return failure

    if not ignore_non_fatal_failures:
        if data.ci_status in ("FAILURE", "ERROR"):
            return PullRequestFailure.failing_ci_jobs()
        if data.ci_status in ("PENDING", "EXPECTED"):
            return PullRequestFailure.pending_ci_jobs()

    resolution = await resolver.resolve(labels, data.base_ref_name)
    if not resolution.ok:
        return PullRequestFailure.from_target_label_error(resolution.error)

    logger.debug(
        f"Resolved target branches for PR #{pr_number}",
        target_branches=resolution.branches,
    )
    return PullRequest(
        pr_number=data.number,
        url=data.url,
        title=data.title,
        labels=tuple(labels),
        github_target_branch=data.base_ref_name,
        target_branches=tuple(resolution.branches),
        commit_count=data.commit_count,
        head_sha=data.head_sha,
        head_ref_name=data.head_ref_name,
        head_repository=data.head_repository,
        maintainer_can_modify=data.maintainer_can_modify,
        required_base_sha=config.required_base_commits.get(
            data.base_ref_name
        ),
        has_caretaker_note=_has_label(labels, config.caretaker_note_label),
        ci_status=data.ci_status,
    )


__all__ = ["PullRequest", "load_and_validate_pull_request"]
