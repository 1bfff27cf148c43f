"""Tests for pull request loading and validation."""

import pytest

from prmerge.core.config import MergeConfig
from prmerge.git.github import PullRequestData
from prmerge.merge.failures import PullRequestFailure
from prmerge.merge.pull_request import (
    PullRequest,
    load_and_validate_pull_request,
)
from prmerge.merge.target_label import TargetLabelResolver

READY_LABELS = ["action: merge", "cla: yes"]


class FakeGithub:
    """Returns a canned pull request, or None for unknown numbers."""

    def __init__(self, data: PullRequestData | None):
        self.data = data

    async def get_pull_request(self, pr_number: int):
        if self.data is None or self.data.number != pr_number:
            return None
        return self.data


def make_pr_data(**overrides) -> PullRequestData:
    values = {
        "url": "https://github.com/angular/components/pull/42",
        "number": 42,
        "title": "fix(cdk/a11y): focus trap",
        "state": "OPEN",
        "is_draft": False,
        "base_ref_name": "10.1.x",
        "head_ref_name": "fix-focus-trap",
        "head_sha": "a" * 40,
        "commit_count": 1,
        "commit_messages": ["fix(cdk/a11y): focus trap"],
        "ci_status": "SUCCESS",
        "labels": [*READY_LABELS, "target: patch"],
    }
    values.update(overrides)
    return PullRequestData(**values)


async def _validate(data, trains, config=None, **kwargs):
    async def lts_check(branch_name):
        pass

    return await load_and_validate_pull_request(
        FakeGithub(data),
        config or MergeConfig(),
        TargetLabelResolver(trains, lts_check),
        42,
        **kwargs,
    )


@pytest.mark.asyncio
async def test_valid_patch_pull_request(trains):
    pr = await _validate(make_pr_data(), trains)

    assert isinstance(pr, PullRequest)
    assert pr.target_branches == ("10.1.x",)
    assert pr.github_target_branch == "10.1.x"
    assert pr.head_sha == "a" * 40
    assert pr.has_caretaker_note is False


@pytest.mark.asyncio
async def test_not_found(trains):
    result = await _validate(None, trains)
    assert result == PullRequestFailure.not_found()


@pytest.mark.asyncio
@pytest.mark.parametrize("labels, expected", [
    (["cla: yes", "target: patch"], PullRequestFailure.not_merge_ready()),
    (["action: merge", "target: patch"], PullRequestFailure.cla_unsigned()),
])
async def test_required_labels(trains, labels, expected):
    result = await _validate(make_pr_data(labels=labels), trains)
    assert result == expected


@pytest.mark.asyncio
async def test_missing_target_label(trains):
    result = await _validate(make_pr_data(labels=READY_LABELS), trains)

    assert result == PullRequestFailure.no_target_label()


@pytest.mark.asyncio
async def test_multiple_target_labels(trains):
    result = await _validate(make_pr_data(
        labels=[*READY_LABELS, "target: patch", "target: minor"]
    ), trains)

    assert "multiple target labels" in result.message


@pytest.mark.asyncio
@pytest.mark.parametrize("overrides, expected", [
    ({"is_draft": True}, PullRequestFailure.is_draft()),
    ({"state": "CLOSED"}, PullRequestFailure.is_closed()),
    ({"state": "MERGED"}, PullRequestFailure.is_merged()),
])
async def test_pending_state(trains, overrides, expected):
    assert await _validate(make_pr_data(**overrides), trains) == expected


@pytest.mark.asyncio
async def test_feature_commit_not_allowed_in_patch(trains):
    data = make_pr_data(commit_messages=["feat(cdk/a11y): new thing"])

    result = await _validate(data, trains)

    assert result == PullRequestFailure.has_feature_commits("target: patch")


@pytest.mark.asyncio
async def test_exempt_scope_skips_content_check(trains):
    data = make_pr_data(commit_messages=["feat(dev-infra): tooling"])
    config = MergeConfig(target_label_exempt_scopes=["dev-infra"])

    result = await _validate(data, trains, config=config)

    assert isinstance(result, PullRequest)


@pytest.mark.asyncio
async def test_breaking_change_needs_label(trains):
    data = make_pr_data(
        base_ref_name="main",
        labels=[*READY_LABELS, "target: major"],
        commit_messages=["feat: x\n\nBREAKING CHANGE: removed y"],
    )

    result = await _validate(data, trains)

    assert result == PullRequestFailure.missing_breaking_change_label()


@pytest.mark.asyncio
async def test_breaking_change_with_label_into_major(trains):
    data = make_pr_data(
        base_ref_name="main",
        labels=[*READY_LABELS, "target: major", "flag: breaking change"],
        commit_messages=["feat: x\n\nBREAKING CHANGE: removed y"],
    )

    result = await _validate(data, trains)

    assert isinstance(result, PullRequest)
    assert result.target_branches == ("main",)


@pytest.mark.asyncio
async def test_breaking_change_label_without_commit(trains):
    data = make_pr_data(
        labels=[*READY_LABELS, "target: patch", "flag: breaking change"],
    )

    result = await _validate(data, trains)

    assert result == PullRequestFailure.missing_breaking_change_commit()


@pytest.mark.asyncio
@pytest.mark.parametrize("ci_status, expected", [
    ("FAILURE", PullRequestFailure.failing_ci_jobs()),
    ("ERROR", PullRequestFailure.failing_ci_jobs()),
    ("PENDING", PullRequestFailure.pending_ci_jobs()),
])
async def test_ci_status(trains, ci_status, expected):
    result = await _validate(make_pr_data(ci_status=ci_status), trains)

    assert result == expected
    assert result.non_fatal


@pytest.mark.asyncio
async def test_ci_failures_ignored_when_forced(trains):
    data = make_pr_data(ci_status="FAILURE")

    result = await _validate(data, trains, ignore_non_fatal_failures=True)

    assert isinstance(result, PullRequest)


@pytest.mark.asyncio
async def test_unresolvable_label(trains):
    data = make_pr_data(labels=[*READY_LABELS, "target: rc"])

    result = await _validate(data, trains)

    assert isinstance(result, PullRequestFailure)
    assert "release-candidate" in result.message


@pytest.mark.asyncio
async def test_caretaker_note_and_required_base(trains):
    data = make_pr_data(
        labels=[*READY_LABELS, "target: patch", "merge: caretaker note"],
    )
    config = MergeConfig(required_base_commits={"10.1.x": "b" * 40})

    pr = await _validate(data, trains, config=config)

    assert pr.has_caretaker_note is True
    assert pr.required_base_sha == "b" * 40
