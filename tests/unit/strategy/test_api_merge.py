"""Tests for ApiMergeStrategy with a fake GitHub merge endpoint."""

import pytest

from prmerge.core.config import ApiMergeConfig, MergeMethodLabel
from prmerge.git.github import GithubApiRequestError, MergeResponse
from prmerge.merge.failures import PullRequestFailure
from prmerge.strategy import ApiMergeStrategy


class FakeGithub:
    """Records merge calls and answers them with merge_handler."""

    def __init__(self, merge_handler):
        self.merge_handler = merge_handler
        self.merges = []

    async def merge_pull_request(self, pr_number, method, sha=None):
        self.merges.append((pr_number, method, sha))
        return self.merge_handler()


def squash_upstream(upstream, files):
    """Handler that squash-merges onto upstream main like GitHub does."""
    def handler():
        sha = ""
        for name, content in files.items():
            sha = upstream.commit_on(
                "main", name, content, "fix: squashed (#42)"
            )
        return MergeResponse(status=200, sha=sha)
    return handler


def respond(**kwargs):
    return lambda: MergeResponse(**kwargs)


def fail(status, message="error"):
    def handler():
        raise GithubApiRequestError(status, message)
    return handler


@pytest.fixture
def release_branches(upstream):
    upstream.create_branch("10.1.x")
    upstream.create_branch("10.2.x")
    upstream.commit_on("10.2.x", "a.txt", "diverged\n", "fix: diverge")
    return upstream


async def run_merge(strategy, upstream, pr):
    await strategy.prepare(pr)
    try:
        return await strategy.merge(pr)
    finally:
        upstream.git(upstream.workdir, "checkout", "-q", "-f", "main")
        await strategy.cleanup(pr)


def test_merge_method_label_override(git_client, make_pull_request):
    config = ApiMergeConfig(
        default="squash",
        labels=[MergeMethodLabel(pattern="^merge: preserve$", method="rebase")],
    )
    strategy = ApiMergeStrategy(git_client, FakeGithub(None), config)

    assert strategy.get_merge_method(make_pull_request(["main"])) == "squash"
    assert strategy.get_merge_method(make_pull_request(
        ["main"], labels=["merge: preserve"]
    )) == "rebase"


@pytest.mark.asyncio
async def test_base_branch_must_be_a_target(git_client, make_pull_request):
    github = FakeGithub(respond(status=200, sha="x"))
    strategy = ApiMergeStrategy(git_client, github, ApiMergeConfig())
    pr = make_pull_request(["main", "10.1.x"], github_target_branch="feature")

    failure = await strategy.merge(pr)

    assert failure == PullRequestFailure.mismatching_target_branch(
        ["main", "10.1.x"]
    )
    assert github.merges == []


@pytest.mark.asyncio
async def test_dry_run_conflict_skips_api_merge(release_branches, git_client,
                                                make_pull_request):
    upstream = release_branches
    upstream.create_pull_request(42, {"a.txt": "fixed\n"})
    github = FakeGithub(respond(status=200, sha="x"))
    strategy = ApiMergeStrategy(git_client, github, ApiMergeConfig())
    pr = make_pull_request(["main", "10.1.x", "10.2.x"])

    failure = await run_merge(strategy, upstream, pr)

    assert failure == PullRequestFailure.merge_conflicts(["10.2.x"])
    assert github.merges == []


@pytest.mark.asyncio
@pytest.mark.parametrize("handler, expected", [
    (fail(403), PullRequestFailure.insufficient_permissions_to_merge()),
    (fail(404), PullRequestFailure.insufficient_permissions_to_merge()),
    (respond(status=405, message="Not mergeable"),
     PullRequestFailure.merge_conflicts(["main"])),
    (respond(status=409, message="Head moved"),
     PullRequestFailure.unknown_merge_error()),
])
async def test_api_merge_errors(release_branches, git_client,
                                make_pull_request, handler, expected):
    upstream = release_branches
    upstream.create_pull_request(42, {"fix.txt": "fix\n"})
    strategy = ApiMergeStrategy(
        git_client, FakeGithub(handler), ApiMergeConfig()
    )
    pr = make_pull_request(["main", "10.1.x"])

    assert await run_merge(strategy, upstream, pr) == expected


@pytest.mark.asyncio
async def test_unexpected_api_error_propagates(release_branches, git_client,
                                               make_pull_request):
    upstream = release_branches
    upstream.create_pull_request(42, {"fix.txt": "fix\n"})
    strategy = ApiMergeStrategy(
        git_client, FakeGithub(fail(500)), ApiMergeConfig()
    )

    with pytest.raises(GithubApiRequestError):
        await run_merge(strategy, upstream, make_pull_request(["main"]))


@pytest.mark.asyncio
async def test_merge_single_target(release_branches, git_client,
                                   make_pull_request):
    upstream = release_branches
    head = upstream.create_pull_request(42, {"fix.txt": "fix\n"})
    github = FakeGithub(squash_upstream(upstream, {"fix.txt": "fix\n"}))
    strategy = ApiMergeStrategy(git_client, github, ApiMergeConfig())
    pr = make_pull_request(["main"], head_sha=head)
    before = upstream.remote_sha("10.1.x")

    assert await run_merge(strategy, upstream, pr) is None

    assert github.merges == [(42, "squash", head)]
    assert upstream.remote_file("main", "fix.txt") == "fix"
    assert upstream.remote_sha("10.1.x") == before


@pytest.mark.asyncio
async def test_merge_then_cherry_pick_into_other_targets(
    release_branches, git_client, make_pull_request
):
    upstream = release_branches
    upstream.create_pull_request(42, {"fix.txt": "fix\n"})
    github = FakeGithub(squash_upstream(upstream, {"fix.txt": "fix\n"}))
    strategy = ApiMergeStrategy(git_client, github, ApiMergeConfig())
    pr = make_pull_request(["main", "10.1.x"])

    assert await run_merge(strategy, upstream, pr) is None

    merged_sha = upstream.remote_sha("main")
    assert upstream.remote_file("10.1.x", "fix.txt") == "fix"
    message = upstream.git(upstream.remote, "log", "-1", "--format=%B",
                           "10.1.x")
    assert f"(cherry picked from commit {merged_sha})" in message
