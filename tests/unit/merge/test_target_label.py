"""Tests for target label resolution."""

import pytest

from prmerge.merge.target_label import (
    InvalidTargetBranchError,
    InvalidTargetLabelError,
    NoTargetLabelError,
    TargetLabelResolver,
    matches_pattern,
)


class RecordingLtsCheck:
    """LTS check that records its calls and optionally rejects."""

    def __init__(self, error: Exception | None = None):
        self.error = error
        self.calls = []

    async def __call__(self, branch_name: str) -> None:
        self.calls.append(branch_name)
        if self.error is not None:
            raise self.error


@pytest.fixture
def lts_check():
    return RecordingLtsCheck()


@pytest.fixture
def resolver(trains, lts_check):
    return TargetLabelResolver(trains, lts_check)


@pytest.fixture
def rc_resolver(trains_with_rc, lts_check):
    return TargetLabelResolver(trains_with_rc, lts_check)


# ============================================================
# LABEL LOOKUP
# ============================================================

def test_matches_pattern_exact_and_regex():
    assert matches_pattern("target: patch", "target: patch")
    assert matches_pattern("cla: yes", "^cla: yes$")
    assert not matches_pattern("cla: no", "^cla: yes$")
    # Regexes must match the whole label
    assert not matches_pattern("target: patchy", "target: patch")


def test_get_target_label(resolver):
    label = resolver.get_target_label(["cla: yes", "target: minor"])
    assert label.pattern == "target: minor"


def test_no_target_label(resolver):
    with pytest.raises(NoTargetLabelError, match="no target label"):
        resolver.get_target_label(["cla: yes", "action: merge"])


def test_multiple_target_labels(resolver):
    with pytest.raises(InvalidTargetLabelError, match="multiple target"):
        resolver.get_target_label(["target: minor", "target: patch"])


# ============================================================
# RESOLUTION
# ============================================================

@pytest.mark.asyncio
async def test_patch_into_latest_branch_only(resolver):
    """A patch PR opened against the latest branch only lands there."""
    branches = await resolver.get_branches(["target: patch"], "10.1.x")
    assert branches == ["10.1.x"]


@pytest.mark.asyncio
async def test_patch_from_main_without_rc(resolver):
    branches = await resolver.get_branches(["target: patch"], "main")
    assert branches == ["main", "10.1.x"]


@pytest.mark.asyncio
async def test_patch_from_main_with_rc(rc_resolver):
    branches = await rc_resolver.get_branches(["target: patch"], "main")
    assert branches == ["main", "10.1.x", "10.2.x"]


@pytest.mark.asyncio
async def test_minor_targets_next(rc_resolver):
    assert await rc_resolver.get_branches(["target: minor"], "main") == [
        "main"
    ]


@pytest.mark.asyncio
async def test_major_when_next_is_major(resolver):
    assert await resolver.get_branches(["target: major"], "main") == ["main"]


@pytest.mark.asyncio
async def test_major_rejected_when_next_is_minor(rc_resolver):
    with pytest.raises(
        InvalidTargetLabelError,
        match='"main" branch will be released as a minor version',
    ):
        await rc_resolver.get_branches(["target: major"], "main")


@pytest.mark.asyncio
async def test_rc_without_active_rc(resolver):
    with pytest.raises(InvalidTargetLabelError) as exc_info:
        await resolver.get_branches(["target: rc"], "main")
    assert str(exc_info.value) == (
        "No active feature-freeze/release-candidate branch. Unable to "
        "merge pull request using \"target: rc\" label."
    )


@pytest.mark.asyncio
async def test_rc_from_main(rc_resolver):
    branches = await rc_resolver.get_branches(["target: rc"], "main")
    assert branches == ["main", "10.2.x"]


@pytest.mark.asyncio
async def test_rc_against_rc_branch(rc_resolver):
    branches = await rc_resolver.get_branches(["target: rc"], "10.2.x")
    assert branches == ["10.2.x"]


@pytest.mark.asyncio
async def test_lts_requires_version_branch(resolver, lts_check):
    with pytest.raises(InvalidTargetBranchError, match="long-term support"):
        await resolver.get_branches(["target: lts"], "main")
    assert lts_check.calls == []


@pytest.mark.asyncio
async def test_lts_rejects_latest(resolver):
    with pytest.raises(InvalidTargetBranchError, match="target: patch"):
        await resolver.get_branches(["target: lts"], "10.1.x")


@pytest.mark.asyncio
async def test_lts_rejects_rc(rc_resolver):
    with pytest.raises(InvalidTargetBranchError, match="target: rc"):
        await rc_resolver.get_branches(["target: lts"], "10.2.x")


@pytest.mark.asyncio
async def test_lts_consults_window_check(resolver, lts_check):
    assert await resolver.get_branches(["target: lts"], "9.2.x") == ["9.2.x"]
    assert lts_check.calls == ["9.2.x"]


@pytest.mark.asyncio
async def test_resolution_is_deterministic(rc_resolver):
    first = await rc_resolver.get_branches(["target: patch"], "main")
    second = await rc_resolver.get_branches(["target: patch"], "main")
    assert first == second
    assert len(set(first)) == len(first)


# ============================================================
# RESOLVE (errors as values)
# ============================================================

@pytest.mark.asyncio
async def test_resolve_success(resolver):
    resolution = await resolver.resolve(["target: patch"], "10.1.x")
    assert resolution.ok
    assert resolution.branches == ["10.1.x"]


@pytest.mark.asyncio
async def test_resolve_captures_label_errors(resolver):
    resolution = await resolver.resolve(["target: rc"], "main")
    assert not resolution.ok
    assert resolution.branches is None
    assert isinstance(resolution.error, InvalidTargetLabelError)


@pytest.mark.asyncio
async def test_resolve_captures_lts_window_errors(trains):
    error = InvalidTargetBranchError("Long-term supported ended for v9")
    resolver = TargetLabelResolver(trains, RecordingLtsCheck(error))

    resolution = await resolver.resolve(["target: lts"], "9.2.x")

    assert resolution.error is error


@pytest.mark.asyncio
async def test_resolve_propagates_unexpected_errors(trains):
    resolver = TargetLabelResolver(
        trains, RecordingLtsCheck(ConnectionError("registry down"))
    )

    with pytest.raises(ConnectionError):
        await resolver.resolve(["target: lts"], "9.2.x")
