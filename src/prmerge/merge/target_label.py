"""Resolution of a PR's "target: *" label into target branches.

Each label is a TargetLabel pairing a pattern with an async resolver
that maps the PR's base branch to the list of branches the change has
to land on, given the active release trains.
"""

from __future__ import annotations

import re
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass

from prmerge.merge.release_trains import ActiveReleaseTrains, is_version_branch

# Async check that raises InvalidTargetBranchError when the branch is
# outside its long-term support window.
LtsBranchCheck = Callable[[str], Awaitable[None]]


class TargetLabelError(Exception):
    """A target label cannot be applied to a pull request."""


class InvalidTargetLabelError(TargetLabelError):
    """The label cannot apply given the current release trains."""


class InvalidTargetBranchError(TargetLabelError):
    """The PR's base branch is incompatible with the label."""


class NoTargetLabelError(InvalidTargetLabelError):
    """None of the PR labels is a configured target label."""


def matches_pattern(value: str, pattern: str) -> bool:
    """Whether value is the pattern, or fully matches it as a regex."""
    return value == pattern or re.fullmatch(pattern, value) is not None


@dataclass(frozen=True)
class TargetLabel:
    pattern: str
    resolve: Callable[[str], Awaitable[list[str]]]


@dataclass(frozen=True)
class BranchResolution:
    """Either the resolved branches or the expected error."""

    branches: list[str] | None = None
    error: TargetLabelError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _unique(branches: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(branches))


class TargetLabelResolver:
    """Resolves target labels against a release train snapshot.

    Resolution only depends on the label, the base branch and the
    snapshot, apart from the injected LTS window check.
    """

    def __init__(
        self,
        trains: ActiveReleaseTrains,
        lts_check: LtsBranchCheck,
    ):
        self.trains = trains
        self.lts_check = lts_check
        self.labels = [
            TargetLabel("target: major", self._resolve_major),
            TargetLabel("target: minor", self._resolve_minor),
            TargetLabel("target: patch", self._resolve_patch),
            TargetLabel("target: rc", self._resolve_rc),
            TargetLabel("target: lts", self._resolve_lts),
        ]

    # ============================================================
    # RESOLVERS
    # ============================================================

    async def _resolve_major(self, github_target_branch: str) -> list[str]:
        # Breaking changes must not land in a train that ships as minor
        if not self.trains.next.is_major:
            raise InvalidTargetLabelError(
                "Unable to merge pull request. The "
                f"\"{self.trains.next.branch_name}\" branch will be "
                "released as a minor version."
            )
        return [self.trains.next.branch_name]

    async def _resolve_minor(self, github_target_branch: str) -> list[str]:
        return [self.trains.next.branch_name]

    async def _resolve_patch(self, github_target_branch: str) -> list[str]:
        latest = self.trains.latest.branch_name
        if github_target_branch == latest:
            return [latest]

        branches = [self.trains.next.branch_name, latest]
        if self.trains.release_candidate is not None:
            branches.append(self.trains.release_candidate.branch_name)
        return _unique(branches)

    async def _resolve_rc(self, github_target_branch: str) -> list[str]:
        rc = self.trains.release_candidate
        if rc is None:
            raise InvalidTargetLabelError(
                "No active feature-freeze/release-candidate branch. "
                "Unable to merge pull request using \"target: rc\" label."
            )
        if github_target_branch == rc.branch_name:
            return [rc.branch_name]
        return _unique([self.trains.next.branch_name, rc.branch_name])

    async def _resolve_lts(self, github_target_branch: str) -> list[str]:
        if not is_version_branch(github_target_branch):
            raise InvalidTargetBranchError(
                "PR cannot be merged as it does not target a long-term "
                f"support branch: \"{github_target_branch}\""
            )
        if github_target_branch == self.trains.latest.branch_name:
            raise InvalidTargetBranchError(
                "PR cannot be merged with \"target: lts\" into patch "
                "branch. Consider changing the label to \"target: patch\" "
                "if this is intentional."
            )
        rc = self.trains.release_candidate
        if rc is not None and github_target_branch == rc.branch_name:
            raise InvalidTargetBranchError(
                "PR cannot be merged with \"target: lts\" into feature-"
                "freeze/release-candidate branch. Consider changing the "
                "label to \"target: rc\" if this is intentional."
            )
        await self.lts_check(github_target_branch)
        return [github_target_branch]

    # ============================================================
    # LOOKUP
    # ============================================================

    def get_target_label(self, labels: Iterable[str]) -> TargetLabel:
        """Find the single configured target label among labels.

        Raises:
            NoTargetLabelError: If no label matches
            InvalidTargetLabelError: If more than one label matches
        """
        labels = list(labels)
        matches = [
            target for target in self.labels
            if any(matches_pattern(label, target.pattern) for label in labels)
        ]
        if not matches:
            raise NoTargetLabelError(
                "Unable to determine target for the PR as it has no "
                "target label."
            )
        if len(matches) > 1:
            raise InvalidTargetLabelError(
                "Unable to determine target for the PR as it has "
                "multiple target labels."
            )
        return matches[0]

    async def get_branches(
        self, labels: Iterable[str], github_target_branch: str
    ) -> list[str]:
        """Resolve labels to de-duplicated target branches.

        Raises:
            TargetLabelError: If the label cannot be applied
        """
        target = self.get_target_label(labels)
        return _unique(await target.resolve(github_target_branch))

    async def resolve(
        self, labels: Iterable[str], github_target_branch: str
    ) -> BranchResolution:
        """Like get_branches(), but returns expected label errors.

        Any exception other than TargetLabelError propagates.
        """
        try:
            branches = await self.get_branches(labels, github_target_branch)
        except TargetLabelError as e:
            return BranchResolution(error=e)
        return BranchResolution(branches=branches)


__all__ = [
    "BranchResolution",
    "InvalidTargetBranchError",
    "InvalidTargetLabelError",
    "LtsBranchCheck",
    "NoTargetLabelError",
    "TargetLabel",
    "TargetLabelError",
    "TargetLabelResolver",
    "matches_pattern",
]
