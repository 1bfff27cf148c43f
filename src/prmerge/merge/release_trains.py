"""Snapshot of the repository's active release trains."""

from __future__ import annotations

import re

from pydantic import BaseModel, ConfigDict, Field, model_validator

# Branch names like "10.1.x"
VERSION_BRANCH_PATTERN = re.compile(r"^(\d+)\.(\d+)\.x$")
# Semantic versions like "10.1.3" or "11.0.0-next.2"
SEMVER_PATTERN = re.compile(
    r"^(\d+)\.(\d+)\.(\d+)(?:-([0-9A-Za-z.-]+))?(?:\+[0-9A-Za-z.-]+)?$"
)


def is_version_branch(branch_name: str) -> bool:
    """Whether the branch follows the "<major>.<minor>.x" naming."""
    return VERSION_BRANCH_PATTERN.match(branch_name) is not None


class ReleaseTrain(BaseModel):
    """A branch that receives releases of one version line."""

    model_config = ConfigDict(frozen=True)

    branch_name: str
    version: str = Field(
        description="Current version of the train, e.g. '10.1.3' or "
        "'11.0.0-rc.1'"
    )
    is_major: bool | None = Field(
        default=None,
        description=(
            "Whether the train will release a new major. Derived from "
            "the version (minor and patch are zero) when not set."
        ),
    )

    @model_validator(mode="after")
    def _derive_is_major(self) -> ReleaseTrain:
        if self.is_major is None:
            _, minor, patch = self.version_parts
            object.__setattr__(self, "is_major", minor == 0 and patch == 0)
        return self

    @property
    def version_parts(self) -> tuple[int, int, int]:
        """Major, minor and patch numbers of the version."""
        match = SEMVER_PATTERN.match(self.version)
        if match is None:
            raise ValueError(f"Invalid version: {self.version}")
        return int(match.group(1)), int(match.group(2)), int(match.group(3))


class ActiveReleaseTrains(BaseModel):
    """The release trains that are active at the time of merging.

    ``next`` is the development branch (e.g. "main"), ``latest`` the
    most recent version branch and ``release_candidate`` the version
    branch in feature-freeze or release-candidate phase, if any.
    """

    model_config = ConfigDict(frozen=True)

    next: ReleaseTrain
    latest: ReleaseTrain
    release_candidate: ReleaseTrain | None = None

    @model_validator(mode="after")
    def _check_trains(self) -> ActiveReleaseTrains:
        names = [self.next.branch_name, self.latest.branch_name]
        if self.release_candidate is not None:
            names.append(self.release_candidate.branch_name)
        if len(set(names)) != len(names):
            raise ValueError(
                f"Release trains must use distinct branches: {names}"
            )
        for train in (self.latest, self.release_candidate):
            if train is not None and not is_version_branch(train.branch_name):
                raise ValueError(
                    f"Release train branch \"{train.branch_name}\" is not "
                    "a version branch."
                )
        return self


__all__ = [
    "ActiveReleaseTrains",
    "ReleaseTrain",
    "VERSION_BRANCH_PATTERN",
    "is_version_branch",
]
