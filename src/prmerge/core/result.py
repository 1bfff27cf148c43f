"""Result types for command execution and merge runs."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict

from prmerge.merge.failures import PullRequestFailure


class CommandResult(BaseModel):
    """Result of a single git process."""

    status: int
    stdout: str
    stderr: str

    @property
    def success(self) -> bool:
        return self.status == 0


class MergeStatus(str, Enum):
    """Terminal status of a merge run."""

    UNKNOWN_VCS_ERROR = "unknown-vcs-error"
    DIRTY_WORKING_DIR = "dirty-working-dir"
    SUCCESS = "success"
    FAILED = "failed"
    AUTH_ERROR = "auth-error"


class MergeResult(BaseModel):
    """Outcome of MergeTask.merge().

    ``failure`` is set for FAILED and AUTH_ERROR, and None otherwise.
    """

    model_config = ConfigDict(frozen=True)

    status: MergeStatus
    failure: PullRequestFailure | None = None
