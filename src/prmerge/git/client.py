"""Git command execution against the local working repository."""

from __future__ import annotations

import sys
from collections.abc import Sequence
from pathlib import Path

from prmerge.core.config import GithubConfig
from prmerge.core.log import logger
from prmerge.core.result import CommandResult
from prmerge.core.runner import Runner


class CommandError(Exception):
    """A git command exited with a non-zero status.

    The message and the attached result only ever contain sanitized
    output.
    """

    def __init__(self, message: str, result: CommandResult):
        super().__init__(message)
        self.result = result


class GitClient:
    """Runs git commands in one working directory.

    Every command line, error message and stderr echo passes through
    sanitize_console_output() so the access token never leaves this
    class.
    """

    def __init__(
        self,
        workdir: Path,
        github: GithubConfig,
        runner: Runner | None = None,
        verbose: bool = False,
    ):
        self.workdir = Path(workdir)
        self.github = github
        self.runner = runner or Runner()
        self.verbose = verbose

    @property
    def repo_git_url(self) -> str:
        """URL used to fetch from and push to the upstream repository."""
        if self.github.git_url:
            return self.github.git_url
        slug = f"github.com/{self.github.owner}/{self.github.name}.git"
        if self.github.token:
            return f"https://{self.github.token}@{slug}"
        return f"https://{slug}"

    def sanitize_console_output(self, value: str) -> str:
        """Replace the access token in value with a placeholder."""
        token = self.github.token
        if not token:
            return value
        return value.replace(token, "<TOKEN>")

    def run(
        self, args: Sequence[str], env: dict[str, str] | None = None
    ) -> CommandResult:
        """Run git and raise if it fails.

        Raises:
            CommandError: If git exits with a non-zero status
        """
        result = self.run_graceful(args, env=env)
        if not result.success:
            raise CommandError(
                "Command failed: git "
                + self.sanitize_console_output(" ".join(args)),
                result.model_copy(update={
                    "stdout": self.sanitize_console_output(result.stdout),
                    "stderr": self.sanitize_console_output(result.stderr),
                }),
            )
        return result

    def run_graceful(
        self, args: Sequence[str], env: dict[str, str] | None = None
    ) -> CommandResult:
        """Run git without raising on a non-zero exit status.

        stderr is echoed, sanitized, to this process's stderr.
        """
        command = self.sanitize_console_output(" ".join(args))
        if self.verbose:
            logger.info(f"Executing: git {command}")
        else:
            logger.debug(f"Executing: git {command}")

        raw = self.runner.execute(
            ["git", *args], cwd=self.workdir, check=False, env=env
        )
        result = CommandResult(
            status=raw.exited, stdout=raw.stdout, stderr=raw.stderr
        )

        if result.stderr:
            sys.stderr.write(self.sanitize_console_output(result.stderr))
        return result

    def has_uncommitted_changes(self) -> bool:
        """Whether tracked files differ from HEAD."""
        # Stale stat info in the index would report unchanged files
        self.run_graceful(["update-index", "-q", "--refresh"])
        return not self.run_graceful(
            ["diff-index", "--quiet", "HEAD"]
        ).success

    def get_current_branch_or_revision(self) -> str:
        """Current branch name, or the commit SHA when HEAD is detached."""
        branch = self.run(
            ["rev-parse", "--abbrev-ref", "HEAD"]
        ).stdout.strip()
        if branch == "HEAD":
            return self.rev_parse("HEAD")
        return branch

    def rev_parse(self, ref: str) -> str:
        return self.run(["rev-parse", ref]).stdout.strip()

    def has_commit(self, branch_name: str, sha: str) -> bool:
        """Whether the given branch contains the commit."""
        result = self.run_graceful(
            ["branch", branch_name, "--contains", sha]
        )
        return result.success and result.stdout.strip() != ""


__all__ = ["CommandError", "GitClient"]
