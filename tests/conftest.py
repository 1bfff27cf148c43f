"""Pytest configuration and fixtures for prmerge tests."""

import subprocess
import tempfile
from pathlib import Path

import pytest

from prmerge.core.config import GithubConfig
from prmerge.core.log import ConsoleSink, setup_logger
from prmerge.git.client import GitClient
from prmerge.merge.pull_request import PullRequest
from prmerge.merge.release_trains import ActiveReleaseTrains, ReleaseTrain


@pytest.fixture(autouse=True, scope="session")
def configure_logging():
    """Console-only debug logging, nothing sent to logfire.dev."""
    setup_logger(
        log_root=Path(tempfile.gettempdir()) / "prmerge-tests",
        run_name="test",
        console=ConsoleSink(level="debug"),
    )


# ============================================================
# GIT HELPERS
# ============================================================

def git(cwd: Path, *args: str) -> str:
    """Run git in cwd and return its stripped stdout."""
    result = subprocess.run(
        ["git", *args],
        cwd=cwd,
        check=True,
        capture_output=True,
        text=True,
    )
    return result.stdout.strip()


def commit_file(repo: Path, name: str, content: str, message: str) -> str:
    """Write a file, commit it and return the new commit SHA."""
    (repo / name).write_text(content)
    git(repo, "add", name)
    git(repo, "commit", "-q", "-m", message)
    return git(repo, "rev-parse", "HEAD")


def configure_identity(repo: Path) -> None:
    git(repo, "config", "user.name", "Test User")
    git(repo, "config", "user.email", "test@example.com")
    git(repo, "config", "commit.gpgsign", "false")


class UpstreamRepo:
    """A bare "upstream" repository plus a clone used as workdir.

    Branches are authored in a scratch clone and pushed to the bare
    repository, including pull request heads under refs/pull/<n>/head
    as GitHub exposes them.
    """

    def __init__(self, root: Path):
        self.remote = root / "upstream.git"
        self.author = root / "author"
        self.workdir = root / "workdir"

        git(root, "init", "-q", "--bare", "--initial-branch=main",
            str(self.remote))
        git(root, "init", "-q", "--initial-branch=main", str(self.author))
        configure_identity(self.author)
        commit_file(self.author, "README.md", "readme\n", "docs: initial")
        commit_file(self.author, "a.txt", "base\n", "feat: add a")
        git(self.author, "push", "-q", str(self.remote), "main")

        git(root, "clone", "-q", str(self.remote), str(self.workdir))
        configure_identity(self.workdir)

    git = staticmethod(git)

    def create_branch(self, name: str, start: str = "main") -> None:
        git(self.author, "checkout", "-q", "-b", name, start)
        git(self.author, "push", "-q", str(self.remote), name)
        git(self.author, "checkout", "-q", "main")

    def commit_on(self, branch: str, name: str, content: str,
                  message: str) -> str:
        git(self.author, "checkout", "-q", branch)
        sha = commit_file(self.author, name, content, message)
        git(self.author, "push", "-q", str(self.remote), branch)
        git(self.author, "checkout", "-q", "main")
        return sha

    def create_pull_request(
        self,
        number: int,
        files: dict[str, str],
        base: str = "main",
        messages: list[str] | None = None,
    ) -> str:
        """Push one commit per file on top of base as PR head.

        messages, if given, holds one commit message per file.
        """
        git(self.author, "checkout", "-q", "-b", f"pr-{number}", base)
        messages = messages or [f"fix: update {name}" for name in files]
        sha = ""
        for (name, content), message in zip(files.items(), messages):
            sha = commit_file(self.author, name, content, message)
        git(
            self.author, "push", "-q", str(self.remote),
            f"HEAD:refs/pull/{number}/head",
        )
        git(self.author, "checkout", "-q", "main")
        return sha

    def remote_sha(self, branch: str) -> str:
        return git(self.remote, "rev-parse", f"refs/heads/{branch}")

    def remote_file(self, branch: str, name: str) -> str:
        return git(self.remote, "show", f"{branch}:{name}")


@pytest.fixture
def upstream(tmp_path) -> UpstreamRepo:
    return UpstreamRepo(tmp_path)


@pytest.fixture
def github_config(upstream) -> GithubConfig:
    return GithubConfig(
        owner="acme",
        name="widgets",
        token="secret-token",
        git_url=str(upstream.remote),
    )


@pytest.fixture
def git_client(upstream, github_config) -> GitClient:
    return GitClient(upstream.workdir, github_config)


# ============================================================
# RELEASE TRAINS
# ============================================================

@pytest.fixture
def trains() -> ActiveReleaseTrains:
    """main ships 11.0.0 (major), 10.1.x is latest, no RC."""
    return ActiveReleaseTrains(
        next=ReleaseTrain(branch_name="main", version="11.0.0-next.3"),
        latest=ReleaseTrain(branch_name="10.1.x", version="10.1.2"),
    )


@pytest.fixture
def trains_with_rc() -> ActiveReleaseTrains:
    """main ships 10.3.0 (minor), 10.1.x latest, 10.2.x in RC."""
    return ActiveReleaseTrains(
        next=ReleaseTrain(branch_name="main", version="10.3.0-next.0"),
        latest=ReleaseTrain(branch_name="10.1.x", version="10.1.2"),
        release_candidate=ReleaseTrain(
            branch_name="10.2.x", version="10.2.0-rc.1"
        ),
    )


# ============================================================
# PULL REQUESTS
# ============================================================

@pytest.fixture
def make_pull_request():
    """Factory for validated pull requests."""
    def make(
        target_branches,
        github_target_branch="main",
        pr_number=42,
        commit_count=1,
        head_sha="0" * 40,
        labels=(),
        required_base_sha=None,
    ) -> PullRequest:
        return PullRequest(
            pr_number=pr_number,
            url=f"https://github.com/acme/widgets/pull/{pr_number}",
            title="fix: something",
            labels=tuple(labels),
            github_target_branch=github_target_branch,
            target_branches=tuple(target_branches),
            commit_count=commit_count,
            head_sha=head_sha,
            head_ref_name=f"pr-{pr_number}",
            required_base_sha=required_base_sha,
        )

    return make
