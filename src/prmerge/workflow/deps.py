"""Collaborators shared by the merge workflow nodes."""

from __future__ import annotations

from dataclasses import dataclass

from prmerge.core.config import MergeConfig
from prmerge.git.client import GitClient
from prmerge.git.github import GithubClient
from prmerge.merge.target_label import TargetLabelResolver


@dataclass
class MergeDeps:
    config: MergeConfig
    git: GitClient
    github: GithubClient
    resolver: TargetLabelResolver
