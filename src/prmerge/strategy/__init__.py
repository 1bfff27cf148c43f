"""Merge strategy implementations."""

from prmerge.strategy.api_merge import ApiMergeStrategy
from prmerge.strategy.base import MergeStrategy
from prmerge.strategy.cherry_pick import LocalCherryPickStrategy

__all__ = [
    "MergeStrategy",
    "ApiMergeStrategy",
    "LocalCherryPickStrategy",
]
