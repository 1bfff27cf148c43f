"""Merge pull requests into every release branch their target label
names."""
