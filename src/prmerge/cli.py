#!/usr/bin/env python3
"""prmerge CLI - merge pull requests into their release branches."""

import asyncio
import sys

from pydantic_settings import CliApp, CliSubCommand, get_subcommand

from prmerge.command.branches import BranchesCommand
from prmerge.command.merge import MergeCommand
from prmerge.core.config import State
from prmerge.core.log import logger


class CliState(State):
    """Merge pull requests into every branch their target label
    names.

    Configuration sources (in priority order):
    1. Command-line arguments (--config.github.token value)
    2. prmerge.yaml in the current directory, then the user config dir
    3. .env file for secrets
    4. Environment variables (PRMERGE_CONFIG__GITHUB__TOKEN=value)
    """

    merge: CliSubCommand[MergeCommand]
    branches: CliSubCommand[BranchesCommand]

    def cli_cmd(self):
        """Dispatch to the active subcommand, or show help."""
        subcommand = get_subcommand(self, is_required=False)

        if subcommand is None:
            CliApp.run(CliState, cli_args=['--help'])
            sys.exit(1)

        # Closing the logger flushes file sinks on exit
        with logger:
            exit_code = asyncio.run(subcommand.run_workflow(self))
            raise SystemExit(exit_code)


def main():
    """Main entry point for CLI."""
    CliApp.run(CliState)


if __name__ == "__main__":
    main()
