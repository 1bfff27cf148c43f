"""Command execution using the invoke library."""

from __future__ import annotations

import shlex
from collections.abc import Sequence
from pathlib import Path

from invoke import Context, Result

from prmerge.core.log import logger


class Runner(Context):
    """invoke.Context with an execute() method taking full control
    over a single process run.

    Output is always captured; nothing is echoed to the console.
    """

    def execute(
        self,
        command: str | Sequence[str],
        cwd: Path | None = None,
        check: bool = True,
        env: dict[str, str] | None = None,
    ) -> Result:
        """Execute a command.

        Args:
            command: Shell command string, or an argument list that
                is quoted with shlex before execution
            cwd: Working directory for command execution
            check: If True, raise on non-zero exit code
            env: Environment variables to set (updates os.environ,
                does not replace it)

        Returns:
            invoke.Result with stdout, stderr, exited (return code)

        Raises:
            invoke.UnexpectedExit: If check=True and the command
                returns non-zero
        """
        if not isinstance(command, str):
            command = shlex.join(command)

        kwargs = {
            "hide": True,
            "warn": not check,
            "in_stream": False,
        }
        if env:
            kwargs["env"] = env

        if cwd:
            with self.cd(str(cwd)):
                result = self.run(command, **kwargs)
        else:
            result = self.run(command, **kwargs)

        logger.spew("Process exited", exit_code=result.exited)
        return result
