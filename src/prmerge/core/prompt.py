"""Interactive confirmation prompts."""

from collections.abc import Callable

import typer

# Signature shared by every confirmation hook, so tests can inject one
Confirm = Callable[[str], bool]


def confirm(message: str, default: bool = False) -> bool:
    """Ask a yes/no question on the terminal.

    Args:
        message: Question to ask
        default: Answer used when the user just presses enter

    Returns:
        True if the user confirmed
    """
    return typer.confirm(message, default=default)


__all__ = ["Confirm", "confirm"]
