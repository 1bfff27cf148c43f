"""Minimal conventional commit message parsing."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

# "type(scope): summary" or "type: summary"
HEADER_PATTERN = re.compile(r"^(\w+)(?:\(([^)]*)\))?: (.+)$")
# Notes run until the next note or the end of the message
NOTE_PATTERN = re.compile(
    r"^(BREAKING CHANGES?|DEPRECATED):[ \t]*(.*?)(?=^(?:BREAKING CHANGES?|"
    r"DEPRECATED):|\Z)",
    re.MULTILINE | re.DOTALL,
)


@dataclass(frozen=True)
class CommitMessage:
    header: str
    type: str = ""
    scope: str = ""
    summary: str = ""
    breaking_changes: list[str] = field(default_factory=list)
    deprecations: list[str] = field(default_factory=list)


def parse_commit_message(message: str) -> CommitMessage:
    """Parse the header and BREAKING CHANGE/DEPRECATED notes."""
    lines = message.strip().splitlines()
    header = lines[0].strip() if lines else ""
    body = "\n".join(lines[1:])

    breaking_changes = []
    deprecations = []
    for match in NOTE_PATTERN.finditer(body):
        text = match.group(2).strip()
        if match.group(1) == "DEPRECATED":
            deprecations.append(text)
        else:
            breaking_changes.append(text)

    header_match = HEADER_PATTERN.match(header)
    if header_match is None:
        return CommitMessage(
            header=header,
            breaking_changes=breaking_changes,
            deprecations=deprecations,
        )
    return CommitMessage(
        header=header,
        type=header_match.group(1),
        scope=header_match.group(2) or "",
        summary=header_match.group(3),
        breaking_changes=breaking_changes,
        deprecations=deprecations,
    )


__all__ = ["CommitMessage", "parse_commit_message"]
