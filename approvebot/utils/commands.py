"""Slash-command parsing for approval comments.

A command is a line of the form ``/<name> [argument]``. Only ``/approve``
and ``/lgtm`` matter here; every other command in the same comment stream
belongs to some other bot and is skipped.
"""

import re
from collections.abc import Callable
from dataclasses import dataclass

from approvebot.models.github_types import Comment

APPROVE_COMMAND = "APPROVE"
LGTM_COMMAND = "LGTM"
CANCEL_ARGUMENT = "cancel"
NO_ISSUE_ARGUMENT = "no-issue"

# Bot that handled approvals before; its old comments must still be ignored
DEPRECATED_BOT_NAME = "k8s-merge-robot"

COMMAND_PATTERN = re.compile(r"^/(\S+)[\t ]*([^\n\r]*)", re.MULTILINE)
ASSOCIATED_ISSUE_PATTERN = re.compile(r"(?:kubernetes/[^/]+/issues/|#)(\d+)")


@dataclass(frozen=True)
class Command:
    """A single slash command found in a comment body."""

    name: str
    argument: str = ""

    @property
    def is_approval(self) -> bool:
        return self.name in (APPROVE_COMMAND, LGTM_COMMAND)

    @property
    def is_cancel(self) -> bool:
        return self.argument == CANCEL_ARGUMENT

    @property
    def no_issue(self) -> bool:
        return self.argument == NO_ISSUE_ARGUMENT


def parse_commands(body: str) -> list[Command]:
    """Extract every slash command from a comment body, top to bottom.

    Args:
        body: Raw comment text

    Returns:
        Commands with upper-cased names and trimmed, lower-cased arguments
    """
    if not body:
        return []
    return [
        Command(name=match.group(1).upper(), argument=match.group(2).strip().lower())
        for match in COMMAND_PATTERN.finditer(body)
    ]


def approval_commands(body: str) -> list[Command]:
    """Return only the ``/approve`` and ``/lgtm`` commands of a body."""
    return [command for command in parse_commands(body) if command.is_approval]


def is_bot(login: str, bot_name: str) -> bool:
    """Check whether a login is the bot, current or deprecated."""
    return login in (bot_name, DEPRECATED_BOT_NAME)


def approval_command_matcher(bot_name: str) -> Callable[[Comment], bool]:
    """Build a filter accepting human comments with an approval command.

    The bot's own comments are never scanned, otherwise the notification
    text (which quotes the commands) would be read back as user input.
    """

    def matches(comment: Comment) -> bool:
        if is_bot(comment.author, bot_name):
            return False
        return bool(approval_commands(comment.body))

    return matches


def find_associated_issue(body: str) -> int:
    """Return the first issue referenced in a PR body, or 0 if there is none."""
    match = ASSOCIATED_ISSUE_PATTERN.search(body or "")
    if not match:
        return 0
    try:
        return int(match.group(1))
    except ValueError:
        return 0
