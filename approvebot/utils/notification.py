"""Keeping the status notification and the approved label in sync."""

import logging
import re
from collections.abc import Callable, Sequence
from typing import Literal

from github import GithubException
from requests import RequestException

from approvebot.approvers.approvers import APPROVAL_NOTIFICATION_NAME, Approvers, get_message
from approvebot.config.settings import settings
from approvebot.models.github_types import Comment
from approvebot.services.github_client import PullRequestClient
from approvebot.utils.commands import is_bot

logger = logging.getLogger(__name__)

NOTIFICATION_PATTERN = re.compile(
    r"^\[" + APPROVAL_NOTIFICATION_NAME + r"\] *?([^\n]*)(?:\n\n(.*))?",
    re.IGNORECASE | re.DOTALL,
)

LabelAction = Literal["add", "remove"]

# PyGithub raises HTTP errors as GithubException and transport errors from requests
MUTATION_ERRORS = (GithubException, RequestException)


def notification_matcher(bot_name: str) -> Callable[[Comment], bool]:
    """Build a filter for status notifications previously posted by the bot."""

    def matches(comment: Comment) -> bool:
        if not is_bot(comment.author, bot_name):
            return False
        return NOTIFICATION_PATTERN.match(comment.body) is not None

    return matches


def get_last(comments: Sequence[Comment]) -> Comment | None:
    return comments[-1] if comments else None


def update_notification(latest: Comment | None, message: str | None) -> str | None:
    """Return the message to post, or None if the latest one already says it."""
    if message is None:
        return None
    if latest is not None and message in latest.body:
        return None
    return message


def reconcile_notification(
    client: PullRequestClient,
    notifications: Sequence[Comment],
    tracker: Approvers,
    org: str,
    repo: str,
    render: Callable[[Approvers, str, str], str | None] = get_message,
) -> bool:
    """Replace stale notifications with a freshly rendered one.

    Every previous notification is deleted before the new one is posted.
    Failures are logged and never raised.

    Returns:
        True if a new notification was posted
    """
    message = update_notification(get_last(notifications), render(tracker, org, repo))
    if message is None:
        logger.debug(f"Notification on {org}/{repo}#{client.number} is up to date")
        return False

    for notification in notifications:
        try:
            client.delete_comment(notification.id)
        except MUTATION_ERRORS:
            logger.exception(
                f"Failed to delete comment from {org}/{repo}#{client.number}, "
                f"ID: {notification.id}."
            )

    try:
        client.create_comment(message)
    except MUTATION_ERRORS:
        logger.exception(f"Failed to create comment on {org}/{repo}#{client.number}.")
        return False
    return True


def label_transition(approved: bool, has_label: bool) -> LabelAction | None:
    """Decide what to do with the approved label."""
    if approved and not has_label:
        return "add"
    if not approved and has_label:
        return "remove"
    return None


def sync_label(
    client: PullRequestClient,
    approved: bool,
    has_label: bool,
    label: str | None = None,
) -> LabelAction | None:
    """Add or remove the approved label so it matches the tracker.

    Returns:
        The action attempted, if any
    """
    label = label or settings.approved_label
    action = label_transition(approved, has_label)
    target = f"{client.org}/{client.name}#{client.number}"
    try:
        if action == "add":
            client.add_label(label)
        elif action == "remove":
            client.remove_label(label)
    except MUTATION_ERRORS:
        direction = "to" if action == "add" else "from"
        logger.exception(f"Failed to {action} {label!r} label {direction} {target}.")
    return action
