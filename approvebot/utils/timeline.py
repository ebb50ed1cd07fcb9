"""Merging comment sources into one timeline and applying approval commands."""

import logging
from collections.abc import Callable, Iterable
from typing import Any

from approvebot.approvers.approvers import ApprovalTracker
from approvebot.models.github_types import Comment
from approvebot.utils.commands import APPROVE_COMMAND, approval_commands

logger = logging.getLogger(__name__)


def unify_comments(
    issue_comments: Iterable[Any],
    review_comments: Iterable[Any],
    reviews: Iterable[Any],
) -> list[Comment]:
    """Adapt the three comment sources and order them by creation time.

    The sort is stable, so comments with equal timestamps keep the order
    issue comments, review comments, reviews.
    """
    comments = [Comment.from_issue_comment(c) for c in issue_comments]
    comments += [Comment.from_review_comment(c) for c in review_comments]
    comments += [Comment.from_review(r) for r in reviews]
    return sorted(comments, key=lambda c: c.created_at)


def filter_comments(
    comments: Iterable[Comment], matcher: Callable[[Comment], bool]
) -> list[Comment]:
    return [c for c in comments if matcher(c)]


def add_approvers(
    tracker: ApprovalTracker, approve_comments: Iterable[Comment], author: str
) -> None:
    """Apply ``/approve`` and ``/lgtm`` commands to the tracker in order.

    ``cancel`` removes the commenter whatever the command name. The PR
    author is additionally recorded as a self-approver so the tracker can
    decide whether that counts. Because the tracker overwrites per login,
    each commenter's latest command is the one left in effect.

    Args:
        tracker: Approval tracker to mutate
        approve_comments: Comments with approval commands, oldest first
        author: Login of the pull request author
    """
    for comment in approve_comments:
        if not comment.author:
            continue
        for command in approval_commands(comment.body):
            if command.is_cancel:
                logger.debug(f"{comment.author} cancelled approval ({comment.html_url})")
                tracker.remove_approver(comment.author)
                continue

            if comment.author == author:
                tracker.add_author_self_approver(
                    comment.author, comment.html_url, command.no_issue
                )

            if command.name == APPROVE_COMMAND:
                tracker.add_approver(comment.author, comment.html_url, command.no_issue)
            else:
                tracker.add_lgtmer(comment.author, comment.html_url, command.no_issue)
