"""Data models for approve-bot."""

from .github_types import Comment, LabelEvent, PullRequestState

__all__ = [
    "Comment",
    "LabelEvent",
    "PullRequestState",
]
