"""Utility functions and helpers."""

from .commands import approval_command_matcher, find_associated_issue, parse_commands
from .logging import setup_observability
from .notification import label_transition, notification_matcher
from .timeline import add_approvers, unify_comments

__all__ = [
    "add_approvers",
    "approval_command_matcher",
    "find_associated_issue",
    "label_transition",
    "notification_matcher",
    "parse_commands",
    "setup_observability",
    "unify_comments",
]
