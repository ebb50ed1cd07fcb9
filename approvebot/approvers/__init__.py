"""OWNERS-based approval authority."""

from .approvers import ApprovalTracker, Approvers, get_message
from .owners import Owners, RepoOwners, load_repo_owners

__all__ = [
    "ApprovalTracker",
    "Approvers",
    "get_message",
    "Owners",
    "RepoOwners",
    "load_repo_owners",
]
