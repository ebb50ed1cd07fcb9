"""Services for external API interactions."""

from approvebot.services.github_auth import get_github_app_auth
from approvebot.services.github_client import PullRequestClient

__all__ = ["get_github_app_auth", "PullRequestClient"]
