"""PyGithub wrapper exposing the reads and writes of one reconciliation pass."""

import logging
from typing import Any

from github import GithubException
from github.PullRequest import PullRequest
from github.Repository import Repository
from requests import RequestException

from approvebot.exceptions import FetchError
from approvebot.models.github_types import LabelEvent

logger = logging.getLogger(__name__)


class PullRequestClient:
    """GitHub access scoped to a single pull request.

    Read methods raise FetchError so the pass can abort before mutating
    anything. Write methods let API and transport errors through; the caller
    decides that those are only logged.
    """

    def __init__(
        self,
        github_client: Any,
        repo: Repository,
        pr: PullRequest,
        bot_login: str | None = None,
    ) -> None:
        self.github_client = github_client
        self.repo = repo
        self.pr = pr
        self.org, _, self.name = repo.full_name.partition("/")
        self.number = pr.number
        self._bot_login = bot_login

    def _fetch(self, resource: str, call: Any) -> list[Any]:
        try:
            return list(call())
        except (GithubException, RequestException) as e:
            raise FetchError(resource, self.org, self.name, self.number, e) from e

    # === READS ===

    def bot_name(self) -> str:
        """Login of the account this bot posts as."""
        if self._bot_login is None:
            try:
                self._bot_login = self.github_client.get_user().login
            except GithubException as e:
                raise FetchError("bot name", self.org, self.name, self.number, e) from e
        return self._bot_login

    def get_changed_files(self) -> list[str]:
        return [f.filename for f in self._fetch("PR file changes", self.pr.get_files)]

    def get_labels(self) -> list[str]:
        return [label.name for label in self._fetch("issue labels", self.pr.get_labels)]

    def list_issue_comments(self) -> list[Any]:
        return self._fetch("issue comments", self.pr.get_issue_comments)

    def list_review_comments(self) -> list[Any]:
        return self._fetch("review comments", self.pr.get_review_comments)

    def list_reviews(self) -> list[Any]:
        return self._fetch("reviews", self.pr.get_reviews)

    def list_issue_events(self) -> list[LabelEvent]:
        """Label events from the issue history, oldest first."""
        events = self._fetch("issue events", self.pr.as_issue().get_events)
        return [LabelEvent.from_issue_event(event) for event in events]

    # === WRITES ===

    def add_label(self, label: str) -> None:
        self.pr.add_to_labels(label)
        logger.info(f"Added {label!r} label to {self.org}/{self.name}#{self.number}")

    def remove_label(self, label: str) -> None:
        self.pr.remove_from_labels(label)
        logger.info(f"Removed {label!r} label from {self.org}/{self.name}#{self.number}")

    def create_comment(self, body: str) -> None:
        self.pr.create_issue_comment(body)
        logger.info(f"Posted notification on {self.org}/{self.name}#{self.number}")

    def delete_comment(self, comment_id: int) -> None:
        self.pr.get_issue_comment(comment_id).delete()
        logger.info(f"Deleted comment {comment_id} on {self.org}/{self.name}#{self.number}")
