"""Unit tests for the PullRequestClient wrapper."""

from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from github import GithubException
from requests.exceptions import ConnectionError as RequestsConnectionError

from approvebot.exceptions import FetchError
from approvebot.services.github_client import PullRequestClient


def _client(bot_login=None):
    github = MagicMock()
    github.get_user.return_value = SimpleNamespace(login="approve-bot[bot]")
    repo = MagicMock()
    repo.full_name = "acme/widgets"
    pr = MagicMock()
    pr.number = 7
    return PullRequestClient(github, repo, pr, bot_login=bot_login), github, pr


class TestReads:
    """Tests for the read side of PullRequestClient."""

    def test_splits_repo_name(self):
        client, _, _ = _client()

        assert (client.org, client.name, client.number) == ("acme", "widgets", 7)

    def test_bot_name_is_looked_up_once(self):
        client, github, _ = _client()

        assert client.bot_name() == "approve-bot[bot]"
        assert client.bot_name() == "approve-bot[bot]"
        github.get_user.assert_called_once()

    def test_configured_bot_name_skips_lookup(self):
        client, github, _ = _client(bot_login="custom[bot]")

        assert client.bot_name() == "custom[bot]"
        github.get_user.assert_not_called()

    def test_changed_files_and_labels(self):
        client, _, pr = _client()
        pr.get_files.return_value = [SimpleNamespace(filename="a.go"), SimpleNamespace(filename="b/c.go")]
        pr.get_labels.return_value = [SimpleNamespace(name="approved")]

        assert client.get_changed_files() == ["a.go", "b/c.go"]
        assert client.get_labels() == ["approved"]

    def test_issue_events_are_adapted(self):
        client, _, pr = _client()
        pr.as_issue.return_value.get_events.return_value = [
            SimpleNamespace(
                event="labeled",
                label=SimpleNamespace(name="approved"),
                actor=SimpleNamespace(login="alice"),
                created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
            )
        ]

        events = client.list_issue_events()

        assert [(e.event, e.label, e.actor) for e in events] == [("labeled", "approved", "alice")]

    @pytest.mark.parametrize(
        "method, attr, resource",
        [
            ("list_issue_comments", "get_issue_comments", "issue comments"),
            ("list_review_comments", "get_review_comments", "review comments"),
            ("list_reviews", "get_reviews", "reviews"),
            ("get_changed_files", "get_files", "PR file changes"),
        ],
    )
    def test_read_failures_raise_fetch_error(self, method, attr, resource):
        client, _, pr = _client()
        getattr(pr, attr).side_effect = GithubException(502, "bad gateway")

        with pytest.raises(FetchError, match=f"failed to get {resource} for acme/widgets#7"):
            getattr(client, method)()

    def test_transport_failure_raises_fetch_error(self):
        client, _, pr = _client()
        pr.get_reviews.side_effect = RequestsConnectionError("connection reset")

        with pytest.raises(FetchError, match="failed to get reviews for acme/widgets#7"):
            client.list_reviews()


class TestWrites:
    """Tests for the write side of PullRequestClient."""

    def test_label_mutations(self):
        client, _, pr = _client()

        client.add_label("approved")
        client.remove_label("approved")

        pr.add_to_labels.assert_called_once_with("approved")
        pr.remove_from_labels.assert_called_once_with("approved")

    def test_comment_mutations(self):
        client, _, pr = _client()

        client.create_comment("[APPROVALNOTIFIER] hi")
        client.delete_comment(42)

        pr.create_issue_comment.assert_called_once_with("[APPROVALNOTIFIER] hi")
        pr.get_issue_comment.assert_called_once_with(42)
        pr.get_issue_comment.return_value.delete.assert_called_once()

    def test_write_failures_propagate(self):
        client, _, pr = _client()
        pr.add_to_labels.side_effect = GithubException(403, "forbidden")

        with pytest.raises(GithubException):
            client.add_label("approved")
