"""GitHub-specific type definitions."""

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field

# Reviews without a submission time (pending) sort before everything else
EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _login(user: Any) -> str:
    """Return the login of a PyGithub NamedUser, or "" for deleted users."""
    if user is None:
        return ""
    return user.login or ""


def _aware(value: datetime | None) -> datetime:
    """Normalise a GitHub timestamp so naive and aware values compare."""
    if value is None:
        return EPOCH
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class Comment(BaseModel):
    """A comment on a pull request, whatever API it came from.

    Issue comments, inline review comments and review bodies are all mapped
    to this shape before being merged into one timeline. The source type is
    not kept.
    """

    body: str = ""
    author: str = ""
    created_at: datetime = EPOCH
    html_url: str = ""
    id: int = 0

    @classmethod
    def from_issue_comment(cls, comment: Any) -> "Comment":
        """Adapt a ``github.IssueComment.IssueComment``."""
        return cls(
            body=comment.body or "",
            author=_login(comment.user),
            created_at=_aware(comment.created_at),
            html_url=comment.html_url or "",
            id=comment.id,
        )

    @classmethod
    def from_review_comment(cls, comment: Any) -> "Comment":
        """Adapt a ``github.PullRequestComment.PullRequestComment``."""
        return cls(
            body=comment.body or "",
            author=_login(comment.user),
            created_at=_aware(comment.created_at),
            html_url=comment.html_url or "",
            id=comment.id,
        )

    @classmethod
    def from_review(cls, review: Any) -> "Comment":
        """Adapt a ``github.PullRequestReview.PullRequestReview``.

        Reviews have no ``created_at``; their submission time is used.
        """
        return cls(
            body=review.body or "",
            author=_login(review.user),
            created_at=_aware(review.submitted_at),
            html_url=review.html_url or "",
            id=review.id,
        )


class PullRequestState(BaseModel):
    """The pull request facts one reconciliation pass works from."""

    org: str
    repo: str
    number: int
    body: str = ""
    author: str = ""
    assignees: list[str] = Field(default_factory=list)

    @property
    def key(self) -> str:
        """Return ``org/repo#number`` for log messages."""
        return f"{self.org}/{self.repo}#{self.number}"

    @classmethod
    def from_pull_request(cls, org: str, repo: str, pr: Any) -> "PullRequestState":
        """Build the state from a ``github.PullRequest.PullRequest``."""
        return cls(
            org=org,
            repo=repo,
            number=pr.number,
            body=pr.body or "",
            author=_login(pr.user),
            assignees=[_login(user) for user in pr.assignees or []],
        )


class LabelEvent(BaseModel):
    """A ``labeled`` entry from the issue event history."""

    event: str
    label: str = ""
    actor: str = ""

    @classmethod
    def from_issue_event(cls, event: Any) -> "LabelEvent":
        """Adapt a ``github.IssueEvent.IssueEvent``."""
        label = getattr(event, "label", None)
        return cls(
            event=event.event or "",
            label=label.name if label is not None else "",
            actor=_login(event.actor),
        )
