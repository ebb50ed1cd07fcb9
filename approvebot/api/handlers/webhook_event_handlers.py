"""Handlers for specific GitHub webhook event types.

Each handler decides whether an event can change the approval state of a
pull request and, if so, queues a reconciliation job. The job re-reads
everything from GitHub, so payload contents are only used for filtering.
"""

import logging
from typing import Any

from fastapi import HTTPException, status
from redis.exceptions import ConnectionError as RedisConnectionError

from approvebot.config.settings import settings
from approvebot.models.github_types import Comment
from approvebot.queue.config import enqueue_reconcile
from approvebot.utils.commands import approval_command_matcher, is_bot

logger = logging.getLogger(__name__)

PULL_REQUEST_ACTIONS = {"opened", "reopened", "synchronize", "labeled"}


def _bot_login() -> str:
    return settings.github_app_bot_login or ""


def _is_bot_user(user: dict[str, Any]) -> bool:
    """True for this bot, the legacy bot, or any account GitHub marks as a Bot."""
    return is_bot(user.get("login", ""), _bot_login()) or user.get("type") == "Bot"


def _enqueue(repo_name: str, pr_number: int, event: str) -> dict[str, str | int]:
    """Queue a reconciliation job, mapping queue outages to HTTP errors."""
    try:
        job = enqueue_reconcile(repo_name, pr_number, event)
    except RedisConnectionError as exc:
        logger.exception(
            "Redis unavailable while enqueuing approve job for %s#%s (event=%s)",
            repo_name,
            pr_number,
            event,
        )
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Queue backend unavailable",
        ) from exc

    logger.info(f"Queued approval reconciliation for {repo_name}#{pr_number} ({event})")
    return {
        "message": f"PR #{pr_number} reconciliation queued",
        "status": "accepted",
        "job_id": job.id,
    }


# =============================================================================
# Ping Event
# =============================================================================


def handle_ping_event() -> dict[str, str]:
    """Handle GitHub ping event (webhook setup verification)."""
    logger.info("Received ping event from GitHub")
    return {"message": "pong"}


# =============================================================================
# Pull Request Events
# =============================================================================


def handle_pull_request_event(payload: dict[str, Any]) -> dict[str, str | int]:
    """Handle pull_request events (opened, reopened, synchronize, labeled)."""
    action = payload.get("action")
    pr_data = payload.get("pull_request", {})
    pr_number = pr_data.get("number")
    repo_name = payload.get("repository", {}).get("full_name")
    pr_state = pr_data.get("state")

    logger.info(
        f"Received PR {action} event for PR #{pr_number} in {repo_name} (state: {pr_state})"
    )

    if action not in PULL_REQUEST_ACTIONS:
        logger.info(f"Ignoring PR {action} event")
        return {"message": f"Event {action} ignored"}

    if pr_state == "closed":
        logger.info(f"Skipping PR #{pr_number} - PR is closed")
        return {"message": f"PR #{pr_number} is closed, skipping", "status": "skipped"}

    if action == "labeled":
        label = payload.get("label", {}).get("name")
        sender = payload.get("sender") or {}
        if label != settings.approved_label or _is_bot_user(sender):
            logger.info(f"Ignoring label {label!r} added by {sender.get('login')}")
            return {"message": "Label event ignored"}

    return _enqueue(repo_name, pr_number, f"pull_request.{action}")


# =============================================================================
# Comment Events (issue comments, review comments, review bodies)
# =============================================================================


def _handle_generic_comment(
    body: str,
    user: dict[str, Any],
    repo_name: str,
    pr_number: int,
    event: str,
) -> dict[str, str | int]:
    """Queue a reconciliation if the comment carries an approval command."""
    if _is_bot_user(user):
        logger.debug(f"Ignoring {event} from bot {user.get('login')}")
        return {"message": "Bot comment ignored"}

    comment = Comment(body=body or "", author=user.get("login", ""))
    if not approval_command_matcher(_bot_login())(comment):
        logger.debug(f"No approval command in {event} from {comment.author}")
        return {"message": "No approval command found"}

    if not pr_number or not repo_name:
        logger.warning(f"Missing PR number or repo name in {event} payload")
        return {"message": "Invalid payload", "status": "error"}

    return _enqueue(repo_name, pr_number, event)


def handle_issue_comment_event(payload: dict[str, Any]) -> dict[str, str | int]:
    """Handle issue_comment events on pull requests."""
    action = payload.get("action")
    comment = payload.get("comment", {})
    issue = payload.get("issue", {})

    if "pull_request" not in issue:
        logger.info("Ignoring issue comment (not a PR)")
        return {"message": "Issue comment ignored (not a PR)"}

    if action != "created" or issue.get("state") == "closed":
        logger.info(f"Ignoring issue comment {action} event")
        return {"message": f"Issue comment {action} ignored"}

    return _handle_generic_comment(
        comment.get("body", ""),
        comment.get("user") or {},
        payload.get("repository", {}).get("full_name", ""),
        issue.get("number", 0),
        "issue_comment",
    )


def handle_review_comment_event(payload: dict[str, Any]) -> dict[str, str | int]:
    """Handle pull_request_review_comment events."""
    action = payload.get("action")
    comment = payload.get("comment", {})
    pr_data = payload.get("pull_request", {})

    if action != "created" or pr_data.get("state") == "closed":
        logger.info(f"Ignoring review comment {action} event")
        return {"message": f"Review comment {action} ignored"}

    return _handle_generic_comment(
        comment.get("body", ""),
        comment.get("user") or {},
        payload.get("repository", {}).get("full_name", ""),
        pr_data.get("number", 0),
        "pull_request_review_comment",
    )


def handle_review_event(payload: dict[str, Any]) -> dict[str, str | int]:
    """Handle pull_request_review events (review bodies)."""
    action = payload.get("action")
    review = payload.get("review", {})
    pr_data = payload.get("pull_request", {})

    if action != "submitted" or pr_data.get("state") == "closed":
        logger.info(f"Ignoring review {action} event")
        return {"message": f"Review {action} ignored"}

    return _handle_generic_comment(
        review.get("body") or "",
        review.get("user") or {},
        payload.get("repository", {}).get("full_name", ""),
        pr_data.get("number", 0),
        "pull_request_review",
    )
