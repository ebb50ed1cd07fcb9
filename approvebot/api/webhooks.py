"""GitHub webhook endpoints."""

import hashlib
import hmac
import logging
from typing import Any

from fastapi import APIRouter, Header, HTTPException, Request, status
from rq import Worker
from rq.exceptions import NoSuchJobError
from rq.job import Job
from rq.registry import FailedJobRegistry, FinishedJobRegistry, StartedJobRegistry

from approvebot.api.handlers.webhook_event_handlers import (
    handle_issue_comment_event,
    handle_ping_event,
    handle_pull_request_event,
    handle_review_comment_event,
    handle_review_event,
)
from approvebot.config.settings import settings
from approvebot.queue.config import approve_queue, redis_conn

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/webhook", tags=["webhooks"])

EVENT_HANDLERS = {
    "pull_request": handle_pull_request_event,
    "issue_comment": handle_issue_comment_event,
    "pull_request_review_comment": handle_review_comment_event,
    "pull_request_review": handle_review_event,
}


@router.get("/queue/status")
async def queue_status() -> dict[str, int]:
    """Return aggregate queue metrics."""
    return {
        "queued": approve_queue.count,
        "started": len(StartedJobRegistry(queue=approve_queue)),
        "finished": len(FinishedJobRegistry(queue=approve_queue)),
        "failed": len(FailedJobRegistry(queue=approve_queue)),
        "active_workers": len(Worker.all(connection=redis_conn)),
    }


@router.get("/queue/job/{job_id}")
async def queue_job(job_id: str) -> dict[str, Any]:
    """Return details for a specific queued job."""
    try:
        job = Job.fetch(job_id, connection=redis_conn)
    except NoSuchJobError as err:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Job not found"
        ) from err

    status_value = job.get_status(refresh=True)
    latest_result = job.latest_result()
    latest_traceback = (
        getattr(latest_result, "exc_string", None) if latest_result else None
    )
    return {
        "job_id": job.id,
        "status": status_value,
        "created_at": job.created_at.isoformat() if job.created_at else None,
        "started_at": job.started_at.isoformat() if job.started_at else None,
        "ended_at": job.ended_at.isoformat() if job.ended_at else None,
        "exc_info": latest_traceback if status_value == "failed" else None,
    }


async def validate_signature(
    request: Request,
    x_hub_signature_256: str | None = Header(None, alias="X-Hub-Signature-256"),
) -> None:
    """
    Validate GitHub webhook signature.

    Args:
        request: The incoming request
        x_hub_signature_256: GitHub signature from header

    Raises:
        HTTPException: If signature is missing or invalid
    """
    if not x_hub_signature_256:
        logger.warning("Missing X-Hub-Signature-256 header")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-Hub-Signature-256 header",
        )

    body = await request.body()

    webhook_secret = settings.github_webhook_secret
    if not webhook_secret:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Webhook secret not configured",
        )
    secret = webhook_secret.encode("utf-8")
    expected_signature = f"sha256={hmac.new(secret, body, hashlib.sha256).hexdigest()}"

    if not hmac.compare_digest(expected_signature, x_hub_signature_256):
        logger.warning("Invalid webhook signature")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid signature",
        )


@router.post("/github")
async def github_webhook(
    request: Request,
    x_github_event: str | None = Header(None, alias="X-GitHub-Event"),
    x_hub_signature_256: str | None = Header(None, alias="X-Hub-Signature-256"),
) -> dict[str, str | int]:
    """
    Handle GitHub webhook events.

    Events that may change a PR's approval state are queued for
    reconciliation; everything else is acknowledged and ignored.
    """
    await validate_signature(request, x_hub_signature_256)

    payload: dict[str, Any] = await request.json()

    if x_github_event == "ping":
        return handle_ping_event()

    handler = EVENT_HANDLERS.get(x_github_event or "")
    if handler is None:
        logger.info(f"Ignoring event type: {x_github_event}")
        return {"message": f"Event {x_github_event} not supported"}

    return handler(payload)
