"""Redis-backed queue configuration for approval reconciliation jobs."""

from __future__ import annotations

import asyncio
import logging

from redis import Redis
from rq import Queue, Retry
from rq.exceptions import NoSuchJobError
from rq.job import Job

from approvebot.config.settings import settings

logger = logging.getLogger(__name__)

JOB_TIMEOUT_SECONDS = settings.worker_job_timeout
# RQ's Retry.max is the number of retries in addition to the first attempt.
MAX_ATTEMPTS = 3
RETRY_STRATEGY = Retry(max=MAX_ATTEMPTS - 1, interval=[30, 90])

# A pending job will read the latest PR state when it runs
PENDING_STATUSES = {"queued", "deferred", "scheduled"}
RUNNING_STATUSES = {"started"}

# Single Redis connection used by the queue and workers
if settings.redis_url:
    redis_connection = Redis.from_url(settings.redis_url, socket_timeout=5)
else:
    redis_connection = Redis(
        host=settings.redis_host,
        port=settings.redis_port,
        password=settings.redis_password,
        socket_timeout=5,
    )
redis_conn = redis_connection  # alias for worker script imports

approve_queue = Queue("approve", connection=redis_connection)


def _sanitize_repo(repo_name: str) -> str:
    """Return a Redis-safe repo identifier for job ids (Redis keys disallow ':')."""
    return repo_name.replace(":", "-").replace("/", "__")


def _job_ids(repo_name: str, pr_number: int) -> tuple[str, str]:
    """Deterministic ids: the primary job and the follow-up queued behind it."""
    base = f"approve-{_sanitize_repo(repo_name)}-pr-{pr_number}"
    return base, f"{base}-followup"


def _fetch_existing_job(job_id: str) -> Job | None:
    """Attempt to fetch an existing job by id without raising."""
    try:
        return Job.fetch(job_id, connection=redis_connection)
    except NoSuchJobError:
        return None


def run_reconcile_job(repo_name: str, pr_number: int, event: str = "") -> None:
    """RQ job entrypoint that executes the async reconciliation."""
    logger.info("Starting approve job for %s#%s (event=%s)", repo_name, pr_number, event)
    # Deferred import keeps queue config lightweight for non-worker processes
    from approvebot.api.handlers.approve_handler import handle_approve

    asyncio.run(handle_approve(repo_name, pr_number))
    logger.info("Finished approve job for %s#%s", repo_name, pr_number)


def enqueue_reconcile(repo_name: str, pr_number: int, event: str = "") -> Job:
    """Enqueue a reconciliation job for a PR, deduplicating redelivered events.

    - A queued job for the PR absorbs new events (it reads fresh state).
    - If the primary job is already running, one follow-up job is queued so
      changes made during that pass are not missed.
    - Jobs are retried on failure with backoff.
    """
    job_id = None
    existing = None
    for slot in _job_ids(repo_name, pr_number):
        existing = _fetch_existing_job(slot)
        status = existing.get_status(refresh=True) if existing else None
        if existing is not None and status in PENDING_STATUSES:
            logger.info(
                "Skipping duplicate approve job for %s#%s (job=%s, status=%s)",
                repo_name,
                pr_number,
                slot,
                status,
            )
            return existing
        if status not in RUNNING_STATUSES:
            job_id = slot
            break

    if job_id is None:
        # Both slots are running; the next event reconciles again
        logger.info(
            "Approve jobs for %s#%s already running, not enqueuing", repo_name, pr_number
        )
        return existing  # type: ignore[return-value]

    logger.info(
        "Enqueuing approve job %s for %s#%s on queue '%s' (event=%s)",
        job_id,
        repo_name,
        pr_number,
        approve_queue.name,
        event,
    )
    return approve_queue.enqueue(
        run_reconcile_job,
        repo_name,
        pr_number,
        event,
        job_id=job_id,
        retry=RETRY_STRATEGY,
        job_timeout=JOB_TIMEOUT_SECONDS,
    )
