"""Run an rq worker for the ``approve`` queue.

Each job reconciles one pull request; see ``approvebot.queue.config``.
"""

import logging
import os
import sys
import uuid

from redis.exceptions import ConnectionError as RedisConnectionError
from rq import Worker

from approvebot.config.settings import settings
from approvebot.queue.config import approve_queue, redis_conn
from approvebot.utils.logging import setup_observability

logger = logging.getLogger(__name__)

# Heartbeat expiry: a worker silent for longer than one job is presumed dead
WORKER_TTL = settings.worker_job_timeout + 60
STALE_STATES = ("dead", "failed")


def worker_name() -> str:
    """Return ``<WORKER_NAME>-<host>-<suffix>`` so replicas never collide."""
    hostname = os.getenv("HOSTNAME", "local")
    return f"{settings.worker_name}-{hostname}-{uuid.uuid4().hex[:8]}"


def reap_stale_workers() -> int:
    """Unregister this service's dead workers; returns how many were removed."""
    reaped = 0
    for registered in Worker.all(connection=redis_conn):
        if not registered.name.startswith(settings.worker_name):
            continue
        if registered.state in STALE_STATES:
            logger.info("Reaping stale worker %s (state=%s)", registered.name, registered.state)
            registered.register_death()
            reaped += 1
    return reaped


def build_worker() -> Worker:
    """Create a worker bound to the approve queue only."""
    return Worker(
        [approve_queue],
        connection=redis_conn,
        name=worker_name(),
        worker_ttl=WORKER_TTL,
    )


def main() -> None:
    setup_observability()

    try:
        reap_stale_workers()
        worker = build_worker()
        logger.info(
            "Worker %s listening on %r (job timeout %ss, scheduler=%s)",
            worker.name,
            approve_queue.name,
            settings.worker_job_timeout,
            settings.worker_with_scheduler,
        )
        worker.work(
            with_scheduler=settings.worker_with_scheduler,
            logging_level=settings.log_level,
        )
    except RedisConnectionError:
        logger.exception("Redis unreachable, worker exiting")
        sys.exit(1)


if __name__ == "__main__":
    main()
