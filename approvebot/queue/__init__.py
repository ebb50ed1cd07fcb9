"""Queue package for background approval reconciliation."""

from .config import approve_queue, enqueue_reconcile, redis_connection, run_reconcile_job

__all__ = [
    "approve_queue",
    "enqueue_reconcile",
    "redis_connection",
    "run_reconcile_job",
]
