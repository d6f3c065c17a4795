"""
Health-check helpers for liveness and readiness probes.

Liveness:  is the process alive and not deadlocked?  (cheap, no I/O)
Readiness: can it serve traffic?  (store answers SELECT 1)
"""

import logging

from sqlgate.engines.sql import QueryExecutor

logger = logging.getLogger(__name__)


def check_store(executor: QueryExecutor) -> bool:
    """Ping the backing store through the executor. Returns True if ok."""
    ok = executor.ping()
    if not ok:
        logger.warning("Store health check failed for %r", executor)
    return ok


def liveness_check() -> tuple[bool, list[str]]:
    """
    Lightweight liveness probe; just confirms the Python process is responsive.
    No I/O.  Return format matches readiness_check for consistency.
    """
    return (True, [])


def readiness_check(executor: QueryExecutor) -> tuple[bool, list[str]]:
    """
    Run the store check.
    Returns (ok, list of failure messages). ok is False if any check fails.
    """
    failures: list[str] = []

    if not check_store(executor):
        failures.append("store")

    return (len(failures) == 0, failures)
