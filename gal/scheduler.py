"""
Runs a pass's jobs on a bounded thread pool.

Failures are collected, never propagated: one broken photo must not stop
the rest of the gallery from building.
"""

import concurrent.futures as cf
import logging
import time
from typing import Sequence

from gal.errors import ConfigError
from gal.jobs import Job, Outcome, OutcomeSet

logger = logging.getLogger(__name__)


def _execute(job: Job) -> Outcome:
    start = time.monotonic()
    logger.debug("Job starting: %s", job.name)
    try:
        changed = bool(job.action())
    except Exception as e:
        duration = time.monotonic() - start
        logger.debug("Job failed: %s (%.3fs): %s", job.name, duration, e)
        return Outcome(name=job.name, changed=False, error=e, duration=duration)

    duration = time.monotonic() - start
    logger.debug("Job finished: %s (%.3fs, changed=%s)", job.name, duration, changed)
    return Outcome(name=job.name, changed=changed, duration=duration)


def run(jobs: Sequence[Job], concurrency: int) -> OutcomeSet:
    """Run every job exactly once, at most ``concurrency`` at a time."""
    if isinstance(concurrency, bool) or not isinstance(concurrency, int) or concurrency <= 0:
        raise ConfigError(f"concurrency must be a positive integer, got {concurrency!r}")

    if not jobs:
        return OutcomeSet()

    workers = min(concurrency, len(jobs))
    outcomes: list[Outcome] = []
    with cf.ThreadPoolExecutor(max_workers=workers, thread_name_prefix="gal-job") as ex:
        futures = [ex.submit(_execute, job) for job in jobs]
        for fut in cf.as_completed(futures):
            outcomes.append(fut.result())

    return OutcomeSet(outcomes=outcomes)
