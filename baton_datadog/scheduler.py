"""APScheduler-based interval scheduling for full sync passes."""

from __future__ import annotations

import logging
import time

from apscheduler.events import EVENT_JOB_ERROR
from apscheduler.schedulers.blocking import BlockingScheduler

from baton_datadog.config import ConnectorConfig
from baton_datadog.connector import DatadogConnector
from baton_datadog.context import CallContext
from baton_datadog.errors import Cancelled, InvalidToken, PolicyViolation
from baton_datadog.sync import Sink, SyncRunner

logger = logging.getLogger("connector.scheduler")

# Retrying these cannot succeed.
_FATAL = (InvalidToken, PolicyViolation, Cancelled)


def run_sync_with_retry(
    connector: DatadogConnector,
    config: ConnectorConfig,
    sink: Sink,
    backoff_base: float = 30.0,
) -> bool:
    """Run one full sync pass, retrying the whole pass on upstream failures.

    Returns True on success. Syncers never retry themselves, so this is the
    only place a failed pass is attempted again.
    """
    max_retries = config.scheduler.max_retries
    runner = SyncRunner(connector.resource_syncers(), max_workers=config.max_workers)

    for attempt in range(max_retries + 1):
        try:
            results = runner.sync(CallContext.background(), sink)
            logger.info("Scheduled sync complete: %s", results)
            return True
        except _FATAL as exc:
            logger.error("Scheduled sync aborted: %s", exc)
            return False
        except Exception as exc:
            if attempt < max_retries:
                delay = backoff_base * (2 ** attempt)
                logger.warning(
                    "Sync failed (attempt %d/%d), retrying in %ds: %s",
                    attempt + 1, max_retries, delay, exc,
                )
                time.sleep(delay)
            else:
                logger.error("Sync failed after %d retries: %s", max_retries, exc)
    return False


def _on_job_error(event) -> None:
    """Log job execution errors."""
    logger.error(
        "Job %s raised an exception: %s",
        event.job_id,
        event.exception,
    )


def start_scheduler(connector: DatadogConnector, config: ConnectorConfig, sink: Sink) -> None:
    """Start the blocking scheduler with one interval job for the full sync."""
    scheduler = BlockingScheduler()
    scheduler.add_listener(_on_job_error, EVENT_JOB_ERROR)
    sched = config.scheduler

    scheduler.add_job(
        run_sync_with_retry,
        "interval",
        minutes=sched.sync_interval_min,
        args=[connector, config, sink],
        id="datadog_sync",
        max_instances=1,
        misfire_grace_time=sched.misfire_grace_time,
    )

    logger.info("Starting scheduler with jobs: %s",
                [j.id for j in scheduler.get_jobs()])
    scheduler.start()
