"""Scheduled MLS media synchronization."""
from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

logger = logging.getLogger("media_sync.sync.scheduler")

JOB_ID = "mls-media-sync"


def build_scheduler(
    interval_minutes: int,
    job: Callable[[], Awaitable[None]],
    *,
    scheduler: Optional[AsyncIOScheduler] = None,
) -> AsyncIOScheduler:
    """Register ``job`` to run every ``interval_minutes``; the scheduler is not started."""
    if interval_minutes < 1:
        raise ValueError("interval_minutes must be at least 1")

    scheduler = scheduler or AsyncIOScheduler()
    scheduler.add_job(
        _guarded(job),
        IntervalTrigger(minutes=interval_minutes),
        id=JOB_ID,
        max_instances=1,
        coalesce=True,
        replace_existing=True,
    )
    return scheduler


def _guarded(job: Callable[[], Awaitable[None]]) -> Callable[[], Awaitable[None]]:
    async def run() -> None:
        try:
            await job()
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception({"event": "scheduler.job.failed", "job": JOB_ID})

    return run
