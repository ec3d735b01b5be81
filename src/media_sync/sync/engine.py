"""Batch loop that reconciles provider media with the local catalog."""
from __future__ import annotations

import asyncio
import logging
from typing import Optional

from .fetcher import MediaProvider, fetch_batch
from .grouper import group_media
from .models import RunReport
from .planner import batch_count, plan_batches
from .ratelimit import NoDelayLimiter, RateLimiter
from .replace import MediaWriter, ReplaceExecutor
from .reporter import RunReporter
from .selector import TargetSelection

logger = logging.getLogger("media_sync.sync.engine")


class MediaSyncEngine:
    """Runs batches sequentially: fetch, group, replace, then wait on the limiter.

    Everything inside the loop is non-fatal; failures end up in the report.
    """

    def __init__(
        self,
        provider: MediaProvider,
        writer: MediaWriter,
        *,
        batch_size: int = 10,
        result_cap: int = 500,
        limiter: Optional[RateLimiter] = None,
    ) -> None:
        self.provider = provider
        self.executor = ReplaceExecutor(writer)
        self.batch_size = batch_size
        self.result_cap = result_cap
        self.limiter = limiter or NoDelayLimiter()

    async def run(
        self,
        selection: TargetSelection,
        *,
        cancel: Optional[asyncio.Event] = None,
    ) -> RunReport:
        reporter = RunReporter(targets_total=len(selection))
        if not selection:
            logger.info({"event": "sync.run.empty"})
            return reporter.finish()

        keys = selection.keys
        total_batches = batch_count(len(keys), self.batch_size)
        logger.info(
            {"event": "sync.run.start", "targets": len(keys), "batches": total_batches}
        )

        for query in plan_batches(
            keys, self.provider, batch_size=self.batch_size, result_cap=self.result_cap
        ):
            if cancel is not None and cancel.is_set():
                logger.warning(
                    {"event": "sync.run.cancelled", "batch": query.index, "batches": total_batches}
                )
                reporter.cancel()
                break

            await self.limiter.wait()
            reporter.batch_started()
            result = await fetch_batch(self.provider, query)
            reporter.add_issues(result.issues)
            if result.failed:
                reporter.batch_failed()
                continue

            grouping = group_media(result.items, selection.key_map)
            reporter.add_unmapped(grouping.unmapped)
            # Storage is synchronous and runs on the loop, so no other run's
            # writes can land between a target's delete and insert.
            for target_id, items in grouping.groups.items():
                outcome = self.executor.replace(
                    target_id, items, label=selection.labels.get(target_id)
                )
                reporter.add_replace(outcome)

        report = reporter.finish()
        logger.info(
            {
                "event": "sync.run.complete",
                "targets_synced": report.targets_synced,
                "items_written": report.items_written,
                "unmapped": report.unmapped_items,
                "errors": len(report.errors),
                "cancelled": report.cancelled,
            }
        )
        return report
