from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Protocol, Sequence

from ..errors import ProviderError
from .models import BatchQuery, IssueKind, IssueScope, MediaItem, ProviderPage, SyncIssue

logger = logging.getLogger("media_sync.sync.fetcher")


class MediaProvider(Protocol):
    @property
    def order_by(self) -> str:
        ...

    def build_filter(self, keys: Sequence[str]) -> str:
        ...

    async def fetch_media(self, query: BatchQuery) -> ProviderPage:
        ...


@dataclass(slots=True)
class FetchResult:
    query: BatchQuery
    items: list[MediaItem] = field(default_factory=list)
    issues: list[SyncIssue] = field(default_factory=list)
    failed: bool = False


async def fetch_batch(provider: MediaProvider, query: BatchQuery) -> FetchResult:
    """Run one provider query. Provider failures come back as data, never raised."""
    batch_id = str(query.index)
    logger.info({"event": "sync.batch.fetch", "batch": query.index, "keys": len(query.keys)})
    try:
        page = await provider.fetch_media(query)
    except ProviderError as exc:
        logger.warning(
            {
                "event": "sync.batch.failed",
                "batch": query.index,
                "status": exc.status_code,
                "error": str(exc),
            }
        )
        issue = SyncIssue(IssueKind.PROVIDER, IssueScope.BATCH, batch_id, str(exc))
        return FetchResult(query=query, issues=[issue], failed=True)

    result = FetchResult(query=query, items=page.items)
    if page.skipped:
        result.issues.append(
            SyncIssue(
                IssueKind.PROVIDER,
                IssueScope.BATCH,
                batch_id,
                f"Skipped {page.skipped} malformed media item(s)",
            )
        )
    if page.has_more:
        logger.warning(
            {
                "event": "sync.batch.cap_saturated",
                "batch": query.index,
                "cap": query.top,
                "received": len(page.items),
            }
        )
        result.issues.append(
            SyncIssue(
                IssueKind.CAPACITY,
                IssueScope.BATCH,
                batch_id,
                f"Result cap of {query.top} reached; media may be truncated",
            )
        )
    return result
