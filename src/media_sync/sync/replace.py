from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Protocol, Sequence

from ..errors import StorageError
from .models import IssueKind, IssueScope, LocalMediaRecord, MediaItem, SyncIssue

logger = logging.getLogger("media_sync.sync.replace")


class MediaWriter(Protocol):
    def delete_media(self, owner_id: str) -> int:
        ...

    def insert_media(self, records: Sequence[LocalMediaRecord]) -> int:
        ...


@dataclass(frozen=True, slots=True)
class ReplaceOutcome:
    target_id: str
    written: int = 0
    issue: Optional[SyncIssue] = None

    @property
    def ok(self) -> bool:
        return self.issue is None


def build_records(target_id: str, items: Sequence[MediaItem]) -> list[LocalMediaRecord]:
    """Turn an ordered group into records; the first one is primary.

    Explicit provider orders are kept when every item has one and they are
    distinct, otherwise the 1-based sorted position is used.
    """
    orders = [item.order for item in items]
    use_explicit = all(order is not None for order in orders) and len(set(orders)) == len(orders)
    return [
        LocalMediaRecord(
            owner_id=target_id,
            url=item.url,
            is_primary=position == 1,
            display_order=item.order if use_explicit else position,
            caption=item.caption,
            width=item.width,
            height=item.height,
        )
        for position, item in enumerate(items, start=1)
    ]


class ReplaceExecutor:
    """Swaps a target's media set: delete everything it owns, then insert the new set."""

    def __init__(self, writer: MediaWriter) -> None:
        self._writer = writer

    def replace(
        self, target_id: str, items: Sequence[MediaItem], *, label: Optional[str] = None
    ) -> ReplaceOutcome:
        records = build_records(target_id, items)
        name = label or target_id

        try:
            removed = self._writer.delete_media(target_id)
        except StorageError as exc:
            logger.error(
                {"event": "sync.replace.delete_failed", "target": target_id, "error": str(exc)}
            )
            return ReplaceOutcome(
                target_id,
                issue=SyncIssue(
                    IssueKind.STORAGE,
                    IssueScope.TARGET,
                    target_id,
                    f"{name}: Failed to clear existing images ({exc})",
                ),
            )

        try:
            written = self._writer.insert_media(records)
        except StorageError as exc:
            logger.error(
                {
                    "event": "sync.replace.insert_failed",
                    "target": target_id,
                    "removed": removed,
                    "error": str(exc),
                }
            )
            return ReplaceOutcome(
                target_id,
                issue=SyncIssue(
                    IssueKind.STORAGE,
                    IssueScope.TARGET,
                    target_id,
                    f"{name}: Failed to insert images ({exc})",
                ),
            )

        logger.info(
            {"event": "sync.replace.ok", "target": target_id, "removed": removed, "written": written}
        )
        return ReplaceOutcome(target_id, written=written)
