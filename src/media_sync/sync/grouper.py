"""Map fetched media back to local targets and order each target's set."""
from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable, Mapping

from .models import MappingOutcome, MediaItem

logger = logging.getLogger("media_sync.sync.grouper")


@dataclass(slots=True)
class GroupingResult:
    groups: dict[str, list[MediaItem]] = field(default_factory=dict)
    unmapped: Counter = field(default_factory=Counter)

    @property
    def unmapped_total(self) -> int:
        return sum(self.unmapped.values())


def classify(item: MediaItem, key_map: Mapping[str, str]) -> MappingOutcome:
    return MappingOutcome.MAPPED if item.foreign_key in key_map else MappingOutcome.UNMAPPED


def _order_key(item: MediaItem) -> tuple[bool, int]:
    # Items without an explicit order follow the ordered ones.
    return (item.order is None, item.order if item.order is not None else 0)


def group_media(items: Iterable[MediaItem], key_map: Mapping[str, str]) -> GroupingResult:
    """Group items by owning target id.

    Within a group items are ordered by their explicit order ascending;
    the sort is stable so ties and missing orders keep fetch order.
    """
    result = GroupingResult()
    for item in items:
        outcome = classify(item, key_map)
        if outcome is MappingOutcome.UNMAPPED:
            result.unmapped[item.foreign_key] += 1
            continue
        result.groups.setdefault(key_map[item.foreign_key], []).append(item)

    for target_id, group in result.groups.items():
        result.groups[target_id] = sorted(group, key=_order_key)

    if result.unmapped:
        logger.warning(
            {
                "event": "sync.group.unmapped",
                "items": result.unmapped_total,
                "keys": sorted(result.unmapped),
            }
        )
    return result
