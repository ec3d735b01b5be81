from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterable, Optional

from ..errors import UnknownTargetError
from .models import SyncTarget

if TYPE_CHECKING:
    from ..storage.media_store import MediaStore

logger = logging.getLogger("media_sync.sync.selector")


@dataclass(slots=True)
class TargetSelection:
    key_map: dict[str, str] = field(default_factory=dict)
    labels: dict[str, Optional[str]] = field(default_factory=dict)

    @property
    def keys(self) -> list[str]:
        return list(self.key_map)

    def __len__(self) -> int:
        return len(self.key_map)

    def __bool__(self) -> bool:
        return bool(self.key_map)


def build_selection(targets: Iterable[SyncTarget]) -> TargetSelection:
    """Map external key -> target id, keeping the last target seen for a key."""
    selection = TargetSelection()
    for target in targets:
        key = (target.external_key or "").strip()
        if not key:
            continue
        previous = selection.key_map.get(key)
        if previous is not None and previous != target.id:
            logger.warning(
                {
                    "event": "sync.select.duplicate_key",
                    "key": key,
                    "dropped": previous,
                    "kept": target.id,
                }
            )
            selection.labels.pop(previous, None)
        selection.key_map[key] = target.id
        selection.labels[target.id] = target.label
    return selection


def select_mls_targets(store: MediaStore) -> TargetSelection:
    selection = build_selection(store.list_sync_targets())
    logger.info({"event": "sync.select.mls", "targets": len(selection)})
    return selection


def select_folder_target(store: MediaStore, *, property_id: str, folder_id: str) -> TargetSelection:
    target = store.get_target(property_id, external_key=folder_id)
    if target is None:
        raise UnknownTargetError(f"Property {property_id} not found")
    return build_selection([target])
