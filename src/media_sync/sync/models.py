"""Value types passed between the stages of a media sync run."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


@dataclass(frozen=True, slots=True)
class SyncTarget:
    id: str
    external_key: str
    label: str | None = None


@dataclass(frozen=True, slots=True)
class MediaItem:
    """One remote asset as parsed from a provider response."""

    item_id: str
    foreign_key: str
    url: str
    order: int | None = None
    category: str | None = None
    width: int | None = None
    height: int | None = None
    caption: str | None = None


@dataclass(frozen=True, slots=True)
class LocalMediaRecord:
    owner_id: str
    url: str
    is_primary: bool
    display_order: int
    caption: str | None = None
    width: int | None = None
    height: int | None = None


@dataclass(frozen=True, slots=True)
class BatchQuery:
    index: int  # 1-based
    keys: tuple[str, ...]
    filter: str
    order_by: str
    top: int


@dataclass(slots=True)
class ProviderPage:
    items: list[MediaItem] = field(default_factory=list)
    skipped: int = 0
    has_more: bool = False


class IssueKind(str, Enum):
    PROVIDER = "provider"
    MAPPING = "mapping"
    STORAGE = "storage"
    CAPACITY = "capacity"


class IssueScope(str, Enum):
    RUN = "run"
    BATCH = "batch"
    TARGET = "target"
    KEY = "key"


@dataclass(frozen=True, slots=True)
class SyncIssue:
    kind: IssueKind
    scope: IssueScope
    identifier: str
    message: str

    @property
    def is_warning(self) -> bool:
        return self.kind is IssueKind.CAPACITY

    def __str__(self) -> str:
        return f"{self.kind.value} [{self.scope.value} {self.identifier}]: {self.message}"


class MappingOutcome(str, Enum):
    MAPPED = "mapped"
    UNMAPPED = "unmapped"


@dataclass(frozen=True, slots=True)
class RunReport:
    targets_total: int = 0
    targets_synced: int = 0
    items_written: int = 0
    unmapped_items: int = 0
    batches_total: int = 0
    batches_failed: int = 0
    cancelled: bool = False
    issues: tuple[SyncIssue, ...] = ()

    @property
    def errors(self) -> list[SyncIssue]:
        return [issue for issue in self.issues if not issue.is_warning]

    @property
    def warnings(self) -> list[SyncIssue]:
        return [issue for issue in self.issues if issue.is_warning]

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "success": True,
            "totalMediaSynced": self.items_written,
            "propertiesWithMedia": self.targets_synced,
            "totalProperties": self.targets_total,
            "unmappedItems": self.unmapped_items,
            "cancelled": self.cancelled,
        }
        if self.errors:
            payload["errors"] = [str(issue) for issue in self.errors]
        if self.warnings:
            payload["warnings"] = [str(issue) for issue in self.warnings]
        return payload


@dataclass(frozen=True, slots=True)
class MediaStats:
    properties_with_images: int
    total_images: int
