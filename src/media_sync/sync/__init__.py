"""External media synchronization engine."""

from .engine import MediaSyncEngine
from .models import (
    BatchQuery,
    IssueKind,
    IssueScope,
    LocalMediaRecord,
    MappingOutcome,
    MediaItem,
    RunReport,
    SyncIssue,
    SyncTarget,
)
from .service import run_folder_media_sync, run_mls_media_sync

__all__ = [
    "BatchQuery",
    "IssueKind",
    "IssueScope",
    "LocalMediaRecord",
    "MappingOutcome",
    "MediaItem",
    "MediaSyncEngine",
    "RunReport",
    "SyncIssue",
    "SyncTarget",
    "run_folder_media_sync",
    "run_mls_media_sync",
]
