"""Entry points wiring configuration, target selection and the engine together."""
from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Callable, Optional

from ..config import ProviderConfig, Settings, resolve_drive_config, resolve_mls_config, sync_options
from ..errors import StorageError
from ..storage.models import RunStatus
from .drive_client import DriveFolderClient
from .engine import MediaSyncEngine
from .mls_client import MLSGridClient
from .models import RunReport
from .ratelimit import FixedIntervalLimiter, RateLimiter
from .selector import select_folder_target, select_mls_targets

if TYPE_CHECKING:
    from ..storage.media_store import MediaStore

logger = logging.getLogger("media_sync.sync.service")

MLS_SYNC = "mls_media"
FOLDER_SYNC = "folder_media"

MLSClientFactory = Callable[..., MLSGridClient]
DriveClientFactory = Callable[..., DriveFolderClient]


async def run_mls_media_sync(
    settings: Settings,
    store: MediaStore,
    *,
    client_factory: MLSClientFactory = MLSGridClient,
    limiter: Optional[RateLimiter] = None,
    cancel: Optional[asyncio.Event] = None,
) -> RunReport:
    """
    Sync listing photos for every MLS property in the catalog.

    Raises:
        ConfigError: MLS credentials are missing; nothing is touched
        StorageError: the target list could not be loaded
    """
    config = resolve_mls_config(settings)
    options = sync_options(settings)
    selection = select_mls_targets(store)
    if not selection:
        logger.info({"event": "sync.run.empty", "sync_type": MLS_SYNC})
        return RunReport()

    run_id = _start_run(store, MLS_SYNC)
    try:
        async with client_factory(
            config, category=options.category, timeout=options.timeout_seconds
        ) as client:
            engine = MediaSyncEngine(
                client,
                store,
                batch_size=options.batch_size,
                result_cap=options.result_cap,
                limiter=limiter or FixedIntervalLimiter(options.batch_delay_seconds),
            )
            report = await engine.run(selection, cancel=cancel)
    except Exception as exc:
        _finish_run(store, run_id, RunStatus.FAILED, error=str(exc))
        raise

    status = RunStatus.CANCELLED if report.cancelled else RunStatus.COMPLETED
    _finish_run(store, run_id, status, report=report)
    return report


async def run_folder_media_sync(
    settings: Settings,
    store: MediaStore,
    *,
    folder_id: str,
    property_id: str,
    client_factory: DriveClientFactory = DriveFolderClient,
) -> RunReport:
    """
    Replace one property's gallery with the images in a Drive folder.

    Raises:
        ConfigError: Drive API key is missing
        UnknownTargetError: ``property_id`` is not in the catalog
    """
    config: ProviderConfig = resolve_drive_config(settings)
    options = sync_options(settings, result_cap=settings.DRIVE_RESULT_CAP)
    selection = select_folder_target(store, property_id=property_id, folder_id=folder_id)

    run_id = _start_run(store, FOLDER_SYNC)
    try:
        async with client_factory(config, timeout=options.timeout_seconds) as client:
            engine = MediaSyncEngine(client, store, batch_size=1, result_cap=options.result_cap)
            report = await engine.run(selection)
    except Exception as exc:
        _finish_run(store, run_id, RunStatus.FAILED, error=str(exc))
        raise

    _finish_run(store, run_id, RunStatus.COMPLETED, report=report)
    return report


def _start_run(store: MediaStore, sync_type: str) -> Optional[int]:
    try:
        return store.start_run(sync_type)
    except StorageError as exc:
        logger.warning({"event": "sync.runlog.start_failed", "error": str(exc)})
        return None


def _finish_run(
    store: MediaStore,
    run_id: Optional[int],
    status: RunStatus,
    *,
    report: Optional[RunReport] = None,
    error: Optional[str] = None,
) -> None:
    if run_id is None:
        return
    try:
        store.finish_run(run_id, status=status, report=report, error=error)
    except StorageError as exc:
        logger.warning({"event": "sync.runlog.finish_failed", "run": run_id, "error": str(exc)})
