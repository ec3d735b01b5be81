import asyncio
import json
import logging
from typing import Any, Dict, List, Optional, Set

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response
from pydantic import ValidationError

from .config import resolve_mls_config, settings
from .errors import ConfigError, ProviderError, StorageError, UnknownTargetError
from .schemas import (
    CancelResponse,
    FolderSyncRequest,
    HealthResponse,
    MediaStatsResponse,
    SyncRunSummary,
)
from .storage import MediaStore, get_engine, init_db
from .sync.drive_client import DriveFolderClient
from .sync.mls_client import MLSGridClient
from .sync.scheduler import build_scheduler
from .sync.service import run_folder_media_sync, run_mls_media_sync

logger = logging.getLogger("media_sync")
logging.basicConfig(level=settings.LOG_LEVEL)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
}

app = FastAPI(title="Listing Media Sync")

mls_client_factory = MLSGridClient
drive_client_factory = DriveFolderClient

_store: Optional[MediaStore] = None
_active_runs: Set[asyncio.Event] = set()
_scheduler = None


def get_media_store() -> MediaStore:
    global _store
    if _store is None:
        _store = MediaStore(init_db(get_engine(settings.DB_PATH)))
    return _store


@app.middleware("http")
async def cors_headers(request: Request, call_next):
    if request.method == "OPTIONS":
        return Response(status_code=200, headers=CORS_HEADERS)
    response = await call_next(request)
    response.headers.update(CORS_HEADERS)
    return response


@app.on_event("startup")
async def on_startup() -> None:
    global _scheduler
    logger.info(
        {
            "event": "boot",
            "service": settings.APP_NAME,
            "version": settings.VERSION,
            "env": settings.ENV,
        }
    )

    try:
        get_media_store()
    except Exception:
        logger.exception("storage.init failed")

    if settings.MLS_MEDIA_SYNC_INTERVAL_MINUTES > 0:
        _scheduler = build_scheduler(settings.MLS_MEDIA_SYNC_INTERVAL_MINUTES, _scheduled_mls_sync)
        _scheduler.start()
        logger.info(
            {
                "event": "scheduler.started",
                "interval_minutes": settings.MLS_MEDIA_SYNC_INTERVAL_MINUTES,
            }
        )


@app.on_event("shutdown")
async def on_shutdown() -> None:
    global _scheduler
    for event in list(_active_runs):
        event.set()
    if _scheduler is not None:
        _scheduler.shutdown(wait=False)
        _scheduler = None


@app.get("/health", response_model=HealthResponse)
def health() -> HealthResponse:
    logger.debug({"event": "health.check"})
    return HealthResponse(ok=True, version=settings.VERSION, service=settings.APP_NAME)


@app.post("/api/sync/mls-media")
async def sync_mls_media() -> JSONResponse:
    """Sync photos for every MLS listing; the body carries no required parameters."""
    cancel = asyncio.Event()
    _active_runs.add(cancel)
    try:
        report = await run_mls_media_sync(
            settings,
            get_media_store(),
            client_factory=mls_client_factory,
            cancel=cancel,
        )
    except ConfigError as exc:
        return _error_response(400, _config_message("MLS Grid credentials not configured.", exc))
    except Exception as exc:
        logger.exception({"event": "sync.run.failed", "sync_type": "mls_media"})
        return _error_response(500, str(exc))
    finally:
        _active_runs.discard(cancel)

    return JSONResponse(report.to_payload())


@app.post("/api/sync/mls-media/cancel", response_model=CancelResponse)
def cancel_mls_media() -> CancelResponse:
    pending = [event for event in _active_runs if not event.is_set()]
    for event in pending:
        event.set()
    logger.info({"event": "sync.run.cancel_requested", "runs": len(pending)})
    return CancelResponse(cancelled=bool(pending))


@app.post("/api/sync/folder-media")
async def sync_folder_media(request: Request) -> JSONResponse:
    """Replace one property's images with the contents of a cloud folder."""
    payload = await _read_json(request)
    try:
        folder_request = FolderSyncRequest.model_validate(payload)
    except ValidationError as exc:
        errors = [
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in exc.errors()
        ]
        return _error_response(400, "folderId and propertyId are required", errors=errors)

    try:
        report = await run_folder_media_sync(
            settings,
            get_media_store(),
            folder_id=folder_request.folder_id,
            property_id=folder_request.property_id,
            client_factory=drive_client_factory,
        )
    except ConfigError as exc:
        return _error_response(400, _config_message("Google Drive API key not configured.", exc))
    except UnknownTargetError as exc:
        return _error_response(400, str(exc))
    except Exception as exc:
        logger.exception({"event": "sync.run.failed", "sync_type": "folder_media"})
        return _error_response(500, str(exc))

    return JSONResponse(report.to_payload())


@app.get("/api/mls/connection")
async def mls_connection() -> JSONResponse:
    try:
        config = resolve_mls_config(settings)
    except ConfigError as exc:
        return JSONResponse(
            status_code=400,
            content={
                "success": False,
                "error": str(exc),
                "details": {
                    "hasToken": bool(settings.MLS_GRID_ACCESS_TOKEN.strip()),
                    "hasBaseUrl": bool(settings.MLS_GRID_BASE_URL.strip()),
                },
            },
        )

    try:
        async with mls_client_factory(config, timeout=settings.HTTP_TIMEOUT_SECONDS) as client:
            result = await client.check_connection()
    except ProviderError as exc:
        return _error_response(502, str(exc))
    except Exception as exc:
        logger.exception({"event": "provider.connection.failed"})
        return _error_response(500, str(exc))

    return JSONResponse({"success": True, "message": "MLS Grid connection successful", **result})


@app.get("/api/media/stats", response_model=MediaStatsResponse)
def media_stats() -> MediaStatsResponse | JSONResponse:
    try:
        stats = get_media_store().media_stats()
    except StorageError as exc:
        return _error_response(500, str(exc))
    return MediaStatsResponse(
        propertiesWithImages=stats.properties_with_images,
        totalImages=stats.total_images,
    )


@app.get("/api/sync/runs", response_model=List[SyncRunSummary])
def sync_runs() -> List[SyncRunSummary] | JSONResponse:
    try:
        runs = get_media_store().recent_runs()
    except StorageError as exc:
        return _error_response(500, str(exc))
    return [
        SyncRunSummary(
            id=run.id,
            syncType=run.sync_type,
            status=run.status,
            startedAt=run.started_at,
            finishedAt=run.finished_at,
            targetsTotal=run.targets_total,
            targetsSynced=run.targets_synced,
            itemsWritten=run.items_written,
            errors=list(run.errors or []),
        )
        for run in runs
    ]


async def _scheduled_mls_sync() -> None:
    cancel = asyncio.Event()
    _active_runs.add(cancel)
    try:
        report = await run_mls_media_sync(
            settings,
            get_media_store(),
            client_factory=mls_client_factory,
            cancel=cancel,
        )
    finally:
        _active_runs.discard(cancel)
    logger.info(
        {
            "event": "scheduler.job.complete",
            "items_written": report.items_written,
            "errors": len(report.errors),
        }
    )


async def _read_json(request: Request) -> Dict[str, Any]:
    body = await request.body()
    if not body.strip():
        return {}
    try:
        payload = json.loads(body)
    except ValueError:
        return {}
    return payload if isinstance(payload, dict) else {}


def _error_response(status_code: int, message: str, **extra: Any) -> JSONResponse:
    content: Dict[str, Any] = {"success": False, "error": message}
    content.update(extra)
    return JSONResponse(status_code=status_code, content=content)


def _config_message(prefix: str, exc: ConfigError) -> str:
    return f"{prefix} {exc}" if exc.missing else str(exc)
