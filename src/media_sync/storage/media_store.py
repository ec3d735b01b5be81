"""Catalog repository used by the media sync engine."""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional, Sequence

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from ..errors import StorageError
from ..sync.models import LocalMediaRecord, MediaStats, RunReport, SyncTarget
from .db import session_scope
from .models import Property, PropertyImage, RunStatus, SyncRun

logger = logging.getLogger("media_sync.storage.media_store")


class MediaStore:
    """Reads sync targets and replaces their media records.

    ``delete_media`` and ``insert_media`` each commit on their own. A caller
    pairing them gets two transactions, not one.
    """

    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    # Target operations
    def list_sync_targets(self) -> list[SyncTarget]:
        """MLS listings carrying a listing id, oldest first."""
        query = (
            select(Property.id, Property.listing_id, Property.title)
            .where(Property.is_mls_listing.is_(True))
            .where(Property.listing_id.is_not(None))
            .order_by(Property.created_at, Property.id)
        )
        try:
            with session_scope(self._session_factory) as session:
                rows = session.execute(query).all()
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to load sync targets: {exc}") from exc
        return [
            SyncTarget(id=row.id, external_key=row.listing_id, label=row.title)
            for row in rows
            if row.listing_id and row.listing_id.strip()
        ]

    def get_target(self, property_id: str, *, external_key: str) -> Optional[SyncTarget]:
        try:
            with session_scope(self._session_factory) as session:
                prop = session.get(Property, property_id)
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to load property {property_id}: {exc}") from exc
        if prop is None:
            return None
        return SyncTarget(id=prop.id, external_key=external_key, label=prop.title)

    # Media operations
    def delete_media(self, owner_id: str) -> int:
        """Delete every image owned by ``owner_id``; returns the number removed."""
        try:
            with session_scope(self._session_factory) as session:
                result = session.execute(
                    delete(PropertyImage).where(PropertyImage.property_id == owner_id)
                )
                return result.rowcount or 0
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to clear existing images: {exc}") from exc

    def insert_media(self, records: Sequence[LocalMediaRecord]) -> int:
        if not records:
            return 0
        rows = [
            PropertyImage(
                property_id=record.owner_id,
                image_url=record.url,
                is_primary=record.is_primary,
                display_order=record.display_order,
                caption=record.caption,
                width=record.width,
                height=record.height,
            )
            for record in records
        ]
        try:
            with session_scope(self._session_factory) as session:
                session.add_all(rows)
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to insert images: {exc}") from exc
        return len(rows)

    def list_media(self, owner_id: str) -> list[LocalMediaRecord]:
        query = (
            select(PropertyImage)
            .where(PropertyImage.property_id == owner_id)
            .order_by(PropertyImage.display_order, PropertyImage.id)
        )
        with session_scope(self._session_factory) as session:
            images = session.execute(query).scalars().all()
            return [
                LocalMediaRecord(
                    owner_id=image.property_id,
                    url=image.image_url,
                    is_primary=image.is_primary,
                    display_order=image.display_order,
                    caption=image.caption,
                    width=image.width,
                    height=image.height,
                )
                for image in images
            ]

    def media_stats(self) -> MediaStats:
        query = (
            select(
                func.count(func.distinct(PropertyImage.property_id)),
                func.count(PropertyImage.id),
            )
            .select_from(PropertyImage)
            .join(Property, Property.id == PropertyImage.property_id)
            .where(Property.is_mls_listing.is_(True))
        )
        try:
            with session_scope(self._session_factory) as session:
                with_images, total = session.execute(query).one()
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to count images: {exc}") from exc
        return MediaStats(properties_with_images=with_images or 0, total_images=total or 0)

    # Run log operations
    def start_run(self, sync_type: str) -> int:
        run = SyncRun(sync_type=sync_type, status=RunStatus.RUNNING.value, errors=[])
        try:
            with session_scope(self._session_factory) as session:
                session.add(run)
                session.flush()
                return run.id
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to record sync run: {exc}") from exc

    def finish_run(
        self,
        run_id: int,
        *,
        status: RunStatus,
        report: Optional[RunReport] = None,
        error: Optional[str] = None,
    ) -> None:
        try:
            with session_scope(self._session_factory) as session:
                run = session.get(SyncRun, run_id)
                if run is None:
                    return
                run.status = status.value
                run.finished_at = datetime.now(timezone.utc)
                if report is not None:
                    run.targets_total = report.targets_total
                    run.targets_synced = report.targets_synced
                    run.items_written = report.items_written
                    run.errors = [str(issue) for issue in report.errors]
                if error:
                    run.errors = [*run.errors, error]
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to update sync run {run_id}: {exc}") from exc

    def recent_runs(self, limit: int = 10) -> list[SyncRun]:
        query = select(SyncRun).order_by(SyncRun.started_at.desc(), SyncRun.id.desc()).limit(limit)
        try:
            with session_scope(self._session_factory) as session:
                return list(session.execute(query).scalars().all())
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to load sync runs: {exc}") from exc
