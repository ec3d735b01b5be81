from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class HealthResponse(BaseModel):
    ok: bool
    version: str
    service: str


class FolderSyncRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    folder_id: str = Field(..., alias="folderId", description="Cloud folder holding the images.")
    property_id: str = Field(..., alias="propertyId", description="Catalog property to update.")

    @field_validator("folder_id", "property_id")
    @classmethod
    def _must_not_be_blank(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("Field cannot be blank.")
        return cleaned


class MediaStatsResponse(BaseModel):
    propertiesWithImages: int
    totalImages: int


class SyncRunSummary(BaseModel):
    id: int
    syncType: str
    status: str
    startedAt: Optional[datetime] = None
    finishedAt: Optional[datetime] = None
    targetsTotal: int
    targetsSynced: int
    itemsWritten: int
    errors: List[str] = Field(default_factory=list)


class CancelResponse(BaseModel):
    cancelled: bool
