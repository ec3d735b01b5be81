"""Google Drive folder listing used for per-property image galleries."""
from __future__ import annotations

import logging
from pathlib import PurePosixPath
from typing import Any, Optional, Sequence

import httpx

from ..config import ProviderConfig
from ..errors import ProviderError
from .parsing import ROW_ERRORS, as_int, as_text, error_detail
from .models import BatchQuery, MediaItem, ProviderPage

logger = logging.getLogger("media_sync.sync.drive_client")

THUMBNAIL_URL = "https://drive.google.com/thumbnail?id={file_id}&sz=w2000"
FILE_FIELDS = "nextPageToken,files(id,name,mimeType,parents,imageMediaMetadata(width,height))"


def drive_literal(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


class DriveFolderClient:
    """Lists image files under Drive folders; each folder id is an external key."""

    files_path = "/files"
    order_by = "name"

    def __init__(
        self,
        config: ProviderConfig,
        *,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = config.base_url
        self._api_key = config.access_token
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={"Accept": "application/json"},
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "DriveFolderClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.client.aclose()

    def build_filter(self, keys: Sequence[str]) -> str:
        parents = " or ".join(f"{drive_literal(key)} in parents" for key in keys)
        return f"({parents}) and mimeType contains 'image/' and trashed = false"

    async def fetch_media(self, query: BatchQuery) -> ProviderPage:
        params = {
            "q": query.filter,
            "orderBy": query.order_by,
            "pageSize": str(query.top),
            "fields": FILE_FIELDS,
            "key": self._api_key,
        }
        logger.debug({"event": "provider.request", "provider": "drive", "keys": len(query.keys)})
        try:
            response = await self.client.get(self.files_path, params=params)
        except httpx.HTTPError as exc:
            raise ProviderError(f"Request failed: {exc.__class__.__name__}: {exc}") from exc

        if response.is_error:
            detail = error_detail(response)
            logger.error(
                {
                    "event": "provider.error",
                    "provider": "drive",
                    "status": response.status_code,
                    "detail": detail,
                }
            )
            raise ProviderError(
                f"Google Drive API error {response.status_code}" + (f": {detail}" if detail else ""),
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise ProviderError("Malformed response: body is not JSON") from exc
        files = data.get("files") if isinstance(data, dict) else None
        if not isinstance(files, list):
            raise ProviderError("Malformed response: missing 'files' array")

        page = ProviderPage(has_more=bool(data.get("nextPageToken")))
        for raw in files:
            try:
                item = parse_drive_file(raw, query.keys)
            except ROW_ERRORS as exc:
                logger.warning({"event": "provider.row_invalid", "provider": "drive", "error": str(exc)})
                item = None
            if item is None:
                page.skipped += 1
                continue
            page.items.append(item)
        return page


def parse_drive_file(raw: Any, folder_ids: Sequence[str]) -> Optional[MediaItem]:
    if not isinstance(raw, dict):
        return None
    file_id = as_text(raw.get("id"))
    if not file_id:
        return None

    parents = raw.get("parents")
    parents = [parent for parent in parents if isinstance(parent, str)] if isinstance(parents, list) else []
    folder = next((parent for parent in parents if parent in folder_ids), None)
    if folder is None and parents:
        # Grouping reports this as unmapped.
        folder = parents[0]
    elif folder is None and len(folder_ids) == 1:
        folder = folder_ids[0]
    if folder is None:
        return None

    name = raw.get("name")
    metadata = raw.get("imageMediaMetadata")
    if not isinstance(metadata, dict):
        metadata = {}
    return MediaItem(
        item_id=file_id,
        foreign_key=folder,
        url=THUMBNAIL_URL.format(file_id=file_id),
        order=None,
        category=as_text(raw.get("mimeType")),
        width=as_int(metadata.get("width")),
        height=as_int(metadata.get("height")),
        caption=(PurePosixPath(name).stem or None) if isinstance(name, str) else None,
    )
