"""MLS Grid client for listing media."""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Sequence

import httpx

from ..config import ProviderConfig
from ..errors import ProviderError
from .models import BatchQuery, MediaItem, ProviderPage
from .parsing import ROW_ERRORS, as_int, as_text, error_detail
from .planner import odata_literal

logger = logging.getLogger("media_sync.sync.mls_client")


class MLSGridClient:
    """Queries the MLS Grid ``Media`` resource for batches of listing keys."""

    media_path = "/Media"
    property_path = "/Property"
    key_field = "ResourceRecordID"
    order_field = "Order"

    def __init__(
        self,
        config: ProviderConfig,
        *,
        category: str = "Photo",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = config.base_url
        self.category = category
        self.headers = {
            "Authorization": f"Bearer {config.access_token}",
            "Accept": "application/json",
        }
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=self.headers,
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "MLSGridClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.client.aclose()

    @property
    def order_by(self) -> str:
        return f"{self.order_field} asc"

    def build_filter(self, keys: Sequence[str]) -> str:
        keys_expr = " or ".join(f"{self.key_field} eq {odata_literal(key)}" for key in keys)
        return f"({keys_expr}) and MediaCategory eq {odata_literal(self.category)}"

    async def fetch_media(self, query: BatchQuery) -> ProviderPage:
        """
        Fetch one batch of media rows.

        Raises:
            ProviderError: non-2xx status, transport failure or malformed body
        """
        params = {
            "$filter": query.filter,
            "$orderby": query.order_by,
            "$top": str(query.top),
        }
        data = await self._get_json(self.media_path, params=params)
        values = data.get("value")
        if not isinstance(values, list):
            raise ProviderError("Malformed response: missing 'value' array")

        page = ProviderPage(
            has_more=bool(data.get("@odata.nextLink")) or len(values) >= query.top
        )
        for raw in values:
            try:
                item = parse_mls_media(raw)
            except ROW_ERRORS as exc:
                logger.warning({"event": "provider.row_invalid", "provider": "mls", "error": str(exc)})
                item = None
            if item is None:
                page.skipped += 1
                continue
            page.items.append(item)
        return page

    async def check_connection(self, sample_size: int = 5) -> Dict[str, Any]:
        params = {
            "$top": str(sample_size),
            "$select": "ListingId,ListPrice,City,StateOrProvince,StandardStatus",
        }
        data = await self._get_json(self.property_path, params=params)
        values = data.get("value")
        if not isinstance(values, list):
            raise ProviderError("Malformed response: missing 'value' array")
        return {"sampleCount": len(values)}

    async def _get_json(self, path: str, *, params: Dict[str, str]) -> Dict[str, Any]:
        logger.debug({"event": "provider.request", "provider": "mls", "path": path})
        try:
            response = await self.client.get(path, params=params)
        except httpx.HTTPError as exc:
            raise ProviderError(f"Request failed: {exc.__class__.__name__}: {exc}") from exc

        if response.is_error:
            detail = error_detail(response)
            logger.error(
                {
                    "event": "provider.error",
                    "provider": "mls",
                    "status": response.status_code,
                    "detail": detail,
                }
            )
            raise ProviderError(
                f"API error {response.status_code}" + (f": {detail}" if detail else ""),
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise ProviderError("Malformed response: body is not JSON") from exc
        if not isinstance(data, dict):
            raise ProviderError("Malformed response: expected a JSON object")
        return data


def parse_mls_media(raw: Any) -> Optional[MediaItem]:
    """Build a MediaItem from one MLS Grid media row, or None when unusable."""
    if not isinstance(raw, dict):
        return None
    key = as_text(raw.get("ResourceRecordID")) or as_text(raw.get("ListingId"))
    url = raw.get("MediaURL")
    if not key or not isinstance(url, str) or not url.strip():
        return None
    return MediaItem(
        item_id=as_text(raw.get("MediaKey")) or url,
        foreign_key=key,
        url=url,
        order=as_int(raw.get("Order")),
        category=as_text(raw.get("MediaCategory")),
        width=as_int(raw.get("ImageWidth")),
        height=as_int(raw.get("ImageHeight")),
        caption=as_text(raw.get("ShortDescription")) or as_text(raw.get("LongDescription")),
    )
