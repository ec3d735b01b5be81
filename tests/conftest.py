import re
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest

from media_sync import storage
from media_sync.config import Settings
from media_sync.storage import MediaStore, Property, session_scope
from media_sync.sync.mls_client import MLSGridClient

MLS_BASE_URL = "https://api.mlsgrid.test/v2"


class FakeMLSGrid:
    """MockTransport-backed stand-in for the MLS Grid Media resource."""

    KEY_PATTERN = re.compile(r"ResourceRecordID eq '((?:[^']|'')*)'")

    def __init__(self) -> None:
        self.media: Dict[str, List[Dict[str, Any]]] = {}
        self.extra_rows: List[Dict[str, Any]] = []
        self.fail_calls: Dict[int, int] = {}
        self.next_link_calls: set[int] = set()
        self.on_request: Optional[Callable[[int], None]] = None
        self.requests: List[httpx.Request] = []
        self.transport = httpx.MockTransport(self._handle)

    def add(self, key: str, url: str, order: Optional[int] = None, **extra: Any) -> None:
        row = {
            "MediaKey": f"{key}-{len(self.media.get(key, [])) + 1}",
            "ResourceRecordID": key,
            "MediaURL": url,
            "MediaCategory": "Photo",
        }
        if order is not None:
            row["Order"] = order
        row.update(extra)
        self.media.setdefault(key, []).append(row)

    def requested_keys(self) -> List[List[str]]:
        batches = []
        for request in self.requests:
            raw = request.url.params.get("$filter", "")
            batches.append([key.replace("''", "'") for key in self.KEY_PATTERN.findall(raw)])
        return batches

    def factory(self) -> Callable[..., MLSGridClient]:
        def build(config, **kwargs: Any) -> MLSGridClient:
            return MLSGridClient(config, transport=self.transport, **kwargs)

        return build

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        call = len(self.requests)
        if self.on_request is not None:
            self.on_request(call)
        if call in self.fail_calls:
            return httpx.Response(
                self.fail_calls[call], json={"error": {"message": "upstream unavailable"}}
            )
        if request.url.path.endswith("/Property"):
            return httpx.Response(200, json={"value": [{"ListingId": "L-1"}, {"ListingId": "L-2"}]})

        keys = [key.replace("''", "'") for key in self.KEY_PATTERN.findall(request.url.params["$filter"])]
        rows = [row for key in keys for row in self.media.get(key, [])] + list(self.extra_rows)
        body: Dict[str, Any] = {"value": rows}
        if call in self.next_link_calls:
            body["@odata.nextLink"] = f"{MLS_BASE_URL}/Media?$skip=500"
        return httpx.Response(200, json=body)


@pytest.fixture
def session_factory(tmp_path: Path):
    engine = storage.get_engine(tmp_path / "catalog.db")
    return storage.init_db(engine)


@pytest.fixture
def store(session_factory) -> MediaStore:
    return MediaStore(session_factory)


@pytest.fixture
def add_property(session_factory) -> Callable[..., str]:
    def _add(
        listing_id: Optional[str] = None,
        *,
        title: Optional[str] = None,
        is_mls_listing: bool = True,
    ) -> str:
        with session_scope(session_factory) as session:
            prop = Property(
                listing_id=listing_id,
                title=title or (f"Listing {listing_id}" if listing_id else "Untitled"),
                is_mls_listing=is_mls_listing,
            )
            session.add(prop)
            session.flush()
            return prop.id

    return _add


@pytest.fixture
def make_settings(tmp_path: Path) -> Callable[..., Settings]:
    def _make(**overrides: Any) -> Settings:
        values: Dict[str, Any] = {
            "DB_PATH": tmp_path / "catalog.db",
            "MLS_GRID_BASE_URL": MLS_BASE_URL,
            "MLS_GRID_ACCESS_TOKEN": "test-token",
            "DRIVE_API_KEY": "drive-key",
            "SYNC_BATCH_DELAY_MS": 0,
        }
        values.update(overrides)
        return Settings(**values)

    return _make


@pytest.fixture
def fake_mls() -> FakeMLSGrid:
    return FakeMLSGrid()
