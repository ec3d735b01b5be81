"""Storage package exports for SQLAlchemy helpers, models and the media repository."""
from .db import get_engine, get_session, init_db, session_scope  # noqa: F401
from .media_store import MediaStore  # noqa: F401
from .models import Base, Property, PropertyImage, RunStatus, SyncRun  # noqa: F401

__all__ = [
    "Base",
    "MediaStore",
    "Property",
    "PropertyImage",
    "RunStatus",
    "SyncRun",
    "get_engine",
    "get_session",
    "init_db",
    "session_scope",
]
