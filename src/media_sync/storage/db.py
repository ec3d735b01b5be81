from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, Union

import sqlalchemy as sa
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from .models import Base

logger = logging.getLogger("media_sync.storage")

_engine: Optional[Engine] = None
_SessionFactory: Optional[sessionmaker] = None


def _make_sqlite_url(path: Union[str, Path]) -> str:
    p = Path(path)
    if not p.is_absolute():
        p = p.resolve()
    return f"sqlite:///{p.as_posix()}"


def get_engine(path: Optional[Union[str, Path]] = None) -> Engine:
    """Return a SQLAlchemy Engine for the catalog at ``path``.

    - ``None`` or ``"memory"`` gives an in-memory SQLite engine.
    - Anything else is treated as a file path; missing parent directories are created.
    """
    global _engine, _SessionFactory

    if path is None or path == "memory":
        url = "sqlite:///:memory:"
    else:
        url = _make_sqlite_url(path)
        Path(path).parent.mkdir(parents=True, exist_ok=True)

    _engine = sa.create_engine(url, echo=False, future=True)
    _SessionFactory = sessionmaker(bind=_engine, future=True, expire_on_commit=False)
    return _engine


def init_db(engine: Optional[Engine] = None) -> sessionmaker:
    """Create the catalog schema and return a session factory bound to ``engine``."""
    global _engine, _SessionFactory

    if engine is None:
        engine = get_engine(None)

    Base.metadata.create_all(engine)

    _engine = engine
    _SessionFactory = sessionmaker(bind=_engine, future=True, expire_on_commit=False)
    logger.info({"event": "storage.initialized", "dialect": engine.dialect.name})
    return _SessionFactory


@contextmanager
def session_scope(factory: sessionmaker) -> Iterator[Session]:
    """Yield a session that commits on success and rolls back on error."""
    sess: Session = factory()
    try:
        yield sess
        sess.commit()
    except Exception:
        sess.rollback()
        raise
    finally:
        sess.close()


@contextmanager
def get_session() -> Iterator[Session]:
    """Yield a session from the cached engine, creating an in-memory one if needed."""
    if _SessionFactory is None:
        get_engine(None)

    assert _SessionFactory is not None
    with session_scope(_SessionFactory) as sess:
        yield sess
