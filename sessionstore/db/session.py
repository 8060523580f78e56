from pathlib import Path
from typing import Any, Dict, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.pool import QueuePool

from sessionstore.core.config import settings

# Seconds a SQLite writer waits on a locked database
SQLITE_BUSY_TIMEOUT = 30


def get_connect_args(database_url: str) -> Dict[str, Any]:
    """Get database-specific connection arguments"""
    if database_url.startswith("sqlite"):
        # Store operations run in worker threads
        return {"check_same_thread": False, "timeout": SQLITE_BUSY_TIMEOUT}
    return {}


def is_sqlite_memory(database_url: str) -> bool:
    """True for ``sqlite://`` and ``sqlite:///:memory:`` URLs"""
    url = make_url(database_url)
    return url.get_backend_name() == "sqlite" and url.database in (None, "", ":memory:")


def _ensure_sqlite_directory(database_url: str) -> None:
    url = make_url(database_url)
    if url.get_backend_name() != "sqlite" or is_sqlite_memory(database_url):
        return
    if url.database.startswith("file:"):
        return
    Path(url.database).expanduser().parent.mkdir(parents=True, exist_ok=True)


def _enable_sqlite_wal(dbapi_connection: Any, connection_record: Any) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode = WAL;")
    cursor.close()


def create_session_engine(database_url: Optional[str] = None, **kwargs: Any) -> Engine:
    """
    Create an engine suitable for the session store.

    File-backed SQLite databases get their parent directory created and run in
    WAL mode. In-memory SQLite keeps a single pooled connection that worker
    threads take turns on, so every thread sees the same database.

    Args:
        database_url: SQLAlchemy URL (uses settings.database_url if not provided)
        **kwargs: Passed through to ``create_engine``
    """
    url = database_url or settings.database_url
    memory = is_sqlite_memory(url)
    if memory:
        # One connection, checked out by one thread at a time
        kwargs.setdefault("poolclass", QueuePool)
        kwargs.setdefault("pool_size", 1)
        kwargs.setdefault("max_overflow", 0)
    else:
        _ensure_sqlite_directory(url)

    engine = create_engine(url, connect_args=get_connect_args(url), **kwargs)
    if engine.dialect.name == "sqlite" and not memory:
        event.listen(engine, "connect", _enable_sqlite_wal)
    return engine
