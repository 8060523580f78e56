"""SQL-backed session storage for web session middleware."""

from sessionstore.core.config import StoreSettings
from sessionstore.core.exceptions import (
    CodecError,
    InvalidSession,
    SessionStoreError,
    SyncTimeout,
)
from sessionstore.core.garbage_collector import GarbageCollector
from sessionstore.core.session_store import SessionStore
from sessionstore.db.init_db import ReadinessState, SchemaSynchronizer
from sessionstore.db.models.session_store import SessionRecord
from sessionstore.db.session import create_session_engine

__version__ = "1.0.0"

__all__ = [
    "CodecError",
    "GarbageCollector",
    "InvalidSession",
    "ReadinessState",
    "SchemaSynchronizer",
    "SessionRecord",
    "SessionStore",
    "SessionStoreError",
    "StoreSettings",
    "SyncTimeout",
    "create_session_engine",
]
