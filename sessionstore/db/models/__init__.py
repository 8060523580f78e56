"""Database models"""

from sessionstore.db.models.session_store import SessionRecord, build_session_table

__all__ = [
    "SessionRecord",
    "build_session_table",
]
