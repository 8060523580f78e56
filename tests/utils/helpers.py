"""
Test helper functions for inspecting and tampering with the session table

These bypass the store so tests can observe physical rows and simulate
corruption or clock drift.
"""

from sqlalchemy import func, select, update

from sessionstore.core.session_store import SessionStore


def count_rows(store: SessionStore) -> int:
    """Physical row count, ignoring expiry"""
    with store._engine.connect() as conn:
        return conn.execute(select(func.count()).select_from(store.table)).scalar()


def write_raw_row(store: SessionStore, sid: str, data: str, time_updated: int) -> None:
    """Insert a row directly, bypassing the codec"""
    with store._engine.begin() as conn:
        conn.execute(
            store.table.insert().values(id=sid, data=data, time_updated=time_updated)
        )


def set_expiry(store: SessionStore, sid: str, time_updated: int) -> None:
    """Overwrite a row's expiry directly"""
    with store._engine.begin() as conn:
        conn.execute(
            update(store.table)
            .where(store.table.c.id == sid)
            .values(time_updated=time_updated)
        )
