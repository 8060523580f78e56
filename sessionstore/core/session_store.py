"""Session storage on a relational table.

Implements the get/set/destroy/touch contract expected by web session
middleware. Each row holds one session keyed by its session id; the
``time_updated`` column is the session's expiry in epoch seconds.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional

from sqlalchemy import delete, func, insert, select, update
from sqlalchemy.dialects import mysql, postgresql, sqlite
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from sessionstore.core.config import StoreSettings, settings as default_settings
from sessionstore.core.exceptions import CodecError, InvalidSession
from sessionstore.core.garbage_collector import GarbageCollector
from sessionstore.core.utils import codec, timeutils
from sessionstore.core.utils.database_helpers import get_database_type, resolve_schema
from sessionstore.db.base import make_metadata
from sessionstore.db.init_db import ReadinessState, SchemaSynchronizer
from sessionstore.db.models.session_store import SessionRecord, build_session_table

logger = logging.getLogger(__name__)

Session = Dict[str, Any]

# Dialects with a native insert-on-conflict-update
_ON_CONFLICT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}
_ON_DUPLICATE_KEY_DIALECTS = {"mysql", "mariadb"}


class SessionStore:
    """
    Stores web sessions in a single SQL table.

    Every operation waits for the table to be ready first and raises
    ``SyncTimeout`` if it is not ready within ``sync_timeout`` milliseconds.
    Database errors are passed through unchanged; nothing is retried.
    """

    def __init__(
        self,
        engine: Engine,
        settings: Optional[StoreSettings] = None,
        **overrides: Any,
    ) -> None:
        base = settings or default_settings
        if overrides:
            base = StoreSettings(**{**base.model_dump(), **overrides})
        self.settings = base
        self._engine = engine

        schema = resolve_schema(engine, self.settings.schema_name)
        self.table = build_session_table(
            make_metadata(),
            self.settings.table_name,
            schema=schema,
            timestamps=self.settings.timestamps,
        )
        self._synchronizer = SchemaSynchronizer(
            engine,
            self.table,
            sync_timeout=self.settings.sync_timeout,
            enabled=self.settings.sync,
        )
        self.gc = GarbageCollector(engine, self.table, self._synchronizer)

        if self.settings.sync:
            self._synchronizer.schedule()

    @property
    def state(self) -> ReadinessState:
        return self._synchronizer.state

    async def __aenter__(self) -> "SessionStore":
        await self._synchronizer.wait_until_ready()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Stop background work started by this store."""
        await self.gc.stop()
        await self.gc.drain()
        await self._synchronizer.cancel()

    # ------------------------------------------------------------------
    # Store contract
    # ------------------------------------------------------------------

    async def get(self, sid: str) -> Optional[Session]:
        """
        Load a live session.

        Returns:
            The session, or None if it is missing, expired, unreadable or
            has no cookie metadata.
        """
        await self._synchronizer.wait_until_ready()
        self._maybe_collect()

        now = timeutils.current_timestamp()
        data = await asyncio.to_thread(self._select_live_data, sid, now)
        if data is None:
            return None

        try:
            session = codec.decode(data)
            codec.require_cookie(session)
        except CodecError as e:
            logger.warning(f"Discarding unreadable session payload: {e}")
            return None
        except InvalidSession:
            logger.debug("Discarding session without cookie metadata")
            return None
        return session

    async def set(self, sid: str, session: Session) -> None:
        """
        Create or replace a session.

        The computed expiry is written into ``session["cookie"]["expires"]``.

        Raises:
            InvalidSession: If ``session["cookie"]`` is present but not a mapping
            CodecError: If the session cannot be serialized
        """
        await self._synchronizer.wait_until_ready()
        expires = self._stamp_expiry(session)
        data = codec.encode(session)
        await asyncio.to_thread(self._upsert, sid, data, expires)
        logger.debug(f"Stored session in {self.table.name} until {expires}")

    async def destroy(self, sid: str) -> None:
        """Delete a session. Unknown ids are ignored."""
        await self._synchronizer.wait_until_ready()
        await asyncio.to_thread(
            self._execute, delete(self.table).where(self.table.c.id == sid)
        )

    async def touch(self, sid: str, session: Session) -> None:
        """Extend a session's expiry without rewriting its payload."""
        await self._synchronizer.wait_until_ready()
        expires = self._stamp_expiry(session)
        await asyncio.to_thread(
            self._execute,
            update(self.table).where(self.table.c.id == sid).values(time_updated=expires),
        )

    async def length(self) -> int:
        """Number of live sessions."""
        await self._synchronizer.wait_until_ready()
        now = timeutils.current_timestamp()
        stmt = (
            select(func.count())
            .select_from(self.table)
            .where(self.table.c.time_updated >= now)
        )
        return await asyncio.to_thread(self._scalar, stmt)

    async def all(self) -> Dict[str, Session]:
        """Every live, readable session keyed by id."""
        await self._synchronizer.wait_until_ready()
        now = timeutils.current_timestamp()
        stmt = select(self.table.c.id, self.table.c.data).where(
            self.table.c.time_updated >= now
        )
        rows = await asyncio.to_thread(self._fetchall, stmt)

        sessions: Dict[str, Session] = {}
        for row in rows:
            try:
                session = codec.decode(row.data)
                codec.require_cookie(session)
            except (CodecError, InvalidSession):
                continue
            sessions[row.id] = session
        return sessions

    async def clear(self) -> int:
        """Delete every session, live or expired. Returns the row count."""
        await self._synchronizer.wait_until_ready()
        return await asyncio.to_thread(self._execute, delete(self.table))

    async def collect(self) -> int:
        """Delete expired sessions now. Returns the row count."""
        return await self.gc.collect()

    async def get_record(self, sid: str) -> Optional[SessionRecord]:
        """Raw row for ``sid`` regardless of expiry."""
        await self._synchronizer.wait_until_ready()
        stmt = select(self.table.c.id, self.table.c.data, self.table.c.time_updated).where(
            self.table.c.id == sid
        )
        row = await asyncio.to_thread(self._fetchone, stmt)
        return SessionRecord.from_row(row) if row else None

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _maybe_collect(self) -> None:
        frequency = self.settings.gc_frequency
        if frequency > 0 and timeutils.random_int(1, frequency) == 1:
            self.gc.trigger()

    def _stamp_expiry(self, session: Session) -> int:
        cookie = session.get("cookie")
        if cookie is None:
            cookie = session["cookie"] = {}
        elif not isinstance(cookie, dict):
            raise InvalidSession("Session cookie metadata must be a mapping")

        expires = timeutils.get_expire_time(
            cookie.get("maxAge"), self.settings.browser_session_lifetime
        )
        cookie["expires"] = expires
        return expires

    def _upsert(self, sid: str, data: str, expires: int) -> None:
        values = {"id": sid, "data": data, "time_updated": expires}
        changes: Dict[str, Any] = {"data": data, "time_updated": expires}
        if self.settings.timestamps:
            changes["updated_at"] = func.now()

        dialect = get_database_type(self._engine)
        if dialect in _ON_CONFLICT_INSERTS:
            stmt = _ON_CONFLICT_INSERTS[dialect](self.table).values(**values)
            stmt = stmt.on_conflict_do_update(index_elements=[self.table.c.id], set_=changes)
            self._execute(stmt)
        elif dialect in _ON_DUPLICATE_KEY_DIALECTS:
            stmt = mysql.insert(self.table).values(**values)
            self._execute(stmt.on_duplicate_key_update(**changes))
        else:
            self._update_or_insert(sid, values, changes)

    def _update_or_insert(self, sid: str, values: Dict[str, Any], changes: Dict[str, Any]) -> None:
        """Upsert for dialects without a native statement."""
        update_stmt = update(self.table).where(self.table.c.id == sid).values(**changes)
        if self._execute(update_stmt):
            return
        try:
            self._execute(insert(self.table).values(**values))
        except IntegrityError:
            # Another writer inserted this id between our UPDATE and INSERT
            logger.debug("Insert lost a race, retrying update")
            self._execute(update_stmt)

    def _select_live_data(self, sid: str, now: int) -> Optional[str]:
        stmt = (
            select(self.table.c.data)
            .where(self.table.c.id == sid)
            .where(self.table.c.time_updated >= now)
            .limit(1)
        )
        return self._scalar(stmt)

    def _execute(self, stmt: Any) -> int:
        with self._engine.begin() as conn:
            return conn.execute(stmt).rowcount

    def _scalar(self, stmt: Any) -> Any:
        with self._engine.connect() as conn:
            return conn.execute(stmt).scalar()

    def _fetchone(self, stmt: Any) -> Any:
        with self._engine.connect() as conn:
            return conn.execute(stmt).first()

    def _fetchall(self, stmt: Any) -> list:
        with self._engine.connect() as conn:
            return conn.execute(stmt).fetchall()
