"""Create the session table and gate data operations on its readiness."""

import asyncio
import logging
from enum import Enum
from typing import Optional

from sqlalchemy import Table, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError, ProgrammingError

from sessionstore.core.exceptions import SyncTimeout

logger = logging.getLogger(__name__)


class ReadinessState(str, Enum):
    """Lifecycle of the session table."""

    PENDING = "pending"
    SYNCING = "syncing"
    READY = "ready"


class SchemaSynchronizer:
    """
    Ensures the session table exists before any read or write touches it.

    Every data operation awaits ``wait_until_ready``. Readiness is a one-shot
    event: once READY the state never changes again.
    """

    def __init__(
        self,
        engine: Engine,
        table: Table,
        sync_timeout: int = 3000,
        enabled: bool = False,
    ) -> None:
        self._engine = engine
        self._table = table
        self._sync_timeout = sync_timeout
        self._enabled = enabled
        self._state = ReadinessState.PENDING
        self._ready = asyncio.Event()
        self._lock = asyncio.Lock()
        self._task: Optional[asyncio.Task] = None

        if not enabled:
            # Table is assumed to exist already
            self._mark_ready()

    @property
    def state(self) -> ReadinessState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._state is ReadinessState.READY

    @property
    def table_name(self) -> str:
        return self._table.name

    def _mark_ready(self) -> None:
        self._state = ReadinessState.READY
        self._ready.set()

    def _create_table(self) -> bool:
        """Create the table if missing. Returns True if it was created."""
        if inspect(self._engine).has_table(self._table.name, schema=self._table.schema):
            return False
        try:
            self._table.create(bind=self._engine, checkfirst=True)
        except (OperationalError, ProgrammingError):
            # Another process may have created it after our existence check
            if inspect(self._engine).has_table(self._table.name, schema=self._table.schema):
                return False
            raise
        return True

    async def synchronize(self) -> None:
        """
        Create the session table if it does not exist and mark the store ready.

        Safe to call repeatedly; once READY this is a no-op.
        """
        async with self._lock:
            if self._state is ReadinessState.READY:
                return

            self._state = ReadinessState.SYNCING
            try:
                created = await asyncio.to_thread(self._create_table)
            except Exception as e:
                self._state = ReadinessState.PENDING
                logger.error(f"Failed to initialize session table {self._table.name}: {e}")
                raise

            self._mark_ready()

        if created:
            logger.info("Created session table", extra={
                "table": self._table.name,
                "schema": self._table.schema,
            })
        else:
            logger.debug(f"Session table {self._table.name} already exists")

    def schedule(self) -> Optional[asyncio.Task]:
        """
        Start synchronization in the background on the running loop.

        Only one background attempt is ever made. Returns None when no loop is
        running; the first ``wait_until_ready`` call then starts it.
        """
        if not self._enabled or self._task is not None or self.is_ready:
            return self._task
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return None
        self._task = loop.create_task(self.synchronize())
        self._task.add_done_callback(self._on_sync_done)
        return self._task

    @staticmethod
    def _on_sync_done(task: asyncio.Task) -> None:
        # Failure was logged in synchronize(); waiters observe it as SyncTimeout
        if not task.cancelled():
            task.exception()

    async def wait_until_ready(self, timeout: Optional[int] = None) -> None:
        """
        Block until the table is ready.

        Args:
            timeout: Milliseconds to wait (defaults to the configured sync timeout)

        Raises:
            SyncTimeout: If the table is not ready in time
        """
        if self.is_ready:
            return

        self.schedule()
        timeout_ms = timeout if timeout is not None else self._sync_timeout
        try:
            await asyncio.wait_for(self._ready.wait(), timeout_ms / 1000)
        except asyncio.TimeoutError:
            raise SyncTimeout(self._table.name, timeout_ms) from None

    async def cancel(self) -> None:
        """Cancel a background synchronization that is still running."""
        if self._task is not None and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
