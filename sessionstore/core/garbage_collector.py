"""
Expired session sweeping.

A sweep is a single bulk delete of every row whose expiry has passed. It can
be awaited directly, fired in the background from the read path, or run on a
fixed interval.
"""

import asyncio
import logging
from typing import Optional, Set

from sqlalchemy import Table, delete
from sqlalchemy.engine import Engine

from sessionstore.core.utils import timeutils
from sessionstore.db.init_db import SchemaSynchronizer

logger = logging.getLogger(__name__)


class GarbageCollector:
    """Deletes expired session rows."""

    def __init__(self, engine: Engine, table: Table, synchronizer: SchemaSynchronizer) -> None:
        self._engine = engine
        self._table = table
        self._synchronizer = synchronizer
        self._background: Set[asyncio.Task] = set()
        self._periodic: Optional[asyncio.Task] = None

    @property
    def pending(self) -> int:
        """Number of background sweeps still running."""
        return len(self._background)

    @property
    def running(self) -> bool:
        return self._periodic is not None and not self._periodic.done()

    def _delete_expired(self, now: int) -> int:
        with self._engine.begin() as conn:
            result = conn.execute(
                delete(self._table).where(self._table.c.time_updated < now)
            )
            return result.rowcount

    async def collect(self) -> int:
        """
        Delete every expired session.

        Returns:
            Number of rows deleted
        """
        await self._synchronizer.wait_until_ready()
        now = timeutils.current_timestamp()
        deleted = await asyncio.to_thread(self._delete_expired, now)
        if deleted:
            logger.info("Removed expired sessions", extra={
                "table": self._table.name,
                "deleted": deleted,
            })
        else:
            logger.debug(f"No expired sessions in {self._table.name}")
        return deleted

    def trigger(self) -> asyncio.Task:
        """Start a sweep without waiting for it. Errors are logged, not raised."""
        task = asyncio.get_running_loop().create_task(self.collect())
        self._background.add(task)
        task.add_done_callback(self._on_background_done)
        return task

    def _on_background_done(self, task: asyncio.Task) -> None:
        self._background.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(
                f"Background session sweep failed: {error}",
                exc_info=(type(error), error, error.__traceback__),
            )

    async def drain(self) -> None:
        """Wait for background sweeps started by ``trigger``."""
        if self._background:
            await asyncio.gather(*self._background, return_exceptions=True)

    def start(self, interval: float) -> asyncio.Task:
        """
        Sweep every ``interval`` seconds until ``stop`` is called.

        Raises:
            ValueError: If interval is not positive
        """
        if interval <= 0:
            raise ValueError("interval must be positive")
        if self.running:
            return self._periodic
        self._periodic = asyncio.get_running_loop().create_task(self._run_periodically(interval))
        logger.info(f"Started session sweeper for {self._table.name} every {interval}s")
        return self._periodic

    async def _run_periodically(self, interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            try:
                await self.collect()
            except Exception as e:
                # Keep sweeping; the next interval may succeed
                logger.error(f"Periodic session sweep failed: {e}")

    async def stop(self) -> None:
        """Stop the periodic sweeper if it is running."""
        if self._periodic is None:
            return
        self._periodic.cancel()
        try:
            await self._periodic
        except asyncio.CancelledError:
            pass
        self._periodic = None
        logger.info(f"Stopped session sweeper for {self._table.name}")
