"""
Unit tests for expired session sweeping
"""

import asyncio

import pytest

from tests.utils.helpers import count_rows, set_expiry

pytestmark = pytest.mark.unit


class TestCollect:

    @pytest.mark.asyncio
    async def test_deletes_only_expired_rows(self, store, clock):
        for sid in ("live-1", "live-2", "dead-1", "dead-2", "dead-3"):
            await store.set(sid, {"cookie": {"maxAge": 60000}})
        for sid in ("dead-1", "dead-2", "dead-3"):
            set_expiry(store, sid, clock.now - 1)

        deleted = await store.collect()

        assert deleted == 3
        assert count_rows(store) == 2
        assert await store.get("live-1") is not None

    @pytest.mark.asyncio
    async def test_row_expiring_now_is_kept(self, store, clock):
        await store.set("edge", {"cookie": {}})
        set_expiry(store, "edge", clock.now)

        assert await store.collect() == 0
        assert count_rows(store) == 1

    @pytest.mark.asyncio
    async def test_empty_table(self, store):
        assert await store.collect() == 0


class TestPeriodicSweeper:

    @pytest.mark.asyncio
    async def test_sweeps_on_interval(self, store, clock):
        await store.set("old", {"cookie": {"maxAge": 1000}})
        clock.advance(10)

        store.gc.start(0.01)
        assert store.gc.running
        for _ in range(100):
            if count_rows(store) == 0:
                break
            await asyncio.sleep(0.01)
        await store.gc.stop()

        assert count_rows(store) == 0
        assert not store.gc.running

    @pytest.mark.asyncio
    async def test_start_is_idempotent(self, store):
        first = store.gc.start(60)
        second = store.gc.start(60)

        assert first is second
        await store.gc.stop()

    @pytest.mark.asyncio
    async def test_rejects_non_positive_interval(self, store):
        with pytest.raises(ValueError):
            store.gc.start(0)

    @pytest.mark.asyncio
    async def test_keeps_running_after_failed_sweep(self, store, monkeypatch):
        calls = []

        def flaky_delete(now):
            calls.append(now)
            raise RuntimeError("lock timeout")

        monkeypatch.setattr(store.gc, "_delete_expired", flaky_delete)

        store.gc.start(0.01)
        for _ in range(100):
            if len(calls) >= 2:
                break
            await asyncio.sleep(0.01)

        assert store.gc.running
        await store.gc.stop()
        assert len(calls) >= 2

    @pytest.mark.asyncio
    async def test_stop_without_start(self, store):
        await store.gc.stop()
