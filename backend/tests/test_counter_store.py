"""
Payload Pulverizer — Counter Store Tests
==========================================

What:  Tests for CounterStore against a real SQLite file per test.
Why:   The store is the only shared mutable state in the service; lost
       updates or lost data would make /stats lie.

What we test:
    ✅ Seeding, increments and lazily created counters
    ✅ Concurrent increments lose nothing
    ✅ Counts survive closing and reopening the same file
    ✅ Totals and averages in the detailed snapshot
    ✅ Failures surface as StoreUnavailableError
"""

import asyncio

import pytest

from pulverizer.config import Settings
from pulverizer.exceptions import StoreUnavailableError
from pulverizer.services.counter_store import TRACKED_ENDPOINTS, CounterStore


class TestCounterStoreBasics:
    """Tests for open, increment and snapshot."""

    @pytest.mark.asyncio
    async def test_open_seeds_tracked_endpoints(self, counter_store):
        snapshot = await counter_store.snapshot()
        assert snapshot == {name: 0 for name in TRACKED_ENDPOINTS}

    @pytest.mark.asyncio
    async def test_snapshot_is_ordered_by_name(self, counter_store):
        snapshot = await counter_store.snapshot()
        assert list(snapshot) == sorted(TRACKED_ENDPOINTS)

    @pytest.mark.asyncio
    async def test_increment_returns_new_count(self, counter_store):
        assert await counter_store.increment("pulverize") == 1
        assert await counter_store.increment("pulverize") == 2
        assert await counter_store.increment("burn") == 1

    @pytest.mark.asyncio
    async def test_increment_only_touches_its_endpoint(self, counter_store):
        await counter_store.increment("shred")
        snapshot = await counter_store.snapshot()
        assert snapshot["shred"] == 1
        assert sum(snapshot.values()) == 1

    @pytest.mark.asyncio
    async def test_unknown_endpoint_created_lazily(self, counter_store):
        assert await counter_store.increment("teleport") == 1
        snapshot = await counter_store.snapshot()
        assert snapshot["teleport"] == 1

    @pytest.mark.asyncio
    async def test_open_without_seed(self, test_settings):
        store = CounterStore(test_settings, seed=())
        await store.open()
        try:
            assert await store.snapshot() == {}
            await store.increment("pulverize")
            assert await store.snapshot() == {"pulverize": 1}
        finally:
            await store.close()

    @pytest.mark.asyncio
    async def test_open_twice_keeps_counts(self, counter_store):
        await counter_store.increment("blackhole")
        await counter_store.open()
        assert (await counter_store.snapshot())["blackhole"] == 1

    @pytest.mark.asyncio
    async def test_ping(self, counter_store, test_settings):
        assert await counter_store.ping() is True
        assert await CounterStore(test_settings).ping() is False


class TestCounterStoreConcurrency:
    """Concurrent increments must never lose updates."""

    @pytest.mark.asyncio
    async def test_concurrent_increments_same_endpoint(self, counter_store):
        n = 100
        results = await asyncio.gather(
            *(counter_store.increment("pulverize") for _ in range(n))
        )
        assert (await counter_store.snapshot())["pulverize"] == n
        # Each increment observed a distinct count
        assert sorted(results) == list(range(1, n + 1))

    @pytest.mark.asyncio
    async def test_concurrent_increments_mixed_endpoints(self, counter_store):
        plan = {"pulverize": 30, "shred": 20, "burn": 10}
        calls = [
            counter_store.increment(name)
            for name, times in plan.items()
            for _ in range(times)
        ]
        await asyncio.gather(*calls)
        snapshot = await counter_store.snapshot()
        for name, times in plan.items():
            assert snapshot[name] == times

    @pytest.mark.asyncio
    async def test_two_handles_on_one_file(self, test_settings):
        """Two stores (e.g. two workers) sharing one file still count exactly."""
        a, b = CounterStore(test_settings), CounterStore(test_settings)
        await a.open()
        await b.open()
        try:
            await asyncio.gather(
                *(a.increment("burn") for _ in range(25)),
                *(b.increment("burn") for _ in range(25)),
            )
            assert (await a.snapshot())["burn"] == 50
        finally:
            await a.close()
            await b.close()


class TestCounterStorePersistence:
    """Counts survive a restart with the same database path."""

    @pytest.mark.asyncio
    async def test_counts_survive_reopen(self, db_path):
        first = CounterStore(Settings(db_path=db_path))
        await first.open()
        for _ in range(3):
            await first.increment("pulverize")
        await first.increment("validate-before-destroy")
        await first.close()

        second = CounterStore(Settings(db_path=db_path))
        await second.open()
        try:
            snapshot = await second.snapshot()
            assert snapshot["pulverize"] == 3
            assert snapshot["validate-before-destroy"] == 1
            assert await second.increment("pulverize") == 4
        finally:
            await second.close()


class TestDetailedSnapshot:
    """Tests for aggregated totals and averages."""

    @pytest.mark.asyncio
    async def test_totals_and_averages(self, counter_store):
        await counter_store.increment("shred", payload_size=100, runtime_us=10)
        await counter_store.increment("shred", payload_size=300, runtime_us=30)

        stats = {s.endpoint: s for s in await counter_store.detailed_snapshot()}
        shred = stats["shred"]
        assert shred.count == 2
        assert shred.total_bytes == 400
        assert shred.total_runtime_us == 40
        assert shred.avg_payload_size == 200.0
        assert shred.avg_runtime_us == 20.0

    @pytest.mark.asyncio
    async def test_unused_endpoint_has_zero_averages(self, counter_store):
        stats = {s.endpoint: s for s in await counter_store.detailed_snapshot()}
        assert stats["burn"].count == 0
        assert stats["burn"].avg_payload_size == 0.0
        assert stats["burn"].avg_runtime_us == 0.0

    @pytest.mark.asyncio
    async def test_negative_inputs_are_clamped(self, counter_store):
        await counter_store.increment("burn", payload_size=-5, runtime_us=-1)
        stats = {s.endpoint: s for s in await counter_store.detailed_snapshot()}
        assert stats["burn"].total_bytes == 0
        assert stats["burn"].total_runtime_us == 0


class TestCounterStoreFailures:
    """Unavailable store → StoreUnavailableError, never a silent success."""

    @pytest.mark.asyncio
    async def test_open_fails_for_missing_directory(self, tmp_path):
        store = CounterStore(Settings(db_path=str(tmp_path / "missing" / "dir" / "x.db")))
        with pytest.raises(StoreUnavailableError) as exc_info:
            await store.open()
        assert exc_info.value.context["db_path"].endswith("x.db")
        assert store.is_open is False

    @pytest.mark.asyncio
    async def test_increment_before_open_fails(self, test_settings):
        store = CounterStore(test_settings)
        with pytest.raises(StoreUnavailableError):
            await store.increment("pulverize")

    @pytest.mark.asyncio
    async def test_snapshot_after_close_fails(self, test_settings):
        store = CounterStore(test_settings)
        await store.open()
        await store.close()
        with pytest.raises(StoreUnavailableError):
            await store.snapshot()

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self, counter_store):
        await counter_store.close()
        await counter_store.close()
        assert counter_store.is_open is False
