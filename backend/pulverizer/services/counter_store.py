"""
Payload Pulverizer — Usage Counter Store
==========================================

What:  Persistent mapping from endpoint name to usage totals.
Why:   /stats reports how often each endpoint was used, across restarts.
How:   One SQLite row per endpoint; every increment is a single atomic
       upsert (INSERT ... ON CONFLICT DO UPDATE ... RETURNING) in its own
       transaction.
Who:   Injected into route handlers via get_counter_store(); opened and
       closed by the application lifespan.
When:  open() at startup, increment() per destructive request,
       snapshot() per /stats request, close() at shutdown.

Concurrency:
    No in-process locks. SQLite serializes writers on its database lock and
    the busy timeout makes a contending writer wait instead of failing, so
    N concurrent increments always add exactly N. The counter is read back
    with RETURNING inside the same statement, so the returned value is the
    one this request produced.

Failure Mode:
    Any SQLAlchemy error is wrapped in StoreUnavailableError (HTTP 500).
    Nothing is retried, and a failed increment is never reported as success.
"""

import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from fastapi import Request
from sqlalchemy import select, text
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from pulverizer.config import Settings
from pulverizer.database import Base, build_engine, build_session_factory
from pulverizer.exceptions import StoreUnavailableError
from pulverizer.models.endpoint_counter import EndpointCounter
from pulverizer.schemas.payload import EndpointStats

logger = logging.getLogger(__name__)


# Endpoints seeded at startup so /stats lists them before their first call
TRACKED_ENDPOINTS = (
    "pulverize",
    "blackhole",
    "shred",
    "burn",
    "validate-before-destroy",
)


class CounterStore:
    """
    Handle to the SQLite counter database.

    One instance per application. It owns its engine, so two apps built
    with different Settings never share a connection pool.

    Usage:
        store = CounterStore(settings)
        await store.open()
        await store.increment("pulverize", payload_size=12, runtime_us=40)
        await store.snapshot()   # {"pulverize": 1, "blackhole": 0, ...}
        await store.close()
    """

    def __init__(self, settings: Settings, seed: tuple = TRACKED_ENDPOINTS):
        self.settings = settings
        self.seed = seed
        self._engine: Optional[AsyncEngine] = None
        self._session_factory: Optional[async_sessionmaker[AsyncSession]] = None

    @property
    def db_path(self) -> str:
        return self.settings.db_path

    @property
    def is_open(self) -> bool:
        return self._engine is not None

    # ── Lifecycle ─────────────────────────────────────────────────────────

    async def open(self) -> None:
        """
        Create the schema if missing and seed the tracked endpoints.

        Existing counts are left untouched, so reopening the same file
        after a restart continues where the previous process stopped.

        Raises:
            StoreUnavailableError: The database file cannot be opened or
                written (missing directory, permissions, corrupt file).
        """
        if self._engine is None:
            self._engine = build_engine(self.settings)
            self._session_factory = build_session_factory(self._engine)

        try:
            async with self._engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)

            if self.seed:
                async with self._session_factory() as session:
                    async with session.begin():
                        stmt = (
                            sqlite_insert(EndpointCounter)
                            .values([{"endpoint": name} for name in self.seed])
                            .on_conflict_do_nothing(index_elements=[EndpointCounter.endpoint])
                        )
                        await session.execute(stmt)
        except SQLAlchemyError as e:
            await self.close()
            raise StoreUnavailableError(
                message=f"Could not open counter store at {self.db_path}",
                context={"db_path": self.db_path, "error": str(e)},
            ) from e

        logger.info("Counter store ready at %s", self.db_path)

    async def close(self) -> None:
        """Dispose of the connection pool. Safe to call twice."""
        if self._engine is not None:
            await self._engine.dispose()
        self._engine = None
        self._session_factory = None

    async def ping(self) -> bool:
        """Cheap liveness probe: True when SELECT 1 succeeds."""
        if self._engine is None:
            return False
        try:
            async with self._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.warning("Counter store ping failed: %s", str(e))
            return False

    # ── Operations ────────────────────────────────────────────────────────

    async def increment(
        self,
        endpoint: str,
        payload_size: int = 0,
        runtime_us: int = 0,
    ) -> int:
        """
        Record one handled request for `endpoint`.

        Args:
            endpoint: Endpoint name; unseen names get a fresh row
            payload_size: Request body size in bytes, added to total_bytes
            runtime_us: Handler runtime in microseconds, added to total_runtime_us

        Returns:
            The endpoint's count after this increment.

        Raises:
            StoreUnavailableError: The write failed; the count did not change.
        """
        payload_size = max(int(payload_size), 0)
        runtime_us = max(int(runtime_us), 0)
        now = datetime.now(timezone.utc)

        stmt = sqlite_insert(EndpointCounter).values(
            endpoint=endpoint,
            count=1,
            total_bytes=payload_size,
            total_runtime_us=runtime_us,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[EndpointCounter.endpoint],
            set_={
                "count": EndpointCounter.count + 1,
                "total_bytes": EndpointCounter.total_bytes + payload_size,
                "total_runtime_us": EndpointCounter.total_runtime_us + runtime_us,
                "updated_at": now,
            },
        ).returning(EndpointCounter.count)

        factory = self._require_open("increment", endpoint)
        try:
            async with factory() as session:
                async with session.begin():
                    result = await session.execute(stmt)
                    new_count = result.scalar_one()
        except SQLAlchemyError as e:
            raise StoreUnavailableError(
                context={"operation": "increment", "endpoint": endpoint, "error": str(e)},
            ) from e

        logger.debug("Counter %s -> %d", endpoint, new_count)
        return new_count

    async def snapshot(self) -> Dict[str, int]:
        """
        Current count of every known endpoint.

        Returns:
            Mapping endpoint name → count, ordered by endpoint name.
        """
        factory = self._require_open("snapshot")
        try:
            async with factory() as session:
                result = await session.execute(
                    select(EndpointCounter.endpoint, EndpointCounter.count)
                    .order_by(EndpointCounter.endpoint)
                )
                rows = result.all()
        except SQLAlchemyError as e:
            raise StoreUnavailableError(
                context={"operation": "snapshot", "error": str(e)},
            ) from e

        return {endpoint: count for endpoint, count in rows}

    async def detailed_snapshot(self) -> List[EndpointStats]:
        """Aggregated totals and averages per endpoint, ordered by name."""
        factory = self._require_open("detailed_snapshot")
        try:
            async with factory() as session:
                result = await session.execute(
                    select(EndpointCounter).order_by(EndpointCounter.endpoint)
                )
                counters = result.scalars().all()
        except SQLAlchemyError as e:
            raise StoreUnavailableError(
                context={"operation": "detailed_snapshot", "error": str(e)},
            ) from e

        return [_to_stats(counter) for counter in counters]

    def _require_open(self, operation: str, endpoint: Optional[str] = None):
        if self._session_factory is None:
            ctx = {"operation": operation, "error": "store is not open"}
            if endpoint:
                ctx["endpoint"] = endpoint
            raise StoreUnavailableError(context=ctx)
        return self._session_factory


def _to_stats(counter: EndpointCounter) -> EndpointStats:
    count = counter.count
    return EndpointStats(
        endpoint=counter.endpoint,
        count=count,
        total_bytes=counter.total_bytes,
        total_runtime_us=counter.total_runtime_us,
        avg_payload_size=counter.total_bytes / count if count else 0.0,
        avg_runtime_us=counter.total_runtime_us / count if count else 0.0,
    )


# ── Dependency ────────────────────────────────────────────────────────────
def get_counter_store(request: Request) -> CounterStore:
    """
    FastAPI dependency returning the app's counter store.

    The store lives on app.state (set by create_app); tests can swap it
    with app.dependency_overrides[get_counter_store].
    """
    return request.app.state.counter_store
