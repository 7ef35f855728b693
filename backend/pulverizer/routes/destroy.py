"""
Payload Pulverizer — Destruction Route Handlers
=================================================

What:  POST /pulverize, /blackhole, /shred and /burn.
Why:   The core (and only) feature: accept a payload, destroy it, gloat.
How:   Each handler reads the raw body, discards it, records the request in
       the injected CounterStore and returns its themed response.

Request Flow:
    1. Read the raw body (any bytes; no schema, no content-type checks)
    2. Measure runtime so far in microseconds
    3. CounterStore.increment(endpoint, size, runtime)
       → StoreUnavailableError propagates to the global handler (500)
    4. Return the themed response

Invariant:
    A 200 means the request was counted. If the write fails the client gets
    a 500 and the count is unchanged.
"""

import logging
import time

from fastapi import APIRouter, Depends, Request, Response

from pulverizer.schemas.payload import (
    BurnResponse,
    ErrorResponse,
    PulverizeResponse,
    ShredResponse,
)
from pulverizer.services import narratives
from pulverizer.services.counter_store import CounterStore, get_counter_store

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Destruction"])

_STORE_ERROR = {500: {"description": "Counter store unavailable", "model": ErrorResponse}}


def elapsed_us(start_ns: int) -> int:
    """Microseconds since `start_ns` (a time.perf_counter_ns() reading)."""
    return (time.perf_counter_ns() - start_ns) // 1000


async def record_destruction(
    store: CounterStore,
    endpoint: str,
    payload: bytes,
    start_ns: int,
) -> int:
    """
    Count one destroyed payload and log the obituary.

    Returns:
        Handler runtime in microseconds, as recorded in the store.

    Raises:
        StoreUnavailableError: The increment failed.
    """
    runtime_us = elapsed_us(start_ns)
    await store.increment(endpoint, payload_size=len(payload), runtime_us=runtime_us)
    logger.info(narratives.DESTRUCTION_LOG_LINES.get(endpoint, "Destroyed %d bytes"), len(payload))
    return runtime_us


@router.post(
    "/pulverize",
    response_model=PulverizeResponse,
    responses=_STORE_ERROR,
    summary="Pulverize a payload",
    description="Accepts any payload and confirms it was pulverized into oblivion.",
)
async def pulverize(
    request: Request,
    store: CounterStore = Depends(get_counter_store),
) -> PulverizeResponse:
    start = time.perf_counter_ns()
    payload = await request.body()
    runtime_us = await record_destruction(store, "pulverize", payload, start)
    return PulverizeResponse(message=narratives.PULVERIZE_MESSAGE, runtime_us=runtime_us)


@router.post(
    "/blackhole",
    status_code=200,
    response_class=Response,
    responses={200: {"description": "Payload absorbed; empty body"}, **_STORE_ERROR},
    summary="Drop a payload into a black hole",
    description="Accepts any payload and answers with an empty body. Nothing escapes.",
)
async def blackhole(
    request: Request,
    store: CounterStore = Depends(get_counter_store),
) -> Response:
    start = time.perf_counter_ns()
    payload = await request.body()
    await record_destruction(store, "blackhole", payload, start)
    return Response(status_code=200)


@router.post(
    "/shred",
    response_model=ShredResponse,
    responses=_STORE_ERROR,
    summary="Shred a payload",
    description="Accepts any payload and returns a randomly chosen shredding log.",
)
async def shred(
    request: Request,
    store: CounterStore = Depends(get_counter_store),
) -> ShredResponse:
    start = time.perf_counter_ns()
    payload = await request.body()
    log = narratives.pick_shredder_log()
    runtime_us = await record_destruction(store, "shred", payload, start)
    return ShredResponse(log=log, runtime_us=runtime_us)


@router.post(
    "/burn",
    response_model=BurnResponse,
    responses=_STORE_ERROR,
    summary="Burn a payload",
    description="Accepts any payload and returns dramatic ASCII fire.",
)
async def burn(
    request: Request,
    store: CounterStore = Depends(get_counter_store),
) -> BurnResponse:
    start = time.perf_counter_ns()
    payload = await request.body()
    runtime_us = await record_destruction(store, "burn", payload, start)
    return BurnResponse(
        message=narratives.BURN_MESSAGE,
        fire=narratives.FIRE_ART,
        runtime_us=runtime_us,
    )
