"""
Payload Pulverizer — Statistics Route Handlers
================================================

What:  GET /stats (endpoint → count) and GET /stats/detailed (totals and
       averages per endpoint).
How:   Reads a snapshot from the injected CounterStore. Reading statistics
       is not itself counted.
"""

import logging
from typing import Dict

from fastapi import APIRouter, Depends

from pulverizer.schemas.payload import DetailedStatsResponse, ErrorResponse
from pulverizer.services.counter_store import CounterStore, get_counter_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/stats", tags=["Statistics"])


@router.get(
    "",
    response_model=Dict[str, int],
    responses={500: {"description": "Counter store unavailable", "model": ErrorResponse}},
    summary="Usage count per endpoint",
    description=(
        "Returns a JSON object mapping each endpoint name to the number of "
        "requests it has handled since the database was created."
    ),
)
async def get_stats(
    store: CounterStore = Depends(get_counter_store),
) -> Dict[str, int]:
    return await store.snapshot()


@router.get(
    "/detailed",
    response_model=DetailedStatsResponse,
    responses={500: {"description": "Counter store unavailable", "model": ErrorResponse}},
    summary="Aggregated usage per endpoint",
    description=(
        "Count, total and average payload size, and total and average handler "
        "runtime for each endpoint."
    ),
)
async def get_detailed_stats(
    store: CounterStore = Depends(get_counter_store),
) -> DetailedStatsResponse:
    return DetailedStatsResponse(stats=await store.detailed_snapshot())
