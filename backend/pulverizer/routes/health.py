"""
Payload Pulverizer — Liveness Route
=====================================

What:  GET /ping for container health checks and load balancer probes.
Why:   Answers as long as the process serves HTTP, without touching the
       counter store, so a slow database never marks the service dead.
"""

from datetime import datetime, timezone

from fastapi import APIRouter

from pulverizer.schemas.payload import PingResponse

router = APIRouter(tags=["Health"])


@router.get(
    "/ping",
    response_model=PingResponse,
    summary="Liveness check",
    description="Returns status 'ok' and the current server time (UTC).",
)
async def ping() -> PingResponse:
    return PingResponse(status="ok", timestamp=datetime.now(timezone.utc))
