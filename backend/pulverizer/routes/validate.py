"""
Payload Pulverizer — Validate-Before-Destroy Route Handler
===========================================================

What:  POST /validate-before-destroy: report the payload's format, then
       destroy it anyway.
How:   Size check → content_validator.inspect() → count → report.

Outcomes:
    200: Always, for any payload within the limit. An invalid payload is a
         verdict ("invalid"), not an error.
    413: Payload above validate_max_bytes; not parsed and not counted.
    500: Counter store unavailable.
"""

import logging
import time

from fastapi import APIRouter, Depends, Request

from pulverizer.exceptions import PayloadTooLargeError
from pulverizer.routes.destroy import elapsed_us, record_destruction
from pulverizer.schemas.payload import ErrorResponse, ValidationReport
from pulverizer.services import content_validator
from pulverizer.services.counter_store import CounterStore, get_counter_store

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Validation"])


@router.post(
    "/validate-before-destroy",
    response_model=ValidationReport,
    responses={
        413: {"description": "Payload larger than the validation limit", "model": ErrorResponse},
        500: {"description": "Counter store unavailable", "model": ErrorResponse},
    },
    summary="Validate a payload, then destroy it",
    description=(
        "Checks whether the payload is JSON, XML or Markdown and reports the verdict. "
        "The payload is destroyed regardless of the outcome."
    ),
)
async def validate_before_destroy(
    request: Request,
    store: CounterStore = Depends(get_counter_store),
) -> ValidationReport:
    start = time.perf_counter_ns()
    payload = await request.body()

    limit = request.app.state.settings.validate_max_bytes
    if len(payload) > limit:
        raise PayloadTooLargeError(limit=limit, size=len(payload))

    report = content_validator.inspect(payload)
    logger.debug("Validation verdict %s for %d bytes", report.verdict, len(payload))

    await record_destruction(store, "validate-before-destroy", payload, start)
    report.runtime_us = elapsed_us(start)
    return report
