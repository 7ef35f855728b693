"""
Payload Pulverizer — Pydantic Response Schemas
================================================

What:  Pydantic models defining the API contract of every endpoint.
Why:   Automatic serialization and OpenAPI doc generation.
How:   Routes declare these as response_model; FastAPI serializes them.

Design Decision:
    Request bodies are NOT modelled. Every destructive endpoint accepts
    arbitrary bytes, so routes read the raw body instead of declaring a
    Pydantic input model (which would reject non-JSON payloads with 422).
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


# ══════════════════════════════════════════════════════════════════════════
# Destruction Responses
# ══════════════════════════════════════════════════════════════════════════


class PulverizeResponse(BaseModel):
    """Returned by POST /pulverize."""
    status: str = Field(default="success", description="Always 'success'")
    message: str = Field(description="Themed confirmation message")
    runtime_us: int = Field(description="Handler runtime in microseconds")


class ShredResponse(BaseModel):
    """
    Returned by POST /shred.

    `log` is one narrative picked at random from the shredder catalogue,
    so two calls rarely return the same lines.
    """
    status: str = Field(default="shredded", description="Always 'shredded'")
    log: List[str] = Field(description="Fabricated step-by-step destruction log")
    runtime_us: int = Field(description="Handler runtime in microseconds")


class BurnResponse(BaseModel):
    """Returned by POST /burn."""
    status: str = Field(default="incinerated", description="Always 'incinerated'")
    message: str = Field(description="Themed confirmation message")
    fire: str = Field(description="ASCII art of the payload burning")
    runtime_us: int = Field(description="Handler runtime in microseconds")


class ValidationReport(BaseModel):
    """
    Returned by POST /validate-before-destroy.

    Fields:
        verdict: Winning classification, by precedence json > xml > markdown,
            or 'invalid' when nothing applies
        is_json / is_xml / is_markdown: Each check evaluated on its own, so
            a payload such as `"just text"` can be both JSON and Markdown
        details: Human-readable findings, always ending with the
            reassurance that the payload is gone
    """
    verdict: str = Field(description="json, xml, markdown or invalid")
    is_json: bool = Field(description="Payload parses as JSON")
    is_xml: bool = Field(description="Payload parses as well-formed XML")
    is_markdown: bool = Field(description="Payload is accepted as Markdown text")
    details: List[str] = Field(description="Human-readable validation findings")
    runtime_us: int = Field(default=0, description="Handler runtime in microseconds")


# ══════════════════════════════════════════════════════════════════════════
# Statistics & Liveness
# ══════════════════════════════════════════════════════════════════════════


class EndpointStats(BaseModel):
    """
    Aggregated usage of one endpoint.

    Averages are derived from the running totals and are 0.0 for an
    endpoint that has never been called.
    """
    endpoint: str = Field(description="Endpoint name")
    count: int = Field(ge=0, description="Number of handled requests")
    total_bytes: int = Field(ge=0, description="Sum of payload sizes in bytes")
    total_runtime_us: int = Field(ge=0, description="Sum of handler runtimes (µs)")
    avg_payload_size: float = Field(description="Mean payload size in bytes")
    avg_runtime_us: float = Field(description="Mean handler runtime (µs)")

    model_config = {"from_attributes": True}


class DetailedStatsResponse(BaseModel):
    """Returned by GET /stats/detailed."""
    stats: List[EndpointStats] = Field(description="One entry per endpoint, by name")


class PingResponse(BaseModel):
    """Returned by GET /ping."""
    status: str = Field(default="ok", description="Always 'ok' while the process serves")
    timestamp: datetime = Field(description="Server time when the ping was answered (UTC)")


# ══════════════════════════════════════════════════════════════════════════
# Error Response Model
# ══════════════════════════════════════════════════════════════════════════


class ErrorResponse(BaseModel):
    """
    Standardized error response format for all API errors.

    Example:
        {
            "error": "store_unavailable",
            "message": "The usage counter store is unavailable. Please try again later.",
            "request_id": "a1b2c3d4"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")
