"""
Payload Pulverizer — Body Size Limit Middleware
=================================================

What:  Rejects requests whose body exceeds max_payload_bytes.
Why:   Every endpoint reads the whole body into memory before destroying it;
       this is the HTTP-layer ceiling on how much that can be.
How:   Two checks:
         1. A declared Content-Length above the limit is answered with 413
            before the app runs.
         2. The body stream itself is counted as the app reads it. Once the
            running total passes the limit, receive() raises
            PayloadTooLargeError, which the app's exception handler turns
            into a 413. Chunked uploads are caught by this second check.

Written as a plain ASGI middleware: BaseHTTPMiddleware does not let a
dispatch() wrap the receive channel the route handler reads from.
"""

import logging

from starlette.datastructures import Headers
from starlette.responses import JSONResponse
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from pulverizer.exceptions import PayloadTooLargeError
from pulverizer.middleware.request_id import request_id_var

logger = logging.getLogger(__name__)


class BodySizeLimitMiddleware:
    """Answers 413 for any request whose body goes above `max_bytes`."""

    def __init__(self, app: ASGIApp, max_bytes: int):
        self.app = app
        self.max_bytes = max_bytes

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        declared = Headers(scope=scope).get("content-length")
        if declared is not None and declared.isdigit() and int(declared) > self.max_bytes:
            await self._reject(scope, send, int(declared))
            return

        received = 0
        response_started = False

        async def limited_receive() -> Message:
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self.max_bytes:
                    raise PayloadTooLargeError(limit=self.max_bytes, size=received)
            return message

        async def tracking_send(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await self.app(scope, limited_receive, tracking_send)
        except PayloadTooLargeError as exc:
            # Normally handled inside the app; this covers reads made outside
            # the exception handlers' reach
            if response_started:
                raise
            await self._reject(scope, send, exc.size)

    async def _reject(self, scope: Scope, send: Send, size) -> None:
        exc = PayloadTooLargeError(limit=self.max_bytes, size=size)
        logger.warning(
            "Rejected %s %s: %s bytes exceeds limit of %d",
            scope.get("method", ""),
            scope.get("path", ""),
            size,
            self.max_bytes,
        )
        response = JSONResponse(
            status_code=413,
            content={
                "error": "payload_too_large",
                "message": exc.message,
                "details": {"limit": self.max_bytes},
                "request_id": request_id_var.get(""),
            },
        )
        # Only `send` is used by a JSONResponse; nothing more is read
        await response(scope, _no_body, send)


async def _no_body() -> Message:
    return {"type": "http.disconnect"}
