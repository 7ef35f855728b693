"""
Payload Pulverizer — Custom Exception Hierarchy
=================================================

What:  Application-specific exceptions for the few things that can go wrong.
Why:   Custom exceptions let global handlers map failures to the right HTTP
       status code without try/except blocks in every route.
How:   Each exception carries a message and optional context dict.
       Handlers registered in main.py turn them into JSON error responses.
Who:   Raised by the counter store, middleware and routes.
When:  During request processing, and while opening the store at startup.

Exception Hierarchy:
    PulverizerError (base)
    ├── MalformedRequestError    → 400 Bad Request
    ├── PayloadTooLargeError     → 413 Payload Too Large
    └── StoreUnavailableError    → 500 Internal Server Error

Note:
    Arbitrary bytes are a valid payload for every endpoint, so
    MalformedRequestError is never raised by the shipped routes. An invalid
    payload on /validate-before-destroy is a normal 200 verdict, not an error.
"""

from typing import Any, Dict, Optional


class PulverizerError(Exception):
    """
    Base exception for all Payload Pulverizer errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class MalformedRequestError(PulverizerError):
    """
    Raised when a request cannot be interpreted at all.

    HTTP:    400 Bad Request
    """

    def __init__(
        self,
        message: str = "Malformed request",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class PayloadTooLargeError(PulverizerError):
    """
    Raised when a payload exceeds the size an endpoint is willing to handle.

    When:    Body above max_payload_bytes (any endpoint) or above
             validate_max_bytes (/validate-before-destroy).
    HTTP:    413 Payload Too Large
    """

    def __init__(
        self,
        limit: int,
        size: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"Payload too large. Maximum allowed size is {_format_size(limit)}."
        ctx = context or {}
        ctx["limit"] = limit
        if size is not None:
            ctx["size"] = size
        super().__init__(message=message, context=ctx)
        self.limit = limit
        self.size = size


class StoreUnavailableError(PulverizerError):
    """
    Raised when the counter store cannot be read or written.

    What:    The SQLite file could not be opened, was locked past the busy
             timeout, or a statement failed.
    HTTP:    500 Internal Server Error
    Retry:   None. The request fails instead of silently dropping the count.

    Security Note:
        The message returned to the client is always generic. The underlying
        database error is kept in `context` and logged server-side only.
    """

    def __init__(
        self,
        message: str = "The usage counter store is unavailable. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


def _format_size(n: int) -> str:
    if n % (1024 * 1024) == 0:
        return f"{n // (1024 * 1024)} MB"
    if n % 1024 == 0:
        return f"{n // 1024} KB"
    return f"{n} bytes"
