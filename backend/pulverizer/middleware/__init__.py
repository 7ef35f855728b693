# Middleware package init
"""
Payload Pulverizer — Middleware Package
=========================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (order matters!):
    Request → [Request ID] → [Logging] → [Body Limit] → [GZip] → [CORS] → Route

    1. Request ID FIRST: Correlation ID for logs and error bodies
    2. Logging: Method, path, status and duration, including 413 rejections
    3. Body Limit: Reject oversized uploads before any handler reads them
"""
