# Middleware package init
"""
Wanderlust Backend - Middleware Package
========================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (outermost first):
    Request → [GZip] → [Session] → [Request ID] → [Logging] → [Method Override] → Router

    - Session:         signed cookie (Starlette SessionMiddleware); wraps the
                       exception handlers so flashes set by guards survive
                       the redirect
    - Request ID:      correlation id in a ContextVar and X-Request-ID
    - Logging:         access line with status and duration
    - Method Override: POST ?_method=PUT|PATCH|DELETE → that method
"""
