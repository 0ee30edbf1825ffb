"""FastAPI middleware and exception handlers for cross-cutting concerns.

- **RequestContextMiddleware**: correlation ID and client IP per request
- **RequestLoggingMiddleware**: request start/completion logs with timing
- **error_handler**: maps every exception to the error envelope

Middleware run in reverse order of registration: the request context is set
up first so the request logs already carry the correlation ID.
"""
