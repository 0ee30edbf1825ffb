"""Request context middleware for correlation IDs and client addresses.

For every request this middleware:
- extracts ``X-Correlation-ID`` or generates a new one
- reads the client IP from the configured edge-proxy header
  (``CF-Connecting-IP`` by default; missing header gives ``""``)
- stores both in contextvars and binds them to every Loguru record
- echoes the correlation ID in the response headers
"""

from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from userhub.core.context import (
    RequestContext,
    extract_client_ip,
    generate_correlation_id,
)

CORRELATION_ID_HEADER = "X-Correlation-ID"
DEFAULT_CLIENT_IP_HEADER = "CF-Connecting-IP"


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Middleware to manage request context.

    Args:
        app: The ASGI application.
        client_ip_header: Header carrying the original client IP.
    """

    def __init__(
        self, app: ASGIApp, *, client_ip_header: str = DEFAULT_CLIENT_IP_HEADER
    ) -> None:
        super().__init__(app)
        self.client_ip_header = client_ip_header

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        """Process the request with context management.

        Args:
            request: The incoming request.
            call_next: The next middleware/endpoint.

        Returns:
            Response: Response with correlation ID header.
        """
        correlation_id = (
            request.headers.get(CORRELATION_ID_HEADER) or generate_correlation_id()
        )
        client_ip = extract_client_ip(request.headers, self.client_ip_header)

        RequestContext.set_correlation_id(correlation_id)
        RequestContext.set_client_ip(client_ip)

        # contextualize scopes the values to this request's task
        with logger.contextualize(correlation_id=correlation_id, client_ip=client_ip):
            response = await call_next(request)
            response.headers[CORRELATION_ID_HEADER] = correlation_id
            return response
