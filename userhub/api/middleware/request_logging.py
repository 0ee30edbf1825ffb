"""HTTP request/response logging with timing.

Each request produces a "Request started" and a "Request completed" (or
"Request failed") record carrying method, path, status and duration. Requests
slower than ``LogConfig.slow_request_threshold_ms`` get an extra warning.
Paths listed in ``LogConfig.excluded_paths`` are not logged at all.

Query parameters are logged through ``sanitize_dict`` so a token passed in
the query string never reaches the logs.
"""

import time
from collections.abc import Awaitable, Callable

from fastapi import Request, Response
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from userhub.core.config import LogConfig
from userhub.core.error_context import sanitize_dict

MAX_USER_AGENT_LENGTH = 200


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware for logging HTTP requests and responses.

    Args:
        app: The ASGI application.
        log_config: Logging configuration.
    """

    def __init__(self, app: ASGIApp, *, log_config: LogConfig) -> None:
        super().__init__(app)
        self.log_config = log_config
        self.excluded_paths = set(log_config.excluded_paths)

    @staticmethod
    def _get_user_agent(request: Request) -> str:
        ua = request.headers.get("user-agent", "")
        return ua[:MAX_USER_AGENT_LENGTH] if ua else "unknown"

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        """Process the request and log details.

        Args:
            request: The incoming request.
            call_next: The next middleware/endpoint.

        Returns:
            Response: The response from the application.

        Raises:
            Exception: Any exception raised by the application is re-raised
                after logging.
        """
        if request.url.path in self.excluded_paths:
            return await call_next(request)

        with logger.contextualize(
            method=request.method,
            path=request.url.path,
            user_agent=self._get_user_agent(request),
        ):
            logger.info(
                "Request started",
                query_params=(
                    sanitize_dict(dict(request.query_params))
                    if request.query_params
                    else None
                ),
            )

            start_time = time.perf_counter()
            try:
                response = await call_next(request)
            except Exception as exc:
                duration_ms = (time.perf_counter() - start_time) * 1000
                logger.error(
                    "Request failed",
                    duration_ms=round(duration_ms, 2),
                    error_type=type(exc).__name__,
                )
                raise

            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.info(
                "Request completed",
                status_code=response.status_code,
                duration_ms=round(duration_ms, 2),
            )

            if duration_ms > self.log_config.slow_request_threshold_ms:
                logger.warning(
                    "Slow request detected",
                    duration_ms=round(duration_ms, 2),
                    threshold_ms=self.log_config.slow_request_threshold_ms,
                )

            return response
