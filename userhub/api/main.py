"""FastAPI application initialization and configuration module.

This module handles:
- Application lifecycle management (closing the downstream client)
- Collaborator wiring (user repository, external API client)
- Middleware registration in the correct order
- Exception handler registration
- Health check and info endpoints

Middleware are executed in reverse order of registration, so the request
context is established before request logging runs.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI
from loguru import logger

from userhub.api.middleware.error_handler import register_exception_handlers
from userhub.api.middleware.request_context import RequestContextMiddleware
from userhub.api.middleware.request_logging import RequestLoggingMiddleware
from userhub.api.routes.users import router as users_router
from userhub.api.utils.responses import ORJSONResponse
from userhub.core.config import Settings, get_settings
from userhub.core.logging import setup_logging
from userhub.infrastructure.dependencies import AppSettingsDep
from userhub.infrastructure.external_api import ExternalApiClient
from userhub.infrastructure.repository import InMemoryUserRepository, UserRepository


@asynccontextmanager
async def lifespan(app_instance: FastAPI) -> AsyncGenerator[None]:
    """Manage application lifespan events.

    Args:
        app_instance: The FastAPI application instance.

    Yields:
        None: Nothing is yielded, this is just a lifespan context.
    """
    logger.info(
        "Application startup complete - {} v{}",
        app_instance.title,
        app_instance.version,
    )

    yield

    logger.info("Application shutdown initiated")
    client: ExternalApiClient = app_instance.state.external_api_client
    await client.aclose()
    logger.info("Application shutdown complete")


def create_app(
    settings: Settings | None = None,
    *,
    user_repository: UserRepository | None = None,
    external_client: ExternalApiClient | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Optional settings instance. If not provided, will use get_settings().
        user_repository: Storage to use; defaults to an empty in-memory store.
        external_client: Downstream client; defaults to one built from
            ``settings.external_api_config``.

    Returns:
        FastAPI: Configured FastAPI application instance.
    """
    if settings is None:
        settings = get_settings()

    setup_logging(settings)

    application = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        docs_url=settings.docs_url,
        redoc_url=settings.redoc_url,
        openapi_url=settings.openapi_url,
        default_response_class=ORJSONResponse,
        lifespan=lifespan,
    )

    application.state.settings = settings
    # Stored eagerly so the app works even where lifespan events never run
    application.state.user_repository = user_repository or InMemoryUserRepository()
    application.state.external_api_client = (
        external_client
        or ExternalApiClient.from_config(settings.external_api_config)
    )

    register_exception_handlers(application)

    # 2. Request logging middleware (logs requests/responses)
    application.add_middleware(RequestLoggingMiddleware, log_config=settings.log_config)

    # 1. Request context middleware (correlation ID and client IP)
    application.add_middleware(
        RequestContextMiddleware,
        client_ip_header=settings.external_api_config.client_ip_header,
    )

    application.include_router(users_router)

    @application.get("/health")
    async def health() -> dict[str, str]:
        """Health check endpoint for monitoring and container orchestration.

        Returns:
            dict[str, str]: The service status.
        """
        return {"status": "healthy"}

    @application.get("/info")
    async def info(
        app_settings: AppSettingsDep,
    ) -> dict[str, Any]:
        """Get application information.

        Args:
            app_settings: Application settings injected via dependency.

        Returns:
            dict[str, Any]: Application information including name, version,
                and environment.
        """
        return {
            "app_name": app_settings.app_name,
            "version": app_settings.app_version,
            "environment": app_settings.environment,
            "debug": app_settings.debug,
        }

    return application


app = create_app()
