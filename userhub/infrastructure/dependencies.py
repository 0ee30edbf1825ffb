"""FastAPI dependency injection for settings and infrastructure collaborators.

Settings and both collaborators are fixed once per application by
``create_app`` and stored on ``app.state``. The Annotated aliases below keep
route signatures free of repeated ``Depends()`` calls.
"""

from typing import Annotated

from fastapi import Depends, Request

from userhub.core.config import Settings
from userhub.infrastructure.external_api import ExternalApiClient
from userhub.infrastructure.repository import UserRepository


def get_app_settings(request: Request) -> Settings:
    """Provide the settings the application was created with."""
    settings: Settings = request.app.state.settings
    return settings


def get_user_repository(request: Request) -> UserRepository:
    """Provide the application's user repository.

    Example:
        @router.get("/{user_id}")
        async def show(user_id: int, users: UserRepositoryDep): ...
    """
    repository: UserRepository = request.app.state.user_repository
    return repository


def get_external_client(request: Request) -> ExternalApiClient:
    """Provide the application's downstream API client."""
    client: ExternalApiClient = request.app.state.external_api_client
    return client


AppSettingsDep = Annotated[Settings, Depends(get_app_settings)]
UserRepositoryDep = Annotated[UserRepository, Depends(get_user_repository)]
ExternalApiClientDep = Annotated[ExternalApiClient, Depends(get_external_client)]
