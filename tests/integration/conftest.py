"""Shared fixtures for integration tests.

The app is built per test with an empty in-memory repository and an external
API client whose transport is an ``httpx.MockTransport``, so no network is
used. ``downstream`` controls what the fake downstream API answers.
"""

from collections.abc import AsyncGenerator, Callable, Generator
from typing import Any, TypeAlias

import httpx
import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from loguru import logger

from userhub.api.main import create_app
from userhub.core.config import Settings, get_settings
from userhub.core.context import RequestContext
from userhub.core.logging import _state
from userhub.infrastructure.external_api import ExternalApiClient
from userhub.infrastructure.password import MIN_ROUNDS, BcryptPasswordHasher
from userhub.infrastructure.repository import InMemoryUserRepository

DOWNSTREAM_URL = "http://downstream.test"

DownstreamHandler: TypeAlias = Callable[[httpx.Request], httpx.Response]


class FakeDownstream:
    """Records outbound requests and answers with a configurable handler."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.handler: DownstreamHandler = lambda request: httpx.Response(
            200, json={"id": 99, "received": True}
        )

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)


@pytest.fixture(autouse=True)
def clean_state() -> Generator[None]:
    """Reset cached settings, request context and logging between tests."""
    get_settings.cache_clear()
    RequestContext.clear()
    logger.remove()
    # Keep logging marked as configured so create_app adds no stdout sink
    _state.configured = True
    yield
    get_settings.cache_clear()
    RequestContext.clear()
    logger.remove()


@pytest.fixture
def settings() -> Settings:
    """Provide settings for the app under test."""
    return Settings(_env_file=None)  # type: ignore[call-arg]


@pytest.fixture
def downstream() -> FakeDownstream:
    """Provide the fake downstream API."""
    return FakeDownstream()


@pytest.fixture
def repository() -> InMemoryUserRepository:
    """Provide the repository used by the app, hashing at the lowest cost."""
    return InMemoryUserRepository(BcryptPasswordHasher(rounds=MIN_ROUNDS))


@pytest.fixture
def app(
    settings: Settings,
    repository: InMemoryUserRepository,
    downstream: FakeDownstream,
) -> FastAPI:
    """Provide an app wired to in-memory collaborators."""
    external_client = ExternalApiClient(
        httpx.AsyncClient(
            transport=httpx.MockTransport(downstream), base_url=DOWNSTREAM_URL
        )
    )
    return create_app(
        settings, user_repository=repository, external_client=external_client
    )


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient]:
    """Provide an HTTP client talking to the app in process."""
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as async_client:
        yield async_client
    await app.state.external_api_client.aclose()


@pytest.fixture
def user_payload() -> dict[str, Any]:
    """Provide a valid create payload."""
    return {
        "name": "Test User",
        "email": "test@example.com",
        "password": "password123",
        "image": "test.jpg",
    }


@pytest.fixture
def create_user(
    client: AsyncClient,
) -> Callable[..., Any]:
    """Provide a helper that creates a user through the API."""

    async def _create(name: str, email: str) -> dict[str, Any]:
        response = await client.post(
            "/user", json={"name": name, "email": email, "password": "password123"}
        )
        assert response.status_code == 201, response.text
        data: dict[str, Any] = response.json()["data"]
        return data

    return _create
