"""Shared fixtures for unit tests."""

import os
from collections.abc import Generator
from typing import Any

import httpx
import pytest
from pytest_mock import MockerFixture, MockType

from userhub.api.schemas.users import UserCreateRequest
from userhub.core.config import LogConfig, Settings, get_settings
from userhub.core.context import RequestContext
from userhub.core.error_context import _get_sensitive_fields


@pytest.fixture(autouse=True)
def clean_lru_cache() -> Generator[None]:
    """Clear cached settings before and after each test."""
    get_settings.cache_clear()
    _get_sensitive_fields.cache_clear()
    yield
    get_settings.cache_clear()
    _get_sensitive_fields.cache_clear()


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> Generator[pytest.MonkeyPatch]:
    """Remove Userhub-related environment variables for the test.

    Args:
        monkeypatch: Pytest monkeypatch fixture.

    Returns:
        pytest.MonkeyPatch: The monkeypatch instance for env manipulation.
    """
    prefixes = (
        "APP_",
        "ENVIRONMENT",
        "DEBUG",
        "API_",
        "LOG_CONFIG",
        "PAGINATION_CONFIG",
        "EXTERNAL_API_CONFIG",
        "K_SERVICE",
        "AWS_EXECUTION_ENV",
        "PORT",
    )
    for key in list(os.environ):
        if key.upper().startswith(prefixes):
            monkeypatch.delenv(key, raising=False)

    yield monkeypatch


@pytest.fixture(autouse=True)
def clean_request_context() -> Generator[None]:
    """Clear RequestContext before and after each test."""
    RequestContext.clear()
    yield
    RequestContext.clear()


@pytest.fixture
def mock_settings(monkeypatch: pytest.MonkeyPatch) -> Settings:
    """Provide a real Settings object built from test environment values.

    Returns:
        Settings: Settings with test defaults.
    """
    monkeypatch.setenv("APP_NAME", "TestApp")
    monkeypatch.setenv("APP_VERSION", "1.0.0")
    monkeypatch.setenv("ENVIRONMENT", "development")
    monkeypatch.setenv("DEBUG", "false")
    monkeypatch.setenv("API_HOST", "127.0.0.1")
    monkeypatch.setenv("API_PORT", "3000")
    return Settings(_env_file=None)  # type: ignore[call-arg]


@pytest.fixture
def mock_get_settings(mocker: MockerFixture) -> MockType:
    """Patch get_settings used for sensitive field detection.

    Args:
        mocker: Pytest mocker fixture.

    Returns:
        MockType: Mock get_settings function.
    """
    mock_settings = mocker.Mock(spec=Settings)
    mock_log_config = mocker.Mock(spec=LogConfig)
    mock_log_config.sensitive_fields = ["custom_secret", "my_password", "api_token"]
    mock_settings.log_config = mock_log_config

    mock_get_settings_fn = mocker.patch("userhub.core.error_context.get_settings")
    mock_get_settings_fn.return_value = mock_settings
    _get_sensitive_fields.cache_clear()

    return mock_get_settings_fn


@pytest.fixture
def valid_user_payload() -> dict[str, Any]:
    """Provide a create payload that passes validation."""
    return {
        "name": "Test User",
        "email": "test@example.com",
        "password": "password123",
        "image": "test.jpg",
    }


@pytest.fixture
def create_request(valid_user_payload: dict[str, Any]) -> UserCreateRequest:
    """Provide a validated create request."""
    return UserCreateRequest.model_validate(valid_user_payload)


@pytest.fixture
def mock_transport_factory() -> Any:
    """Build httpx.MockTransport instances that record requests.

    Returns:
        Any: ``factory(handler) -> (transport, seen_requests)``.
    """

    def factory(
        handler: Any,
    ) -> tuple[httpx.MockTransport, list[httpx.Request]]:
        seen: list[httpx.Request] = []

        def recording_handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            result: httpx.Response = handler(request)
            return result

        return httpx.MockTransport(recording_handler), seen

    return factory
