"""Outbound calls to the downstream user API.

Three pieces, each usable on its own:

- ``build_external_payload`` turns a validated create request into the JSON
  body and header set to send. The password is never forwarded.
- ``parse_external_response`` turns an ``httpx.Response`` into an
  ``ExternalApiResult``, or raises ``ExternalApiError`` carrying the
  downstream status and body for anything outside 2xx.
- ``ExternalApiClient`` sends a payload over ``httpx.AsyncClient`` and maps
  timeouts and transport failures to ``ExternalApiError`` as well, so callers
  only ever deal with one exception type.
"""

from collections.abc import Mapping
from typing import Any, Final

import httpx
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field

from userhub.api.schemas.users import UserCreateRequest
from userhub.core.config import ExternalApiConfig
from userhub.core.error_context import sanitize_dict, sanitize_headers
from userhub.core.exceptions import ExternalApiError
from userhub.core.types import JsonValue

DEFAULT_HEADERS: Final[dict[str, str]] = {
    "Content-Type": "application/json",
    "Accept": "application/json, text/plain, */*",
    "User-Agent": "userhub-external-client",
}


class ExternalApiPayload(BaseModel):
    """Body and headers of one outbound call."""

    model_config = ConfigDict(frozen=True)

    body: dict[str, Any] = Field(default_factory=dict)
    headers: dict[str, str] = Field(default_factory=dict)


class ExternalApiResult(BaseModel):
    """Successful downstream response."""

    model_config = ConfigDict(frozen=True)

    status_code: int
    body: Any = None
    headers: dict[str, str] = Field(default_factory=dict)


def merge_headers(
    defaults: Mapping[str, str], custom: Mapping[str, str] | None = None
) -> dict[str, str]:
    """Merge ``custom`` over ``defaults``, matching names case-insensitively.

    The caller's spelling of a header name wins when it overrides a default.
    """
    merged: dict[str, tuple[str, str]] = {
        name.lower(): (name, value) for name, value in defaults.items()
    }
    for name, value in (custom or {}).items():
        merged[name.lower()] = (name, value)
    return dict(merged.values())


def build_external_payload(
    request: UserCreateRequest,
    *,
    token: str | None = None,
    extra_fields: Mapping[str, JsonValue] | None = None,
    custom_headers: Mapping[str, str] | None = None,
    client_ip_header: str = "CF-Connecting-IP",
    client_ip: str | None = None,
) -> ExternalApiPayload:
    """Build the outbound payload for a validated user.

    Args:
        request: Validated create request.
        token: Token added to the body as ``token`` when given.
        extra_fields: Additional body fields; they never replace user fields.
        custom_headers: Headers merged over ``DEFAULT_HEADERS``.
        client_ip_header: Header used to forward the client IP.
        client_ip: Client IP to forward; skipped when empty or when
            ``custom_headers`` already sets that header.

    Returns:
        ExternalApiPayload: Body and headers ready to send.
    """
    body: dict[str, Any] = dict(extra_fields or {})
    body.update(
        full_name=request.name,
        email=request.email,
        image=request.image,
    )
    if token:
        body["token"] = token

    headers = merge_headers(DEFAULT_HEADERS, custom_headers)
    if client_ip and client_ip_header.lower() not in {h.lower() for h in headers}:
        headers[client_ip_header] = client_ip

    return ExternalApiPayload(body=body, headers=headers)


def _decode_body(response: httpx.Response) -> JsonValue:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


def parse_external_response(response: httpx.Response) -> ExternalApiResult:
    """Convert a downstream response into a result.

    Args:
        response: Response whose body has been read.

    Returns:
        ExternalApiResult: Status, decoded body (JSON when parseable, else
            text) and headers of a 2xx response.

    Raises:
        ExternalApiError: For any non-2xx status, with status and body kept.
    """
    body = _decode_body(response)

    if not response.is_success:
        raise ExternalApiError(
            f"Downstream API returned status {response.status_code}",
            status_code=response.status_code,
            body=body,
        )

    return ExternalApiResult(
        status_code=response.status_code,
        body=body,
        headers=dict(response.headers),
    )


class ExternalApiClient:
    """Sends payloads to the downstream API.

    Args:
        http_client: Client whose ``base_url`` points at the downstream API.
    """

    def __init__(self, http_client: httpx.AsyncClient) -> None:
        self._client = http_client

    @classmethod
    def from_config(cls, config: ExternalApiConfig) -> "ExternalApiClient":
        """Create a client with its own connection pool from settings."""
        http_client = httpx.AsyncClient(
            base_url=config.base_url,
            timeout=httpx.Timeout(config.timeout_seconds),
        )
        return cls(http_client)

    async def send(
        self, payload: ExternalApiPayload, path: str = ""
    ) -> ExternalApiResult:
        """POST ``payload`` to ``path`` and parse the response.

        Cancellation of the calling task is not converted; it propagates so
        the event loop can unwind the request.

        Args:
            payload: Body and headers to send.
            path: Path relative to the client's base URL.

        Returns:
            ExternalApiResult: Parsed 2xx response.

        Raises:
            ExternalApiError: On timeout, transport failure or non-2xx status.
        """
        logger.info(
            "Calling downstream API",
            target=path or "/",
            headers=sanitize_headers(payload.headers),
            body=sanitize_dict(payload.body),
        )

        try:
            response = await self._client.post(
                path, json=payload.body, headers=payload.headers
            )
        except httpx.TimeoutException as exc:
            logger.warning("Downstream API timed out: {}", type(exc).__name__)
            raise ExternalApiError("Downstream API timed out", cause=exc) from exc
        except httpx.HTTPError as exc:
            logger.warning("Downstream API unreachable: {}", type(exc).__name__)
            raise ExternalApiError(
                f"Failed to reach downstream API: {type(exc).__name__}", cause=exc
            ) from exc

        logger.info(
            "Downstream API responded with {}",
            response.status_code,
            downstream_status=response.status_code,
        )
        return parse_external_response(response)

    async def aclose(self) -> None:
        """Close the underlying connection pool."""
        await self._client.aclose()
