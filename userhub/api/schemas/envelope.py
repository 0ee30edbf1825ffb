"""Uniform response envelope returned by every endpoint.

Success and error bodies share one layout::

    {"status": true, "message": "List Users", "data": {...}}
    {"status": false, "message": "Validation failed", "data": {"email": [...]}}

``status`` and ``data`` are always present (``data`` is ``null`` when there is
nothing to return), so clients can branch on ``status`` without looking at the
HTTP status code.
"""

from typing import Any

from fastapi import status as http_status
from pydantic import BaseModel, ConfigDict, Field

from userhub.api.utils.responses import ORJSONResponse


class ResponseEnvelope(BaseModel):
    """Success or error outcome of a request."""

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "examples": [
                {"status": True, "message": "User", "data": {"id": 1}},
                {
                    "status": False,
                    "message": "Validation failed",
                    "data": {"email": ["Email is not valid"]},
                },
            ]
        },
    )

    status: bool = Field(..., description="True on success, False on error")
    message: str = Field(..., description="Human-readable outcome")
    data: Any = Field(
        default=None,
        description="Payload on success, structured details on error",
    )

    def to_response(self, status_code: int = http_status.HTTP_200_OK) -> ORJSONResponse:
        """Wrap the envelope in an HTTP response.

        Args:
            status_code: HTTP status code to send.

        Returns:
            ORJSONResponse: JSON response carrying the envelope.
        """
        return ORJSONResponse(
            status_code=status_code,
            content=self.model_dump(mode="json"),
        )


def success(message: str, data: Any = None) -> ResponseEnvelope:  # noqa: ANN401
    """Build a success envelope."""
    return ResponseEnvelope(status=True, message=message, data=data)


def error(message: str, details: Any = None) -> ResponseEnvelope:  # noqa: ANN401
    """Build an error envelope; ``details`` goes into ``data``."""
    return ResponseEnvelope(status=False, message=message, data=details)
