"""Request context management for correlation IDs and client addresses."""

import uuid
from collections.abc import Mapping
from contextvars import ContextVar

_correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)
_client_ip_var: ContextVar[str] = ContextVar("client_ip", default="")


class RequestContext:
    """Async-safe storage for request-scoped values.

    The values live in contextvars, so every request handled on its own task
    sees only its own correlation ID and client IP.
    """

    @staticmethod
    def set_correlation_id(correlation_id: str) -> None:
        """Set the correlation ID for the current context.

        Args:
            correlation_id: The correlation ID to store in the context.
        """
        _correlation_id_var.set(correlation_id)

    @staticmethod
    def get_correlation_id() -> str | None:
        """Get the correlation ID from the current context.

        Returns:
            str | None: The correlation ID if set, None otherwise.
        """
        return _correlation_id_var.get()

    @staticmethod
    def set_client_ip(client_ip: str) -> None:
        """Store the client IP reported by the edge proxy."""
        _client_ip_var.set(client_ip)

    @staticmethod
    def get_client_ip() -> str:
        """Return the stored client IP, or an empty string when unknown."""
        return _client_ip_var.get()

    @staticmethod
    def clear() -> None:
        """Reset all request-scoped values."""
        _correlation_id_var.set(None)
        _client_ip_var.set("")


def generate_correlation_id() -> str:
    """Generate a unique correlation ID for request tracking.

    Returns:
        str: A string representation of a UUID4.
    """
    return str(uuid.uuid4())


def extract_client_ip(headers: Mapping[str, str], header_name: str) -> str:
    """Read the client IP from request headers.

    The header name is matched case-insensitively, for Starlette ``Headers``
    and plain dicts alike.

    Args:
        headers: Request headers.
        header_name: Name of the header carrying the client IP.

    Returns:
        str: The stripped header value, or ``""`` when the header is missing.
    """
    wanted = header_name.lower()
    for key, value in headers.items():
        if key.lower() == wanted:
            return value.strip()
    return ""
