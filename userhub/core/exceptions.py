"""Structured exception hierarchy for consistent error handling.

Key components:
- **ErrorCode enum**: Standardized error identifiers for programmatic handling
- **Severity enum**: Error classification for logging and alerting
- **UserhubError**: Base exception with error code, severity and context
- **Specialized exceptions**: Validation, not found, conflict, downstream API

Route handlers raise these exceptions; the handlers registered in
``userhub.api.middleware.error_handler`` turn them into error envelopes.
"""

from enum import Enum

from userhub.core.types import ErrorContext, FieldErrors, JsonValue


class ErrorCode(Enum):
    """Standardized error codes for the Userhub application."""

    INTERNAL_ERROR = "INTERNAL_ERROR"
    """An unexpected internal error occurred in the system."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    """Input validation failed due to invalid or malformed data."""

    NOT_FOUND = "NOT_FOUND"
    """The requested resource could not be found."""

    CONFLICT = "CONFLICT"
    """The request conflicts with existing data (e.g. email already used)."""

    EXTERNAL_API_ERROR = "EXTERNAL_API_ERROR"
    """A downstream API call failed or returned a non-success status."""


class Severity(Enum):
    """Severity levels for errors in the Userhub application."""

    LOW = "LOW"
    """Expected errors caused by client input."""

    MEDIUM = "MEDIUM"
    """Errors that affect a feature but not the service as a whole."""

    HIGH = "HIGH"
    """Errors impacting critical functionality or data integrity."""

    CRITICAL = "CRITICAL"
    """Errors requiring immediate attention."""


class UserhubError(Exception):
    """Base exception class for all Userhub application exceptions.

    Args:
        error_code: Unique identifier for the error type (string or ErrorCode enum)
        message: Human-readable error message
        severity: Severity level of the error (defaults to MEDIUM)
        context: Additional context information about the error
        cause: The original exception that caused this error
    """

    def __init__(
        self,
        error_code: str | ErrorCode,
        message: str,
        severity: Severity = Severity.MEDIUM,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ) -> None:
        self.error_code = (
            error_code.value if isinstance(error_code, ErrorCode) else error_code
        )
        self.message = message
        self.severity = severity
        self.context = context or {}
        self.cause = cause

        super().__init__(message)
        if cause:
            self.__cause__ = cause

    @property
    def is_expected(self) -> bool:
        """Whether the error is part of normal operation (LOW or MEDIUM)."""
        return self.severity in (Severity.LOW, Severity.MEDIUM)

    @property
    def should_alert(self) -> bool:
        """Whether the error should trigger alerts (HIGH or CRITICAL)."""
        return self.severity in (Severity.HIGH, Severity.CRITICAL)

    @property
    def details(self) -> JsonValue:
        """Client-facing details placed in the error envelope's ``data``."""
        return self.context or None

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"

    def __repr__(self) -> str:
        class_name = self.__class__.__name__
        context_str = f", context={self.context}" if self.context else ""
        return (
            f"{class_name}(error_code='{self.error_code}', "
            f"message='{self.message}', severity={self.severity.value}{context_str})"
        )


class ValidationError(UserhubError):
    """Exception raised when a request payload fails field validation.

    Carries every violated field, not only the first one.

    Args:
        message: Description of the validation failure
        field_errors: Mapping of field name to the list of reasons
        cause: The original exception that caused this error
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field_errors: FieldErrors | None = None,
        cause: Exception | None = None,
    ) -> None:
        self.field_errors: FieldErrors = field_errors or {}
        super().__init__(
            ErrorCode.VALIDATION_ERROR,
            message,
            Severity.LOW,
            {"fields": sorted(self.field_errors)},
            cause,
        )

    @property
    def details(self) -> JsonValue:
        return {field: list(reasons) for field, reasons in self.field_errors.items()}


class NotFoundError(UserhubError):
    """Exception raised when a requested resource cannot be found.

    Args:
        message: Description of what resource was not found
        context: Additional context information about the error
    """

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
    ) -> None:
        super().__init__(ErrorCode.NOT_FOUND, message, Severity.LOW, context)

    @property
    def details(self) -> JsonValue:
        return None


class ConflictError(UserhubError):
    """Exception raised when a write collides with existing data."""

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
    ) -> None:
        super().__init__(ErrorCode.CONFLICT, message, Severity.LOW, context)

    @property
    def details(self) -> JsonValue:
        return None


class ExternalApiError(UserhubError):
    """Exception raised when a downstream API call does not succeed.

    Covers transport failures (``status_code`` is None) as well as
    non-success downstream statuses, whose status and body are kept so the
    caller can report them.

    Args:
        message: Description of the failure
        status_code: Downstream HTTP status, None for transport failures
        body: Downstream response body (parsed JSON or text)
        cause: The original exception that caused this error
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        body: JsonValue = None,
        cause: Exception | None = None,
    ) -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(
            ErrorCode.EXTERNAL_API_ERROR,
            message,
            Severity.MEDIUM,
            {"downstream_status": status_code},
            cause,
        )

    @property
    def details(self) -> JsonValue:
        return {"status_code": self.status_code, "body": self.body}
