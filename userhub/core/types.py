"""Type aliases for dynamic data structures used across the application."""

from typing import Any, TypeAlias

# JSON-compatible value, used for request bodies and downstream payloads
JsonValue: TypeAlias = (
    dict[str, "JsonValue"] | list["JsonValue"] | str | int | float | bool | None
)

# Field name -> list of human-readable reasons
FieldErrors: TypeAlias = dict[str, list[str]]

# Context dictionary for logging additional information
LogContext: TypeAlias = dict[str, Any]

# Context dictionary attached to exceptions
ErrorContext: TypeAlias = dict[str, Any]
