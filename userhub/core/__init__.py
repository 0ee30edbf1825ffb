"""Core package for cross-cutting application functionality.

- **config**: Settings loaded from the environment with pydantic-settings
- **context**: Correlation ID and client IP storage for the current request
- **exceptions**: Error codes, severities and the exception hierarchy
- **error_context**: Redaction of sensitive values before logging
- **logging**: Loguru setup with console and JSON formatters
- **types**: Shared type aliases
"""
