"""HTTP API layer for the user resource.

Key components:
- **main**: Application factory and lifecycle management
- **routes**: The ``/user`` router
- **validation**: Create/update payload validation with per-field errors
- **query**: Pagination and keyword parsing for list requests
- **schemas**: Request/response models and the response envelope
- **middleware**: Request context, request logging and exception handlers
- **utils**: orjson-backed JSON responses
"""
