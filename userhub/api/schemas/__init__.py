"""Pydantic models for request validation and response serialization.

- **users**: User create/update requests, public user view, pagination
- **envelope**: The ``{status, message, data}`` wrapper used by every endpoint
"""
