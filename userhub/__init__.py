"""Userhub - user management API.

Userhub exposes a ``/user`` resource built with FastAPI: create, list, show,
update and soft-delete users, plus a bridge that forwards validated user data
to a downstream HTTP API.

Architecture Overview:
- **API Layer**: FastAPI routes, request validation, response envelopes
- **Core Layer**: Configuration, logging, request context and exceptions
- **Infrastructure Layer**: Persistence collaborator and external API client

Every endpoint answers with the same ``{"status", "message", "data"}``
envelope, so clients can branch on ``status`` alone.
"""
