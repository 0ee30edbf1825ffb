"""Infrastructure layer: user storage and the downstream API client.

Route handlers reach these collaborators only through the FastAPI
dependencies in ``userhub.infrastructure.dependencies``, so tests can swap
in their own repository or HTTP transport when building the app.
"""
