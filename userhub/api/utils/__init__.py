"""Utilities for the API layer.

- **responses**: JSON response class serialized with orjson
"""
