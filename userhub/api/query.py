"""Pagination and filter parsing for list endpoints.

``parse_user_query`` never fails: missing, blank, non-numeric, overly long or
non-positive values fall back to the defaults, and a limit above the maximum
is clamped. Defaults are passed in explicitly rather than read from global
settings, so parsing stays a pure function of its arguments.
"""

from collections.abc import Mapping
from typing import Final

from pydantic import BaseModel, ConfigDict, Field, computed_field

DEFAULT_PAGE: Final[int] = 1
DEFAULT_LIMIT: Final[int] = 10
MAX_LIMIT: Final[int] = 100
# Longer digit strings are treated as malformed
MAX_DIGITS: Final[int] = 18


class UserQuery(BaseModel):
    """Normalized list query for the user resource."""

    model_config = ConfigDict(frozen=True)

    page: int = Field(default=DEFAULT_PAGE, ge=1)
    limit: int = Field(default=DEFAULT_LIMIT, ge=1)
    keyword: str = ""

    @computed_field  # type: ignore[prop-decorator]
    @property
    def offset(self) -> int:
        """Zero-based number of records to skip."""
        return (self.page - 1) * self.limit


def _positive_int(raw: str | None) -> int | None:
    """Parse a plain decimal string into a positive int, or None."""
    if raw is None:
        return None
    text = raw.strip()
    if not text or len(text) > MAX_DIGITS:
        return None
    if not text.isascii() or not text.isdigit():
        return None
    value = int(text)
    return value if value >= 1 else None


def parse_user_query(
    params: Mapping[str, str | None],
    *,
    default_page: int = DEFAULT_PAGE,
    default_limit: int = DEFAULT_LIMIT,
    max_limit: int = MAX_LIMIT,
) -> UserQuery:
    """Build a ``UserQuery`` from raw query string values.

    Args:
        params: Raw query parameters, e.g. ``request.query_params``.
        default_page: Page used when ``page`` is missing or invalid.
        default_limit: Page size used when ``limit`` is missing or invalid.
        max_limit: Upper bound for ``limit``.

    Returns:
        UserQuery: Always a usable query.
    """
    page = _positive_int(params.get("page")) or default_page
    limit = _positive_int(params.get("limit")) or default_limit
    keyword = (params.get("keyword") or "").strip()

    return UserQuery(page=page, limit=min(limit, max_limit), keyword=keyword)


def total_pages(total: int, limit: int) -> int:
    """Number of pages needed to show ``total`` records, ``limit`` per page."""
    return -(-total // limit)
