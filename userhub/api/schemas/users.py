"""Request and response models for the user resource.

Field rules live here as reusable annotated types, so the create and update
requests validate a given field the same way. Rule violations raise
``PydanticCustomError`` with a stable error type and a readable message,
which ``userhub.api.validation`` collects per field.

Rules:
- ``name``: trimmed, 1 to ``NAME_MAX_LENGTH`` characters
- ``email``: trimmed and lower-cased, ``local@domain.tld`` shape
- ``password``: at least ``PASSWORD_MIN_LENGTH`` characters, counted by code
  point so multi-byte passwords are measured by what the user typed; never
  trimmed
- ``image``: optional, trimmed, empty string means absent, at most
  ``IMAGE_MAX_LENGTH`` characters
"""

import re
from datetime import datetime
from typing import Annotated, Final

from pydantic import AfterValidator, BaseModel, BeforeValidator, ConfigDict, Field
from pydantic_core import PydanticCustomError

NAME_MAX_LENGTH: Final[int] = 255
PASSWORD_MIN_LENGTH: Final[int] = 6
IMAGE_MAX_LENGTH: Final[int] = 2048

# One "@", no whitespace, a dotted domain without empty labels
EMAIL_PATTERN: Final[re.Pattern[str]] = re.compile(r"[^@\s]+@[^@\s.]+(?:\.[^@\s.]+)+")


def check_name(value: str) -> str:
    """Trim ``value`` and enforce the name length bounds."""
    value = value.strip()
    if not value:
        raise PydanticCustomError("name_empty", "Name must not be empty")
    if len(value) > NAME_MAX_LENGTH:
        raise PydanticCustomError(
            "name_too_long",
            "Name must be at most {max_length} characters",
            {"max_length": NAME_MAX_LENGTH},
        )
    return value


def check_email(value: str) -> str:
    """Trim and lower-case ``value`` and check the address shape."""
    value = value.strip().lower()
    if not EMAIL_PATTERN.fullmatch(value):
        raise PydanticCustomError("email_invalid", "Email is not valid")
    return value


def check_password(value: str) -> str:
    """Enforce the minimum password length in characters."""
    if len(value) < PASSWORD_MIN_LENGTH:
        raise PydanticCustomError(
            "password_too_short",
            "Password must be at least {min_length} characters",
            {"min_length": PASSWORD_MIN_LENGTH},
        )
    return value


def check_image(value: str | None) -> str | None:
    if value is None:
        return None
    if len(value) > IMAGE_MAX_LENGTH:
        raise PydanticCustomError(
            "image_too_long",
            "Image must be at most {max_length} characters",
            {"max_length": IMAGE_MAX_LENGTH},
        )
    return value


def blank_to_none(value: object) -> object:
    """Treat empty or whitespace-only strings as an absent value."""
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    return value


def empty_to_none(value: object) -> object:
    """Treat the empty string as an absent value, keeping whitespace intact."""
    if value == "":
        return None
    return value


Name = Annotated[str, AfterValidator(check_name)]
Email = Annotated[str, AfterValidator(check_email)]
Password = Annotated[str, AfterValidator(check_password)]
Image = Annotated[
    str | None, BeforeValidator(blank_to_none), AfterValidator(check_image)
]


class UserCreateRequest(BaseModel):
    """Validated payload for creating a user."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    name: Name = Field(..., examples=["Test User"])
    email: Email = Field(..., examples=["test@example.com"])
    password: Password = Field(..., repr=False, examples=["password123"])
    image: Image = Field(default=None, examples=["test.jpg"])


class UserUpdateRequest(BaseModel):
    """Validated payload for updating a user.

    Every field is optional. Absent fields, explicit nulls, and empty strings
    for ``password`` and ``image`` leave the stored value unchanged; see
    ``changes``.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    name: Name | None = Field(default=None, examples=["Updated User"])
    email: Email | None = Field(default=None, examples=["updated@example.com"])
    password: Annotated[Password | None, BeforeValidator(empty_to_none)] = Field(
        default=None, repr=False
    )
    image: Image = Field(default=None, examples=["updated.jpg"])

    def changes(self) -> dict[str, str]:
        """Return only the fields that should be written.

        Returns:
            dict[str, str]: Supplied, non-null fields and their normalized values.
        """
        return self.model_dump(exclude_unset=True, exclude_none=True)


class UserRead(BaseModel):
    """Public representation of a stored user. Never includes the password."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    image: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class Pagination(BaseModel):
    """Pagination metadata returned with list responses."""

    page: int = Field(..., ge=1)
    limit: int = Field(..., ge=1)
    total: int = Field(..., ge=0)
    total_page: int = Field(..., ge=0)


class UserPage(BaseModel):
    """One page of users together with its pagination metadata."""

    data: list[UserRead]
    pagination: Pagination
