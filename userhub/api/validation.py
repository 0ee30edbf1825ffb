"""Validation of user create and update payloads.

``validate_create`` and ``validate_update`` either return a normalized,
immutable request or raise ``ValidationError`` listing every violated field.
They do no I/O, so a payload that fails here never reaches the repository or
the downstream API.
"""

from collections.abc import Iterable, Mapping
from typing import Any, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from userhub.api.schemas.users import UserCreateRequest, UserUpdateRequest
from userhub.core.exceptions import ValidationError
from userhub.core.types import FieldErrors

M = TypeVar("M", bound=BaseModel)

REQUIRED_MESSAGE = "This field is required"
BODY_FIELD = "body"
BODY_NOT_OBJECT_MESSAGE = "Request body must be a JSON object"

# FastAPI prefixes error locations with where the value came from
REQUEST_LOCATIONS = frozenset({"body", "query", "path", "header", "cookie"})


def collect_field_errors(
    errors: Iterable[Mapping[str, Any]],
    *,
    strip_request_location: bool = False,
) -> FieldErrors:
    """Group pydantic error entries by field name.

    Args:
        errors: Entries as returned by ``ValidationError.errors()``.
        strip_request_location: Drop a leading ``body``/``query``/... element
            from each location, as found in FastAPI request errors.

    Returns:
        FieldErrors: Field name to reasons, in first-seen order.
    """
    field_errors: FieldErrors = {}
    for error in errors:
        loc = tuple(error.get("loc", ()))
        if strip_request_location and loc and loc[0] in REQUEST_LOCATIONS:
            loc = loc[1:]
        field_name = ".".join(str(part) for part in loc) or BODY_FIELD

        # Malformed JSON is located by character offset, not by field
        if error.get("type") == "json_invalid":
            field_name = BODY_FIELD

        if error.get("type") == "missing":
            message = REQUIRED_MESSAGE
        else:
            message = str(error.get("msg", "Invalid value"))

        reasons = field_errors.setdefault(field_name, [])
        if message not in reasons:
            reasons.append(message)
    return field_errors


def _validate(model: type[M], payload: object) -> M:
    if not isinstance(payload, Mapping):
        raise ValidationError(field_errors={BODY_FIELD: [BODY_NOT_OBJECT_MESSAGE]})

    try:
        return model.model_validate(dict(payload))
    except PydanticValidationError as exc:
        raise ValidationError(
            field_errors=collect_field_errors(exc.errors()),
            cause=exc,
        ) from exc


def validate_create(payload: object) -> UserCreateRequest:
    """Validate and normalize a create-user payload.

    Args:
        payload: Decoded JSON body.

    Returns:
        UserCreateRequest: The normalized request.

    Raises:
        ValidationError: If any field violates its rule; ``field_errors``
            names every offending field.
    """
    return _validate(UserCreateRequest, payload)


def validate_update(payload: object) -> UserUpdateRequest:
    """Validate and normalize an update-user payload.

    Only supplied fields are checked; absent fields stay unchanged.

    Args:
        payload: Decoded JSON body.

    Returns:
        UserUpdateRequest: The normalized request.

    Raises:
        ValidationError: If any supplied field violates its rule.
    """
    return _validate(UserUpdateRequest, payload)
