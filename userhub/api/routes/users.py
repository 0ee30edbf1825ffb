"""The ``/user`` resource.

Bodies are accepted as raw JSON and passed through ``validate_create`` /
``validate_update``, so every invalid field is reported in one error
envelope. List query parameters are read raw from the query string and
normalized by ``parse_user_query``, which never rejects a request.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends, Request, status
from loguru import logger

from userhub.api.query import UserQuery, parse_user_query, total_pages
from userhub.api.schemas.envelope import ResponseEnvelope, success
from userhub.api.schemas.users import Pagination, UserPage, UserRead
from userhub.api.utils.responses import ORJSONResponse
from userhub.api.validation import validate_create, validate_update
from userhub.core.context import extract_client_ip
from userhub.core.exceptions import ConflictError, NotFoundError
from userhub.infrastructure.dependencies import (
    AppSettingsDep,
    ExternalApiClientDep,
    UserRepositoryDep,
)
from userhub.infrastructure.external_api import build_external_payload

router = APIRouter(prefix="/user", tags=["users"])

JsonBody = Annotated[Any, Body()]


def get_user_query(request: Request, settings: AppSettingsDep) -> UserQuery:
    """Parse ``page``, ``limit`` and ``keyword`` from the query string."""
    pagination = settings.pagination_config
    return parse_user_query(
        request.query_params,
        default_limit=pagination.default_limit,
        max_limit=pagination.max_limit,
    )


UserQueryDep = Annotated[UserQuery, Depends(get_user_query)]


@router.get("", response_model=ResponseEnvelope)
async def index(query: UserQueryDep, users: UserRepositoryDep) -> ORJSONResponse:
    """List live users, newest first, optionally filtered by name keyword."""
    total = await users.count(query.keyword)
    records = await users.list_page(query.keyword, query.limit, query.offset)

    page = UserPage(
        data=[UserRead.model_validate(record) for record in records],
        pagination=Pagination(
            page=query.page,
            limit=query.limit,
            total=total,
            total_page=total_pages(total, query.limit),
        ),
    )
    return success("List Users", page).to_response()


@router.post(
    "",
    response_model=ResponseEnvelope,
    status_code=status.HTTP_201_CREATED,
)
async def store(users: UserRepositoryDep, payload: JsonBody = None) -> ORJSONResponse:
    """Create a user. The email must not belong to another live user."""
    request = validate_create(payload)

    if await users.email_taken(request.email):
        raise ConflictError("Email already exists", {"field": "email"})

    record = await users.create(request)
    return success("User created", UserRead.model_validate(record)).to_response(
        status.HTTP_201_CREATED
    )


@router.post("/external", response_model=ResponseEnvelope)
async def external(
    request: Request,
    client: ExternalApiClientDep,
    settings: AppSettingsDep,
    payload: JsonBody = None,
) -> ORJSONResponse:
    """Validate a user and forward it to the downstream API.

    The client IP header is read from the incoming request and forwarded
    unchanged; a missing header is treated as an empty address and not sent.
    """
    user = validate_create(payload)
    config = settings.external_api_config

    client_ip = extract_client_ip(request.headers, config.client_ip_header)
    logger.debug("Forwarding user to downstream API - client IP: {!r}", client_ip)

    outbound = build_external_payload(
        user,
        token=config.token,
        custom_headers=config.headers,
        client_ip_header=config.client_ip_header,
        client_ip=client_ip,
    )
    result = await client.send(outbound, config.endpoint_path)

    return success("External API called successfully", result).to_response()


@router.get("/{user_id}", response_model=ResponseEnvelope)
async def show(user_id: int, users: UserRepositoryDep) -> ORJSONResponse:
    """Return one live user."""
    record = await users.get(user_id)
    if record is None:
        raise NotFoundError("User not found", {"user_id": user_id})
    return success("User", UserRead.model_validate(record)).to_response()


@router.put("/{user_id}", response_model=ResponseEnvelope)
async def update(
    user_id: int, users: UserRepositoryDep, payload: JsonBody = None
) -> ORJSONResponse:
    """Apply the supplied fields to a live user."""
    request = validate_update(payload)

    if await users.get(user_id) is None:
        raise NotFoundError("User not found", {"user_id": user_id})

    record = await users.update(user_id, request.changes())
    return success("User updated", UserRead.model_validate(record)).to_response()


@router.delete("/{user_id}", response_model=ResponseEnvelope)
async def delete(user_id: int, users: UserRepositoryDep) -> ORJSONResponse:
    """Soft-delete a live user."""
    await users.soft_delete(user_id)
    return success("User deleted").to_response()
