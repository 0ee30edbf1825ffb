"""User persistence collaborator.

Route handlers depend only on the ``UserRepository`` protocol. The bundled
``InMemoryUserRepository`` keeps records in process memory and mirrors the
behavior expected from a SQL-backed implementation:

- ids are assigned sequentially starting at 1
- listing is newest first, filtered by a case-insensitive name keyword
- deletion is soft: ``deleted_at`` is set and the record disappears from reads
- an email can belong to only one live user

Passwords are bcrypt-hashed on the way in; records keep only the hash.
"""

import asyncio
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from typing import Protocol

from loguru import logger

from userhub.api.schemas.users import UserCreateRequest
from userhub.core.exceptions import ConflictError, NotFoundError
from userhub.infrastructure.password import BcryptPasswordHasher


@dataclass(frozen=True)
class UserRecord:
    """A stored user row."""

    id: int
    name: str
    email: str
    password_hash: str = field(repr=False)
    image: str | None
    created_at: datetime
    updated_at: datetime
    deleted_at: datetime | None = None

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None


class UserRepository(Protocol):
    """Operations the user routes need from storage."""

    async def count(self, keyword: str = "") -> int:
        """Count live users whose name contains ``keyword``."""
        ...

    async def list_page(
        self, keyword: str, limit: int, offset: int
    ) -> list[UserRecord]:
        """Return one page of live users, newest first."""
        ...

    async def get(self, user_id: int) -> UserRecord | None:
        """Return a live user by id, or None."""
        ...

    async def email_taken(self, email: str, exclude_id: int | None = None) -> bool:
        """Whether a live user other than ``exclude_id`` uses ``email``."""
        ...

    async def create(self, request: UserCreateRequest) -> UserRecord:
        """Store a new user. Raises ConflictError if the email is in use."""
        ...

    async def update(self, user_id: int, changes: dict[str, str]) -> UserRecord:
        """Apply ``changes`` to a live user.

        Raises NotFoundError or ConflictError.
        """
        ...

    async def soft_delete(self, user_id: int) -> None:
        """Mark a live user as deleted. Raises NotFoundError."""
        ...


def _now() -> datetime:
    return datetime.now(UTC)


class InMemoryUserRepository:
    """Process-local ``UserRepository`` implementation."""

    def __init__(self, hasher: BcryptPasswordHasher | None = None) -> None:
        self._hasher = hasher or BcryptPasswordHasher()
        self._records: dict[int, UserRecord] = {}
        self._next_id = 1
        self._lock = asyncio.Lock()
        logger.debug("Initialized in-memory user repository")

    def _live(self, keyword: str = "") -> list[UserRecord]:
        needle = keyword.casefold()
        return [
            record
            for record in self._records.values()
            if not record.is_deleted and needle in record.name.casefold()
        ]

    def _email_taken(self, email: str, exclude_id: int | None) -> bool:
        return any(
            record.email == email and record.id != exclude_id
            for record in self._live()
        )

    async def count(self, keyword: str = "") -> int:
        return len(self._live(keyword))

    async def list_page(
        self, keyword: str, limit: int, offset: int
    ) -> list[UserRecord]:
        logger.debug(
            "Listing users - keyword: {!r}, limit: {}, offset: {}",
            keyword,
            limit,
            offset,
        )
        records = sorted(self._live(keyword), key=lambda r: r.id, reverse=True)
        return records[offset : offset + limit]

    async def get(self, user_id: int) -> UserRecord | None:
        record = self._records.get(user_id)
        if record is None or record.is_deleted:
            logger.debug("User not found with ID: {}", user_id)
            return None
        return record

    async def email_taken(self, email: str, exclude_id: int | None = None) -> bool:
        return self._email_taken(email, exclude_id)

    async def _hash(self, password: str) -> str:
        return await asyncio.to_thread(self._hasher.hash_password, password)

    async def create(self, request: UserCreateRequest) -> UserRecord:
        password_hash = await self._hash(request.password)

        async with self._lock:
            if self._email_taken(request.email, None):
                raise ConflictError("Email already exists", {"field": "email"})

            now = _now()
            record = UserRecord(
                id=self._next_id,
                name=request.name,
                email=request.email,
                password_hash=password_hash,
                image=request.image,
                created_at=now,
                updated_at=now,
            )
            self._records[record.id] = record
            self._next_id += 1

        logger.info("Created user with ID: {}", record.id)
        return record

    async def update(self, user_id: int, changes: dict[str, str]) -> UserRecord:
        fields = dict(changes)
        if "password" in fields:
            fields["password_hash"] = await self._hash(fields.pop("password"))

        async with self._lock:
            current = await self.get(user_id)
            if current is None:
                raise NotFoundError("User not found", {"user_id": user_id})

            email = fields.get("email")
            if email is not None and self._email_taken(email, user_id):
                raise ConflictError(
                    "Email already used by another user", {"field": "email"}
                )

            updated = replace(current, **fields, updated_at=_now())
            self._records[user_id] = updated

        logger.info("Updated user ID {} - fields: {}", user_id, sorted(changes))
        return updated

    async def soft_delete(self, user_id: int) -> None:
        async with self._lock:
            current = await self.get(user_id)
            if current is None:
                raise NotFoundError("User not found", {"user_id": user_id})
            self._records[user_id] = replace(current, deleted_at=_now())

        logger.info("Soft-deleted user ID {}", user_id)
