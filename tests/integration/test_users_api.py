"""Integration tests for the /user resource."""

from collections.abc import Callable
from typing import Any

import pytest
import pytest_check as check
from httpx import AsyncClient

from userhub.infrastructure.password import BcryptPasswordHasher
from userhub.infrastructure.repository import InMemoryUserRepository


@pytest.mark.integration
class TestCreateUser:
    """Tests for POST /user."""

    async def test_create_success(
        self, client: AsyncClient, user_payload: dict[str, Any]
    ) -> None:
        """Test that a valid user is created and returned without password."""
        response = await client.post("/user", json=user_payload)

        assert response.status_code == 201
        body = response.json()
        check.is_true(body["status"])
        check.equal(body["message"], "User created")
        check.equal(body["data"]["id"], 1)
        check.equal(body["data"]["email"], "test@example.com")
        check.is_not_in("password", body["data"])
        check.is_not_in("password_hash", body["data"])
        check.is_not_none(body["data"]["created_at"])

    async def test_stored_password_is_hashed(
        self,
        client: AsyncClient,
        repository: InMemoryUserRepository,
        user_payload: dict[str, Any],
    ) -> None:
        """Test that the stored record holds a bcrypt hash, not the password."""
        response = await client.post("/user", json=user_payload)

        record = await repository.get(response.json()["data"]["id"])
        assert record is not None
        assert record.password_hash != user_payload["password"]
        assert BcryptPasswordHasher().verify_password(
            user_payload["password"], record.password_hash
        )

    async def test_empty_body_names_required_fields(self, client: AsyncClient) -> None:
        """Test that {} fails naming name, email and password."""
        response = await client.post("/user", json={})

        assert response.status_code == 422
        body = response.json()
        assert body["status"] is False
        assert body["message"] == "Validation failed"
        assert set(body["data"]) == {"name", "email", "password"}

    async def test_invalid_fields_all_reported(self, client: AsyncClient) -> None:
        """Test that every invalid field is in the error envelope."""
        response = await client.post(
            "/user",
            json={"name": "a" * 300, "email": "invalid-email", "password": "12345"},
        )

        assert response.status_code == 422
        assert set(response.json()["data"]) == {"name", "email", "password"}

    async def test_missing_body(self, client: AsyncClient) -> None:
        """Test that a request without a body is rejected under body."""
        response = await client.post("/user")

        assert response.status_code == 422
        assert "body" in response.json()["data"]

    async def test_array_body(self, client: AsyncClient) -> None:
        """Test that a JSON array is rejected under body."""
        response = await client.post("/user", json=[1, 2])

        assert response.status_code == 422
        assert list(response.json()["data"]) == ["body"]

    async def test_malformed_json(self, client: AsyncClient) -> None:
        """Test that unparsable JSON is reported under body."""
        response = await client.post(
            "/user",
            content=b'{"name": ',
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 422
        assert list(response.json()["data"]) == ["body"]

    async def test_duplicate_email_conflicts(
        self, client: AsyncClient, user_payload: dict[str, Any]
    ) -> None:
        """Test that the same email cannot be registered twice."""
        await client.post("/user", json=user_payload)

        response = await client.post(
            "/user", json={**user_payload, "email": "TEST@example.com"}
        )

        assert response.status_code == 409
        assert response.json() == {
            "status": False,
            "message": "Email already exists",
            "data": None,
        }


@pytest.mark.integration
class TestListUsers:
    """Tests for GET /user."""

    async def test_empty_list(self, client: AsyncClient) -> None:
        """Test listing with no users."""
        response = await client.get("/user")

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "List Users"
        assert body["data"] == {
            "data": [],
            "pagination": {"page": 1, "limit": 10, "total": 0, "total_page": 0},
        }

    async def test_pagination_and_order(
        self, client: AsyncClient, create_user: Callable[..., Any]
    ) -> None:
        """Test newest-first paging metadata."""
        for index in range(5):
            await create_user(f"User {index}", f"user{index}@example.com")

        response = await client.get("/user", params={"page": "2", "limit": "2"})

        data = response.json()["data"]
        assert [user["id"] for user in data["data"]] == [3, 2]
        assert data["pagination"] == {
            "page": 2,
            "limit": 2,
            "total": 5,
            "total_page": 3,
        }

    async def test_invalid_query_uses_defaults(
        self, client: AsyncClient, create_user: Callable[..., Any]
    ) -> None:
        """Test that garbage paging parameters do not fail the request."""
        await create_user("Only User", "only@example.com")

        response = await client.get("/user", params={"page": "abc", "limit": "-3"})

        assert response.status_code == 200
        pagination = response.json()["data"]["pagination"]
        assert (pagination["page"], pagination["limit"]) == (1, 10)

    async def test_oversized_numbers_use_defaults(self, client: AsyncClient) -> None:
        """Test that thousands of digits fall back instead of failing."""
        response = await client.get(
            "/user", params={"page": "1" * 5000, "limit": "1" * 5000}
        )

        assert response.status_code == 200
        pagination = response.json()["data"]["pagination"]
        assert (pagination["page"], pagination["limit"]) == (1, 10)

    async def test_limit_clamped(self, client: AsyncClient) -> None:
        """Test that the limit is capped at the configured maximum."""
        response = await client.get("/user", params={"limit": "5000"})

        assert response.json()["data"]["pagination"]["limit"] == 100

    async def test_keyword_filter(
        self, client: AsyncClient, create_user: Callable[..., Any]
    ) -> None:
        """Test the name keyword filter."""
        await create_user("John Smith", "john@example.com")
        await create_user("Jane Doe", "jane@example.com")

        response = await client.get("/user", params={"keyword": "JOHN"})

        data = response.json()["data"]
        assert [user["name"] for user in data["data"]] == ["John Smith"]
        assert data["pagination"]["total"] == 1


@pytest.mark.integration
class TestShowUpdateDelete:
    """Tests for GET, PUT and DELETE /user/{id}."""

    async def test_show(
        self, client: AsyncClient, create_user: Callable[..., Any]
    ) -> None:
        """Test fetching a single user."""
        created = await create_user("Test User", "test@example.com")

        response = await client.get(f"/user/{created['id']}")

        assert response.status_code == 200
        assert response.json()["message"] == "User"
        assert response.json()["data"]["name"] == "Test User"

    async def test_show_missing(self, client: AsyncClient) -> None:
        """Test that unknown ids give 404 in envelope form."""
        response = await client.get("/user/999")

        assert response.status_code == 404
        assert response.json() == {
            "status": False,
            "message": "User not found",
            "data": None,
        }

    async def test_show_non_integer_id(self, client: AsyncClient) -> None:
        """Test that a non-numeric id is a validation failure on user_id."""
        response = await client.get("/user/abc")

        assert response.status_code == 422
        assert list(response.json()["data"]) == ["user_id"]

    async def test_update_partial(
        self, client: AsyncClient, create_user: Callable[..., Any]
    ) -> None:
        """Test that only supplied fields change."""
        created = await create_user("Test User", "test@example.com")

        response = await client.put(
            f"/user/{created['id']}", json={"name": "Updated User", "password": ""}
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert response.json()["message"] == "User updated"
        assert data["name"] == "Updated User"
        assert data["email"] == "test@example.com"

    async def test_update_email_taken(
        self, client: AsyncClient, create_user: Callable[..., Any]
    ) -> None:
        """Test that an update cannot take another user's email."""
        await create_user("First", "first@example.com")
        second = await create_user("Second", "second@example.com")

        response = await client.put(
            f"/user/{second['id']}", json={"email": "first@example.com"}
        )

        assert response.status_code == 409
        assert response.json()["message"] == "Email already used by another user"

    async def test_update_invalid(
        self, client: AsyncClient, create_user: Callable[..., Any]
    ) -> None:
        """Test that invalid supplied fields are rejected."""
        created = await create_user("Test User", "test@example.com")

        response = await client.put(
            f"/user/{created['id']}", json={"email": "invalid-email"}
        )

        assert response.status_code == 422
        assert list(response.json()["data"]) == ["email"]

    async def test_update_missing(self, client: AsyncClient) -> None:
        """Test updating an unknown user."""
        response = await client.put("/user/42", json={"name": "x"})

        assert response.status_code == 404

    async def test_delete(
        self, client: AsyncClient, create_user: Callable[..., Any]
    ) -> None:
        """Test soft delete and that the user disappears from reads."""
        created = await create_user("Test User", "test@example.com")

        response = await client.delete(f"/user/{created['id']}")

        assert response.status_code == 200
        assert response.json() == {
            "status": True,
            "message": "User deleted",
            "data": None,
        }
        assert (await client.get(f"/user/{created['id']}")).status_code == 404
        listing = (await client.get("/user")).json()["data"]
        assert listing["pagination"]["total"] == 0

    async def test_delete_missing(self, client: AsyncClient) -> None:
        """Test deleting an unknown user."""
        response = await client.delete("/user/7")

        assert response.status_code == 404
