"""Tests for user profile endpoints."""

from __future__ import annotations

from io import BytesIO
from typing import Any, cast
from uuid import uuid4

import pytest
from httpx import AsyncClient
from PIL import Image
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement

from core.config import settings
from models import User
from services import accounts


def _eq(column: Any, value: Any) -> ColumnElement[bool]:
    return cast(ColumnElement[bool], column == value)


def build_payload() -> dict[str, str]:
    suffix = uuid4().hex[:8]
    return {
        "name": "Test User",
        "email": f"user_{suffix}@example.com",
        "password": "secret1",
        "password2": "secret1",
    }


def profile_payload(**overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "fullName": "Updated Name",
        "email": "updated@example.com",
        "phone": "+1 (555) 123-4567",
        "gender": "female",
        "birthDate": "1990-04-12",
        "pronoun": "she/her",
    }
    payload.update(overrides)
    return payload


def make_png(size: tuple[int, int] = (800, 600)) -> bytes:
    buffer = BytesIO()
    Image.new("RGB", size, color=(200, 30, 30)).save(buffer, format="PNG")
    return buffer.getvalue()


async def register(client: AsyncClient) -> dict[str, Any]:
    payload = build_payload()
    response = await client.post("/api/v1/auth/register", json=payload)
    assert response.status_code == 201
    return response.json()["data"]["user"]


class FakeObjectStore:
    def __init__(self) -> None:
        self.objects: dict[str, tuple[bytes, str]] = {}
        self.deleted: list[str] = []

    def upload(self, object_key: str, data: bytes, content_type: str, client: Any = None) -> None:
        self.objects[object_key] = (data, content_type)

    def delete(self, object_key: str, client: Any = None) -> None:
        self.deleted.append(object_key)
        self.objects.pop(object_key, None)


@pytest.fixture()
def object_store(monkeypatch: pytest.MonkeyPatch) -> FakeObjectStore:
    store = FakeObjectStore()
    monkeypatch.setattr(accounts, "upload_object", store.upload)
    monkeypatch.setattr(accounts, "delete_object", store.delete)
    return store


@pytest.mark.asyncio
async def test_get_me_returns_projection(async_client: AsyncClient):
    user = await register(async_client)

    response = await async_client.get("/api/v1/users/me")

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Fetched user profile successfully!"
    assert body["data"]["id"] == user["id"]
    assert "passwordHash" not in body["data"]
    assert "refreshTokenHash" not in body["data"]


@pytest.mark.asyncio
async def test_profile_requires_authentication(async_client: AsyncClient):
    response = await async_client.get("/api/v1/users/me")

    assert response.status_code == 401
    assert response.json() == {
        "statusCode": 401,
        "message": "Unauthorized request",
        "success": False,
        "code": "UNAUTHORIZED",
    }


@pytest.mark.asyncio
async def test_update_profile(async_client: AsyncClient, db_session: AsyncSession):
    user = await register(async_client)

    response = await async_client.patch("/api/v1/users/me", json=profile_payload())

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["fullName"] == "Updated Name"
    assert data["email"] == "updated@example.com"
    assert data["phone"] == "+15551234567"
    assert data["birthDate"] == "1990-04-12"
    assert data["pronoun"] == "she/her"

    stored = await db_session.get(User, user["id"])
    assert stored is not None
    assert stored.email == "updated@example.com"


@pytest.mark.asyncio
async def test_update_profile_keeps_own_email(async_client: AsyncClient):
    user = await register(async_client)

    response = await async_client.patch(
        "/api/v1/users/me",
        json=profile_payload(email=user["email"].upper()),
    )

    assert response.status_code == 200
    assert response.json()["data"]["email"] == user["email"]


@pytest.mark.asyncio
async def test_update_profile_requires_all_fields(async_client: AsyncClient):
    await register(async_client)

    response = await async_client.patch("/api/v1/users/me", json=profile_payload(gender=""))

    assert response.status_code == 400
    assert response.json()["message"] == "All fields are required"


@pytest.mark.asyncio
async def test_update_profile_rejects_invalid_phone(async_client: AsyncClient):
    await register(async_client)

    response = await async_client.patch("/api/v1/users/me", json=profile_payload(phone="12-34"))

    assert response.status_code == 400
    assert response.json()["message"] == "Invalid phone number"


@pytest.mark.asyncio
async def test_update_profile_email_conflict(async_client: AsyncClient):
    taken = await register(async_client)
    async_client.cookies.clear()
    await register(async_client)

    response = await async_client.patch(
        "/api/v1/users/me",
        json=profile_payload(email=taken["email"]),
    )

    assert response.status_code == 409
    assert response.json()["message"] == "Email already exists"


@pytest.mark.asyncio
async def test_update_profile_phone_conflict(async_client: AsyncClient):
    await register(async_client)
    first = await async_client.patch("/api/v1/users/me", json=profile_payload(email="one@example.com"))
    assert first.status_code == 200

    async_client.cookies.clear()
    await register(async_client)
    second = await async_client.patch("/api/v1/users/me", json=profile_payload(email="two@example.com"))

    assert second.status_code == 409
    assert second.json()["message"] == "Phone number already exists"


@pytest.mark.asyncio
async def test_set_avatar_stores_normalized_jpeg(
    async_client: AsyncClient,
    object_store: FakeObjectStore,
):
    await register(async_client)

    response = await async_client.put(
        "/api/v1/users/me/avatar",
        files={"avatar": ("photo.png", make_png(), "image/png")},
    )

    assert response.status_code == 200
    avatar_key = response.json()["data"]["avatar"]
    assert avatar_key.startswith("avatars/")
    data, content_type = object_store.objects[avatar_key]
    assert content_type == "image/jpeg"
    with Image.open(BytesIO(data)) as stored:
        assert stored.format == "JPEG"
        assert max(stored.size) <= 512


@pytest.mark.asyncio
async def test_replacing_avatar_deletes_previous_object(
    async_client: AsyncClient,
    object_store: FakeObjectStore,
):
    await register(async_client)
    first = await async_client.put(
        "/api/v1/users/me/avatar",
        files={"avatar": ("one.png", make_png(), "image/png")},
    )
    first_key = first.json()["data"]["avatar"]

    second = await async_client.put(
        "/api/v1/users/me/avatar",
        files={"avatar": ("two.png", make_png((64, 64)), "image/png")},
    )

    assert second.status_code == 200
    assert object_store.deleted == [first_key]
    assert list(object_store.objects) == [second.json()["data"]["avatar"]]


@pytest.mark.asyncio
async def test_set_avatar_requires_file(async_client: AsyncClient, object_store: FakeObjectStore):
    await register(async_client)

    response = await async_client.put("/api/v1/users/me/avatar")

    assert response.status_code == 400
    assert response.json()["message"] == "Please upload an image"


@pytest.mark.asyncio
async def test_set_avatar_rejects_non_image(async_client: AsyncClient, object_store: FakeObjectStore):
    await register(async_client)

    response = await async_client.put(
        "/api/v1/users/me/avatar",
        files={"avatar": ("notes.txt", b"definitely not an image", "text/plain")},
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Uploaded file is not a valid image"
    assert object_store.objects == {}


@pytest.mark.asyncio
async def test_set_avatar_rejects_oversized_upload(
    async_client: AsyncClient,
    object_store: FakeObjectStore,
    monkeypatch: pytest.MonkeyPatch,
):
    await register(async_client)
    monkeypatch.setattr(settings, "upload_max_bytes", 16)

    response = await async_client.put(
        "/api/v1/users/me/avatar",
        files={"avatar": ("photo.png", make_png(), "image/png")},
    )

    assert response.status_code == 413
    assert object_store.objects == {}


@pytest.mark.asyncio
async def test_set_avatar_reports_storage_outage(
    async_client: AsyncClient,
    db_session: AsyncSession,
    monkeypatch: pytest.MonkeyPatch,
):
    user = await register(async_client)

    def unreachable_storage(*args: Any, **kwargs: Any) -> None:
        raise ConnectionError("minio unreachable")

    monkeypatch.setattr(accounts, "upload_object", unreachable_storage)

    response = await async_client.put(
        "/api/v1/users/me/avatar",
        files={"avatar": ("photo.png", make_png(), "image/png")},
    )

    assert response.status_code == 502
    assert response.headers["content-type"].startswith("application/json")
    assert response.json() == {
        "statusCode": 502,
        "message": "Unable to store avatar image",
        "success": False,
        "code": "UPSTREAM_ERROR",
    }
    stored = await db_session.get(User, user["id"])
    assert stored is not None
    assert stored.avatar is None


@pytest.mark.asyncio
async def test_remove_avatar(async_client: AsyncClient, object_store: FakeObjectStore):
    await register(async_client)
    uploaded = await async_client.put(
        "/api/v1/users/me/avatar",
        files={"avatar": ("photo.png", make_png(), "image/png")},
    )
    avatar_key = uploaded.json()["data"]["avatar"]

    response = await async_client.delete("/api/v1/users/me/avatar")

    assert response.status_code == 200
    assert response.json()["data"]["avatar"] is None
    assert object_store.deleted == [avatar_key]


@pytest.mark.asyncio
async def test_remove_external_avatar_leaves_storage_alone(
    async_client: AsyncClient,
    db_session: AsyncSession,
    object_store: FakeObjectStore,
):
    user = await register(async_client)
    stored = await db_session.get(User, user["id"])
    assert stored is not None
    stored.avatar = "https://lh3.googleusercontent.com/a/photo.jpg"
    await db_session.commit()

    response = await async_client.delete("/api/v1/users/me/avatar")

    assert response.status_code == 200
    assert object_store.deleted == []


@pytest.mark.asyncio
async def test_unsubscribe(async_client: AsyncClient, db_session: AsyncSession):
    user = await register(async_client)
    async_client.cookies.clear()

    response = await async_client.post(
        f"/api/v1/users/{user['id']}/unsubscribe",
        json={"email": user["email"].upper()},
    )

    assert response.status_code == 200
    assert response.json()["data"]["subscribed"] is False
    result = await db_session.execute(select(User).where(_eq(User.id, user["id"])))
    assert result.scalar_one().subscribed is False


@pytest.mark.asyncio
async def test_unsubscribe_ignores_email_case_and_padding(
    async_client: AsyncClient, db_session: AsyncSession
):
    user = await register(async_client)
    async_client.cookies.clear()
    local, domain = user["email"].split("@")
    mixed = f"  {local.title()}@{domain.upper()}  "

    response = await async_client.post(
        f"/api/v1/users/{user['id']}/unsubscribe",
        json={"email": mixed},
    )

    assert response.status_code == 200
    assert response.json()["message"] == "User unsubscribed successfully!"
    assert response.json()["data"]["email"] == user["email"]
    stored = await db_session.get(User, user["id"])
    assert stored is not None
    await db_session.refresh(stored)
    assert stored.subscribed is False


@pytest.mark.asyncio
async def test_unsubscribe_with_mismatched_email(async_client: AsyncClient):
    user = await register(async_client)

    response = await async_client.post(
        f"/api/v1/users/{user['id']}/unsubscribe",
        json={"email": "someone-else@example.com"},
    )

    assert response.status_code == 403
    assert response.json()["message"] == "Invalid email"


@pytest.mark.asyncio
async def test_unsubscribe_with_malformed_id(async_client: AsyncClient):
    response = await async_client.post(
        "/api/v1/users/not-a-uuid/unsubscribe",
        json={"email": "someone@example.com"},
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Invalid User Id"


@pytest.mark.asyncio
async def test_unsubscribe_unknown_user(async_client: AsyncClient):
    response = await async_client.post(
        f"/api/v1/users/{uuid4()}/unsubscribe",
        json={"email": "someone@example.com"},
    )

    assert response.status_code == 404
    assert response.json()["code"] == "NOT_FOUND"
