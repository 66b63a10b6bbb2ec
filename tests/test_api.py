"""
Tests for the /api/v1/users routes through the ASGI app.
"""

import uuid

import httpx
import pytest
from fastapi import HTTPException
from sqlalchemy import select

from profile_service.dependencies.auth import require_user_id
from profile_service.dependencies.search import get_search_index
from profile_service.main import app
from profile_service.models.base import get_db
from profile_service.models.major import MainMajor
from profile_service.models.category import Category


@pytest.fixture
def session_user():
    """Holds the user id the fake session reports; None means logged out."""
    return {"id": None}


@pytest.fixture
async def client(session_factory, index, session_user):
    async def _get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    def _require_user_id():
        if session_user["id"] is None:
            raise HTTPException(status_code=401, detail="Login required")
        return session_user["id"]

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_search_index] = lambda: index
    app.dependency_overrides[require_user_id] = _require_user_id

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http:
        yield http

    app.dependency_overrides.clear()


async def sign_up(client, nickname, main_major="Engineering", sub_major="Computer Science") -> uuid.UUID:
    response = await client.post("/api/v1/users", json={
        "email": f"{nickname}@example.com",
        "name": nickname.title(),
        "nickname": nickname,
        "main_major": main_major,
        "sub_major": sub_major,
    })
    assert response.status_code == 201
    return uuid.UUID(response.json()["id"])


@pytest.fixture
async def logged_in(client, session_user):
    session_user["id"] = await sign_up(client, "alice")
    return session_user["id"]


class TestProfileRoutes:

    async def test_duplicate_nickname_is_409(self, client):
        await sign_up(client, "alice")

        response = await client.post("/api/v1/users", json={
            "email": "other@example.com",
            "name": "Other",
            "nickname": "alice",
            "main_major": "Engineering",
            "sub_major": "Computer Science",
        })

        assert response.status_code == 409
        assert response.json() == {"detail": "Nickname is already in use"}

    async def test_nickname_check(self, client):
        await sign_up(client, "alice")

        assert (await client.get("/api/v1/users/nickname/bob")).json() is True
        assert (await client.get("/api/v1/users/nickname/alice")).status_code == 409

    async def test_me_requires_login(self, client):
        assert (await client.get("/api/v1/users/me")).status_code == 401

    async def test_me(self, client, logged_in):
        response = await client.get("/api/v1/users/me")

        assert response.status_code == 200
        body = response.json()
        assert body["nickname"] == "alice"
        assert body["main_major"] == "Engineering"

    async def test_unknown_session_user_is_404(self, client, session_user):
        session_user["id"] = uuid.uuid4()

        response = await client.get("/api/v1/users/me")

        assert response.status_code == 404
        assert response.json() == {"detail": "No user matches this id"}

    async def test_patch_me(self, client, logged_in):
        response = await client.patch("/api/v1/users/me", json={"nickname": "alicia"})

        assert response.status_code == 200
        assert response.json()["nickname"] == "alicia"

    async def test_profile_interests_round_trip(self, client, logged_in):
        await client.patch("/api/v1/users/me", json={"interests": {"contest": ["video", "design"]}})

        response = await client.get("/api/v1/users/me/profile")

        assert response.json() == {
            "nickname": "alice",
            "profile_image": None,
            "interests": [{"interest": "contest", "keywords": ["design", "video"]}],
        }

    async def test_find_accounts(self, client):
        await client.post("/api/v1/users", json={
            "email": "kim@example.com",
            "name": "Kim",
            "nickname": "kim",
            "phone": "010-1234-5678",
            "main_major": "Engineering",
            "sub_major": "Computer Science",
        })

        response = await client.get("/api/v1/users/accounts", params={"name": "Kim", "phone": "010-1234-5678"})

        assert response.json() == [{"email": "kim@example.com", "provider": "email"}]

    async def test_delete_me(self, client, logged_in, repairs):
        response = await client.delete("/api/v1/users/me")

        assert response.json() is True
        assert (await client.get("/api/v1/users/me")).status_code == 404


class TestScrapRoutes:

    async def test_toggle_round_trip(self, client, logged_in, index):
        index.add(Category.INTERN, "d1", view=1)

        first = await client.post("/api/v1/users/me/scraps", json={"category": "intern", "document_id": "d1"})
        second = await client.post("/api/v1/users/me/scraps", json={"category": "intern", "document_id": "d1"})

        assert first.json() == {"is_scrapped": True}
        assert second.json() == {"is_scrapped": False}
        assert index.counter(Category.INTERN, "d1") == 0

    async def test_unknown_category_is_rejected(self, client, logged_in):
        response = await client.post("/api/v1/users/me/scraps", json={"category": "movies", "document_id": "d1"})

        assert response.status_code == 422

    async def test_listing_shapes(self, client, logged_in, index):
        empty = await client.get("/api/v1/users/me/scraps", params={"category": "intern"})
        assert empty.status_code == 200
        assert empty.json() is None

        index.add(Category.INTERN, "d1", view=5, title="Summer internship")
        await client.post("/api/v1/users/me/scraps", json={"category": "intern", "document_id": "d1"})

        count = await client.get("/api/v1/users/me/scraps", params={"category": "intern", "count": "true"})
        assert count.json() == 1

        page = await client.get("/api/v1/users/me/scraps", params={"category": "intern", "page": "abc"})
        body = page.json()
        assert body["page"] == 1
        assert body["total"] == 1
        assert body["items"][0]["id"] == "d1"
        assert body["items"][0]["title"] == "Summer internship"


class TestThermometerRoutes:

    async def test_create_then_count(self, client, logged_in):
        response = await client.post("/api/v1/users/me/thermometer", json={
            "category": "competition",
            "create": {"title": "Hackathon", "award": "Gold", "started_on": "2026-05-01"},
        })
        assert response.json() is True

        counts = await client.get("/api/v1/users/me/thermometer")

        assert counts.json() == {
            "counts": {"outside": 0, "intern": 0, "competition": 1, "language": 0, "qnet": 0},
            "sum": 15.0,
        }

    async def test_body_needs_exactly_one_action(self, client, logged_in):
        response = await client.post("/api/v1/users/me/thermometer", json={"category": "intern"})

        assert response.status_code == 422

    async def test_field_from_another_category_is_400(self, client, logged_in):
        response = await client.post("/api/v1/users/me/thermometer", json={
            "category": "intern",
            "create": {"title": "Summer", "award": "Gold"},
        })

        assert response.status_code == 400

    async def test_top_percent(self, client, session_factory, session_user):
        bob = await sign_up(client, "bob")
        session_user["id"] = bob
        await client.post("/api/v1/users/me/thermometer", json={
            "category": "intern", "create": {"title": "Summer", "company": "Acme"},
        })
        session_user["id"] = await sign_up(client, "alice")

        async with session_factory() as session:
            main_major_id = (await session.execute(select(MainMajor.id))).scalar_one()

        response = await client.post("/api/v1/users/me/top-percent", json={"main_major_id": str(main_major_id)})

        assert response.status_code == 200
        assert response.json()["top"] == 100.0
