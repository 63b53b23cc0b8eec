"""Tests for the public addon endpoints."""

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from src.db.crud import create_catalog
from src.models.media import MediaKind
from src.models.user import User

ITEMS = [
    {"tmdbId": "155", "type": "movie", "title": "The Dark Knight", "poster": "/dk.jpg"},
    {"tmdbId": "603", "type": "movie", "title": "The Matrix"},
    {"tmdbId": "27205", "type": "movie", "title": "Inception"},
]


async def me(client: AsyncClient) -> str:
    response = await client.get("/api/auth/me")
    return response.json()["id"]


async def filled_catalog(client: AsyncClient) -> str:
    response = await client.post("/api/catalogs", json={"name": "Nolan & co", "type": "movie"})
    catalog_id = response.json()["id"]
    await client.put(f"/api/catalogs/{catalog_id}", json={"items": ITEMS})
    return catalog_id


class TestManifest:
    """Tests for /addon/{user_id}/manifest.json."""

    @pytest.mark.asyncio
    async def test_manifest(self, authenticated_client: AsyncClient):
        user_id = await me(authenticated_client)
        catalog_id = await filled_catalog(authenticated_client)

        response = await authenticated_client.get(f"/addon/{user_id}/manifest.json")

        assert response.status_code == 200
        data = response.json()
        assert data["id"] == f"com.customcatalogs.{user_id}"
        assert data["name"] == "Custom Catalogs"
        assert data["catalogs"] == [
            {"type": "movie", "id": f"cat_{catalog_id}", "name": "Nolan & co", "extra": []}
        ]
        assert data["behaviorHints"] == {"configurable": False, "configurationRequired": False}

    @pytest.mark.asyncio
    async def test_manifest_is_not_cached(self, authenticated_client: AsyncClient):
        user_id = await me(authenticated_client)

        response = await authenticated_client.get(f"/addon/{user_id}/manifest.json")

        assert "no-cache" in response.headers["Cache-Control"]
        assert "no-store" in response.headers["Cache-Control"]
        assert response.headers["Access-Control-Allow-Origin"] == "*"

    @pytest.mark.asyncio
    async def test_manifest_reflects_new_catalogs(self, authenticated_client: AsyncClient):
        user_id = await me(authenticated_client)
        before = await authenticated_client.get(f"/addon/{user_id}/manifest.json")

        await authenticated_client.post("/api/catalogs", json={"name": "Shows", "type": "series"})
        after = await authenticated_client.get(f"/addon/{user_id}/manifest.json")

        assert len(before.json()["catalogs"]) == 0
        assert after.json()["catalogs"][0]["type"] == "series"

    @pytest.mark.asyncio
    async def test_manifest_unknown_user(self, client: AsyncClient):
        response = await client.get("/addon/00000000-0000-0000-0000-000000000000/manifest.json")

        assert response.status_code == 404
        assert response.json() == {"error": "User not found"}


class TestCatalogFeed:
    """Tests for /addon/{user_id}/catalog/{type}/{id}.json."""

    @pytest.mark.asyncio
    async def test_items_in_saved_order(self, authenticated_client: AsyncClient):
        user_id = await me(authenticated_client)
        catalog_id = await filled_catalog(authenticated_client)

        response = await authenticated_client.get(f"/addon/{user_id}/catalog/movie/cat_{catalog_id}.json")

        assert response.status_code == 200
        metas = response.json()["metas"]
        assert [meta["id"] for meta in metas] == ["tmdb:155", "tmdb:603", "tmdb:27205"]
        assert metas[0]["poster"] == "https://image.tmdb.org/t/p/w500/dk.jpg"
        assert response.headers["Access-Control-Allow-Origin"] == "*"

    @pytest.mark.asyncio
    async def test_missing_fields_are_absent(self, authenticated_client: AsyncClient):
        user_id = await me(authenticated_client)
        catalog_id = await filled_catalog(authenticated_client)

        response = await authenticated_client.get(f"/addon/{user_id}/catalog/movie/cat_{catalog_id}.json")

        for meta in response.json()["metas"]:
            assert None not in meta.values()
        assert set(response.json()["metas"][1]) == {"id", "type", "name"}

    @pytest.mark.asyncio
    async def test_id_without_prefix(self, authenticated_client: AsyncClient):
        user_id = await me(authenticated_client)
        catalog_id = await filled_catalog(authenticated_client)

        response = await authenticated_client.get(f"/addon/{user_id}/catalog/movie/{catalog_id}.json")

        assert len(response.json()["metas"]) == 3

    @pytest.mark.asyncio
    async def test_reorder_is_visible(self, authenticated_client: AsyncClient):
        user_id = await me(authenticated_client)
        catalog_id = await filled_catalog(authenticated_client)
        await authenticated_client.put(f"/api/catalogs/{catalog_id}", json={"items": ITEMS[::-1]})

        response = await authenticated_client.get(f"/addon/{user_id}/catalog/movie/cat_{catalog_id}.json")

        assert [meta["id"] for meta in response.json()["metas"]] == ["tmdb:27205", "tmdb:603", "tmdb:155"]

    @pytest.mark.asyncio
    async def test_emptied_catalog(self, authenticated_client: AsyncClient):
        user_id = await me(authenticated_client)
        catalog_id = await filled_catalog(authenticated_client)
        await authenticated_client.put(f"/api/catalogs/{catalog_id}", json={"items": []})

        response = await authenticated_client.get(f"/addon/{user_id}/catalog/movie/cat_{catalog_id}.json")

        assert response.json() == {"metas": []}

    @pytest.mark.asyncio
    async def test_unknown_catalog(self, authenticated_client: AsyncClient):
        user_id = await me(authenticated_client)

        response = await authenticated_client.get(f"/addon/{user_id}/catalog/movie/cat_nope.json")

        assert response.status_code == 200
        assert response.json() == {"metas": []}

    @pytest.mark.asyncio
    async def test_unknown_type(self, authenticated_client: AsyncClient):
        user_id = await me(authenticated_client)
        catalog_id = await filled_catalog(authenticated_client)

        response = await authenticated_client.get(f"/addon/{user_id}/catalog/tv/cat_{catalog_id}.json")

        assert response.json() == {"metas": []}

    @pytest.mark.asyncio
    async def test_foreign_catalog(
        self, client: AsyncClient, db_session: AsyncSession, test_user: User, other_user: User
    ):
        catalog = await create_catalog(db_session, other_user.id, "Private", MediaKind.MOVIE)

        response = await client.get(f"/addon/{test_user.id}/catalog/movie/cat_{catalog.id}.json")

        assert response.json() == {"metas": []}
