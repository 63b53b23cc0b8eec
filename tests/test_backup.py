"""Tests for backup export/import."""

import pytest
import pytest_asyncio
from httpx import AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.passwords import verify_password
from src.db.crud import (
    create_catalog,
    get_catalog_items,
    get_user_by_email,
    get_user_catalogs,
    save_catalog,
)
from src.db.crud import media_items as media_items_module
from src.exceptions import ValidationError
from src.models.catalog import Catalog
from src.models.media import MediaItem, MediaKind
from src.models.schemas import MediaRef
from src.models.user import User
from src.services.backup import BackupCodec, backup_filename


def ref(external_id: str, title: str, kind: MediaKind = MediaKind.MOVIE, poster: str | None = None) -> MediaRef:
    return MediaRef(external_id=external_id, kind=kind, title=title, poster_ref=poster)


@pytest_asyncio.fixture
async def user_catalogs(db_session: AsyncSession, test_user: User) -> list[Catalog]:
    movies = await create_catalog(db_session, test_user.id, "Movies", MediaKind.MOVIE)
    await save_catalog(
        db_session,
        movies,
        refs=[ref("155", "The Dark Knight", poster="/dk.jpg"), ref("603", "The Matrix")],
    )
    shows = await create_catalog(db_session, test_user.id, "Shows", MediaKind.SERIES)
    await save_catalog(db_session, shows, refs=[ref("1396", "Breaking Bad", MediaKind.SERIES)])
    return [movies, shows]


def without_date(document: dict) -> dict:
    return {key: value for key, value in document.items() if key != "exportDate"}


class TestExport:
    """User-scope export."""

    @pytest.mark.asyncio
    async def test_document_shape(self, db_session: AsyncSession, test_user: User, user_catalogs):
        document = await BackupCodec(db_session).export_user(test_user)

        assert document["version"] == "1.0"
        assert "exportDate" in document
        assert document["catalogs"] == [
            {
                "name": "Movies",
                "type": "movie",
                "items": [
                    {"tmdbId": "155", "type": "movie", "title": "The Dark Knight", "poster": "/dk.jpg"},
                    {"tmdbId": "603", "type": "movie", "title": "The Matrix", "poster": None},
                ],
            },
            {
                "name": "Shows",
                "type": "series",
                "items": [{"tmdbId": "1396", "type": "series", "title": "Breaking Bad", "poster": None}],
            },
        ]

    @pytest.mark.asyncio
    async def test_export_endpoint_is_attachment(self, authenticated_client: AsyncClient, user_catalogs):
        response = await authenticated_client.get("/backup/export")

        assert response.status_code == 200
        disposition = response.headers["Content-Disposition"]
        assert disposition.startswith('attachment; filename="catalogs-backup-')
        assert disposition.endswith('.json"')
        assert len(response.json()["catalogs"]) == 2

    def test_backup_filename(self):
        assert backup_filename().startswith("catalogs-backup-")


class TestImport:
    """User-scope import."""

    @pytest.mark.asyncio
    async def test_round_trip_into_fresh_account(
        self, db_session: AsyncSession, test_user: User, other_user: User, user_catalogs
    ):
        codec = BackupCodec(db_session)
        exported = await codec.export_user(test_user)

        result = await codec.import_for_user(other_user, exported)

        assert (result.catalogs, result.items, result.skipped) == (2, 3, 0)
        reimported = await codec.export_user(other_user)
        assert without_date(reimported) == without_date(exported)

    @pytest.mark.asyncio
    async def test_import_is_additive(self, db_session: AsyncSession, test_user: User, user_catalogs):
        codec = BackupCodec(db_session)
        exported = await codec.export_user(test_user)

        await codec.import_for_user(test_user, exported)

        names = [c["name"] for c in (await codec.export_user(test_user))["catalogs"]]
        assert names == ["Movies", "Shows", "Movies", "Shows"]

    @pytest.mark.asyncio
    async def test_shared_item_stored_once(self, db_session: AsyncSession, test_user: User):
        document = {
            "catalogs": [
                {"name": "A", "type": "movie", "items": [{"tmdbId": "603", "type": "movie", "title": "The Matrix"}]},
                {"name": "B", "type": "movie", "items": [{"tmdbId": 603, "type": "movie", "title": "Matrix"}]},
            ]
        }

        result = await BackupCodec(db_session).import_for_user(test_user, document)

        assert result.items == 2
        count = await db_session.scalar(
            select(func.count()).select_from(MediaItem).where(MediaItem.external_id == "603")
        )
        assert count == 1

    @pytest.mark.asyncio
    async def test_existing_item_not_overwritten(
        self, db_session: AsyncSession, test_user: User, user_catalogs
    ):
        document = {
            "catalogs": [
                {
                    "name": "C",
                    "type": "movie",
                    "items": [{"tmdbId": "155", "type": "movie", "title": "Renamed", "poster": "/new.jpg"}],
                }
            ]
        }

        await BackupCodec(db_session).import_for_user(test_user, document)

        item = await db_session.scalar(select(MediaItem).where(MediaItem.external_id == "155"))
        assert item.title == "The Dark Knight"
        assert item.poster_ref == "/dk.jpg"

    @pytest.mark.asyncio
    async def test_bad_items_are_skipped(self, db_session: AsyncSession, test_user: User):
        document = {
            "catalogs": [
                {
                    "name": "Mixed",
                    "type": "movie",
                    "items": [
                        {"tmdbId": "1", "type": "movie", "title": "Kept first"},
                        {"tmdbId": "2", "type": "movie"},
                        {"tmdbId": "1396", "type": "series", "title": "Wrong kind"},
                        {"tmdbId": "1", "type": "movie", "title": "Kept first"},
                        "not an object",
                        {"tmdbId": "3", "type": "movie", "title": "Kept last"},
                    ],
                }
            ]
        }
        codec = BackupCodec(db_session)

        result = await codec.import_for_user(test_user, document)

        assert (result.catalogs, result.items, result.skipped) == (1, 2, 4)
        assert len(result.errors) == 4
        assert result.errors[0].startswith("'Mixed' item #2: title")
        exported = await codec.export_user(test_user)
        assert [i["title"] for i in exported["catalogs"][0]["items"]] == ["Kept first", "Kept last"]

    @pytest.mark.asyncio
    async def test_bad_catalog_record_is_skipped(self, db_session: AsyncSession, test_user: User):
        document = {
            "catalogs": [
                {"name": "No type", "items": [{"tmdbId": "1", "type": "movie", "title": "X"}]},
                {"name": "  ", "type": "movie"},
                {"name": "Good", "type": "series", "items": []},
            ]
        }

        result = await BackupCodec(db_session).import_for_user(test_user, document)

        assert result.catalogs == 1
        assert result.skipped == 2
        assert result.errors[0].startswith("Catalog #1: type")

    @pytest.mark.asyncio
    async def test_concurrently_stored_item_is_skipped(
        self, db_session: AsyncSession, test_user: User, user_catalogs, monkeypatch: pytest.MonkeyPatch
    ):
        user_id = test_user.id
        real_lookup = media_items_module.get_media_item

        async def lookup_before_other_commit(db, external_id, kind):
            # "603" was stored by another session after this lookup ran
            if external_id == "603":
                return None
            return await real_lookup(db, external_id, kind)

        monkeypatch.setattr(media_items_module, "get_media_item", lookup_before_other_commit)
        document = {
            "catalogs": [
                {
                    "name": "Raced",
                    "type": "movie",
                    "items": [
                        {"tmdbId": "680", "type": "movie", "title": "Pulp Fiction"},
                        {"tmdbId": 603, "type": "movie", "title": "The Matrix"},
                        {"tmdbId": 604, "type": "movie", "title": "The Matrix Reloaded"},
                    ],
                }
            ]
        }

        result = await BackupCodec(db_session).import_for_user(test_user, document)
        monkeypatch.undo()

        assert (result.catalogs, result.items, result.skipped) == (1, 2, 1)
        assert result.errors[0].startswith("'Raced' item #2:")
        [raced] = [c for c in await get_user_catalogs(db_session, user_id) if c.name == "Raced"]
        items = await get_catalog_items(db_session, raced.id)
        assert [item.external_id for item in items] == ["680", "604"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("document", [[], {"catalogs": "nope"}, {"items": []}, "text"])
    async def test_invalid_document(self, db_session: AsyncSession, test_user: User, document):
        with pytest.raises(ValidationError, match="Invalid import data"):
            await BackupCodec(db_session).import_for_user(test_user, document)

    @pytest.mark.asyncio
    async def test_too_many_items(
        self, db_session: AsyncSession, test_user: User, monkeypatch: pytest.MonkeyPatch
    ):
        monkeypatch.setattr("src.services.backup.MAX_IMPORT_ITEMS", 2)
        items = [{"tmdbId": str(i), "type": "movie", "title": f"M{i}"} for i in range(3)]

        with pytest.raises(ValidationError, match="limit"):
            await BackupCodec(db_session).import_for_user(
                test_user, {"catalogs": [{"name": "Big", "type": "movie", "items": items}]}
            )

    @pytest.mark.asyncio
    async def test_import_endpoint(self, authenticated_client: AsyncClient):
        response = await authenticated_client.post(
            "/backup/import",
            json={
                "version": "1.0",
                "catalogs": [
                    {"name": "Imported", "type": "movie", "items": [{"tmdbId": 603, "type": "movie", "title": "The Matrix"}]}
                ],
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert data["catalogs"] == 1
        assert data["items"] == 1
        assert data["skipped"] == 0
        assert data["errors"] is None

        catalogs = (await authenticated_client.get("/api/catalogs")).json()
        assert catalogs[0]["name"] == "Imported"

    @pytest.mark.asyncio
    async def test_import_endpoint_rejects_non_backup(self, authenticated_client: AsyncClient):
        response = await authenticated_client.post("/backup/import", json=[1, 2, 3])

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_error_list_is_truncated(self, authenticated_client: AsyncClient):
        items = [{"tmdbId": str(i), "type": "movie"} for i in range(30)]

        response = await authenticated_client.post(
            "/backup/import", json={"catalogs": [{"name": "Broken", "type": "movie", "items": items}]}
        )

        data = response.json()
        assert data["skipped"] == 30
        assert len(data["errors"]) == 20


class TestAdminBackup:
    """Full export/import, restricted to ADMIN_EMAILS."""

    @pytest.mark.asyncio
    async def test_requires_admin(self, authenticated_client: AsyncClient):
        response = await authenticated_client.get("/backup/admin/export")
        assert response.status_code == 403

        response = await authenticated_client.post("/backup/admin/import", json={"users": []})
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_export_all_users(self, admin_client: AsyncClient, user_catalogs):
        response = await admin_client.get("/backup/admin/export")

        assert response.status_code == 200
        data = response.json()
        assert data["scope"] == "full"
        by_email = {user["email"]: user for user in data["users"]}
        assert set(by_email) == {"test@example.com", "admin@example.com"}
        assert "passwordHash" not in by_email["test@example.com"]
        assert [c["name"] for c in by_email["test@example.com"]["catalogs"]] == ["Movies", "Shows"]

    @pytest.mark.asyncio
    async def test_export_with_credentials(self, admin_client: AsyncClient, test_user: User):
        response = await admin_client.get("/backup/admin/export", params={"include_credentials": True})

        users = response.json()["users"]
        assert all(user["passwordHash"] for user in users)

    @pytest.mark.asyncio
    async def test_import_creates_missing_users(
        self, admin_client: AsyncClient, db_session: AsyncSession, test_user: User
    ):
        document = {
            "users": [
                {
                    "email": "test@example.com",
                    "passwordHash": "ignored-for-existing-accounts",
                    "catalogs": [{"name": "Extra", "type": "movie", "items": []}],
                },
                {
                    "email": "restored@example.com",
                    "catalogs": [
                        {"name": "Old", "type": "movie", "items": [{"tmdbId": "603", "type": "movie", "title": "The Matrix"}]}
                    ],
                },
                {"email": "not-an-email", "catalogs": []},
            ]
        }

        response = await admin_client.post("/backup/admin/import", json=document)

        assert response.status_code == 200
        data = response.json()
        assert data["users"] == 1
        assert data["catalogs"] == 2
        assert data["items"] == 1
        assert data["skipped"] == 1

        restored = await get_user_by_email(db_session, "restored@example.com")
        assert restored is not None
        # No credentials in the backup: nobody can log in until a reset
        assert not verify_password("", restored.password_hash)
        existing = await get_user_by_email(db_session, "test@example.com")
        assert existing.password_hash != "ignored-for-existing-accounts"
