"""JSON backup export and import.

Document format::

    {
        "version": "1.0",
        "exportDate": "2024-05-01T12:00:00+00:00",
        "catalogs": [
            {"name": "...", "type": "movie", "items": [
                {"tmdbId": "603", "type": "movie", "title": "The Matrix", "poster": "/p.jpg"}
            ]}
        ]
    }

The admin variant wraps catalogs per account under ``users`` and carries
``"scope": "full"``. Enrichment fields are never exported; they are
rebuilt from TMDB.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.passwords import unusable_password_hash
from src.constants import (
    BACKUP_FILENAME_PREFIX,
    BACKUP_VERSION,
    CATALOG_NAME_MAX_LENGTH,
    MAX_IMPORT_ERRORS_RETURNED,
    MAX_IMPORT_ITEMS,
)
from src.db.crud.catalogs import create_catalog, get_user_catalogs
from src.db.crud.media_items import get_or_create_media_item
from src.db.crud.users import create_user, get_all_users, get_user_by_email
from src.exceptions import TransactionError, ValidationError
from src.models.catalog import Catalog
from src.models.media import MediaKind
from src.models.schemas import MediaRef
from src.models.user import User
from src.services.ordering import OrderingResolver, ensure_kind
from src.utils.logging import LogContext, get_logger

logger = get_logger(__name__)


class BackupCatalog(BaseModel):
    """One catalog record of a backup document (items are checked one by one)."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(max_length=CATALOG_NAME_MAX_LENGTH)
    kind: MediaKind = Field(alias="type")
    items: list[Any] = []

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name must not be empty")
        return v


class BackupUser(BaseModel):
    """One account record of a full (admin) backup document."""

    model_config = ConfigDict(populate_by_name=True)

    email: EmailStr
    password_hash: str | None = Field(default=None, alias="passwordHash")
    catalogs: list[Any] = []


@dataclass
class ImportResult:
    """Result of an import operation."""

    users: int = 0
    catalogs: int = 0
    items: int = 0
    skipped: int = 0
    errors: list[str] = field(default_factory=list)

    def skip(self, message: str, count: int = 1) -> None:
        logger.warning(f"Backup import skipped: {message}")
        self.skipped += count
        self.errors.append(message)

    @property
    def reported_errors(self) -> list[str]:
        return self.errors[:MAX_IMPORT_ERRORS_RETURNED]


def backup_filename(now: datetime | None = None) -> str:
    """``catalogs-backup-<epoch millis>.json``."""
    now = now or datetime.now(UTC)
    return f"{BACKUP_FILENAME_PREFIX}-{int(now.timestamp() * 1000)}.json"


def _describe(error: PydanticValidationError) -> str:
    """First validation problem, as ``field: message``."""
    first = error.errors()[0]
    location = ".".join(str(part) for part in first["loc"])
    return f"{location}: {first['msg']}" if location else first["msg"]


def _count_items(catalogs: list[Any]) -> int:
    return sum(
        len(record["items"])
        for record in catalogs
        if isinstance(record, dict) and isinstance(record.get("items"), list)
    )


def _require_list(document: Any, key: str) -> list[Any]:
    if not isinstance(document, dict) or not isinstance(document.get(key), list):
        raise ValidationError(f"Invalid import data: expected an object with a '{key}' list")
    return document[key]


def _check_size(item_count: int) -> None:
    if item_count > MAX_IMPORT_ITEMS:
        raise ValidationError(
            f"Backup holds {item_count} items, the limit is {MAX_IMPORT_ITEMS} per import"
        )


class BackupCodec:
    """Serializes catalogs to backup documents and restores them."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db
        self.resolver = OrderingResolver(db)

    # Export

    async def _export_catalog(self, catalog: Catalog) -> dict[str, Any]:
        items = await self.resolver.ordered_items(catalog.id)
        return {
            "name": catalog.name,
            "type": catalog.kind.value,
            "items": [
                {
                    "tmdbId": item.external_id,
                    "type": item.kind.value,
                    "title": item.title,
                    "poster": item.poster_ref,
                }
                for item in items
            ],
        }

    async def _export_catalogs(self, user_id: str) -> list[dict[str, Any]]:
        return [
            await self._export_catalog(catalog)
            for catalog in await get_user_catalogs(self.db, user_id)
        ]

    async def export_user(self, user: User) -> dict[str, Any]:
        """Backup document of every catalog the user owns, items in list order."""
        catalogs = await self._export_catalogs(user.id)
        logger.info(f"Exported {len(catalogs)} catalogs for user {user.id}")
        return {
            "version": BACKUP_VERSION,
            "exportDate": datetime.now(UTC).isoformat(),
            "catalogs": catalogs,
        }

    async def export_all(self, admin: User, include_credentials: bool = False) -> dict[str, Any]:
        """Full backup of every account. Password hashes only on request."""
        audit = LogContext(logger, actor=admin.email, action="backup.export_all")

        users = []
        for user in await get_all_users(self.db):
            record: dict[str, Any] = {"id": user.id, "email": user.email}
            if include_credentials:
                record["passwordHash"] = user.password_hash
            record["catalogs"] = await self._export_catalogs(user.id)
            users.append(record)

        audit.info(f"Exported {len(users)} users (credentials={'yes' if include_credentials else 'no'})")
        return {
            "version": BACKUP_VERSION,
            "exportDate": datetime.now(UTC).isoformat(),
            "scope": "full",
            "users": users,
        }

    # Import

    async def _import_items(self, catalog: Catalog, raw_items: list[Any], result: ImportResult) -> None:
        """Append items one by one in input order; bad ones are skipped.

        Each item commits on its own, so a rolled back item never takes the
        ones before it along.
        """
        catalog_name = catalog.name
        seen: set[tuple[str, MediaKind]] = set()
        for position, raw in enumerate(raw_items, start=1):
            label = f"'{catalog_name}' item #{position}"
            try:
                ref = MediaRef.model_validate(raw)
            except PydanticValidationError as e:
                result.skip(f"{label}: {_describe(e)}")
                continue

            try:
                ensure_kind(catalog, ref.kind, ref.title)
                if ref.natural_key in seen:
                    raise ValidationError(f"'{ref.title}' appears more than once")
                # Existing items keep their stored metadata
                item, _ = await get_or_create_media_item(self.db, ref)
                await self.resolver.append(catalog, item)
                await self.db.commit()
            except ValidationError as e:
                result.skip(f"{label}: {e.message}")
                continue
            except TransactionError as e:
                # Rolled back, reload the catalog before the next item
                await self.db.refresh(catalog)
                result.skip(f"{label}: {e.message}")
                continue

            seen.add(ref.natural_key)
            result.items += 1

    async def _import_catalogs(self, user_id: str, records: list[Any], result: ImportResult) -> None:
        """Create one new catalog per record; never merged with existing ones."""
        for index, record in enumerate(records, start=1):
            try:
                data = BackupCatalog.model_validate(record)
            except PydanticValidationError as e:
                skipped_items = _count_items([record])
                result.skip(f"Catalog #{index}: {_describe(e)}", count=max(skipped_items, 1))
                continue

            catalog = await create_catalog(self.db, user_id, data.name, data.kind)
            result.catalogs += 1
            await self._import_items(catalog, data.items, result)
            await self.db.commit()

    async def import_for_user(self, user: User, document: Any) -> ImportResult:
        """Restore a backup document into the user's account, additively.

        Raises:
            ValidationError: not a backup document, or too many items
        """
        user_id = user.id
        records = _require_list(document, "catalogs")
        _check_size(_count_items(records))

        result = ImportResult()
        await self._import_catalogs(user_id, records, result)
        logger.info(
            f"Imported {result.catalogs} catalogs / {result.items} items for user {user_id} "
            f"({result.skipped} skipped)"
        )
        return result

    async def import_all(self, admin: User, document: Any) -> ImportResult:
        """Restore a full backup, creating missing accounts by email.

        Existing accounts keep their password; new ones take the exported
        hash, or an unusable one when the backup carries no credentials.
        """
        audit = LogContext(logger, actor=admin.email, action="backup.import_all")
        records = _require_list(document, "users")
        _check_size(
            sum(
                _count_items(record["catalogs"])
                for record in records
                if isinstance(record, dict) and isinstance(record.get("catalogs"), list)
            )
        )

        result = ImportResult()
        for index, record in enumerate(records, start=1):
            try:
                data = BackupUser.model_validate(record)
            except PydanticValidationError as e:
                result.skip(f"User #{index}: {_describe(e)}")
                continue

            user = await get_user_by_email(self.db, data.email)
            if user is None:
                user = await create_user(
                    self.db,
                    email=data.email,
                    password_hash=data.password_hash or unusable_password_hash(),
                )
                await self.db.commit()
                result.users += 1
                audit.info(f"Created user {user.email}")

            await self._import_catalogs(user.id, data.catalogs, result)

        audit.info(
            f"Imported {len(records)} user records: {result.users} new users, "
            f"{result.catalogs} catalogs, {result.items} items, {result.skipped} skipped"
        )
        return result
