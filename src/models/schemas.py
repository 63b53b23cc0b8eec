"""Pydantic schemas for API validation and serialization."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from src.constants import (
    CATALOG_NAME_MAX_LENGTH,
    MAX_CATALOG_ITEMS,
    PASSWORD_MAX_LENGTH,
    PASSWORD_MIN_LENGTH,
)

# Re-export enum from media model (avoid duplication)
from src.models.media import MediaItem
from src.models.media import MediaKind as MediaKindEnum


# User schemas
class UserCredentials(BaseModel):
    """Registration/login payload."""

    email: EmailStr
    password: str = Field(min_length=PASSWORD_MIN_LENGTH, max_length=PASSWORD_MAX_LENGTH)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class UserRead(BaseModel):
    """User read schema."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    created_at: datetime


class UserMe(UserRead):
    """Current user, with the URL to paste into the media client."""

    addon_url: str
    is_admin: bool = False


# Media item schemas
class MediaRef(BaseModel):
    """Reference to a TMDB title as submitted by the catalog editor.

    Wire names match the backup format (``tmdbId``, ``type``, ``poster``).
    """

    model_config = ConfigDict(populate_by_name=True)

    external_id: str = Field(alias="tmdbId", min_length=1, max_length=100)
    kind: MediaKindEnum = Field(alias="type")
    title: str = Field(min_length=1, max_length=500)
    poster_ref: str | None = Field(default=None, alias="poster", max_length=500)

    @field_validator("external_id", mode="before")
    @classmethod
    def coerce_external_id(cls, v: object) -> object:
        # TMDB ids arrive as numbers from the search API
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v

    @property
    def natural_key(self) -> tuple[str, MediaKindEnum]:
        return (self.external_id, self.kind)


class MediaItemRead(BaseModel):
    """Catalog member as returned to the editor."""

    model_config = ConfigDict(populate_by_name=True)

    external_id: str = Field(alias="tmdbId")
    kind: MediaKindEnum = Field(alias="type")
    title: str
    poster_ref: str | None = Field(default=None, alias="poster")
    genres: list[str] | None = None
    description: str | None = None
    display_rating: str | None = Field(default=None, alias="imdbRating")
    release_date: str | None = Field(default=None, alias="releaseDate")

    @classmethod
    def from_item(cls, item: MediaItem) -> "MediaItemRead":
        return cls(
            external_id=item.external_id,
            kind=item.kind,
            title=item.title,
            poster_ref=item.poster_ref,
            genres=item.genres,
            description=item.description,
            display_rating=item.display_rating,
            release_date=item.release_date,
        )


# Catalog schemas
class CatalogCreate(BaseModel):
    """Catalog creation schema. ``kind`` is mandatory."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(min_length=1, max_length=CATALOG_NAME_MAX_LENGTH)
    kind: MediaKindEnum = Field(alias="type")


class CatalogUpdate(BaseModel):
    """Rename and/or replace the full ordered membership."""

    name: str | None = Field(default=None, min_length=1, max_length=CATALOG_NAME_MAX_LENGTH)
    items: list[MediaRef] | None = Field(default=None, max_length=MAX_CATALOG_ITEMS)


class CatalogItemAdd(MediaRef):
    """Single item appended to the end of a catalog."""

    enrich: bool = True


class CatalogRead(BaseModel):
    """Catalog read schema."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    kind: MediaKindEnum = Field(alias="type")
    created_at: datetime = Field(alias="createdAt")
    items: list[MediaItemRead] = []


class EnrichResponse(BaseModel):
    """Result of refreshing catalog metadata from TMDB."""

    updated: int
    failed: int
    errors: list[str] | None = None
