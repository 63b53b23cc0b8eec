"""Feed renderer: stored catalogs as addon manifest and catalog documents."""

from datetime import date
from typing import Any
from urllib.parse import quote

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.config import get_settings
from src.constants import (
    ADDON_CATALOG_PREFIX,
    ADDON_DESCRIPTION,
    ADDON_ID_PREFIX,
    ADDON_META_PREFIX,
    ADDON_VERSION,
    IMDB_TITLE_URL,
    STREMIO_SEARCH_URL,
    TMDB_IMAGE_BASE_URL,
    TMDB_ORIGINAL_SIZE,
    TMDB_POSTER_SIZE,
)
from src.exceptions import NotFoundError
from src.models.catalog import Catalog
from src.models.media import MediaItem, MediaKind
from src.models.user import User
from src.services.addon.schemas import CatalogResponse, Manifest, ManifestCatalog, Meta, MetaLink
from src.services.ordering import OrderingResolver
from src.utils.logging import get_logger

logger = get_logger(__name__)
settings = get_settings()


def image_url(ref: str | None, size: str) -> str | None:
    """Absolute image URL for a TMDB path; absolute URLs pass through."""
    if not ref:
        return None
    if ref.startswith(("http://", "https://")):
        return ref
    path = ref if ref.startswith("/") else f"/{ref}"
    return f"{TMDB_IMAGE_BASE_URL}/{size}{path}"


def iso_release_date(raw: str | None) -> str | None:
    """Normalise a provider date ("2010-07-16") to ISO-8601 at midnight UTC."""
    if not raw:
        return None
    try:
        parsed = date.fromisoformat(raw.strip()[:10])
    except ValueError:
        return None
    return f"{parsed.isoformat()}T00:00:00.000Z"


def search_link(name: str, category: str) -> MetaLink:
    """Link that opens an in-client search for a person."""
    return MetaLink(name=name, category=category, url=f"{STREMIO_SEARCH_URL}?search={quote(name)}")


def build_links(item: MediaItem) -> list[MetaLink]:
    """Rating link first, then cast, then directors/creators."""
    links: list[MetaLink] = []

    if item.imdb_id and item.display_rating:
        links.append(
            MetaLink(
                name=item.display_rating,
                category="imdb",
                url=f"{IMDB_TITLE_URL}/{item.imdb_id}",
            )
        )

    links.extend(search_link(name, "Cast") for name in item.actor_names)
    links.extend(search_link(name, "Directors") for name in item.director_names)
    return links


def build_meta(item: MediaItem) -> Meta:
    """Map one stored media item to its meta record."""
    return Meta(
        id=f"{ADDON_META_PREFIX}:{item.external_id}",
        type=item.kind.value,
        name=item.title,
        poster=image_url(item.poster_ref, TMDB_POSTER_SIZE),
        description=item.description or None,
        rating=item.rating,
        imdbRating=item.display_rating or None,
        genres=list(item.genres) if item.genres else None,
        links=build_links(item) or None,
        runtime=item.runtime or None,
        releaseInfo=item.release_date or None,
        released=iso_release_date(item.release_date),
        lastEpisodeDate=(item.last_episode_date or None) if item.kind is MediaKind.SERIES else None,
        background=image_url(item.background_ref, TMDB_ORIGINAL_SIZE),
        logo=image_url(item.logo_ref, TMDB_ORIGINAL_SIZE),
        actors=item.actors or None,
        directors=item.directors or None,
    )


def parse_catalog_id(raw: str) -> str:
    """Strip the manifest prefix and a trailing ``.json`` from a requested id."""
    catalog_id = raw.removesuffix(".json")
    return catalog_id.removeprefix(ADDON_CATALOG_PREFIX)


def catalog_descriptor(catalog: Catalog) -> ManifestCatalog:
    """One manifest entry per catalog, typed by the catalog's own kind."""
    return ManifestCatalog(
        type=catalog.kind.value,
        id=f"{ADDON_CATALOG_PREFIX}{catalog.id}",
        name=catalog.name,
    )


class FeedRenderer:
    """Read-only projection of stored catalogs into addon documents."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def build_manifest(self, user_id: str) -> dict[str, Any]:
        """Manifest listing every catalog of a user.

        Raises:
            NotFoundError: no such user
        """
        user = await self.db.get(User, user_id)
        if user is None:
            raise NotFoundError("User not found")

        result = await self.db.execute(
            select(Catalog)
            .where(Catalog.user_id == user_id)
            .order_by(Catalog.created_at.asc(), Catalog.id.asc())
        )
        catalogs = result.scalars().all()

        manifest = Manifest(
            id=f"{ADDON_ID_PREFIX}.{user_id}",
            version=ADDON_VERSION,
            name=settings.app_name,
            description=ADDON_DESCRIPTION,
            idPrefixes=[f"{ADDON_META_PREFIX}:"],
            catalogs=[catalog_descriptor(catalog) for catalog in catalogs],
        )
        return manifest.model_dump(exclude_none=True)

    async def build_catalog(self, user_id: str, kind: str, catalog_id: str) -> dict[str, Any]:
        """Ordered metas of one catalog.

        Unknown kinds, unknown catalogs and catalogs of another user all
        yield an empty list rather than an error.
        """
        try:
            requested_kind = MediaKind(kind)
        except ValueError:
            logger.debug(f"Catalog request with unsupported type {kind!r}")
            return {"metas": []}

        catalog = await self.db.get(Catalog, parse_catalog_id(catalog_id))
        if catalog is None or catalog.user_id != user_id:
            return {"metas": []}

        items = await OrderingResolver(self.db).ordered_items(catalog.id)
        # Catalog kind is validated on write; filter anyway
        metas = [build_meta(item) for item in items if item.kind == requested_kind]

        return CatalogResponse(metas=metas).model_dump(exclude_none=True)
