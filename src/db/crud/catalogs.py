"""CRUD operations for catalogs and their membership."""

from collections.abc import Sequence

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.db.crud.media_items import get_media_item, get_or_create_media_item, upsert_media_items
from src.exceptions import NotFoundError, TransactionError
from src.models.catalog import Catalog, CatalogItem
from src.models.media import MediaItem, MediaKind
from src.models.schemas import MediaRef
from src.services.ordering import OrderingResolver, ensure_kind, ensure_unique_keys
from src.utils.logging import get_logger

logger = get_logger(__name__)


async def get_user_catalogs(db: AsyncSession, user_id: str) -> Sequence[Catalog]:
    """Catalogs of a user, oldest first."""
    result = await db.execute(
        select(Catalog)
        .where(Catalog.user_id == user_id)
        .order_by(Catalog.created_at.asc(), Catalog.id.asc())
    )
    return result.scalars().all()


async def get_catalog(
    db: AsyncSession,
    catalog_id: str,
    user_id: str,
) -> Catalog | None:
    """Get a single catalog by ID with user isolation."""
    result = await db.execute(
        select(Catalog).where(Catalog.id == catalog_id, Catalog.user_id == user_id)
    )
    return result.scalar_one_or_none()


async def get_catalog_or_404(db: AsyncSession, catalog_id: str, user_id: str) -> Catalog:
    """Like get_catalog, but unknown and foreign catalogs raise NotFoundError."""
    catalog = await get_catalog(db, catalog_id, user_id)
    if catalog is None:
        raise NotFoundError("Catalog not found")
    return catalog


async def get_catalog_items(db: AsyncSession, catalog_id: str) -> list[MediaItem]:
    """Ordered members of a catalog."""
    return await OrderingResolver(db).ordered_items(catalog_id)


async def create_catalog(
    db: AsyncSession,
    user_id: str,
    name: str,
    kind: MediaKind,
) -> Catalog:
    """Create an empty catalog."""
    try:
        catalog = Catalog(user_id=user_id, name=name.strip(), kind=kind)
        db.add(catalog)
        await db.commit()
        await db.refresh(catalog)
        logger.info(f"Created {kind.value} catalog {catalog.id} for user {user_id}")
        return catalog
    except Exception:
        await db.rollback()
        raise


async def save_catalog(
    db: AsyncSession,
    catalog: Catalog,
    name: str | None = None,
    refs: Sequence[MediaRef] | None = None,
) -> list[MediaItem]:
    """Rename a catalog and/or replace its full ordered membership.

    Every reference is validated before anything is written: the batch must
    not repeat a natural key and every kind must match the catalog kind.

    Raises:
        ValidationError: duplicate natural keys or a kind mismatch
        TransactionError: the database rejected the write; nothing changed
    """
    if refs is not None:
        ensure_unique_keys(refs)
        for ref in refs:
            ensure_kind(catalog, ref.kind, ref.title)

    catalog_id = catalog.id
    if name:
        catalog.name = name.strip()

    if refs is None:
        await db.commit()
        return await get_catalog_items(db, catalog_id)

    # New media items and the link swap commit or roll back together
    try:
        items = await upsert_media_items(db, refs)
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Storing items of catalog {catalog_id} failed, rolled back: {e}")
        raise TransactionError("Catalog could not be saved, please retry") from e
    return await OrderingResolver(db).replace(catalog, items)


async def add_catalog_item(
    db: AsyncSession,
    catalog: Catalog,
    ref: MediaRef,
) -> MediaItem:
    """Append one item at the end of a catalog (creating it in the store if needed)."""
    ensure_kind(catalog, ref.kind, ref.title)

    item, created = await get_or_create_media_item(db, ref)
    await OrderingResolver(db).append(catalog, item)
    await db.commit()

    logger.info(
        f"Added {ref.kind.value}/{ref.external_id} to catalog {catalog.id}"
        f"{' (new media item)' if created else ''}"
    )
    return item


async def remove_catalog_item(
    db: AsyncSession,
    catalog: Catalog,
    external_id: str,
    kind: MediaKind,
) -> None:
    """Remove one item from a catalog. The media item itself stays in the store."""
    item = await get_media_item(db, external_id, kind)
    if item is None:
        raise NotFoundError("Media item not found")

    await OrderingResolver(db).remove(catalog, item)
    await db.commit()


async def delete_catalog(db: AsyncSession, catalog: Catalog) -> None:
    """Delete a catalog and its links."""
    catalog_id = catalog.id
    try:
        await db.execute(delete(CatalogItem).where(CatalogItem.catalog_id == catalog_id))
        await db.delete(catalog)
        await db.commit()
    except Exception:
        await db.rollback()
        raise
    logger.info(f"Deleted catalog {catalog_id}")
