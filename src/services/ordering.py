"""Ordering of catalog membership.

Every link carries an integer ``position``; listing a catalog is a single
ascending sort on it. A full save rewrites positions as ``0..N-1`` in one
transaction, an incremental add takes ``max(position) + 1``. Positions are
unique per catalog, so the sort never sees ties.
"""

from collections import Counter
from collections.abc import Iterable, Sequence
from typing import Protocol

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.exceptions import NotFoundError, TransactionError, ValidationError
from src.models.catalog import Catalog, CatalogItem
from src.models.media import MediaItem, MediaKind
from src.utils.logging import get_logger

logger = get_logger(__name__)


class HasNaturalKey(Protocol):
    @property
    def natural_key(self) -> tuple[str, MediaKind]: ...


def _format_key(key: tuple[str, MediaKind]) -> str:
    external_id, kind = key
    return f"{kind.value}/{external_id}"


def ensure_unique_keys(refs: Iterable[HasNaturalKey]) -> None:
    """Reject a batch that references the same (external_id, kind) twice."""
    counts = Counter(ref.natural_key for ref in refs)
    duplicates = [_format_key(key) for key, count in counts.items() if count > 1]
    if duplicates:
        raise ValidationError(f"Duplicate items in catalog: {', '.join(sorted(duplicates))}")


def ensure_kind(catalog: Catalog, kind: MediaKind, label: str = "") -> None:
    """Reject an item whose kind differs from the catalog kind."""
    if kind != catalog.kind:
        subject = f"'{label}'" if label else "Item"
        raise ValidationError(
            f"{subject} is a {kind.value} but catalog '{catalog.name}' holds {catalog.kind.value} items"
        )


class OrderingResolver:
    """Reads and writes catalog membership in a stable order."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def ordered_items(self, catalog_id: str) -> list[MediaItem]:
        """Items of a catalog sorted by position (one SELECT, consistent snapshot)."""
        result = await self.db.execute(
            select(MediaItem)
            .join(CatalogItem, CatalogItem.media_item_id == MediaItem.id)
            .where(CatalogItem.catalog_id == catalog_id)
            .order_by(CatalogItem.position.asc())
        )
        return list(result.scalars().all())

    async def next_position(self, catalog_id: str) -> int:
        """Position greater than every existing one in the catalog."""
        result = await self.db.execute(
            select(func.max(CatalogItem.position)).where(CatalogItem.catalog_id == catalog_id)
        )
        current = result.scalar_one_or_none()
        return 0 if current is None else current + 1

    async def replace(self, catalog: Catalog, items: Sequence[MediaItem]) -> list[MediaItem]:
        """Atomically swap the whole membership of a catalog.

        Items keep the order they are given in. Whatever else is pending in
        the session (e.g. freshly upserted media items) commits or rolls
        back together with the links.

        Raises:
            ValidationError: duplicate natural keys or a kind mismatch
            TransactionError: the database rejected the write; nothing changed
        """
        ensure_unique_keys(items)
        for item in items:
            ensure_kind(catalog, item.kind, item.title)

        # Rollback expires loaded objects, keep plain values
        catalog_id = catalog.id
        media_item_ids = [item.id for item in items]

        try:
            await self.db.execute(delete(CatalogItem).where(CatalogItem.catalog_id == catalog_id))
            self.db.add_all(
                [
                    CatalogItem(catalog_id=catalog_id, media_item_id=media_item_id, position=position)
                    for position, media_item_id in enumerate(media_item_ids)
                ]
            )
            await self.db.flush()
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Replacing items of catalog {catalog_id} failed, rolled back: {e}")
            raise TransactionError("Catalog could not be saved, please retry") from e

        logger.info(f"Catalog {catalog_id} saved with {len(media_item_ids)} items")
        return await self.ordered_items(catalog_id)

    async def append(self, catalog: Catalog, item: MediaItem) -> CatalogItem:
        """Add one item after the current last one (flushes, does not commit).

        Raises:
            ValidationError: kind mismatch or item already in the catalog
            TransactionError: a concurrent add took the same position
        """
        ensure_kind(catalog, item.kind, item.title)

        existing = await self.db.execute(
            select(CatalogItem.id).where(
                CatalogItem.catalog_id == catalog.id,
                CatalogItem.media_item_id == item.id,
            )
        )
        if existing.scalar_one_or_none() is not None:
            raise ValidationError(f"'{item.title}' is already in catalog '{catalog.name}'")

        link = CatalogItem(
            catalog_id=catalog.id,
            media_item_id=item.id,
            position=await self.next_position(catalog.id),
        )
        self.db.add(link)
        try:
            await self.db.flush()
        except IntegrityError as e:
            await self.db.rollback()
            raise TransactionError("Catalog changed concurrently, please retry") from e
        return link

    async def remove(self, catalog: Catalog, item: MediaItem) -> None:
        """Drop one item; remaining positions keep their relative order."""
        result = await self.db.execute(
            delete(CatalogItem).where(
                CatalogItem.catalog_id == catalog.id,
                CatalogItem.media_item_id == item.id,
            )
        )
        if result.rowcount == 0:
            raise NotFoundError(f"'{item.title}' is not in catalog '{catalog.name}'")
