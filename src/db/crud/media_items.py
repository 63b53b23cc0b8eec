"""CRUD operations for the shared media item store."""

from collections.abc import Iterable, Sequence
from typing import Any

from sqlalchemy import and_, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.exceptions import TransactionError
from src.models.media import MediaItem, MediaKind, join_people
from src.models.schemas import MediaRef
from src.utils.logging import get_logger

logger = get_logger(__name__)

# Columns a TMDB detail lookup may fill in
ENRICHMENT_FIELDS = (
    "genres",
    "description",
    "rating",
    "display_rating",
    "runtime",
    "release_date",
    "last_episode_date",
    "background_ref",
    "logo_ref",
    "actors",
    "directors",
    "imdb_id",
)


async def get_media_item(
    db: AsyncSession,
    external_id: str,
    kind: MediaKind,
) -> MediaItem | None:
    """Get a media item by its natural key."""
    result = await db.execute(
        select(MediaItem).where(MediaItem.external_id == external_id, MediaItem.kind == kind)
    )
    return result.scalar_one_or_none()


async def get_media_items_by_keys(
    db: AsyncSession,
    keys: Iterable[tuple[str, MediaKind]],
) -> dict[tuple[str, MediaKind], MediaItem]:
    """Fetch many items at once, keyed by (external_id, kind)."""
    conditions = [
        and_(MediaItem.external_id == external_id, MediaItem.kind == kind)
        for external_id, kind in set(keys)
    ]
    if not conditions:
        return {}

    result = await db.execute(select(MediaItem).where(or_(*conditions)))
    return {item.natural_key: item for item in result.scalars().all()}


async def get_or_create_media_item(
    db: AsyncSession,
    ref: MediaRef,
    update_existing: bool = False,
) -> tuple[MediaItem, bool]:
    """Get existing media item or create new one.

    Args:
        ref: Natural key plus display fields
        update_existing: Refresh title/poster of an existing record

    Returns:
        (item, created)

    Raises:
        TransactionError: a concurrent insert won the natural key; the
            session was rolled back
    """
    item = await get_media_item(db, ref.external_id, ref.kind)

    if item is None:
        item = MediaItem(
            external_id=ref.external_id,
            kind=ref.kind,
            title=ref.title,
            poster_ref=ref.poster_ref,
        )
        db.add(item)
        try:
            await db.flush()
        except IntegrityError as e:
            # Another session stored the same natural key first
            await db.rollback()
            logger.warning(f"Concurrent insert of {ref.kind.value}/{ref.external_id}: {e}")
            raise TransactionError("Media item changed concurrently, please retry") from e
        return item, True

    if update_existing:
        item.title = ref.title
        if ref.poster_ref:
            item.poster_ref = ref.poster_ref
    return item, False


async def upsert_media_items(
    db: AsyncSession,
    refs: Sequence[MediaRef],
) -> list[MediaItem]:
    """Resolve every reference to exactly one stored item, in input order.

    Existing records get their title/poster refreshed, missing ones are
    created. Enrichment fields are left alone.
    """
    existing = await get_media_items_by_keys(db, (ref.natural_key for ref in refs))

    items: list[MediaItem] = []
    created = 0
    for ref in refs:
        item = existing.get(ref.natural_key)
        if item is None:
            item = MediaItem(
                external_id=ref.external_id,
                kind=ref.kind,
                title=ref.title,
                poster_ref=ref.poster_ref,
            )
            db.add(item)
            existing[ref.natural_key] = item
            created += 1
        else:
            item.title = ref.title
            if ref.poster_ref:
                item.poster_ref = ref.poster_ref
        items.append(item)

    await db.flush()
    logger.debug(f"Resolved {len(items)} media items ({created} created)")
    return items


def apply_enrichment(item: MediaItem, details: dict[str, Any]) -> MediaItem:
    """Copy TMDB detail fields onto an item.

    Keys missing from ``details`` keep their stored value; people lists are
    stored joined.
    """
    for field in ENRICHMENT_FIELDS:
        if field not in details:
            continue
        value = details[field]
        if field in ("actors", "directors") and isinstance(value, list):
            value = join_people(value)
        setattr(item, field, value)

    if details.get("poster_ref") and not item.poster_ref:
        item.poster_ref = details["poster_ref"]
    return item
