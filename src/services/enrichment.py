"""Fill media items with TMDB details (cast, ratings, artwork...)."""

from dataclasses import dataclass, field

from sqlalchemy.ext.asyncio import AsyncSession

from src.db.crud.media_items import apply_enrichment
from src.exceptions import NotFoundError, UpstreamError
from src.models.catalog import Catalog
from src.models.media import MediaItem
from src.services.metadata.tmdb import tmdb_service
from src.services.ordering import OrderingResolver
from src.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class EnrichmentResult:
    """Result of refreshing a catalog."""

    updated: int = 0
    failed: int = 0
    errors: list[str] = field(default_factory=list)


async def enrich_item(item: MediaItem) -> MediaItem:
    """Fetch details for one item and copy them onto it (no commit).

    Raises:
        NotFoundError: TMDB does not know the title
        UpstreamError: TMDB unavailable
    """
    details = await tmdb_service.get_media_details(item.external_id, item.kind)
    return apply_enrichment(item, details)


async def try_enrich_item(db: AsyncSession, item: MediaItem) -> bool:
    """Enrich and commit; a TMDB failure leaves the item as it was."""
    try:
        await enrich_item(item)
    except (NotFoundError, UpstreamError) as e:
        logger.warning(f"Could not enrich {item.kind.value}/{item.external_id}: {e.message}")
        return False
    await db.commit()
    return True


async def refresh_catalog(db: AsyncSession, catalog: Catalog) -> EnrichmentResult:
    """Re-fetch details for every item of a catalog, continuing past failures."""
    result = EnrichmentResult()

    for item in await OrderingResolver(db).ordered_items(catalog.id):
        try:
            await enrich_item(item)
            result.updated += 1
        except (NotFoundError, UpstreamError) as e:
            logger.warning(f"Enrichment failed for {item.kind.value}/{item.external_id}: {e.message}")
            result.failed += 1
            result.errors.append(f"{item.title}: {e.message}")

    await db.commit()
    logger.info(f"Refreshed catalog {catalog.id}: {result.updated} updated, {result.failed} failed")
    return result
