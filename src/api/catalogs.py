"""Catalog editing API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth import get_current_user
from src.db import get_db
from src.db.crud import (
    add_catalog_item,
    create_catalog,
    delete_catalog,
    get_catalog_items,
    get_catalog_or_404,
    get_user_catalogs,
    remove_catalog_item,
    save_catalog,
)
from src.models.catalog import Catalog
from src.models.media import MediaItem, MediaKind
from src.models.schemas import (
    CatalogCreate,
    CatalogItemAdd,
    CatalogRead,
    CatalogUpdate,
    EnrichResponse,
    MediaItemRead,
)
from src.models.user import User
from src.services.enrichment import refresh_catalog, try_enrich_item

router = APIRouter()


def _catalog_read(catalog: Catalog, items: list[MediaItem]) -> CatalogRead:
    # Catalog.items is never lazy-loaded; items come from the ordering resolver
    return CatalogRead(
        id=catalog.id,
        name=catalog.name,
        kind=catalog.kind,
        created_at=catalog.created_at,
        items=[MediaItemRead.from_item(item) for item in items],
    )


@router.get("", response_model=list[CatalogRead])
async def list_catalogs(
    user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> list[CatalogRead]:
    """List the user's catalogs with their ordered items."""
    return [
        _catalog_read(catalog, await get_catalog_items(db, catalog.id))
        for catalog in await get_user_catalogs(db, user.id)
    ]


@router.post("", response_model=CatalogRead, status_code=201)
async def create_catalog_endpoint(
    data: CatalogCreate,
    user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> CatalogRead:
    """Create an empty catalog of the given type."""
    catalog = await create_catalog(db, user_id=user.id, name=data.name, kind=data.kind)
    return _catalog_read(catalog, [])


@router.get("/{catalog_id}", response_model=CatalogRead)
async def get_catalog_endpoint(
    catalog_id: str,
    user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> CatalogRead:
    """Get one catalog with its ordered items."""
    catalog = await get_catalog_or_404(db, catalog_id, user.id)
    return _catalog_read(catalog, await get_catalog_items(db, catalog.id))


@router.put("/{catalog_id}", response_model=CatalogRead)
async def update_catalog_endpoint(
    catalog_id: str,
    data: CatalogUpdate,
    user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> CatalogRead:
    """Rename a catalog and/or replace its items (in the order given)."""
    catalog = await get_catalog_or_404(db, catalog_id, user.id)
    items = await save_catalog(db, catalog, name=data.name, refs=data.items)
    return _catalog_read(catalog, items)


@router.post("/{catalog_id}/items", response_model=MediaItemRead, status_code=201)
async def add_item_endpoint(
    catalog_id: str,
    data: CatalogItemAdd,
    user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> MediaItemRead:
    """Append one item to the end of a catalog.

    With ``enrich`` (default) the item is filled with TMDB details; a TMDB
    failure does not undo the add.
    """
    catalog = await get_catalog_or_404(db, catalog_id, user.id)
    item = await add_catalog_item(db, catalog, data)
    if data.enrich:
        await try_enrich_item(db, item)
    return MediaItemRead.from_item(item)


@router.delete("/{catalog_id}/items/{kind}/{external_id}", status_code=204)
async def remove_item_endpoint(
    catalog_id: str,
    kind: MediaKind,
    external_id: str,
    user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Response:
    """Remove one item from a catalog."""
    catalog = await get_catalog_or_404(db, catalog_id, user.id)
    await remove_catalog_item(db, catalog, external_id, kind)
    return Response(status_code=204)


@router.post("/{catalog_id}/enrich", response_model=EnrichResponse)
async def enrich_catalog_endpoint(
    catalog_id: str,
    user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> EnrichResponse:
    """Refresh TMDB details of every item in a catalog."""
    catalog = await get_catalog_or_404(db, catalog_id, user.id)
    result = await refresh_catalog(db, catalog)
    return EnrichResponse(
        updated=result.updated,
        failed=result.failed,
        errors=result.errors[:10] if result.errors else None,
    )


@router.delete("/{catalog_id}", status_code=204)
async def delete_catalog_endpoint(
    catalog_id: str,
    user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Response:
    """Delete a catalog. Its media items stay in the shared store."""
    catalog = await get_catalog_or_404(db, catalog_id, user.id)
    await delete_catalog(db, catalog)
    return Response(status_code=204)
