"""Public addon feed consumed by the media client (no session)."""

from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from src.constants import NO_CACHE_HEADERS
from src.db import get_db
from src.exceptions import NotFoundError
from src.services.addon import FeedRenderer

router = APIRouter()

# The client fetches from its own origin
_CORS_HEADERS = {"Access-Control-Allow-Origin": "*"}


@router.get("/{user_id}/manifest.json")
async def get_manifest(
    user_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> JSONResponse:
    """Addon manifest listing the user's catalogs. Never cached."""
    try:
        manifest = await FeedRenderer(db).build_manifest(user_id)
    except NotFoundError as e:
        return JSONResponse(status_code=404, content={"error": e.message}, headers=_CORS_HEADERS)
    return JSONResponse(content=manifest, headers={**NO_CACHE_HEADERS, **_CORS_HEADERS})


@router.get("/{user_id}/catalog/{kind}/{catalog_id}")
async def get_catalog(
    user_id: str,
    kind: str,
    catalog_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> JSONResponse:
    """Ordered metas of one catalog (``cat_<id>.json``)."""
    document = await FeedRenderer(db).build_catalog(user_id, kind, catalog_id)
    return JSONResponse(content=document, headers=_CORS_HEADERS)
