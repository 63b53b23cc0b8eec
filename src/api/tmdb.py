"""TMDB proxy endpoints used by the catalog editor."""

from typing import Annotated, Any, Literal

from fastapi import APIRouter, Depends, Query

from src.auth import get_current_user
from src.models.media import MediaKind
from src.models.user import User
from src.services.metadata import tmdb_service

router = APIRouter()


@router.get("/search")
async def search_tmdb(
    user: Annotated[User, Depends(get_current_user)],
    query: Annotated[str, Query(min_length=1, max_length=200)],
    type: Annotated[Literal["multi", "movie", "tv"], Query()] = "multi",
    page: Annotated[int, Query(ge=1, le=500)] = 1,
) -> dict[str, Any]:
    """Search movies and series; TMDB's result page is returned as is."""
    return await tmdb_service.search(query.strip(), search_type=type, page=page)


@router.get("/discover")
async def discover_tmdb(
    user: Annotated[User, Depends(get_current_user)],
    type: Annotated[Literal["movie", "tv"], Query()] = "movie",
    with_genres: Annotated[str | None, Query()] = None,
    primary_release_year: Annotated[int | None, Query(ge=1870, le=2100)] = None,
    sort_by: Annotated[str | None, Query()] = None,
    page: Annotated[int, Query(ge=1, le=500)] = 1,
) -> dict[str, Any]:
    """Browse TMDB by genre and year."""
    return await tmdb_service.discover(
        tmdb_type=type,
        with_genres=with_genres,
        primary_release_year=primary_release_year,
        sort_by=sort_by,
        page=page,
    )


@router.get("/{kind}/{external_id}")
async def get_tmdb_details(
    kind: MediaKind,
    external_id: str,
    user: Annotated[User, Depends(get_current_user)],
) -> dict[str, Any]:
    """Details of one title, in the shape stored on media items."""
    return await tmdb_service.get_media_details(external_id, kind)
