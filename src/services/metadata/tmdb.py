"""TMDB API integration: search proxy and detail enrichment."""

from typing import Any

import httpx

from src.config import get_settings
from src.constants import (
    PEOPLE_SEPARATOR,
    TMDB_API_BASE_URL,
    TMDB_MEDIA_TYPE_MOVIE,
    TMDB_MEDIA_TYPE_TV,
    TMDB_TOP_CAST,
)
from src.exceptions import NotFoundError, UpstreamError
from src.models.media import MediaKind
from src.utils.cache import CACHE_TTL_MEDIUM, CACHE_TTL_SHORT, cached
from src.utils.http_client import get_tmdb_client
from src.utils.logging import get_logger

logger = get_logger(__name__)
settings = get_settings()


def format_movie_runtime(minutes: int | None) -> str | None:
    """148 -> "2h 28min"."""
    if not minutes:
        return None
    return f"{minutes // 60}h {minutes % 60}min"


def format_display_rating(vote_average: float | None) -> str | None:
    """8.364 -> "8.4"; no label for unrated titles."""
    if not vote_average:
        return None
    return f"{vote_average:.1f}"


def pick_logo(images: dict[str, Any] | None, language: str) -> str | None:
    """Prefer a logo in the configured language, then English, then any."""
    logos = (images or {}).get("logos") or []
    for wanted in (language, "en"):
        for logo in logos:
            if logo.get("iso_639_1") == wanted and logo.get("file_path"):
                return logo["file_path"]
    for logo in logos:
        if logo.get("file_path"):
            return logo["file_path"]
    return None


def _names(people: list[dict[str, Any]] | None) -> list[str]:
    # Names become "#"-joined in storage, so the separator cannot survive
    return [
        person["name"].replace(PEOPLE_SEPARATOR, " ").strip()
        for person in people or []
        if person.get("name")
    ]


class TMDBService:
    """Service for searching TMDB and fetching title details."""

    def __init__(self) -> None:
        self.api_key = settings.tmdb_api_key
        self.language = settings.tmdb_language
        # Support both API key v3 and Bearer token
        if self.api_key and self.api_key.startswith("eyJ"):
            # Bearer token (API Read Access Token)
            self.headers = {
                "Authorization": f"Bearer {self.api_key}",
                "Accept": "application/json",
            }
            self.use_api_key_param = False
        else:
            # API key v3 - pass as query parameter
            self.headers = {"Accept": "application/json"}
            self.use_api_key_param = True

    @property
    def image_language(self) -> str:
        return self.language.split("-")[0]

    def _add_api_key(self, params: dict) -> dict:
        """Add API key to params if using v3 key."""
        if self.use_api_key_param:
            params["api_key"] = self.api_key
        return params

    async def _get(self, path: str, params: dict[str, Any]) -> dict[str, Any]:
        """GET a TMDB endpoint.

        Raises:
            NotFoundError: TMDB answered 404
            UpstreamError: missing key, timeout, transport error or other non-200
        """
        if not self.api_key:
            raise UpstreamError("TMDB API key is not configured")

        query = self._add_api_key({k: v for k, v in params.items() if v is not None})
        client = get_tmdb_client()
        try:
            response = await client.get(f"{TMDB_API_BASE_URL}{path}", params=query, headers=self.headers)
        except httpx.TimeoutException as e:
            logger.warning(f"TMDB {path} timed out")
            raise UpstreamError("TMDB did not answer in time") from e
        except httpx.HTTPError as e:
            logger.warning(f"TMDB {path} failed: {e}")
            raise UpstreamError("TMDB is unreachable") from e

        if response.status_code == 404:
            raise NotFoundError("Title not found on TMDB")
        if response.status_code != 200:
            logger.warning(f"TMDB {path} answered {response.status_code}")
            raise UpstreamError(f"TMDB answered with status {response.status_code}")

        return response.json()

    @cached("tmdb:search", ttl=CACHE_TTL_SHORT)
    async def search(self, query: str, search_type: str = "multi", page: int = 1) -> dict[str, Any]:
        """Search TMDB (``multi``, ``movie`` or ``tv``); raw TMDB payload."""
        return await self._get(
            f"/search/{search_type}",
            {"query": query, "language": self.language, "include_adult": "false", "page": page},
        )

    async def discover(
        self,
        tmdb_type: str = TMDB_MEDIA_TYPE_MOVIE,
        with_genres: str | None = None,
        primary_release_year: int | None = None,
        sort_by: str | None = None,
        page: int = 1,
    ) -> dict[str, Any]:
        """Browse TMDB by genre/year; raw TMDB payload."""
        return await self._get(
            f"/discover/{tmdb_type}",
            {
                "language": self.language,
                "with_genres": with_genres,
                "primary_release_year": primary_release_year,
                "sort_by": sort_by,
                "page": page,
            },
        )

    async def get_media_details(self, external_id: str, kind: MediaKind) -> dict[str, Any]:
        """Enrichment fields for a title, keyed like MediaItem columns."""
        if kind is MediaKind.MOVIE:
            return await self.get_movie_details(external_id)
        return await self.get_series_details(external_id)

    @cached("tmdb:movie", ttl=CACHE_TTL_MEDIUM)
    async def get_movie_details(self, tmdb_id: str) -> dict[str, Any]:
        """Movie details with cast, directors, IMDb id and logo."""
        movie = await self._get(
            f"/{TMDB_MEDIA_TYPE_MOVIE}/{tmdb_id}",
            {
                "language": self.language,
                "append_to_response": "credits,external_ids,images",
                "include_image_language": f"{self.image_language},en,null",
            },
        )

        credits = movie.get("credits") or {}
        directors = [crew for crew in credits.get("crew", []) if crew.get("job") == "Director"]

        return {
            "title": movie.get("title") or movie.get("original_title"),
            "poster_ref": movie.get("poster_path"),
            "genres": [genre["name"] for genre in movie.get("genres", []) if genre.get("name")],
            "description": movie.get("overview") or None,
            "rating": movie.get("vote_average") or None,
            "display_rating": format_display_rating(movie.get("vote_average")),
            "runtime": format_movie_runtime(movie.get("runtime")),
            "release_date": movie.get("release_date") or None,
            "last_episode_date": None,
            "background_ref": movie.get("backdrop_path"),
            "logo_ref": pick_logo(movie.get("images"), self.image_language),
            "actors": _names(credits.get("cast", [])[:TMDB_TOP_CAST]),
            "directors": _names(directors),
            "imdb_id": (movie.get("external_ids") or {}).get("imdb_id") or movie.get("imdb_id"),
        }

    @cached("tmdb:tv", ttl=CACHE_TTL_MEDIUM)
    async def get_series_details(self, tmdb_id: str) -> dict[str, Any]:
        """Series details with cast, creators, IMDb id, logo and last air date."""
        show = await self._get(
            f"/{TMDB_MEDIA_TYPE_TV}/{tmdb_id}",
            {
                "language": self.language,
                "append_to_response": "credits,external_ids,images",
                "include_image_language": f"{self.image_language},en,null",
            },
        )

        credits = show.get("credits") or {}
        episode_runtimes = show.get("episode_run_time") or []
        last_episode = show.get("last_episode_to_air") or {}

        return {
            "title": show.get("name") or show.get("original_name"),
            "poster_ref": show.get("poster_path"),
            "genres": [genre["name"] for genre in show.get("genres", []) if genre.get("name")],
            "description": show.get("overview") or None,
            "rating": show.get("vote_average") or None,
            "display_rating": format_display_rating(show.get("vote_average")),
            "runtime": f"{episode_runtimes[0]}min" if episode_runtimes else None,
            "release_date": show.get("first_air_date") or None,
            "last_episode_date": last_episode.get("air_date") or show.get("last_air_date") or None,
            "background_ref": show.get("backdrop_path"),
            "logo_ref": pick_logo(show.get("images"), self.image_language),
            "actors": _names(credits.get("cast", [])[:TMDB_TOP_CAST]),
            "directors": _names(show.get("created_by")),
            "imdb_id": (show.get("external_ids") or {}).get("imdb_id"),
        }


# Global service instance
tmdb_service = TMDBService()
