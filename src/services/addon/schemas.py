"""
Addon protocol models.

Every optional field defaults to None and documents are dumped with
``exclude_none=True``: the media client tolerates missing fields but not
null-typed ones.
"""

from typing import Literal

from pydantic import BaseModel, Field


class ManifestCatalog(BaseModel):
    """Catalog definition in manifest"""

    type: Literal["movie", "series"]
    id: str
    name: str
    extra: list[dict] = Field(default_factory=list)


class Manifest(BaseModel):
    """Addon manifest"""

    id: str
    version: str
    name: str
    description: str
    resources: list[str] = ["catalog"]
    types: list[str] = ["movie", "series"]
    idPrefixes: list[str]
    catalogs: list[ManifestCatalog]
    behaviorHints: dict = {
        "configurable": False,
        "configurationRequired": False,
    }


class MetaLink(BaseModel):
    """Clickable link shown on a meta page"""

    name: str
    category: str
    url: str


class Meta(BaseModel):
    """Catalog item (poster) metadata"""

    id: str  # "tmdb:{external_id}"
    type: Literal["movie", "series"]
    name: str
    poster: str | None = None
    description: str | None = None
    rating: float | None = None
    imdbRating: str | None = None
    genres: list[str] | None = None
    links: list[MetaLink] | None = None
    runtime: str | None = None
    releaseInfo: str | None = None
    released: str | None = None
    lastEpisodeDate: str | None = None
    background: str | None = None
    logo: str | None = None
    actors: str | None = None
    directors: str | None = None


class CatalogResponse(BaseModel):
    """Catalog endpoint response"""

    metas: list[Meta] = Field(default_factory=list)
