"""SQLAlchemy models."""

from src.models.base import Base
from src.models.catalog import Catalog, CatalogItem
from src.models.media import MediaItem, MediaKind
from src.models.user import User

__all__ = [
    "Base",
    "User",
    "MediaItem",
    "MediaKind",
    "Catalog",
    "CatalogItem",
]
