"""Metadata provider integrations."""

from src.services.metadata.tmdb import TMDBService, tmdb_service

__all__ = [
    "TMDBService",
    "tmdb_service",
]
