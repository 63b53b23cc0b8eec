"""Addon feed (manifest and catalog documents)."""

from src.services.addon.renderer import FeedRenderer, build_meta, parse_catalog_id

__all__ = [
    "FeedRenderer",
    "build_meta",
    "parse_catalog_id",
]
