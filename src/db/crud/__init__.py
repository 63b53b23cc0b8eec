"""CRUD operations module."""

from src.db.crud.catalogs import (
    add_catalog_item,
    create_catalog,
    delete_catalog,
    get_catalog,
    get_catalog_items,
    get_catalog_or_404,
    get_user_catalogs,
    remove_catalog_item,
    save_catalog,
)
from src.db.crud.media_items import (
    apply_enrichment,
    get_media_item,
    get_media_items_by_keys,
    get_or_create_media_item,
    upsert_media_items,
)
from src.db.crud.users import create_user, get_all_users, get_user, get_user_by_email

__all__ = [
    "add_catalog_item",
    "apply_enrichment",
    "create_catalog",
    "create_user",
    "delete_catalog",
    "get_all_users",
    "get_catalog",
    "get_catalog_items",
    "get_catalog_or_404",
    "get_media_item",
    "get_media_items_by_keys",
    "get_or_create_media_item",
    "get_user",
    "get_user_by_email",
    "get_user_catalogs",
    "remove_catalog_item",
    "save_catalog",
    "upsert_media_items",
]
