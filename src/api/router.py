"""Application routers."""

from fastapi import APIRouter

from src.api.addon import router as addon_feed_router
from src.api.auth import router as auth_router
from src.api.backup import router as backup_endpoints_router
from src.api.catalogs import router as catalogs_router
from src.api.tmdb import router as tmdb_router

api_router = APIRouter(prefix="/api")

api_router.include_router(auth_router, prefix="/auth", tags=["auth"])
api_router.include_router(catalogs_router, prefix="/catalogs", tags=["catalogs"])
api_router.include_router(tmdb_router, prefix="/tmdb", tags=["tmdb"])

# Mounted at the root: the addon URL is what users paste into the client
addon_router = APIRouter(prefix="/addon", tags=["addon"])
addon_router.include_router(addon_feed_router)

backup_router = APIRouter(prefix="/backup", tags=["backup"])
backup_router.include_router(backup_endpoints_router)
