"""Backup export/import endpoints."""

from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth import get_current_user, require_admin
from src.db import get_db
from src.models.user import User
from src.services.backup import BackupCodec, ImportResult, backup_filename

router = APIRouter()


class ImportResponse(BaseModel):
    """Import operation response."""

    message: str
    users: int = 0
    catalogs: int
    items: int
    skipped: int
    errors: list[str] | None = None


def _import_response(result: ImportResult) -> ImportResponse:
    return ImportResponse(
        message="Data imported successfully",
        users=result.users,
        catalogs=result.catalogs,
        items=result.items,
        skipped=result.skipped,
        errors=result.reported_errors or None,
    )


def _attachment(document: dict[str, Any]) -> JSONResponse:
    return JSONResponse(
        content=document,
        headers={"Content-Disposition": f'attachment; filename="{backup_filename()}"'},
    )


@router.get("/export")
async def export_backup(
    user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> JSONResponse:
    """Download every catalog of the current user as a JSON backup."""
    return _attachment(await BackupCodec(db).export_user(user))


@router.post("/import", response_model=ImportResponse)
async def import_backup(
    document: Annotated[Any, Body()],
    user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> ImportResponse:
    """Restore a backup into the current account (always creates new catalogs)."""
    return _import_response(await BackupCodec(db).import_for_user(user, document))


@router.get("/admin/export")
async def export_full_backup(
    admin: Annotated[User, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db)],
    include_credentials: bool = False,
) -> JSONResponse:
    """Download every account and catalog. Password hashes only on request."""
    return _attachment(await BackupCodec(db).export_all(admin, include_credentials=include_credentials))


@router.post("/admin/import", response_model=ImportResponse)
async def import_full_backup(
    document: Annotated[Any, Body()],
    admin: Annotated[User, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> ImportResponse:
    """Restore a full backup, creating missing accounts."""
    return _import_response(await BackupCodec(db).import_all(admin, document))
