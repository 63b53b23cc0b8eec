"""Authentication dependencies for FastAPI."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.config import get_settings
from src.db import get_db
from src.exceptions import PermissionDeniedError
from src.models.user import User


def is_admin(user: User) -> bool:
    """Whether the account may run full-database backups."""
    return user.email.lower() in get_settings().admin_emails


async def get_optional_user(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> User | None:
    """Get current user from session if logged in."""
    user_id = request.session.get("user_id")
    if not user_id:
        return None

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    # If user_id in session but user doesn't exist in DB, clear stale session
    if not user:
        request.session.clear()

    return user


async def get_current_user(
    user: Annotated[User | None, Depends(get_optional_user)],
) -> User:
    """Get current user, raising 401 if not authenticated."""
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )
    return user


async def require_admin(
    user: Annotated[User, Depends(get_current_user)],
) -> User:
    """Current user, provided it is listed in ADMIN_EMAILS."""
    if not is_admin(user):
        raise PermissionDeniedError("Administrator access required")
    return user
