"""Authentication API endpoints (email/password, signed session cookie)."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth import get_current_user, hash_password, is_admin, verify_password
from src.config import get_settings
from src.db import get_db
from src.db.crud import create_user, get_user_by_email
from src.exceptions import ValidationError
from src.models.schemas import UserCredentials, UserMe
from src.models.user import User
from src.utils.logging import get_logger

router = APIRouter()
settings = get_settings()
logger = get_logger(__name__)


def addon_url(user: User) -> str:
    """URL to paste into the media client to install the user's addon."""
    return f"{settings.app_url.rstrip('/')}/addon/{user.id}/manifest.json"


def _me(user: User) -> UserMe:
    return UserMe(
        id=user.id,
        email=user.email,
        created_at=user.created_at,
        addon_url=addon_url(user),
        is_admin=is_admin(user),
    )


@router.post("/register", response_model=UserMe, status_code=201)
async def register(
    data: UserCredentials,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> UserMe:
    """Create an account and log it in."""
    if await get_user_by_email(db, data.email):
        raise ValidationError("Email already registered")

    try:
        user = await create_user(db, email=data.email, password_hash=hash_password(data.password))
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        raise ValidationError("Email already registered") from e

    request.session["user_id"] = user.id
    logger.info(f"Registered user {user.id}")
    return _me(user)


@router.post("/login", response_model=UserMe)
async def login(
    data: UserCredentials,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> UserMe:
    """Check credentials and store the user in the session."""
    user = await get_user_by_email(db, data.email)
    if not user or not verify_password(data.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )

    request.session["user_id"] = user.id
    return _me(user)


@router.post("/logout")
async def logout(request: Request) -> dict:
    """Clear session."""
    request.session.clear()
    return {"message": "Logged out"}


@router.get("/me", response_model=UserMe)
async def get_me(user: Annotated[User, Depends(get_current_user)]) -> UserMe:
    """Get current user info."""
    return _me(user)
