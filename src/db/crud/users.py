"""CRUD operations for user accounts."""

from collections.abc import Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.models.user import User


async def get_user(db: AsyncSession, user_id: str) -> User | None:
    """Get a user by ID."""
    return await db.get(User, user_id)


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    """Get a user by (case-insensitive) email."""
    result = await db.execute(select(User).where(User.email == email.strip().lower()))
    return result.scalar_one_or_none()


async def get_all_users(db: AsyncSession) -> Sequence[User]:
    """Every account, oldest first."""
    result = await db.execute(select(User).order_by(User.created_at.asc(), User.email.asc()))
    return result.scalars().all()


async def create_user(db: AsyncSession, email: str, password_hash: str) -> User:
    """Create an account (flushes, does not commit)."""
    user = User(email=email.strip().lower(), password_hash=password_hash)
    db.add(user)
    await db.flush()
    return user
