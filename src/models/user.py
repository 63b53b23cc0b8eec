"""User model."""

from typing import TYPE_CHECKING

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.models.base import Base, TimestampMixin, new_uuid

if TYPE_CHECKING:
    from src.models.catalog import Catalog


class User(Base, TimestampMixin):
    """User account owning catalogs."""

    __tablename__ = "users"

    # UUID rather than a serial id: it is embedded in the public addon URL
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    # Catalogs are deleted with their owner (links cascade at the FK level)
    catalogs: Mapped[list["Catalog"]] = relationship(
        "Catalog",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="select",
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email})>"
