"""Catalog aggregate and its membership links."""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, Enum, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.models.base import Base, TimestampMixin, new_uuid, utcnow
from src.models.media import MediaItem, MediaKind

if TYPE_CHECKING:
    from src.models.user import User


class Catalog(Base, TimestampMixin):
    """Named, typed, ordered list of media items owned by a user."""

    __tablename__ = "catalogs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    user_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    kind: Mapped[MediaKind] = mapped_column(Enum(MediaKind), nullable=False)

    # Relationships
    user: Mapped["User"] = relationship("User", back_populates="catalogs")
    # Membership is read through OrderingResolver; never lazy-load this list
    items: Mapped[list["CatalogItem"]] = relationship(
        "CatalogItem",
        back_populates="catalog",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="CatalogItem.position",
        lazy="raise",
    )

    __table_args__ = (Index("ix_catalogs_user_created", "user_id", "created_at"),)

    def __repr__(self) -> str:
        return f"<Catalog(id={self.id}, name={self.name}, kind={self.kind})>"


class CatalogItem(Base):
    """Membership of a media item in a catalog at a given position."""

    __tablename__ = "catalog_items"

    id: Mapped[int] = mapped_column(primary_key=True)
    catalog_id: Mapped[str] = mapped_column(
        ForeignKey("catalogs.id", ondelete="CASCADE"), nullable=False
    )
    media_item_id: Mapped[int] = mapped_column(
        ForeignKey("media_items.id", ondelete="CASCADE"), nullable=False
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    # Relationships
    catalog: Mapped[Catalog] = relationship("Catalog", back_populates="items")
    media_item: Mapped[MediaItem] = relationship("MediaItem", lazy="joined")

    __table_args__ = (
        UniqueConstraint("catalog_id", "position", name="uq_catalog_item_position"),
        UniqueConstraint("catalog_id", "media_item_id", name="uq_catalog_item_media"),
    )

    def __repr__(self) -> str:
        return f"<CatalogItem(catalog_id={self.catalog_id}, position={self.position})>"
