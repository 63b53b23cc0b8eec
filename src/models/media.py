"""Media item model (shared metadata cache)."""

import enum

from sqlalchemy import JSON, Enum, Float, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from src.constants import PEOPLE_SEPARATOR
from src.models.base import Base, TimestampMixin


class MediaKind(str, enum.Enum):
    """Kind of media, shared by catalogs and items."""

    MOVIE = "movie"
    SERIES = "series"


def split_people(value: str | None) -> list[str]:
    """Split a stored people string, dropping empty fragments."""
    if not value:
        return []
    return [name.strip() for name in value.split(PEOPLE_SEPARATOR) if name.strip()]


def join_people(names: list[str] | None) -> str | None:
    """Inverse of split_people; None when there is nobody to store."""
    cleaned = [name.strip() for name in names or [] if name and name.strip()]
    return PEOPLE_SEPARATOR.join(cleaned) if cleaned else None


class MediaItem(Base, TimestampMixin):
    """Metadata record shared by every catalog that references it.

    The natural key (external_id, kind) is unique across all users.
    """

    __tablename__ = "media_items"

    id: Mapped[int] = mapped_column(primary_key=True)
    external_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    kind: Mapped[MediaKind] = mapped_column(Enum(MediaKind), nullable=False)

    # Basic info (set when the item is first referenced)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    poster_ref: Mapped[str | None] = mapped_column(String(500), nullable=True)

    # Enrichment (TMDB details)
    genres: Mapped[list | None] = mapped_column(JSON, nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    rating: Mapped[float | None] = mapped_column(Float, nullable=True)  # vote_average
    display_rating: Mapped[str | None] = mapped_column(String(10), nullable=True)  # "8.4"
    runtime: Mapped[str | None] = mapped_column(String(50), nullable=True)  # "2h 28min"
    release_date: Mapped[str | None] = mapped_column(String(20), nullable=True)
    last_episode_date: Mapped[str | None] = mapped_column(String(20), nullable=True)
    background_ref: Mapped[str | None] = mapped_column(String(500), nullable=True)
    logo_ref: Mapped[str | None] = mapped_column(String(500), nullable=True)
    actors: Mapped[str | None] = mapped_column(Text, nullable=True)  # "#"-joined
    directors: Mapped[str | None] = mapped_column(Text, nullable=True)  # "#"-joined
    imdb_id: Mapped[str | None] = mapped_column(String(20), nullable=True)

    __table_args__ = (
        UniqueConstraint("external_id", "kind", name="uq_media_item_external_kind"),
    )

    def __repr__(self) -> str:
        return f"<MediaItem(id={self.id}, external_id={self.external_id}, kind={self.kind})>"

    @property
    def natural_key(self) -> tuple[str, MediaKind]:
        return (self.external_id, self.kind)

    @property
    def actor_names(self) -> list[str]:
        return split_people(self.actors)

    @property
    def director_names(self) -> list[str]:
        return split_people(self.directors)
