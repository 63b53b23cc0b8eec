"""Create users, media items, catalogs and catalog items

Revision ID: 3f1c2a9b7d10
Revises:
Create Date: 2026-10-19 10:00:00.000000
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1c2a9b7d10'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

media_kind = sa.Enum('MOVIE', 'SERIES', name='mediakind')


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)

    op.create_table(
        'media_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('external_id', sa.String(length=100), nullable=False),
        sa.Column('kind', media_kind, nullable=False),
        sa.Column('title', sa.String(length=500), nullable=False),
        sa.Column('poster_ref', sa.String(length=500), nullable=True),
        sa.Column('genres', sa.JSON(), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('rating', sa.Float(), nullable=True),
        sa.Column('display_rating', sa.String(length=10), nullable=True),
        sa.Column('runtime', sa.String(length=50), nullable=True),
        sa.Column('release_date', sa.String(length=20), nullable=True),
        sa.Column('last_episode_date', sa.String(length=20), nullable=True),
        sa.Column('background_ref', sa.String(length=500), nullable=True),
        sa.Column('logo_ref', sa.String(length=500), nullable=True),
        sa.Column('actors', sa.Text(), nullable=True),
        sa.Column('directors', sa.Text(), nullable=True),
        sa.Column('imdb_id', sa.String(length=20), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('external_id', 'kind', name='uq_media_item_external_kind'),
    )
    op.create_index(op.f('ix_media_items_external_id'), 'media_items', ['external_id'], unique=False)

    op.create_table(
        'catalogs',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('kind', media_kind, nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_catalogs_user_id'), 'catalogs', ['user_id'], unique=False)
    op.create_index('ix_catalogs_user_created', 'catalogs', ['user_id', 'created_at'], unique=False)

    op.create_table(
        'catalog_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('catalog_id', sa.String(length=36), nullable=False),
        sa.Column('media_item_id', sa.Integer(), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['catalog_id'], ['catalogs.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['media_item_id'], ['media_items.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('catalog_id', 'position', name='uq_catalog_item_position'),
        sa.UniqueConstraint('catalog_id', 'media_item_id', name='uq_catalog_item_media'),
    )


def downgrade() -> None:
    op.drop_table('catalog_items')
    op.drop_index('ix_catalogs_user_created', table_name='catalogs')
    op.drop_index(op.f('ix_catalogs_user_id'), table_name='catalogs')
    op.drop_table('catalogs')
    op.drop_index(op.f('ix_media_items_external_id'), table_name='media_items')
    op.drop_table('media_items')
    op.drop_index(op.f('ix_users_email'), table_name='users')
    op.drop_table('users')
    media_kind.drop(op.get_bind(), checkfirst=True)
