"""Initial migration - content tables with media reference columns and site settings

Revision ID: 001
Revises: 
Create Date: 2026-01-10 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def _content_table(name, *media_columns):
    op.create_table(
        name,
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(length=500), nullable=False),
        *[sa.Column(column, sa.Text(), nullable=True) for column in media_columns],
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(f'ix_{name}_id', name, ['id'])


def upgrade() -> None:
    _content_table('books', 'cover_image_path', 'pdf_file_path')
    _content_table('sermons', 'audio_file_path', 'thumbnail_path', 'pdf_file_path')
    _content_table('lessons', 'audio_file_path', 'thumbnail_path', 'pdf_file_path')
    _content_table('articles', 'thumbnail', 'featured_image')
    _content_table('videos', 'video_url', 'thumbnail')

    op.create_table(
        'site_settings',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('key', sa.String(length=100), nullable=False),
        sa.Column('value', sa.Text(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('key'),
    )
    op.create_index('ix_site_settings_id', 'site_settings', ['id'])
    op.create_index('idx_site_setting_key', 'site_settings', ['key'])


def downgrade() -> None:
    op.drop_index('idx_site_setting_key', table_name='site_settings')
    op.drop_index('ix_site_settings_id', table_name='site_settings')
    op.drop_table('site_settings')
    for name in ('videos', 'articles', 'lessons', 'sermons', 'books'):
        op.drop_index(f'ix_{name}_id', table_name=name)
        op.drop_table(name)
