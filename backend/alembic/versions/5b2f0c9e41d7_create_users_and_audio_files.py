"""create users and audio_files tables

Revision ID: 5b2f0c9e41d7
Revises:
Create Date: 2026-10-19 10:12:03.118402
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '5b2f0c9e41d7'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('open_id', sa.String(length=64), nullable=False, unique=True),
        sa.Column('name', sa.Text(), nullable=True),
        sa.Column('email', sa.String(length=320), nullable=True),
        sa.Column('login_method', sa.String(length=64), nullable=True),
        sa.Column('role', sa.Enum('user', 'admin', name='user_role'), nullable=False, server_default='user'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('last_signed_in', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_users_id', 'users', ['id'])

    op.create_table(
        'audio_files',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('file_name', sa.String(length=255), nullable=False),
        sa.Column('file_key', sa.String(length=512), nullable=False),
        sa.Column('file_url', sa.Text(), nullable=False),
        sa.Column('file_size', sa.Integer(), nullable=False),
        sa.Column('duration', sa.Integer(), nullable=True),
        sa.Column('format', sa.String(length=10), nullable=False),
        sa.Column('title', sa.Text(), nullable=True),
        sa.Column('artist', sa.Text(), nullable=True),
        sa.Column('album', sa.Text(), nullable=True),
        sa.Column('album_artist', sa.Text(), nullable=True),
        sa.Column('year', sa.Integer(), nullable=True),
        sa.Column('genre', sa.Text(), nullable=True),
        sa.Column('track_number', sa.Integer(), nullable=True),
        sa.Column('total_tracks', sa.Integer(), nullable=True),
        sa.Column('comment', sa.Text(), nullable=True),
        sa.Column('composer', sa.Text(), nullable=True),
        sa.Column('is_modified', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('modified_file_key', sa.String(length=512), nullable=True),
        sa.Column('modified_file_url', sa.Text(), nullable=True),
        sa.Column('artwork_key', sa.String(length=512), nullable=True),
        sa.Column('artwork_url', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_audio_files_id', 'audio_files', ['id'])
    op.create_index('ix_audio_files_user_id', 'audio_files', ['user_id'])


def downgrade() -> None:
    op.drop_index('ix_audio_files_user_id', table_name='audio_files')
    op.drop_index('ix_audio_files_id', table_name='audio_files')
    op.drop_table('audio_files')
    op.drop_index('ix_users_id', table_name='users')
    op.drop_table('users')
    sa.Enum(name='user_role').drop(op.get_bind(), checkfirst=True)
