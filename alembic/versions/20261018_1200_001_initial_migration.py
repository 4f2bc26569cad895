"""Initial migration

Revision ID: 001
Revises: 
Create Date: 2026-10-18 12:00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    # Create users table
    op.create_table('users',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('hashed_password', sa.String(length=255), nullable=False),
        sa.Column('first_name', sa.String(length=50), nullable=False),
        sa.Column('last_name', sa.String(length=50), nullable=False),
        sa.Column('role', sa.Enum('USER', 'ADMIN', name='userrole'), nullable=False),
        sa.Column('home_library', sa.String(length=100), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email')
    )

    # Create resources table
    op.create_table('resources',
        sa.Column('id', sa.Integer(), nullable=False),
        *_timestamps(),
        sa.Column('record_id', sa.String(length=255), nullable=False),
        sa.Column('source', sa.String(length=50), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('author', sa.String(length=255), nullable=True),
        sa.Column('year', sa.Integer(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('record_id', 'source', name='uq_resource_record_source')
    )
    op.create_index(op.f('ix_resources_id'), 'resources', ['id'], unique=False)

    # Create user_lists table
    op.create_table('user_lists',
        sa.Column('id', sa.Integer(), nullable=False),
        *_timestamps(),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('public', sa.Boolean(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_user_lists_id'), 'user_lists', ['id'], unique=False)
    op.create_index(op.f('ix_user_lists_user_id'), 'user_lists', ['user_id'], unique=False)

    # Create user_resources table
    op.create_table('user_resources',
        sa.Column('id', sa.Integer(), nullable=False),
        *_timestamps(),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('resource_id', sa.Integer(), nullable=False),
        sa.Column('list_id', sa.Integer(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('saved', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['resource_id'], ['resources.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['list_id'], ['user_lists.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_user_resources_id'), 'user_resources', ['id'], unique=False)
    op.create_index(op.f('ix_user_resources_user_id'), 'user_resources', ['user_id'], unique=False)

    # Create tags tables
    op.create_table('tags',
        sa.Column('id', sa.Integer(), nullable=False),
        *_timestamps(),
        sa.Column('tag', sa.String(length=64), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('tag')
    )
    op.create_index(op.f('ix_tags_id'), 'tags', ['id'], unique=False)

    op.create_table('resource_tags',
        sa.Column('id', sa.Integer(), nullable=False),
        *_timestamps(),
        sa.Column('resource_id', sa.Integer(), nullable=False),
        sa.Column('tag_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=True),
        sa.Column('list_id', sa.Integer(), nullable=True),
        sa.Column('posted', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(['resource_id'], ['resources.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['tag_id'], ['tags.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['list_id'], ['user_lists.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_resource_tags_id'), 'resource_tags', ['id'], unique=False)
    op.create_index(op.f('ix_resource_tags_resource_id'), 'resource_tags', ['resource_id'], unique=False)

    # Create comments table
    op.create_table('comments',
        sa.Column('id', sa.Integer(), nullable=False),
        *_timestamps(),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('resource_id', sa.Integer(), nullable=False),
        sa.Column('comment', sa.Text(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['resource_id'], ['resources.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_comments_id'), 'comments', ['id'], unique=False)
    op.create_index(op.f('ix_comments_resource_id'), 'comments', ['resource_id'], unique=False)

    # Create searches table
    op.create_table('searches',
        sa.Column('id', sa.Integer(), nullable=False),
        *_timestamps(),
        sa.Column('user_id', sa.Uuid(), nullable=True),
        sa.Column('session_id', sa.String(length=128), nullable=True),
        sa.Column('title', sa.String(length=255), nullable=True),
        sa.Column('saved', sa.Boolean(), nullable=False),
        sa.Column('backend', sa.String(length=50), nullable=False),
        sa.Column('search_object', sa.JSON(), nullable=False),
        sa.Column('checksum', sa.String(length=64), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_searches_id'), 'searches', ['id'], unique=False)
    op.create_index(op.f('ix_searches_user_id'), 'searches', ['user_id'], unique=False)
    op.create_index(op.f('ix_searches_session_id'), 'searches', ['session_id'], unique=False)
    op.create_index(op.f('ix_searches_checksum'), 'searches', ['checksum'], unique=False)


def downgrade() -> None:
    op.drop_table('searches')
    op.drop_table('comments')
    op.drop_table('resource_tags')
    op.drop_table('tags')
    op.drop_table('user_resources')
    op.drop_table('user_lists')
    op.drop_table('resources')
    op.drop_table('users')
    sa.Enum(name='userrole').drop(op.get_bind(), checkfirst=True)
