"""Create accounts, profiles, plans, testimonials and library tables

Revision ID: 001
Revises:
Create Date: 2026-10-17 12:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect


# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

TABLES = [
    'users', 'profiles', 'profile_watch_history', 'profile_list_items',
    'plans', 'testimonials', 'account_list_items', 'watch_history_items',
]


def upgrade() -> None:
    # Tables may already exist when Base.metadata.create_all ran first at startup
    conn = op.get_bind()
    existing_tables = inspect(conn).get_table_names()

    if 'users' not in existing_tables:
        op.create_table(
            'users',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('firebase_uid', sa.String(length=128), nullable=False),
            sa.Column('email', sa.String(length=255), nullable=False),
            sa.Column('display_name', sa.String(length=255), nullable=True),
            sa.Column('photo_url', sa.String(length=1024), nullable=True),
            sa.Column('phone_number', sa.String(length=50), nullable=True),
            sa.Column('role', sa.String(length=20), nullable=False, server_default='user'),
            sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column('is_email_verified', sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column('first_name', sa.String(length=100), nullable=True),
            sa.Column('last_name', sa.String(length=100), nullable=True),
            sa.Column('bio', sa.Text(), nullable=True),
            sa.Column('date_of_birth', sa.Date(), nullable=True),
            sa.Column('address', sa.JSON(), nullable=True),
            sa.Column('subscription_plan', sa.String(length=20), nullable=False, server_default='none'),
            sa.Column('subscription_status', sa.String(length=20), nullable=False, server_default='none'),
            sa.Column('billing_cycle', sa.String(length=20), nullable=False, server_default='monthly'),
            sa.Column('subscription_start', sa.DateTime(timezone=True), nullable=True),
            sa.Column('subscription_end', sa.DateTime(timezone=True), nullable=True),
            sa.Column('trial_start', sa.DateTime(timezone=True), nullable=True),
            sa.Column('trial_end', sa.DateTime(timezone=True), nullable=True),
            sa.Column('max_profiles', sa.Integer(), nullable=True),
            sa.Column('active_profile_id', sa.Integer(), nullable=True),
            sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
            sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
            sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index('ix_users_id', 'users', ['id'])
        op.create_index('ix_users_firebase_uid', 'users', ['firebase_uid'], unique=True)
        op.create_index('ix_users_email', 'users', ['email'], unique=True)
        op.create_index('ix_users_role', 'users', ['role'])
        op.create_index('ix_users_created_at', 'users', ['created_at'])

    if 'profiles' not in existing_tables:
        op.create_table(
            'profiles',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('user_id', sa.Integer(), nullable=False),
            sa.Column('name', sa.String(length=50), nullable=False),
            sa.Column('avatar', sa.String(length=1024), nullable=True),
            sa.Column('type', sa.String(length=10), nullable=False, server_default='adult'),
            sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column('preferences', sa.JSON(), nullable=True),
            sa.Column('pin', sa.String(length=64), nullable=True),
            sa.Column('total_watch_time', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('last_activity_at', sa.DateTime(timezone=True), nullable=True),
            sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
            sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
            sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('user_id', 'name', name='uq_profiles_user_name')
        )
        op.create_index('ix_profiles_id', 'profiles', ['id'])
        op.create_index('ix_profiles_user_id', 'profiles', ['user_id'])
        op.create_index('ix_profiles_user_active', 'profiles', ['user_id', 'is_active'])

    if 'profile_watch_history' not in existing_tables:
        op.create_table(
            'profile_watch_history',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('profile_id', sa.Integer(), nullable=False),
            sa.Column('content_id', sa.String(length=64), nullable=False),
            sa.Column('content_type', sa.String(length=10), nullable=False),
            sa.Column('title', sa.String(length=500), nullable=False),
            sa.Column('poster_path', sa.String(length=1024), nullable=True),
            sa.Column('backdrop_path', sa.String(length=1024), nullable=True),
            sa.Column('progress', sa.Float(), nullable=False, server_default='0'),
            sa.Column('duration', sa.Float(), nullable=False, server_default='0'),
            sa.Column('completed', sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column('watched_at', sa.DateTime(timezone=True), nullable=False),
            sa.Column('season', sa.Integer(), nullable=True),
            sa.Column('episode', sa.Integer(), nullable=True),
            sa.ForeignKeyConstraint(['profile_id'], ['profiles.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('profile_id', 'content_id', 'content_type', name='uq_profile_history_content')
        )
        op.create_index('ix_profile_watch_history_id', 'profile_watch_history', ['id'])
        op.create_index('ix_profile_watch_history_profile_id', 'profile_watch_history', ['profile_id'])
        op.create_index('ix_profile_history_watched_at', 'profile_watch_history', ['profile_id', 'watched_at'])

    if 'profile_list_items' not in existing_tables:
        op.create_table(
            'profile_list_items',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('profile_id', sa.Integer(), nullable=False),
            sa.Column('content_id', sa.String(length=64), nullable=False),
            sa.Column('content_type', sa.String(length=10), nullable=False),
            sa.Column('title', sa.String(length=500), nullable=False),
            sa.Column('poster_path', sa.String(length=1024), nullable=True),
            sa.Column('backdrop_path', sa.String(length=1024), nullable=True),
            sa.Column('overview', sa.Text(), nullable=True),
            sa.Column('vote_average', sa.Float(), nullable=True),
            sa.Column('release_date', sa.String(length=20), nullable=True),
            sa.Column('added_at', sa.DateTime(timezone=True), nullable=False),
            sa.ForeignKeyConstraint(['profile_id'], ['profiles.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('profile_id', 'content_id', name='uq_profile_list_content')
        )
        op.create_index('ix_profile_list_items_id', 'profile_list_items', ['id'])
        op.create_index('ix_profile_list_items_profile_id', 'profile_list_items', ['profile_id'])

    if 'plans' not in existing_tables:
        op.create_table(
            'plans',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('name', sa.String(length=20), nullable=False),
            sa.Column('display_name', sa.String(length=100), nullable=False),
            sa.Column('price_monthly', sa.Float(), nullable=False),
            sa.Column('price_yearly', sa.Float(), nullable=False),
            sa.Column('features', sa.JSON(), nullable=True),
            sa.Column('quality', sa.String(length=50), nullable=False),
            sa.Column('resolution', sa.String(length=50), nullable=False),
            sa.Column('devices', sa.String(length=20), nullable=False),
            sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
            sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index('ix_plans_id', 'plans', ['id'])
        op.create_index('ix_plans_name', 'plans', ['name'], unique=True)

    if 'testimonials' not in existing_tables:
        op.create_table(
            'testimonials',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('name', sa.String(length=100), nullable=False),
            sa.Column('role', sa.String(length=100), nullable=False, server_default='MovieFlix User'),
            sa.Column('rating', sa.Integer(), nullable=False),
            sa.Column('text', sa.Text(), nullable=False),
            sa.Column('avatar', sa.String(length=1024), nullable=True),
            sa.Column('is_approved', sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index('ix_testimonials_id', 'testimonials', ['id'])
        op.create_index('ix_testimonials_approved_created', 'testimonials', ['is_approved', 'created_at'])

    if 'account_list_items' not in existing_tables:
        op.create_table(
            'account_list_items',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('user_id', sa.Integer(), nullable=False),
            sa.Column('movie_id', sa.String(length=64), nullable=False),
            sa.Column('title', sa.String(length=500), nullable=False),
            sa.Column('poster_path', sa.String(length=1024), nullable=True),
            sa.Column('media_type', sa.String(length=10), nullable=False, server_default='movie'),
            sa.Column('added_at', sa.DateTime(timezone=True), nullable=False),
            sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('user_id', 'movie_id', name='uq_account_list_movie')
        )
        op.create_index('ix_account_list_items_id', 'account_list_items', ['id'])
        op.create_index('ix_account_list_items_user_id', 'account_list_items', ['user_id'])

    if 'watch_history_items' not in existing_tables:
        op.create_table(
            'watch_history_items',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('user_id', sa.Integer(), nullable=False),
            sa.Column('movie_id', sa.String(length=64), nullable=False),
            sa.Column('title', sa.String(length=500), nullable=False),
            sa.Column('poster_path', sa.String(length=1024), nullable=True),
            sa.Column('genres', sa.JSON(), nullable=True),
            sa.Column('duration', sa.Integer(), nullable=False, server_default='120'),
            sa.Column('vote_average', sa.Float(), nullable=True),
            sa.Column('watched_at', sa.DateTime(timezone=True), nullable=False),
            sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index('ix_watch_history_items_id', 'watch_history_items', ['id'])
        op.create_index('ix_watch_history_items_user_id', 'watch_history_items', ['user_id'])
        op.create_index('ix_watch_history_user_watched', 'watch_history_items', ['user_id', 'watched_at'])


def downgrade() -> None:
    conn = op.get_bind()
    existing_tables = inspect(conn).get_table_names()

    # Children first
    for table in reversed(TABLES):
        if table in existing_tables:
            op.drop_table(table)
