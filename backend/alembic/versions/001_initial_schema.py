"""Initial schema

Revision ID: 001
Revises:
Create Date: 2026-10-16

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Create enum types
    op.execute("CREATE TYPE userstatus AS ENUM ('ACTIVE', 'INACTIVE')")
    op.execute("CREATE TYPE siterole AS ENUM ('SITE_ADMIN', 'EDITOR')")
    op.execute("CREATE TYPE auditseverity AS ENUM ('INFO', 'WARNING', 'ERROR')")

    # Create users table
    op.create_table(
        'users',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False, unique=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('is_super_admin', sa.Boolean, nullable=False, server_default='false'),
        sa.Column('status', postgresql.ENUM(name='userstatus', create_type=False),
                  nullable=False, server_default='ACTIVE'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_users_email', 'users', ['email'])

    # Create sites table
    op.create_table(
        'sites',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('slug', sa.String(100), nullable=False, unique=True),
        sa.Column('description', sa.Text),
        sa.Column('primary_color', sa.String(7), nullable=False, server_default='#ED1C24'),
        sa.Column('logo_path', sa.String(500)),
        sa.Column('is_active', sa.Boolean, nullable=False, server_default='true'),
        sa.Column('is_default', sa.Boolean, nullable=False, server_default='false'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_sites_slug', 'sites', ['slug'])
    # At most one default site
    op.create_index(
        'uq_sites_single_default', 'sites', ['is_default'],
        unique=True, postgresql_where=sa.text('is_default'),
    )

    # Create site_access_grants table
    op.create_table(
        'site_access_grants',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('user_id', postgresql.UUID(as_uuid=True),
                  sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('site_id', postgresql.UUID(as_uuid=True),
                  sa.ForeignKey('sites.id', ondelete='CASCADE'), nullable=False),
        sa.Column('role', postgresql.ENUM(name='siterole', create_type=False),
                  nullable=False, server_default='EDITOR'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint('user_id', 'site_id', name='uq_site_access_grants_user_site'),
    )
    op.create_index('ix_site_access_grants_user_id', 'site_access_grants', ['user_id'])
    op.create_index('ix_site_access_grants_site_id', 'site_access_grants', ['site_id'])

    # Create announcements table
    op.create_table(
        'announcements',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('slug', sa.String(255), nullable=False, unique=True),
        sa.Column('content', sa.Text, nullable=False),
        sa.Column('excerpt', sa.String(300)),
        sa.Column('image_path', sa.String(500)),
        sa.Column('is_pinned', sa.Boolean, nullable=False, server_default='false'),
        sa.Column('is_published', sa.Boolean, nullable=False, server_default='false'),
        sa.Column('scheduled_at', sa.DateTime(timezone=True)),
        sa.Column('takedown_at', sa.DateTime(timezone=True)),
        sa.Column('author_id', postgresql.UUID(as_uuid=True),
                  sa.ForeignKey('users.id', ondelete='SET NULL')),
        sa.Column('updated_by_id', postgresql.UUID(as_uuid=True),
                  sa.ForeignKey('users.id', ondelete='SET NULL')),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_announcements_slug', 'announcements', ['slug'])
    op.create_index('ix_announcements_author_id', 'announcements', ['author_id'])

    # Create site_associations table
    op.create_table(
        'site_associations',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('announcement_id', postgresql.UUID(as_uuid=True),
                  sa.ForeignKey('announcements.id', ondelete='CASCADE'), nullable=False),
        sa.Column('site_id', postgresql.UUID(as_uuid=True),
                  sa.ForeignKey('sites.id', ondelete='CASCADE'), nullable=False),
        sa.Column('is_primary', sa.Boolean, nullable=False, server_default='false'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint(
            'announcement_id', 'site_id', name='uq_site_associations_announcement_site'
        ),
    )
    op.create_index('ix_site_associations_announcement_id', 'site_associations', ['announcement_id'])
    op.create_index('ix_site_associations_site_id', 'site_associations', ['site_id'])
    # Exactly one primary per announcement; the "at least one" half is the service's job
    op.create_index(
        'uq_site_associations_single_primary', 'site_associations', ['announcement_id'],
        unique=True, postgresql_where=sa.text('is_primary'),
    )

    # Create activity_logs table
    op.create_table(
        'activity_logs',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('action', sa.String(50), nullable=False),
        sa.Column('entity_type', sa.String(50), nullable=False),
        sa.Column('entity_id', postgresql.UUID(as_uuid=True)),
        sa.Column('user_id', postgresql.UUID(as_uuid=True)),
        sa.Column('site_id', postgresql.UUID(as_uuid=True)),
        sa.Column('changes', postgresql.JSONB, server_default='{}'),
        sa.Column('severity', postgresql.ENUM(name='auditseverity', create_type=False),
                  nullable=False, server_default='INFO'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_activity_logs_action', 'activity_logs', ['action'])
    op.create_index('ix_activity_logs_entity_type', 'activity_logs', ['entity_type'])
    op.create_index('ix_activity_logs_entity_id', 'activity_logs', ['entity_id'])
    op.create_index('ix_activity_logs_user_id', 'activity_logs', ['user_id'])
    op.create_index('ix_activity_logs_site_id', 'activity_logs', ['site_id'])


def downgrade() -> None:
    # Drop tables in reverse order
    op.drop_table('activity_logs')
    op.drop_table('site_associations')
    op.drop_table('announcements')
    op.drop_table('site_access_grants')
    op.drop_table('sites')
    op.drop_table('users')

    # Drop enum types
    op.execute('DROP TYPE IF EXISTS auditseverity')
    op.execute('DROP TYPE IF EXISTS siterole')
    op.execute('DROP TYPE IF EXISTS userstatus')
