"""initial schema: users, partner links, circles, entries, notifications

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-09-28 00:00:00.000000
"""
import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = '0001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None

_OPEN_LINK = sa.text("status IN ('PENDING', 'ACTIVE')")


def _enum(name, *values):
    return sa.Enum(*values, name=name)


def upgrade():
    op.create_table(
        'users',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('email', sa.String(length=254), nullable=False),
        sa.Column('display_name', sa.String(length=100), nullable=False),
        sa.Column('avatar_url', sa.String(length=500), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_users'),
        sa.UniqueConstraint('email', name='uq_users_email'),
    )

    op.create_table(
        'partner_links',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('initiator_id', sa.String(length=36), nullable=False),
        sa.Column('partner_id', sa.String(length=36), nullable=False),
        sa.Column(
            'status',
            _enum('partner_link_status', 'PENDING', 'ACTIVE', 'DECLINED', 'REVOKED'),
            nullable=False,
        ),
        sa.Column('initiated_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('responded_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('revoked_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('revoked_by', sa.String(length=36), nullable=True),
        sa.CheckConstraint('initiator_id <> partner_id', name='ck_partner_links_not_self'),
        sa.ForeignKeyConstraint(
            ['initiator_id'], ['users.id'],
            name='fk_partner_links_initiator_id_users', ondelete='CASCADE',
        ),
        sa.ForeignKeyConstraint(
            ['partner_id'], ['users.id'],
            name='fk_partner_links_partner_id_users', ondelete='CASCADE',
        ),
        sa.ForeignKeyConstraint(
            ['revoked_by'], ['users.id'],
            name='fk_partner_links_revoked_by_users', ondelete='SET NULL',
        ),
        sa.PrimaryKeyConstraint('id', name='pk_partner_links'),
    )
    op.create_index(
        'uq_partner_links_open_initiator', 'partner_links', ['initiator_id'],
        unique=True, sqlite_where=_OPEN_LINK, postgresql_where=_OPEN_LINK,
    )
    op.create_index(
        'uq_partner_links_open_partner', 'partner_links', ['partner_id'],
        unique=True, sqlite_where=_OPEN_LINK, postgresql_where=_OPEN_LINK,
    )

    op.create_table(
        'circles',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('description', sa.String(length=500), nullable=True),
        sa.Column('created_by', sa.String(length=36), nullable=False),
        sa.Column('status', _enum('circle_status', 'ACTIVE', 'ARCHIVED'), nullable=False),
        sa.Column('max_members', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint('max_members > 0', name='ck_circles_max_members_positive'),
        sa.ForeignKeyConstraint(
            ['created_by'], ['users.id'],
            name='fk_circles_created_by_users', ondelete='CASCADE',
        ),
        sa.PrimaryKeyConstraint('id', name='pk_circles'),
    )

    op.create_table(
        'circle_memberships',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('circle_id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('role', _enum('circle_role', 'OWNER', 'ADMIN', 'MEMBER'), nullable=False),
        sa.Column(
            'status',
            _enum('membership_status', 'ACTIVE', 'LEFT', 'REMOVED'),
            nullable=False,
        ),
        sa.Column(
            'history_policy',
            _enum('history_policy', 'ALL', 'FUTURE_ONLY'),
            nullable=False,
        ),
        sa.Column('joined_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('left_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(
            ['circle_id'], ['circles.id'],
            name='fk_circle_memberships_circle_id_circles', ondelete='CASCADE',
        ),
        sa.ForeignKeyConstraint(
            ['user_id'], ['users.id'],
            name='fk_circle_memberships_user_id_users', ondelete='CASCADE',
        ),
        sa.PrimaryKeyConstraint('id', name='pk_circle_memberships'),
        sa.UniqueConstraint('circle_id', 'user_id', name='uq_circle_memberships_circle_user'),
    )
    op.create_index(
        'ix_circle_memberships_user_status', 'circle_memberships', ['user_id', 'status']
    )

    op.create_table(
        'circle_invites',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('circle_id', sa.String(length=36), nullable=False),
        sa.Column('invite_code', sa.String(length=64), nullable=False),
        sa.Column('created_by', sa.String(length=36), nullable=True),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('max_uses', sa.Integer(), nullable=False),
        sa.Column('used_count', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            'used_count >= 0 AND used_count <= max_uses', name='ck_circle_invites_usage_bounds'
        ),
        sa.ForeignKeyConstraint(
            ['circle_id'], ['circles.id'],
            name='fk_circle_invites_circle_id_circles', ondelete='CASCADE',
        ),
        sa.ForeignKeyConstraint(
            ['created_by'], ['users.id'],
            name='fk_circle_invites_created_by_users', ondelete='SET NULL',
        ),
        sa.PrimaryKeyConstraint('id', name='pk_circle_invites'),
        sa.UniqueConstraint('invite_code', name='uq_circle_invites_invite_code'),
    )
    op.create_index('ix_circle_invites_circle', 'circle_invites', ['circle_id'])

    op.create_table(
        'entries',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('author_id', sa.String(length=36), nullable=False),
        sa.Column('title_encrypted', sa.LargeBinary(), nullable=True),
        sa.Column('content_encrypted', sa.LargeBinary(), nullable=False),
        sa.Column('mood', sa.String(length=20), nullable=True),
        sa.Column(
            'visibility',
            _enum('entry_visibility', 'PRIVATE', 'PARTNER', 'CIRCLE', 'FUTURE_CIRCLE_ONLY'),
            nullable=False,
        ),
        sa.Column('circle_id', sa.String(length=36), nullable=True),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.Column('encryption_version', sa.Integer(), nullable=False),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint('version >= 1', name='ck_entries_version_positive'),
        sa.CheckConstraint(
            "(visibility IN ('CIRCLE', 'FUTURE_CIRCLE_ONLY')) = (circle_id IS NOT NULL)",
            name='ck_entries_circle_matches_visibility',
        ),
        sa.ForeignKeyConstraint(
            ['author_id'], ['users.id'],
            name='fk_entries_author_id_users', ondelete='CASCADE',
        ),
        sa.ForeignKeyConstraint(
            ['circle_id'], ['circles.id'], name='fk_entries_circle_id_circles',
        ),
        sa.PrimaryKeyConstraint('id', name='pk_entries'),
    )
    op.create_index('ix_entries_author_created', 'entries', ['author_id', 'created_at'])
    op.create_index('ix_entries_circle_created', 'entries', ['circle_id', 'created_at'])

    op.create_table(
        'notifications',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column(
            'type',
            _enum(
                'notification_type',
                'PARTNER_ACCEPTED', 'PARTNER_REVOKED', 'CIRCLE_REMOVED',
            ),
            nullable=False,
        ),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('body', sa.String(length=1000), nullable=True),
        sa.Column('data', sa.JSON(), nullable=True),
        sa.Column('read_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ['user_id'], ['users.id'],
            name='fk_notifications_user_id_users', ondelete='CASCADE',
        ),
        sa.PrimaryKeyConstraint('id', name='pk_notifications'),
    )
    op.create_index(
        'ix_notifications_user_created', 'notifications', ['user_id', 'created_at']
    )


def downgrade():
    op.drop_index('ix_notifications_user_created', table_name='notifications')
    op.drop_table('notifications')
    op.drop_index('ix_entries_circle_created', table_name='entries')
    op.drop_index('ix_entries_author_created', table_name='entries')
    op.drop_table('entries')
    op.drop_index('ix_circle_invites_circle', table_name='circle_invites')
    op.drop_table('circle_invites')
    op.drop_index('ix_circle_memberships_user_status', table_name='circle_memberships')
    op.drop_table('circle_memberships')
    op.drop_table('circles')
    op.drop_index('uq_partner_links_open_partner', table_name='partner_links')
    op.drop_index('uq_partner_links_open_initiator', table_name='partner_links')
    op.drop_table('partner_links')
    op.drop_table('users')
    for name in (
        'notification_type', 'entry_visibility', 'history_policy', 'membership_status',
        'circle_role', 'circle_status', 'partner_link_status',
    ):
        sa.Enum(name=name).drop(op.get_bind(), checkfirst=True)
