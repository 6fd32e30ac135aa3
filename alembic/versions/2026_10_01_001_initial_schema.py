"""Initial schema: users, teams, memberships, activity logs, invitations

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-01

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision = '001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None

team_role = postgresql.ENUM('OWNER', 'MEMBER', name='teamrole', create_type=False)
invitation_status = postgresql.ENUM('PENDING', 'ACCEPTED', 'REVOKED', name='invitationstatus', create_type=False)
activity_type = postgresql.ENUM(
    'SIGN_UP', 'SIGN_IN', 'SIGN_OUT', 'UPDATE_PASSWORD', 'DELETE_ACCOUNT',
    'UPDATE_ACCOUNT', 'CREATE_TEAM', 'REMOVE_TEAM_MEMBER', 'INVITE_TEAM_MEMBER',
    'ACCEPT_INVITATION', 'REVOKE_INVITATION',
    name='activitytype',
    create_type=False,
)


def upgrade():
    bind = op.get_bind()
    for enum_type in (team_role, invitation_status, activity_type):
        enum_type.create(bind, checkfirst=True)

    op.create_table(
        'users',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('password_hash', sa.String(), nullable=False),
        sa.Column('name', sa.String(100), nullable=True),
        sa.Column('role', sa.String(20), nullable=False, server_default='member'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.current_timestamp()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_deleted_at', 'users', ['deleted_at'])

    op.create_table(
        'teams',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('stripe_customer_id', sa.String(255), nullable=True),
        sa.Column('stripe_subscription_id', sa.String(255), nullable=True, unique=True),
        sa.Column('stripe_product_id', sa.String(255), nullable=True),
        sa.Column('plan_name', sa.String(50), nullable=True),
        sa.Column('subscription_status', sa.String(20), nullable=True),
        sa.Column('subscription_updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.current_timestamp()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_teams_stripe_customer_id', 'teams', ['stripe_customer_id'], unique=True)

    op.create_table(
        'team_members',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('team_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('teams.id'), nullable=False),
        sa.Column('role', team_role, nullable=False),
        sa.Column('joined_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.current_timestamp()),
        sa.UniqueConstraint('user_id', 'team_id', name='uq_team_member_user_team'),
    )
    op.create_index('ix_team_members_user_id', 'team_members', ['user_id'])
    op.create_index('ix_team_members_team_id', 'team_members', ['team_id'])

    op.create_table(
        'activity_logs',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('team_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('teams.id'), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('action', activity_type, nullable=False),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.current_timestamp()),
        sa.Column('ip_address', sa.String(45), nullable=True),
    )
    op.create_index('ix_activity_logs_team_id', 'activity_logs', ['team_id'])
    op.create_index('ix_activity_logs_action', 'activity_logs', ['action'])
    op.create_index('idx_activity_log_user_timestamp', 'activity_logs', ['user_id', 'timestamp'])

    # Audit rows are append-only
    op.execute("""
        CREATE OR REPLACE FUNCTION activity_logs_append_only() RETURNS trigger AS $$
        BEGIN
            RAISE EXCEPTION 'activity_logs is append-only';
        END;
        $$ LANGUAGE plpgsql;
    """)
    op.execute("""
        CREATE TRIGGER activity_logs_no_mutation
        BEFORE UPDATE OR DELETE ON activity_logs
        FOR EACH ROW EXECUTE FUNCTION activity_logs_append_only();
    """)

    op.create_table(
        'invitations',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('team_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('teams.id'), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('role', team_role, nullable=False),
        sa.Column('invited_by', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('invited_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.current_timestamp()),
        sa.Column('status', invitation_status, nullable=False, server_default='PENDING'),
        sa.Column('responded_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_invitations_team_id', 'invitations', ['team_id'])
    op.create_index('ix_invitations_email', 'invitations', ['email'])
    op.create_index('ix_invitations_status', 'invitations', ['status'])


def downgrade():
    op.drop_table('invitations')
    op.execute('DROP TRIGGER IF EXISTS activity_logs_no_mutation ON activity_logs')
    op.execute('DROP FUNCTION IF EXISTS activity_logs_append_only()')
    op.drop_table('activity_logs')
    op.drop_table('team_members')
    op.drop_table('teams')
    op.drop_table('users')

    invitation_status.drop(op.get_bind(), checkfirst=True)
    activity_type.drop(op.get_bind(), checkfirst=True)
    team_role.drop(op.get_bind(), checkfirst=True)
