"""key-value store and sessions

Revision ID: p1a2b3c4d5e6
Revises:
Create Date: 2026-10-18 00:00:00.000000

Creates the two tables the POS needs:
- pos_entries: one row per collection key (pos-products, pos-sales, ...),
  each value a JSON document replaced wholesale on write
- pos_sessions: hashed bearer tokens with absolute expiry
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'p1a2b3c4d5e6'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # ============================================================================
    # pos_entries: key-value medium behind the data store
    # ============================================================================
    op.create_table(
        'pos_entries',
        sa.Column('key', sa.String(length=64), nullable=False),
        sa.Column('value', sa.Text(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('key'),
    )

    # ============================================================================
    # pos_sessions: session-scoped current user
    # ============================================================================
    op.create_table(
        'pos_sessions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('username', sa.String(length=120), nullable=False),
        sa.Column('role', sa.String(length=16), nullable=False),
        sa.Column('token_hash', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('last_used_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('is_revoked', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('revoked_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('revoked_reason', sa.String(length=255), nullable=True),
        sa.Column('user_agent', sa.String(length=512), nullable=True),
        sa.Column('ip_address', sa.String(length=45), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_pos_sessions_user_id', 'pos_sessions', ['user_id'])
    op.create_index('ix_pos_sessions_token_hash', 'pos_sessions', ['token_hash'], unique=True)
    op.create_index('ix_pos_sessions_expires_at', 'pos_sessions', ['expires_at'])
    op.create_index('ix_pos_sessions_is_revoked', 'pos_sessions', ['is_revoked'])
    op.create_index('ix_pos_sessions_user_active', 'pos_sessions', ['user_id', 'is_revoked'])


def downgrade():
    op.drop_index('ix_pos_sessions_user_active', table_name='pos_sessions')
    op.drop_index('ix_pos_sessions_is_revoked', table_name='pos_sessions')
    op.drop_index('ix_pos_sessions_expires_at', table_name='pos_sessions')
    op.drop_index('ix_pos_sessions_token_hash', table_name='pos_sessions')
    op.drop_index('ix_pos_sessions_user_id', table_name='pos_sessions')
    op.drop_table('pos_sessions')
    op.drop_table('pos_entries')
