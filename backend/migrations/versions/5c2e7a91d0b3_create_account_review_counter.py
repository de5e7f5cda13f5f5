"""create account, review and global_counter tables

Revision ID: 5c2e7a91d0b3
Revises:
Create Date: 2025-11-20 10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '5c2e7a91d0b3'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    existing_tables = set(insp.get_table_names())

    if 'account' not in existing_tables:
        op.create_table(
            'account',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('username', sa.String(length=64), nullable=False),
            sa.Column('password_hash', sa.String(length=256), nullable=False),
            sa.Column('state', sa.Text(), nullable=False),
        )
        op.create_index('ix_account_username', 'account', ['username'], unique=True)

    if 'review' not in existing_tables:
        op.create_table(
            'review',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('level', sa.String(length=8), nullable=False),
            sa.Column('username', sa.String(length=64), nullable=False),
            sa.Column('text', sa.Text(), nullable=False),
            sa.Column('created_at', sa.String(length=40), nullable=False),
        )
        op.create_index('ix_review_level', 'review', ['level'], unique=False)

    if 'global_counter' not in existing_tables:
        op.create_table(
            'global_counter',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('total_time', sa.BigInteger(), nullable=False, server_default='0'),
        )


def downgrade():
    op.drop_table('global_counter')
    op.drop_index('ix_review_level', table_name='review')
    op.drop_table('review')
    op.drop_index('ix_account_username', table_name='account')
    op.drop_table('account')
