"""Create pickup_attempts

Revision ID: 4c1f7a92d3e8
Revises:
Create Date: 2026-10-18 10:12:41.508113

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '4c1f7a92d3e8'
down_revision = None
branch_labels = None
depends_on = None

def upgrade():
    op.create_table(
        'pickup_attempts',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('credential_kind', sa.String(length=10), nullable=False),
        sa.Column('outcome_kind', sa.String(length=20), nullable=False),
        sa.Column('succeeded', sa.Boolean(), nullable=False),
        sa.Column('message', sa.String(length=255), nullable=True),
        sa.Column('request_id', sa.String(length=64), nullable=True),
        sa.Column('food_title', sa.String(length=255), nullable=True),
        sa.Column('donor_name', sa.String(length=255), nullable=True),
        sa.Column('created_on', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_pickup_attempts_request_id', 'pickup_attempts', ['request_id'], unique=False)
    op.create_index('ix_pickup_attempts_created_on', 'pickup_attempts', ['created_on'], unique=False)

def downgrade():
    op.drop_index('ix_pickup_attempts_created_on', table_name='pickup_attempts')
    op.drop_index('ix_pickup_attempts_request_id', table_name='pickup_attempts')
    op.drop_table('pickup_attempts')
