"""Add payment_proof_url to sales

Revision ID: 8c41e7b2d905
Revises: 3f2a9c1d7b40
Create Date: 2026-08-01 23:00:29.104771

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '8c41e7b2d905'
down_revision = '3f2a9c1d7b40'
branch_labels = None
depends_on = None


def upgrade():
    with op.batch_alter_table('sales', schema=None) as batch_op:
        batch_op.add_column(sa.Column('payment_proof_url', sa.String(length=512), nullable=True))


def downgrade():
    with op.batch_alter_table('sales', schema=None) as batch_op:
        batch_op.drop_column('payment_proof_url')
