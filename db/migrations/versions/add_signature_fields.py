"""Add signature fields to deal

Revision ID: add_signature_fields
Revises: create_deal_tables
Create Date: 2025-04-13 09:30:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'add_signature_fields'
down_revision: Union[str, None] = 'create_deal_tables'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.add_column('deal', sa.Column('signature_required', sa.Boolean(), nullable=False, server_default=sa.true()))
    op.add_column('deal', sa.Column('signature_date', sa.DateTime(), nullable=True))
    op.add_column('deal', sa.Column('signer_name', sa.String(200), nullable=True))
    op.add_column('deal', sa.Column('signer_email', sa.String(255), nullable=True))
    op.add_column('deal', sa.Column('signer_title', sa.String(200), nullable=True))
    op.add_column('deal', sa.Column('signature_image', sa.Text(), nullable=True))


def downgrade() -> None:
    op.drop_column('deal', 'signature_image')
    op.drop_column('deal', 'signer_title')
    op.drop_column('deal', 'signer_email')
    op.drop_column('deal', 'signer_name')
    op.drop_column('deal', 'signature_date')
    op.drop_column('deal', 'signature_required')
