"""Create deal and line item tables

Revision ID: create_deal_tables
Revises:
Create Date: 2025-04-12 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'create_deal_tables'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

DEAL_STATUS = sa.Enum('DRAFT', 'SENT', 'VIEWED', 'ACCEPTED', 'REJECTED', 'EXPIRED', 'CONVERTED', name='dealstatus')
DISCOUNT_TYPE = sa.Enum('PERCENTAGE', 'FIXED', name='discounttype')


def upgrade() -> None:
    op.create_table(
        'deal',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('quote_number', sa.String(20), nullable=True),
        sa.Column('status', DEAL_STATUS, nullable=False),
        sa.Column('currency', sa.String(3), nullable=False),
        sa.Column('discount_type', DISCOUNT_TYPE, nullable=False),
        sa.Column('discount_value', sa.Numeric(14, 2), nullable=False),
        sa.Column('tax_rate', sa.Numeric(7, 3), nullable=False),
        sa.Column('subtotal', sa.Numeric(14, 2), nullable=False),
        sa.Column('tax_amount', sa.Numeric(14, 2), nullable=False),
        sa.Column('total_amount', sa.Numeric(14, 2), nullable=False),
        sa.Column('amount', sa.Numeric(14, 2), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('terms', sa.Text(), nullable=True),
        sa.Column('expiry_date', sa.DateTime(), nullable=True),
        sa.Column('pdf_url', sa.String(500), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    # Quote number allocation relies on this unique index
    op.create_index('ix_deal_quote_number', 'deal', ['quote_number'], unique=True)
    op.create_index('ix_deal_amount', 'deal', ['amount'])

    op.create_table(
        'deal_line_item',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('deal_id', sa.String(), sa.ForeignKey('deal.id'), nullable=True),
        sa.Column('description', sa.String(), nullable=False),
        sa.Column('quantity', sa.Numeric(12, 3), nullable=False),
        sa.Column('unit_price', sa.Numeric(14, 4), nullable=False),
        sa.Column('discount_percent', sa.Numeric(5, 2), nullable=False),
        sa.Column('tax_percent', sa.Numeric(7, 3), nullable=False),
        sa.Column('total', sa.Numeric(14, 2), nullable=False),
        sa.Column('order', sa.Integer(), nullable=False),
    )
    op.create_index('ix_deal_line_item_deal_id', 'deal_line_item', ['deal_id'])


def downgrade() -> None:
    op.drop_index('ix_deal_line_item_deal_id', table_name='deal_line_item')
    op.drop_table('deal_line_item')
    op.drop_index('ix_deal_amount', table_name='deal')
    op.drop_index('ix_deal_quote_number', table_name='deal')
    op.drop_table('deal')
    DISCOUNT_TYPE.drop(op.get_bind(), checkfirst=True)
    DEAL_STATUS.drop(op.get_bind(), checkfirst=True)
