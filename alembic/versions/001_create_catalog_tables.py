"""Create size_references, design_types, designs and variants tables.

Revision ID: 001
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create catalog tables."""
    # Size lookup
    op.create_table(
        'size_references',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('name', sa.String(20), nullable=False, unique=True),
        sa.Column('display_name', sa.String(50), nullable=False),
        sa.Column('sort_order', sa.Integer(), nullable=False, unique=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
    )

    # Design type lookup
    op.create_table(
        'design_types',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('name', sa.String(50), nullable=False, unique=True, index=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true', index=True),
    )

    # Designs table
    op.create_table(
        'designs',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('owner_id', sa.String(100), nullable=False, index=True),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('design_type_id', sa.String(36),
                  sa.ForeignKey('design_types.id'), nullable=False, index=True),
        sa.Column('discount_kind', sa.String(20), nullable=True),
        sa.Column('discount_value', sa.Numeric(10, 2), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
    )

    op.create_index(
        'ix_designs_owner_type',
        'designs',
        ['owner_id', 'design_type_id'],
    )

    # Variants table
    op.create_table(
        'variants',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('design_id', sa.String(36),
                  sa.ForeignKey('designs.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('size_reference_id', sa.String(36),
                  sa.ForeignKey('size_references.id'), nullable=False, index=True),
        sa.Column('price', sa.Numeric(10, 2), nullable=False),
        sa.Column('stock', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('image_url', sa.String(1000), nullable=True),
        sa.Column('final_price', sa.Numeric(10, 2), nullable=False, index=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('now()'), index=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
    )

    # One variant per size per design
    op.create_unique_constraint(
        'uq_variants_design_size',
        'variants',
        ['design_id', 'size_reference_id'],
    )

    # Size-filtered listings ordered or bounded by final price
    op.create_index(
        'ix_variants_size_final_price',
        'variants',
        ['size_reference_id', 'final_price'],
    )


def downgrade() -> None:
    """Drop catalog tables."""
    op.drop_index('ix_variants_size_final_price', table_name='variants')
    op.drop_constraint('uq_variants_design_size', 'variants', type_='unique')
    op.drop_table('variants')
    op.drop_index('ix_designs_owner_type', table_name='designs')
    op.drop_table('designs')
    op.drop_table('design_types')
    op.drop_table('size_references')
