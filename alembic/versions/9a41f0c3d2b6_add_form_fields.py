"""add booking form fields

Revision ID: 9a41f0c3d2b6
Revises: 5c2d8e41a7f3
Create Date: 2026-10-21 09:03:17.551902

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '9a41f0c3d2b6'
down_revision: Union[str, Sequence[str], None] = '5c2d8e41a7f3'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

FORM_FIELD_TYPES = ('TEXT', 'TEXTAREA', 'NUMBER', 'SELECT', 'BOOLEAN')


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'form_fields',
        sa.Column('id', sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column('business_id', sa.Uuid(as_uuid=True),
                  sa.ForeignKey('businesses.id', ondelete='CASCADE'), nullable=False),
        sa.Column('label', sa.String(200), nullable=False),
        sa.Column('field_type', sa.Enum(*FORM_FIELD_TYPES, name='formfieldtype'), nullable=False),
        sa.Column('is_required', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('options', sa.JSON, nullable=True),
        sa.Column('order_index', sa.Integer, nullable=False, server_default='0'),
        sa.Column('is_active', sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now())
    )
    op.create_index('ix_form_fields_business_id', 'form_fields', ['business_id'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('ix_form_fields_business_id', table_name='form_fields')
    op.drop_table('form_fields')
    sa.Enum(name='formfieldtype').drop(op.get_bind(), checkfirst=True)
