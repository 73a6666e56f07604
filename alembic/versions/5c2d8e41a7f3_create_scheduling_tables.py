"""create scheduling tables

Revision ID: 5c2d8e41a7f3
Revises:
Create Date: 2026-10-19 10:12:44.204811

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '5c2d8e41a7f3'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

APPOINTMENT_STATUSES = ('PENDING', 'CONFIRMED', 'REJECTED', 'CANCELLED', 'COMPLETED')
BOOKING_SOURCES = ('CLIENT', 'STAFF')
MEMBERSHIP_STATUSES = ('NONE', 'PENDING', 'APPROVED', 'REJECTED', 'BLOCKED')


def upgrade() -> None:
    """Upgrade schema."""

    # 1. Businesses
    op.create_table(
        'businesses',
        sa.Column('id', sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('slug', sa.String(200), nullable=False),
        sa.Column('description', sa.Text, nullable=True),
        sa.Column('address', sa.String(300), nullable=True),
        sa.Column('phone', sa.String(20), nullable=True),
        sa.Column('requires_membership', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('is_active', sa.Boolean, server_default=sa.true())
    )
    op.create_index('ix_businesses_slug', 'businesses', ['slug'], unique=True)

    # 2. Weekly hours, one rule per weekday (0=Sunday)
    op.create_table(
        'business_hours',
        sa.Column('id', sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column('business_id', sa.Uuid(as_uuid=True), sa.ForeignKey('businesses.id', ondelete='CASCADE'), nullable=False),
        sa.Column('day_of_week', sa.Integer, nullable=False),
        sa.Column('start_time', sa.Time, nullable=False),
        sa.Column('end_time', sa.Time, nullable=False),
        sa.Column('is_active', sa.Boolean, nullable=False, server_default=sa.true()),
        sa.UniqueConstraint('business_id', 'day_of_week', name='uq_business_hours_day'),
        sa.CheckConstraint('day_of_week BETWEEN 0 AND 6', name='ck_business_hours_day')
    )
    op.create_index('ix_business_hours_business_id', 'business_hours', ['business_id'])

    # 3. Breaks
    op.create_table(
        'business_breaks',
        sa.Column('id', sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column('business_id', sa.Uuid(as_uuid=True), sa.ForeignKey('businesses.id', ondelete='CASCADE'), nullable=False),
        sa.Column('day_of_week', sa.Integer, nullable=False),
        sa.Column('start_time', sa.Time, nullable=False),
        sa.Column('end_time', sa.Time, nullable=False)
    )
    op.create_index('ix_business_breaks_business_id', 'business_breaks', ['business_id'])

    # 4. Closures (inclusive date ranges)
    op.create_table(
        'business_closures',
        sa.Column('id', sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column('business_id', sa.Uuid(as_uuid=True), sa.ForeignKey('businesses.id', ondelete='CASCADE'), nullable=False),
        sa.Column('start_date', sa.Date, nullable=False),
        sa.Column('end_date', sa.Date, nullable=False),
        sa.Column('reason', sa.String, nullable=False, server_default='Vacation'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now())
    )
    op.create_index('ix_business_closures_business_id', 'business_closures', ['business_id'])

    # 5. Services
    op.create_table(
        'services',
        sa.Column('id', sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column('business_id', sa.Uuid(as_uuid=True), sa.ForeignKey('businesses.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('description', sa.Text, nullable=True),
        sa.Column('price', sa.Numeric(10, 2), nullable=False, server_default='0'),
        sa.Column('duration_minutes', sa.Integer, nullable=False, server_default='30'),
        sa.Column('is_active', sa.Boolean, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint('duration_minutes > 0', name='ck_services_duration_positive'),
        sa.CheckConstraint('price >= 0', name='ck_services_price_non_negative')
    )
    op.create_index('ix_services_business_id', 'services', ['business_id'])
    op.create_index('ix_services_is_active', 'services', ['is_active'])

    # 6. Appointments (naive business-local times)
    op.create_table(
        'appointments',
        sa.Column('id', sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column('business_id', sa.Uuid(as_uuid=True), sa.ForeignKey('businesses.id', ondelete='CASCADE'), nullable=False),
        sa.Column('service_id', sa.Uuid(as_uuid=True), sa.ForeignKey('services.id'), nullable=False),
        sa.Column('client_id', sa.Uuid(as_uuid=True), nullable=True),
        sa.Column('guest_name', sa.String, nullable=True),
        sa.Column('guest_phone', sa.String, nullable=True),
        sa.Column('start_time', sa.DateTime, nullable=False),
        sa.Column('end_time', sa.DateTime, nullable=False),
        sa.Column('duration_minutes', sa.Integer, nullable=False),
        sa.Column('status', sa.Enum(*APPOINTMENT_STATUSES, name='appointmentstatus'), nullable=False),
        sa.Column('booking_source', sa.Enum(*BOOKING_SOURCES, name='bookingsource'), nullable=False),
        sa.Column('client_notes', sa.Text, nullable=True),
        sa.Column('business_public_notes', sa.Text, nullable=True),
        sa.Column('business_private_notes', sa.Text, nullable=True),
        sa.Column('image_urls', sa.JSON, nullable=True),
        sa.Column('custom_fields_data', sa.JSON, nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now())
    )
    op.create_index('ix_appointments_business_id', 'appointments', ['business_id'])
    op.create_index('ix_appointments_client_id', 'appointments', ['client_id'])
    op.create_index('ix_appointments_start_time', 'appointments', ['start_time'])
    op.create_index('ix_appointments_status', 'appointments', ['status'])

    # 7. Client memberships
    op.create_table(
        'business_clients',
        sa.Column('id', sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column('business_id', sa.Uuid(as_uuid=True), sa.ForeignKey('businesses.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', sa.Uuid(as_uuid=True), nullable=False),
        sa.Column('status', sa.Enum(*MEMBERSHIP_STATUSES, name='membershipstatus'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint('business_id', 'user_id', name='uq_business_clients_member')
    )
    op.create_index('ix_business_clients_business_id', 'business_clients', ['business_id'])
    op.create_index('ix_business_clients_user_id', 'business_clients', ['user_id'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table('business_clients')
    op.drop_table('appointments')
    op.drop_table('services')
    op.drop_table('business_closures')
    op.drop_table('business_breaks')
    op.drop_table('business_hours')
    op.drop_table('businesses')

    sa.Enum(name='membershipstatus').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='bookingsource').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='appointmentstatus').drop(op.get_bind(), checkfirst=True)
