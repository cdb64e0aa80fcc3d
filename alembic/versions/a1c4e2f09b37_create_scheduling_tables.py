"""create scheduling tables

Revision ID: a1c4e2f09b37
Revises:
Create Date: 2025-09-01 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = 'a1c4e2f09b37'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
    ]


def upgrade() -> None:
    """Upgrade schema."""

    # 1. Tenants and their locations
    op.create_table(
        'studios',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('timezone', sa.String(50), server_default='UTC'),
        sa.Column('currency', sa.String(3), server_default='USD'),
        sa.Column('locale', sa.String(20), server_default='en-US'),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true()),
        *_timestamps()
    )

    op.create_table(
        'locations',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('studio_id', sa.Uuid(), sa.ForeignKey('studios.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true()),
        sa.Column('is_primary', sa.Boolean(), server_default=sa.false()),
        *_timestamps()
    )
    op.create_index('ix_locations_studio_id', 'locations', ['studio_id'])

    # 2. Team, clients, services
    op.create_table(
        'team_members',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('studio_id', sa.Uuid(), sa.ForeignKey('studios.id', ondelete='CASCADE'), nullable=False),
        sa.Column('first_name', sa.String(100), nullable=False),
        sa.Column('last_name', sa.String(100), nullable=True),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('calendar_color', sa.String(20), nullable=True),
        sa.Column('is_bookable', sa.Boolean(), server_default=sa.true()),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true()),
        sa.Column('job_title', sa.String(100), nullable=True),
        sa.Column('employment_type', sa.String(50), nullable=True),
        sa.Column('start_date', sa.Date(), nullable=True),
        sa.Column('employment_details', sa.JSON(), nullable=True),
        *_timestamps()
    )
    op.create_index('ix_team_members_studio_id', 'team_members', ['studio_id'])

    op.create_table(
        'clients',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('studio_id', sa.Uuid(), sa.ForeignKey('studios.id', ondelete='CASCADE'), nullable=False),
        sa.Column('first_name', sa.String(100), nullable=False),
        sa.Column('last_name', sa.String(100), nullable=False, server_default=''),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('phone', sa.String(30), nullable=True),
        sa.Column('date_of_birth', sa.Date(), nullable=True),
        sa.Column('gender', sa.String(30), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('preferences', sa.JSON(), nullable=True),
        sa.Column('emergency_contact_name', sa.String(200), nullable=True),
        sa.Column('emergency_contact_phone', sa.String(30), nullable=True),
        *_timestamps()
    )
    op.create_index('ix_clients_studio_id', 'clients', ['studio_id'])

    op.create_table(
        'client_preferences',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('client_id', sa.Uuid(), sa.ForeignKey('clients.id', ondelete='CASCADE'), nullable=False, unique=True),
        sa.Column('preferred_team_members', sa.JSON(), nullable=True),
        sa.Column('preferred_locations', sa.JSON(), nullable=True),
        sa.Column('preferred_times', sa.JSON(), nullable=True),
        sa.Column('communication_preferences', sa.JSON(), nullable=True),
        sa.Column('booking_preferences', sa.JSON(), nullable=True),
        sa.Column('accessibility_needs', sa.Text(), nullable=True),
        sa.Column('allergies', sa.Text(), nullable=True),
        *_timestamps()
    )

    op.create_table(
        'services',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('studio_id', sa.Uuid(), sa.ForeignKey('studios.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('category', sa.String(100), nullable=True),
        sa.Column('price', sa.Numeric(10, 2), nullable=False, server_default='0'),
        sa.Column('duration', sa.Integer(), nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true()),
        *_timestamps(),
        sa.CheckConstraint('duration > 0', name='ck_services_duration_positive')
    )
    op.create_index('ix_services_studio_id', 'services', ['studio_id'])
    op.create_index('ix_services_is_active', 'services', ['is_active'])

    op.create_table(
        'service_buffers',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('service_id', sa.Uuid(), sa.ForeignKey('services.id', ondelete='CASCADE'), nullable=False, unique=True),
        sa.Column('setup_time', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('cleanup_time', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('travel_time', sa.Integer(), nullable=False, server_default='0'),
        *_timestamps()
    )

    # 3. Availability
    op.create_table(
        'availability_rules',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('studio_id', sa.Uuid(), sa.ForeignKey('studios.id', ondelete='CASCADE'), nullable=False),
        sa.Column('team_member_id', sa.Uuid(), sa.ForeignKey('team_members.id', ondelete='CASCADE'), nullable=True),
        sa.Column('location_id', sa.Uuid(), sa.ForeignKey('locations.id', ondelete='CASCADE'), nullable=True),
        sa.Column('service_id', sa.Uuid(), sa.ForeignKey('services.id', ondelete='CASCADE'), nullable=True),
        sa.Column('rule_type', sa.String(30), nullable=False, server_default='working_hours'),
        sa.Column('day_of_week', sa.Integer(), nullable=True),
        sa.Column('start_time', sa.Time(), nullable=False),
        sa.Column('end_time', sa.Time(), nullable=False),
        sa.Column('is_available', sa.Boolean(), server_default=sa.true()),
        sa.Column('effective_from', sa.Date(), nullable=False),
        sa.Column('effective_until', sa.Date(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint('day_of_week IS NULL OR (day_of_week >= 0 AND day_of_week <= 6)',
                           name='ck_availability_rules_day_of_week')
    )
    op.create_index('ix_availability_rules_studio_id', 'availability_rules', ['studio_id'])

    op.create_table(
        'blocked_time',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('studio_id', sa.Uuid(), sa.ForeignKey('studios.id', ondelete='CASCADE'), nullable=False),
        sa.Column('team_member_id', sa.Uuid(), sa.ForeignKey('team_members.id', ondelete='CASCADE'), nullable=True),
        sa.Column('location_id', sa.Uuid(), sa.ForeignKey('locations.id', ondelete='CASCADE'), nullable=True),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('block_type', sa.String(30), nullable=False, server_default='personal'),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('start_time', sa.Time(), nullable=True),
        sa.Column('end_time', sa.Time(), nullable=True),
        sa.Column('is_all_day', sa.Boolean(), server_default=sa.false()),
        sa.Column('is_recurring', sa.Boolean(), server_default=sa.false()),
        sa.Column('recurring_pattern', sa.JSON(), nullable=True),
        sa.Column('created_by', sa.String(), nullable=True),
        *_timestamps()
    )
    op.create_index('ix_blocked_time_studio_id', 'blocked_time', ['studio_id'])
    op.create_index('idx_blocked_time_dates', 'blocked_time', ['studio_id', 'start_date', 'end_date'])

    # 4. Appointments and their audit trail
    op.create_table(
        'appointments',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('studio_id', sa.Uuid(), sa.ForeignKey('studios.id', ondelete='CASCADE'), nullable=False),
        sa.Column('client_id', sa.Uuid(), sa.ForeignKey('clients.id', ondelete='SET NULL'), nullable=True),
        sa.Column('team_member_id', sa.Uuid(), sa.ForeignKey('team_members.id'), nullable=False),
        sa.Column('service_id', sa.Uuid(), sa.ForeignKey('services.id'), nullable=False),
        sa.Column('location_id', sa.Uuid(), sa.ForeignKey('locations.id'), nullable=False),
        sa.Column('appointment_date', sa.Date(), nullable=False),
        sa.Column('start_time', sa.Time(), nullable=False),
        sa.Column('end_time', sa.Time(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('internal_notes', sa.Text(), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='scheduled'),
        sa.Column('booking_source', sa.String(20), server_default='staff'),
        sa.Column('total_price', sa.Numeric(10, 2), nullable=False, server_default='0'),
        sa.Column('paid_amount', sa.Numeric(10, 2), nullable=False, server_default='0'),
        sa.Column('payment_status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('confirmation_sent_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('reminder_sent_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('client_arrived_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('service_started_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('service_completed_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.CheckConstraint('end_time > start_time', name='ck_appointments_end_after_start')
    )
    op.create_index('ix_appointments_studio_id', 'appointments', ['studio_id'])
    op.create_index('ix_appointments_team_member_id', 'appointments', ['team_member_id'])
    op.create_index('ix_appointments_appointment_date', 'appointments', ['appointment_date'])
    op.create_index('idx_appointments_member_day', 'appointments', ['team_member_id', 'appointment_date', 'status'])

    op.create_table(
        'appointment_history',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('appointment_id', sa.Uuid(), sa.ForeignKey('appointments.id', ondelete='CASCADE'), nullable=False),
        sa.Column('changed_by', sa.String(), nullable=True),
        sa.Column('change_type', sa.String(20), nullable=False),
        sa.Column('old_values', sa.JSON(), nullable=True),
        sa.Column('new_values', sa.JSON(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'))
    )
    op.create_index('ix_appointment_history_appointment_id', 'appointment_history', ['appointment_id'])

    op.create_table(
        'recurring_appointments',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('studio_id', sa.Uuid(), sa.ForeignKey('studios.id', ondelete='CASCADE'), nullable=False),
        sa.Column('client_id', sa.Uuid(), sa.ForeignKey('clients.id', ondelete='CASCADE'), nullable=False),
        sa.Column('team_member_id', sa.Uuid(), sa.ForeignKey('team_members.id'), nullable=False),
        sa.Column('service_id', sa.Uuid(), sa.ForeignKey('services.id'), nullable=False),
        sa.Column('location_id', sa.Uuid(), sa.ForeignKey('locations.id'), nullable=False),
        sa.Column('pattern_type', sa.String(20), nullable=False, server_default='weekly'),
        sa.Column('pattern_config', sa.JSON(), nullable=True),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=True),
        sa.Column('start_time', sa.Time(), nullable=False),
        sa.Column('end_time', sa.Time(), nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true()),
        sa.Column('total_price', sa.Numeric(10, 2), nullable=False, server_default='0'),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamps()
    )
    op.create_index('ix_recurring_appointments_studio_id', 'recurring_appointments', ['studio_id'])

    # 5. Waitlist
    op.create_table(
        'waitlist',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('studio_id', sa.Uuid(), sa.ForeignKey('studios.id', ondelete='CASCADE'), nullable=False),
        sa.Column('client_id', sa.Uuid(), sa.ForeignKey('clients.id', ondelete='CASCADE'), nullable=False),
        sa.Column('service_id', sa.Uuid(), sa.ForeignKey('services.id'), nullable=False),
        sa.Column('location_id', sa.Uuid(), sa.ForeignKey('locations.id'), nullable=True),
        sa.Column('preferred_team_member_id', sa.Uuid(), sa.ForeignKey('team_members.id'), nullable=True),
        sa.Column('preferred_date_start', sa.Date(), nullable=True),
        sa.Column('preferred_date_end', sa.Date(), nullable=True),
        sa.Column('preferred_time_start', sa.Time(), nullable=True),
        sa.Column('preferred_time_end', sa.Time(), nullable=True),
        sa.Column('priority_score', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true()),
        sa.Column('notification_preferences', sa.JSON(), nullable=True),
        *_timestamps()
    )
    op.create_index('ix_waitlist_studio_id', 'waitlist', ['studio_id'])
    op.create_index('ix_waitlist_is_active', 'waitlist', ['is_active'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table('waitlist')
    op.drop_table('recurring_appointments')
    op.drop_table('appointment_history')
    op.drop_table('appointments')
    op.drop_table('blocked_time')
    op.drop_table('availability_rules')
    op.drop_table('service_buffers')
    op.drop_table('services')
    op.drop_table('client_preferences')
    op.drop_table('clients')
    op.drop_table('team_members')
    op.drop_table('locations')
    op.drop_table('studios')
