"""Initial schema: users, subscription plans, tables, reservations and waitlist

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision = '001_initial_schema'
down_revision = None

# Enum columns store member names
user_role = sa.Enum('ADMIN', 'DEVELOPER', 'MANAGER', 'STAFF', 'CUSTOMER', name='userrole')
billing_interval = sa.Enum('MONTHLY', 'YEARLY', name='billinginterval')
subscription_status = sa.Enum('ACTIVE', 'TRIALING', 'PAST_DUE', 'CANCELED', 'INCOMPLETE', name='subscriptionstatus')
table_status = sa.Enum('AVAILABLE', 'RESERVED', 'OCCUPIED', 'DIRTY', 'MAINTENANCE', name='tablestatus')
reservation_status = sa.Enum('CONFIRMED', 'WAITLIST', 'CANCELLED', name='reservationstatus')
waitlist_status = sa.Enum('WAITING', 'SEATED', 'CANCELLED', 'NO_SHOW', name='waitliststatus')


def upgrade():
    # Users
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('password_hash', sa.String(), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('role', user_role, nullable=False),
        sa.Column('subscription_plan', sa.String(100), nullable=True),
        sa.Column('subscription_status', sa.String(50), nullable=True),
        sa.Column('subscription_current_period_end', sa.DateTime(timezone=True), nullable=True),
        sa.Column('stripe_customer_id', sa.String(255), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.current_timestamp()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_subscription_status', 'users', ['subscription_status'])
    op.create_index('ix_users_is_active', 'users', ['is_active'])

    # Subscription plans
    op.create_table(
        'subscription_plans',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.String(), nullable=True),
        sa.Column('price', sa.Numeric(10, 2), nullable=False),
        sa.Column('billing_interval', billing_interval, nullable=False),
        sa.Column('features', sa.JSON(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('has_trial', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('trial_days', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('stripe_product_id', sa.String(255), nullable=True),
        sa.Column('stripe_price_id', sa.String(255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.current_timestamp()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_subscription_plans_name', 'subscription_plans', ['name'])
    op.create_index('ix_subscription_plans_is_active', 'subscription_plans', ['is_active'])

    op.create_table(
        'plan_features',
        sa.Column('plan_id', sa.Integer(), sa.ForeignKey('subscription_plans.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('feature_key', sa.String(100), primary_key=True),
    )

    op.create_table(
        'subscriptions',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('plan_id', sa.Integer(), sa.ForeignKey('subscription_plans.id'), nullable=True),
        sa.Column('status', subscription_status, nullable=False),
        sa.Column('stripe_subscription_id', sa.String(255), nullable=True),
        sa.Column('current_period_start', sa.DateTime(timezone=True), nullable=True),
        sa.Column('current_period_end', sa.DateTime(timezone=True), nullable=True),
        sa.Column('cancel_at_period_end', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.current_timestamp()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_subscriptions_user_id', 'subscriptions', ['user_id'])
    op.create_index('ix_subscriptions_plan_id', 'subscriptions', ['plan_id'])
    op.create_index('ix_subscriptions_status', 'subscriptions', ['status'])
    op.create_index('ix_subscriptions_stripe_subscription_id', 'subscriptions', ['stripe_subscription_id'])

    # Seating
    op.create_table(
        'tables',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('table_number', sa.String(50), nullable=False),
        sa.Column('seats', sa.Integer(), nullable=False, server_default='4'),
        sa.Column('is_smoking', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('location', sa.String(100), nullable=True),
        sa.Column('qr_code_url', sa.String(500), nullable=True),
        sa.Column('status', table_status, nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.current_timestamp()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_tables_table_number', 'tables', ['table_number'], unique=True)
    op.create_index('ix_tables_status', 'tables', ['status'])

    op.create_table(
        'reservations',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('phone_number', sa.String(50), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('time', sa.Time(), nullable=False),
        sa.Column('party_size', sa.Integer(), nullable=False),
        sa.Column('table_id', sa.Integer(), sa.ForeignKey('tables.id'), nullable=True),
        sa.Column('status', reservation_status, nullable=False),
        sa.Column('special_instructions', sa.String(2000), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.current_timestamp()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_reservations_email', 'reservations', ['email'])
    op.create_index('ix_reservations_phone_number', 'reservations', ['phone_number'])
    op.create_index('ix_reservations_date', 'reservations', ['date'])
    op.create_index('ix_reservations_table_id', 'reservations', ['table_id'])
    op.create_index('ix_reservations_status', 'reservations', ['status'])
    # Best-fit lookup filters on the slot and status together
    op.create_index('idx_reservations_slot', 'reservations', ['date', 'time', 'status'])

    op.create_table(
        'waitlist',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('customer_email', sa.String(255), nullable=True),
        sa.Column('phone_number', sa.String(50), nullable=False),
        sa.Column('party_size', sa.Integer(), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('time', sa.Time(), nullable=False),
        sa.Column('special_requests', sa.String(2000), nullable=True),
        sa.Column('status', waitlist_status, nullable=False),
        sa.Column('estimated_wait_time', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('notified', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.current_timestamp()),
    )
    op.create_index('ix_waitlist_phone_number', 'waitlist', ['phone_number'])
    op.create_index('ix_waitlist_date', 'waitlist', ['date'])
    op.create_index('ix_waitlist_status', 'waitlist', ['status'])

    op.create_table(
        'reservation_settings',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('day_of_week', sa.Integer(), nullable=False),
        sa.Column('open_time', sa.Time(), nullable=False),
        sa.Column('close_time', sa.Time(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint('day_of_week BETWEEN 0 AND 6', name='ck_reservation_settings_day_of_week'),
    )
    op.create_index('ix_reservation_settings_day_of_week', 'reservation_settings', ['day_of_week'], unique=True)

    op.create_table(
        'notification_logs',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('type', sa.String(100), nullable=False),
        sa.Column('recipient_id', sa.String(100), nullable=False),
        sa.Column('recipient_type', sa.String(50), nullable=False),
        sa.Column('sent_by', sa.String(100), nullable=False, server_default='system'),
        sa.Column('status', sa.String(50), nullable=False, server_default='prepared'),
        sa.Column('message', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.current_timestamp()),
    )
    op.create_index('ix_notification_logs_type', 'notification_logs', ['type'])


def downgrade():
    op.drop_table('notification_logs')
    op.drop_table('reservation_settings')
    op.drop_table('waitlist')
    op.drop_table('reservations')
    op.drop_table('tables')
    op.drop_table('subscriptions')
    op.drop_table('plan_features')
    op.drop_table('subscription_plans')
    op.drop_table('users')

    bind = op.get_bind()
    for enum in (waitlist_status, reservation_status, table_status,
                 subscription_status, billing_interval, user_role):
        enum.drop(bind, checkfirst=True)
