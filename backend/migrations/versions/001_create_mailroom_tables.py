"""Create mailroom tables

Revision ID: 001
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def _uuid():
    return postgresql.UUID(as_uuid=True)


def _timestamps():
    return sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False)


def upgrade():
    op.execute('CREATE EXTENSION IF NOT EXISTS "pgcrypto"')

    # Identity
    op.create_table(
        'business_account',
        sa.Column('id', _uuid(), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('business_name', sa.Text(), nullable=False),
        sa.Column('kyb_status', sa.Text(), server_default='NOT_STARTED', nullable=False),
        _timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint(
            "kyb_status IN ('NOT_STARTED', 'PENDING', 'APPROVED', 'REJECTED')",
            name='ck_business_account_kyb_status'
        ),
    )

    op.create_table(
        'profile',
        sa.Column('id', _uuid(), nullable=False),
        sa.Column('email', sa.Text(), nullable=False),
        sa.Column('role', sa.Text(), server_default='END_USER', nullable=False),
        sa.Column('plan_type', sa.Text(), server_default='FREE', nullable=False),
        sa.Column('kyc_status', sa.Text(), server_default='NOT_STARTED', nullable=False),
        sa.Column('business_account_id', _uuid(), nullable=True),
        sa.Column('referral_code', sa.Text(), nullable=True),
        sa.Column('referred_by', _uuid(), nullable=True),
        _timestamps(),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email', name='uq_profile_email'),
        sa.UniqueConstraint('referral_code', name='uq_profile_referral_code'),
        sa.ForeignKeyConstraint(['business_account_id'], ['business_account.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['referred_by'], ['profile.id'], ondelete='SET NULL'),
        sa.CheckConstraint(
            "role IN ('END_USER', 'BUSINESS_MEMBER', 'OPERATOR', 'SYSTEM_ADMIN')",
            name='ck_profile_role'
        ),
        sa.CheckConstraint("plan_type IN ('FREE', 'BASIC', 'PREMIUM', 'BUSINESS')", name='ck_profile_plan_type'),
        sa.CheckConstraint(
            "kyc_status IN ('NOT_STARTED', 'PENDING', 'APPROVED', 'REJECTED')",
            name='ck_profile_kyc_status'
        ),
    )

    op.create_table(
        'audit_log',
        sa.Column('id', _uuid(), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('actor_id', _uuid(), nullable=True),
        sa.Column('action', sa.Text(), nullable=False),
        sa.Column('entity_type', sa.Text(), nullable=True),
        sa.Column('entity_id', sa.Text(), nullable=True),
        sa.Column('metadata_json', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('ip_address', sa.Text(), nullable=True),
        sa.Column('user_agent', sa.Text(), nullable=True),
        _timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['actor_id'], ['profile.id'], ondelete='SET NULL'),
    )
    op.create_index('ix_audit_log_created_at', 'audit_log', ['created_at'])
    op.create_index('ix_audit_log_actor_id_created_at', 'audit_log', ['actor_id', 'created_at'])

    # Mail
    op.create_table(
        'mail_item',
        sa.Column('id', _uuid(), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('profile_id', _uuid(), nullable=True),
        sa.Column('business_account_id', _uuid(), nullable=True),
        sa.Column('sender', sa.Text(), nullable=False),
        sa.Column('subject', sa.Text(), nullable=True),
        sa.Column('received_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.Column('status', sa.Text(), server_default='RECEIVED', nullable=False),
        sa.Column('is_archived', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('envelope_scan_ref', sa.Text(), nullable=True),
        sa.Column('full_scan_ref', sa.Text(), nullable=True),
        sa.Column('tags', postgresql.JSONB(astext_type=sa.Text()), server_default=sa.text("'[]'::jsonb"), nullable=False),
        sa.Column('category', sa.Text(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('forward_address', sa.Text(), nullable=True),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['profile_id'], ['profile.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['business_account_id'], ['business_account.id'], ondelete='RESTRICT'),
        sa.CheckConstraint(
            '(profile_id IS NULL) <> (business_account_id IS NULL)',
            name='ck_mail_item_single_owner'
        ),
        sa.CheckConstraint(
            "status IN ('RECEIVED', 'SCANNED', 'PROCESSED', 'FORWARDED', 'SHREDDED')",
            name='ck_mail_item_status'
        ),
    )
    op.create_index('ix_mail_item_profile_received', 'mail_item', ['profile_id', 'received_at'])
    op.create_index('ix_mail_item_business_received', 'mail_item', ['business_account_id', 'received_at'])

    op.create_table(
        'action_request',
        sa.Column('id', _uuid(), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('mail_item_id', _uuid(), nullable=False),
        sa.Column('requested_by', _uuid(), nullable=False),
        sa.Column('action_type', sa.Text(), nullable=False),
        sa.Column('status', sa.Text(), server_default='PENDING', nullable=False),
        sa.Column('priority', sa.Text(), server_default='MEDIUM', nullable=False),
        sa.Column('forward_address', sa.Text(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('confirmed_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('confirmed_by', _uuid(), nullable=True),
        sa.Column('requested_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.Column('completed_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('completed_by', _uuid(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['mail_item_id'], ['mail_item.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['requested_by'], ['profile.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['confirmed_by'], ['profile.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['completed_by'], ['profile.id'], ondelete='SET NULL'),
        sa.CheckConstraint("action_type IN ('SCAN', 'FORWARD', 'SHRED')", name='ck_action_request_type'),
        sa.CheckConstraint(
            "status IN ('PENDING', 'IN_PROGRESS', 'REQUIRES_APPROVAL', 'COMPLETED')",
            name='ck_action_request_status'
        ),
        sa.CheckConstraint("priority IN ('LOW', 'MEDIUM', 'HIGH')", name='ck_action_request_priority'),
    )
    op.create_index('ix_action_request_status_requested', 'action_request', ['status', 'requested_at'])
    op.create_index('ix_action_request_mail_item', 'action_request', ['mail_item_id'])

    # Lockers
    op.create_table(
        'mailing_location',
        sa.Column('id', _uuid(), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        _timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'mailbox_cluster',
        sa.Column('id', _uuid(), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('mailing_location_id', _uuid(), nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        _timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['mailing_location_id'], ['mailing_location.id'], ondelete='RESTRICT'),
    )

    op.create_table(
        'mailbox',
        sa.Column('id', _uuid(), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('cluster_id', _uuid(), nullable=False),
        sa.Column('box_number', sa.Text(), nullable=False),
        sa.Column('type', sa.Text(), server_default='STANDARD', nullable=False),
        sa.Column('width', sa.Numeric(10, 2), nullable=False),
        sa.Column('height', sa.Numeric(10, 2), nullable=False),
        sa.Column('depth', sa.Numeric(10, 2), nullable=False),
        sa.Column('dimension_unit', sa.Text(), server_default='CM', nullable=False),
        sa.Column('is_occupied', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        _timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['cluster_id'], ['mailbox_cluster.id'], ondelete='RESTRICT'),
        sa.UniqueConstraint('cluster_id', 'box_number', name='uq_mailbox_cluster_box_number'),
        sa.CheckConstraint("type IN ('STANDARD', 'LARGE', 'PARCEL_LOCKER')", name='ck_mailbox_type'),
        sa.CheckConstraint("dimension_unit IN ('CM', 'INCH')", name='ck_mailbox_dimension_unit'),
        sa.CheckConstraint('width > 0 AND height > 0 AND depth > 0', name='ck_mailbox_dimensions_positive'),
    )

    # Billing
    op.create_table(
        'subscription',
        sa.Column('id', _uuid(), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('profile_id', _uuid(), nullable=False),
        sa.Column('mailbox_id', _uuid(), nullable=True),
        sa.Column('plan_type', sa.Text(), nullable=False),
        sa.Column('billing_cycle', sa.Text(), server_default='MONTHLY', nullable=False),
        sa.Column('status', sa.Text(), server_default='INACTIVE', nullable=False),
        sa.Column('amount', sa.Numeric(12, 2), nullable=True),
        sa.Column('invoice_url', sa.Text(), nullable=True),
        sa.Column('started_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('next_billing_date', sa.TIMESTAMP(timezone=True), nullable=True),
        _timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['profile_id'], ['profile.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['mailbox_id'], ['mailbox.id'], ondelete='SET NULL'),
        sa.CheckConstraint("plan_type IN ('FREE', 'BASIC', 'PREMIUM', 'BUSINESS')", name='ck_subscription_plan_type'),
        sa.CheckConstraint(
            "billing_cycle IN ('MONTHLY', 'QUARTERLY', 'YEARLY')",
            name='ck_subscription_billing_cycle'
        ),
        sa.CheckConstraint("status IN ('ACTIVE', 'INACTIVE', 'CANCELLED')", name='ck_subscription_status'),
    )
    op.create_index('ix_subscription_profile_status', 'subscription', ['profile_id', 'status'])
    op.create_index('ix_subscription_mailbox_status', 'subscription', ['mailbox_id', 'status'])

    # Referrals
    op.create_table(
        'referral',
        sa.Column('id', _uuid(), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('referrer_id', _uuid(), nullable=False),
        sa.Column('referred_id', _uuid(), nullable=False),
        sa.Column('referral_code', sa.Text(), nullable=False),
        sa.Column('status', sa.Text(), server_default='pending', nullable=False),
        sa.Column('subscription_plan', sa.Text(), nullable=True),
        _timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['referrer_id'], ['profile.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['referred_id'], ['profile.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('referred_id', name='uq_referral_referred_id'),
        sa.CheckConstraint("status IN ('pending', 'active')", name='ck_referral_status'),
    )

    op.create_table(
        'referral_transaction',
        sa.Column('id', _uuid(), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('referral_id', _uuid(), nullable=False),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('status', sa.Text(), server_default='pending', nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('invoice_ref', sa.Text(), nullable=True),
        _timestamps(),
        sa.Column('paid_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['referral_id'], ['referral.id'], ondelete='CASCADE'),
        sa.CheckConstraint("status IN ('pending', 'paid')", name='ck_referral_transaction_status'),
        sa.CheckConstraint('amount >= 0', name='ck_referral_transaction_amount'),
        sa.UniqueConstraint('referral_id', 'invoice_ref', name='uq_referral_transaction_invoice'),
    )

    # Plan catalog
    op.create_table(
        'package',
        sa.Column('id', _uuid(), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('plan_type', sa.Text(), nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('price_monthly', sa.Numeric(12, 2), nullable=False),
        sa.Column('price_quarterly', sa.Numeric(12, 2), nullable=True),
        sa.Column('price_yearly', sa.Numeric(12, 2), nullable=True),
        sa.Column('cashback_percentage', sa.Numeric(5, 2), server_default='5', nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        sa.Column('display_order', sa.Integer(), server_default='0', nullable=False),
        sa.Column('created_by', _uuid(), nullable=True),
        _timestamps(),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['created_by'], ['profile.id'], ondelete='SET NULL'),
        sa.UniqueConstraint('plan_type', name='uq_package_plan_type'),
        sa.CheckConstraint("plan_type IN ('BASIC', 'PREMIUM', 'BUSINESS')", name='ck_package_plan_type'),
        sa.CheckConstraint('price_monthly >= 0', name='ck_package_price_monthly'),
        sa.CheckConstraint(
            'cashback_percentage >= 0 AND cashback_percentage <= 100',
            name='ck_package_cashback_percentage'
        ),
    )


def downgrade():
    op.drop_table('package')
    op.drop_table('referral_transaction')
    op.drop_table('referral')
    op.drop_index('ix_subscription_mailbox_status', table_name='subscription')
    op.drop_index('ix_subscription_profile_status', table_name='subscription')
    op.drop_table('subscription')
    op.drop_table('mailbox')
    op.drop_table('mailbox_cluster')
    op.drop_table('mailing_location')
    op.drop_index('ix_action_request_mail_item', table_name='action_request')
    op.drop_index('ix_action_request_status_requested', table_name='action_request')
    op.drop_table('action_request')
    op.drop_index('ix_mail_item_business_received', table_name='mail_item')
    op.drop_index('ix_mail_item_profile_received', table_name='mail_item')
    op.drop_table('mail_item')
    op.drop_index('ix_audit_log_actor_id_created_at', table_name='audit_log')
    op.drop_index('ix_audit_log_created_at', table_name='audit_log')
    op.drop_table('audit_log')
    op.drop_table('profile')
    op.drop_table('business_account')
