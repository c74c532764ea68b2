"""initial schema

Revision ID: a1b2c3d4e5f6
Revises:
Create Date: 2026-10-19 00:00:00.000000

Creates the complete Authentiks schema:
- companies, brands, users, session_tokens, otp_challenges: accounts and auth
- orders, order_history: QR order lifecycle with append-only audit trail
- qr_codes, scans, reports: product codes, scan log, consumer reports
- credit_transactions: append-only QR credit ledger
- price_plans, billing_settings, additional_charges, coupons, payments,
  test_accounts: pricing and credit purchases
- form_configs: QR creation form schema

Money columns are integer paise; rates are basis points.
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'a1b2c3d4e5f6'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # ============================================================================
    # Accounts
    # ============================================================================
    op.create_table(
        'companies',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('company_name', sa.String(length=255), nullable=False),
        sa.Column('legal_entity', sa.String(length=255), nullable=True),
        sa.Column('industry', sa.String(length=128), nullable=True),
        sa.Column('country', sa.String(length=64), nullable=True),
        sa.Column('city', sa.String(length=128), nullable=True),
        sa.Column('cin_gst', sa.String(length=64), nullable=True),
        sa.Column('register_office_address', sa.Text(), nullable=True),
        sa.Column('dispatch_address', sa.Text(), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('phone_number', sa.String(length=32), nullable=True),
        sa.Column('contact_person_name', sa.String(length=255), nullable=True),
        sa.Column('website', sa.String(length=255), nullable=True),
        sa.Column('qr_credits', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_by_user_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )

    op.create_table(
        'brands',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('brand_name', sa.String(length=255), nullable=False),
        sa.Column('brand_logo', sa.String(length=512), nullable=True),
        sa.Column('company_id', sa.Integer(), nullable=False),
        sa.Column('created_by_user_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['company_id'], ['companies.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_brands_brand_name', 'brands', ['brand_name'])
    op.create_index('ix_brands_company_id', 'brands', ['company_id'])

    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('mobile', sa.String(length=32), nullable=True),
        sa.Column('password_hash', sa.String(length=255), nullable=True),
        sa.Column('role', sa.String(length=32), nullable=False, server_default='user'),
        sa.Column('name', sa.String(length=255), nullable=True),
        sa.Column('dob', sa.String(length=32), nullable=True),
        sa.Column('gender', sa.String(length=32), nullable=True),
        sa.Column('country', sa.String(length=64), nullable=True),
        sa.Column('state', sa.String(length=64), nullable=True),
        sa.Column('city', sa.String(length=128), nullable=True),
        sa.Column('brand_id', sa.Integer(), nullable=True),
        sa.Column('company_id', sa.Integer(), nullable=True),
        sa.Column('created_by_user_id', sa.Integer(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('last_login_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['brand_id'], ['brands.id'], ),
        sa.ForeignKeyConstraint(['company_id'], ['companies.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email'),
        sa.UniqueConstraint('mobile'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_users_role', 'users', ['role'])
    op.create_index('ix_users_brand_id', 'users', ['brand_id'])
    op.create_index('ix_users_company_id', 'users', ['company_id'])

    op.create_table(
        'session_tokens',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('role', sa.String(length=32), nullable=False),
        sa.Column('token_hash', sa.String(length=64), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('last_used_at', sa.DateTime(), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('revoked_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_session_tokens_user_id', 'session_tokens', ['user_id'])
    op.create_index('ix_session_tokens_token_hash', 'session_tokens', ['token_hash'], unique=True)
    op.create_index('ix_session_tokens_expires_at', 'session_tokens', ['expires_at'])
    op.create_index('ix_session_tokens_user_revoked', 'session_tokens', ['user_id', 'revoked_at'])

    op.create_table(
        'otp_challenges',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('mobile', sa.String(length=32), nullable=False),
        sa.Column('code_hash', sa.String(length=255), nullable=False),
        sa.Column('attempts', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('consumed_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_otp_challenges_mobile', 'otp_challenges', ['mobile'])

    # ============================================================================
    # Orders
    # ============================================================================
    op.create_table(
        'orders',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('order_number', sa.String(length=64), nullable=False),
        sa.Column('status', sa.String(length=32), nullable=False,
                  server_default='Pending Authorization'),
        sa.Column('product_name', sa.String(length=255), nullable=False),
        sa.Column('brand', sa.String(length=255), nullable=False),
        sa.Column('batch_no', sa.String(length=128), nullable=True),
        sa.Column('manufacture_date', sa.String(length=32), nullable=True),
        sa.Column('expiry_date', sa.String(length=32), nullable=True),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('brand_id', sa.Integer(), nullable=False),
        sa.Column('created_by_user_id', sa.Integer(), nullable=False),
        sa.Column('qr_codes_generated', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('qr_generated_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('tracking_number', sa.String(length=128), nullable=True),
        sa.Column('courier_name', sa.String(length=128), nullable=True),
        sa.Column('dispatch_notes', sa.Text(), nullable=True),
        sa.Column('dispatched_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        sa.ForeignKeyConstraint(['brand_id'], ['brands.id'], ),
        sa.ForeignKeyConstraint(['created_by_user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_orders_order_number', 'orders', ['order_number'], unique=True)
    op.create_index('ix_orders_status', 'orders', ['status'])
    op.create_index('ix_orders_brand_id', 'orders', ['brand_id'])
    op.create_index('ix_orders_created_by_user_id', 'orders', ['created_by_user_id'])
    op.create_index('ix_orders_brand_status_created', 'orders', ['brand_id', 'status', 'created_at'])

    op.create_table(
        'order_history',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('order_id', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=32), nullable=False),
        sa.Column('changed_by_user_id', sa.Integer(), nullable=True),
        sa.Column('role', sa.String(length=32), nullable=True),
        sa.Column('comment', sa.Text(), nullable=True),
        sa.Column('timestamp', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id'], ),
        sa.ForeignKeyConstraint(['changed_by_user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_order_history_order_id', 'order_history', ['order_id'])

    # ============================================================================
    # QR codes, scans, reports
    # ============================================================================
    op.create_table(
        'qr_codes',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('code', sa.String(length=255), nullable=False),
        sa.Column('product_name', sa.String(length=255), nullable=False),
        sa.Column('brand', sa.String(length=255), nullable=False),
        sa.Column('brand_id', sa.Integer(), nullable=True),
        sa.Column('batch_no', sa.String(length=128), nullable=True),
        sa.Column('manufacture_date', sa.String(length=32), nullable=True),
        sa.Column('expiry_date', sa.String(length=32), nullable=True),
        sa.Column('sequence', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('order_id', sa.Integer(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('first_scan_id', sa.Integer(), nullable=True),
        sa.Column('used_at', sa.DateTime(), nullable=True),
        sa.Column('created_by_user_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        sa.ForeignKeyConstraint(['brand_id'], ['brands.id'], ),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id'], ),
        sa.ForeignKeyConstraint(['created_by_user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_qr_codes_code', 'qr_codes', ['code'], unique=True)
    op.create_index('ix_qr_codes_brand_id', 'qr_codes', ['brand_id'])
    op.create_index('ix_qr_codes_order_id', 'qr_codes', ['order_id'])
    op.create_index('ix_qr_codes_brand_sequence', 'qr_codes', ['brand', 'sequence'])

    op.create_table(
        'scans',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('qr_code', sa.String(length=255), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('qr_code_id', sa.Integer(), nullable=True),
        sa.Column('product_name', sa.String(length=255), nullable=True),
        sa.Column('brand', sa.String(length=255), nullable=True),
        sa.Column('brand_id', sa.Integer(), nullable=True),
        sa.Column('expiry_date', sa.String(length=32), nullable=True),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('place', sa.String(length=255), nullable=True),
        sa.Column('latitude', sa.Float(), nullable=True),
        sa.Column('longitude', sa.Float(), nullable=True),
        sa.Column('original_scan_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['qr_code_id'], ['qr_codes.id'], ),
        sa.ForeignKeyConstraint(['brand_id'], ['brands.id'], ),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.ForeignKeyConstraint(['original_scan_id'], ['scans.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_scans_qr_code', 'scans', ['qr_code'])
    op.create_index('ix_scans_qr_code_id', 'scans', ['qr_code_id'])
    op.create_index('ix_scans_user_created', 'scans', ['user_id', 'created_at'])
    op.create_index('ix_scans_brand_status', 'scans', ['brand_id', 'status'])

    op.create_table(
        'reports',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('product_name', sa.String(length=255), nullable=False),
        sa.Column('brand', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('report_type', sa.String(length=16), nullable=False, server_default='COUNTERFEIT'),
        sa.Column('images', sa.JSON(), nullable=False),
        sa.Column('qr_code', sa.String(length=255), nullable=True),
        sa.Column('latitude', sa.Float(), nullable=True),
        sa.Column('longitude', sa.Float(), nullable=True),
        sa.Column('place', sa.String(length=255), nullable=False, server_default='Unknown location'),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='Pending'),
        sa.Column('is_counterfeit', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_reports_user_id', 'reports', ['user_id'])
    op.create_index('ix_reports_status', 'reports', ['status'])

    # ============================================================================
    # Billing
    # ============================================================================
    op.create_table(
        'price_plans',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('price_per_qr_paise', sa.Integer(), nullable=False),
        sa.Column('qr_credits', sa.Integer(), nullable=False),
        sa.Column('min_qr_per_order', sa.Integer(), nullable=True),
        sa.Column('validity', sa.String(length=64), nullable=True),
        sa.Column('is_popular', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('is_trial', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('save_text', sa.String(length=128), nullable=True),
        sa.Column('features', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name'),
        sqlite_autoincrement=True
    )

    op.create_table(
        'billing_settings',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('gst_rate_bps', sa.Integer(), nullable=False, server_default='1800'),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )

    op.create_table(
        'additional_charges',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('setting_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('charge_type', sa.String(length=16), nullable=False, server_default='percentage'),
        sa.Column('value', sa.Integer(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        sa.ForeignKeyConstraint(['setting_id'], ['billing_settings.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_additional_charges_setting_id', 'additional_charges', ['setting_id'])

    op.create_table(
        'coupons',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('code', sa.String(length=64), nullable=False),
        sa.Column('description', sa.String(length=255), nullable=False, server_default=''),
        sa.Column('discount_type', sa.String(length=16), nullable=False, server_default='percentage'),
        sa.Column('discount_value', sa.Integer(), nullable=False),
        sa.Column('min_amount_paise', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('max_discount_paise', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('expires_at', sa.DateTime(), nullable=True),
        sa.Column('usage_limit', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('used_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('created_by_user_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        sa.ForeignKeyConstraint(['created_by_user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_coupons_code', 'coupons', ['code'], unique=True)

    # Append-only; balance_after is the running sum per company
    op.create_table(
        'credit_transactions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('company_id', sa.Integer(), nullable=False),
        sa.Column('type', sa.String(length=32), nullable=False),
        sa.Column('amount', sa.Integer(), nullable=False),
        sa.Column('balance_after', sa.Integer(), nullable=False),
        sa.Column('unit_price_paise', sa.Integer(), nullable=True),
        sa.Column('total_paid_paise', sa.Integer(), nullable=True),
        sa.Column('plan_name', sa.String(length=128), nullable=True),
        sa.Column('payment_id', sa.Integer(), nullable=True),
        sa.Column('order_id', sa.Integer(), nullable=True),
        sa.Column('performed_by_user_id', sa.Integer(), nullable=True),
        sa.Column('note', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['company_id'], ['companies.id'], ),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id'], ),
        sa.ForeignKeyConstraint(['performed_by_user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_credit_transactions_company_id', 'credit_transactions', ['company_id'])
    op.create_index('ix_credit_transactions_company_created', 'credit_transactions',
                    ['company_id', 'created_at'])

    op.create_table(
        'payments',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('company_id', sa.Integer(), nullable=False),
        sa.Column('type', sa.String(length=16), nullable=False),
        sa.Column('plan_id', sa.Integer(), nullable=True),
        sa.Column('plan_name', sa.String(length=128), nullable=True),
        sa.Column('quantity', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('credits', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('unit_price_paise', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('base_amount_paise', sa.Integer(), nullable=False),
        sa.Column('gst_rate_bps', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('gst_amount_paise', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('additional_charges', sa.JSON(), nullable=False),
        sa.Column('charges_total_paise', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('coupon_code', sa.String(length=64), nullable=True),
        sa.Column('coupon_discount_paise', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('final_amount_paise', sa.Integer(), nullable=False),
        sa.Column('charged_amount_paise', sa.Integer(), nullable=False),
        sa.Column('is_test_payment', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('merchant_order_id', sa.String(length=64), nullable=False),
        sa.Column('gateway_transaction_id', sa.String(length=128), nullable=True),
        sa.Column('redirect_url', sa.String(length=1024), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='pending'),
        sa.Column('credit_transaction_id', sa.Integer(), nullable=True),
        sa.Column('performed_by_user_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        sa.ForeignKeyConstraint(['company_id'], ['companies.id'], ),
        sa.ForeignKeyConstraint(['plan_id'], ['price_plans.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['credit_transaction_id'], ['credit_transactions.id'], ),
        sa.ForeignKeyConstraint(['performed_by_user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_payments_company_id', 'payments', ['company_id'])
    op.create_index('ix_payments_merchant_order_id', 'payments', ['merchant_order_id'], unique=True)
    op.create_index('ix_payments_status', 'payments', ['status'])
    op.create_index('ix_payments_company_created', 'payments', ['company_id', 'created_at'])

    op.create_table(
        'test_accounts',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('company_id', sa.Integer(), nullable=False),
        sa.Column('test_amount_paise', sa.Integer(), nullable=False, server_default='100'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('description', sa.String(length=255), nullable=False, server_default=''),
        sa.Column('created_by_user_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['company_id'], ['companies.id'], ),
        sa.ForeignKeyConstraint(['created_by_user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('company_id'),
        sqlite_autoincrement=True
    )

    # ============================================================================
    # Form configuration
    # ============================================================================
    op.create_table(
        'form_configs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('form_name', sa.String(length=128), nullable=False, server_default='QR Creation Form'),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('custom_fields', sa.JSON(), nullable=False),
        sa.Column('static_fields', sa.JSON(), nullable=False),
        sa.Column('variants', sa.JSON(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('created_by_user_id', sa.Integer(), nullable=True),
        sa.Column('updated_by_user_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['created_by_user_id'], ['users.id'], ),
        sa.ForeignKeyConstraint(['updated_by_user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )


def downgrade():
    op.drop_table('form_configs')
    op.drop_table('test_accounts')
    op.drop_table('payments')
    op.drop_table('credit_transactions')
    op.drop_table('coupons')
    op.drop_table('additional_charges')
    op.drop_table('billing_settings')
    op.drop_table('price_plans')
    op.drop_table('reports')
    op.drop_table('scans')
    op.drop_table('qr_codes')
    op.drop_table('order_history')
    op.drop_table('orders')
    op.drop_table('otp_challenges')
    op.drop_table('session_tokens')
    op.drop_table('users')
    op.drop_table('brands')
    op.drop_table('companies')
