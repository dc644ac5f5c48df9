"""Initial ledger schema: users, packages, deposits, withdrawals, gift codes, settings, notices"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3c9a1f0d2b71'
down_revision = None
branch_labels = None
depends_on = None


request_status = sa.Enum('pending', 'approved', 'rejected', name='request_status')
package_status = sa.Enum('active', 'inactive', name='package_status')


def upgrade():
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('phone', sa.String(length=20), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('balance', sa.Numeric(precision=18, scale=2), server_default=sa.text('0'), nullable=False),
        sa.Column('role', sa.String(length=20), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('phone'),
    )
    op.create_index('ix_users_role', 'users', ['role'], unique=False)

    op.create_table(
        'packages',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('price', sa.Numeric(precision=18, scale=2), nullable=False),
        sa.Column('daily_earning', sa.Numeric(precision=18, scale=2), nullable=False),
        sa.Column('total_income', sa.Numeric(precision=18, scale=2), nullable=True),
        sa.Column('validity_days', sa.Integer(), nullable=False),
        sa.Column('referral_commission', sa.Numeric(precision=18, scale=2), nullable=True),
        sa.Column('image_url', sa.String(length=500), nullable=True),
        sa.Column('status', package_status, nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint('price >= 0', name='chk_package_price'),
        sa.CheckConstraint('validity_days > 0', name='chk_package_validity'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_packages_status', 'packages', ['status'], unique=False)

    op.create_table(
        'user_packages',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('package_id', sa.Integer(), nullable=False),
        sa.Column('purchased_at', sa.DateTime(), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('last_claim_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['package_id'], ['packages.id']),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_user_packages_user_id', 'user_packages', ['user_id'], unique=False)

    op.create_table(
        'deposits',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('amount', sa.Numeric(precision=18, scale=2), nullable=False),
        sa.Column('transaction_id', sa.String(length=128), nullable=False),
        sa.Column('method', sa.String(length=50), nullable=True),
        sa.Column('status', request_status, nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('transaction_id', name='uq_deposits_transaction_id'),
    )
    op.create_index('ix_deposits_user_id', 'deposits', ['user_id'], unique=False)
    op.create_index('ix_deposits_status', 'deposits', ['status'], unique=False)

    op.create_table(
        'withdrawals',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('amount', sa.Numeric(precision=18, scale=2), nullable=False),
        sa.Column('method', sa.String(length=50), nullable=True),
        sa.Column('account_number', sa.String(length=50), nullable=True),
        sa.Column('status', request_status, nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_withdrawals_user_id', 'withdrawals', ['user_id'], unique=False)
    op.create_index('ix_withdrawals_status', 'withdrawals', ['status'], unique=False)

    op.create_table(
        'gift_codes',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('code', sa.String(length=64), nullable=False),
        sa.Column('amount', sa.Numeric(precision=18, scale=2), nullable=False),
        sa.Column('max_claims', sa.Integer(), nullable=False),
        sa.Column('claimed_count', sa.Integer(), server_default=sa.text('0'), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint('claimed_count <= max_claims', name='chk_gift_claims_cap'),
        sa.CheckConstraint('claimed_count >= 0', name='chk_gift_claims_non_negative'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('code'),
    )

    op.create_table(
        'gift_claims',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('code_id', sa.Integer(), nullable=False),
        sa.Column('claimed_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['code_id'], ['gift_codes.id']),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'code_id', name='uq_gift_claims_user_code'),
    )

    op.create_table(
        'settings',
        sa.Column('key', sa.String(length=100), nullable=False),
        sa.Column('value', sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint('key'),
    )

    op.create_table(
        'notices',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_notices_created', 'notices', ['created_at'], unique=False)


def downgrade():
    op.drop_index('idx_notices_created', table_name='notices')
    op.drop_table('notices')
    op.drop_table('settings')
    op.drop_table('gift_claims')
    op.drop_table('gift_codes')
    op.drop_index('ix_withdrawals_status', table_name='withdrawals')
    op.drop_index('ix_withdrawals_user_id', table_name='withdrawals')
    op.drop_table('withdrawals')
    op.drop_index('ix_deposits_status', table_name='deposits')
    op.drop_index('ix_deposits_user_id', table_name='deposits')
    op.drop_table('deposits')
    op.drop_index('ix_user_packages_user_id', table_name='user_packages')
    op.drop_table('user_packages')
    op.drop_index('ix_packages_status', table_name='packages')
    op.drop_table('packages')
    op.drop_index('ix_users_role', table_name='users')
    op.drop_table('users')
    request_status.drop(op.get_bind(), checkfirst=True)
    package_status.drop(op.get_bind(), checkfirst=True)
