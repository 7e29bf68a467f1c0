"""Create gig marketplace core tables

Revision ID: gig_marketplace_core_001
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = 'gig_marketplace_core_001'
down_revision = None
branch_labels = None
depends_on = None


ENUMS = {
    'companyroledb': ('CREATOR', 'APPROVER', 'MANAGER', 'OWNER'),
    'membershiprequeststatusdb': ('PENDING', 'APPROVED', 'DENIED'),
    'membershiptierdb': ('COPPER', 'BRONZE', 'SILVER', 'GOLD', 'PLATINUM', 'DIAMOND'),
    'gigstatusdb': ('DRAFT', 'OPEN', 'CLAIMED', 'IN_PROGRESS', 'COMPLETED', 'CANCELLED'),
    'gigtypedb': ('STANDARD', 'DELIVERY', 'AUDIT'),
    'assignmentstatusdb': (
        'CLAIMED', 'ACCEPTED', 'DECLINED', 'STARTED', 'SUBMITTED', 'REVIEWED', 'COMPLETED', 'CANCELLED'
    ),
    'reviewdecisiondb': ('APPROVED', 'REJECTED'),
    'starsreasondb': ('EARNED_FROM_REVIEW', 'SPENT_ON_PRODUCT', 'ADJUSTMENT'),
    'moneyreasondb': ('PAYOUT', 'ADJUSTMENT'),
    'purchasestatusdb': ('ACTIVE', 'EXPIRED', 'CONSUMED'),
    'productcategorydb': ('MEMBERSHIP_UPGRADE', 'PAY_BONUS'),
}


def enum(name):
    # types are created up front; columns only reference them
    return postgresql.ENUM(*ENUMS[name], name=name, create_type=False)


def timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now()),
    ]


def upgrade():
    # Create enums
    for name, values in ENUMS.items():
        postgresql.ENUM(*values, name=name, create_type=True).create(op.get_bind(), checkfirst=True)

    # Identity
    op.create_table(
        'users',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False, unique=True),
        sa.Column('password_hash', sa.String(255), nullable=False),
        *timestamps()
    )
    op.create_index('ix_users_email', 'users', ['email'])

    op.create_table(
        'profiles',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('user_id', sa.String(36), sa.ForeignKey('users.id'), nullable=False, unique=True),
        sa.Column('first_name', sa.String(100)),
        sa.Column('last_name', sa.String(100)),
        sa.Column('username', sa.String(100), unique=True),
        sa.Column('zipcode', sa.String(20)),
        sa.Column('avatar_url', sa.String(500)),
        sa.Column('stars_balance', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('tier', enum('membershiptierdb'), nullable=False, server_default='COPPER'),
        sa.Column('rating_sum', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('rating_count', sa.Integer(), nullable=False, server_default='0'),
        *timestamps(),
        sa.CheckConstraint('stars_balance >= 0', name='ck_profiles_stars_balance_non_negative'),
    )

    op.create_table(
        'refresh_tokens',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('user_id', sa.String(36), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('token_hash', sa.String(64), nullable=False, unique=True),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('revoked_at', sa.DateTime()),
        sa.Column('replaced_by_token_id', sa.String(36), sa.ForeignKey('refresh_tokens.id')),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_index('ix_refresh_tokens_user_id', 'refresh_tokens', ['user_id'])

    op.create_table(
        'password_reset_tokens',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('user_id', sa.String(36), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('token_hash', sa.String(64), nullable=False, unique=True),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('used_at', sa.DateTime()),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_index('ix_password_reset_tokens_user_id', 'password_reset_tokens', ['user_id'])

    # Companies
    op.create_table(
        'companies',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False, unique=True),
        sa.Column('logo_url', sa.String(500)),
        *timestamps()
    )

    op.create_table(
        'members',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('company_id', sa.String(36), sa.ForeignKey('companies.id'), nullable=False),
        sa.Column('user_id', sa.String(36), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('role', enum('companyroledb'), nullable=False, server_default='CREATOR'),
        *timestamps(),
        sa.UniqueConstraint('company_id', 'user_id', name='uq_members_company_user'),
    )
    op.create_index('ix_members_company_id', 'members', ['company_id'])
    op.create_index('ix_members_user_id', 'members', ['user_id'])

    op.create_table(
        'company_membership_requests',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('company_id', sa.String(36), sa.ForeignKey('companies.id'), nullable=False),
        sa.Column('user_id', sa.String(36), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('requested_role', enum('companyroledb'), nullable=False, server_default='CREATOR'),
        sa.Column('note', sa.Text()),
        sa.Column('status', enum('membershiprequeststatusdb'), nullable=False, server_default='PENDING'),
        sa.Column('resolved_by_user_id', sa.String(36), sa.ForeignKey('users.id')),
        sa.Column('resolved_note', sa.Text()),
        sa.Column('resolved_at', sa.DateTime()),
        *timestamps()
    )
    op.create_index('ix_company_membership_requests_company_id', 'company_membership_requests', ['company_id'])
    op.create_index('ix_company_membership_requests_user_id', 'company_membership_requests', ['user_id'])

    # Gigs
    op.create_table(
        'locations',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('address', sa.String(500), nullable=False),
        sa.Column('city', sa.String(100)),
        sa.Column('state', sa.String(100)),
        sa.Column('zipcode', sa.String(20)),
        sa.Column('lat', sa.Float()),
        sa.Column('lng', sa.Float()),
        *timestamps()
    )

    op.create_table(
        'gigs',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('company_id', sa.String(36), sa.ForeignKey('companies.id'), nullable=False),
        sa.Column('created_by_user_id', sa.String(36), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('location_id', sa.String(36), sa.ForeignKey('locations.id')),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('type', enum('gigtypedb'), nullable=False, server_default='STANDARD'),
        sa.Column('status', enum('gigstatusdb'), nullable=False, server_default='DRAFT'),
        sa.Column('starts_at', sa.DateTime()),
        sa.Column('ends_at', sa.DateTime()),
        sa.Column('base_price_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('bump_every_seconds', sa.Integer(), nullable=False, server_default='1800'),
        sa.Column('bump_cents', sa.Integer(), nullable=False, server_default='100'),
        sa.Column('max_bumps', sa.Integer()),
        sa.Column('max_price_cents', sa.Integer()),
        sa.Column('base_stars', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('stars_bump_every_seconds', sa.Integer(), nullable=False, server_default='1800'),
        sa.Column('stars_bump_amount', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('max_age_bonus_stars', sa.Integer()),
        sa.Column('repost_bonus_per_repost', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('repost_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('required_tier', enum('membershiptierdb')),
        sa.Column('status_changed_at', sa.DateTime()),
        *timestamps()
    )
    op.create_index('ix_gigs_company_id', 'gigs', ['company_id'])
    op.create_index('ix_gigs_created_by_user_id', 'gigs', ['created_by_user_id'])
    op.create_index('ix_gigs_status', 'gigs', ['status'])

    op.create_table(
        'gig_assignments',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('gig_id', sa.String(36), sa.ForeignKey('gigs.id'), nullable=False),
        sa.Column('user_id', sa.String(36), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('status', enum('assignmentstatusdb'), nullable=False, server_default='CLAIMED'),
        sa.Column('note', sa.Text()),
        sa.Column('claimed_at', sa.DateTime()),
        sa.Column('accepted_at', sa.DateTime()),
        sa.Column('started_at', sa.DateTime()),
        sa.Column('submitted_at', sa.DateTime()),
        sa.Column('reviewed_at', sa.DateTime()),
        sa.Column('completed_at', sa.DateTime()),
        *timestamps()
    )
    op.create_index('ix_gig_assignments_gig_id', 'gig_assignments', ['gig_id'], unique=True)
    op.create_index('ix_gig_assignments_user_id', 'gig_assignments', ['user_id'])

    op.create_table(
        'gig_reviews',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('assignment_id', sa.String(36), sa.ForeignKey('gig_assignments.id'), nullable=False, unique=True),
        sa.Column('reviewer_member_id', sa.String(36), sa.ForeignKey('members.id'), nullable=True),
        sa.Column('stars_rating', sa.Integer(), nullable=False),
        sa.Column('decision', enum('reviewdecisiondb'), nullable=False),
        sa.Column('comment', sa.Text()),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
    )

    op.create_table(
        'watchlist',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('user_id', sa.String(36), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('gig_id', sa.String(36), sa.ForeignKey('gigs.id'), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.UniqueConstraint('user_id', 'gig_id', name='uq_watchlist_user_gig'),
    )
    op.create_index('ix_watchlist_user_id', 'watchlist', ['user_id'])
    op.create_index('ix_watchlist_gig_id', 'watchlist', ['gig_id'])

    # Shop
    op.create_table(
        'products',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('category', enum('productcategorydb'), nullable=False),
        sa.Column('tier', enum('membershiptierdb')),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('subtitle', sa.String(500)),
        sa.Column('stars_cost', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('duration_seconds', sa.Integer()),
        sa.Column('effect_pct', sa.Integer()),
        *timestamps()
    )

    op.create_table(
        'purchases',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('contractor_id', sa.String(36), sa.ForeignKey('profiles.id'), nullable=False),
        sa.Column('product_id', sa.String(36), sa.ForeignKey('products.id'), nullable=False),
        sa.Column('applied_to_assignment_id', sa.String(36), sa.ForeignKey('gig_assignments.id')),
        sa.Column('status', enum('purchasestatusdb'), nullable=False, server_default='ACTIVE'),
        sa.Column('expires_at', sa.DateTime()),
        sa.Column('consumed_at', sa.DateTime()),
        *timestamps()
    )
    op.create_index('ix_purchases_contractor_id', 'purchases', ['contractor_id'])

    # Ledger
    op.create_table(
        'stars_transactions',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('contractor_id', sa.String(36), sa.ForeignKey('profiles.id'), nullable=False),
        sa.Column('delta', sa.Integer(), nullable=False),
        sa.Column('reason', enum('starsreasondb'), nullable=False),
        sa.Column('gig_id', sa.String(36), sa.ForeignKey('gigs.id')),
        sa.Column('assignment_id', sa.String(36), sa.ForeignKey('gig_assignments.id')),
        sa.Column('purchase_id', sa.String(36), sa.ForeignKey('purchases.id')),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_index('ix_stars_transactions_contractor_id', 'stars_transactions', ['contractor_id'])

    op.create_table(
        'money_transactions',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('contractor_id', sa.String(36), sa.ForeignKey('profiles.id'), nullable=False),
        sa.Column('amount_cents', sa.Integer(), nullable=False),
        sa.Column('reason', enum('moneyreasondb'), nullable=False),
        sa.Column('gig_id', sa.String(36), sa.ForeignKey('gigs.id')),
        sa.Column('assignment_id', sa.String(36), sa.ForeignKey('gig_assignments.id')),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_index('ix_money_transactions_contractor_id', 'money_transactions', ['contractor_id'])


def downgrade():
    # Drop tables in reverse order
    op.drop_table('money_transactions')
    op.drop_table('stars_transactions')
    op.drop_table('purchases')
    op.drop_table('products')
    op.drop_table('watchlist')
    op.drop_table('gig_reviews')
    op.drop_table('gig_assignments')
    op.drop_table('gigs')
    op.drop_table('locations')
    op.drop_table('company_membership_requests')
    op.drop_table('members')
    op.drop_table('companies')
    op.drop_table('password_reset_tokens')
    op.drop_table('refresh_tokens')
    op.drop_table('profiles')
    op.drop_table('users')

    # Drop enums
    for name in reversed(list(ENUMS)):
        op.execute(f'DROP TYPE IF EXISTS {name}')
