"""initial schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19 12:00:00

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '0001'
down_revision = None
branch_labels = None
depends_on = None

user_role = sa.Enum('CUSTOMER', 'BUSINESS', 'STAFF', 'SUPER_ADMIN', name='userrole')
business_status = sa.Enum('PENDING', 'APPROVED', 'REJECTED', name='businessstatus')
offer_status = sa.Enum('DRAFT', 'SCHEDULED', 'ACTIVE', 'EXPIRED', name='offerstatus')
acceptance_status = sa.Enum('PENDING', 'REDEEMED', 'EXPIRED', name='acceptancestatus')
event_type = sa.Enum(
    'OFFER_VIEW', 'OFFER_IMPRESSION', 'OFFER_SHARE', 'BUSINESS_VIEW', name='analyticseventtype'
)


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('mobile_number', sa.String(length=20), nullable=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=True),
        sa.Column('role', user_role, nullable=False),
        sa.Column('fcm_token', sa.String(length=500), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=True),
        sa.Column('is_verified', sa.Boolean(), nullable=True),
        sa.Column('last_login', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('mobile_number'),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'businesses',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('owner_id', sa.Integer(), nullable=False),
        sa.Column('business_name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('category', sa.String(length=100), nullable=True),
        sa.Column('abn', sa.String(length=20), nullable=True),
        sa.Column('images', sa.JSON(), nullable=True),
        sa.Column('address', sa.String(length=500), nullable=True),
        sa.Column('pin_code', sa.String(length=10), nullable=True),
        sa.Column('latitude', sa.Float(), nullable=True),
        sa.Column('longitude', sa.Float(), nullable=True),
        sa.Column('google_maps_link', sa.String(length=500), nullable=True),
        sa.Column('opening_time', sa.String(length=10), nullable=True),
        sa.Column('closing_time', sa.String(length=10), nullable=True),
        sa.Column('working_days', sa.JSON(), nullable=True),
        sa.Column('is_open_24_hours', sa.Boolean(), nullable=True),
        sa.Column('status', business_status, nullable=False),
        sa.Column('review_note', sa.Text(), nullable=True),
        sa.Column('approved_at', sa.DateTime(), nullable=True),
        sa.Column('approved_by', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['approved_by'], ['users.id']),
        sa.ForeignKeyConstraint(['owner_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('owner_id'),
    )
    op.create_index('ix_businesses_business_name', 'businesses', ['business_name'])
    op.create_index('ix_businesses_category', 'businesses', ['category'])
    op.create_index('ix_businesses_status', 'businesses', ['status'])

    op.create_table(
        'offers',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('business_id', sa.Integer(), nullable=False),
        sa.Column('creator_id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('image_url', sa.String(length=500), nullable=True),
        sa.Column('start_date_time', sa.DateTime(), nullable=False),
        sa.Column('end_date_time', sa.DateTime(), nullable=False),
        sa.Column('status', offer_status, nullable=False),
        sa.Column('qr_validity_days', sa.Integer(), nullable=False),
        sa.Column('view_count', sa.Integer(), nullable=False),
        sa.Column('impression_count', sa.Integer(), nullable=False),
        sa.Column('reposted_from_offer_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['business_id'], ['businesses.id']),
        sa.ForeignKeyConstraint(['creator_id'], ['users.id']),
        sa.ForeignKeyConstraint(['reposted_from_offer_id'], ['offers.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_offers_business_id', 'offers', ['business_id'])
    op.create_index('ix_offers_end_date_time', 'offers', ['end_date_time'])
    op.create_index('ix_offers_status', 'offers', ['status'])

    op.create_table(
        'offer_acceptances',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('offer_id', sa.Integer(), nullable=False),
        sa.Column('qr_code', sa.String(length=64), nullable=False),
        sa.Column('status', acceptance_status, nullable=False),
        sa.Column('accepted_at', sa.DateTime(), nullable=True),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('redeemed_at', sa.DateTime(), nullable=True),
        sa.Column('redeemed_by', sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(['offer_id'], ['offers.id']),
        sa.ForeignKeyConstraint(['redeemed_by'], ['users.id']),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_offer_acceptances_qr_code', 'offer_acceptances', ['qr_code'], unique=True)
    op.create_index('ix_offer_acceptances_user_id', 'offer_acceptances', ['user_id'])
    op.create_index('ix_offer_acceptances_offer_id', 'offer_acceptances', ['offer_id'])

    op.create_table(
        'favorite_offers',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('offer_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['offer_id'], ['offers.id']),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'offer_id', name='uq_favorite_offer'),
    )
    op.create_index('ix_favorite_offers_user_id', 'favorite_offers', ['user_id'])

    op.create_table(
        'favorite_businesses',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('business_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['business_id'], ['businesses.id']),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'business_id', name='uq_favorite_business'),
    )
    op.create_index('ix_favorite_businesses_user_id', 'favorite_businesses', ['user_id'])

    op.create_table(
        'reviews',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('business_id', sa.Integer(), nullable=False),
        sa.Column('rating', sa.Integer(), nullable=False),
        sa.Column('comment', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.CheckConstraint('rating >= 1 AND rating <= 5', name='ck_review_rating'),
        sa.ForeignKeyConstraint(['business_id'], ['businesses.id']),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'business_id', name='uq_review_user_business'),
    )
    op.create_index('ix_reviews_business_id', 'reviews', ['business_id'])

    op.create_table(
        'analytics_events',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('type', event_type, nullable=False),
        sa.Column('offer_id', sa.Integer(), nullable=True),
        sa.Column('business_id', sa.Integer(), nullable=True),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['business_id'], ['businesses.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['offer_id'], ['offers.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_analytics_events_type', 'analytics_events', ['type'])
    op.create_index('ix_analytics_events_offer_id', 'analytics_events', ['offer_id'])
    op.create_index('ix_analytics_events_business_id', 'analytics_events', ['business_id'])
    op.create_index('ix_analytics_events_created_at', 'analytics_events', ['created_at'])

    op.create_table(
        'email_otps',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('code_hash', sa.String(length=255), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('attempts', sa.Integer(), nullable=False),
        sa.Column('consumed_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_email_otps_user_id', 'email_otps', ['user_id'])


def downgrade() -> None:
    op.drop_table('email_otps')
    op.drop_table('analytics_events')
    op.drop_table('reviews')
    op.drop_table('favorite_businesses')
    op.drop_table('favorite_offers')
    op.drop_table('offer_acceptances')
    op.drop_table('offers')
    op.drop_table('businesses')
    op.drop_table('users')

    bind = op.get_bind()
    for enum_type in (event_type, acceptance_status, offer_status, business_status, user_role):
        enum_type.drop(bind, checkfirst=True)
