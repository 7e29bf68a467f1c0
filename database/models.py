# Database Models for the Gig Marketplace Core
# Every timestamp is stored as naive UTC (see utcnow)

from sqlalchemy import (
    Column, String, Integer, DateTime, ForeignKey, Text, Enum, Float,
    UniqueConstraint, CheckConstraint, event
)
from sqlalchemy.orm import declarative_base, relationship
from datetime import datetime, timezone
import uuid
import enum

from core.errors import InvalidStateError

Base = declarative_base()

def generate_uuid():
    return str(uuid.uuid4())

def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)

def _db_enum(enum_cls, name):
    return Enum(enum_cls, values_callable=lambda x: [e.value for e in x], name=name)


# ============================================================================
# ENUMS
# ============================================================================

class CompanyRoleDB(str, enum.Enum):
    CREATOR = "CREATOR"
    APPROVER = "APPROVER"
    MANAGER = "MANAGER"
    OWNER = "OWNER"


class MembershipRequestStatusDB(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    DENIED = "DENIED"


class MembershipTierDB(str, enum.Enum):
    COPPER = "COPPER"
    BRONZE = "BRONZE"
    SILVER = "SILVER"
    GOLD = "GOLD"
    PLATINUM = "PLATINUM"
    DIAMOND = "DIAMOND"


class GigStatusDB(str, enum.Enum):
    DRAFT = "DRAFT"
    OPEN = "OPEN"
    CLAIMED = "CLAIMED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class GigTypeDB(str, enum.Enum):
    STANDARD = "STANDARD"
    DELIVERY = "DELIVERY"
    AUDIT = "AUDIT"


class AssignmentStatusDB(str, enum.Enum):
    CLAIMED = "CLAIMED"
    ACCEPTED = "ACCEPTED"
    DECLINED = "DECLINED"
    STARTED = "STARTED"
    SUBMITTED = "SUBMITTED"
    REVIEWED = "REVIEWED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class ReviewDecisionDB(str, enum.Enum):
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class StarsReasonDB(str, enum.Enum):
    EARNED_FROM_REVIEW = "EARNED_FROM_REVIEW"
    SPENT_ON_PRODUCT = "SPENT_ON_PRODUCT"
    ADJUSTMENT = "ADJUSTMENT"


class MoneyReasonDB(str, enum.Enum):
    PAYOUT = "PAYOUT"
    ADJUSTMENT = "ADJUSTMENT"


class PurchaseStatusDB(str, enum.Enum):
    ACTIVE = "ACTIVE"
    EXPIRED = "EXPIRED"
    CONSUMED = "CONSUMED"


class ProductCategoryDB(str, enum.Enum):
    MEMBERSHIP_UPGRADE = "MEMBERSHIP_UPGRADE"
    PAY_BONUS = "PAY_BONUS"


# Gigs in these statuses are still claimable / watchable and keep bumping
CLAIMABLE_GIG_STATUSES = frozenset({GigStatusDB.DRAFT, GigStatusDB.OPEN})


# ============================================================================
# IDENTITY
# ============================================================================

class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    profile = relationship("Profile", back_populates="user", uselist=False)


class Profile(Base):
    """Contractor profile; owns the stars balance."""
    __tablename__ = "profiles"
    __table_args__ = (
        CheckConstraint("stars_balance >= 0", name="ck_profiles_stars_balance_non_negative"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("users.id"), unique=True, nullable=False)
    first_name = Column(String(100))
    last_name = Column(String(100))
    username = Column(String(100), unique=True, nullable=True)
    zipcode = Column(String(20))
    avatar_url = Column(String(500))

    stars_balance = Column(Integer, nullable=False, default=0)
    tier = Column(_db_enum(MembershipTierDB, "membershiptierdb"), nullable=False, default=MembershipTierDB.COPPER)

    # Reputation
    rating_sum = Column(Integer, nullable=False, default=0)
    rating_count = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    user = relationship("User", back_populates="profile")

    @property
    def rating(self):
        if not self.rating_count:
            return 0.0
        return round(self.rating_sum / self.rating_count, 2)


class RefreshToken(Base):
    """Rotating refresh credential; only the SHA-256 of the raw token is stored."""
    __tablename__ = "refresh_tokens"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    token_hash = Column(String(64), unique=True, nullable=False)
    expires_at = Column(DateTime, nullable=False)
    revoked_at = Column(DateTime)
    replaced_by_token_id = Column(String(36), ForeignKey("refresh_tokens.id"), nullable=True)
    created_at = Column(DateTime, default=utcnow)


class PasswordResetToken(Base):
    __tablename__ = "password_reset_tokens"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    token_hash = Column(String(64), unique=True, nullable=False)
    expires_at = Column(DateTime, nullable=False)
    used_at = Column(DateTime)
    created_at = Column(DateTime, default=utcnow)


# ============================================================================
# COMPANIES
# ============================================================================

class Company(Base):
    __tablename__ = "companies"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    name = Column(String(255), unique=True, nullable=False)
    logo_url = Column(String(500))
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)


class Member(Base):
    __tablename__ = "members"
    __table_args__ = (
        UniqueConstraint("company_id", "user_id", name="uq_members_company_user"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    company_id = Column(String(36), ForeignKey("companies.id"), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    role = Column(_db_enum(CompanyRoleDB, "companyroledb"), nullable=False, default=CompanyRoleDB.CREATOR)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    user = relationship("User")


class CompanyMembershipRequest(Base):
    """Join request; history is retained after resolution."""
    __tablename__ = "company_membership_requests"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    company_id = Column(String(36), ForeignKey("companies.id"), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    requested_role = Column(_db_enum(CompanyRoleDB, "companyroledb"), nullable=False, default=CompanyRoleDB.CREATOR)
    note = Column(Text)
    status = Column(_db_enum(MembershipRequestStatusDB, "membershiprequeststatusdb"), nullable=False, default=MembershipRequestStatusDB.PENDING)
    resolved_by_user_id = Column(String(36), ForeignKey("users.id"), nullable=True)
    resolved_note = Column(Text)
    resolved_at = Column(DateTime)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)


# ============================================================================
# GIGS
# ============================================================================

class Location(Base):
    __tablename__ = "locations"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False)
    address = Column(String(500), nullable=False)
    city = Column(String(100))
    state = Column(String(100))
    zipcode = Column(String(20))
    lat = Column(Float)
    lng = Column(Float)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)


class Gig(Base):
    """
    A unit of work posted by a company.
    Only pricing configuration is stored; the live price and star reward
    are derived at read time (services.pricing_engine).
    """
    __tablename__ = "gigs"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    company_id = Column(String(36), ForeignKey("companies.id"), nullable=False, index=True)
    created_by_user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    location_id = Column(String(36), ForeignKey("locations.id"), nullable=True)

    title = Column(String(255), nullable=False)
    description = Column(Text)
    type = Column(_db_enum(GigTypeDB, "gigtypedb"), nullable=False, default=GigTypeDB.STANDARD)
    status = Column(_db_enum(GigStatusDB, "gigstatusdb"), nullable=False, default=GigStatusDB.DRAFT, index=True)
    starts_at = Column(DateTime)
    ends_at = Column(DateTime)

    # Pay configuration (cents)
    base_price_cents = Column(Integer, nullable=False, default=0)
    bump_every_seconds = Column(Integer, nullable=False, default=1800)
    bump_cents = Column(Integer, nullable=False, default=100)
    max_bumps = Column(Integer, nullable=True)
    max_price_cents = Column(Integer, nullable=True)

    # Stars configuration
    base_stars = Column(Integer, nullable=False, default=0)
    stars_bump_every_seconds = Column(Integer, nullable=False, default=1800)
    stars_bump_amount = Column(Integer, nullable=False, default=1)
    max_age_bonus_stars = Column(Integer, nullable=True)
    repost_bonus_per_repost = Column(Integer, nullable=False, default=1)
    repost_count = Column(Integer, nullable=False, default=0)

    required_tier = Column(_db_enum(MembershipTierDB, "membershiptierdb"), nullable=True)

    status_changed_at = Column(DateTime)  # freezes the bump clock once the gig leaves DRAFT/OPEN
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    company = relationship("Company")
    location = relationship("Location")


class GigAssignment(Base):
    __tablename__ = "gig_assignments"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    gig_id = Column(String(36), ForeignKey("gigs.id"), nullable=False, unique=True, index=True)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    status = Column(_db_enum(AssignmentStatusDB, "assignmentstatusdb"), nullable=False, default=AssignmentStatusDB.CLAIMED)
    note = Column(Text)

    claimed_at = Column(DateTime, default=utcnow)
    accepted_at = Column(DateTime)
    started_at = Column(DateTime)
    submitted_at = Column(DateTime)
    reviewed_at = Column(DateTime)
    completed_at = Column(DateTime)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    gig = relationship("Gig")


class GigReview(Base):
    __tablename__ = "gig_reviews"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    assignment_id = Column(String(36), ForeignKey("gig_assignments.id"), unique=True, nullable=False)
    reviewer_member_id = Column(String(36), ForeignKey("members.id"), nullable=True)
    stars_rating = Column(Integer, nullable=False)  # 1-5
    decision = Column(_db_enum(ReviewDecisionDB, "reviewdecisiondb"), nullable=False)
    comment = Column(Text)
    created_at = Column(DateTime, default=utcnow)

    assignment = relationship("GigAssignment")


class Watchlist(Base):
    __tablename__ = "watchlist"
    __table_args__ = (
        UniqueConstraint("user_id", "gig_id", name="uq_watchlist_user_gig"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    gig_id = Column(String(36), ForeignKey("gigs.id"), nullable=False, index=True)
    created_at = Column(DateTime, default=utcnow)


# ============================================================================
# SHOP
# ============================================================================

class Product(Base):
    __tablename__ = "products"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    category = Column(_db_enum(ProductCategoryDB, "productcategorydb"), nullable=False)
    tier = Column(_db_enum(MembershipTierDB, "membershiptierdb"), nullable=True)  # unlocked by MEMBERSHIP_UPGRADE
    title = Column(String(255), nullable=False)
    subtitle = Column(String(500))
    stars_cost = Column(Integer, nullable=False, default=0)
    duration_seconds = Column(Integer, nullable=True)
    effect_pct = Column(Integer, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)


class Purchase(Base):
    __tablename__ = "purchases"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    contractor_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)
    product_id = Column(String(36), ForeignKey("products.id"), nullable=False)
    applied_to_assignment_id = Column(String(36), ForeignKey("gig_assignments.id"), nullable=True)
    status = Column(_db_enum(PurchaseStatusDB, "purchasestatusdb"), nullable=False, default=PurchaseStatusDB.ACTIVE)
    expires_at = Column(DateTime)
    consumed_at = Column(DateTime)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    product = relationship("Product")


# ============================================================================
# LEDGER (append-only)
# ============================================================================

class StarsTransaction(Base):
    __tablename__ = "stars_transactions"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    contractor_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)
    delta = Column(Integer, nullable=False)
    reason = Column(_db_enum(StarsReasonDB, "starsreasondb"), nullable=False)
    gig_id = Column(String(36), ForeignKey("gigs.id"), nullable=True)
    assignment_id = Column(String(36), ForeignKey("gig_assignments.id"), nullable=True)
    purchase_id = Column(String(36), ForeignKey("purchases.id"), nullable=True)
    created_at = Column(DateTime, default=utcnow)


class MoneyTransaction(Base):
    __tablename__ = "money_transactions"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    contractor_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)
    amount_cents = Column(Integer, nullable=False)
    reason = Column(_db_enum(MoneyReasonDB, "moneyreasondb"), nullable=False)
    gig_id = Column(String(36), ForeignKey("gigs.id"), nullable=True)
    assignment_id = Column(String(36), ForeignKey("gig_assignments.id"), nullable=True)
    created_at = Column(DateTime, default=utcnow)


@event.listens_for(StarsTransaction, "before_update")
@event.listens_for(MoneyTransaction, "before_update")
def _reject_ledger_update(mapper, connection, target):
    raise InvalidStateError("Ledger entries are immutable")
