# Pydantic Schemas for the Gig Marketplace
# Request bodies and response shapes for every router

from pydantic import BaseModel, Field, validator
from typing import Optional, List
from datetime import datetime, timezone

from database.models import (
    CompanyRoleDB as CompanyRole,
    MembershipRequestStatusDB as MembershipRequestStatus,
    MembershipTierDB as MembershipTier,
    GigStatusDB as GigStatus,
    GigTypeDB as GigType,
    AssignmentStatusDB as AssignmentStatus,
    ReviewDecisionDB as ReviewDecision,
    StarsReasonDB as StarsReason,
    MoneyReasonDB as MoneyReason,
    PurchaseStatusDB as PurchaseStatus,
    ProductCategoryDB as ProductCategory,
)


def _to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


# ============================================================================
# COMPANY SCHEMAS
# ============================================================================

class CompanyCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    logo_url: Optional[str] = Field(None, max_length=500)


class CompanyUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    logo_url: Optional[str] = Field(None, max_length=500)


class CompanyResponse(BaseModel):
    id: str
    name: str
    logo_url: Optional[str] = None
    created_at: Optional[datetime] = None
    my_role: Optional[CompanyRole] = None
    my_permissions: List[str] = []

    class Config:
        from_attributes = True


class CompanyDirectoryEntry(BaseModel):
    """Public subset of a company; safe for unauthenticated callers."""
    id: str
    name: str
    logo_url: Optional[str] = None

    class Config:
        from_attributes = True


class MemberCreate(BaseModel):
    user_id: str
    role: CompanyRole


class MemberRoleUpdate(BaseModel):
    role: CompanyRole


class MemberResponse(BaseModel):
    id: str
    company_id: str
    user_id: str
    role: CompanyRole
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ============================================================================
# MEMBERSHIP REQUEST SCHEMAS
# ============================================================================

class MembershipRequestCreate(BaseModel):
    requested_role: CompanyRole = CompanyRole.CREATOR
    note: Optional[str] = Field(None, max_length=1000)


class MembershipApprove(BaseModel):
    role: Optional[CompanyRole] = None  # defaults to the requested role


class MembershipDeny(BaseModel):
    reason: Optional[str] = Field(None, max_length=1000)


class MembershipRequestResponse(BaseModel):
    id: str
    company_id: str
    user_id: str
    requested_role: CompanyRole
    note: Optional[str] = None
    status: MembershipRequestStatus
    resolved_by_user_id: Optional[str] = None
    resolved_note: Optional[str] = None
    resolved_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ============================================================================
# LOCATION SCHEMAS
# ============================================================================

class LocationCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    address: str = Field(..., min_length=1, max_length=500)
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=100)
    zipcode: Optional[str] = Field(None, max_length=20)
    lat: Optional[float] = None
    lng: Optional[float] = None


class LocationUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    address: Optional[str] = Field(None, min_length=1, max_length=500)
    city: Optional[str] = None
    state: Optional[str] = None
    zipcode: Optional[str] = None
    lat: Optional[float] = None
    lng: Optional[float] = None


class LocationResponse(BaseModel):
    id: str
    name: str
    address: str
    city: Optional[str] = None
    state: Optional[str] = None
    zipcode: Optional[str] = None
    lat: Optional[float] = None
    lng: Optional[float] = None

    class Config:
        from_attributes = True


# ============================================================================
# GIG SCHEMAS
# ============================================================================

class GigCreate(BaseModel):
    """Pricing fields left out fall back to config.app_config defaults."""
    company_id: str
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    type: GigType = GigType.STANDARD
    location_id: Optional[str] = None
    starts_at: Optional[datetime] = None
    ends_at: Optional[datetime] = None
    status: GigStatus = GigStatus.DRAFT

    base_price_cents: int = 0
    bump_every_seconds: Optional[int] = None
    bump_cents: Optional[int] = None
    max_bumps: Optional[int] = None
    max_price_cents: Optional[int] = None

    base_stars: int = 0
    stars_bump_every_seconds: Optional[int] = None
    stars_bump_amount: Optional[int] = None
    max_age_bonus_stars: Optional[int] = None
    repost_bonus_per_repost: Optional[int] = None

    required_tier: Optional[MembershipTier] = None

    @validator("starts_at", "ends_at")
    def naive_utc(cls, v):
        return _to_naive_utc(v)

    @validator("status")
    def initial_status(cls, v):
        if v not in (GigStatus.DRAFT, GigStatus.OPEN):
            raise ValueError("A gig can only be created as DRAFT or OPEN")
        return v


class GigUpdate(BaseModel):
    """Only the fields present in the request body are applied."""
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    type: Optional[GigType] = None
    location_id: Optional[str] = None
    starts_at: Optional[datetime] = None
    ends_at: Optional[datetime] = None

    base_price_cents: Optional[int] = None
    bump_every_seconds: Optional[int] = None
    bump_cents: Optional[int] = None
    max_bumps: Optional[int] = None
    max_price_cents: Optional[int] = None

    base_stars: Optional[int] = None
    stars_bump_every_seconds: Optional[int] = None
    stars_bump_amount: Optional[int] = None
    max_age_bonus_stars: Optional[int] = None
    repost_bonus_per_repost: Optional[int] = None

    required_tier: Optional[MembershipTier] = None

    @validator("starts_at", "ends_at")
    def naive_utc(cls, v):
        return _to_naive_utc(v)


class GigStatusUpdate(BaseModel):
    status: GigStatus


class GigResponse(BaseModel):
    id: str
    company_id: str
    created_by_user_id: str
    title: str
    description: Optional[str] = None
    type: GigType
    status: GigStatus
    location_id: Optional[str] = None
    location: Optional[LocationResponse] = None
    starts_at: Optional[datetime] = None
    ends_at: Optional[datetime] = None

    # Configuration
    base_price_cents: int
    bump_every_seconds: int
    bump_cents: int
    max_bumps: Optional[int] = None
    max_price_cents: Optional[int] = None
    base_stars: int
    stars_bump_every_seconds: int
    stars_bump_amount: int
    max_age_bonus_stars: Optional[int] = None
    repost_bonus_per_repost: int
    repost_count: int
    required_tier: Optional[MembershipTier] = None

    # Derived at read time
    current_price_cents: int
    price_bumps: int
    age_bonus_stars: int
    repost_bonus_stars: int
    total_stars_reward: int
    computed_at: datetime

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ============================================================================
# ASSIGNMENT & REVIEW SCHEMAS
# ============================================================================

class ClaimRequest(BaseModel):
    note: Optional[str] = Field(None, max_length=1000)


class AssignmentStatusUpdate(BaseModel):
    status: AssignmentStatus
    note: Optional[str] = Field(None, max_length=1000)


class AssignmentResponse(BaseModel):
    id: str
    gig_id: str
    user_id: str
    status: AssignmentStatus
    note: Optional[str] = None
    claimed_at: Optional[datetime] = None
    accepted_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    submitted_at: Optional[datetime] = None
    reviewed_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ReviewCreate(BaseModel):
    """stars_rating is range-checked by the service (1-5)."""
    stars_rating: int
    decision: ReviewDecision
    comment: Optional[str] = Field(None, max_length=2000)


class ReviewResponse(BaseModel):
    id: str
    assignment_id: str
    reviewer_member_id: Optional[str] = None
    stars_rating: int
    decision: ReviewDecision
    comment: Optional[str] = None
    created_at: Optional[datetime] = None
    stars_awarded: Optional[int] = None

    class Config:
        from_attributes = True


class WatchlistResponse(BaseModel):
    id: str
    user_id: str
    gig_id: str
    created_at: Optional[datetime] = None
    gig: Optional[GigResponse] = None

    class Config:
        from_attributes = True


# ============================================================================
# LEDGER SCHEMAS
# ============================================================================

class WalletResponse(BaseModel):
    """Stars balance and lifetime totals for the current profile."""
    profile_id: str
    stars_balance: int
    tier: MembershipTier
    lifetime_stars_earned: int
    lifetime_stars_spent: int
    money_total_cents: int


class StarsTransactionCreate(BaseModel):
    contractor_id: Optional[str] = None  # defaults to the caller's profile
    delta: int
    reason: StarsReason = StarsReason.ADJUSTMENT
    gig_id: Optional[str] = None
    assignment_id: Optional[str] = None
    purchase_id: Optional[str] = None


class StarsTransactionResponse(BaseModel):
    id: str
    contractor_id: str
    delta: int
    reason: StarsReason
    gig_id: Optional[str] = None
    assignment_id: Optional[str] = None
    purchase_id: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class MoneyTransactionCreate(BaseModel):
    contractor_id: Optional[str] = None
    amount_cents: int
    reason: MoneyReason = MoneyReason.ADJUSTMENT
    gig_id: Optional[str] = None
    assignment_id: Optional[str] = None


class MoneyTransactionResponse(BaseModel):
    id: str
    contractor_id: str
    amount_cents: int
    reason: MoneyReason
    gig_id: Optional[str] = None
    assignment_id: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ============================================================================
# SHOP SCHEMAS
# ============================================================================

class ProductCreate(BaseModel):
    category: ProductCategory
    tier: Optional[MembershipTier] = None
    title: str = Field(..., min_length=1, max_length=255)
    subtitle: Optional[str] = Field(None, max_length=500)
    stars_cost: int
    duration_seconds: Optional[int] = None
    effect_pct: Optional[int] = None


class ProductUpdate(BaseModel):
    category: Optional[ProductCategory] = None
    tier: Optional[MembershipTier] = None
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    subtitle: Optional[str] = Field(None, max_length=500)
    stars_cost: Optional[int] = None
    duration_seconds: Optional[int] = None
    effect_pct: Optional[int] = None


class ProductResponse(BaseModel):
    id: str
    category: ProductCategory
    tier: Optional[MembershipTier] = None
    title: str
    subtitle: Optional[str] = None
    stars_cost: int
    duration_seconds: Optional[int] = None
    effect_pct: Optional[int] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PurchaseCreate(BaseModel):
    product_id: str
    applied_to_assignment_id: Optional[str] = None


class PurchaseConsume(BaseModel):
    applied_to_assignment_id: Optional[str] = None


class PurchaseResponse(BaseModel):
    id: str
    contractor_id: str
    product_id: str
    applied_to_assignment_id: Optional[str] = None
    status: PurchaseStatus
    expires_at: Optional[datetime] = None
    consumed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    product: Optional[ProductResponse] = None

    class Config:
        from_attributes = True
