# Schemas module for the Gig Marketplace
# Organizes all Pydantic schemas in a modular structure

from schemas.marketplace import (
    # Enums
    CompanyRole,
    MembershipRequestStatus,
    MembershipTier,
    GigStatus,
    GigType,
    AssignmentStatus,
    ReviewDecision,
    StarsReason,
    MoneyReason,
    PurchaseStatus,
    ProductCategory,

    # Company schemas
    CompanyCreate,
    CompanyUpdate,
    CompanyResponse,
    CompanyDirectoryEntry,
    MemberCreate,
    MemberRoleUpdate,
    MemberResponse,

    # Membership request schemas
    MembershipRequestCreate,
    MembershipApprove,
    MembershipDeny,
    MembershipRequestResponse,

    # Location schemas
    LocationCreate,
    LocationUpdate,
    LocationResponse,

    # Gig schemas
    GigCreate,
    GigUpdate,
    GigStatusUpdate,
    GigResponse,

    # Assignment & review schemas
    ClaimRequest,
    AssignmentStatusUpdate,
    AssignmentResponse,
    ReviewCreate,
    ReviewResponse,
    WatchlistResponse,

    # Ledger schemas
    WalletResponse,
    StarsTransactionCreate,
    StarsTransactionResponse,
    MoneyTransactionCreate,
    MoneyTransactionResponse,

    # Shop schemas
    ProductCreate,
    ProductUpdate,
    ProductResponse,
    PurchaseCreate,
    PurchaseConsume,
    PurchaseResponse,
)

from schemas.auth import (
    UserRegister,
    UserLogin,
    RefreshRequest,
    LogoutRequest,
    PasswordResetRequest,
    PasswordResetConfirm,
    UserResponse,
    AuthPayload,
    SuccessResponse,
    ProfileCreate,
    ProfileUpdate,
    ProfileResponse,
    PublicProfileResponse,
    MeResponse,
)
