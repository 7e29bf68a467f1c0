# Gigs Router for the Gig Marketplace
# Gig CRUD with live pricing, claiming, status changes, watchlist and reviews

from fastapi import APIRouter, Depends, Query, status
from typing import List, Optional

from auth.dependencies import get_current_user, get_repository
from database.models import User
from database.repository import Repository
from schemas.auth import SuccessResponse
from schemas.marketplace import (
    AssignmentResponse,
    ClaimRequest,
    GigCreate,
    GigResponse,
    GigStatus,
    GigStatusUpdate,
    GigUpdate,
    ReviewResponse,
    WatchlistResponse,
)
from services.assignment_service import AssignmentService
from services.gig_service import GigService
from services.watchlist_service import WatchlistService

router = APIRouter(prefix="/gigs", tags=["Gigs"])


# ============================================================================
# WATCHLIST
# ============================================================================

@router.get("/watchlist", response_model=List[WatchlistResponse])
async def list_watchlist(
    current_user: User = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
):
    """Gigs I am watching; entries for gigs no longer claimable are dropped."""
    return WatchlistService(repo).list_mine(current_user)


@router.post("/{gig_id}/watch", response_model=WatchlistResponse, status_code=status.HTTP_201_CREATED)
async def watch_gig(
    gig_id: str,
    current_user: User = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
):
    return WatchlistService(repo).add(current_user, gig_id)


@router.delete("/{gig_id}/watch", response_model=SuccessResponse)
async def unwatch_gig(
    gig_id: str,
    current_user: User = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
):
    WatchlistService(repo).remove(current_user, gig_id)
    return {"success": True}


# ============================================================================
# GIGS
# ============================================================================

@router.post("", response_model=GigResponse, status_code=status.HTTP_201_CREATED)
async def create_gig(
    payload: GigCreate,
    current_user: User = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
):
    return GigService(repo).create_gig(current_user, payload.model_dump())


@router.get("", response_model=List[GigResponse])
async def list_gigs(
    company_id: Optional[str] = None,
    status_filter: Optional[GigStatus] = Query(None, alias="status"),
    page: int = Query(1, ge=1, description="Page number"),
    limit: int = Query(20, ge=1, le=100, description="Results per page"),
    current_user: User = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
):
    """Gigs from my companies, newest first, with pricing computed now."""
    return GigService(repo).list_gigs(
        current_user, company_id, status_filter, skip=(page - 1) * limit, limit=limit
    )


@router.get("/{gig_id}", response_model=GigResponse)
async def get_gig(
    gig_id: str,
    current_user: User = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
):
    return GigService(repo).get_gig(current_user, gig_id)


@router.patch("/{gig_id}", response_model=GigResponse)
async def update_gig(
    gig_id: str,
    payload: GigUpdate,
    current_user: User = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
):
    return GigService(repo).update_gig(current_user, gig_id, payload.model_dump(exclude_unset=True))


@router.patch("/{gig_id}/status", response_model=GigResponse)
async def update_gig_status(
    gig_id: str,
    payload: GigStatusUpdate,
    current_user: User = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
):
    return GigService(repo).update_gig_status(current_user, gig_id, payload.status)


@router.delete("/{gig_id}", response_model=SuccessResponse)
async def delete_gig(
    gig_id: str,
    current_user: User = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
):
    GigService(repo).delete_gig(current_user, gig_id)
    return {"success": True}


# ============================================================================
# CLAIMS, ASSIGNMENTS & REVIEWS
# ============================================================================

@router.post("/{gig_id}/claim", response_model=AssignmentResponse, status_code=status.HTTP_201_CREATED)
async def claim_gig(
    gig_id: str,
    payload: ClaimRequest,
    current_user: User = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
):
    """Claim an OPEN gig. Only one claimer wins."""
    return AssignmentService(repo).claim_gig(current_user, gig_id, payload.note)


@router.get("/{gig_id}/assignments", response_model=List[AssignmentResponse])
async def list_gig_assignments(
    gig_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
):
    return AssignmentService(repo).list_gig_assignments(
        current_user, gig_id, skip=(page - 1) * limit, limit=limit
    )


@router.get("/{gig_id}/reviews", response_model=List[ReviewResponse])
async def list_gig_reviews(
    gig_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
):
    return AssignmentService(repo).list_gig_reviews(
        current_user, gig_id, skip=(page - 1) * limit, limit=limit
    )
