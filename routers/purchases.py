# Purchases Router for the Gig Marketplace
# Spend stars on products; consume or expire what you bought

from fastapi import APIRouter, Depends, Query, status
from typing import List, Optional

from auth.dependencies import get_current_user, get_repository
from database.models import User
from database.repository import Repository
from schemas.marketplace import (
    PurchaseConsume,
    PurchaseCreate,
    PurchaseResponse,
    PurchaseStatus,
)
from services.ledger_service import LedgerService

router = APIRouter(prefix="/purchases", tags=["Purchases"])


@router.post("", response_model=PurchaseResponse, status_code=status.HTTP_201_CREATED)
async def purchase_product(
    payload: PurchaseCreate,
    current_user: User = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
):
    """Buy a product. Fails with 402 when the stars balance is too low."""
    return LedgerService(repo).purchase_product(
        current_user, payload.product_id, payload.applied_to_assignment_id
    )


@router.get("", response_model=List[PurchaseResponse])
async def list_purchases(
    status_filter: Optional[PurchaseStatus] = Query(None, alias="status"),
    page: int = Query(1, ge=1, description="Page number"),
    limit: int = Query(20, ge=1, le=100, description="Results per page"),
    current_user: User = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
):
    return LedgerService(repo).list_purchases(
        current_user, status_filter, skip=(page - 1) * limit, limit=limit
    )


@router.get("/{purchase_id}", response_model=PurchaseResponse)
async def get_purchase(
    purchase_id: str,
    current_user: User = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
):
    return LedgerService(repo).require_own_purchase(current_user, purchase_id)


@router.post("/{purchase_id}/consume", response_model=PurchaseResponse)
async def consume_purchase(
    purchase_id: str,
    payload: PurchaseConsume,
    current_user: User = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
):
    return LedgerService(repo).consume_purchase(
        current_user, purchase_id, payload.applied_to_assignment_id
    )


@router.post("/{purchase_id}/expire", response_model=PurchaseResponse)
async def expire_purchase(
    purchase_id: str,
    current_user: User = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
):
    return LedgerService(repo).expire_purchase(current_user, purchase_id)
