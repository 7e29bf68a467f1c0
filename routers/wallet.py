# Wallet Router for the Gig Marketplace
# Stars balance, and the self-scoped stars / money ledgers

from fastapi import APIRouter, Depends, Query, status
from typing import List

from auth.dependencies import get_current_user, get_repository
from database.models import User
from database.repository import Repository
from schemas.marketplace import (
    MoneyTransactionCreate,
    MoneyTransactionResponse,
    StarsTransactionCreate,
    StarsTransactionResponse,
    WalletResponse,
)
from services.ledger_service import LedgerService

router = APIRouter(prefix="/wallet", tags=["Wallet"])


# ============================================================================
# WALLET ENDPOINTS
# ============================================================================

@router.get("", response_model=WalletResponse)
async def get_wallet(
    current_user: User = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
):
    """Current stars balance, tier and lifetime totals."""
    return LedgerService(repo).wallet_summary(current_user)


# ============================================================================
# STARS LEDGER
# ============================================================================

@router.get("/stars", response_model=List[StarsTransactionResponse])
async def list_stars_transactions(
    page: int = Query(1, ge=1, description="Page number"),
    limit: int = Query(20, ge=1, le=100, description="Results per page"),
    current_user: User = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
):
    return LedgerService(repo).list_stars_transactions(current_user, skip=(page - 1) * limit, limit=limit)


@router.post("/stars", response_model=StarsTransactionResponse, status_code=status.HTTP_201_CREATED)
async def create_stars_transaction(
    payload: StarsTransactionCreate,
    current_user: User = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
):
    """Append a non-zero stars entry to your own ledger."""
    data = payload.model_dump()
    contractor_id = data.pop("contractor_id")
    return LedgerService(repo).create_stars_transaction(current_user, contractor_id, **data)


# ============================================================================
# MONEY LEDGER
# ============================================================================

@router.get("/money", response_model=List[MoneyTransactionResponse])
async def list_money_transactions(
    page: int = Query(1, ge=1, description="Page number"),
    limit: int = Query(20, ge=1, le=100, description="Results per page"),
    current_user: User = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
):
    return LedgerService(repo).list_money_transactions(current_user, skip=(page - 1) * limit, limit=limit)


@router.post("/money", response_model=MoneyTransactionResponse, status_code=status.HTTP_201_CREATED)
async def create_money_transaction(
    payload: MoneyTransactionCreate,
    current_user: User = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
):
    data = payload.model_dump()
    contractor_id = data.pop("contractor_id")
    return LedgerService(repo).create_money_transaction(current_user, contractor_id, **data)
