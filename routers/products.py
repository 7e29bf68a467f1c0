# Products Router for the Gig Marketplace
# Stars shop catalog

from fastapi import APIRouter, Depends, Query, status
from typing import List, Optional

from auth.dependencies import get_current_user, get_repository
from database.models import User
from database.repository import Repository
from schemas.marketplace import (
    MembershipTier,
    ProductCategory,
    ProductCreate,
    ProductResponse,
    ProductUpdate,
)
from services.catalog_service import CatalogService

router = APIRouter(prefix="/products", tags=["Products"])


@router.get("", response_model=List[ProductResponse])
async def list_products(
    category: Optional[ProductCategory] = None,
    tier: Optional[MembershipTier] = None,
    page: int = Query(1, ge=1, description="Page number"),
    limit: int = Query(20, ge=1, le=100, description="Results per page"),
    current_user: User = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
):
    """List shop products, cheapest first."""
    return CatalogService(repo).list_products(category, tier, skip=(page - 1) * limit, limit=limit)


@router.get("/{product_id}", response_model=ProductResponse)
async def get_product(
    product_id: str,
    current_user: User = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
):
    return CatalogService(repo).get_product(product_id)


@router.post("", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
async def create_product(
    payload: ProductCreate,
    current_user: User = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
):
    return CatalogService(repo).create_product(payload.model_dump())


@router.patch("/{product_id}", response_model=ProductResponse)
async def update_product(
    product_id: str,
    payload: ProductUpdate,
    current_user: User = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
):
    return CatalogService(repo).update_product(product_id, payload.model_dump(exclude_unset=True))
