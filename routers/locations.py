# Locations Router for the Gig Marketplace
# Reusable addresses that gigs point at

from fastapi import APIRouter, Depends, Query, status
from typing import List, Optional

from auth.dependencies import get_current_user, get_repository
from database.models import User
from database.repository import Repository
from schemas.auth import SuccessResponse
from schemas.marketplace import LocationCreate, LocationResponse, LocationUpdate
from services.catalog_service import CatalogService

router = APIRouter(prefix="/locations", tags=["Locations"])


@router.get("", response_model=List[LocationResponse])
async def list_locations(
    q: Optional[str] = Query(None, description="Name or address contains"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
):
    return CatalogService(repo).list_locations(q, skip=(page - 1) * limit, limit=limit)


@router.get("/{location_id}", response_model=LocationResponse)
async def get_location(
    location_id: str,
    current_user: User = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
):
    return CatalogService(repo).get_location(location_id)


@router.post("", response_model=LocationResponse, status_code=status.HTTP_201_CREATED)
async def create_location(
    payload: LocationCreate,
    current_user: User = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
):
    return CatalogService(repo).create_location(payload.model_dump())


@router.patch("/{location_id}", response_model=LocationResponse)
async def update_location(
    location_id: str,
    payload: LocationUpdate,
    current_user: User = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
):
    return CatalogService(repo).update_location(location_id, payload.model_dump(exclude_unset=True))


@router.delete("/{location_id}", response_model=SuccessResponse)
async def delete_location(
    location_id: str,
    current_user: User = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
):
    """Delete a location; gigs that used it keep running without one."""
    CatalogService(repo).delete_location(location_id)
    return {"success": True}
