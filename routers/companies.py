# Companies Router for the Gig Marketplace
# Company CRUD, the public directory, and member management

from fastapi import APIRouter, Depends, Query, status
from typing import List, Optional

from auth.dependencies import get_current_user, get_repository
from database.models import User
from database.repository import Repository
from schemas.auth import SuccessResponse
from schemas.marketplace import (
    CompanyCreate,
    CompanyDirectoryEntry,
    CompanyResponse,
    CompanyUpdate,
    MemberCreate,
    MemberResponse,
    MemberRoleUpdate,
)
from services.company_service import CompanyService

router = APIRouter(prefix="/companies", tags=["Companies"])


# ============================================================================
# COMPANIES
# ============================================================================

@router.get("/directory", response_model=List[CompanyDirectoryEntry])
async def search_directory(
    q: Optional[str] = Query(None, description="Name contains"),
    page: int = Query(1, ge=1, description="Page number"),
    limit: int = Query(20, ge=1, le=100, description="Results per page"),
    repo: Repository = Depends(get_repository),
):
    """Public company directory; no authentication required."""
    return CompanyService(repo).search_directory(q, skip=(page - 1) * limit, limit=limit)


@router.post("", response_model=CompanyResponse, status_code=status.HTTP_201_CREATED)
async def create_company(
    payload: CompanyCreate,
    current_user: User = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
):
    """Create a company; the creator becomes its first OWNER."""
    return CompanyService(repo).create_company(current_user, payload.name, payload.logo_url)


@router.get("", response_model=List[CompanyResponse])
async def list_my_companies(
    current_user: User = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
):
    return CompanyService(repo).list_my_companies(current_user)


@router.get("/{company_id}", response_model=CompanyResponse)
async def get_company(
    company_id: str,
    current_user: User = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
):
    return CompanyService(repo).get_company(current_user, company_id)


@router.patch("/{company_id}", response_model=CompanyResponse)
async def update_company(
    company_id: str,
    payload: CompanyUpdate,
    current_user: User = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
):
    return CompanyService(repo).update_company(
        current_user, company_id, payload.model_dump(exclude_unset=True)
    )


@router.delete("/{company_id}", response_model=SuccessResponse)
async def delete_company(
    company_id: str,
    current_user: User = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
):
    """Delete a company with its gigs, members and every dependent row."""
    CompanyService(repo).delete_company(current_user, company_id)
    return {"success": True}


# ============================================================================
# MEMBERS
# ============================================================================

@router.get("/{company_id}/members", response_model=List[MemberResponse])
async def list_members(
    company_id: str,
    current_user: User = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
):
    return CompanyService(repo).list_members(current_user, company_id)


@router.post("/{company_id}/members", response_model=MemberResponse, status_code=status.HTTP_201_CREATED)
async def add_member(
    company_id: str,
    payload: MemberCreate,
    current_user: User = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
):
    return CompanyService(repo).add_member(current_user, company_id, payload.user_id, payload.role)


@router.patch("/{company_id}/members/{member_id}", response_model=MemberResponse)
async def update_member_role(
    company_id: str,
    member_id: str,
    payload: MemberRoleUpdate,
    current_user: User = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
):
    return CompanyService(repo).update_member_role(current_user, company_id, member_id, payload.role)


@router.delete("/{company_id}/members/{member_id}", response_model=SuccessResponse)
async def remove_member(
    company_id: str,
    member_id: str,
    current_user: User = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
):
    CompanyService(repo).remove_member(current_user, company_id, member_id)
    return {"success": True}


@router.post("/{company_id}/leave", response_model=SuccessResponse)
async def leave_company(
    company_id: str,
    current_user: User = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
):
    """Leave a company. The last OWNER cannot leave."""
    CompanyService(repo).leave_company(current_user, company_id)
    return {"success": True}
