# Membership Requests Router for the Gig Marketplace
# Ask to join a company; owners approve or deny

from fastapi import APIRouter, Depends, Query, status
from typing import List, Optional

from auth.dependencies import get_current_user, get_repository
from database.models import User
from database.repository import Repository
from schemas.marketplace import (
    MembershipApprove,
    MembershipDeny,
    MembershipRequestCreate,
    MembershipRequestResponse,
    MembershipRequestStatus,
)
from services.membership_service import MembershipService

router = APIRouter(tags=["Membership Requests"])


@router.post(
    "/companies/{company_id}/membership-requests",
    response_model=MembershipRequestResponse,
    status_code=status.HTTP_201_CREATED,
)
async def request_membership(
    company_id: str,
    payload: MembershipRequestCreate,
    current_user: User = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
):
    return MembershipService(repo).request_membership(
        current_user, company_id, payload.requested_role, payload.note
    )


@router.get("/companies/{company_id}/membership-requests", response_model=List[MembershipRequestResponse])
async def list_company_requests(
    company_id: str,
    status_filter: Optional[MembershipRequestStatus] = Query(
        MembershipRequestStatus.PENDING, alias="status"
    ),
    current_user: User = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
):
    """Owner view of a company's join requests (pending by default)."""
    return MembershipService(repo).list_company_requests(current_user, company_id, status_filter)


@router.get("/membership-requests/mine", response_model=List[MembershipRequestResponse])
async def list_my_requests(
    status_filter: Optional[MembershipRequestStatus] = Query(None, alias="status"),
    current_user: User = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
):
    return MembershipService(repo).list_my_requests(current_user, status_filter)


@router.post("/membership-requests/{request_id}/approve", response_model=MembershipRequestResponse)
async def approve_request(
    request_id: str,
    payload: MembershipApprove,
    current_user: User = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
):
    return MembershipService(repo).approve(current_user, request_id, payload.role)


@router.post("/membership-requests/{request_id}/deny", response_model=MembershipRequestResponse)
async def deny_request(
    request_id: str,
    payload: MembershipDeny,
    current_user: User = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
):
    return MembershipService(repo).deny(current_user, request_id, payload.reason)
