# Profiles Router for the Gig Marketplace
# Contractor profile management and account deletion

from fastapi import APIRouter, Depends, status

from auth.dependencies import get_current_user, get_repository
from database.models import User
from database.repository import Repository
from schemas.auth import (
    ProfileCreate,
    ProfileResponse,
    ProfileUpdate,
    PublicProfileResponse,
    SuccessResponse,
)
from services.account_service import AccountService

router = APIRouter(prefix="/profiles", tags=["Profiles"])


@router.get("/me", response_model=ProfileResponse)
async def get_my_profile(
    current_user: User = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
):
    return AccountService(repo).get_my_profile(current_user)


@router.post("", response_model=ProfileResponse, status_code=status.HTTP_201_CREATED)
async def create_profile(
    payload: ProfileCreate,
    current_user: User = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
):
    return AccountService(repo).create_profile(current_user, payload.model_dump())


@router.patch("/me", response_model=ProfileResponse)
async def update_profile(
    payload: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
):
    return AccountService(repo).update_profile(current_user, payload.model_dump(exclude_unset=True))


@router.delete("/me", response_model=SuccessResponse)
async def delete_profile(
    current_user: User = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
):
    """Delete the profile together with its ledger rows and purchases."""
    AccountService(repo).delete_profile(current_user)
    return {"success": True}


@router.delete("/users/{user_id}", response_model=SuccessResponse)
async def delete_user(
    user_id: str,
    current_user: User = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
):
    """Delete your own account and everything that hangs off it."""
    AccountService(repo).delete_user(current_user, user_id)
    return {"success": True}


@router.get("/by-username/{username}", response_model=PublicProfileResponse)
async def get_profile_by_username(
    username: str,
    current_user: User = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
):
    return AccountService(repo).get_profile_by_username(username)
