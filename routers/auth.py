# Auth Router for the Gig Marketplace
# Register / login / refresh / logout and the password reset flow

from fastapi import APIRouter, Depends, status

from auth.dependencies import get_current_user, get_repository
from database.models import User
from database.repository import Repository
from schemas.auth import (
    AuthPayload,
    LogoutRequest,
    MeResponse,
    PasswordResetConfirm,
    PasswordResetRequest,
    RefreshRequest,
    SuccessResponse,
    UserLogin,
    UserRegister,
)
from services.account_service import AccountService
from services.identity_service import IdentityCoordinator

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post("/register", response_model=AuthPayload, status_code=status.HTTP_201_CREATED)
async def register(payload: UserRegister, repo: Repository = Depends(get_repository)):
    """Create an account with an empty profile and return a credential pair."""
    return IdentityCoordinator(repo).register(payload.email, payload.password)


@router.post("/login", response_model=AuthPayload)
async def login(payload: UserLogin, repo: Repository = Depends(get_repository)):
    return IdentityCoordinator(repo).login(payload.email, payload.password)


@router.post("/refresh", response_model=AuthPayload)
async def refresh(payload: RefreshRequest, repo: Repository = Depends(get_repository)):
    """Single-use: the presented refresh token is revoked and replaced."""
    return IdentityCoordinator(repo).refresh(payload.refresh_token)


@router.post("/logout", response_model=SuccessResponse)
async def logout(payload: LogoutRequest, repo: Repository = Depends(get_repository)):
    IdentityCoordinator(repo).logout(payload.refresh_token)
    return {"success": True}


@router.post("/password-reset/request", response_model=SuccessResponse)
async def request_password_reset(payload: PasswordResetRequest, repo: Repository = Depends(get_repository)):
    """Always succeeds, whether or not the email belongs to an account."""
    IdentityCoordinator(repo).request_password_reset(payload.email)
    return {"success": True}


@router.post("/password-reset/confirm", response_model=SuccessResponse)
async def reset_password(payload: PasswordResetConfirm, repo: Repository = Depends(get_repository)):
    IdentityCoordinator(repo).reset_password(payload.token, payload.new_password)
    return {"success": True}


@router.get("/me", response_model=MeResponse)
async def get_me(
    current_user: User = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
):
    return AccountService(repo).get_me(current_user)
