# Authentication Dependencies for the Gig Marketplace
# Resolve the acting user from the bearer token and hand out the per-request Repository

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from typing import Optional

from auth.utils import decode_access_token
from core.errors import UnauthenticatedError
from database.config import get_db
from database.models import User
from database.repository import Repository


security = HTTPBearer(auto_error=False)


def get_repository(db: Session = Depends(get_db)) -> Repository:
    """FastAPI dependency: one Repository per request."""
    return Repository(db)


def _resolve_user(credentials: Optional[HTTPAuthorizationCredentials], repo: Repository) -> Optional[User]:
    if not credentials:
        return None

    token_data = decode_access_token(credentials.credentials)
    if token_data is None:
        return None

    return repo.get(User, token_data.user_id)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    repo: Repository = Depends(get_repository)
) -> User:
    """
    Validate the access token and return the current user.
    This is the core authentication dependency.
    """
    if not credentials:
        raise UnauthenticatedError("Not authenticated")

    user = _resolve_user(credentials, repo)
    if user is None:
        raise UnauthenticatedError()

    return user
