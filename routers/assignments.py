# Assignments Router for the Gig Marketplace
# Assignment progress, history and reviews

from fastapi import APIRouter, Depends, Query, status
from typing import List, Optional

from auth.dependencies import get_current_user, get_repository
from database.models import User
from database.repository import Repository
from schemas.marketplace import (
    AssignmentResponse,
    AssignmentStatusUpdate,
    ReviewCreate,
    ReviewResponse,
)
from services.assignment_service import AssignmentService

router = APIRouter(prefix="/assignments", tags=["Assignments"])


@router.get("/mine", response_model=List[AssignmentResponse])
async def my_assignments(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
):
    return AssignmentService(repo).my_assignments(current_user, skip=(page - 1) * limit, limit=limit)


@router.get("/history", response_model=List[AssignmentResponse])
async def assignment_history(
    user_id: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
):
    """Another user's history is visible only when we share a company."""
    return AssignmentService(repo).assignment_history(
        current_user, user_id, skip=(page - 1) * limit, limit=limit
    )


@router.get("/reviews/{review_id}", response_model=ReviewResponse)
async def get_review(
    review_id: str,
    current_user: User = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
):
    return AssignmentService(repo).get_review(current_user, review_id)


@router.get("/{assignment_id}", response_model=AssignmentResponse)
async def get_assignment(
    assignment_id: str,
    current_user: User = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
):
    return AssignmentService(repo).get_assignment(current_user, assignment_id)


@router.patch("/{assignment_id}/status", response_model=AssignmentResponse)
async def update_assignment_status(
    assignment_id: str,
    payload: AssignmentStatusUpdate,
    current_user: User = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
):
    return AssignmentService(repo).update_assignment_status(
        current_user, assignment_id, payload.status, payload.note
    )


@router.post("/{assignment_id}/review", response_model=ReviewResponse, status_code=status.HTTP_201_CREATED)
async def create_review(
    assignment_id: str,
    payload: ReviewCreate,
    current_user: User = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
):
    """
    Review a submitted assignment. APPROVED completes the gig and credits
    the assignee with the gig's star reward as of now.
    """
    return AssignmentService(repo).create_review(
        current_user, assignment_id, payload.stars_rating, payload.decision, payload.comment
    )
