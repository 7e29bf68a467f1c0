# Assignment State Machine
# claim -> work -> review -> completion, coupled to the gig's own status.

from typing import List, Optional
import logging

from auth.guard import AuthorizationGuard
from auth.roles import COMPANY_ADMIN_ROLES, CompanyAction, CompanyRole
from core.errors import (
    ConflictError,
    ForbiddenError,
    InvalidArgumentError,
    InvalidStateError,
)
from database.models import (
    AssignmentStatusDB,
    Gig,
    GigAssignment,
    GigReview,
    GigStatusDB,
    Profile,
    ReviewDecisionDB,
    StarsReasonDB,
    StarsTransaction,
    User,
    Watchlist,
    utcnow,
)
from database.repository import Repository
from services.gig_service import status_change_values
from services.ledger_service import LedgerService
from services.pricing_engine import total_stars_reward

logger = logging.getLogger(__name__)


# Assignment status -> timestamp column stamped on entry
STATUS_TIMESTAMPS = {
    AssignmentStatusDB.ACCEPTED: "accepted_at",
    AssignmentStatusDB.STARTED: "started_at",
    AssignmentStatusDB.SUBMITTED: "submitted_at",
    AssignmentStatusDB.REVIEWED: "reviewed_at",
    AssignmentStatusDB.COMPLETED: "completed_at",
}


class AssignmentService:
    """
    Gig claims, assignment progress and reviews.

    Claiming is a compare-and-swap on the gig row
    (`status OPEN -> CLAIMED`), so of several concurrent claimers exactly
    one gets an assignment; the others see InvalidStateError or
    ConflictError.
    """

    def __init__(self, repo: Repository):
        self.repo = repo
        self.guard = AuthorizationGuard(repo)
        self.ledger = LedgerService(repo)

    def _complete_gig(self, gig: Gig, now):
        values = status_change_values(gig.status, GigStatusDB.COMPLETED, now)
        self.repo.conditional_update(Gig, [Gig.id == gig.id], values)

    # ------------------------------------------------------------------
    # Claim
    # ------------------------------------------------------------------

    def claim_gig(self, user: User, gig_id: str, note: Optional[str] = None) -> GigAssignment:
        user_id = self.guard.require_principal(user)
        gig = self.repo.require(Gig, gig_id, "Gig")
        if gig.status != GigStatusDB.OPEN:
            raise InvalidStateError("Gig is not open for claiming.")
        self.guard.require(user_id, gig.company_id, CompanyAction.CLAIM_GIG)

        if self.repo.exists(GigAssignment, GigAssignment.gig_id == gig_id):
            raise ConflictError("Gig has already been claimed.")

        now = utcnow()
        with self.repo.transaction():
            claimed = self.repo.conditional_update(
                Gig,
                [Gig.id == gig_id, Gig.status == GigStatusDB.OPEN],
                status_change_values(GigStatusDB.OPEN, GigStatusDB.CLAIMED, now),
            )
            if claimed != 1:
                raise InvalidStateError("Gig is not open for claiming.")

            assignment = self.repo.add(GigAssignment(
                gig_id=gig_id,
                user_id=user_id,
                note=(note or "").strip() or None,
                status=AssignmentStatusDB.CLAIMED,
                claimed_at=now,
            ))
            self.repo.delete_where(Watchlist, Watchlist.gig_id == gig_id)

        logger.info("User %s claimed gig %s", user_id, gig_id)
        return assignment

    # ------------------------------------------------------------------
    # Progress
    # ------------------------------------------------------------------

    def update_assignment_status(
        self,
        user: User,
        assignment_id: str,
        status: AssignmentStatusDB,
        note: Optional[str] = None,
    ) -> GigAssignment:
        user_id = self.guard.require_principal(user)
        assignment = self.repo.require(GigAssignment, assignment_id, "Assignment")
        gig = assignment.gig

        if assignment.user_id != user_id:
            member = self.guard.membership(gig.company_id, user_id)
            if member is None or CompanyRole(member.role) not in COMPANY_ADMIN_ROLES:
                raise ForbiddenError()

        status = AssignmentStatusDB(status)
        now = utcnow()
        with self.repo.transaction():
            assignment.status = status
            if note is not None:
                assignment.note = note.strip() or None
            column = STATUS_TIMESTAMPS.get(status)
            if column:
                setattr(assignment, column, now)
            if status == AssignmentStatusDB.COMPLETED:
                self._complete_gig(gig, now)

        logger.info("Assignment %s -> %s by %s", assignment_id, status.value, user_id)
        return self.repo.require(GigAssignment, assignment_id, "Assignment")

    # ------------------------------------------------------------------
    # Review
    # ------------------------------------------------------------------

    def create_review(
        self,
        user: User,
        assignment_id: str,
        stars_rating: int,
        decision: ReviewDecisionDB,
        comment: Optional[str] = None,
    ) -> dict:
        user_id = self.guard.require_principal(user)
        if stars_rating is None or not 1 <= stars_rating <= 5:
            raise InvalidArgumentError("stars_rating must be between 1 and 5.")

        assignment = self.repo.require(GigAssignment, assignment_id, "Assignment")
        # a review row or an earlier reward both block a second review;
        # reviewed_at alone does not, since status updates stamp it too
        if (
            self.repo.exists(GigReview, GigReview.assignment_id == assignment_id)
            or self.repo.exists(
                StarsTransaction,
                StarsTransaction.assignment_id == assignment_id,
                StarsTransaction.reason == StarsReasonDB.EARNED_FROM_REVIEW,
            )
        ):
            raise InvalidStateError("Assignment already reviewed.")

        gig = assignment.gig
        reviewer = self.guard.require(user_id, gig.company_id, CompanyAction.REVIEW_ASSIGNMENT)

        decision = ReviewDecisionDB(decision)
        approved = decision == ReviewDecisionDB.APPROVED
        now = utcnow()
        reward = total_stars_reward(gig, now) if approved else 0
        assignee_profile = self.repo.first(Profile, Profile.user_id == assignment.user_id)

        # gig_reviews.assignment_id is unique: a racing second review fails at insert
        with self.repo.transaction():
            review = self.repo.add(GigReview(
                assignment_id=assignment_id,
                reviewer_member_id=reviewer.id,
                stars_rating=stars_rating,
                decision=decision,
                comment=(comment or "").strip() or None,
            ))

            assignment.reviewed_at = now
            if approved:
                assignment.status = AssignmentStatusDB.COMPLETED
                assignment.completed_at = now
                self._complete_gig(gig, now)
            else:
                assignment.status = AssignmentStatusDB.REVIEWED

            stars_awarded = 0
            if assignee_profile is not None:
                self.repo.conditional_update(
                    Profile,
                    [Profile.id == assignee_profile.id],
                    {
                        "rating_sum": Profile.rating_sum + stars_rating,
                        "rating_count": Profile.rating_count + 1,
                    },
                )
                if reward > 0:
                    self.ledger.record_stars_transaction(
                        assignee_profile.id,
                        reward,
                        StarsReasonDB.EARNED_FROM_REVIEW,
                        gig_id=gig.id,
                        assignment_id=assignment_id,
                    )
                    stars_awarded = reward

        logger.info("Assignment %s reviewed %s by member %s", assignment_id, decision.value, reviewer.id)
        return {
            "id": review.id,
            "assignment_id": review.assignment_id,
            "reviewer_member_id": review.reviewer_member_id,
            "stars_rating": review.stars_rating,
            "decision": review.decision,
            "comment": review.comment,
            "created_at": review.created_at,
            "stars_awarded": stars_awarded,
        }

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_gig_assignments(self, user: User, gig_id: str, skip: int = 0, limit: int = 20) -> List[GigAssignment]:
        user_id = self.guard.require_principal(user)
        gig = self.repo.require(Gig, gig_id, "Gig")
        self.guard.require(user_id, gig.company_id, CompanyAction.VIEW_GIG)
        return (
            self.repo.query(GigAssignment)
            .filter(GigAssignment.gig_id == gig_id)
            .order_by(GigAssignment.created_at.desc())
            .offset(skip).limit(limit)
            .all()
        )

    def my_assignments(self, user: User, skip: int = 0, limit: int = 20) -> List[GigAssignment]:
        user_id = self.guard.require_principal(user)
        return self._history(user_id, skip, limit)

    def assignment_history(self, user: User, target_user_id: Optional[str] = None, skip: int = 0, limit: int = 20) -> List[GigAssignment]:
        user_id = self.guard.require_principal(user)
        target = target_user_id or user_id
        if not self.guard.shares_company(user_id, target):
            raise ForbiddenError()
        return self._history(target, skip, limit)

    def _history(self, user_id: str, skip: int, limit: int) -> List[GigAssignment]:
        return (
            self.repo.query(GigAssignment)
            .filter(GigAssignment.user_id == user_id)
            .order_by(GigAssignment.created_at.desc())
            .offset(skip).limit(limit)
            .all()
        )

    def get_assignment(self, user: User, assignment_id: str) -> GigAssignment:
        user_id = self.guard.require_principal(user)
        assignment = self.repo.require(GigAssignment, assignment_id, "Assignment")
        if assignment.user_id != user_id:
            self.guard.require(user_id, assignment.gig.company_id, CompanyAction.VIEW_GIG)
        return assignment

    def get_review(self, user: User, review_id: str) -> GigReview:
        user_id = self.guard.require_principal(user)
        review = self.repo.require(GigReview, review_id, "Review")
        assignment = review.assignment
        if assignment.user_id != user_id:
            self.guard.require(user_id, assignment.gig.company_id, CompanyAction.VIEW_GIG)
        return review

    def list_gig_reviews(self, user: User, gig_id: str, skip: int = 0, limit: int = 20) -> List[GigReview]:
        user_id = self.guard.require_principal(user)
        gig = self.repo.require(Gig, gig_id, "Gig")
        self.guard.require(user_id, gig.company_id, CompanyAction.VIEW_GIG)
        return (
            self.repo.query(GigReview)
            .join(GigAssignment, GigAssignment.id == GigReview.assignment_id)
            .filter(GigAssignment.gig_id == gig_id)
            .order_by(GigReview.created_at.desc())
            .offset(skip).limit(limit)
            .all()
        )
