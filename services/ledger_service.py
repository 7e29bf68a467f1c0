# Ledger Service
# Append-only stars / money log. Every stars row moves Profile.stars_balance
# by exactly its delta inside the same transaction, through a guarded update
# that can never take the balance below zero.

from datetime import timedelta
from typing import List, Optional
import logging

from sqlalchemy import case, func

from core.errors import (
    ForbiddenError,
    InsufficientBalanceError,
    InvalidArgumentError,
    InvalidStateError,
    NotFoundError,
)
from database.models import (
    GigAssignment,
    Gig,
    MoneyReasonDB,
    MoneyTransaction,
    Product,
    ProductCategoryDB,
    Profile,
    Purchase,
    PurchaseStatusDB,
    StarsReasonDB,
    StarsTransaction,
    User,
    utcnow,
)
from database.repository import Repository

logger = logging.getLogger(__name__)


class LedgerService:
    """
    Stars and money transactions, product purchases and their lifecycle.

    Balance rule: a stars row is only written if
    `UPDATE profiles SET stars_balance = stars_balance + delta
     WHERE id = ? AND stars_balance + delta >= 0` touched the profile,
    so concurrent debits serialize on the profile row.
    """

    def __init__(self, repo: Repository):
        self.repo = repo

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def require_profile(self, user: User) -> Profile:
        profile = self.repo.first(Profile, Profile.user_id == user.id)
        if profile is None:
            raise NotFoundError("Profile not found.")
        return profile

    def _apply_balance_delta(self, profile_id: str, delta: int):
        applied = self.repo.conditional_update(
            Profile,
            [Profile.id == profile_id, Profile.stars_balance + delta >= 0],
            {"stars_balance": Profile.stars_balance + delta},
        )
        if applied != 1:
            if not self.repo.exists(Profile, Profile.id == profile_id):
                raise NotFoundError("Profile not found.")
            raise InsufficientBalanceError()

    def _check_links(self, contractor_id: str, gig_id=None, assignment_id=None, purchase_id=None):
        if gig_id:
            self.repo.require(Gig, gig_id, "Gig")
        if assignment_id:
            self.repo.require(GigAssignment, assignment_id, "Assignment")
        if purchase_id:
            purchase = self.repo.require(Purchase, purchase_id, "Purchase")
            if purchase.contractor_id != contractor_id:
                raise ForbiddenError("Purchase does not belong to contractor.")

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    def record_stars_transaction(
        self,
        contractor_id: str,
        delta: int,
        reason: StarsReasonDB,
        gig_id: Optional[str] = None,
        assignment_id: Optional[str] = None,
        purchase_id: Optional[str] = None,
    ) -> StarsTransaction:
        if not delta:
            raise InvalidArgumentError("delta must be non-zero.")
        self._check_links(contractor_id, gig_id, assignment_id, purchase_id)

        with self.repo.transaction():
            self._apply_balance_delta(contractor_id, delta)
            entry = self.repo.add(StarsTransaction(
                contractor_id=contractor_id,
                delta=delta,
                reason=StarsReasonDB(reason),
                gig_id=gig_id,
                assignment_id=assignment_id,
                purchase_id=purchase_id,
            ))

        logger.info("Stars %+d for profile %s (%s)", delta, contractor_id, StarsReasonDB(reason).value)
        return entry

    def record_money_transaction(
        self,
        contractor_id: str,
        amount_cents: int,
        reason: MoneyReasonDB,
        gig_id: Optional[str] = None,
        assignment_id: Optional[str] = None,
    ) -> MoneyTransaction:
        if not amount_cents:
            raise InvalidArgumentError("amount_cents must be non-zero.")
        self.repo.require(Profile, contractor_id, "Profile")
        self._check_links(contractor_id, gig_id, assignment_id)

        with self.repo.transaction():
            entry = self.repo.add(MoneyTransaction(
                contractor_id=contractor_id,
                amount_cents=amount_cents,
                reason=MoneyReasonDB(reason),
                gig_id=gig_id,
                assignment_id=assignment_id,
            ))
        return entry

    def create_stars_transaction(self, user: User, contractor_id: Optional[str], **kwargs) -> StarsTransaction:
        """Self-scoped entry point used by the wallet router."""
        profile = self.require_profile(user)
        if contractor_id and contractor_id != profile.id:
            raise ForbiddenError()
        return self.record_stars_transaction(profile.id, **kwargs)

    def create_money_transaction(self, user: User, contractor_id: Optional[str], **kwargs) -> MoneyTransaction:
        profile = self.require_profile(user)
        if contractor_id and contractor_id != profile.id:
            raise ForbiddenError()
        return self.record_money_transaction(profile.id, **kwargs)

    # ------------------------------------------------------------------
    # Purchases
    # ------------------------------------------------------------------

    def _require_own_assignment(self, user_id: str, assignment_id: Optional[str]):
        if not assignment_id:
            return
        assignment = self.repo.require(GigAssignment, assignment_id, "Assignment")
        if assignment.user_id != user_id:
            raise ForbiddenError("Assignment does not belong to you.")

    def purchase_product(self, user: User, product_id: str, applied_to_assignment_id: Optional[str] = None) -> Purchase:
        profile = self.require_profile(user)
        product = self.repo.require(Product, product_id, "Product")
        self._require_own_assignment(user.id, applied_to_assignment_id)

        cost = int(product.stars_cost or 0)
        now = utcnow()
        expires_at = None
        if product.duration_seconds and product.duration_seconds > 0:
            expires_at = now + timedelta(seconds=product.duration_seconds)

        with self.repo.transaction():
            if cost > 0:
                self._apply_balance_delta(profile.id, -cost)
            purchase = self.repo.add(Purchase(
                contractor_id=profile.id,
                product_id=product.id,
                applied_to_assignment_id=applied_to_assignment_id,
                status=PurchaseStatusDB.ACTIVE,
                expires_at=expires_at,
            ))
            if cost > 0:
                self.repo.add(StarsTransaction(
                    contractor_id=profile.id,
                    delta=-cost,
                    reason=StarsReasonDB.SPENT_ON_PRODUCT,
                    purchase_id=purchase.id,
                ))

        logger.info("Profile %s bought product %s for %d stars", profile.id, product.id, cost)
        return purchase

    def require_own_purchase(self, user: User, purchase_id: str) -> Purchase:
        profile = self.require_profile(user)
        purchase = self.repo.require(Purchase, purchase_id, "Purchase")
        if purchase.contractor_id != profile.id:
            raise ForbiddenError()
        return purchase

    def consume_purchase(self, user: User, purchase_id: str, applied_to_assignment_id: Optional[str] = None) -> Purchase:
        purchase = self.require_own_purchase(user, purchase_id)
        self._require_own_assignment(user.id, applied_to_assignment_id)

        now = utcnow()
        if purchase.status != PurchaseStatusDB.ACTIVE:
            raise InvalidStateError("Purchase is not active.")
        if purchase.expires_at is not None and purchase.expires_at <= now:
            raise InvalidStateError("Purchase has expired.")

        product = purchase.product
        values = {"status": PurchaseStatusDB.CONSUMED, "consumed_at": now}
        if applied_to_assignment_id:
            values["applied_to_assignment_id"] = applied_to_assignment_id

        with self.repo.transaction():
            consumed = self.repo.conditional_update(
                Purchase,
                [Purchase.id == purchase_id, Purchase.status == PurchaseStatusDB.ACTIVE],
                values,
            )
            if consumed != 1:
                raise InvalidStateError("Purchase is not active.")
            if product.category == ProductCategoryDB.MEMBERSHIP_UPGRADE and product.tier is not None:
                self.repo.conditional_update(
                    Profile, [Profile.id == purchase.contractor_id], {"tier": product.tier}
                )

        logger.info("Purchase %s consumed", purchase_id)
        return self.repo.require(Purchase, purchase_id, "Purchase")

    def expire_purchase(self, user: User, purchase_id: str) -> Purchase:
        """Idempotent: a purchase that is no longer ACTIVE comes back unchanged."""
        purchase = self.require_own_purchase(user, purchase_id)
        if purchase.status != PurchaseStatusDB.ACTIVE:
            return purchase

        with self.repo.transaction():
            self.repo.conditional_update(
                Purchase,
                [Purchase.id == purchase_id, Purchase.status == PurchaseStatusDB.ACTIVE],
                {"status": PurchaseStatusDB.EXPIRED},
            )
        return self.repo.require(Purchase, purchase_id, "Purchase")

    # ------------------------------------------------------------------
    # Self-scoped queries
    # ------------------------------------------------------------------

    def wallet_summary(self, user: User) -> dict:
        profile = self.require_profile(user)
        earned, spent = (
            self.repo.query(
                func.coalesce(func.sum(case((StarsTransaction.delta > 0, StarsTransaction.delta), else_=0)), 0),
                func.coalesce(func.sum(case((StarsTransaction.delta < 0, StarsTransaction.delta), else_=0)), 0),
            )
            .filter(StarsTransaction.contractor_id == profile.id)
            .one()
        )
        money_total = (
            self.repo.query(func.coalesce(func.sum(MoneyTransaction.amount_cents), 0))
            .filter(MoneyTransaction.contractor_id == profile.id)
            .scalar()
        )
        return {
            "profile_id": profile.id,
            "stars_balance": profile.stars_balance,
            "tier": profile.tier,
            "lifetime_stars_earned": int(earned),
            "lifetime_stars_spent": -int(spent),
            "money_total_cents": int(money_total),
        }

    def list_stars_transactions(self, user: User, skip: int = 0, limit: int = 20) -> List[StarsTransaction]:
        profile = self.require_profile(user)
        return (
            self.repo.query(StarsTransaction)
            .filter(StarsTransaction.contractor_id == profile.id)
            .order_by(StarsTransaction.created_at.desc())
            .offset(skip).limit(limit)
            .all()
        )

    def list_money_transactions(self, user: User, skip: int = 0, limit: int = 20) -> List[MoneyTransaction]:
        profile = self.require_profile(user)
        return (
            self.repo.query(MoneyTransaction)
            .filter(MoneyTransaction.contractor_id == profile.id)
            .order_by(MoneyTransaction.created_at.desc())
            .offset(skip).limit(limit)
            .all()
        )

    def list_purchases(
        self,
        user: User,
        status: Optional[PurchaseStatusDB] = None,
        skip: int = 0,
        limit: int = 20,
    ) -> List[Purchase]:
        profile = self.require_profile(user)
        query = self.repo.query(Purchase).filter(Purchase.contractor_id == profile.id)
        if status is not None:
            query = query.filter(Purchase.status == status)
        return query.order_by(Purchase.created_at.desc()).offset(skip).limit(limit).all()
