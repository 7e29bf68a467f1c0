# Gig Service
# Gig CRUD and status changes. Live pay / star figures are attached on every
# read via services.pricing_engine; nothing derived is ever written back.

from datetime import datetime
from typing import List, Optional
import logging

from auth.guard import AuthorizationGuard
from auth.roles import CompanyAction
from config.app_config import (
    DEFAULT_BUMP_CENTS,
    DEFAULT_BUMP_EVERY_SECONDS,
    DEFAULT_REPOST_BONUS_PER_REPOST,
    DEFAULT_STARS_BUMP_AMOUNT,
    DEFAULT_STARS_BUMP_EVERY_SECONDS,
)
from core.errors import ForbiddenError, InvalidArgumentError
from database.models import (
    CLAIMABLE_GIG_STATUSES,
    Gig,
    GigStatusDB,
    Location,
    Member,
    User,
    Watchlist,
    utcnow,
)
from database.repository import Repository
from services.pricing_engine import pricing_snapshot, validate_pricing_config

logger = logging.getLogger(__name__)


CONFIG_DEFAULTS = {
    "bump_every_seconds": DEFAULT_BUMP_EVERY_SECONDS,
    "bump_cents": DEFAULT_BUMP_CENTS,
    "stars_bump_every_seconds": DEFAULT_STARS_BUMP_EVERY_SECONDS,
    "stars_bump_amount": DEFAULT_STARS_BUMP_AMOUNT,
    "repost_bonus_per_repost": DEFAULT_REPOST_BONUS_PER_REPOST,
}

# Columns a create/update request may set directly
EDITABLE_FIELDS = (
    "title", "description", "type", "location_id", "starts_at", "ends_at",
    "base_price_cents", "bump_every_seconds", "bump_cents", "max_bumps", "max_price_cents",
    "base_stars", "stars_bump_every_seconds", "stars_bump_amount", "max_age_bonus_stars",
    "repost_bonus_per_repost", "required_tier",
)

# Non-nullable columns: an explicit null in an update is ignored
REQUIRED_FIELDS = (
    "title", "type", "base_price_cents", "bump_every_seconds", "bump_cents",
    "base_stars", "stars_bump_every_seconds", "stars_bump_amount", "repost_bonus_per_repost",
)

GIG_COLUMNS = (
    "id", "company_id", "created_by_user_id", "title", "description", "type", "status",
    "location_id", "starts_at", "ends_at",
    "base_price_cents", "bump_every_seconds", "bump_cents", "max_bumps", "max_price_cents",
    "base_stars", "stars_bump_every_seconds", "stars_bump_amount", "max_age_bonus_stars",
    "repost_bonus_per_repost", "repost_count", "required_tier", "created_at", "updated_at",
)


def gig_to_response(gig: Gig, now: Optional[datetime] = None) -> dict:
    """Stored configuration plus pricing evaluated at `now`."""
    data = {column: getattr(gig, column) for column in GIG_COLUMNS}
    data.update(pricing_snapshot(gig, now or utcnow()))
    data["location"] = gig.location
    return data


def status_change_values(current: GigStatusDB, new: GigStatusDB, now: datetime) -> dict:
    """
    Column values for moving a gig from `current` to `new`.
    `status_changed_at` only moves when the gig crosses the claimable
    boundary, so the bump clock stays frozen between later transitions.
    """
    values = {"status": new}
    if (GigStatusDB(current) in CLAIMABLE_GIG_STATUSES) != (GigStatusDB(new) in CLAIMABLE_GIG_STATUSES):
        values["status_changed_at"] = now
    return values


def _check_window(starts_at: Optional[datetime], ends_at: Optional[datetime]):
    if starts_at and ends_at and ends_at < starts_at:
        raise InvalidArgumentError("ends_at must not be before starts_at.")


class GigService:
    def __init__(self, repo: Repository):
        self.repo = repo
        self.guard = AuthorizationGuard(repo)

    def _require_location(self, location_id: Optional[str]):
        if location_id:
            self.repo.require(Location, location_id, "Location")

    def require_gig(self, gig_id: str) -> Gig:
        return self.repo.require(Gig, gig_id, "Gig")

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def create_gig(self, user: User, values: dict) -> dict:
        user_id = self.guard.require_principal(user)
        company_id = values["company_id"]
        self.guard.require(user_id, company_id, CompanyAction.CREATE_GIG)

        data = {field: values.get(field) for field in EDITABLE_FIELDS}
        for field, default in CONFIG_DEFAULTS.items():
            if data.get(field) is None:
                data[field] = default
        data["title"] = data["title"].strip()
        if data.get("description"):
            data["description"] = data["description"].strip() or None

        validate_pricing_config(data)
        _check_window(data.get("starts_at"), data.get("ends_at"))
        self._require_location(data.get("location_id"))

        status = GigStatusDB(values.get("status") or GigStatusDB.DRAFT)
        if status not in CLAIMABLE_GIG_STATUSES:
            raise InvalidArgumentError("A gig can only be created as DRAFT or OPEN.")

        now = utcnow()
        with self.repo.transaction():
            gig = self.repo.add(Gig(
                company_id=company_id,
                created_by_user_id=user_id,
                status=status,
                status_changed_at=now,
                created_at=now,
                updated_at=now,
                **{k: v for k, v in data.items() if v is not None},
            ))

        logger.info("User %s created gig %s in company %s", user_id, gig.id, company_id)
        return gig_to_response(gig)

    def update_gig(self, user: User, gig_id: str, values: dict) -> dict:
        user_id = self.guard.require_principal(user)
        gig = self.require_gig(gig_id)
        self.guard.require(user_id, gig.company_id, CompanyAction.UPDATE_GIG)

        changes = {}
        for field in EDITABLE_FIELDS:
            if field not in values:
                continue
            if values[field] is None and field in REQUIRED_FIELDS:
                continue
            changes[field] = values[field]
        if not changes:
            raise InvalidArgumentError("No gig fields provided.")

        if changes.get("title"):
            changes["title"] = changes["title"].strip()
        validate_pricing_config(changes)
        _check_window(
            changes.get("starts_at", gig.starts_at),
            changes.get("ends_at", gig.ends_at),
        )
        if "location_id" in changes:
            self._require_location(changes["location_id"])

        with self.repo.transaction():
            for field, value in changes.items():
                setattr(gig, field, value)

        return gig_to_response(gig)

    def update_gig_status(self, user: User, gig_id: str, status: GigStatusDB) -> dict:
        user_id = self.guard.require_principal(user)
        gig = self.require_gig(gig_id)
        self.guard.require(user_id, gig.company_id, CompanyAction.CHANGE_GIG_STATUS)

        status = GigStatusDB(status)
        previous = GigStatusDB(gig.status)
        if status == previous:
            return gig_to_response(gig)

        with self.repo.transaction():
            for field, value in status_change_values(previous, status, utcnow()).items():
                setattr(gig, field, value)
            if status not in CLAIMABLE_GIG_STATUSES:
                self.repo.delete_where(Watchlist, Watchlist.gig_id == gig_id)

        logger.info("Gig %s moved %s -> %s by %s", gig_id, previous.value, status.value, user_id)
        return gig_to_response(self.require_gig(gig_id))

    def delete_gig(self, user: User, gig_id: str) -> dict:
        user_id = self.guard.require_principal(user)
        gig = self.require_gig(gig_id)
        self.guard.require(user_id, gig.company_id, CompanyAction.DELETE_GIG)

        with self.repo.transaction():
            removed = self.repo.delete_cascade(Gig, Gig.id == gig_id)

        logger.info("User %s deleted gig %s: %s", user_id, gig_id, removed)
        return removed

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_gig(self, user: User, gig_id: str) -> dict:
        user_id = self.guard.require_principal(user)
        gig = self.require_gig(gig_id)
        self.guard.require(user_id, gig.company_id, CompanyAction.VIEW_GIG)
        return gig_to_response(gig)

    def list_gigs(
        self,
        user: User,
        company_id: Optional[str] = None,
        status: Optional[GigStatusDB] = None,
        skip: int = 0,
        limit: int = 20,
    ) -> List[dict]:
        user_id = self.guard.require_principal(user)
        my_companies = self.repo.query(Member.company_id).filter(Member.user_id == user_id)

        query = self.repo.query(Gig)
        if company_id:
            if self.guard.membership(company_id, user_id) is None:
                raise ForbiddenError("You are not a member of this company.")
            query = query.filter(Gig.company_id == company_id)
        else:
            query = query.filter(Gig.company_id.in_(my_companies))
        if status is not None:
            query = query.filter(Gig.status == status)

        gigs = query.order_by(Gig.created_at.desc()).offset(skip).limit(limit).all()
        now = utcnow()
        return [gig_to_response(gig, now) for gig in gigs]
