# Watchlist Service
# Soft "interested in this gig" markers, valid only while the gig is claimable.

from typing import List
import logging

from auth.guard import AuthorizationGuard
from auth.roles import CompanyAction
from core.errors import InvalidStateError
from database.models import CLAIMABLE_GIG_STATUSES, Gig, GigAssignment, User, Watchlist
from database.repository import Repository
from services.gig_service import gig_to_response

logger = logging.getLogger(__name__)


class WatchlistService:
    def __init__(self, repo: Repository):
        self.repo = repo
        self.guard = AuthorizationGuard(repo)

    def _entry(self, row: Watchlist, gig: Gig) -> dict:
        return {
            "id": row.id,
            "user_id": row.user_id,
            "gig_id": row.gig_id,
            "created_at": row.created_at,
            "gig": gig_to_response(gig),
        }

    def add(self, user: User, gig_id: str) -> dict:
        """Idempotent: watching a gig twice returns the existing entry."""
        user_id = self.guard.require_principal(user)
        gig = self.repo.require(Gig, gig_id, "Gig")
        self.guard.require(user_id, gig.company_id, CompanyAction.WATCH_GIG)

        if gig.status not in CLAIMABLE_GIG_STATUSES:
            raise InvalidStateError("Only draft or open gigs can be watched.")
        if self.repo.exists(GigAssignment, GigAssignment.gig_id == gig_id):
            raise InvalidStateError("Gig has already been claimed.")

        existing = self.repo.first(Watchlist, Watchlist.user_id == user_id, Watchlist.gig_id == gig_id)
        if existing is not None:
            return self._entry(existing, gig)

        with self.repo.transaction():
            row = self.repo.add(Watchlist(user_id=user_id, gig_id=gig_id))
        return self._entry(row, gig)

    def remove(self, user: User, gig_id: str) -> bool:
        user_id = self.guard.require_principal(user)
        with self.repo.transaction():
            self.repo.delete_where(Watchlist, Watchlist.user_id == user_id, Watchlist.gig_id == gig_id)
        return True

    def list_mine(self, user: User) -> List[dict]:
        user_id = self.guard.require_principal(user)
        rows = (
            self.repo.query(Watchlist, Gig)
            .join(Gig, Gig.id == Watchlist.gig_id)
            .filter(Watchlist.user_id == user_id)
            .order_by(Watchlist.created_at.desc())
            .all()
        )

        entries, stale = [], []
        for row, gig in rows:
            if gig.status in CLAIMABLE_GIG_STATUSES:
                entries.append(self._entry(row, gig))
            else:
                stale.append(row.id)

        if stale:
            with self.repo.transaction():
                self.repo.delete_where(Watchlist, Watchlist.id.in_(stale))
            logger.info("Pruned %d stale watchlist entries for user %s", len(stale), user_id)
        return entries
