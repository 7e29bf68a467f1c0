# Authorization Guard
# Stateless membership / role checks run before every company-scoped write,
# plus the owner floor (a company never drops to zero OWNERs).

from typing import Iterable, Optional
import logging

from auth.roles import CompanyAction, CompanyRole, OWNER_ROLES, roles_for_action
from core.errors import ForbiddenError, InvalidStateError, NotFoundError, UnauthenticatedError
from database.models import Company, Member, User
from database.repository import Repository

logger = logging.getLogger(__name__)


class AuthorizationGuard:
    """
    Resolves the acting principal and checks company roles.

    Failures:
        UnauthenticatedError  no principal
        NotFoundError         company does not exist
        ForbiddenError        not a member, or role not allowed
    """

    def __init__(self, repo: Repository):
        self.repo = repo

    def require_principal(self, user: Optional[User]) -> str:
        if user is None or not getattr(user, "id", None):
            raise UnauthenticatedError()
        return user.id

    def membership(self, company_id: str, user_id: str) -> Optional[Member]:
        return self.repo.first(Member, Member.company_id == company_id, Member.user_id == user_id)

    def require_company_role(
        self,
        company_id: str,
        user_id: str,
        allowed_roles: Iterable[CompanyRole],
    ) -> Member:
        if not self.repo.exists(Company, Company.id == company_id):
            raise NotFoundError("Company not found.")

        member = self.membership(company_id, user_id)
        if member is None:
            raise ForbiddenError("You are not a member of this company.")

        if CompanyRole(member.role) not in set(allowed_roles):
            logger.warning(
                "User %s with role %s refused on company %s", user_id, member.role, company_id
            )
            raise ForbiddenError("Your company role does not allow this action.")
        return member

    def require_owner(self, company_id: str, user_id: str) -> Member:
        return self.require_company_role(company_id, user_id, OWNER_ROLES)

    def require(self, user_id: str, company_id: str, action: CompanyAction) -> Member:
        """Check that `user_id` may perform `action` inside `company_id`."""
        return self.require_company_role(company_id, user_id, roles_for_action(action))

    def shares_company(self, user_id: str, other_user_id: str) -> bool:
        if user_id == other_user_id:
            return True
        mine = self.repo.query(Member.company_id).filter(Member.user_id == user_id)
        return self.repo.exists(
            Member,
            Member.user_id == other_user_id,
            Member.company_id.in_(mine),
        )

    # ------------------------------------------------------------------
    # Owner floor
    # ------------------------------------------------------------------

    def owner_count(self, company_id: str, lock: bool = False) -> int:
        """Owners of `company_id`; `lock` takes row locks until the transaction ends."""
        query = self.repo.query(Member.id).filter(
            Member.company_id == company_id, Member.role == CompanyRole.OWNER
        )
        if lock:
            query = query.with_for_update()
        return len(query.all())

    def check_owner_floor(self, member: Member):
        """Refuse to drop `member` when it is the company's last OWNER. Call inside a transaction."""
        if CompanyRole(member.role) == CompanyRole.OWNER and self.owner_count(member.company_id, lock=True) <= 1:
            raise InvalidStateError("A company must keep at least one owner.")

    def require_owner_remains(self, company_id: str):
        """Post-write check: rolls the enclosing transaction back when no OWNER is left."""
        if self.repo.exists(Company, Company.id == company_id) and self.owner_count(company_id) < 1:
            logger.warning("Refused change leaving company %s without an owner", company_id)
            raise InvalidStateError("A company must keep at least one owner.")
