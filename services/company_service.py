# Company & Member management
# Companies, their members, and the owner floor (a company always keeps an OWNER)

from typing import List, Optional
import logging

from sqlalchemy import func

from auth.guard import AuthorizationGuard
from auth.roles import COMPANY_MEMBER_ROLES, CompanyAction, CompanyRole, allowed_actions
from core.errors import ConflictError, InvalidArgumentError, NotFoundError
from database.models import Company, Member, User
from database.repository import Repository

logger = logging.getLogger(__name__)


class CompanyService:
    def __init__(self, repo: Repository):
        self.repo = repo
        self.guard = AuthorizationGuard(repo)

    # ------------------------------------------------------------------
    # Companies
    # ------------------------------------------------------------------

    def describe(self, company: Company, member: Optional[Member]) -> dict:
        """Company fields plus the caller's role and what it unlocks."""
        role = CompanyRole(member.role) if member else None
        return {
            "id": company.id,
            "name": company.name,
            "logo_url": company.logo_url,
            "created_at": company.created_at,
            "my_role": role,
            "my_permissions": [a.value for a in allowed_actions(role)] if role else [],
        }

    def _name_taken(self, name: str, exclude_id: Optional[str] = None) -> bool:
        criteria = [func.lower(Company.name) == name.strip().lower()]
        if exclude_id:
            criteria.append(Company.id != exclude_id)
        return self.repo.exists(Company, *criteria)

    def create_company(self, user: User, name: str, logo_url: Optional[str] = None) -> dict:
        user_id = self.guard.require_principal(user)
        if self._name_taken(name):
            raise ConflictError("A company with this name already exists.")

        with self.repo.transaction():
            company = self.repo.add(Company(name=name.strip(), logo_url=logo_url))
            member = self.repo.add(Member(company_id=company.id, user_id=user_id, role=CompanyRole.OWNER))

        logger.info("User %s created company %s", user_id, company.id)
        return self.describe(company, member)

    def get_company(self, user: User, company_id: str) -> dict:
        user_id = self.guard.require_principal(user)
        member = self.guard.require(user_id, company_id, CompanyAction.VIEW_COMPANY)
        return self.describe(self.repo.require(Company, company_id, "Company"), member)

    def list_my_companies(self, user: User) -> List[dict]:
        user_id = self.guard.require_principal(user)
        rows = (
            self.repo.query(Company, Member)
            .join(Member, Member.company_id == Company.id)
            .filter(Member.user_id == user_id)
            .order_by(Company.name)
            .all()
        )
        return [self.describe(company, member) for company, member in rows]

    def update_company(self, user: User, company_id: str, values: dict) -> dict:
        user_id = self.guard.require_principal(user)
        member = self.guard.require(user_id, company_id, CompanyAction.UPDATE_COMPANY)
        company = self.repo.require(Company, company_id, "Company")

        name = values.get("name")
        if name is not None and self._name_taken(name, exclude_id=company_id):
            raise ConflictError("A company with this name already exists.")

        with self.repo.transaction():
            for field in ("name", "logo_url"):
                if field in values:
                    setattr(company, field, values[field].strip() if field == "name" else values[field])

        return self.describe(company, member)

    def delete_company(self, user: User, company_id: str) -> dict:
        user_id = self.guard.require_principal(user)
        self.guard.require(user_id, company_id, CompanyAction.DELETE_COMPANY)

        with self.repo.transaction():
            removed = self.repo.delete_cascade(Company, Company.id == company_id)

        logger.info("User %s deleted company %s: %s", user_id, company_id, removed)
        return removed

    def search_directory(self, q: Optional[str] = None, skip: int = 0, limit: int = 20) -> List[Company]:
        """Public listing: callers only ever see id, name and logo."""
        query = self.repo.query(Company)
        if q:
            query = query.filter(Company.name.ilike(f"%{q.strip()}%"))
        return query.order_by(Company.name).offset(skip).limit(limit).all()

    # ------------------------------------------------------------------
    # Members
    # ------------------------------------------------------------------

    def _require_member_in(self, company_id: str, member_id: str) -> Member:
        member = self.repo.get(Member, member_id)
        if member is None or member.company_id != company_id:
            raise NotFoundError("Member not found.")
        return member

    def list_members(self, user: User, company_id: str) -> List[Member]:
        user_id = self.guard.require_principal(user)
        self.guard.require_company_role(company_id, user_id, COMPANY_MEMBER_ROLES)
        return (
            self.repo.query(Member)
            .filter(Member.company_id == company_id)
            .order_by(Member.created_at)
            .all()
        )

    def add_member(self, user: User, company_id: str, new_user_id: str, role: CompanyRole) -> Member:
        user_id = self.guard.require_principal(user)
        self.guard.require(user_id, company_id, CompanyAction.MANAGE_MEMBERS)
        self.repo.require(User, new_user_id, "User")

        if self.guard.membership(company_id, new_user_id) is not None:
            raise ConflictError("User is already a member of this company.")

        with self.repo.transaction():
            member = self.repo.add(Member(company_id=company_id, user_id=new_user_id, role=CompanyRole(role)))

        logger.info("User %s added %s to company %s as %s", user_id, new_user_id, company_id, role)
        return member

    def update_member_role(self, user: User, company_id: str, member_id: str, role: CompanyRole) -> Member:
        user_id = self.guard.require_principal(user)
        self.guard.require(user_id, company_id, CompanyAction.MANAGE_MEMBERS)
        member = self._require_member_in(company_id, member_id)

        role = CompanyRole(role)
        with self.repo.transaction():
            if role != CompanyRole.OWNER:
                self.guard.check_owner_floor(member)
            member.role = role
            self.repo.flush()
            self.guard.require_owner_remains(company_id)
        return member

    def remove_member(self, user: User, company_id: str, member_id: str) -> dict:
        user_id = self.guard.require_principal(user)
        self.guard.require(user_id, company_id, CompanyAction.MANAGE_MEMBERS)
        member = self._require_member_in(company_id, member_id)

        if member.user_id == user_id:
            raise InvalidArgumentError("Use leave company to remove yourself.")

        with self.repo.transaction():
            self.guard.check_owner_floor(member)
            removed = self.repo.delete_cascade(Member, Member.id == member_id)
            self.guard.require_owner_remains(company_id)

        logger.info("User %s removed member %s from company %s", user_id, member_id, company_id)
        return removed

    def leave_company(self, user: User, company_id: str) -> dict:
        user_id = self.guard.require_principal(user)
        self.repo.require(Company, company_id, "Company")
        member = self.guard.membership(company_id, user_id)
        if member is None:
            raise NotFoundError("You are not a member of this company.")
        member_id = member.id

        with self.repo.transaction():
            self.guard.check_owner_floor(member)
            removed = self.repo.delete_cascade(Member, Member.id == member_id)
            self.guard.require_owner_remains(company_id)

        logger.info("User %s left company %s", user_id, company_id)
        return removed
