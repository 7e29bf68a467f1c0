# Membership Workflow
# Company join requests: none -> PENDING -> APPROVED | DENIED

from typing import List, Optional
import logging

from auth.guard import AuthorizationGuard
from auth.roles import CompanyRole
from core.errors import AlreadyPendingError, ConflictError, InvalidStateError
from database.models import (
    Company,
    CompanyMembershipRequest,
    Member,
    MembershipRequestStatusDB,
    User,
    utcnow,
)
from database.repository import Repository

logger = logging.getLogger(__name__)


class MembershipService:
    """
    Request / approve / deny lifecycle for joining a company.

    Only the latest request per (company, user) matters; older resolved
    requests are kept as history. Approval upserts the Member row and
    resolves the request in one transaction.
    """

    def __init__(self, repo: Repository):
        self.repo = repo
        self.guard = AuthorizationGuard(repo)

    def latest_request(self, company_id: str, user_id: str) -> Optional[CompanyMembershipRequest]:
        return (
            self.repo.query(CompanyMembershipRequest)
            .filter(
                CompanyMembershipRequest.company_id == company_id,
                CompanyMembershipRequest.user_id == user_id,
            )
            .order_by(CompanyMembershipRequest.created_at.desc())
            .first()
        )

    def request_membership(
        self,
        user: User,
        company_id: str,
        requested_role: CompanyRole = CompanyRole.CREATOR,
        note: Optional[str] = None,
    ) -> CompanyMembershipRequest:
        user_id = self.guard.require_principal(user)
        self.repo.require(Company, company_id, "Company")

        if self.guard.membership(company_id, user_id) is not None:
            raise ConflictError("You are already a member of this company.")

        latest = self.latest_request(company_id, user_id)
        if latest is not None and latest.status == MembershipRequestStatusDB.PENDING:
            raise AlreadyPendingError("A membership request is already pending for this company.")

        with self.repo.transaction():
            request = self.repo.add(CompanyMembershipRequest(
                company_id=company_id,
                user_id=user_id,
                requested_role=CompanyRole(requested_role),
                note=note,
                status=MembershipRequestStatusDB.PENDING,
            ))

        logger.info("User %s requested to join company %s as %s", user_id, company_id, requested_role)
        return request

    def _require_pending(self, owner_id: str, request_id: str) -> CompanyMembershipRequest:
        request = self.repo.require(CompanyMembershipRequest, request_id, "Membership request")
        self.guard.require_owner(request.company_id, owner_id)
        if request.status != MembershipRequestStatusDB.PENDING:
            raise InvalidStateError("This membership request has already been resolved.")
        return request

    def _resolve(self, request_id: str, owner_id: str, status: MembershipRequestStatusDB, note: Optional[str]):
        # only one resolver wins when two owners act at once
        resolved = self.repo.conditional_update(
            CompanyMembershipRequest,
            [
                CompanyMembershipRequest.id == request_id,
                CompanyMembershipRequest.status == MembershipRequestStatusDB.PENDING,
            ],
            {
                "status": status,
                "resolved_by_user_id": owner_id,
                "resolved_note": note,
                "resolved_at": utcnow(),
            },
        )
        if resolved != 1:
            raise InvalidStateError("This membership request has already been resolved.")

    def approve(self, owner: User, request_id: str, role: Optional[CompanyRole] = None) -> CompanyMembershipRequest:
        owner_id = self.guard.require_principal(owner)
        request = self._require_pending(owner_id, request_id)
        granted = CompanyRole(role or request.requested_role)
        company_id, user_id = request.company_id, request.user_id

        with self.repo.transaction():
            self._resolve(request_id, owner_id, MembershipRequestStatusDB.APPROVED, None)

            member = self.guard.membership(company_id, user_id)
            if member is None:
                self.repo.add(Member(company_id=company_id, user_id=user_id, role=granted))
            else:
                # the requester joined some other way since asking
                if granted != CompanyRole.OWNER:
                    self.guard.check_owner_floor(member)
                member.role = granted
                self.repo.flush()
                self.guard.require_owner_remains(company_id)

        logger.info("Owner %s approved request %s (%s)", owner_id, request_id, granted.value)
        return self.repo.require(CompanyMembershipRequest, request_id, "Membership request")

    def deny(self, owner: User, request_id: str, reason: Optional[str] = None) -> CompanyMembershipRequest:
        owner_id = self.guard.require_principal(owner)
        self._require_pending(owner_id, request_id)

        with self.repo.transaction():
            self._resolve(request_id, owner_id, MembershipRequestStatusDB.DENIED, reason)

        logger.info("Owner %s denied request %s", owner_id, request_id)
        return self.repo.require(CompanyMembershipRequest, request_id, "Membership request")

    def list_company_requests(
        self,
        owner: User,
        company_id: str,
        status: Optional[MembershipRequestStatusDB] = MembershipRequestStatusDB.PENDING,
    ) -> List[CompanyMembershipRequest]:
        owner_id = self.guard.require_principal(owner)
        self.guard.require_owner(company_id, owner_id)

        query = self.repo.query(CompanyMembershipRequest).filter(
            CompanyMembershipRequest.company_id == company_id
        )
        if status is not None:
            query = query.filter(CompanyMembershipRequest.status == status)
        return query.order_by(CompanyMembershipRequest.created_at.desc()).all()

    def list_my_requests(
        self,
        user: User,
        status: Optional[MembershipRequestStatusDB] = None,
    ) -> List[CompanyMembershipRequest]:
        user_id = self.guard.require_principal(user)
        query = self.repo.query(CompanyMembershipRequest).filter(
            CompanyMembershipRequest.user_id == user_id
        )
        if status is not None:
            query = query.filter(CompanyMembershipRequest.status == status)
        return query.order_by(CompanyMembershipRequest.created_at.desc()).all()
