import pytest

from auth.roles import CompanyRole
from core.errors import (
    AlreadyPendingError,
    ConflictError,
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
)
from database.models import CompanyMembershipRequest, Member, MembershipRequestStatusDB
from services.company_service import CompanyService
from services.membership_service import MembershipService


@pytest.fixture
def setup(make_user, make_company):
    owner = make_user("owner@example.com")
    applicant = make_user("applicant@example.com")
    company_id = make_company(owner)
    return owner, applicant, company_id


def test_request_then_approve_with_role_override(repo, setup):
    owner, applicant, company_id = setup
    service = MembershipService(repo)

    request = service.request_membership(applicant, company_id, note="I have a van")
    assert request.status == MembershipRequestStatusDB.PENDING
    assert request.requested_role == CompanyRole.CREATOR

    approved = service.approve(owner, request.id, role=CompanyRole.APPROVER)

    assert approved.status == MembershipRequestStatusDB.APPROVED
    assert approved.resolved_by_user_id == owner.id
    assert approved.resolved_at is not None
    member = repo.first(Member, Member.company_id == company_id, Member.user_id == applicant.id)
    assert member.role == CompanyRole.APPROVER


def test_duplicate_pending_request(repo, setup):
    _, applicant, company_id = setup
    service = MembershipService(repo)
    service.request_membership(applicant, company_id)

    with pytest.raises(AlreadyPendingError):
        service.request_membership(applicant, company_id)


def test_member_cannot_request_again(repo, setup):
    owner, applicant, company_id = setup
    service = MembershipService(repo)
    service.approve(owner, service.request_membership(applicant, company_id).id)

    with pytest.raises(ConflictError):
        service.request_membership(applicant, company_id)


def test_denied_applicant_may_ask_again(repo, setup):
    owner, applicant, company_id = setup
    service = MembershipService(repo)
    first = service.request_membership(applicant, company_id)

    denied = service.deny(owner, first.id, reason="Not hiring")
    assert denied.status == MembershipRequestStatusDB.DENIED
    assert denied.resolved_note == "Not hiring"
    assert repo.count(Member, Member.user_id == applicant.id) == 0

    second = service.request_membership(applicant, company_id)
    assert second.id != first.id
    assert [r.id for r in service.list_company_requests(owner, company_id)] == [second.id]
    assert len(service.list_my_requests(applicant)) == 2
    assert len(service.list_company_requests(owner, company_id, status=None)) == 2


def test_only_owner_resolves(repo, setup):
    owner, applicant, company_id = setup
    service = MembershipService(repo)
    request = service.request_membership(applicant, company_id)

    with pytest.raises(ForbiddenError):
        service.approve(applicant, request.id)
    with pytest.raises(ForbiddenError):
        service.list_company_requests(applicant, company_id)


def test_request_is_resolved_once(repo, setup):
    owner, applicant, company_id = setup
    service = MembershipService(repo)
    request = service.request_membership(applicant, company_id)
    service.deny(owner, request.id)

    with pytest.raises(InvalidStateError):
        service.approve(owner, request.id)
    assert repo.count(Member, Member.user_id == applicant.id) == 0


def test_unknown_company(repo, setup):
    with pytest.raises(NotFoundError):
        MembershipService(repo).request_membership(setup[1], "missing")


def test_stale_request_cannot_demote_last_owner(repo, setup):
    owner, applicant, company_id = setup
    service = MembershipService(repo)
    request = service.request_membership(applicant, company_id)

    # applicant is made an owner directly, then the original owner leaves
    companies = CompanyService(repo)
    companies.add_member(owner, company_id, applicant.id, CompanyRole.OWNER)
    companies.leave_company(owner, company_id)

    with pytest.raises(InvalidStateError):
        service.approve(applicant, request.id)

    member = repo.first(Member, Member.company_id == company_id, Member.user_id == applicant.id)
    assert member.role == CompanyRole.OWNER
    assert repo.get(CompanyMembershipRequest, request.id).status == MembershipRequestStatusDB.PENDING
