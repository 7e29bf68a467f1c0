import pytest

from auth.roles import CompanyAction, CompanyRole
from core.errors import (
    ConflictError,
    ForbiddenError,
    InvalidArgumentError,
    InvalidStateError,
    NotFoundError,
)
from database.config import SessionLocal
from database.models import Company, Member, User
from database.repository import Repository
from services.account_service import AccountService
from services.company_service import CompanyService


def member_of(repo, company_id, user):
    return repo.first(Member, Member.company_id == company_id, Member.user_id == user.id)


# ============================================================================
# Companies
# ============================================================================

def test_creator_becomes_owner(repo, make_user):
    owner = make_user()

    company = CompanyService(repo).create_company(owner, "  Acme Gigs ")

    assert company["name"] == "Acme Gigs"
    assert company["my_role"] == CompanyRole.OWNER
    assert CompanyAction.DELETE_COMPANY.value in company["my_permissions"]
    assert member_of(repo, company["id"], owner).role == CompanyRole.OWNER


def test_company_names_are_unique_ignoring_case(repo, make_user, make_company):
    owner = make_user()
    make_company(owner, name="Acme Gigs")

    with pytest.raises(ConflictError):
        CompanyService(repo).create_company(make_user(), "acme gigs")


def test_creator_permissions_are_limited(repo, make_user, make_company):
    owner, creator = make_user(), make_user()
    company_id = make_company(owner, members=[(creator, "CREATOR")])
    service = CompanyService(repo)

    view = service.get_company(creator, company_id)
    assert view["my_role"] == CompanyRole.CREATOR
    assert CompanyAction.CREATE_GIG.value in view["my_permissions"]
    assert CompanyAction.REVIEW_ASSIGNMENT.value not in view["my_permissions"]

    with pytest.raises(ForbiddenError):
        service.update_company(creator, company_id, {"name": "Renamed"})


def test_unknown_company_is_not_found(repo, make_user):
    with pytest.raises(NotFoundError):
        CompanyService(repo).get_company(make_user(), "missing")


def test_directory_search(repo, make_user, make_company):
    make_company(make_user(), name="Acme Gigs")
    make_company(make_user(), name="Bolt Logistics")

    names = [c.name for c in CompanyService(repo).search_directory("gig")]

    assert names == ["Acme Gigs"]
    assert len(CompanyService(repo).search_directory()) == 2


def test_list_my_companies(repo, make_user, make_company):
    user = make_user()
    make_company(user, name="Zeta")
    make_company(make_user(), name="Alpha", members=[(user, "MANAGER")])

    companies = CompanyService(repo).list_my_companies(user)

    assert [(c["name"], c["my_role"]) for c in companies] == [
        ("Alpha", CompanyRole.MANAGER),
        ("Zeta", CompanyRole.OWNER),
    ]


# ============================================================================
# Members and the owner floor
# ============================================================================

def test_sole_owner_cannot_leave_or_demote(repo, make_user, make_company):
    owner = make_user()
    company_id = make_company(owner)
    service = CompanyService(repo)
    me = member_of(repo, company_id, owner)

    with pytest.raises(InvalidStateError):
        service.leave_company(owner, company_id)
    with pytest.raises(InvalidStateError):
        service.update_member_role(owner, company_id, me.id, CompanyRole.MANAGER)

    assert member_of(repo, company_id, owner).role == CompanyRole.OWNER


def test_self_removal_goes_through_leave(repo, make_user, make_company):
    owner = make_user()
    company_id = make_company(owner)

    with pytest.raises(InvalidArgumentError):
        CompanyService(repo).remove_member(owner, company_id, member_of(repo, company_id, owner).id)


def test_second_owner_lifts_the_floor(repo, make_user, make_company):
    owner, partner = make_user(), make_user()
    company_id = make_company(owner, members=[(partner, "OWNER")])
    service = CompanyService(repo)

    service.leave_company(owner, company_id)

    assert member_of(repo, company_id, owner) is None
    with pytest.raises(InvalidStateError):
        service.leave_company(partner, company_id)


def test_demoted_owner_loses_member_management(repo, make_user, make_company):
    owner, partner = make_user(), make_user()
    company_id = make_company(owner, members=[(partner, "OWNER")])
    service = CompanyService(repo)
    partner_member = member_of(repo, company_id, partner)

    service.update_member_role(owner, company_id, member_of(repo, company_id, owner).id, CompanyRole.MANAGER)

    with pytest.raises(ForbiddenError):
        service.remove_member(owner, company_id, partner_member.id)


def test_add_update_remove_member(repo, make_user, make_company):
    owner, newcomer = make_user(), make_user()
    company_id = make_company(owner)
    service = CompanyService(repo)

    member = service.add_member(owner, company_id, newcomer.id, CompanyRole.CREATOR)
    with pytest.raises(ConflictError):
        service.add_member(owner, company_id, newcomer.id, CompanyRole.APPROVER)

    assert service.update_member_role(owner, company_id, member.id, CompanyRole.APPROVER).role == CompanyRole.APPROVER
    assert len(service.list_members(newcomer, company_id)) == 2

    removed = service.remove_member(owner, company_id, member.id)
    assert removed["members"] == 1
    with pytest.raises(ForbiddenError):
        service.list_members(newcomer, company_id)


def test_member_from_other_company_is_not_found(repo, make_user, make_company):
    owner, other = make_user(), make_user()
    company_id = make_company(owner)
    other_company = make_company(other, name="Other Co")

    with pytest.raises(NotFoundError):
        CompanyService(repo).remove_member(owner, company_id, member_of(repo, other_company, other).id)


def test_leave_when_not_a_member(repo, make_user, make_company):
    company_id = make_company(make_user())

    with pytest.raises(NotFoundError):
        CompanyService(repo).leave_company(make_user(), company_id)


# ============================================================================
# Accounts
# ============================================================================

def test_last_owner_cannot_delete_account(repo, make_user, make_company):
    owner = make_user()
    make_company(owner)

    with pytest.raises(InvalidStateError):
        AccountService(repo).delete_user(owner, owner.id)
    assert repo.get(User, owner.id) is not None


def test_cannot_delete_someone_else(repo, make_user):
    with pytest.raises(ForbiddenError):
        AccountService(repo).delete_user(make_user(), make_user().id)


def test_delete_company_removes_everything(repo, make_user, make_company):
    owner = make_user()
    company_id = make_company(owner, members=[(make_user(), "CREATOR")])

    removed = CompanyService(repo).delete_company(owner, company_id)

    assert removed["companies"] == 1
    assert removed["members"] == 2
    assert repo.get(Company, company_id) is None


# ============================================================================
# Owner floor across sessions
# ============================================================================

def run_between_owner_checks(monkeypatch, guard, action):
    """Runs `action` right after the guard's first owner count, before the write lands."""
    owner_count = guard.owner_count
    pending = [action]

    def counted_then_interleaved(company_id, lock=False):
        counted = owner_count(company_id, lock=lock)
        if pending:
            pending.pop()()
        return counted

    monkeypatch.setattr(guard, "owner_count", counted_then_interleaved)


@pytest.fixture
def two_owners(make_user, make_company):
    first_owner, second_owner = make_user(), make_user()
    company_id = make_company(first_owner, members=[(second_owner, "OWNER")])
    return first_owner, second_owner, company_id


@pytest.fixture
def sessions():
    first, second = Repository(SessionLocal()), Repository(SessionLocal())
    yield first, second
    first.db.close()
    second.db.close()


def owner_ids(repo, company_id):
    rows = repo.query(Member.user_id).filter(Member.company_id == company_id, Member.role == CompanyRole.OWNER)
    return sorted(user_id for (user_id,) in rows.all())


def test_racing_owner_departures_keep_one_owner(repo, two_owners, sessions, monkeypatch):
    first_owner, second_owner, company_id = two_owners
    first, second = sessions

    leaving = CompanyService(first)
    run_between_owner_checks(
        monkeypatch, leaving.guard,
        lambda: CompanyService(second).leave_company(second_owner, company_id),
    )
    with pytest.raises(InvalidStateError):
        leaving.leave_company(first_owner, company_id)

    assert owner_ids(repo, company_id) == [first_owner.id]


def test_demotion_racing_a_departure_keeps_one_owner(repo, two_owners, sessions, monkeypatch):
    first_owner, second_owner, company_id = two_owners
    first, second = sessions
    target = member_of(repo, company_id, second_owner)

    demoting = CompanyService(first)
    run_between_owner_checks(
        monkeypatch, demoting.guard,
        lambda: CompanyService(second).leave_company(first_owner, company_id),
    )
    with pytest.raises(InvalidStateError):
        demoting.update_member_role(first_owner, company_id, target.id, CompanyRole.MANAGER)

    assert owner_ids(repo, company_id) == [second_owner.id]


def test_account_delete_racing_a_departure_keeps_one_owner(repo, two_owners, sessions, monkeypatch):
    first_owner, second_owner, company_id = two_owners
    first, second = sessions

    accounts = AccountService(first)
    run_between_owner_checks(
        monkeypatch, accounts.guard,
        lambda: CompanyService(second).leave_company(second_owner, company_id),
    )
    with pytest.raises(InvalidStateError):
        accounts.delete_user(first_owner, first_owner.id)

    assert repo.count(User, User.id == first_owner.id) == 1
    assert owner_ids(repo, company_id) == [first_owner.id]
