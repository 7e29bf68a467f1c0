import pytest

from core.errors import ConflictError, ForbiddenError, InvalidStateError, NotFoundError
from database.config import SessionLocal
from database.models import AssignmentStatusDB, Gig, GigAssignment, GigStatusDB, Watchlist
from database.repository import Repository
from services.assignment_service import AssignmentService
from services.watchlist_service import WatchlistService


@pytest.fixture
def crew(make_user, make_company):
    owner = make_user("owner@example.com")
    alice = make_user("alice@example.com")
    bob = make_user("bob@example.com")
    company_id = make_company(owner, members=[(alice, "CREATOR"), (bob, "CREATOR")])
    return owner, alice, bob, company_id


# ============================================================================
# Claim
# ============================================================================

def test_claim_open_gig_creates_assignment(repo, crew, make_gig):
    owner, alice, _, company_id = crew
    gig_id = make_gig(owner, company_id)

    assignment = AssignmentService(repo).claim_gig(alice, gig_id, note="  on my way ")

    assert assignment.user_id == alice.id
    assert assignment.status == AssignmentStatusDB.CLAIMED
    assert assignment.note == "on my way"
    gig = repo.get(Gig, gig_id)
    assert gig.status == GigStatusDB.CLAIMED
    assert gig.status_changed_at is not None


def test_second_claim_in_same_session_is_a_conflict(repo, crew, make_gig):
    owner, alice, bob, company_id = crew
    gig_id = make_gig(owner, company_id)
    service = AssignmentService(repo)

    service.claim_gig(alice, gig_id)
    with pytest.raises(InvalidStateError):
        service.claim_gig(bob, gig_id)
    assert repo.count(GigAssignment, GigAssignment.gig_id == gig_id) == 1


def test_gig_holds_at_most_one_assignment(repo, crew, make_gig):
    owner, alice, bob, company_id = crew
    gig_id = make_gig(owner, company_id)
    AssignmentService(repo).claim_gig(alice, gig_id)

    with pytest.raises(ConflictError):
        with repo.transaction():
            repo.add(GigAssignment(gig_id=gig_id, user_id=bob.id))
    assert repo.count(GigAssignment, GigAssignment.gig_id == gig_id) == 1


def test_racing_claims_have_exactly_one_winner(repo, crew, make_gig, monkeypatch):
    owner, alice, bob, company_id = crew
    gig_id = make_gig(owner, company_id)

    # Both sessions read the gig while it is still OPEN
    first = Repository(SessionLocal())
    second = Repository(SessionLocal())
    try:
        assert first.get(Gig, gig_id).status == GigStatusDB.OPEN
        assert second.get(Gig, gig_id).status == GigStatusDB.OPEN

        winner = AssignmentService(first).claim_gig(alice, gig_id)

        # Skip the existence pre-check so the loser reaches the compare-and-swap
        exists = second.exists
        monkeypatch.setattr(
            second, "exists",
            lambda model, *criteria: False if model is GigAssignment else exists(model, *criteria),
        )
        with pytest.raises(InvalidStateError):
            AssignmentService(second).claim_gig(bob, gig_id)
    finally:
        first.db.close()
        second.db.close()

    rows = repo.query(GigAssignment).filter(GigAssignment.gig_id == gig_id).all()
    assert [row.id for row in rows] == [winner.id]
    assert rows[0].user_id == alice.id


def test_stale_reader_sees_existing_assignment(repo, crew, make_gig):
    owner, alice, bob, company_id = crew
    gig_id = make_gig(owner, company_id)

    stale = Repository(SessionLocal())
    try:
        stale.get(Gig, gig_id)
        AssignmentService(repo).claim_gig(alice, gig_id)

        with pytest.raises((ConflictError, InvalidStateError)):
            AssignmentService(stale).claim_gig(bob, gig_id)
    finally:
        stale.db.close()


def test_draft_gig_cannot_be_claimed(repo, crew, make_gig):
    owner, alice, _, company_id = crew
    gig_id = make_gig(owner, company_id, status="DRAFT")

    with pytest.raises(InvalidStateError):
        AssignmentService(repo).claim_gig(alice, gig_id)


def test_outsider_cannot_claim(repo, crew, make_gig, make_user):
    owner, _, _, company_id = crew
    gig_id = make_gig(owner, company_id)

    with pytest.raises(ForbiddenError):
        AssignmentService(repo).claim_gig(make_user(), gig_id)


def test_claim_unknown_gig(repo, crew):
    with pytest.raises(NotFoundError):
        AssignmentService(repo).claim_gig(crew[1], "missing")


def test_claim_clears_every_watcher(repo, crew, make_gig):
    owner, alice, bob, company_id = crew
    gig_id = make_gig(owner, company_id)
    WatchlistService(repo).add(alice, gig_id)
    WatchlistService(repo).add(bob, gig_id)

    AssignmentService(repo).claim_gig(alice, gig_id)

    assert repo.count(Watchlist, Watchlist.gig_id == gig_id) == 0


# ============================================================================
# Progress
# ============================================================================

def test_assignee_progress_stamps_timestamps(repo, crew, make_gig):
    owner, alice, _, company_id = crew
    gig_id = make_gig(owner, company_id)
    service = AssignmentService(repo)
    assignment = service.claim_gig(alice, gig_id)

    started = service.update_assignment_status(alice, assignment.id, AssignmentStatusDB.STARTED)
    assert started.started_at is not None

    submitted = service.update_assignment_status(alice, assignment.id, AssignmentStatusDB.SUBMITTED, note="done")
    assert submitted.submitted_at is not None
    assert submitted.note == "done"


def test_other_creator_cannot_move_assignment(repo, crew, make_gig):
    owner, alice, bob, company_id = crew
    gig_id = make_gig(owner, company_id)
    service = AssignmentService(repo)
    assignment = service.claim_gig(alice, gig_id)

    with pytest.raises(ForbiddenError):
        service.update_assignment_status(bob, assignment.id, AssignmentStatusDB.STARTED)


def test_completing_assignment_completes_gig(repo, crew, make_gig):
    owner, alice, _, company_id = crew
    gig_id = make_gig(owner, company_id)
    service = AssignmentService(repo)
    assignment = service.claim_gig(alice, gig_id)
    frozen_at = repo.get(Gig, gig_id).status_changed_at

    service.update_assignment_status(owner, assignment.id, AssignmentStatusDB.COMPLETED)

    gig = repo.get(Gig, gig_id)
    assert gig.status == GigStatusDB.COMPLETED
    # CLAIMED -> COMPLETED stays outside the claimable set
    assert gig.status_changed_at == frozen_at


# ============================================================================
# History
# ============================================================================

def test_history_visible_only_to_colleagues(repo, crew, make_gig, make_user):
    owner, alice, _, company_id = crew
    gig_id = make_gig(owner, company_id)
    service = AssignmentService(repo)
    service.claim_gig(alice, gig_id)

    assert len(service.assignment_history(owner, alice.id)) == 1
    assert len(service.my_assignments(alice)) == 1
    with pytest.raises(ForbiddenError):
        service.assignment_history(make_user(), alice.id)
