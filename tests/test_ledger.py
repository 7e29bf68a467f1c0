from datetime import timedelta

import pytest

from core.errors import (
    ForbiddenError,
    InsufficientBalanceError,
    InvalidArgumentError,
    InvalidStateError,
)
from database.config import SessionLocal
from database.models import (
    MembershipTierDB,
    MoneyReasonDB,
    Profile,
    Purchase,
    PurchaseStatusDB,
    StarsReasonDB,
    StarsTransaction,
)
from database.repository import Repository
from services.catalog_service import CatalogService
from services.ledger_service import LedgerService


@pytest.fixture
def contractor(make_user, profile_of):
    user = make_user("contractor@example.com")
    return user, profile_of(user)


@pytest.fixture
def product(repo):
    def _product(stars_cost=80, **overrides):
        values = {"category": "PAY_BONUS", "title": "Double pay day", "stars_cost": stars_cost}
        values.update(overrides)
        return CatalogService(repo).create_product(values)

    return _product


def balance_of(repo, profile_id):
    return repo.get(Profile, profile_id).stars_balance


def ledger_sum(repo, profile_id):
    rows = repo.query(StarsTransaction.delta).filter(StarsTransaction.contractor_id == profile_id).all()
    return sum(delta for (delta,) in rows)


# ============================================================================
# Stars transactions
# ============================================================================

def test_adjustment_moves_balance_and_ledger_together(repo, contractor):
    user, profile = contractor
    ledger = LedgerService(repo)

    ledger.record_stars_transaction(profile.id, 30, StarsReasonDB.ADJUSTMENT)
    ledger.record_stars_transaction(profile.id, -12, StarsReasonDB.ADJUSTMENT)

    assert balance_of(repo, profile.id) == 18
    assert ledger_sum(repo, profile.id) == 18


def test_zero_delta_is_rejected(repo, contractor):
    _, profile = contractor

    with pytest.raises(InvalidArgumentError):
        LedgerService(repo).record_stars_transaction(profile.id, 0, StarsReasonDB.ADJUSTMENT)


def test_debit_below_zero_leaves_no_trace(repo, contractor):
    _, profile = contractor
    ledger = LedgerService(repo)
    ledger.record_stars_transaction(profile.id, 5, StarsReasonDB.ADJUSTMENT)

    with pytest.raises(InsufficientBalanceError):
        ledger.record_stars_transaction(profile.id, -6, StarsReasonDB.ADJUSTMENT)

    assert balance_of(repo, profile.id) == 5
    assert repo.count(StarsTransaction, StarsTransaction.contractor_id == profile.id) == 1


def test_self_scoped_entry_point(repo, contractor, make_user, profile_of):
    user, profile = contractor
    other = make_user()
    ledger = LedgerService(repo)

    entry = ledger.create_stars_transaction(user, None, delta=7, reason=StarsReasonDB.ADJUSTMENT)
    assert entry.contractor_id == profile.id

    with pytest.raises(ForbiddenError):
        ledger.create_stars_transaction(user, profile_of(other).id, delta=7, reason=StarsReasonDB.ADJUSTMENT)


def test_ledger_rows_are_immutable(repo, db, contractor):
    _, profile = contractor
    entry = LedgerService(repo).record_stars_transaction(profile.id, 10, StarsReasonDB.ADJUSTMENT)

    entry.delta = 1000
    with pytest.raises(InvalidStateError):
        db.commit()
    db.rollback()

    assert repo.get(StarsTransaction, entry.id).delta == 10
    assert balance_of(repo, profile.id) == 10


def test_money_transactions_and_wallet_summary(repo, contractor):
    user, profile = contractor
    ledger = LedgerService(repo)
    ledger.record_stars_transaction(profile.id, 40, StarsReasonDB.ADJUSTMENT)
    ledger.record_stars_transaction(profile.id, -15, StarsReasonDB.ADJUSTMENT)
    ledger.create_money_transaction(user, None, amount_cents=4500, reason=MoneyReasonDB.PAYOUT)

    with pytest.raises(InvalidArgumentError):
        ledger.record_money_transaction(profile.id, 0, MoneyReasonDB.PAYOUT)

    summary = ledger.wallet_summary(user)
    assert summary["stars_balance"] == 25
    assert summary["lifetime_stars_earned"] == 40
    assert summary["lifetime_stars_spent"] == 15
    assert summary["money_total_cents"] == 4500
    assert summary["tier"] == MembershipTierDB.COPPER
    assert len(ledger.list_stars_transactions(user)) == 2
    assert len(ledger.list_money_transactions(user)) == 1


# ============================================================================
# Purchases
# ============================================================================

def test_purchase_with_insufficient_balance(repo, contractor, product):
    user, profile = contractor
    ledger = LedgerService(repo)
    ledger.record_stars_transaction(profile.id, 50, StarsReasonDB.ADJUSTMENT)

    with pytest.raises(InsufficientBalanceError):
        ledger.purchase_product(user, product(stars_cost=80).id)

    assert balance_of(repo, profile.id) == 50
    assert repo.count(Purchase, Purchase.contractor_id == profile.id) == 0
    assert ledger_sum(repo, profile.id) == 50


def test_purchase_debits_and_links_ledger_row(repo, contractor, product):
    user, profile = contractor
    ledger = LedgerService(repo)
    ledger.record_stars_transaction(profile.id, 100, StarsReasonDB.ADJUSTMENT)

    purchase = ledger.purchase_product(user, product(stars_cost=80, duration_seconds=3600).id)

    assert purchase.status == PurchaseStatusDB.ACTIVE
    assert purchase.expires_at is not None
    assert balance_of(repo, profile.id) == 20
    assert ledger_sum(repo, profile.id) == 20
    debit = repo.first(StarsTransaction, StarsTransaction.purchase_id == purchase.id)
    assert debit.delta == -80
    assert debit.reason == StarsReasonDB.SPENT_ON_PRODUCT


def test_concurrent_purchases_cannot_overdraw(repo, contractor, product):
    user, profile = contractor
    LedgerService(repo).record_stars_transaction(profile.id, 100, StarsReasonDB.ADJUSTMENT)
    boost = product(stars_cost=80)

    # Both sessions see the balance that covers one purchase
    first = Repository(SessionLocal())
    second = Repository(SessionLocal())
    try:
        assert balance_of(first, profile.id) == 100
        assert balance_of(second, profile.id) == 100

        LedgerService(first).purchase_product(user, boost.id)
        with pytest.raises(InsufficientBalanceError):
            LedgerService(second).purchase_product(user, boost.id)
    finally:
        first.db.close()
        second.db.close()

    assert balance_of(repo, profile.id) == 20
    assert ledger_sum(repo, profile.id) == 20
    assert repo.count(Purchase, Purchase.contractor_id == profile.id) == 1


def test_free_product_writes_no_ledger_row(repo, contractor, product):
    user, profile = contractor

    purchase = LedgerService(repo).purchase_product(user, product(stars_cost=0).id)

    assert purchase.expires_at is None
    assert repo.count(StarsTransaction, StarsTransaction.contractor_id == profile.id) == 0


def test_negative_product_cost_is_rejected(product):
    with pytest.raises(InvalidArgumentError):
        product(stars_cost=-1)


def test_consuming_upgrade_changes_tier(repo, contractor, product):
    user, profile = contractor
    upgrade = product(stars_cost=0, category="MEMBERSHIP_UPGRADE", tier="SILVER", title="Silver")
    ledger = LedgerService(repo)
    purchase = ledger.purchase_product(user, upgrade.id)

    consumed = ledger.consume_purchase(user, purchase.id)

    assert consumed.status == PurchaseStatusDB.CONSUMED
    assert consumed.consumed_at is not None
    assert repo.get(Profile, profile.id).tier == MembershipTierDB.SILVER
    with pytest.raises(InvalidStateError):
        ledger.consume_purchase(user, purchase.id)


def test_expire_is_idempotent_and_blocks_consume(repo, contractor, product):
    user, _ = contractor
    ledger = LedgerService(repo)
    purchase = ledger.purchase_product(user, product(stars_cost=0).id)

    first = ledger.expire_purchase(user, purchase.id)
    second = ledger.expire_purchase(user, purchase.id)

    assert first.status == second.status == PurchaseStatusDB.EXPIRED
    with pytest.raises(InvalidStateError):
        ledger.consume_purchase(user, purchase.id)


def test_consume_after_expiry_time(repo, contractor, product):
    user, _ = contractor
    ledger = LedgerService(repo)
    purchase = ledger.purchase_product(user, product(stars_cost=0, duration_seconds=60).id)
    with repo.transaction():
        purchase.expires_at = purchase.expires_at - timedelta(seconds=120)

    with pytest.raises(InvalidStateError):
        ledger.consume_purchase(user, purchase.id)


def test_other_users_purchase_is_forbidden(repo, contractor, product, make_user):
    user, _ = contractor
    purchase = LedgerService(repo).purchase_product(user, product(stars_cost=0).id)

    with pytest.raises(ForbiddenError):
        LedgerService(repo).consume_purchase(make_user(), purchase.id)


def test_list_purchases_by_status(repo, contractor, product):
    user, _ = contractor
    ledger = LedgerService(repo)
    kept = ledger.purchase_product(user, product(stars_cost=0).id)
    expired = ledger.purchase_product(user, product(stars_cost=0).id)
    ledger.expire_purchase(user, expired.id)

    active = ledger.list_purchases(user, status=PurchaseStatusDB.ACTIVE)

    assert [p.id for p in active] == [kept.id]
    assert len(ledger.list_purchases(user)) == 2
