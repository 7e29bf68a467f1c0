from datetime import datetime, timedelta

import pytest

from core.errors import InvalidArgumentError
from database.models import Gig, GigStatusDB
from services import pricing_engine as pricing

T0 = datetime(2026, 1, 1, 12, 0, 0)


def at(seconds):
    return T0 + timedelta(seconds=seconds)


def make_gig(**overrides):
    values = dict(
        status=GigStatusDB.OPEN,
        created_at=T0,
        updated_at=T0,
        status_changed_at=T0,
        ends_at=None,
        base_price_cents=4500,
        bump_every_seconds=1800,
        bump_cents=100,
        max_bumps=3,
        max_price_cents=None,
        base_stars=0,
        stars_bump_every_seconds=1800,
        stars_bump_amount=1,
        max_age_bonus_stars=None,
        repost_bonus_per_repost=1,
        repost_count=0,
    )
    values.update(overrides)
    return Gig(**values)


# ============================================================================
# Price
# ============================================================================

def test_example_scenario_bumps_until_max_bumps():
    gig = make_gig()

    assert pricing.current_price_cents(gig, at(0)) == 4500
    assert pricing.price_bumps(gig, at(3700)) == 2
    assert pricing.current_price_cents(gig, at(3700)) == 4700
    assert pricing.current_price_cents(gig, at(20000)) == 4800
    assert pricing.current_price_cents(gig, at(500000)) == 4800


def test_price_is_monotonic_while_open_and_respects_max_price():
    gig = make_gig(max_bumps=None, max_price_cents=4750)

    previous = 0
    for seconds in range(0, 40000, 450):
        price = pricing.current_price_cents(gig, at(seconds))
        assert price >= previous
        assert price <= 4750
        previous = price
    assert previous == 4750


def test_price_freezes_when_gig_leaves_open():
    transition = at(3700)
    gig = make_gig(max_bumps=None, status=GigStatusDB.CLAIMED, status_changed_at=transition)

    frozen = pricing.current_price_cents(gig, transition)
    assert frozen == 4700
    for seconds in (4000, 9000, 86400, 864000):
        assert pricing.current_price_cents(gig, at(seconds)) == frozen


def test_ends_at_caps_the_bump_window():
    gig = make_gig(max_bumps=None, ends_at=at(1800))

    assert pricing.current_price_cents(gig, at(20000)) == 4600


def test_zero_interval_disables_bumping():
    gig = make_gig(bump_every_seconds=0, stars_bump_every_seconds=0, base_stars=4)

    assert pricing.price_bumps(gig, at(100000)) == 0
    assert pricing.current_price_cents(gig, at(100000)) == 4500
    assert pricing.age_bonus_stars(gig, at(100000)) == 0
    assert pricing.total_stars_reward(gig, at(100000)) == 4


def test_elapsed_never_negative_before_creation():
    gig = make_gig()

    assert pricing.elapsed_seconds(gig, at(-600)) == 0
    assert pricing.current_price_cents(gig, at(-600)) == 4500


# ============================================================================
# Stars
# ============================================================================

def test_total_stars_reward_adds_age_and_repost_bonus():
    gig = make_gig(
        base_stars=10,
        stars_bump_amount=2,
        max_age_bonus_stars=5,
        repost_count=2,
        repost_bonus_per_repost=3,
    )

    assert pricing.age_bonus_stars(gig, at(3 * 1800)) == 5
    assert pricing.repost_bonus_stars(gig) == 6
    assert pricing.total_stars_reward(gig, at(3 * 1800)) == 21


def test_two_reads_at_different_times_can_disagree():
    gig = make_gig(max_bumps=None)

    early = pricing.pricing_snapshot(gig, at(60))
    late = pricing.pricing_snapshot(gig, at(7200))

    assert early["current_price_cents"] == 4500
    assert late["current_price_cents"] == 4900
    assert late["computed_at"] == at(7200)


def test_saturating_min_treats_none_as_unbounded():
    assert pricing.saturating_min(10, None) == 10
    assert pricing.saturating_min(10, 3) == 3
    assert pricing.saturating_min(10, 0) == 0


# ============================================================================
# Validation
# ============================================================================

@pytest.mark.parametrize("field", ["base_price_cents", "bump_cents", "max_bumps", "max_price_cents", "stars_bump_amount"])
def test_negative_configuration_is_rejected(field):
    with pytest.raises(InvalidArgumentError):
        pricing.validate_pricing_config({field: -1})


def test_zero_and_missing_configuration_is_accepted():
    pricing.validate_pricing_config({"bump_every_seconds": 0, "max_bumps": None})
