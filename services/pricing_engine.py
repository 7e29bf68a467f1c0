# Pricing Engine for the Gig Marketplace
# Pure functions of (gig, now): the live pay and star reward of a gig are
# derived from its stored configuration and elapsed time, never persisted.
# Two reads at different wall-clock times may legitimately disagree.

from datetime import datetime
from typing import Optional

from core.errors import InvalidArgumentError
from database.models import CLAIMABLE_GIG_STATUSES, GigStatusDB, utcnow


def _int(value) -> int:
    return int(value or 0)


def saturating_min(value: int, cap: Optional[int]) -> int:
    """min(value, cap) where a missing cap means unbounded."""
    if cap is None:
        return value
    return min(value, cap)


def _status(gig) -> GigStatusDB:
    return GigStatusDB(gig.status)


def bump_window_end(gig, now: datetime) -> datetime:
    """
    End of the bump clock: `now` while the gig is DRAFT/OPEN, otherwise the
    moment it left that set. `ends_at` caps the window either way.
    """
    if _status(gig) in CLAIMABLE_GIG_STATUSES:
        end = now
    else:
        end = gig.status_changed_at or gig.updated_at or now

    if gig.ends_at is not None and gig.ends_at < end:
        return gig.ends_at
    return end


def elapsed_seconds(gig, now: datetime = None) -> int:
    now = now or utcnow()
    created_at = gig.created_at or now
    delta = (bump_window_end(gig, now) - created_at).total_seconds()
    return max(0, int(delta))


def price_bumps(gig, now: datetime = None) -> int:
    every = _int(gig.bump_every_seconds)
    if every <= 0:
        return 0
    bumps = elapsed_seconds(gig, now) // every
    return max(0, saturating_min(bumps, gig.max_bumps))


def current_price_cents(gig, now: datetime = None) -> int:
    price = _int(gig.base_price_cents) + price_bumps(gig, now) * _int(gig.bump_cents)
    return max(0, saturating_min(price, gig.max_price_cents))


def age_bonus_stars(gig, now: datetime = None) -> int:
    every = _int(gig.stars_bump_every_seconds)
    if every <= 0:
        return 0
    bonus = (elapsed_seconds(gig, now) // every) * _int(gig.stars_bump_amount)
    return max(0, saturating_min(bonus, gig.max_age_bonus_stars))


def repost_bonus_stars(gig) -> int:
    return _int(gig.repost_count) * _int(gig.repost_bonus_per_repost)


def total_stars_reward(gig, now: datetime = None) -> int:
    now = now or utcnow()
    return _int(gig.base_stars) + age_bonus_stars(gig, now) + repost_bonus_stars(gig)


def pricing_snapshot(gig, now: datetime = None) -> dict:
    """All derived fields evaluated against one instant."""
    now = now or utcnow()
    return {
        "current_price_cents": current_price_cents(gig, now),
        "price_bumps": price_bumps(gig, now),
        "age_bonus_stars": age_bonus_stars(gig, now),
        "repost_bonus_stars": repost_bonus_stars(gig),
        "total_stars_reward": total_stars_reward(gig, now),
        "computed_at": now,
    }


# Fields that must be >= 0; a zero interval disables bumping
NON_NEGATIVE_FIELDS = (
    "base_price_cents",
    "bump_every_seconds",
    "bump_cents",
    "max_bumps",
    "max_price_cents",
    "base_stars",
    "stars_bump_every_seconds",
    "stars_bump_amount",
    "max_age_bonus_stars",
    "repost_bonus_per_repost",
    "repost_count",
)


def validate_pricing_config(values: dict):
    """Reject negative pricing configuration instead of clamping it."""
    for field in NON_NEGATIVE_FIELDS:
        value = values.get(field)
        if value is not None and value < 0:
            raise InvalidArgumentError(f"{field} must be non-negative.")
