from datetime import timedelta
from urllib.parse import parse_qs, urlparse

import pytest

from auth.utils import decode_access_token, hash_opaque_token
from core.errors import ConflictError, InvalidCredentialError, UnauthenticatedError
from database.models import PasswordResetToken, Profile, RefreshToken, User
from services.identity_service import IdentityCoordinator


@pytest.fixture
def outbox():
    return []


@pytest.fixture
def identity(repo, outbox):
    return IdentityCoordinator(repo, reset_sender=lambda email, url: outbox.append((email, url)))


def token_row(repo, raw):
    return repo.first(RefreshToken, RefreshToken.token_hash == hash_opaque_token(raw))


def token_from(url):
    return parse_qs(urlparse(url).query)["token"][0]


# ============================================================================
# Register / login
# ============================================================================

def test_register_issues_pair_and_empty_profile(repo, identity):
    payload = identity.register("  Ada@Example.com ", "s3cret-pass")

    user = payload["user"]
    assert user.email == "ada@example.com"
    assert user.password_hash != "s3cret-pass"
    assert decode_access_token(payload["access_token"]).user_id == user.id
    assert payload["token_type"] == "bearer"
    assert repo.first(Profile, Profile.user_id == user.id) is not None
    assert token_row(repo, payload["refresh_token"]).user_id == user.id


def test_register_duplicate_email(identity):
    identity.register("ada@example.com", "s3cret-pass")

    with pytest.raises(ConflictError):
        identity.register("ADA@example.com", "other-pass")


def test_login(identity):
    identity.register("ada@example.com", "s3cret-pass")

    payload = identity.login("ada@example.com", "s3cret-pass")
    assert payload["refresh_token"]

    with pytest.raises(UnauthenticatedError):
        identity.login("ada@example.com", "wrong")
    with pytest.raises(UnauthenticatedError):
        identity.login("nobody@example.com", "s3cret-pass")


# ============================================================================
# Refresh rotation
# ============================================================================

def test_refresh_is_single_use(repo, identity):
    first = identity.register("ada@example.com", "s3cret-pass")["refresh_token"]

    second = identity.refresh(first)["refresh_token"]

    old, new = token_row(repo, first), token_row(repo, second)
    assert old.revoked_at is not None
    assert old.replaced_by_token_id == new.id
    assert new.revoked_at is None

    with pytest.raises(InvalidCredentialError):
        identity.refresh(first)
    assert identity.refresh(second)["refresh_token"] != second


def test_expired_refresh_token(repo, identity):
    raw = identity.register("ada@example.com", "s3cret-pass")["refresh_token"]
    row = token_row(repo, raw)
    with repo.transaction():
        row.expires_at = row.expires_at - timedelta(days=60)

    with pytest.raises(InvalidCredentialError):
        identity.refresh(raw)


def test_unknown_refresh_token(identity):
    with pytest.raises(InvalidCredentialError):
        identity.refresh("not-a-token")


def test_logout_revokes_token(repo, identity):
    raw = identity.register("ada@example.com", "s3cret-pass")["refresh_token"]

    assert identity.logout(raw) is True
    assert identity.logout(raw) is True
    assert identity.logout("unknown") is True
    assert token_row(repo, raw).revoked_at is not None
    with pytest.raises(InvalidCredentialError):
        identity.refresh(raw)


# ============================================================================
# Password reset
# ============================================================================

def test_password_reset_flow(repo, identity, outbox):
    refresh = identity.register("ada@example.com", "old-password")["refresh_token"]

    assert identity.request_password_reset("ADA@example.com") is True
    [(email, url)] = outbox
    assert email == "ada@example.com"

    assert identity.reset_password(token_from(url), "new-password") is True

    identity.login("ada@example.com", "new-password")
    with pytest.raises(UnauthenticatedError):
        identity.login("ada@example.com", "old-password")
    with pytest.raises(InvalidCredentialError):
        identity.refresh(refresh)
    with pytest.raises(InvalidCredentialError):
        identity.reset_password(token_from(url), "third-password")


def test_new_reset_request_replaces_old_link(repo, identity, outbox):
    user = identity.register("ada@example.com", "old-password")["user"]

    identity.request_password_reset("ada@example.com")
    identity.request_password_reset("ada@example.com")

    assert repo.count(PasswordResetToken, PasswordResetToken.user_id == user.id) == 1
    with pytest.raises(InvalidCredentialError):
        identity.reset_password(token_from(outbox[0][1]), "new-password")
    identity.reset_password(token_from(outbox[1][1]), "new-password")


def test_expired_reset_token(repo, identity, outbox):
    identity.register("ada@example.com", "old-password")
    identity.request_password_reset("ada@example.com")
    row = repo.first(PasswordResetToken)
    with repo.transaction():
        row.expires_at = row.expires_at - timedelta(hours=2)

    with pytest.raises(InvalidCredentialError):
        identity.reset_password(token_from(outbox[0][1]), "new-password")


def test_reset_for_unknown_email_reveals_nothing(repo, identity, outbox):
    assert identity.request_password_reset("ghost@example.com") is True
    assert outbox == []
    assert repo.count(User) == 0
