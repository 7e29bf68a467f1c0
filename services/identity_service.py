# Identity Coordinator
# Issues access/refresh credential pairs, rotates refresh tokens on use,
# and runs the password reset flow.

from datetime import timedelta
from typing import Callable, Optional
import logging

from auth.utils import (
    create_access_token,
    generate_opaque_token,
    get_password_hash,
    hash_opaque_token,
    verify_password,
)
from config.app_config import (
    PASSWORD_RESET_URL_BASE,
    REFRESH_TOKEN_TTL_DAYS,
    RESET_PASSWORD_TOKEN_TTL_MINUTES,
)
from core.errors import ConflictError, InvalidCredentialError, UnauthenticatedError
from database.models import PasswordResetToken, Profile, RefreshToken, User, utcnow
from database.repository import Repository

logger = logging.getLogger(__name__)

# reset_sender(email, reset_url); delivery itself is external
ResetSender = Callable[[str, str], None]


def _log_reset_sender(email: str, reset_url: str):
    logger.info("Password reset link issued for %s", email)


def build_password_reset_url(raw_token: str) -> str:
    return f"{PASSWORD_RESET_URL_BASE}?token={raw_token}"


class IdentityCoordinator:
    """
    Session and credential lifecycle.

    Refresh tokens are single-use: redeeming one revokes it, links it to its
    successor and issues a new pair. Revoked, expired or unknown tokens fail
    with InvalidCredentialError.
    """

    def __init__(self, repo: Repository, reset_sender: Optional[ResetSender] = None):
        self.repo = repo
        self.reset_sender = reset_sender or _log_reset_sender

    # ------------------------------------------------------------------
    # Credential pairs
    # ------------------------------------------------------------------

    def _issue_refresh_token(self, user_id: str) -> tuple:
        raw = generate_opaque_token()
        row = self.repo.add(RefreshToken(
            user_id=user_id,
            token_hash=hash_opaque_token(raw),
            expires_at=utcnow() + timedelta(days=REFRESH_TOKEN_TTL_DAYS),
        ))
        return raw, row

    def _issue_pair(self, user: User) -> dict:
        raw_refresh, _ = self._issue_refresh_token(user.id)
        return {
            "access_token": create_access_token(user.id),
            "refresh_token": raw_refresh,
            "token_type": "bearer",
            "user": user,
        }

    def register(self, email: str, password: str) -> dict:
        email = email.strip().lower()
        if self.repo.exists(User, User.email == email):
            raise ConflictError("Email already in use.")

        with self.repo.transaction():
            user = self.repo.add(User(email=email, password_hash=get_password_hash(password)))
            self.repo.add(Profile(user_id=user.id))
            payload = self._issue_pair(user)

        logger.info("Registered user %s", user.id)
        return payload

    def login(self, email: str, password: str) -> dict:
        user = self.repo.first(User, User.email == email.strip().lower())
        if user is None or not verify_password(password, user.password_hash):
            raise UnauthenticatedError("Invalid email or password.")

        with self.repo.transaction():
            payload = self._issue_pair(user)
        return payload

    def refresh(self, raw_refresh_token: str) -> dict:
        existing = self.repo.first(
            RefreshToken, RefreshToken.token_hash == hash_opaque_token(raw_refresh_token)
        )
        now = utcnow()
        if existing is None or existing.revoked_at is not None or existing.expires_at <= now:
            raise InvalidCredentialError("Invalid or expired refresh token.")

        user_id = existing.user_id
        predecessor_id = existing.id

        with self.repo.transaction():
            raw_new, successor = self._issue_refresh_token(user_id)
            # single-use: only the first redemption finds revoked_at still NULL
            rotated = self.repo.conditional_update(
                RefreshToken,
                [
                    RefreshToken.id == predecessor_id,
                    RefreshToken.revoked_at.is_(None),
                    RefreshToken.expires_at > now,
                ],
                {"revoked_at": now, "replaced_by_token_id": successor.id},
            )
            if rotated != 1:
                raise InvalidCredentialError("Invalid or expired refresh token.")
            user = self.repo.require(User, user_id, "User")

        logger.info("Rotated refresh token for user %s", user_id)
        return {
            "access_token": create_access_token(user_id),
            "refresh_token": raw_new,
            "token_type": "bearer",
            "user": user,
        }

    def logout(self, raw_refresh_token: Optional[str]) -> bool:
        """Revoke the presented token if it exists; never reveals whether it did."""
        if not raw_refresh_token:
            return True

        with self.repo.transaction():
            self.repo.conditional_update(
                RefreshToken,
                [
                    RefreshToken.token_hash == hash_opaque_token(raw_refresh_token),
                    RefreshToken.revoked_at.is_(None),
                ],
                {"revoked_at": utcnow()},
            )
        return True

    # ------------------------------------------------------------------
    # Password reset
    # ------------------------------------------------------------------

    def request_password_reset(self, email: str) -> bool:
        """Always succeeds so callers cannot tell which accounts exist."""
        user = self.repo.first(User, User.email == email.strip().lower())
        if user is None:
            return True

        raw = generate_opaque_token()
        with self.repo.transaction():
            # one outstanding reset link per user
            self.repo.delete_where(PasswordResetToken, PasswordResetToken.user_id == user.id)
            self.repo.add(PasswordResetToken(
                user_id=user.id,
                token_hash=hash_opaque_token(raw),
                expires_at=utcnow() + timedelta(minutes=RESET_PASSWORD_TOKEN_TTL_MINUTES),
            ))

        self.reset_sender(user.email, build_password_reset_url(raw))
        return True

    def reset_password(self, raw_token: str, new_password: str) -> bool:
        existing = self.repo.first(
            PasswordResetToken, PasswordResetToken.token_hash == hash_opaque_token(raw_token)
        )
        now = utcnow()
        if existing is None or existing.used_at is not None or existing.expires_at <= now:
            raise InvalidCredentialError("Invalid or expired password reset token.")

        token_id = existing.id
        user_id = existing.user_id
        password_hash = get_password_hash(new_password)

        with self.repo.transaction():
            used = self.repo.conditional_update(
                PasswordResetToken,
                [
                    PasswordResetToken.id == token_id,
                    PasswordResetToken.used_at.is_(None),
                    PasswordResetToken.expires_at > now,
                ],
                {"used_at": now},
            )
            if used != 1:
                raise InvalidCredentialError("Invalid or expired password reset token.")

            self.repo.conditional_update(User, [User.id == user_id], {"password_hash": password_hash})
            # force re-authentication everywhere
            self.repo.conditional_update(
                RefreshToken,
                [RefreshToken.user_id == user_id, RefreshToken.revoked_at.is_(None)],
                {"revoked_at": now},
            )
            self.repo.delete_where(
                PasswordResetToken,
                PasswordResetToken.user_id == user_id,
                PasswordResetToken.id != token_id,
            )

        logger.info("Password reset completed for user %s", user_id)
        return True
