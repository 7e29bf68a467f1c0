# Account Service
# Current-user view, contractor profile management and account deletion.

from typing import Optional
import logging

from sqlalchemy import func

from auth.guard import AuthorizationGuard
from auth.roles import CompanyRole
from core.errors import (
    ConflictError,
    ForbiddenError,
    InvalidArgumentError,
    InvalidStateError,
    NotFoundError,
)
from database.models import Member, Profile, User
from database.repository import Repository

logger = logging.getLogger(__name__)

PROFILE_FIELDS = ("first_name", "last_name", "username", "zipcode", "avatar_url")


class AccountService:
    def __init__(self, repo: Repository):
        self.repo = repo
        self.guard = AuthorizationGuard(repo)

    def _profile_of(self, user_id: str) -> Optional[Profile]:
        return self.repo.first(Profile, Profile.user_id == user_id)

    def _username_taken(self, username: str, exclude_profile_id: Optional[str] = None) -> bool:
        criteria = [func.lower(Profile.username) == username.strip().lower()]
        if exclude_profile_id:
            criteria.append(Profile.id != exclude_profile_id)
        return self.repo.exists(Profile, *criteria)

    def get_me(self, user: User) -> dict:
        user_id = self.guard.require_principal(user)
        memberships = (
            self.repo.query(Member)
            .filter(Member.user_id == user_id)
            .order_by(Member.created_at)
            .all()
        )
        return {"user": user, "profile": self._profile_of(user_id), "memberships": memberships}

    def get_my_profile(self, user: User) -> Profile:
        profile = self._profile_of(self.guard.require_principal(user))
        if profile is None:
            raise NotFoundError("Profile not found.")
        return profile

    def create_profile(self, user: User, values: dict) -> Profile:
        """Fills in the profile; an empty one is created at registration."""
        user_id = self.guard.require_principal(user)
        profile = self._profile_of(user_id)
        if profile is not None and profile.username:
            raise ConflictError("Profile already exists.")
        if values.get("username") and self._username_taken(values["username"], profile.id if profile else None):
            raise ConflictError("Username already taken.")

        data = {field: values.get(field) for field in PROFILE_FIELDS}
        with self.repo.transaction():
            if profile is None:
                profile = self.repo.add(Profile(user_id=user_id, **data))
            else:
                for field, value in data.items():
                    setattr(profile, field, value)

        logger.info("Profile ready for user %s", user_id)
        return profile

    def update_profile(self, user: User, values: dict) -> Profile:
        user_id = self.guard.require_principal(user)
        profile = self._profile_of(user_id)
        if profile is None:
            raise NotFoundError("Profile not found.")

        changes = {k: v for k, v in values.items() if k in PROFILE_FIELDS}
        if not changes:
            raise InvalidArgumentError("No profile fields provided.")
        if changes.get("username") and self._username_taken(changes["username"], profile.id):
            raise ConflictError("Username already taken.")

        with self.repo.transaction():
            for field, value in changes.items():
                setattr(profile, field, value)
        return profile

    def delete_profile(self, user: User) -> dict:
        """Removes the profile with its ledger rows and purchases."""
        user_id = self.guard.require_principal(user)
        profile = self._profile_of(user_id)
        if profile is None:
            raise NotFoundError("Profile not found.")

        with self.repo.transaction():
            removed = self.repo.delete_cascade(Profile, Profile.id == profile.id)

        logger.info("User %s deleted their profile: %s", user_id, removed)
        return removed

    def delete_user(self, user: User, user_id: str) -> dict:
        actor_id = self.guard.require_principal(user)
        if actor_id != user_id:
            raise ForbiddenError("You can only delete your own account.")

        with self.repo.transaction():
            owned = [
                company_id for (company_id,) in self.repo.query(Member.company_id)
                .filter(Member.user_id == user_id, Member.role == CompanyRole.OWNER)
                .all()
            ]
            for company_id in owned:
                if self.guard.owner_count(company_id, lock=True) <= 1:
                    raise InvalidStateError(
                        "Transfer ownership or delete your companies before deleting your account."
                    )

            removed = self.repo.delete_cascade(User, User.id == user_id)
            for company_id in owned:
                self.guard.require_owner_remains(company_id)

        logger.info("User %s deleted their account: %s", user_id, removed)
        return removed

    def get_profile_by_username(self, username: str) -> Profile:
        profile = self.repo.first(Profile, func.lower(Profile.username) == username.strip().lower())
        if profile is None:
            raise NotFoundError("Profile not found.")
        return profile
