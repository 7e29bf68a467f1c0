# Auth module for the Gig Marketplace
# Provides company role-based access control and authentication dependencies

from auth.roles import (
    CompanyRole,
    CompanyAction,
    ACTION_ROLES,
    COMPANY_MEMBER_ROLES,
    COMPANY_ADMIN_ROLES,
    GIG_EDITOR_ROLES,
    GIG_STATUS_ROLES,
    OWNER_ROLES,
    roles_for_action,
    is_allowed,
    allowed_actions,
)

from auth.guard import AuthorizationGuard

from auth.dependencies import (
    get_current_user,
    get_repository,
)

__all__ = [
    # Roles
    "CompanyRole",
    "CompanyAction",
    "ACTION_ROLES",
    "COMPANY_MEMBER_ROLES",
    "COMPANY_ADMIN_ROLES",
    "GIG_EDITOR_ROLES",
    "GIG_STATUS_ROLES",
    "OWNER_ROLES",
    "roles_for_action",
    "is_allowed",
    "allowed_actions",

    # Guard
    "AuthorizationGuard",

    # Dependencies
    "get_current_user",
    "get_repository",
]
