# Role-Based Access Control for the Gig Marketplace
# Company roles, the named permission groups built from them, and the
# action -> allowed roles table every mutating call site consults.

from enum import Enum
from typing import FrozenSet, List

from database.models import CompanyRoleDB

CompanyRole = CompanyRoleDB


class CompanyAction(str, Enum):
    """Actions a principal can take against a company-owned resource."""

    # Company
    VIEW_COMPANY = "view_company"
    UPDATE_COMPANY = "update_company"
    DELETE_COMPANY = "delete_company"
    MANAGE_MEMBERS = "manage_members"
    RESOLVE_MEMBERSHIP = "resolve_membership"

    # Gigs
    VIEW_GIG = "view_gig"
    CREATE_GIG = "create_gig"
    UPDATE_GIG = "update_gig"
    DELETE_GIG = "delete_gig"
    CHANGE_GIG_STATUS = "change_gig_status"
    CLAIM_GIG = "claim_gig"
    WATCH_GIG = "watch_gig"

    # Assignments
    MANAGE_ASSIGNMENT = "manage_assignment"
    REVIEW_ASSIGNMENT = "review_assignment"


# Named permission groups
COMPANY_MEMBER_ROLES: FrozenSet[CompanyRole] = frozenset(CompanyRole)
COMPANY_ADMIN_ROLES: FrozenSet[CompanyRole] = frozenset({
    CompanyRole.OWNER, CompanyRole.MANAGER, CompanyRole.APPROVER,
})
GIG_EDITOR_ROLES: FrozenSet[CompanyRole] = frozenset({
    CompanyRole.OWNER, CompanyRole.MANAGER, CompanyRole.CREATOR,
})
GIG_STATUS_ROLES: FrozenSet[CompanyRole] = frozenset({
    CompanyRole.OWNER, CompanyRole.MANAGER, CompanyRole.APPROVER, CompanyRole.CREATOR,
})
OWNER_ROLES: FrozenSet[CompanyRole] = frozenset({CompanyRole.OWNER})


# Action to allowed roles mapping
ACTION_ROLES: dict[CompanyAction, FrozenSet[CompanyRole]] = {
    CompanyAction.VIEW_COMPANY: COMPANY_MEMBER_ROLES,
    CompanyAction.UPDATE_COMPANY: OWNER_ROLES,
    CompanyAction.DELETE_COMPANY: OWNER_ROLES,
    CompanyAction.MANAGE_MEMBERS: OWNER_ROLES,
    CompanyAction.RESOLVE_MEMBERSHIP: OWNER_ROLES,

    CompanyAction.VIEW_GIG: COMPANY_MEMBER_ROLES,
    CompanyAction.CREATE_GIG: GIG_EDITOR_ROLES,
    CompanyAction.UPDATE_GIG: GIG_EDITOR_ROLES,
    CompanyAction.DELETE_GIG: GIG_EDITOR_ROLES,
    CompanyAction.CHANGE_GIG_STATUS: GIG_STATUS_ROLES,
    CompanyAction.CLAIM_GIG: COMPANY_MEMBER_ROLES,
    CompanyAction.WATCH_GIG: COMPANY_MEMBER_ROLES,

    CompanyAction.MANAGE_ASSIGNMENT: COMPANY_ADMIN_ROLES,
    CompanyAction.REVIEW_ASSIGNMENT: COMPANY_ADMIN_ROLES,
}


def roles_for_action(action: CompanyAction) -> FrozenSet[CompanyRole]:
    """Get the roles allowed to perform an action."""
    return ACTION_ROLES.get(action, frozenset())


def is_allowed(role: CompanyRole, action: CompanyAction) -> bool:
    """Check if a role may perform an action."""
    return CompanyRole(role) in roles_for_action(action)


def allowed_actions(role: CompanyRole) -> List[CompanyAction]:
    """List every action a role may perform."""
    return [action for action in CompanyAction if is_allowed(role, action)]
