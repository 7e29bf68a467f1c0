# Services Module for the Gig Marketplace
# Business logic; every service is constructed with a Repository

from services.account_service import AccountService
from services.assignment_service import AssignmentService
from services.catalog_service import CatalogService
from services.company_service import CompanyService
from services.gig_service import GigService, gig_to_response
from services.identity_service import IdentityCoordinator
from services.ledger_service import LedgerService
from services.membership_service import MembershipService
from services.watchlist_service import WatchlistService

__all__ = [
    'AccountService',
    'AssignmentService',
    'CatalogService',
    'CompanyService',
    'GigService',
    'gig_to_response',
    'IdentityCoordinator',
    'LedgerService',
    'MembershipService',
    'WatchlistService',
]
