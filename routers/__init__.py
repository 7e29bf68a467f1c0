# Marketplace Routers Module
# Exports all modular API routers for the marketplace

from routers.auth import router as auth_router
from routers.profiles import router as profiles_router
from routers.companies import router as companies_router
from routers.membership_requests import router as membership_requests_router
from routers.gigs import router as gigs_router
from routers.assignments import router as assignments_router
from routers.wallet import router as wallet_router
from routers.products import router as products_router
from routers.purchases import router as purchases_router
from routers.locations import router as locations_router

__all__ = [
    'auth_router',
    'profiles_router',
    'companies_router',
    'membership_requests_router',
    'gigs_router',
    'assignments_router',
    'wallet_router',
    'products_router',
    'purchases_router',
    'locations_router',
]
