# Catalog Service
# Shop products and reusable gig locations.

from typing import List, Optional
import logging

from core.errors import InvalidArgumentError
from database.models import (
    Location,
    MembershipTierDB,
    Product,
    ProductCategoryDB,
)
from database.repository import Repository

logger = logging.getLogger(__name__)

PRODUCT_FIELDS = ("category", "tier", "title", "subtitle", "stars_cost", "duration_seconds", "effect_pct")
LOCATION_FIELDS = ("name", "address", "city", "state", "zipcode", "lat", "lng")


def _validate_product(values: dict):
    for field in ("stars_cost", "duration_seconds"):
        value = values.get(field)
        if value is not None and value < 0:
            raise InvalidArgumentError(f"{field} must be non-negative.")


class CatalogService:
    def __init__(self, repo: Repository):
        self.repo = repo

    # ------------------------------------------------------------------
    # Products
    # ------------------------------------------------------------------

    def create_product(self, values: dict) -> Product:
        _validate_product(values)
        data = {field: values.get(field) for field in PRODUCT_FIELDS if values.get(field) is not None}
        with self.repo.transaction():
            product = self.repo.add(Product(**data))
        logger.info("Created product %s (%s)", product.id, product.title)
        return product

    def update_product(self, product_id: str, values: dict) -> Product:
        product = self.repo.require(Product, product_id, "Product")
        changes = {k: v for k, v in values.items() if k in PRODUCT_FIELDS}
        if not changes:
            raise InvalidArgumentError("No product fields provided.")
        _validate_product(changes)

        with self.repo.transaction():
            for field, value in changes.items():
                if value is None and field in ("category", "title", "stars_cost"):
                    continue
                setattr(product, field, value)
        return product

    def get_product(self, product_id: str) -> Product:
        return self.repo.require(Product, product_id, "Product")

    def list_products(
        self,
        category: Optional[ProductCategoryDB] = None,
        tier: Optional[MembershipTierDB] = None,
        skip: int = 0,
        limit: int = 20,
    ) -> List[Product]:
        query = self.repo.query(Product)
        if category is not None:
            query = query.filter(Product.category == category)
        if tier is not None:
            query = query.filter(Product.tier == tier)
        return query.order_by(Product.stars_cost, Product.title).offset(skip).limit(limit).all()

    # ------------------------------------------------------------------
    # Locations
    # ------------------------------------------------------------------

    def create_location(self, values: dict) -> Location:
        data = {field: values.get(field) for field in LOCATION_FIELDS}
        with self.repo.transaction():
            location = self.repo.add(Location(**data))
        return location

    def update_location(self, location_id: str, values: dict) -> Location:
        location = self.repo.require(Location, location_id, "Location")
        changes = {k: v for k, v in values.items() if k in LOCATION_FIELDS}
        if not changes:
            raise InvalidArgumentError("No location fields provided.")

        with self.repo.transaction():
            for field, value in changes.items():
                if value is None and field in ("name", "address"):
                    continue
                setattr(location, field, value)
        return location

    def delete_location(self, location_id: str) -> dict:
        """Gigs that used the location keep running without one."""
        self.repo.require(Location, location_id, "Location")
        with self.repo.transaction():
            removed = self.repo.delete_cascade(Location, Location.id == location_id)
        return removed

    def get_location(self, location_id: str) -> Location:
        return self.repo.require(Location, location_id, "Location")

    def list_locations(self, q: Optional[str] = None, skip: int = 0, limit: int = 20) -> List[Location]:
        query = self.repo.query(Location)
        if q:
            pattern = f"%{q.strip()}%"
            query = query.filter(Location.name.ilike(pattern) | Location.address.ilike(pattern))
        return query.order_by(Location.name).offset(skip).limit(limit).all()
