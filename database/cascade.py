# Cascade deletion over a declared dependency graph
#
# CASCADE_GRAPH lists, for every parent table, the rows that reference it.
# delete_cascade() walks the graph depth-first and removes children before
# their parents, so foreign keys hold at every statement. It runs inside the
# caller's transaction and never commits.

from collections import namedtuple
from typing import Dict, List, Type
import logging

from sqlalchemy.orm import Session

from database.models import (
    User, Profile, RefreshToken, PasswordResetToken,
    Company, Member, CompanyMembershipRequest,
    Location, Gig, GigAssignment, GigReview, Watchlist,
    Product, Purchase, StarsTransaction, MoneyTransaction,
)

logger = logging.getLogger(__name__)

# on_delete: "delete" removes the child rows, "nullify" clears the reference
Dependent = namedtuple("Dependent", ["model", "column", "on_delete"])


CASCADE_GRAPH: Dict[Type, List[Dependent]] = {
    User: [
        Dependent(Gig, "created_by_user_id", "delete"),
        Dependent(GigAssignment, "user_id", "delete"),
        Dependent(Profile, "user_id", "delete"),
        Dependent(Watchlist, "user_id", "delete"),
        Dependent(Member, "user_id", "delete"),
        Dependent(CompanyMembershipRequest, "user_id", "delete"),
        Dependent(CompanyMembershipRequest, "resolved_by_user_id", "nullify"),
        Dependent(RefreshToken, "user_id", "delete"),
        Dependent(PasswordResetToken, "user_id", "delete"),
    ],
    Profile: [
        Dependent(StarsTransaction, "contractor_id", "delete"),
        Dependent(MoneyTransaction, "contractor_id", "delete"),
        Dependent(Purchase, "contractor_id", "delete"),
    ],
    Company: [
        Dependent(Gig, "company_id", "delete"),
        Dependent(Member, "company_id", "delete"),
        Dependent(CompanyMembershipRequest, "company_id", "delete"),
    ],
    Member: [
        Dependent(GigReview, "reviewer_member_id", "nullify"),
    ],
    Location: [
        Dependent(Gig, "location_id", "nullify"),
    ],
    Gig: [
        Dependent(StarsTransaction, "gig_id", "delete"),
        Dependent(MoneyTransaction, "gig_id", "delete"),
        Dependent(GigAssignment, "gig_id", "delete"),
        Dependent(Watchlist, "gig_id", "delete"),
    ],
    GigAssignment: [
        Dependent(StarsTransaction, "assignment_id", "delete"),
        Dependent(MoneyTransaction, "assignment_id", "delete"),
        Dependent(GigReview, "assignment_id", "delete"),
        Dependent(Purchase, "applied_to_assignment_id", "delete"),
    ],
    Purchase: [
        Dependent(StarsTransaction, "purchase_id", "delete"),
    ],
    Product: [
        Dependent(Purchase, "product_id", "delete"),
    ],
    RefreshToken: [
        Dependent(RefreshToken, "replaced_by_token_id", "nullify"),
    ],
}


def _delete_ids(db: Session, model: Type, ids: List[str], removed: Dict[str, int]):
    if not ids:
        return

    for dependent in CASCADE_GRAPH.get(model, []):
        column = getattr(dependent.model, dependent.column)
        if dependent.on_delete == "nullify":
            db.query(dependent.model).filter(column.in_(ids)).update(
                {dependent.column: None}, synchronize_session=False
            )
            continue

        child_ids = [row[0] for row in db.query(dependent.model.id).filter(column.in_(ids)).all()]
        _delete_ids(db, dependent.model, child_ids, removed)

    count = db.query(model).filter(model.id.in_(ids)).delete(synchronize_session=False)
    removed[model.__tablename__] = removed.get(model.__tablename__, 0) + count


def delete_cascade(db: Session, model: Type, *criteria) -> Dict[str, int]:
    """
    Delete every `model` row matching `criteria` together with all rows
    that depend on it. Returns the number of rows removed per table.
    """
    ids = [row[0] for row in db.query(model.id).filter(*criteria).all()]
    removed: Dict[str, int] = {}
    _delete_ids(db, model, ids, removed)
    logger.info("Cascade delete of %s %s removed %s", model.__tablename__, ids, removed)
    return removed
