# Repository: the single storage seam handed to every service
# Wraps one SQLAlchemy Session per request.

from contextlib import contextmanager
from typing import Any, Dict, Iterable, Optional, Type
import logging

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from core.errors import ConflictError, NotFoundError
from database.cascade import delete_cascade

logger = logging.getLogger(__name__)


class Repository:
    """
    Storage access for the marketplace core.

    All multi-step mutations run inside `transaction()`; the block commits
    on success and rolls back on any exception. Nested calls join the
    outermost block, so one service can compose another's steps atomically.
    """

    def __init__(self, db: Session):
        self.db = db
        self._depth = 0

    @contextmanager
    def transaction(self):
        if self._depth:
            self._depth += 1
            try:
                yield self.db
            finally:
                self._depth -= 1
            return

        self._depth = 1
        try:
            yield self.db
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            logger.warning("Unique/foreign key constraint violated: %s", exc.orig)
            raise ConflictError("Resource already exists or is still referenced.") from exc
        except Exception:
            self.db.rollback()
            raise
        finally:
            self._depth = 0

    @property
    def in_transaction(self) -> bool:
        return self._depth > 0

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get(self, model: Type, entity_id: Optional[str]):
        if not entity_id:
            return None
        return self.db.get(model, entity_id)

    def require(self, model: Type, entity_id: Optional[str], label: str = None):
        entity = self.get(model, entity_id)
        if entity is None:
            raise NotFoundError(f"{label or model.__name__} not found.")
        return entity

    def query(self, *entities):
        return self.db.query(*entities)

    def first(self, model: Type, *criteria):
        return self.db.query(model).filter(*criteria).first()

    def exists(self, model: Type, *criteria) -> bool:
        return self.db.query(model.id).filter(*criteria).first() is not None

    def count(self, model: Type, *criteria) -> int:
        return self.db.query(model).filter(*criteria).count()

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def add(self, entity):
        self.db.add(entity)
        self.db.flush()
        return entity

    def conditional_update(self, model: Type, criteria: Iterable, values: Dict[str, Any]) -> int:
        """
        Compare-and-swap update: applies `values` only to rows still matching
        `criteria` and returns the affected row count.
        """
        self.db.flush()
        stmt = (
            update(model)
            .where(*criteria)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(stmt)
        self.db.expire_all()
        return result.rowcount

    def delete_where(self, model: Type, *criteria) -> int:
        self.db.flush()
        deleted = self.db.query(model).filter(*criteria).delete(synchronize_session=False)
        self.db.expire_all()
        return deleted

    def delete_cascade(self, model: Type, *criteria) -> Dict[str, int]:
        """Delete matching rows and every dependent row (see database.cascade)."""
        self.db.flush()
        removed = delete_cascade(self.db, model, *criteria)
        self.db.expire_all()
        return removed

    def refresh(self, entity):
        self.db.refresh(entity)
        return entity

    def flush(self):
        self.db.flush()
