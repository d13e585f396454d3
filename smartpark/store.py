from contextlib import contextmanager
from datetime import datetime
import logging
from typing import List, Optional, Type, TypeVar

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session as DbSession, SQLModel, select

from .errors import ConflictError

logger = logging.getLogger("EntityStore")

T = TypeVar("T", bound=SQLModel)


class EntityStore:
    """Generic persistence for slots, cars, parking records and payments.

    Writes are flushed immediately so constraint violations surface at the
    call site, but nothing is committed until the outermost ``transaction()``
    block exits cleanly. Nested blocks join the enclosing one.
    """

    def __init__(self, db: DbSession):
        self.db = db
        self._depth = 0

    @contextmanager
    def transaction(self):
        self._depth += 1
        try:
            yield self
        except Exception:
            self._depth -= 1
            if self._depth == 0:
                self.db.rollback()
            raise
        self._depth -= 1
        if self._depth == 0:
            self.db.commit()

    # --- WRITES ---
    def create(self, obj: T) -> T:
        self.db.add(obj)
        self._flush(obj)
        return obj

    def update(self, obj: T) -> T:
        self.db.add(obj)
        self._flush(obj)
        return obj

    def delete(self, obj: SQLModel) -> None:
        self.db.delete(obj)
        self._flush(obj)

    def _flush(self, obj: SQLModel):
        try:
            self.db.flush()
        except IntegrityError as e:
            logger.warning(f"Constraint violation writing {type(obj).__name__}: {e.orig}")
            raise ConflictError(f"{type(obj).__name__} conflicts with an existing record") from e

    # --- READS ---
    def get(self, model: Type[T], key) -> Optional[T]:
        return self.db.get(model, key)

    def find_by(self, model: Type[T], order_by=None, **fields) -> List[T]:
        query = select(model)
        for name, value in fields.items():
            query = query.where(getattr(model, name) == value)
        if order_by is not None:
            query = query.order_by(*order_by) if isinstance(order_by, tuple) else query.order_by(order_by)
        return list(self.db.exec(query).all())

    def find_one_by(self, model: Type[T], **fields) -> Optional[T]:
        query = select(model)
        for name, value in fields.items():
            query = query.where(getattr(model, name) == value)
        return self.db.exec(query).first()

    def find_between(self, model: Type[T], field: str, start: datetime, end: datetime, order_by=None) -> List[T]:
        """Rows whose ``field`` lies in the inclusive range [start, end]."""
        column = getattr(model, field)
        query = select(model).where(column >= start).where(column <= end)
        if order_by is not None:
            query = query.order_by(order_by)
        return list(self.db.exec(query).all())
