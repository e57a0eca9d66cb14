"""
Generic table access used by every router.

Routers never build queries themselves; they go through a TableRepository,
which offers the same small vocabulary for every table: select with
equality filters, ordering and limit, single-row fetch, insert, update,
delete and count.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Generic, List, Optional, Sequence, Type, TypeVar

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, SQLModel, select

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=SQLModel)


class RecordNotFound(Exception):
    def __init__(self, table: str, key: Any = None):
        self.table = table
        self.key = key
        msg = f"{table}: no matching record" if key is None else f"{table}: record {key!r} not found"
        super().__init__(msg)


class BackendError(Exception):
    """A backend read or write failed; the session has been rolled back."""

    def __init__(self, table: str, message: str):
        self.table = table
        self.message = message
        super().__init__(f"{table}: {message}")

    def details(self) -> Dict[str, Any]:
        return {"table": self.table, "message": self.message}


class TableRepository(Generic[ModelT]):
    def __init__(self, session: Session, model: Type[ModelT]):
        self.session = session
        self.model = model
        self.table = model.__tablename__

    def _column(self, name: str):
        try:
            return getattr(self.model, name)
        except AttributeError:
            raise ValueError(f"{self.table} has no column {name!r}") from None

    def _fail(self, exc: SQLAlchemyError) -> BackendError:
        self.session.rollback()
        logger.error("Backend error on %s: %s", self.table, exc)
        return BackendError(self.table, str(exc.__cause__ or exc))

    def select(
        self,
        filters: Optional[Dict[str, Any]] = None,
        *,
        not_null: Sequence[str] = (),
        gte: Optional[Dict[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[ModelT]:
        stmt = select(self.model)
        for name, value in (filters or {}).items():
            stmt = stmt.where(self._column(name) == value)
        for name in not_null:
            stmt = stmt.where(self._column(name).is_not(None))
        for name, value in (gte or {}).items():
            stmt = stmt.where(self._column(name) >= value)
        if order_by:
            col = self._column(order_by)
            stmt = stmt.order_by(col.desc() if descending else col.asc())
        if limit is not None:
            stmt = stmt.limit(limit)
        try:
            return list(self.session.exec(stmt).all())
        except SQLAlchemyError as e:
            raise self._fail(e)

    def single(self, filters: Dict[str, Any], **kwargs: Any) -> ModelT:
        rows = self.select(filters, limit=1, **kwargs)
        if not rows:
            raise RecordNotFound(self.table, next(iter(filters.values()), None))
        return rows[0]

    def get(self, key: Any) -> ModelT:
        try:
            row = self.session.get(self.model, key)
        except SQLAlchemyError as e:
            raise self._fail(e)
        if row is None:
            raise RecordNotFound(self.table, key)
        return row

    def count(self) -> int:
        stmt = select(func.count()).select_from(self.model)
        try:
            return int(self.session.exec(stmt).one())
        except SQLAlchemyError as e:
            raise self._fail(e)

    def insert(self, values: Dict[str, Any]) -> ModelT:
        row = self.model(**values)
        try:
            self.session.add(row)
            self.session.commit()
            self.session.refresh(row)
        except SQLAlchemyError as e:
            raise self._fail(e)
        return row

    def update(self, key: Any, values: Dict[str, Any]) -> ModelT:
        row = self.get(key)
        for name, value in values.items():
            self._column(name)
            setattr(row, name, value)
        try:
            self.session.add(row)
            self.session.commit()
            self.session.refresh(row)
        except SQLAlchemyError as e:
            raise self._fail(e)
        return row

    def delete(self, key: Any) -> Dict[str, Any]:
        row = self.get(key)
        snapshot = row.model_dump()
        try:
            self.session.delete(row)
            self.session.commit()
        except SQLAlchemyError as e:
            raise self._fail(e)
        return snapshot
