# apps/api/shajra/infra/db/store.py
from __future__ import annotations
import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

from sqlalchemy import inspect
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...errors import NotFound, StoreError
from . import models

log = logging.getLogger(__name__)

Order = Iterable[Tuple[str, str]]


def _model(table: str):
    try:
        return models.TABLES[table]
    except KeyError:
        raise StoreError(f"Unknown table: {table}") from None


def _row(obj) -> Dict[str, Any]:
    return {attr.key: getattr(obj, attr.key) for attr in inspect(obj).mapper.column_attrs}


class RecordStore:
    """
    Table-like access to trees, members and relationships.

    Every write commits on its own; on failure the session is rolled back and
    the driver error is wrapped in StoreError. Deletes go through the ORM so
    the cascades declared on the models apply.
    """

    def __init__(self, session: Session):
        self.session = session

    def select(self, table: str, filters: Optional[Dict[str, Any]] = None, order: Optional[Order] = None) -> List[Dict[str, Any]]:
        model = _model(table)
        try:
            q = self.session.query(model).filter_by(**(filters or {}))
            for column, direction in (order or ()):
                col = getattr(model, column)
                q = q.order_by(col.desc() if direction == "desc" else col.asc())
            return [_row(obj) for obj in q.all()]
        except (SQLAlchemyError, AttributeError) as e:
            raise self._fail("select", table, e)

    def get(self, table: str, row_id: str) -> Optional[Dict[str, Any]]:
        model = _model(table)
        try:
            obj = self.session.get(model, row_id)
        except SQLAlchemyError as e:
            raise self._fail("get", table, e)
        return _row(obj) if obj is not None else None

    def insert(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        model = _model(table)
        try:
            obj = model(**row)
            self.session.add(obj)
            self.session.commit()
            return _row(obj)
        except (SQLAlchemyError, TypeError) as e:
            raise self._fail("insert", table, e)

    def update(self, table: str, row_id: str, patch: Dict[str, Any]) -> Dict[str, Any]:
        model = _model(table)
        try:
            obj = self.session.get(model, row_id)
            if obj is None:
                raise NotFound(f"{table} row {row_id} not found")
            for key, value in patch.items():
                if key == "id" or not hasattr(model, key):
                    raise StoreError(f"Cannot update column {key!r} of {table}")
                setattr(obj, key, value)
            self.session.commit()
            return _row(obj)
        except SQLAlchemyError as e:
            raise self._fail("update", table, e)
        except StoreError:
            self.session.rollback()
            raise

    def delete(self, table: str, row_id: str) -> bool:
        model = _model(table)
        try:
            obj = self.session.get(model, row_id)
            if obj is None:
                raise NotFound(f"{table} row {row_id} not found")
            self.session.delete(obj)
            self.session.commit()
            return True
        except SQLAlchemyError as e:
            raise self._fail("delete", table, e)

    def _fail(self, op: str, table: str, err: Exception) -> StoreError:
        self.session.rollback()
        log.error("Store %s on %s failed: %s", op, table, err)
        return StoreError(f"Failed to {op} {table}", details=str(err))

    def close(self) -> None:
        self.session.close()


@contextmanager
def open_store() -> Iterator[RecordStore]:
    store = RecordStore(models.SessionLocal())
    try:
        yield store
    finally:
        store.close()
