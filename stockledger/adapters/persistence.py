"""
Document-store facade over SQLAlchemy.

Collections are addressed by name and records travel as plain dicts keyed by
column name. The ledger only ever talks to the store through the five calls
below, so any backend that honours them can replace this one.

- ``productHistory`` is append-only: no update, no overwrite.
- History timestamps are assigned here and never go backwards.
- Every driver error surfaces as ``PersistenceError``.
"""
from __future__ import annotations

import logging
import operator
import threading
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy import inspect, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from stockledger.core.constants import HISTORY_COLLECTION, PRODUCTS_COLLECTION
from stockledger.core.dates import as_utc, utc_now
from stockledger.core.errors import PersistenceError
from stockledger.models.history import ProductHistory
from stockledger.models.product import Product

logger = logging.getLogger(__name__)

COLLECTION_MODELS = {
    PRODUCTS_COLLECTION: Product,
    HISTORY_COLLECTION: ProductHistory,
}
APPEND_ONLY_COLLECTIONS = frozenset({HISTORY_COLLECTION})

_OPERATORS = {
    "==": operator.eq,
    "!=": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
}

Clause = tuple[str, str, object]


def _to_record(obj) -> dict:
    record = {}
    for column in inspect(obj).mapper.column_attrs:
        value = getattr(obj, column.key)
        if isinstance(value, datetime):
            value = as_utc(value)
        record[column.key] = value
    return record


class DocumentStore:
    def __init__(
        self,
        session_factory: sessionmaker,
        *,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._session_factory = session_factory
        self._clock = clock
        self._timestamp_lock = threading.Lock()
        self._last_timestamp: Optional[datetime] = None

    @staticmethod
    def _model(collection: str):
        model = COLLECTION_MODELS.get(collection)
        if model is None:
            raise PersistenceError("Unknown collection: {}".format(collection))
        return model

    @staticmethod
    def _column(model, field: str):
        if field not in model.__table__.columns:
            raise PersistenceError(
                "Unknown field {!r} for {}".format(field, model.__tablename__)
            )
        return getattr(model, field)

    def _server_timestamp(self) -> datetime:
        with self._timestamp_lock:
            now = as_utc(self._clock())
            if self._last_timestamp is not None and now < self._last_timestamp:
                now = self._last_timestamp
            self._last_timestamp = now
            return now

    def list_all(self, collection: str) -> list[dict]:
        model = self._model(collection)
        db = self._session_factory()
        try:
            rows = db.execute(select(model).order_by(model.id)).scalars().all()
            return [_to_record(row) for row in rows]
        except SQLAlchemyError as exc:
            logger.exception("Error listing %s", collection)
            raise PersistenceError("Failed to list {}".format(collection)) from exc
        finally:
            db.close()

    def get(self, collection: str, record_id) -> Optional[dict]:
        model = self._model(collection)
        db = self._session_factory()
        try:
            row = db.get(model, record_id)
            return _to_record(row) if row is not None else None
        except SQLAlchemyError as exc:
            logger.exception("Error reading %s/%s", collection, record_id)
            raise PersistenceError(
                "Failed to read {}/{}".format(collection, record_id)
            ) from exc
        finally:
            db.close()

    def list_where(self, collection: str, *clauses: Clause) -> list[dict]:
        model = self._model(collection)
        stmt = select(model)
        for field, op, value in clauses:
            compare = _OPERATORS.get(op)
            if compare is None:
                raise PersistenceError("Unsupported operator: {}".format(op))
            stmt = stmt.where(compare(self._column(model, field), value))

        db = self._session_factory()
        try:
            rows = db.execute(stmt.order_by(model.id)).scalars().all()
            return [_to_record(row) for row in rows]
        except SQLAlchemyError as exc:
            logger.exception("Error querying %s", collection)
            raise PersistenceError("Failed to query {}".format(collection)) from exc
        finally:
            db.close()

    def put(self, collection: str, record: dict) -> int:
        """Insert a record without ``id``; overwrite the stored one otherwise."""
        model = self._model(collection)
        fields = dict(record)
        record_id = fields.pop("id", None)
        if record_id is not None and collection in APPEND_ONLY_COLLECTIONS:
            raise PersistenceError("{} is append-only".format(collection))
        for field in fields:
            self._column(model, field)

        db = self._session_factory()
        try:
            if record_id is None:
                if collection == HISTORY_COLLECTION:
                    fields["timestamp"] = self._server_timestamp()
                row = model(**fields)
                db.add(row)
            else:
                row = db.get(model, record_id)
                if row is None:
                    raise PersistenceError(
                        "No {} record with id {}".format(collection, record_id)
                    )
                for field, value in fields.items():
                    setattr(row, field, value)
            db.commit()
            return row.id
        except SQLAlchemyError as exc:
            db.rollback()
            logger.exception("Error saving to %s", collection)
            raise PersistenceError("Failed to save to {}".format(collection)) from exc
        finally:
            db.close()

    def update(self, collection: str, record_id, fields: dict) -> None:
        model = self._model(collection)
        if collection in APPEND_ONLY_COLLECTIONS:
            raise PersistenceError("{} is append-only".format(collection))
        for field in fields:
            if field == "id":
                raise PersistenceError("Record ids cannot be changed")
            self._column(model, field)

        db = self._session_factory()
        try:
            row = db.get(model, record_id)
            if row is None:
                raise PersistenceError(
                    "No {} record with id {}".format(collection, record_id)
                )
            for field, value in fields.items():
                setattr(row, field, value)
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            logger.exception("Error updating %s/%s", collection, record_id)
            raise PersistenceError(
                "Failed to update {}/{}".format(collection, record_id)
            ) from exc
        finally:
            db.close()


__all__ = ["APPEND_ONLY_COLLECTIONS", "COLLECTION_MODELS", "DocumentStore"]
