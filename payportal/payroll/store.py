# ==============================================================================
# payportal/payroll/store.py
# ------------------------------------------------------------------------------
# Table-oriented access to the database for the payroll services: select,
# insert, update and delete keyed by table name and simple filters.
# ==============================================================================

import logging
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError

from payportal import db
from payportal.models import TABLE_MODELS

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """Raised when a store operation fails; the session has been rolled back."""


class TableStore:
    """
    Filters are dicts of column -> value. A value of None matches NULL and a
    list/tuple/set matches any of its members. `order_by` is a column name,
    prefixed with '-' for descending order.
    """

    def __init__(self, session=None):
        self.session = session or db.session

    def _model(self, table):
        try:
            return TABLE_MODELS[table]
        except KeyError:
            raise StoreError(f"Unknown table '{table}'") from None

    @staticmethod
    def _column(model, name):
        column = model.__table__.columns.get(name)
        if column is None:
            raise StoreError(f"Unknown column '{name}' on table '{model.__tablename__}'")
        return column

    def _query(self, model, filters):
        query = self.session.query(model)
        for name, value in (filters or {}).items():
            column = self._column(model, name)
            if value is None:
                query = query.filter(column.is_(None))
            elif isinstance(value, (list, tuple, set, frozenset)):
                query = query.filter(column.in_(list(value)))
            else:
                query = query.filter(column == value)
        return query

    def _fail(self, action, table, error):
        self.session.rollback()
        logger.error(f"Store {action} on '{table}' failed: {error}", exc_info=True)
        raise StoreError(f"Could not {action} '{table}': {error}") from error

    def select(self, table, filters=None, order_by=None):
        model = self._model(table)
        query = self._query(model, filters)
        if order_by:
            descending = order_by.startswith('-')
            column = self._column(model, order_by.lstrip('-'))
            query = query.order_by(column.desc() if descending else column.asc())
        try:
            return [obj.to_dict() for obj in query.all()]
        except SQLAlchemyError as e:
            self._fail('select from', table, e)

    def insert(self, table, record):
        model = self._model(table)
        for name in record:
            self._column(model, name)
        obj = model(**record)
        try:
            self.session.add(obj)
            self.session.commit()
        except SQLAlchemyError as e:
            self._fail('insert into', table, e)
        return obj.to_dict()

    def update(self, table, filters, patch):
        """Applies `patch` to every matching row. Returns the number of rows changed."""
        model = self._model(table)
        for name in patch:
            self._column(model, name)
        try:
            rows = self._query(model, filters).all()
            now = datetime.utcnow()
            for obj in rows:
                for name, value in patch.items():
                    setattr(obj, name, value)
                obj.updated_at = now
            self.session.commit()
        except SQLAlchemyError as e:
            self._fail('update', table, e)
        return len(rows)

    def delete(self, table, filters):
        model = self._model(table)
        try:
            rows = self._query(model, filters).all()
            for obj in rows:
                self.session.delete(obj)
            self.session.commit()
        except SQLAlchemyError as e:
            self._fail('delete from', table, e)
        return len(rows)
