"""Remote tier: an abstract per-user, row-oriented store that may fail at any time."""

import logging

from sqlalchemy.exc import SQLAlchemyError

from .errors import RemoteUnavailable

logger = logging.getLogger(__name__)


class RemoteStore:
    """
    Row interface the stores are written against.

    ``filters`` is a mapping of column name to required value. Every method
    raises RemoteUnavailable when the backend cannot be reached.
    """

    def select(self, table, filters, order_by=None):
        raise NotImplementedError

    def insert(self, table, rows):
        raise NotImplementedError

    def update(self, table, filters, patch):
        raise NotImplementedError

    def delete(self, table, filters):
        raise NotImplementedError


class SQLAlchemyRemote(RemoteStore):
    """
    RemoteStore over Flask-SQLAlchemy models.

    Args:
        db (SQLAlchemy): The Flask-SQLAlchemy extension.
        tables (dict): Table name -> model class.
    """

    def __init__(self, db, tables):
        self.db = db
        self.tables = tables

    def _model(self, table):
        try:
            return self.tables[table]
        except KeyError:
            raise ValueError(f"Unknown remote table '{table}'") from None

    @staticmethod
    def _as_dict(obj):
        return {column.name: getattr(obj, column.name) for column in obj.__table__.columns}

    def _fail(self, action, table, exc):
        # Leave the session usable for the next request
        self.db.session.rollback()
        logger.debug("Remote %s on %s failed: %s", action, table, exc)
        return RemoteUnavailable(f"{action} on {table} failed: {exc}")

    def select(self, table, filters, order_by=None):
        model = self._model(table)
        try:
            query = self.db.session.query(model).filter_by(**filters)
            if order_by:
                query = query.order_by(getattr(model, order_by).asc())
            return [self._as_dict(obj) for obj in query.all()]
        except SQLAlchemyError as exc:
            raise self._fail("select", table, exc) from exc

    def insert(self, table, rows):
        model = self._model(table)
        try:
            self.db.session.add_all([model(**row) for row in rows])
            self.db.session.commit()
        except SQLAlchemyError as exc:
            raise self._fail("insert", table, exc) from exc

    def update(self, table, filters, patch):
        model = self._model(table)
        try:
            count = self.db.session.query(model).filter_by(**filters).update(patch)
            self.db.session.commit()
            return count
        except SQLAlchemyError as exc:
            raise self._fail("update", table, exc) from exc

    def delete(self, table, filters):
        model = self._model(table)
        try:
            count = self.db.session.query(model).filter_by(**filters).delete()
            self.db.session.commit()
            return count
        except SQLAlchemyError as exc:
            raise self._fail("delete", table, exc) from exc
