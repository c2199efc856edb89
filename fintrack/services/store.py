"""Thin persistence layer used by the blueprints.

Only equality-filtered queries and per-record writes go through here; every
failed commit is rolled back and re-raised as :class:`StoreError`.
"""
import logging

from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db

log = logging.getLogger(__name__)


class StoreError(Exception):
    """Raised when a write could not be committed."""


def _commit(action, document):
    try:
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        log.exception("Failed to %s %r", action, document)
        raise StoreError(f"Could not {action} record") from exc


def insert(document):
    db.session.add(document)
    _commit("save", document)
    return document


def find_by(model, order_by=None, **filters):
    query = model.query.filter_by(**filters)
    if order_by is not None:
        if isinstance(order_by, (list, tuple)):
            query = query.order_by(*order_by)
        else:
            query = query.order_by(order_by)
    return query.all()


def get(model, key):
    return db.session.get(model, key)


def update_fields(document, **fields):
    for name, value in fields.items():
        if not hasattr(document, name):
            raise AttributeError(f"{type(document).__name__} has no field {name!r}")
        setattr(document, name, value)
    _commit("update", document)
    return document


def delete(document):
    db.session.delete(document)
    _commit("delete", document)
