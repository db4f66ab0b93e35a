# Overview: Locking helpers for the sale/refund units of work.

from __future__ import annotations

from sqlalchemy import text

from ..extensions import db


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    populate_existing() makes the locked read win over any stale copy
    already sitting in the identity map.
    """
    return query.with_for_update().populate_existing()


def begin_write_transaction() -> None:
    """
    On SQLite, take the database write lock up front (BEGIN IMMEDIATE).

    SQLite has no row locks, so this is how the check-then-act in a refund
    stays serialized against a concurrent refund of the same sale. Other
    dialects rely on lock_for_update instead.
    """
    if db.engine.dialect.name != "sqlite":
        return
    dbapi_connection = db.session.connection().connection.dbapi_connection
    if not getattr(dbapi_connection, "in_transaction", False):
        db.session.execute(text("BEGIN IMMEDIATE"))
