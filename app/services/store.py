"""
Per-table persistence gateway.

``TableStore`` wraps one SQLAlchemy model with the five primitive operations
the gasto services need (insert, update, delete, find by id, find by filter)
and turns every database failure into a ``StoreError`` carrying a stable
code. Higher layers decide what a code means for the domain.

Design notes
------------
- ``autocommit=True`` commits after every write, so each call is durable on
  its own and a failed later step must be undone by compensating deletes.
  ``autocommit=False`` only flushes; the caller owns the transaction.
- After a failed write the session is rolled back. In autocommit mode this
  only discards the failed statement; in flush mode it aborts everything
  pending in the transaction, which is what the caller would do anyway.
- Error codes are detected from the PostgreSQL SQLSTATE when the driver
  exposes it and from the message text otherwise (SQLite in tests).
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Error codes
# ---------------------------------------------------------------------------

UNIQUE_VIOLATION = "UNIQUE_VIOLATION"
FOREIGN_KEY_VIOLATION = "FOREIGN_KEY_VIOLATION"
NOT_FOUND = "NOT_FOUND"
INTEGRITY_ERROR = "INTEGRITY_ERROR"
DATABASE_ERROR = "DATABASE_ERROR"

_PG_UNIQUE_VIOLATION = "23505"
_PG_FOREIGN_KEY_VIOLATION = "23503"


class StoreError(Exception):
    """Structured failure of a single store call.

    Attributes:
        code: One of the module-level error codes.
        message: Human-readable description.
        table: Table the call targeted.
        details: Raw driver message, when there is one.
    """

    def __init__(self, code: str, message: str, table: str, details: str | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.table = table
        self.details = details


def classify_error(exc: SQLAlchemyError) -> str:
    """Return the store error code for a SQLAlchemy exception."""
    if not isinstance(exc, IntegrityError):
        return DATABASE_ERROR
    orig = exc.orig
    pgcode = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    text = str(orig).upper()
    if pgcode == _PG_UNIQUE_VIOLATION or "UNIQUE" in text:
        return UNIQUE_VIOLATION
    if pgcode == _PG_FOREIGN_KEY_VIOLATION or "FOREIGN KEY" in text:
        return FOREIGN_KEY_VIOLATION
    return INTEGRITY_ERROR


# ---------------------------------------------------------------------------
# TableStore
# ---------------------------------------------------------------------------


class TableStore:
    """CRUD access to one table, raising ``StoreError`` on any failure.

    Args:
        db: Active SQLAlchemy session.
        model: Declarative model class of the table.
        autocommit: Commit after each write (``True``) or only flush.
    """

    def __init__(self, db: Session, model: type, *, autocommit: bool = True) -> None:
        self.db = db
        self.model = model
        self.autocommit = autocommit

    @property
    def table(self) -> str:
        return self.model.__tablename__

    def insert(self, values: dict[str, Any]) -> Any:
        row = self.model(**values)
        self.db.add(row)
        self._write("insert")
        if self.autocommit:
            self.db.refresh(row)
        logger.debug("store.insert: table=%s id=%s", self.table, row.id)
        return row

    def update(self, row_id: int, patch: dict[str, Any]) -> Any:
        row = self.find_by_id(row_id)
        for field_name, value in patch.items():
            setattr(row, field_name, value)
        self._write("update")
        if self.autocommit:
            self.db.refresh(row)
        logger.debug(
            "store.update: table=%s id=%d fields=%s", self.table, row_id, list(patch.keys())
        )
        return row

    def delete(self, row_id: int) -> None:
        row = self.find_by_id(row_id)
        self.db.delete(row)
        self._write("delete")
        logger.debug("store.delete: table=%s id=%d", self.table, row_id)

    def find_by_id(self, row_id: int) -> Any:
        row = self.db.get(self.model, row_id)
        if row is None:
            raise StoreError(
                NOT_FOUND,
                f"Registro {row_id} no encontrado en {self.table}.",
                self.table,
            )
        return row

    def find_by_filter(self, **criteria: Any) -> list[Any]:
        return self._read(
            "find_by_filter",
            lambda: self.db.query(self.model)
            .filter_by(**criteria)
            .order_by(self.model.id)
            .all(),
        )

    def count_by_filter(self, **criteria: Any) -> int:
        return self._read(
            "count_by_filter",
            lambda: self.db.query(self.model).filter_by(**criteria).count(),
        )

    # -----------------------------------------------------------------------

    def _read(self, operacion: str, consulta: Callable[[], Any]) -> Any:
        try:
            return consulta()
        except SQLAlchemyError as exc:
            logger.warning(
                "store.%s failed: table=%s error=%s",
                operacion, self.table, exc.__class__.__name__,
            )
            raise StoreError(
                DATABASE_ERROR,
                f"Error de base de datos en {self.table} ({operacion}).",
                self.table,
                details=str(getattr(exc, "orig", exc)),
            ) from exc

    def _write(self, operacion: str) -> None:
        try:
            if self.autocommit:
                self.db.commit()
            else:
                self.db.flush()
        except SQLAlchemyError as exc:
            self.db.rollback()
            code = classify_error(exc)
            logger.warning(
                "store.%s failed: table=%s code=%s error=%s",
                operacion, self.table, code, exc.__class__.__name__,
            )
            raise StoreError(
                code,
                f"Error de base de datos en {self.table} ({operacion}).",
                self.table,
                details=str(getattr(exc, "orig", exc)),
            ) from exc


def fila_a_dict(row: Any) -> dict[str, Any]:
    """Return the column values of an ORM row keyed by attribute name."""
    return {col.key: getattr(row, col.key) for col in row.__table__.columns}
