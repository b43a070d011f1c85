"""
Unit of work for multi-table writes.

Two strategies sit behind the same interface so the write coordinator does
not care which one is active:

- ``CompensatingUnitOfWork`` — every store call commits on its own. Each
  successful step registers a compensating action (a delete); ``rollback``
  runs them in reverse order. A compensation that fails is logged as a
  ``CompensationFailure`` and skipped, so the original error is the one the
  caller sees. A crash between a failed step and its compensation can leave
  orphaned rows.
- ``TransactionalUnitOfWork`` — store calls only flush; ``commit`` and
  ``rollback`` map to the session's transaction. Compensations are ignored.

The active strategy comes from ``Settings.ESTRATEGIA_ESCRITURA``.

Usage::

    uow = crear_unidad_de_trabajo(db)
    with uow:
        row = uow.store(Formulario).insert({...})
        uow.register_compensation("formulario", lambda: ...)
        uow.commit()

Leaving the ``with`` block through an exception without having committed
calls ``rollback`` and re-raises.
"""

from __future__ import annotations

import logging
from typing import Callable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import get_settings
from app.services.errors import CompensationFailure
from app.services.store import StoreError, TableStore, classify_error

logger = logging.getLogger(__name__)

StoreFactory = Callable[..., TableStore]


class UnidadDeTrabajo:
    """Common interface of both strategies.

    Args:
        db: Active SQLAlchemy session.
        store_factory: Callable building a ``TableStore``; tests inject
            failing stores through it.
    """

    autocommit: bool = True

    def __init__(self, db: Session, store_factory: StoreFactory = TableStore) -> None:
        self.db = db
        self.store_factory = store_factory
        self._committed = False

    def store(self, model: type) -> TableStore:
        return self.store_factory(self.db, model, autocommit=self.autocommit)

    def register_compensation(self, descripcion: str, accion: Callable[[], None]) -> None:
        raise NotImplementedError

    def commit(self) -> None:
        raise NotImplementedError

    def rollback(self) -> None:
        raise NotImplementedError

    def __enter__(self) -> UnidadDeTrabajo:
        self._committed = False
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if exc_type is not None and not self._committed:
            self.rollback()
        return False


class CompensatingUnitOfWork(UnidadDeTrabajo):
    """Per-call commits with best-effort compensating deletes."""

    autocommit = True

    def __init__(self, db: Session, store_factory: StoreFactory = TableStore) -> None:
        super().__init__(db, store_factory)
        self._compensaciones: list[tuple[str, Callable[[], None]]] = []

    def register_compensation(self, descripcion: str, accion: Callable[[], None]) -> None:
        self._compensaciones.append((descripcion, accion))

    def commit(self) -> None:
        self._compensaciones.clear()
        self._committed = True

    def rollback(self) -> None:
        while self._compensaciones:
            descripcion, accion = self._compensaciones.pop()
            try:
                accion()
                logger.info("compensacion aplicada: %s", descripcion)
            except StoreError as exc:
                fallo = CompensationFailure(
                    f"No se pudo compensar {descripcion}.",
                    details={"store_code": exc.code, "table": exc.table},
                )
                logger.warning(
                    "%s: %s (code=%s table=%s)",
                    fallo.codigo, fallo.message, exc.code, exc.table,
                )


class TransactionalUnitOfWork(UnidadDeTrabajo):
    """All store calls inside one database transaction."""

    autocommit = False

    def register_compensation(self, descripcion: str, accion: Callable[[], None]) -> None:
        logger.debug("transaccion: compensacion '%s' no requerida", descripcion)

    def commit(self) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StoreError(
                classify_error(exc),
                "Error de base de datos al confirmar la transacción.",
                "*",
                details=str(getattr(exc, "orig", exc)),
            ) from exc
        self._committed = True

    def rollback(self) -> None:
        self.db.rollback()


_ESTRATEGIAS: dict[str, type[UnidadDeTrabajo]] = {
    "compensacion": CompensatingUnitOfWork,
    "transaccion": TransactionalUnitOfWork,
}


def crear_unidad_de_trabajo(
    db: Session,
    estrategia: str | None = None,
    store_factory: StoreFactory = TableStore,
) -> UnidadDeTrabajo:
    """Build the unit of work for the configured write strategy.

    Args:
        db: Active SQLAlchemy session.
        estrategia: ``"compensacion"`` or ``"transaccion"``; defaults to
            ``Settings.ESTRATEGIA_ESCRITURA``.
        store_factory: Store constructor passed through to the unit of work.

    Raises:
        ValueError: Unknown strategy name.
    """
    nombre = estrategia or get_settings().ESTRATEGIA_ESCRITURA
    try:
        clase = _ESTRATEGIAS[nombre]
    except KeyError:
        raise ValueError(f"Estrategia de escritura desconocida: {nombre!r}") from None
    return clase(db, store_factory=store_factory)
