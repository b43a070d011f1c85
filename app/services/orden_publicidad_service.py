"""
Órdenes de publicidad service layer.

All database access for the ``/api/ordenes-publicidad`` endpoints lives here.
An order owns a collection of program items whose natural key is
``programa``; item changes are planned by ``reconcile`` before any write and
then applied through a unit of work.

Design notes
------------
- Item totals (``total_items``) and executed amounts (``neto_ejecutado``,
  summed from implementacion and tecnica gastos) are computed on every read.
- ``create_orden`` compensates: if an item insert fails the new order is
  deleted (its items cascade).
- ``update_orden`` applies the plan as deletes, then updates, then creates.
  An item that still has gastos is not deleted; a warning is logged and the
  rest of the plan goes on. Like gasto updates, nothing is undone under the
  ``compensacion`` strategy if a later step fails.
- A uniqueness violation raised by the store while applying the plan (two
  writers adding the same programa) is returned as ``ConstraintViolation``.
"""

from __future__ import annotations

import logging
from functools import partial
from typing import Any

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.models.comprobante import Comprobante
from app.models.contexto_implementacion import ContextoImplementacion
from app.models.contexto_tecnica import ContextoTecnica
from app.models.item_orden_publicidad import ItemOrdenPublicidad
from app.models.orden_publicidad import OrdenPublicidad
from app.schemas.common import PaginationParams
from app.schemas.orden_publicidad import (
    ItemOrdenData,
    ItemOrdenResponse,
    OrdenPublicidadCreate,
    OrdenPublicidadResponse,
    OrdenPublicidadUpdate,
    TablaOrdenesResponse,
)
from app.services.errors import (
    ConstraintViolation,
    DomainError,
    NotFoundError,
    PartialWriteFailure,
    Resultado,
    ResultadoEliminacion,
    ValidationError,
    from_store_error,
)
from app.services.reconciliacion import PlanReconciliacion, reconcile
from app.services.store import StoreError, TableStore, fila_a_dict
from app.services.unit_of_work import StoreFactory, UnidadDeTrabajo, crear_unidad_de_trabajo

logger = logging.getLogger(__name__)

# Context tables whose gastos are charged against order items
_CONTEXTOS_CON_ORDEN = (ContextoImplementacion, ContextoTecnica)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _items_de(db: Session, orden_id: int) -> list[ItemOrdenPublicidad]:
    return (
        db.query(ItemOrdenPublicidad)
        .filter(ItemOrdenPublicidad.orden_publicidad_id == orden_id)
        .order_by(ItemOrdenPublicidad.id)
        .populate_existing()
        .all()
    )


def _neto_ejecutado_por_item(db: Session, item_ids: list[int]) -> dict[int, float]:
    """Sum the neto of the gastos charged to each item, across both areas."""
    ejecutado: dict[int, float] = {}
    if not item_ids:
        return ejecutado
    for contexto in _CONTEXTOS_CON_ORDEN:
        filas = (
            db.query(
                contexto.item_orden_publicidad_id,
                func.coalesce(func.sum(Comprobante.neto), 0),
            )
            .join(Comprobante, Comprobante.id == contexto.comprobante_id)
            .filter(contexto.item_orden_publicidad_id.in_(item_ids))
            .group_by(contexto.item_orden_publicidad_id)
            .all()
        )
        for item_id, neto in filas:
            ejecutado[item_id] = ejecutado.get(item_id, 0.0) + float(neto)
    return ejecutado


def _gastos_del_item(db: Session, item_id: int) -> int:
    return sum(
        db.query(contexto).filter(contexto.item_orden_publicidad_id == item_id).count()
        for contexto in _CONTEXTOS_CON_ORDEN
    )


def _gastos_de_la_orden(db: Session, orden_id: int) -> int:
    return sum(
        db.query(contexto).filter(contexto.orden_publicidad_id == orden_id).count()
        for contexto in _CONTEXTOS_CON_ORDEN
    )


def _build_response(db: Session, orden: OrdenPublicidad) -> OrdenPublicidadResponse:
    """Construct an ``OrdenPublicidadResponse`` with recomputed totals.

    Args:
        db: Active SQLAlchemy session.
        orden: Order loaded from the database.

    Returns:
        The order with its items in id order, ``total_items`` and
        ``neto_ejecutado`` per item and for the whole order.
    """
    items = _items_de(db, orden.id)
    ejecutado = _neto_ejecutado_por_item(db, [item.id for item in items])
    items_response = [
        ItemOrdenResponse.model_validate(
            {**fila_a_dict(item), "neto_ejecutado": round(ejecutado.get(item.id, 0.0), 2)}
        )
        for item in items
    ]
    datos = fila_a_dict(orden)
    datos.update(
        items=items_response,
        total_items=round(sum(float(item.monto or 0) for item in items), 2),
        neto_ejecutado=round(sum(ejecutado.values()), 2),
    )
    return OrdenPublicidadResponse.model_validate(datos)


def _valores_item(item: ItemOrdenData, orden_id: int) -> dict[str, Any]:
    return {**item.model_dump(exclude={"id"}), "orden_publicidad_id": orden_id}


def _aplicar_plan(
    db: Session, uow: UnidadDeTrabajo, orden_id: int, plan: PlanReconciliacion
) -> None:
    store = uow.store(ItemOrdenPublicidad)

    for item_id in plan.to_delete:
        gastos = _gastos_del_item(db, item_id)
        if gastos:
            logger.warning(
                "update_orden: item %d de la orden %d tiene %d gastos; no se elimina",
                item_id, orden_id, gastos,
            )
            continue
        store.delete(item_id)

    for item_id, item in plan.to_update:
        store.update(item_id, item.model_dump(exclude={"id"}, exclude_unset=True))

    for item in plan.to_create:
        store.insert(_valores_item(item, orden_id))


# ---------------------------------------------------------------------------
# Public service functions: read operations
# ---------------------------------------------------------------------------


def get_orden(db: Session, orden_id: int) -> Resultado[OrdenPublicidadResponse]:
    orden = (
        db.query(OrdenPublicidad)
        .filter(OrdenPublicidad.id == orden_id)
        .populate_existing()
        .first()
    )
    if orden is None:
        return Resultado(
            error=NotFoundError(f"Orden de publicidad con ID {orden_id} no encontrada.")
        )
    logger.debug("get_orden: orden_id=%d numero=%s", orden_id, orden.numero_orden)
    return Resultado(data=_build_response(db, orden))


def list_ordenes(
    db: Session,
    pagination: PaginationParams,
    estado_op: str | None = None,
) -> TablaOrdenesResponse:
    """Return one page of orders, newest first, with their items and totals."""
    q = db.query(OrdenPublicidad)
    if estado_op is not None:
        q = q.filter(OrdenPublicidad.estado_op == estado_op)
    total: int = q.count()
    offset = (pagination.page - 1) * pagination.page_size
    ordenes = (
        q.order_by(OrdenPublicidad.id.desc())
        .offset(offset)
        .limit(pagination.page_size)
        .populate_existing()
        .all()
    )
    logger.debug(
        "list_ordenes: page=%d size=%d total=%d", pagination.page, pagination.page_size, total
    )
    return TablaOrdenesResponse(
        rows=[_build_response(db, orden) for orden in ordenes],
        total=total,
        page=pagination.page,
        page_size=pagination.page_size,
    )


# ---------------------------------------------------------------------------
# Public service functions: write operations
# ---------------------------------------------------------------------------


def create_orden(
    db: Session,
    data: OrdenPublicidadCreate,
    *,
    estrategia: str | None = None,
    store_factory: StoreFactory = TableStore,
) -> Resultado[OrdenPublicidadResponse]:
    """Create an order and its items.

    Args:
        db: Active SQLAlchemy session.
        data: Order header and at least one item.
        estrategia: Write strategy override.
        store_factory: ``TableStore`` constructor (tests inject failures).

    Returns:
        ``Resultado`` with the stored order, or ``ValidationError`` (no
        items), ``ConstraintViolation`` (duplicate programa or numero_orden),
        ``PartialWriteFailure`` (item insert failed, order deleted).
    """
    if not data.items:
        return Resultado(
            error=ValidationError(
                "Debe agregar al menos un programa.",
                errores=[{"field": "items", "message": "Debe agregar al menos un programa"}],
            )
        )
    plan = reconcile([], data.items)
    if plan.error is not None:
        return Resultado(error=plan.error)

    uow = crear_unidad_de_trabajo(db, estrategia, store_factory)
    try:
        with uow:
            ordenes = uow.store(OrdenPublicidad)
            try:
                orden = ordenes.insert(data.model_dump(exclude={"items"}))
            except StoreError as exc:
                raise from_store_error(exc, "No se pudo crear la orden de publicidad.") from exc
            orden_id = orden.id
            uow.register_compensation(f"orden {orden_id}", partial(ordenes.delete, orden_id))

            items = uow.store(ItemOrdenPublicidad)
            for item in plan.to_create:
                try:
                    items.insert(_valores_item(item, orden_id))
                except StoreError as exc:
                    raise PartialWriteFailure(
                        f"No se pudo crear el programa '{item.programa}'.",
                        paso="item",
                        store_code=exc.code,
                        details=exc.details,
                    ) from exc
            uow.commit()
    except DomainError as exc:
        logger.warning("create_orden: numero=%s %s: %s", data.numero_orden, exc.codigo, exc.message)
        return Resultado(error=exc)
    except StoreError as exc:
        return Resultado(error=from_store_error(exc))

    logger.info(
        "create_orden: orden_id=%d numero=%s items=%d",
        orden_id, data.numero_orden, len(plan.to_create),
    )
    return get_orden(db, orden_id)


def update_orden(
    db: Session,
    orden_id: int,
    data: OrdenPublicidadUpdate,
    *,
    estrategia: str | None = None,
    store_factory: StoreFactory = TableStore,
) -> Resultado[OrdenPublicidadResponse]:
    """Patch an order header and reconcile its items.

    When ``data.items`` is given it is the full desired item list. Items
    are matched by id, then by ``programa``; existing items absent from the
    list by both id and programa are deleted unless they have gastos.

    Returns:
        ``Resultado`` with the re-read order, or ``NotFoundError``,
        ``ConstraintViolation`` (duplicate programa, before any write, or a
        uniqueness race in the store), ``PersistenceError``.
    """
    if db.get(OrdenPublicidad, orden_id) is None:
        return Resultado(
            error=NotFoundError(f"Orden de publicidad con ID {orden_id} no encontrada.")
        )

    plan: PlanReconciliacion | None = None
    if data.items is not None:
        plan = reconcile(_items_de(db, orden_id), data.items)
        if plan.error is not None:
            logger.info("update_orden: orden_id=%d rechazada: %s", orden_id, plan.error.message)
            return Resultado(error=plan.error)

    patch = {
        campo: valor
        for campo, valor in data.model_dump(exclude_unset=True, exclude={"items"}).items()
        if valor is not None or campo not in ("numero_orden", "tipo_importe")
    }

    uow = crear_unidad_de_trabajo(db, estrategia, store_factory)
    try:
        with uow:
            if patch:
                uow.store(OrdenPublicidad).update(orden_id, patch)
            if plan is not None:
                _aplicar_plan(db, uow, orden_id, plan)
            uow.commit()
    except StoreError as exc:
        if uow.autocommit:
            logger.warning(
                "update_orden: orden_id=%d falló (code=%s); los pasos previos no se revierten",
                orden_id, exc.code,
            )
        return Resultado(error=from_store_error(exc, "No se pudo actualizar la orden de publicidad."))

    logger.info(
        "update_orden: orden_id=%d fields=%s items(+%d ~%d -%d)",
        orden_id,
        list(patch.keys()),
        len(plan.to_create) if plan else 0,
        len(plan.to_update) if plan else 0,
        len(plan.to_delete) if plan else 0,
    )
    return get_orden(db, orden_id)


def update_estado_op(
    db: Session, orden_id: int, estado_op: str
) -> Resultado[OrdenPublicidadResponse]:
    if db.get(OrdenPublicidad, orden_id) is None:
        return Resultado(
            error=NotFoundError(f"Orden de publicidad con ID {orden_id} no encontrada.")
        )
    try:
        TableStore(db, OrdenPublicidad).update(orden_id, {"estado_op": estado_op})
    except StoreError as exc:
        return Resultado(error=from_store_error(exc))
    logger.info("update_estado_op: orden_id=%d estado_op=%s", orden_id, estado_op)
    return get_orden(db, orden_id)


def remove_orden(db: Session, orden_id: int) -> ResultadoEliminacion:
    """Delete an order and its items; refused while gastos reference it."""
    if db.get(OrdenPublicidad, orden_id) is None:
        return ResultadoEliminacion(
            success=False,
            error=NotFoundError(f"Orden de publicidad con ID {orden_id} no encontrada."),
        )
    gastos = _gastos_de_la_orden(db, orden_id)
    if gastos:
        return ResultadoEliminacion(
            success=False,
            error=ConstraintViolation(
                f"La orden {orden_id} tiene {gastos} gastos asociados y no puede eliminarse."
            ),
        )
    try:
        TableStore(db, OrdenPublicidad).delete(orden_id)
    except StoreError as exc:
        return ResultadoEliminacion(
            success=False,
            error=from_store_error(exc, "No se pudo eliminar la orden de publicidad."),
        )
    logger.info("remove_orden: orden_id=%d", orden_id)
    return ResultadoEliminacion(success=True)
