"""
Órdenes de publicidad router.

Mounts under ``/api/ordenes-publicidad`` (prefix set in ``main.py``).

Endpoints
---------
GET    /               — Paginated orders with items and totals.
GET    /{id}           — One order with items, total and executed neto per item.
POST   /               — Create an order with its program items.
PUT    /{id}           — Partial update; ``items`` replaces the collection.
PATCH  /{id}/estado    — Change ``estado_op``.
DELETE /{id}           — Delete an order without gastos.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.database import get_db
from app.schemas.common import MessageResponse, PaginationParams
from app.schemas.orden_publicidad import (
    EstadoOp,
    EstadoOpUpdate,
    OrdenPublicidadCreate,
    OrdenPublicidadResponse,
    OrdenPublicidadUpdate,
    TablaOrdenesResponse,
)
from app.services import orden_publicidad_service
from app.utils.http_errors import raise_for_error

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Órdenes de Publicidad"])


def _pagination_params(
    page: Annotated[int, Query(description="Página (base 1).", ge=1)] = 1,
    page_size: Annotated[
        int, Query(description="Registros por página (máx. 200).", ge=1, le=200)
    ] = 20,
) -> PaginationParams:
    return PaginationParams(page=page, page_size=page_size)


@router.get(
    "/",
    response_model=TablaOrdenesResponse,
    summary="Tabla de órdenes de publicidad",
)
def list_ordenes(
    pagination: Annotated[PaginationParams, Depends(_pagination_params)],
    db: Annotated[Session, Depends(get_db)],
    estado_op: Annotated[EstadoOp | None, Query()] = None,
) -> TablaOrdenesResponse:
    logger.debug("GET /ordenes-publicidad page=%d estado_op=%s", pagination.page, estado_op)
    return orden_publicidad_service.list_ordenes(db, pagination, estado_op=estado_op)


@router.get(
    "/{orden_id}",
    response_model=OrdenPublicidadResponse,
    summary="Detalle de una orden de publicidad",
    responses={404: {"description": "Orden no encontrada."}},
)
def get_orden(
    orden_id: int,
    db: Annotated[Session, Depends(get_db)],
) -> OrdenPublicidadResponse:
    resultado = orden_publicidad_service.get_orden(db, orden_id)
    raise_for_error(resultado.error)
    return resultado.data


@router.post(
    "/",
    response_model=OrdenPublicidadResponse,
    status_code=201,
    summary="Crear orden de publicidad",
    description=(
        "Crea la orden y sus programas. Los programas no pueden repetirse "
        "dentro de la orden."
    ),
    responses={
        409: {"description": "Programa duplicado o número de orden existente."},
        422: {"description": "Datos de entrada inválidos o sin programas."},
    },
)
def create_orden(
    data: OrdenPublicidadCreate,
    db: Annotated[Session, Depends(get_db)],
) -> OrdenPublicidadResponse:
    logger.info("POST /ordenes-publicidad numero=%s items=%d", data.numero_orden, len(data.items))
    resultado = orden_publicidad_service.create_orden(db, data)
    raise_for_error(resultado.error)
    return resultado.data


@router.put(
    "/{orden_id}",
    response_model=OrdenPublicidadResponse,
    summary="Actualizar orden de publicidad",
    description=(
        "Actualiza parcialmente la orden. Si se envía 'items', se concilia "
        "contra los programas actuales: por ID, luego por nombre de programa. "
        "Los programas ausentes se eliminan salvo que tengan gastos."
    ),
    responses={
        404: {"description": "Orden no encontrada."},
        409: {"description": "Programas duplicados."},
    },
)
def update_orden(
    orden_id: int,
    data: OrdenPublicidadUpdate,
    db: Annotated[Session, Depends(get_db)],
) -> OrdenPublicidadResponse:
    logger.info(
        "PUT /ordenes-publicidad/%d items=%s",
        orden_id, len(data.items) if data.items is not None else None,
    )
    resultado = orden_publicidad_service.update_orden(db, orden_id, data)
    raise_for_error(resultado.error)
    return resultado.data


@router.patch(
    "/{orden_id}/estado",
    response_model=OrdenPublicidadResponse,
    summary="Cambiar estado de la orden",
    responses={404: {"description": "Orden no encontrada."}},
)
def update_estado_op(
    orden_id: int,
    data: EstadoOpUpdate,
    db: Annotated[Session, Depends(get_db)],
) -> OrdenPublicidadResponse:
    logger.info("PATCH /ordenes-publicidad/%d/estado %s", orden_id, data.estado_op)
    resultado = orden_publicidad_service.update_estado_op(db, orden_id, data.estado_op)
    raise_for_error(resultado.error)
    return resultado.data


@router.delete(
    "/{orden_id}",
    response_model=MessageResponse,
    summary="Eliminar orden de publicidad",
    responses={
        404: {"description": "Orden no encontrada."},
        409: {"description": "La orden tiene gastos asociados."},
    },
)
def delete_orden(
    orden_id: int,
    db: Annotated[Session, Depends(get_db)],
) -> MessageResponse:
    logger.info("DELETE /ordenes-publicidad/%d", orden_id)
    resultado = orden_publicidad_service.remove_orden(db, orden_id)
    raise_for_error(resultado.error)
    return MessageResponse(message=f"Orden de publicidad {orden_id} eliminada.")
