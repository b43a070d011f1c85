"""
Gastos router.

Mounts under ``/api/gastos`` (prefix set in ``main.py``).

A gasto is a comprobante plus the context row of its area, grouped under a
formulario. Write endpoints return the gasto as re-read from the database.

Endpoints
---------
GET    /               — Paginated gastos of one area, with optional filters.
GET    /{id}           — Full composed gasto.
POST   /               — Create one gasto under a new or existing formulario.
POST   /multiples      — Create several gastos under one formulario (all or nothing).
PUT    /{id}           — Partial update of comprobante, formulario and/or context.
DELETE /{id}           — Delete a gasto; its formulario goes too if left empty.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.database import get_db
from app.schemas.common import MessageResponse, PaginationParams
from app.schemas.gasto import (
    Area,
    EstadoGasto,
    EstadoPago,
    GastoCreateRequest,
    GastoMultipleCreateRequest,
    GastoResponse,
    GastoUpdateRequest,
    TablaGastosResponse,
)
from app.services import gasto_service
from app.utils.http_errors import raise_for_error

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Gastos"])

_ERRORES_ESCRITURA = {
    404: {"description": "Formulario, orden o item referenciado inexistente."},
    409: {"description": "Conflicto de unicidad o integridad, o comprobante bloqueado."},
    422: {"description": "Datos de entrada inválidos."},
    500: {"description": "Fallo parcial de escritura (ya compensado) o error de base de datos."},
}


def _pagination_params(
    page: Annotated[int, Query(description="Página (base 1).", ge=1)] = 1,
    page_size: Annotated[
        int, Query(description="Registros por página (máx. 200).", ge=1, le=200)
    ] = 20,
) -> PaginationParams:
    return PaginationParams(page=page, page_size=page_size)


# ---------------------------------------------------------------------------
# GET /
# ---------------------------------------------------------------------------


@router.get(
    "/",
    response_model=TablaGastosResponse,
    summary="Tabla de gastos de un área",
    description=(
        "Retorna los gastos compuestos (comprobante + formulario + contexto) "
        "de un área, del más reciente al más antiguo. Para implementación y "
        "técnica se puede filtrar por orden de publicidad o por item."
    ),
)
def get_tabla(
    area: Annotated[Area, Query(description="Área de los gastos.")],
    pagination: Annotated[PaginationParams, Depends(_pagination_params)],
    db: Annotated[Session, Depends(get_db)],
    formulario_id: Annotated[int | None, Query(ge=1)] = None,
    estado: Annotated[EstadoGasto | None, Query()] = None,
    estado_pago: Annotated[EstadoPago | None, Query()] = None,
    orden_publicidad_id: Annotated[int | None, Query(ge=1)] = None,
    item_orden_publicidad_id: Annotated[int | None, Query(ge=1)] = None,
) -> TablaGastosResponse:
    logger.debug("GET /gastos area=%s page=%d", area, pagination.page)
    return gasto_service.get_tabla(
        db,
        area,
        pagination,
        formulario_id=formulario_id,
        estado=estado,
        estado_pago=estado_pago,
        orden_publicidad_id=orden_publicidad_id,
        item_orden_publicidad_id=item_orden_publicidad_id,
    )


# ---------------------------------------------------------------------------
# GET /{id}
# ---------------------------------------------------------------------------


@router.get(
    "/{gasto_id}",
    response_model=GastoResponse,
    summary="Detalle de un gasto",
    responses={404: {"description": "Gasto no encontrado."}},
)
def get_gasto(
    gasto_id: int,
    db: Annotated[Session, Depends(get_db)],
) -> GastoResponse:
    """Return the composed gasto.

    Raises:
        HTTPException 404: No gasto with that id, or its context is missing.
    """
    resultado = gasto_service.get_gasto(db, gasto_id)
    raise_for_error(resultado.error)
    return resultado.data


# ---------------------------------------------------------------------------
# POST /
# ---------------------------------------------------------------------------


@router.post(
    "/",
    response_model=GastoResponse,
    status_code=201,
    summary="Crear gasto",
    description=(
        "Crea un gasto: formulario (si no se indica 'formulario_id'), "
        "comprobante y contexto del área, en ese orden. Si un paso falla, "
        "lo creado en pasos anteriores se elimina antes de responder."
    ),
    responses=_ERRORES_ESCRITURA,
)
def create_gasto(
    data: GastoCreateRequest,
    db: Annotated[Session, Depends(get_db)],
) -> GastoResponse:
    """Create one gasto.

    Args:
        data: Gasto, context and new formulario or existing ``formulario_id``.
        db: Database session.

    Returns:
        The composed gasto (HTTP 201).
    """
    logger.info(
        "POST /gastos area=%s neto=%.2f formulario_id=%s",
        data.contexto.area, data.gasto.neto, data.formulario_id,
    )
    resultado = gasto_service.create_gasto(db, data)
    raise_for_error(resultado.error)
    return resultado.data


# ---------------------------------------------------------------------------
# POST /multiples
# ---------------------------------------------------------------------------


@router.post(
    "/multiples",
    response_model=list[GastoResponse],
    status_code=201,
    summary="Crear varios gastos bajo un formulario",
    description=(
        "Crea un formulario y N gastos del mismo área. Si el gasto N falla, "
        "se eliminan los gastos ya creados y el formulario: la operación es "
        "todo o nada."
    ),
    responses=_ERRORES_ESCRITURA,
)
def create_gastos(
    data: GastoMultipleCreateRequest,
    db: Annotated[Session, Depends(get_db)],
) -> list[GastoResponse]:
    logger.info("POST /gastos/multiples items=%d", len(data.items))
    resultado = gasto_service.create_gastos(db, data)
    raise_for_error(resultado.error)
    return resultado.data


# ---------------------------------------------------------------------------
# PUT /{id}
# ---------------------------------------------------------------------------


@router.put(
    "/{gasto_id}",
    response_model=GastoResponse,
    summary="Actualizar gasto",
    description=(
        "Actualiza parcialmente comprobante, formulario y contexto. Solo los "
        "campos incluidos son modificados. Cada tabla se actualiza por "
        "separado: si una falla, las anteriores quedan aplicadas."
    ),
    responses=_ERRORES_ESCRITURA,
)
def update_gasto(
    gasto_id: int,
    data: GastoUpdateRequest,
    db: Annotated[Session, Depends(get_db)],
) -> GastoResponse:
    logger.info(
        "PUT /gastos/%d gasto=%s formulario=%s contexto=%s",
        gasto_id, data.gasto is not None, data.formulario is not None, data.contexto is not None,
    )
    resultado = gasto_service.update_gasto(db, gasto_id, data)
    raise_for_error(resultado.error)
    return resultado.data


# ---------------------------------------------------------------------------
# DELETE /{id}
# ---------------------------------------------------------------------------


@router.delete(
    "/{gasto_id}",
    response_model=MessageResponse,
    summary="Eliminar gasto",
    responses={
        404: {"description": "Gasto no encontrado."},
        409: {"description": "Comprobante bloqueado por su estado de pago."},
    },
)
def delete_gasto(
    gasto_id: int,
    db: Annotated[Session, Depends(get_db)],
) -> MessageResponse:
    logger.info("DELETE /gastos/%d", gasto_id)
    resultado = gasto_service.remove_gasto(db, gasto_id)
    raise_for_error(resultado.error)
    return MessageResponse(message=f"Gasto {gasto_id} eliminado.")
