"""
Formularios router.

Mounts under ``/api/formularios`` (prefix set in ``main.py``). Read-only:
formularios are created and removed together with their gastos.

Endpoints
---------
GET /                 — Formularios of an area with neto/importe totals and gasto count.
GET /{id}             — One formulario with its totals.
GET /{id}/gastos      — Composed gastos of a formulario.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.database import get_db
from app.schemas.gasto import Area, FormularioAgrupado, GastoResponse
from app.services import gasto_service
from app.utils.http_errors import raise_for_error

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Formularios"])


@router.get(
    "/",
    response_model=list[FormularioAgrupado],
    summary="Formularios agrupados de un área",
    description=(
        "Retorna los formularios del área con la suma de neto e importe total "
        "y la cantidad de gastos, calculados sobre los gastos actuales."
    ),
)
def list_formularios(
    area: Annotated[Area, Query(description="Área de los formularios.")],
    db: Annotated[Session, Depends(get_db)],
) -> list[FormularioAgrupado]:
    logger.debug("GET /formularios area=%s", area)
    return gasto_service.list_formularios(db, area)


@router.get(
    "/{formulario_id}",
    response_model=FormularioAgrupado,
    summary="Detalle de un formulario",
    responses={404: {"description": "Formulario no encontrado."}},
)
def get_formulario(
    formulario_id: int,
    db: Annotated[Session, Depends(get_db)],
) -> FormularioAgrupado:
    resultado = gasto_service.get_formulario(db, formulario_id)
    raise_for_error(resultado.error)
    return resultado.data


@router.get(
    "/{formulario_id}/gastos",
    response_model=list[GastoResponse],
    summary="Gastos de un formulario",
    responses={404: {"description": "Formulario no encontrado."}},
)
def list_gastos_formulario(
    formulario_id: int,
    db: Annotated[Session, Depends(get_db)],
) -> list[GastoResponse]:
    resultado = gasto_service.list_gastos_formulario(db, formulario_id)
    raise_for_error(resultado.error)
    return resultado.data
