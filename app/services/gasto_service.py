"""
Gastos service layer.

Entry point of the ``/api/gastos`` and ``/api/formularios`` endpoints. Runs
the business validation rules on incoming payloads, then delegates writes to
``GastoWriteCoordinator`` and reads to ``GastoReader``. Every function
returns a result envelope; routers translate its error into an HTTP status.

Validation rules
----------------
- ``proveedor`` is required unless the payment is cash (``efectivo``).
- ``neto`` must be greater than zero.
- Implementacion and tecnica gastos need ``factura_emitida_a`` unless cash.
- ``empresa`` is required unless cash.
- A new programacion formulario needs ``mes_gestion``, ``unidad_negocio``
  and ``programa``.
"""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from app.schemas.common import PaginationParams
from app.schemas.gasto import (
    ContextoData,
    FormularioAgrupado,
    FormularioCreate,
    GastoCreate,
    GastoCreateRequest,
    GastoMultipleCreateRequest,
    GastoResponse,
    GastoUpdateRequest,
    TablaGastosResponse,
)
from app.services.errors import (
    Resultado,
    ResultadoEliminacion,
    ResultadoLista,
    ValidationError,
)
from app.services.gasto_coordinator import GastoWriteCoordinator
from app.services.gasto_reader import GastoReader
from app.utils.constants import AREAS_CON_ORDEN, FORMA_PAGO_EFECTIVO

logger = logging.getLogger(__name__)

_CAMPOS_PROGRAMACION: list[tuple[str, str]] = [
    ("mes_gestion", "El mes de gestión es requerido"),
    ("unidad_negocio", "La unidad de negocio es requerida"),
    ("programa", "El programa es requerido"),
]


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def _vacio(valor: str | None) -> bool:
    return not (valor or "").strip()


def validar_gasto(gasto: GastoCreate, contexto: ContextoData) -> list[dict[str, str]]:
    """Apply the per-gasto business rules.

    Args:
        gasto: Comprobante fields.
        contexto: Area context; carries ``forma_pago`` and ``factura_emitida_a``.

    Returns:
        A list of ``{"field", "message"}`` dicts, empty when valid.
    """
    errores: list[dict[str, str]] = []
    efectivo = getattr(contexto, "forma_pago", None) == FORMA_PAGO_EFECTIVO

    if not efectivo and _vacio(gasto.proveedor):
        errores.append({"field": "proveedor", "message": "Debe seleccionar un proveedor"})
    if gasto.neto is None or gasto.neto <= 0:
        errores.append({"field": "neto", "message": "El importe neto es requerido"})
    if not efectivo:
        if contexto.area in AREAS_CON_ORDEN and _vacio(
            getattr(contexto, "factura_emitida_a", None)
        ):
            errores.append(
                {
                    "field": "factura_emitida_a",
                    "message": "Debe seleccionar a quién se emite la factura",
                }
            )
        if _vacio(gasto.empresa):
            errores.append({"field": "empresa", "message": "Debe seleccionar una empresa"})
    return errores


def validar_formulario(formulario: FormularioCreate | int, area: str) -> list[dict[str, str]]:
    if isinstance(formulario, int) or area != "programacion":
        return []
    return [
        {"field": campo, "message": mensaje}
        for campo, mensaje in _CAMPOS_PROGRAMACION
        if _vacio(getattr(formulario, campo))
    ]


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------


def create_gasto(db: Session, data: GastoCreateRequest) -> Resultado[GastoResponse]:
    errores = validar_formulario(data.destino, data.contexto.area) + validar_gasto(
        data.gasto, data.contexto
    )
    if errores:
        logger.info("create_gasto: rechazado, %d errores de validación", len(errores))
        return Resultado(error=ValidationError("Datos de gasto inválidos.", errores=errores))
    return GastoWriteCoordinator(db).create(data.gasto, data.destino, data.contexto)


def create_gastos(
    db: Session, data: GastoMultipleCreateRequest
) -> ResultadoLista[GastoResponse]:
    """Validate every item and create them all under one formulario.

    Item errors are prefixed with their 1-based position ("Gasto #2: ...").
    """
    errores: list[dict[str, str]] = []
    if data.items:
        errores += validar_formulario(data.destino, data.items[0].contexto.area)
    for indice, item in enumerate(data.items, start=1):
        errores += [
            {"field": error["field"], "message": f"Gasto #{indice}: {error['message']}"}
            for error in validar_gasto(item.gasto, item.contexto)
        ]
    if errores:
        logger.info(
            "create_gastos: rechazado, items=%d errores=%d", len(data.items), len(errores)
        )
        return ResultadoLista(error=ValidationError("Datos de gastos inválidos.", errores=errores))
    return GastoWriteCoordinator(db).create_multiple(data.destino, data.items)


def update_gasto(
    db: Session, gasto_id: int, data: GastoUpdateRequest
) -> Resultado[GastoResponse]:
    return GastoWriteCoordinator(db).update(
        gasto_id, gasto=data.gasto, formulario=data.formulario, contexto=data.contexto
    )


def remove_gasto(db: Session, gasto_id: int) -> ResultadoEliminacion:
    return GastoWriteCoordinator(db).remove(gasto_id)


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


def get_gasto(db: Session, gasto_id: int) -> Resultado[GastoResponse]:
    return GastoReader(db).read(gasto_id)


def get_tabla(
    db: Session,
    area: str,
    pagination: PaginationParams,
    formulario_id: int | None = None,
    estado: str | None = None,
    estado_pago: str | None = None,
    orden_publicidad_id: int | None = None,
    item_orden_publicidad_id: int | None = None,
) -> TablaGastosResponse:
    return GastoReader(db).list_gastos(
        area,
        pagination,
        formulario_id=formulario_id,
        estado=estado,
        estado_pago=estado_pago,
        orden_publicidad_id=orden_publicidad_id,
        item_orden_publicidad_id=item_orden_publicidad_id,
    )


def list_formularios(db: Session, area: str) -> list[FormularioAgrupado]:
    return GastoReader(db).list_formularios(area)


def get_formulario(db: Session, formulario_id: int) -> Resultado[FormularioAgrupado]:
    return GastoReader(db).get_formulario(formulario_id)


def list_gastos_formulario(db: Session, formulario_id: int) -> ResultadoLista[GastoResponse]:
    return GastoReader(db).list_by_formulario(formulario_id)
