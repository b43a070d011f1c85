"""
Pydantic v2 schemas for órdenes de publicidad and their program items.

Items are identified inside an order by ``programa``. On update the caller
may omit item ids: an item without id whose ``programa`` already exists in
the order updates that row instead of creating a duplicate.
"""

from __future__ import annotations

import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

EstadoOp = Literal["pendiente", "aprobado", "rechazado"]
TipoImporte = Literal["canje", "factura"]


# ---------------------------------------------------------------------------
# Items
# ---------------------------------------------------------------------------


class ItemOrdenData(BaseModel):
    """Program allocation of an order.

    Attributes:
        id: Existing item id; only meaningful on update.
        programa: Program name, unique within the order.
        monto: Amount allocated to the program.
        implementacion: Budget reserved for implementacion gastos.
        tecnica: Budget reserved for tecnica gastos.
        talentos: Budget reserved for talent.
    """

    id: int | None = Field(
        default=None, ge=1, description="ID del item existente (solo en actualizaciones)."
    )
    programa: str = Field(..., min_length=1, max_length=200, description="Programa.")
    monto: float | None = Field(default=None, ge=0)
    nc_programa: str | None = Field(default=None, max_length=200)
    nc_porcentaje: float | None = Field(default=None, ge=0, le=100)
    proveedor_fee: str | None = Field(default=None, max_length=300)
    fee_programa: float | None = Field(default=None, ge=0)
    fee_porcentaje: float | None = Field(default=None, ge=0, le=100)
    implementacion: float | None = Field(default=None, ge=0)
    talentos: float | None = Field(default=None, ge=0)
    tecnica: float | None = Field(default=None, ge=0)

    @field_validator("programa")
    @classmethod
    def programa_sin_espacios(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("El programa no puede estar vacío.")
        return value


class ItemOrdenResponse(ItemOrdenData):
    """Stored item plus the net amount already spent against it."""

    id: int
    orden_publicidad_id: int
    created_at: datetime.datetime
    neto_ejecutado: float = Field(
        default=0.0, description="Suma del neto de los gastos imputados al item."
    )


# ---------------------------------------------------------------------------
# Orden header
# ---------------------------------------------------------------------------


class _OrdenCampos(BaseModel):
    fecha: datetime.date | None = None
    mes_servicio: str | None = Field(default=None, pattern=r"^\d{4}-\d{2}$")
    responsable: str | None = Field(default=None, max_length=200)
    total_venta: float | None = Field(default=None, ge=0)
    unidad_negocio: str | None = Field(default=None, max_length=200)
    categoria_negocio: str | None = Field(default=None, max_length=200)
    proyecto: str | None = Field(default=None, max_length=300)
    razon_social: str | None = Field(default=None, max_length=300)
    categoria: str | None = Field(default=None, max_length=200)
    empresa_agencia: str | None = Field(default=None, max_length=300)
    marca: str | None = Field(default=None, max_length=200)
    nombre_campana: str | None = Field(default=None, max_length=300)
    acuerdo_pago: str | None = Field(default=None, max_length=50)
    observaciones: str | None = None


class OrdenPublicidadCreate(_OrdenCampos):
    """Payload for creating an order with its items (POST /)."""

    numero_orden: str = Field(..., min_length=1, max_length=50, description="Número de OP.")
    tipo_importe: TipoImporte = "factura"
    creado_por: str | None = Field(default=None, max_length=200)
    items: list[ItemOrdenData] = Field(default_factory=list)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "numero_orden": "OP-2025-0042",
                "mes_servicio": "2025-03",
                "responsable": "Lucía Fernández",
                "razon_social": "Bebidas del Sur SA",
                "marca": "Refresco Sur",
                "nombre_campana": "Verano 2025",
                "total_venta": 1200000,
                "items": [
                    {"programa": "Mañanas de Radio", "monto": 700000, "implementacion": 50000},
                    {"programa": "Deportes al Día", "monto": 500000},
                ],
            }
        }
    )


class OrdenPublicidadUpdate(_OrdenCampos):
    """Partial update (PUT /{id}). ``items`` replaces the item collection when given."""

    numero_orden: str | None = Field(default=None, min_length=1, max_length=50)
    tipo_importe: TipoImporte | None = None
    items: list[ItemOrdenData] | None = None


class EstadoOpUpdate(BaseModel):
    estado_op: EstadoOp


class OrdenPublicidadResponse(_OrdenCampos):
    id: int
    numero_orden: str
    tipo_importe: str
    estado_op: str
    creado_por: str | None = None
    created_at: datetime.datetime
    updated_at: datetime.datetime
    items: list[ItemOrdenResponse] = Field(default_factory=list)
    total_items: float = Field(default=0.0, description="Suma del monto de los items.")
    neto_ejecutado: float = Field(
        default=0.0, description="Suma del neto de los gastos imputados a la orden."
    )


class TablaOrdenesResponse(BaseModel):
    rows: list[OrdenPublicidadResponse]
    total: int
    page: int
    page_size: int
