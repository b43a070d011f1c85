"""
Pydantic v2 schemas for gastos and their formularios.

A gasto is written across three tables (formulario header, comprobante core
row, per-area context row), so its payloads are split the same way:

- ``GastoCreate`` / ``GastoCorePatch``   — comprobante fields.
- ``FormularioCreate`` / ``FormularioPatch`` — header fields.
- ``Contexto*Data``                       — per-area fields, discriminated by
  ``area``. All their fields are optional, so the same models are used for
  creation and for partial updates (``model_dump(exclude_unset=True)``).

Response models mirror the composed view built by ``GastoReader``.
"""

from __future__ import annotations

import datetime
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

EstadoGasto = Literal["pendiente", "activo", "cerrado", "anulado"]
EstadoPago = Literal["creado", "aprobado", "requiere_info", "rechazado", "pagado"]
FormaPago = Literal["transferencia", "cheque", "efectivo", "tarjeta", "otro"]
Moneda = Literal["ARS", "USD"]
Area = Literal["implementacion", "programacion", "experience", "productora", "tecnica"]


# ---------------------------------------------------------------------------
# Comprobante (core row)
# ---------------------------------------------------------------------------


class GastoCreate(BaseModel):
    """Comprobante fields of a new gasto.

    ``moneda`` and ``iva`` fall back to ``Settings.MONEDA_DEFAULT`` and
    ``Settings.IVA_DEFAULT`` when omitted. ``iva_monto`` and
    ``importe_total`` are always computed by the service.
    """

    proveedor: str | None = Field(default=None, max_length=300, description="Proveedor.")
    razon_social: str | None = Field(default=None, max_length=300)
    tipo_factura: str | None = Field(default=None, max_length=10)
    numero_factura: str | None = Field(default=None, max_length=50)
    fecha_factura: datetime.date | None = None
    moneda: Moneda | None = Field(default=None, description="ARS o USD.")
    neto: float = Field(..., description="Importe neto; debe ser mayor a cero.")
    iva: float | None = Field(default=None, ge=0, le=100, description="Alícuota de IVA (%).")
    empresa: str | None = Field(default=None, max_length=300)
    concepto_gasto: str | None = Field(default=None, max_length=500)
    observaciones: str | None = None
    estado: EstadoGasto = "pendiente"
    estado_pago: EstadoPago = "creado"
    creado_por: str | None = Field(default=None, max_length=200)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "proveedor": "Estudio Sonido SRL",
                "razon_social": "Estudio Sonido SRL",
                "tipo_factura": "A",
                "numero_factura": "0001-00001234",
                "neto": 150000.0,
                "iva": 21,
                "empresa": "Radio Mitre SA",
                "creado_por": "operador@medios.com",
            }
        }
    )


class GastoCorePatch(BaseModel):
    """Partial update of comprobante fields. Unset fields are left untouched."""

    proveedor: str | None = None
    razon_social: str | None = None
    tipo_factura: str | None = None
    numero_factura: str | None = None
    fecha_factura: datetime.date | None = None
    moneda: Moneda | None = None
    neto: float | None = Field(default=None, gt=0)
    iva: float | None = Field(default=None, ge=0, le=100)
    empresa: str | None = None
    concepto_gasto: str | None = None
    observaciones: str | None = None
    estado: EstadoGasto | None = None
    estado_pago: EstadoPago | None = None


# ---------------------------------------------------------------------------
# Formulario (header)
# ---------------------------------------------------------------------------


class FormularioCreate(BaseModel):
    """Header fields of a new formulario. Its ``area`` is taken from the gastos."""

    nombre_campana: str | None = Field(default=None, max_length=300)
    mes_gestion: str | None = Field(
        default=None, pattern=r"^\d{4}-\d{2}$", description="Mes de gestión, 'YYYY-MM'."
    )
    mes_venta: str | None = Field(default=None, pattern=r"^\d{4}-\d{2}$")
    mes_inicio: str | None = Field(default=None, pattern=r"^\d{4}-\d{2}$")
    unidad_negocio: str | None = Field(default=None, max_length=200)
    categoria_negocio: str | None = Field(default=None, max_length=200)
    programa: str | None = Field(default=None, max_length=200)
    ejecutivo: str | None = Field(default=None, max_length=200)
    sub_rubro_empresa: str | None = Field(default=None, max_length=200)
    detalle_campana: str | None = None
    estado: EstadoGasto = "activo"
    creado_por: str | None = Field(default=None, max_length=200)


class FormularioPatch(BaseModel):
    nombre_campana: str | None = None
    mes_gestion: str | None = Field(default=None, pattern=r"^\d{4}-\d{2}$")
    mes_venta: str | None = Field(default=None, pattern=r"^\d{4}-\d{2}$")
    mes_inicio: str | None = Field(default=None, pattern=r"^\d{4}-\d{2}$")
    unidad_negocio: str | None = None
    categoria_negocio: str | None = None
    programa: str | None = None
    ejecutivo: str | None = None
    sub_rubro_empresa: str | None = None
    detalle_campana: str | None = None
    estado: EstadoGasto | None = None


class FormularioResponse(FormularioCreate):
    id: int
    area: Area
    created_at: datetime.datetime
    updated_at: datetime.datetime

    model_config = ConfigDict(from_attributes=True)


class FormularioAgrupado(FormularioResponse):
    """Formulario with totals summed from its current gastos."""

    neto_total: float = 0.0
    importe_total: float = 0.0
    gastos_count: int = 0


# ---------------------------------------------------------------------------
# Per-area context
# ---------------------------------------------------------------------------


class ContextoImplementacionData(BaseModel):
    """Implementacion context; may reference an orden de publicidad item."""

    area: Literal["implementacion"] = "implementacion"
    orden_publicidad_id: int | None = Field(default=None, ge=1)
    item_orden_publicidad_id: int | None = Field(default=None, ge=1)
    factura_emitida_a: str | None = None
    sector: str | None = None
    rubro: str | None = None
    sub_rubro: str | None = None
    condicion_pago: str | None = None
    forma_pago: FormaPago | None = None
    fecha_pago: datetime.date | None = None


class ContextoTecnicaData(ContextoImplementacionData):
    area: Literal["tecnica"] = "tecnica"


class ContextoProgramacionData(BaseModel):
    area: Literal["programacion"] = "programacion"
    categoria: str | None = None
    acuerdo_pago: str | None = None
    cliente: str | None = None
    monto: float | None = None
    valor_imponible: float | None = None
    bonificacion: float | None = None
    factura_emitida_a: str | None = None
    forma_pago: FormaPago | None = None


class ContextoExperienceData(BaseModel):
    area: Literal["experience"] = "experience"
    factura_emitida_a: str | None = None
    empresa_programa: str | None = None
    fecha_comprobante: datetime.date | None = None
    acuerdo_pago: str | None = None
    forma_pago: FormaPago | None = None
    pais: str | None = None


class ContextoProductoraData(BaseModel):
    area: Literal["productora"] = "productora"
    empresa_programa: str | None = None
    fecha_comprobante: datetime.date | None = None
    pais: str | None = None
    rubro: str | None = None
    sub_rubro: str | None = None
    factura_emitida_a: str | None = None
    acuerdo_pago: str | None = None
    forma_pago: FormaPago | None = None


ContextoData = Annotated[
    Union[
        ContextoImplementacionData,
        ContextoTecnicaData,
        ContextoProgramacionData,
        ContextoExperienceData,
        ContextoProductoraData,
    ],
    Field(discriminator="area"),
]


class _ContextoRefs(BaseModel):
    id: int
    comprobante_id: int
    formulario_id: int


class ContextoImplementacionResponse(ContextoImplementacionData, _ContextoRefs):
    pass


class ContextoTecnicaResponse(ContextoTecnicaData, _ContextoRefs):
    pass


class ContextoProgramacionResponse(ContextoProgramacionData, _ContextoRefs):
    pass


class ContextoExperienceResponse(ContextoExperienceData, _ContextoRefs):
    pass


class ContextoProductoraResponse(ContextoProductoraData, _ContextoRefs):
    pass


ContextoResponse = Annotated[
    Union[
        ContextoImplementacionResponse,
        ContextoTecnicaResponse,
        ContextoProgramacionResponse,
        ContextoExperienceResponse,
        ContextoProductoraResponse,
    ],
    Field(discriminator="area"),
]


# ---------------------------------------------------------------------------
# Request bodies
# ---------------------------------------------------------------------------


class _ConFormulario(BaseModel):
    formulario: FormularioCreate | None = Field(
        default=None, description="Nuevo formulario a crear junto con el gasto."
    )
    formulario_id: int | None = Field(
        default=None, ge=1, description="ID de un formulario existente."
    )

    @model_validator(mode="after")
    def validar_formulario(self):
        if (self.formulario is None) == (self.formulario_id is None):
            raise ValueError("Debe indicar 'formulario' o 'formulario_id', no ambos.")
        return self

    @property
    def destino(self) -> FormularioCreate | int:
        return self.formulario if self.formulario is not None else self.formulario_id


class GastoItemCreate(BaseModel):
    gasto: GastoCreate
    contexto: ContextoData


class GastoCreateRequest(_ConFormulario):
    """Body of ``POST /gastos``: one gasto under a new or existing formulario."""

    gasto: GastoCreate
    contexto: ContextoData


class GastoMultipleCreateRequest(_ConFormulario):
    """Body of ``POST /gastos/multiples``: N gastos under one formulario."""

    items: list[GastoItemCreate] = Field(default_factory=list)


class GastoUpdateRequest(BaseModel):
    """Body of ``PUT /gastos/{id}``; each part is optional and patched independently."""

    gasto: GastoCorePatch | None = None
    formulario: FormularioPatch | None = None
    contexto: ContextoData | None = None


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class OrdenResumen(BaseModel):
    """Labels of the orden de publicidad item a gasto is charged against."""

    orden_publicidad_id: int
    numero_orden: str
    responsable: str | None = None
    marca: str | None = None
    nombre_campana: str | None = None
    mes_servicio: str | None = None
    item_orden_publicidad_id: int | None = None
    programa: str | None = None


class GastoResponse(BaseModel):
    """Composed gasto: comprobante + formulario + area context."""

    id: int
    area_origen: Area
    tipo_movimiento: str
    proveedor: str | None = None
    razon_social: str | None = None
    tipo_factura: str | None = None
    numero_factura: str | None = None
    fecha_factura: datetime.date | None = None
    moneda: str
    neto: float
    iva: float
    iva_monto: float | None = None
    importe_total: float | None = None
    empresa: str | None = None
    concepto_gasto: str | None = None
    observaciones: str | None = None
    estado: str
    estado_pago: str
    creado_por: str | None = None
    created_at: datetime.datetime
    updated_at: datetime.datetime
    formulario: FormularioResponse
    contexto: ContextoResponse
    orden: OrdenResumen | None = None


class TablaGastosResponse(BaseModel):
    rows: list[GastoResponse]
    total: int
    page: int
    page_size: int
