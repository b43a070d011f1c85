"""Comprobante model — core financial row of a gasto."""

from sqlalchemy import Column, Date, DateTime, Integer, Numeric, String, Text
from sqlalchemy.sql import func

from app.database import Base


class Comprobante(Base):
    """Core financial row shared by every area's gasto.

    A comprobante alone is not a valid gasto: it becomes visible only once
    its per-area context row exists. Context rows reference the comprobante
    with ``ON DELETE CASCADE``, so deleting the comprobante removes them.

    Attributes:
        id: Primary key.
        area_origen: Area that registered the gasto, e.g. "implementacion".
        tipo_movimiento: Always "egreso" for gastos.
        proveedor: Counterparty name (optional for cash payments).
        razon_social: Legal name of the counterparty.
        tipo_factura: Invoice type (A, B, C, ...).
        numero_factura: Invoice number.
        fecha_factura: Invoice date.
        moneda: "ARS" or "USD".
        neto: Net amount.
        iva: IVA rate as a percentage, e.g. 21.
        iva_monto: IVA amount, derived from neto and iva.
        importe_total: neto * (1 + iva / 100), recomputed on every change.
        empresa: Company that receives the invoice.
        concepto_gasto: Free-text expense concept.
        observaciones: Free-text notes.
        estado: "pendiente", "activo", "cerrado" or "anulado".
        estado_pago: "creado", "aprobado", "requiere_info", "rechazado" or "pagado".
        creado_por: Creator reference supplied by the caller.
        created_at: Record creation timestamp.
        updated_at: Last modification timestamp.
    """

    __tablename__ = "comprobante"

    id = Column(Integer, primary_key=True, autoincrement=True)
    area_origen = Column(String(30), nullable=False, index=True)
    tipo_movimiento = Column(String(20), default="egreso", nullable=False)
    proveedor = Column(String(300), nullable=True)
    razon_social = Column(String(300), nullable=True)
    tipo_factura = Column(String(10), nullable=True)
    numero_factura = Column(String(50), nullable=True)
    fecha_factura = Column(Date, nullable=True)
    moneda = Column(String(3), default="ARS", nullable=False)
    neto = Column(Numeric(15, 2), nullable=False)
    iva = Column(Numeric(5, 2), default=21, nullable=False)
    iva_monto = Column(Numeric(15, 2), nullable=True)
    importe_total = Column(Numeric(15, 2), nullable=True)
    empresa = Column(String(300), nullable=True)
    concepto_gasto = Column(String(500), nullable=True)
    observaciones = Column(Text, nullable=True)
    estado = Column(String(20), default="pendiente", nullable=False)
    estado_pago = Column(String(20), default="creado", nullable=False)
    creado_por = Column(String(200), nullable=True)
    created_at = Column(DateTime, default=func.now(), nullable=False)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now(), nullable=False)
