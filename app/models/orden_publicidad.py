"""OrdenPublicidad model — advertising order header."""

from sqlalchemy import Column, Date, DateTime, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.database import Base


class OrdenPublicidad(Base):
    """Advertising order sold to a client, split into per-program items.

    Attributes:
        id: Primary key.
        numero_orden: Unique order number, e.g. "OP-2025-0001".
        fecha: Order date.
        mes_servicio: Service month, "YYYY-MM".
        responsable: Sales executive in charge.
        total_venta: Total sale amount declared on the order.
        unidad_negocio: Business unit.
        categoria_negocio: Business category.
        proyecto: Project name.
        razon_social: Client legal name.
        categoria: Client category.
        empresa_agencia: Agency that placed the order.
        marca: Advertised brand.
        nombre_campana: Campaign name.
        acuerdo_pago: Payment agreement.
        tipo_importe: "canje" or "factura".
        observaciones: Free-text notes.
        estado_op: "pendiente", "aprobado" or "rechazado".
        creado_por: Creator reference supplied by the caller.
        created_at: Record creation timestamp.
        updated_at: Last modification timestamp.
    """

    __tablename__ = "orden_publicidad"

    id = Column(Integer, primary_key=True, autoincrement=True)
    numero_orden = Column(String(50), unique=True, nullable=False)
    fecha = Column(Date, nullable=True)
    mes_servicio = Column(String(7), nullable=True)
    responsable = Column(String(200), nullable=True)
    total_venta = Column(Numeric(15, 2), nullable=True)
    unidad_negocio = Column(String(200), nullable=True)
    categoria_negocio = Column(String(200), nullable=True)
    proyecto = Column(String(300), nullable=True)
    razon_social = Column(String(300), nullable=True)
    categoria = Column(String(200), nullable=True)
    empresa_agencia = Column(String(300), nullable=True)
    marca = Column(String(200), nullable=True)
    nombre_campana = Column(String(300), nullable=True)
    acuerdo_pago = Column(String(50), nullable=True)
    tipo_importe = Column(String(20), default="factura", nullable=False)
    observaciones = Column(Text, nullable=True)
    estado_op = Column(String(20), default="pendiente", nullable=False)
    creado_por = Column(String(200), nullable=True)
    created_at = Column(DateTime, default=func.now(), nullable=False)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now(), nullable=False)

    # Relationships
    items = relationship(
        "ItemOrdenPublicidad",
        back_populates="orden_publicidad",
        order_by="ItemOrdenPublicidad.id",
        lazy="select",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
