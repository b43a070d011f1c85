"""Formulario model — grouping header for gastos created together."""

from sqlalchemy import Column, DateTime, Integer, String, Text
from sqlalchemy.sql import func

from app.database import Base


class Formulario(Base):
    """Header that groups one or more gastos of the same area.

    A formulario with no gastos only exists while a creation or deletion is
    in progress; removing its last gasto deletes it. Totals are never stored
    here, they are summed from the comprobantes on every read.

    Attributes:
        id: Primary key.
        area: Area the header belongs to; every child gasto shares it.
        nombre_campana: Campaign name.
        mes_gestion: Management month, "YYYY-MM".
        mes_venta: Sales month, "YYYY-MM".
        mes_inicio: Start month, "YYYY-MM".
        unidad_negocio: Business unit.
        categoria_negocio: Business category.
        programa: Program name (programacion headers).
        ejecutivo: Account executive.
        sub_rubro_empresa: Company sub-category.
        detalle_campana: Free-text campaign detail.
        estado: "pendiente", "activo", "cerrado" or "anulado".
        creado_por: Creator reference supplied by the caller.
        created_at: Record creation timestamp.
        updated_at: Last modification timestamp.
    """

    __tablename__ = "formulario"

    id = Column(Integer, primary_key=True, autoincrement=True)
    area = Column(String(30), nullable=False, index=True)
    nombre_campana = Column(String(300), nullable=True)
    mes_gestion = Column(String(7), nullable=True)
    mes_venta = Column(String(7), nullable=True)
    mes_inicio = Column(String(7), nullable=True)
    unidad_negocio = Column(String(200), nullable=True)
    categoria_negocio = Column(String(200), nullable=True)
    programa = Column(String(200), nullable=True)
    ejecutivo = Column(String(200), nullable=True)
    sub_rubro_empresa = Column(String(200), nullable=True)
    detalle_campana = Column(Text, nullable=True)
    estado = Column(String(20), default="activo", nullable=False)
    creado_por = Column(String(200), nullable=True)
    created_at = Column(DateTime, default=func.now(), nullable=False)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now(), nullable=False)
