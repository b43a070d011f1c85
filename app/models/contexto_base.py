"""Column mixins shared by the per-area context tables."""

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import declared_attr
from sqlalchemy.sql import func


class ContextoMixin:
    """Link columns every context table carries.

    ``comprobante_id`` is unique (one context per comprobante) and cascades
    on delete. ``formulario_id`` has no cascade: a formulario can only be
    deleted once no context row points at it.
    """

    id = Column(Integer, primary_key=True, autoincrement=True)
    created_at = Column(DateTime, default=func.now(), nullable=False)

    @declared_attr
    def comprobante_id(cls):
        return Column(
            Integer,
            ForeignKey("comprobante.id", ondelete="CASCADE"),
            unique=True,
            nullable=False,
        )

    @declared_attr
    def formulario_id(cls):
        return Column(Integer, ForeignKey("formulario.id"), nullable=False, index=True)


class ContextoOrdenMixin(ContextoMixin):
    """Context of areas that charge gastos against an orden de publicidad item."""

    factura_emitida_a = Column(String(300), nullable=True)
    sector = Column(String(200), nullable=True)
    rubro = Column(String(200), nullable=True)
    sub_rubro = Column(String(200), nullable=True)
    condicion_pago = Column(String(50), nullable=True)
    forma_pago = Column(String(30), nullable=True)
    fecha_pago = Column(Date, nullable=True)

    @declared_attr
    def orden_publicidad_id(cls):
        return Column(Integer, ForeignKey("orden_publicidad.id"), nullable=True, index=True)

    @declared_attr
    def item_orden_publicidad_id(cls):
        return Column(
            Integer, ForeignKey("item_orden_publicidad.id"), nullable=True, index=True
        )
