"""ContextoProductora model."""

from sqlalchemy import Column, Date, String

from app.database import Base
from app.models.contexto_base import ContextoMixin


class ContextoProductora(ContextoMixin, Base):
    """Productora fields of a gasto.

    Attributes:
        empresa_programa: Company or program the expense belongs to.
        fecha_comprobante: Voucher date.
        pais: Country.
        rubro: Expense category.
        sub_rubro: Expense sub-category.
        factura_emitida_a: Entity the invoice is issued to.
        acuerdo_pago: Payment agreement.
        forma_pago: Payment method.
    """

    __tablename__ = "contexto_productora"

    empresa_programa = Column(String(300), nullable=True)
    fecha_comprobante = Column(Date, nullable=True)
    pais = Column(String(100), default="argentina", nullable=False)
    rubro = Column(String(200), nullable=True)
    sub_rubro = Column(String(200), nullable=True)
    factura_emitida_a = Column(String(300), nullable=True)
    acuerdo_pago = Column(String(50), nullable=True)
    forma_pago = Column(String(30), nullable=True)
