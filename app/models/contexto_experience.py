"""ContextoExperience model."""

from sqlalchemy import Column, Date, String

from app.database import Base
from app.models.contexto_base import ContextoMixin


class ContextoExperience(ContextoMixin, Base):
    """Experience fields of a gasto.

    Attributes:
        factura_emitida_a: Entity the invoice is issued to.
        empresa_programa: Company or program the expense belongs to.
        fecha_comprobante: Voucher date.
        acuerdo_pago: Payment agreement.
        forma_pago: Payment method.
        pais: Country, "argentina" unless stated.
    """

    __tablename__ = "contexto_experience"

    factura_emitida_a = Column(String(300), nullable=True)
    empresa_programa = Column(String(300), nullable=True)
    fecha_comprobante = Column(Date, nullable=True)
    acuerdo_pago = Column(String(50), nullable=True)
    forma_pago = Column(String(30), nullable=True)
    pais = Column(String(100), default="argentina", nullable=False)
