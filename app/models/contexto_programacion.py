"""ContextoProgramacion model."""

from sqlalchemy import Column, Numeric, String

from app.database import Base
from app.models.contexto_base import ContextoMixin


class ContextoProgramacion(ContextoMixin, Base):
    """Programacion fields of a gasto.

    Attributes:
        categoria: Program category.
        acuerdo_pago: Payment agreement.
        cliente: Client name.
        monto: Program amount.
        valor_imponible: Taxable value.
        bonificacion: Discount amount.
        factura_emitida_a: Entity the invoice is issued to.
        forma_pago: Payment method.
    """

    __tablename__ = "contexto_programacion"

    categoria = Column(String(200), nullable=True)
    acuerdo_pago = Column(String(50), nullable=True)
    cliente = Column(String(300), nullable=True)
    monto = Column(Numeric(15, 2), nullable=True)
    valor_imponible = Column(Numeric(15, 2), nullable=True)
    bonificacion = Column(Numeric(15, 2), nullable=True)
    factura_emitida_a = Column(String(300), nullable=True)
    forma_pago = Column(String(30), nullable=True)
