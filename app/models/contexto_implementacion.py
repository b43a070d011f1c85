"""ContextoImplementacion model."""

from app.database import Base
from app.models.contexto_base import ContextoOrdenMixin


class ContextoImplementacion(ContextoOrdenMixin, Base):
    """Implementacion fields of a gasto, optionally linked to an OP item.

    Attributes:
        id: Primary key.
        comprobante_id: FK to Comprobante (unique, cascades on delete).
        formulario_id: FK to Formulario.
        orden_publicidad_id: FK to OrdenPublicidad, checked before insert.
        item_orden_publicidad_id: FK to ItemOrdenPublicidad, must belong to the order.
        factura_emitida_a: Entity the invoice is issued to.
        sector: Sector label.
        rubro: Expense category.
        sub_rubro: Expense sub-category.
        condicion_pago: Payment terms, e.g. "30".
        forma_pago: Payment method.
        fecha_pago: Expected payment date.
        created_at: Record creation timestamp.
    """

    __tablename__ = "contexto_implementacion"
