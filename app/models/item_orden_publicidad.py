"""ItemOrdenPublicidad model — per-program budget allocation of an order."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.database import Base


class ItemOrdenPublicidad(Base):
    """Budget line of an orden de publicidad, identified by its programa.

    ``programa`` is the natural key of the item inside its order. The
    reconciler rejects duplicates before writing; the unique constraint only
    catches concurrent writers.

    Attributes:
        id: Primary key.
        orden_publicidad_id: FK to OrdenPublicidad (cascades on delete).
        programa: Program name, unique within the order.
        monto: Amount allocated to the program.
        nc_programa: Credit-note program.
        nc_porcentaje: Credit-note percentage.
        proveedor_fee: Fee provider.
        fee_programa: Fee amount.
        fee_porcentaje: Fee percentage.
        implementacion: Budget reserved for implementacion gastos.
        talentos: Budget reserved for talent.
        tecnica: Budget reserved for tecnica gastos.
        created_at: Record creation timestamp.
    """

    __tablename__ = "item_orden_publicidad"
    __table_args__ = (
        UniqueConstraint(
            "orden_publicidad_id", "programa", name="uq_item_orden_programa"
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    orden_publicidad_id = Column(
        Integer,
        ForeignKey("orden_publicidad.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    programa = Column(String(200), nullable=False)
    monto = Column(Numeric(15, 2), nullable=True)
    nc_programa = Column(String(200), nullable=True)
    nc_porcentaje = Column(Numeric(5, 2), nullable=True)
    proveedor_fee = Column(String(300), nullable=True)
    fee_programa = Column(Numeric(15, 2), nullable=True)
    fee_porcentaje = Column(Numeric(5, 2), nullable=True)
    implementacion = Column(Numeric(15, 2), nullable=True)
    talentos = Column(Numeric(15, 2), nullable=True)
    tecnica = Column(Numeric(15, 2), nullable=True)
    created_at = Column(DateTime, default=func.now(), nullable=False)

    # Relationships
    orden_publicidad = relationship(
        "OrdenPublicidad", back_populates="items", lazy="select"
    )
