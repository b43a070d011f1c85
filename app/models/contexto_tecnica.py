"""ContextoTecnica model."""

from app.database import Base
from app.models.contexto_base import ContextoOrdenMixin


class ContextoTecnica(ContextoOrdenMixin, Base):
    """Tecnica fields of a gasto. Same shape as implementacion."""

    __tablename__ = "contexto_tecnica"
