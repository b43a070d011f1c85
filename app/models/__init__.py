"""SQLAlchemy models package for Administración de Gastos.

Importing all models here ensures that SQLAlchemy's mapper registry is
populated before ``Base.metadata.create_all()`` or Alembic migrations run.
The import order follows the foreign-key dependency graph so that parent
tables are always registered before their children.

Usage from other modules:
    from app.models import Comprobante, Formulario
"""

# Advertising orders
from app.models.orden_publicidad import OrdenPublicidad  # noqa: F401
from app.models.item_orden_publicidad import ItemOrdenPublicidad  # noqa: F401

# Gasto aggregate: header + core row
from app.models.formulario import Formulario  # noqa: F401
from app.models.comprobante import Comprobante  # noqa: F401

# Per-area context rows
from app.models.contexto_implementacion import ContextoImplementacion  # noqa: F401
from app.models.contexto_tecnica import ContextoTecnica  # noqa: F401
from app.models.contexto_programacion import ContextoProgramacion  # noqa: F401
from app.models.contexto_experience import ContextoExperience  # noqa: F401
from app.models.contexto_productora import ContextoProductora  # noqa: F401

__all__ = [
    "OrdenPublicidad",
    "ItemOrdenPublicidad",
    "Formulario",
    "Comprobante",
    "ContextoImplementacion",
    "ContextoTecnica",
    "ContextoProgramacion",
    "ContextoExperience",
    "ContextoProductora",
]
