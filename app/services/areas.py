"""Lookup of the context table of each area."""

from __future__ import annotations

from dataclasses import dataclass

from app.models.contexto_experience import ContextoExperience
from app.models.contexto_implementacion import ContextoImplementacion
from app.models.contexto_productora import ContextoProductora
from app.models.contexto_programacion import ContextoProgramacion
from app.models.contexto_tecnica import ContextoTecnica
from app.utils.constants import AREAS_CON_ORDEN


@dataclass(frozen=True)
class AreaConfig:
    nombre: str
    modelo: type

    @property
    def usa_orden(self) -> bool:
        return self.nombre in AREAS_CON_ORDEN


AREAS_CONFIG: dict[str, AreaConfig] = {
    "implementacion": AreaConfig("implementacion", ContextoImplementacion),
    "tecnica": AreaConfig("tecnica", ContextoTecnica),
    "programacion": AreaConfig("programacion", ContextoProgramacion),
    "experience": AreaConfig("experience", ContextoExperience),
    "productora": AreaConfig("productora", ContextoProductora),
}


def get_area(nombre: str) -> AreaConfig:
    """Return the configuration of ``nombre``.

    Raises:
        KeyError: Unknown area.
    """
    return AREAS_CONFIG[nombre]
