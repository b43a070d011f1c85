"""
Tests for the area registry.

Covers:
- Each area resolves to its own context table
- Only implementacion and tecnica gastos reference an orden de publicidad
"""

import pytest

from app.models.contexto_experience import ContextoExperience
from app.models.contexto_implementacion import ContextoImplementacion
from app.models.contexto_productora import ContextoProductora
from app.models.contexto_programacion import ContextoProgramacion
from app.models.contexto_tecnica import ContextoTecnica
from app.services.areas import AREAS_CONFIG, get_area


class TestGetArea:
    @pytest.mark.parametrize(
        "area, modelo, usa_orden",
        [
            ("implementacion", ContextoImplementacion, True),
            ("tecnica", ContextoTecnica, True),
            ("programacion", ContextoProgramacion, False),
            ("experience", ContextoExperience, False),
            ("productora", ContextoProductora, False),
        ],
    )
    def test_registry(self, area, modelo, usa_orden):
        config = get_area(area)

        assert config.nombre == area
        assert config.modelo is modelo
        assert config.usa_orden is usa_orden

    def test_every_area_has_its_own_table(self):
        tablas = {config.modelo.__tablename__ for config in AREAS_CONFIG.values()}

        assert len(tablas) == len(AREAS_CONFIG)

    def test_unknown_area(self):
        with pytest.raises(KeyError):
            get_area("contabilidad")
