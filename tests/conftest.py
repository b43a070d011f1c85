"""
Pytest fixtures for the gastos test suite.

Provides:
- An in-memory SQLite database (``StaticPool``) recreated for every test,
  with foreign keys and ``ON DELETE CASCADE`` enforced
- A FastAPI ``TestClient`` bound to the same session
- Store failure injection for the write coordinator and the order service
- Builders for gasto payloads and órdenes de publicidad
"""

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ESTRATEGIA_ESCRITURA"] = "compensacion"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

import app.models  # noqa: F401
from app.database import Base, enable_sqlite_foreign_keys, get_db
from app.models.item_orden_publicidad import ItemOrdenPublicidad
from app.models.orden_publicidad import OrdenPublicidad
from app.schemas.gasto import (
    ContextoExperienceData,
    ContextoImplementacionData,
    ContextoProgramacionData,
    FormularioCreate,
    GastoCreate,
)
from app.services.store import DATABASE_ERROR, StoreError, TableStore

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
enable_sqlite_foreign_keys(engine)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------


@pytest.fixture
def db() -> Session:
    """Fresh schema and session for each test."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db):
    """TestClient whose ``get_db`` dependency yields the test session."""
    from app.main import app as fastapi_app

    def _override_get_db():
        yield db

    fastapi_app.dependency_overrides[get_db] = _override_get_db
    try:
        yield TestClient(fastapi_app)
    finally:
        fastapi_app.dependency_overrides.clear()


@pytest.fixture
def contar(db):
    """Return the number of rows stored for a model."""

    def _contar(model) -> int:
        return db.query(model).count()

    return _contar


# ---------------------------------------------------------------------------
# Store failure injection
# ---------------------------------------------------------------------------


class StoreConFallos(TableStore):
    """TableStore that raises ``StoreError`` for the configured model/operation pairs.

    A failing call never touches the session, so the state left behind is
    exactly what earlier calls wrote.
    """

    def __init__(self, db, model, *, autocommit=True, fallos=None, code=DATABASE_ERROR, llamadas=None):
        super().__init__(db, model, autocommit=autocommit)
        self.fallos = fallos or {}
        self.code = code
        self.llamadas = llamadas

    def _quizas_fallar(self, operacion: str) -> None:
        pendientes = self.fallos.get((self.model, operacion))
        if pendientes is None:
            return
        if self.llamadas is not None:
            clave = (self.model, operacion)
            self.llamadas[clave] = self.llamadas.get(clave, 0) + 1
            if self.llamadas[clave] < pendientes:
                return
        raise StoreError(self.code, f"Fallo inyectado en {self.table} ({operacion}).", self.table)

    def insert(self, values):
        self._quizas_fallar("insert")
        return super().insert(values)

    def update(self, row_id, patch):
        self._quizas_fallar("update")
        return super().update(row_id, patch)

    def delete(self, row_id):
        self._quizas_fallar("delete")
        super().delete(row_id)

    def count_by_filter(self, **criteria):
        self._quizas_fallar("count_by_filter")
        return super().count_by_filter(**criteria)


@pytest.fixture
def store_con_fallos():
    """Build a store factory that fails on chosen ``(model, operation)`` calls.

    Usage::

        factory = store_con_fallos({(ContextoImplementacion, "insert"): 2})

    The value is the 1-based call number that fails; that call and every
    later one raise.
    """

    def _factory(fallos, code=DATABASE_ERROR):
        llamadas: dict = {}

        def _store(db, model, *, autocommit=True):
            return StoreConFallos(
                db, model, autocommit=autocommit, fallos=fallos, code=code, llamadas=llamadas
            )

        return _store

    return _factory


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


@pytest.fixture
def nuevo_gasto():
    def _nuevo(**overrides) -> GastoCreate:
        datos = {
            "proveedor": "Estudio Sonido SRL",
            "razon_social": "Estudio Sonido SRL",
            "neto": 1000.0,
            "empresa": "Radio Mitre SA",
        }
        datos.update(overrides)
        return GastoCreate(**datos)

    return _nuevo


@pytest.fixture
def nuevo_formulario():
    def _nuevo(**overrides) -> FormularioCreate:
        datos = {
            "nombre_campana": "Verano 2025",
            "mes_gestion": "2025-03",
            "unidad_negocio": "Radio",
            "programa": "Mañanas de Radio",
        }
        datos.update(overrides)
        return FormularioCreate(**datos)

    return _nuevo


@pytest.fixture
def contexto_implementacion():
    def _nuevo(**overrides) -> ContextoImplementacionData:
        datos = {"factura_emitida_a": "Radio Mitre SA", "rubro": "Escenografía"}
        datos.update(overrides)
        return ContextoImplementacionData(**datos)

    return _nuevo


@pytest.fixture
def contexto_programacion():
    def _nuevo(**overrides) -> ContextoProgramacionData:
        datos = {"categoria": "Deportes", "cliente": "Bebidas del Sur SA"}
        datos.update(overrides)
        return ContextoProgramacionData(**datos)

    return _nuevo


@pytest.fixture
def contexto_experience():
    def _nuevo(**overrides) -> ContextoExperienceData:
        return ContextoExperienceData(**overrides)

    return _nuevo


@pytest.fixture
def crear_orden(db):
    """Store an orden de publicidad with items; return ``(orden_id, {programa: item_id})``."""

    def _crear(numero="OP-2025-0001", programas=("Mañanas de Radio", "Deportes al Día")):
        orden = OrdenPublicidad(
            numero_orden=numero,
            responsable="Lucía Fernández",
            marca="Refresco Sur",
            nombre_campana="Verano 2025",
            mes_servicio="2025-03",
        )
        db.add(orden)
        db.flush()
        items = [
            ItemOrdenPublicidad(orden_publicidad_id=orden.id, programa=programa, monto=100000)
            for programa in programas
        ]
        db.add_all(items)
        db.commit()
        return orden.id, {item.programa: item.id for item in items}

    return _crear
