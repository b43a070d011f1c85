"""
Tests for GastoWriteCoordinator.

Covers:
- Three-step create under a new or an existing formulario
- Compensation when the comprobante or context step fails
- Referenced orden / item / formulario checks before any write
- create_multiple full rollback
- Partial update, importe recomputation and the compensacion/transaccion
  difference on a failing later step
- remove with orphan formulario cleanup
"""

import logging

import pytest

from app.models.comprobante import Comprobante
from app.models.contexto_implementacion import ContextoImplementacion
from app.models.formulario import Formulario
from app.schemas.gasto import (
    ContextoImplementacionData,
    ContextoTecnicaData,
    FormularioPatch,
    GastoCorePatch,
    GastoItemCreate,
)
from app.services.errors import (
    ConstraintViolation,
    NotFoundError,
    PartialWriteFailure,
    PersistenceError,
    ValidationError,
)
from app.services.gasto_coordinator import GastoWriteCoordinator, calcular_importes
from app.services.gasto_reader import GastoReader


@pytest.fixture
def coordinator(db):
    return GastoWriteCoordinator(db, estrategia="compensacion")


@pytest.fixture
def crear_gasto(coordinator, nuevo_gasto, nuevo_formulario, contexto_implementacion):
    """Create an implementacion gasto and return its response."""

    def _crear(formulario=None, **gasto_overrides):
        resultado = coordinator.create(
            nuevo_gasto(**gasto_overrides),
            formulario if formulario is not None else nuevo_formulario(),
            contexto_implementacion(),
        )
        assert resultado.error is None
        return resultado.data

    return _crear


class TestCalcularImportes:
    def test_default_iva(self):
        assert calcular_importes(1000.0, 21.0) == {"iva_monto": 210.0, "importe_total": 1210.0}

    def test_rounding(self):
        assert calcular_importes(333.33, 10.5) == {"iva_monto": 35.0, "importe_total": 368.33}

    def test_zero_iva(self):
        assert calcular_importes(500.0, 0.0) == {"iva_monto": 0.0, "importe_total": 500.0}


class TestCreate:
    """Successful creation writes formulario, comprobante and context."""

    def test_create_with_new_formulario(
        self, coordinator, nuevo_gasto, nuevo_formulario, contexto_implementacion, contar
    ):
        resultado = coordinator.create(
            nuevo_gasto(), nuevo_formulario(), contexto_implementacion()
        )

        assert resultado.error is None
        gasto = resultado.data
        assert gasto.area_origen == "implementacion"
        assert gasto.tipo_movimiento == "egreso"
        assert gasto.moneda == "ARS"
        assert gasto.iva == 21.0
        assert gasto.iva_monto == 210.0
        assert gasto.importe_total == 1210.0
        assert gasto.estado_pago == "creado"
        assert gasto.formulario.area == "implementacion"
        assert gasto.formulario.nombre_campana == "Verano 2025"
        assert gasto.contexto.area == "implementacion"
        assert gasto.contexto.comprobante_id == gasto.id
        assert gasto.contexto.factura_emitida_a == "Radio Mitre SA"
        assert gasto.orden is None
        assert contar(Formulario) == 1
        assert contar(Comprobante) == 1
        assert contar(ContextoImplementacion) == 1

    def test_create_under_existing_formulario(self, crear_gasto, contar):
        primero = crear_gasto()

        segundo = crear_gasto(formulario=primero.formulario.id, neto=500.0)

        assert segundo.formulario.id == primero.formulario.id
        assert contar(Formulario) == 1
        assert contar(Comprobante) == 2

    def test_create_with_orden_item(
        self, coordinator, nuevo_gasto, nuevo_formulario, contexto_implementacion, crear_orden
    ):
        orden_id, items = crear_orden()

        resultado = coordinator.create(
            nuevo_gasto(),
            nuevo_formulario(),
            contexto_implementacion(
                orden_publicidad_id=orden_id,
                item_orden_publicidad_id=items["Mañanas de Radio"],
            ),
        )

        assert resultado.error is None
        assert resultado.data.orden.numero_orden == "OP-2025-0001"
        assert resultado.data.orden.programa == "Mañanas de Radio"
        assert resultado.data.contexto.orden_publicidad_id == orden_id

    def test_store_defaults_are_read_back(
        self, coordinator, nuevo_gasto, nuevo_formulario, contexto_experience
    ):
        resultado = coordinator.create(
            nuevo_gasto(moneda="USD", iva=0), nuevo_formulario(), contexto_experience()
        )

        assert resultado.error is None
        assert resultado.data.contexto.pais == "argentina"
        assert resultado.data.moneda == "USD"
        assert resultado.data.importe_total == 1000.0
        assert resultado.data.created_at is not None


class TestCreateReferences:
    """Missing or inconsistent references fail before anything is written."""

    def test_unknown_formulario_id(
        self, coordinator, nuevo_gasto, contexto_implementacion, contar
    ):
        resultado = coordinator.create(nuevo_gasto(), 999, contexto_implementacion())

        assert isinstance(resultado.error, NotFoundError)
        assert resultado.data is None
        assert contar(Comprobante) == 0

    def test_formulario_of_other_area(
        self, crear_gasto, coordinator, nuevo_gasto, contexto_programacion, contar
    ):
        existente = crear_gasto()

        resultado = coordinator.create(
            nuevo_gasto(), existente.formulario.id, contexto_programacion()
        )

        assert isinstance(resultado.error, ValidationError)
        assert contar(Comprobante) == 1

    def test_unknown_orden(
        self, coordinator, nuevo_gasto, nuevo_formulario, contexto_implementacion, contar
    ):
        resultado = coordinator.create(
            nuevo_gasto(), nuevo_formulario(), contexto_implementacion(orden_publicidad_id=77)
        )

        assert isinstance(resultado.error, NotFoundError)
        assert "77" in resultado.error.message
        assert contar(Formulario) == 0
        assert contar(Comprobante) == 0

    def test_unknown_item(
        self, coordinator, nuevo_gasto, nuevo_formulario, contexto_implementacion, crear_orden
    ):
        orden_id, _ = crear_orden()

        resultado = coordinator.create(
            nuevo_gasto(),
            nuevo_formulario(),
            contexto_implementacion(orden_publicidad_id=orden_id, item_orden_publicidad_id=555),
        )

        assert isinstance(resultado.error, NotFoundError)

    def test_item_of_other_orden(
        self,
        coordinator,
        nuevo_gasto,
        nuevo_formulario,
        contexto_implementacion,
        crear_orden,
        contar,
    ):
        orden_id, _ = crear_orden("OP-1")
        _, items_otra = crear_orden("OP-2")

        resultado = coordinator.create(
            nuevo_gasto(),
            nuevo_formulario(),
            contexto_implementacion(
                orden_publicidad_id=orden_id,
                item_orden_publicidad_id=items_otra["Deportes al Día"],
            ),
        )

        assert isinstance(resultado.error, ValidationError)
        assert contar(Formulario) == 0


class TestCreateCompensation:
    """A failing step deletes what earlier steps created, newest first."""

    def test_context_failure_removes_core_and_header(
        self,
        db,
        store_con_fallos,
        nuevo_gasto,
        nuevo_formulario,
        contexto_implementacion,
        contar,
    ):
        coordinator = GastoWriteCoordinator(
            db,
            estrategia="compensacion",
            store_factory=store_con_fallos({(ContextoImplementacion, "insert"): 1}),
        )

        resultado = coordinator.create(
            nuevo_gasto(), nuevo_formulario(), contexto_implementacion()
        )

        assert isinstance(resultado.error, PartialWriteFailure)
        assert resultado.error.paso == "contexto"
        assert resultado.error.store_code == "DATABASE_ERROR"
        assert contar(Formulario) == 0
        assert contar(Comprobante) == 0
        assert contar(ContextoImplementacion) == 0

    def test_core_failure_removes_header(
        self,
        db,
        store_con_fallos,
        nuevo_gasto,
        nuevo_formulario,
        contexto_implementacion,
        contar,
    ):
        coordinator = GastoWriteCoordinator(
            db,
            estrategia="compensacion",
            store_factory=store_con_fallos({(Comprobante, "insert"): 1}),
        )

        resultado = coordinator.create(
            nuevo_gasto(), nuevo_formulario(), contexto_implementacion()
        )

        assert isinstance(resultado.error, PartialWriteFailure)
        assert resultado.error.paso == "comprobante"
        assert contar(Formulario) == 0

    def test_existing_header_is_kept(
        self, db, crear_gasto, store_con_fallos, nuevo_gasto, contexto_implementacion, contar
    ):
        existente = crear_gasto()
        coordinator = GastoWriteCoordinator(
            db,
            estrategia="compensacion",
            store_factory=store_con_fallos({(ContextoImplementacion, "insert"): 1}),
        )

        resultado = coordinator.create(
            nuevo_gasto(), existente.formulario.id, contexto_implementacion()
        )

        assert isinstance(resultado.error, PartialWriteFailure)
        assert contar(Formulario) == 1
        assert contar(Comprobante) == 1

    def test_failed_compensation_is_logged_and_core_stays_invisible(
        self,
        db,
        store_con_fallos,
        nuevo_gasto,
        nuevo_formulario,
        contexto_implementacion,
        contar,
        caplog,
    ):
        coordinator = GastoWriteCoordinator(
            db,
            estrategia="compensacion",
            store_factory=store_con_fallos(
                {(ContextoImplementacion, "insert"): 1, (Comprobante, "delete"): 1}
            ),
        )

        with caplog.at_level(logging.WARNING):
            resultado = coordinator.create(
                nuevo_gasto(), nuevo_formulario(), contexto_implementacion()
            )

        assert isinstance(resultado.error, PartialWriteFailure)
        assert "COMPENSATION_FAILURE" in caplog.text
        assert contar(Comprobante) == 1
        assert contar(Formulario) == 0
        huerfano = db.query(Comprobante).one()
        assert isinstance(GastoReader(db).read(huerfano.id).error, NotFoundError)

    def test_transaction_strategy_leaves_nothing(
        self,
        db,
        store_con_fallos,
        nuevo_gasto,
        nuevo_formulario,
        contexto_implementacion,
        contar,
    ):
        coordinator = GastoWriteCoordinator(
            db,
            estrategia="transaccion",
            store_factory=store_con_fallos({(ContextoImplementacion, "insert"): 1}),
        )

        resultado = coordinator.create(
            nuevo_gasto(), nuevo_formulario(), contexto_implementacion()
        )

        assert isinstance(resultado.error, PartialWriteFailure)
        assert contar(Formulario) == 0
        assert contar(Comprobante) == 0

    def test_transaction_strategy_success(
        self, db, nuevo_gasto, nuevo_formulario, contexto_implementacion
    ):
        coordinator = GastoWriteCoordinator(db, estrategia="transaccion")

        resultado = coordinator.create(
            nuevo_gasto(), nuevo_formulario(), contexto_implementacion()
        )

        assert resultado.error is None
        assert resultado.data.importe_total == 1210.0


class TestCreateMultiple:
    """All gastos of a formulario are created or none are."""

    def _items(self, nuevo_gasto, contexto, cantidad=3):
        return [
            GastoItemCreate(gasto=nuevo_gasto(neto=100.0 * n), contexto=contexto())
            for n in range(1, cantidad + 1)
        ]

    def test_creates_all(
        self, db, coordinator, nuevo_gasto, nuevo_formulario, contexto_implementacion
    ):
        resultado = coordinator.create_multiple(
            nuevo_formulario(), self._items(nuevo_gasto, contexto_implementacion)
        )

        assert resultado.error is None
        assert [g.neto for g in resultado.data] == [100.0, 200.0, 300.0]
        assert len({g.formulario.id for g in resultado.data}) == 1
        agrupado = GastoReader(db).get_formulario(resultado.data[0].formulario.id).data
        assert agrupado.gastos_count == 3
        assert agrupado.neto_total == 600.0

    def test_second_item_failure_rolls_back_everything(
        self,
        db,
        store_con_fallos,
        nuevo_gasto,
        nuevo_formulario,
        contexto_implementacion,
        contar,
    ):
        coordinator = GastoWriteCoordinator(
            db,
            estrategia="compensacion",
            store_factory=store_con_fallos({(ContextoImplementacion, "insert"): 2}),
        )

        resultado = coordinator.create_multiple(
            nuevo_formulario(), self._items(nuevo_gasto, contexto_implementacion)
        )

        assert isinstance(resultado.error, PartialWriteFailure)
        assert resultado.error.message.startswith("Gasto #2:")
        assert resultado.error.details["item"] == 2
        assert len(resultado.error.details["revertidos"]) == 1
        assert resultado.data == []
        assert contar(Formulario) == 0
        assert contar(Comprobante) == 0
        assert contar(ContextoImplementacion) == 0

    def test_existing_formulario_survives_rollback(
        self,
        db,
        crear_gasto,
        store_con_fallos,
        nuevo_gasto,
        contexto_implementacion,
        contar,
    ):
        existente = crear_gasto()
        coordinator = GastoWriteCoordinator(
            db,
            estrategia="compensacion",
            store_factory=store_con_fallos({(ContextoImplementacion, "insert"): 2}),
        )

        resultado = coordinator.create_multiple(
            existente.formulario.id, self._items(nuevo_gasto, contexto_implementacion, 2)
        )

        assert isinstance(resultado.error, PartialWriteFailure)
        assert contar(Formulario) == 1
        assert contar(Comprobante) == 1

    def test_empty_items(self, coordinator, nuevo_formulario):
        resultado = coordinator.create_multiple(nuevo_formulario(), [])

        assert isinstance(resultado.error, ValidationError)

    def test_mixed_areas(
        self,
        coordinator,
        nuevo_gasto,
        nuevo_formulario,
        contexto_implementacion,
        contexto_programacion,
        contar,
    ):
        items = [
            GastoItemCreate(gasto=nuevo_gasto(), contexto=contexto_implementacion()),
            GastoItemCreate(gasto=nuevo_gasto(), contexto=contexto_programacion()),
        ]

        resultado = coordinator.create_multiple(nuevo_formulario(), items)

        assert isinstance(resultado.error, ValidationError)
        assert contar(Formulario) == 0


class TestUpdate:
    """Only set fields are written; totals follow neto and iva."""

    def test_neto_change_recomputes_totals(self, coordinator, crear_gasto):
        gasto = crear_gasto()

        resultado = coordinator.update(gasto.id, gasto=GastoCorePatch(neto=2000.0))

        assert resultado.error is None
        assert resultado.data.neto == 2000.0
        assert resultado.data.iva_monto == 420.0
        assert resultado.data.importe_total == 2420.0
        assert resultado.data.proveedor == "Estudio Sonido SRL"

    def test_iva_change_recomputes_totals(self, coordinator, crear_gasto):
        gasto = crear_gasto()

        resultado = coordinator.update(gasto.id, gasto=GastoCorePatch(iva=10.5))

        assert resultado.data.importe_total == 1105.0

    def test_partial_update_of_every_part(self, coordinator, crear_gasto):
        gasto = crear_gasto()

        resultado = coordinator.update(
            gasto.id,
            gasto=GastoCorePatch(estado_pago="aprobado"),
            formulario=FormularioPatch(nombre_campana="Invierno 2025"),
            contexto=ContextoImplementacionData(rubro="Iluminación"),
        )

        assert resultado.error is None
        assert resultado.data.estado_pago == "aprobado"
        assert resultado.data.importe_total == 1210.0
        assert resultado.data.formulario.nombre_campana == "Invierno 2025"
        assert resultado.data.formulario.mes_gestion == "2025-03"
        assert resultado.data.contexto.rubro == "Iluminación"
        assert resultado.data.contexto.factura_emitida_a == "Radio Mitre SA"

    def test_unknown_gasto(self, coordinator):
        resultado = coordinator.update(404, gasto=GastoCorePatch(neto=1.0))

        assert isinstance(resultado.error, NotFoundError)

    def test_context_of_other_area(self, coordinator, crear_gasto):
        gasto = crear_gasto()

        resultado = coordinator.update(gasto.id, contexto=ContextoTecnicaData(rubro="x"))

        assert isinstance(resultado.error, ValidationError)

    def test_unknown_orden_reference(self, coordinator, crear_gasto, contexto_implementacion):
        gasto = crear_gasto()

        resultado = coordinator.update(
            gasto.id, contexto=contexto_implementacion(orden_publicidad_id=321)
        )

        assert isinstance(resultado.error, NotFoundError)

    def test_empty_update_returns_current_gasto(self, coordinator, crear_gasto):
        gasto = crear_gasto()

        resultado = coordinator.update(gasto.id)

        assert resultado.error is None
        assert resultado.data.id == gasto.id

    @pytest.mark.parametrize("estado_pago", ["aprobado", "rechazado", "pagado"])
    def test_locked_gasto_cannot_be_patched(
        self, db, coordinator, crear_gasto, estado_pago
    ):
        gasto = crear_gasto(estado_pago=estado_pago)

        resultado = coordinator.update(
            gasto.id,
            gasto=GastoCorePatch(neto=2000.0),
            formulario=FormularioPatch(nombre_campana="Invierno 2025"),
        )

        assert isinstance(resultado.error, ConstraintViolation)
        assert estado_pago in resultado.error.message
        actual = GastoReader(db).read(gasto.id).data
        assert actual.neto == 1000.0
        assert actual.formulario.nombre_campana == "Verano 2025"

    def test_editable_states_allow_state_change(self, coordinator, crear_gasto):
        gasto = crear_gasto(estado_pago="requiere_info")

        resultado = coordinator.update(gasto.id, gasto=GastoCorePatch(estado_pago="pagado"))

        assert resultado.error is None
        assert resultado.data.estado_pago == "pagado"
        bloqueado = coordinator.update(gasto.id, gasto=GastoCorePatch(estado_pago="creado"))
        assert isinstance(bloqueado.error, ConstraintViolation)

    def test_failed_later_step_keeps_earlier_under_compensacion(
        self, db, crear_gasto, store_con_fallos
    ):
        gasto = crear_gasto()
        coordinator = GastoWriteCoordinator(
            db,
            estrategia="compensacion",
            store_factory=store_con_fallos({(Formulario, "update"): 1}),
        )

        resultado = coordinator.update(
            gasto.id,
            gasto=GastoCorePatch(neto=2000.0),
            formulario=FormularioPatch(nombre_campana="Invierno 2025"),
        )

        assert isinstance(resultado.error, PersistenceError)
        assert resultado.error.details["aplicados"] == ["comprobante"]
        actual = GastoReader(db).read(gasto.id).data
        assert actual.neto == 2000.0
        assert actual.formulario.nombre_campana == "Verano 2025"

    def test_failed_later_step_is_atomic_under_transaccion(
        self, db, crear_gasto, store_con_fallos
    ):
        gasto = crear_gasto()
        coordinator = GastoWriteCoordinator(
            db,
            estrategia="transaccion",
            store_factory=store_con_fallos({(Formulario, "update"): 1}),
        )

        resultado = coordinator.update(
            gasto.id,
            gasto=GastoCorePatch(neto=2000.0),
            formulario=FormularioPatch(nombre_campana="Invierno 2025"),
        )

        assert isinstance(resultado.error, PersistenceError)
        assert GastoReader(db).read(gasto.id).data.neto == 1000.0


class TestRemove:
    """Deleting the last gasto of a formulario deletes the formulario too."""

    def test_remove_last_child_deletes_header(self, coordinator, crear_gasto, contar):
        gasto = crear_gasto()

        resultado = coordinator.remove(gasto.id)

        assert resultado.success is True
        assert resultado.error is None
        assert contar(Comprobante) == 0
        assert contar(ContextoImplementacion) == 0
        assert contar(Formulario) == 0

    def test_remove_non_last_child_keeps_header(self, db, coordinator, crear_gasto, contar):
        primero = crear_gasto()
        segundo = crear_gasto(formulario=primero.formulario.id)

        resultado = coordinator.remove(primero.id)

        assert resultado.success is True
        assert contar(Formulario) == 1
        restante = GastoReader(db).read(segundo.id)
        assert restante.error is None
        assert restante.data.formulario.id == primero.formulario.id

    def test_remove_unknown(self, coordinator):
        resultado = coordinator.remove(12345)

        assert resultado.success is False
        assert isinstance(resultado.error, NotFoundError)

    def test_orphan_cleanup_failure_is_not_surfaced(
        self, db, crear_gasto, store_con_fallos, contar, caplog
    ):
        gasto = crear_gasto()
        coordinator = GastoWriteCoordinator(
            db,
            estrategia="compensacion",
            store_factory=store_con_fallos({(Formulario, "delete"): 1}),
        )

        with caplog.at_level(logging.WARNING, logger="app.services.gasto_coordinator"):
            resultado = coordinator.remove(gasto.id)

        assert resultado.success is True
        assert contar(Comprobante) == 0
        assert contar(Formulario) == 1
        assert "huérfano" in caplog.text

    def test_orphan_count_failure_is_not_surfaced(
        self, db, crear_gasto, store_con_fallos, contar, caplog
    ):
        gasto = crear_gasto()
        coordinator = GastoWriteCoordinator(
            db,
            estrategia="compensacion",
            store_factory=store_con_fallos({(ContextoImplementacion, "count_by_filter"): 1}),
        )

        with caplog.at_level(logging.WARNING, logger="app.services.gasto_coordinator"):
            resultado = coordinator.remove(gasto.id)

        assert resultado.success is True
        assert resultado.error is None
        assert contar(Comprobante) == 0
        assert contar(Formulario) == 1
        assert "huérfano" in caplog.text

    def test_locked_gasto_cannot_be_removed(self, coordinator, crear_gasto, contar):
        gasto = crear_gasto(estado_pago="pagado")

        resultado = coordinator.remove(gasto.id)

        assert resultado.success is False
        assert isinstance(resultado.error, ConstraintViolation)
        assert contar(Comprobante) == 1
        assert contar(Formulario) == 1
