"""
Write coordinator for the gasto aggregate.

One logical gasto is persisted as three rows written in sequence, because
each step needs the id produced by the previous one:

1. ``formulario`` header (skipped when an existing header id is given).
2. ``comprobante`` core row.
3. ``contexto_<area>`` row referencing both.

Every write goes through a unit of work (``app.services.unit_of_work``). With
the default ``compensacion`` strategy each step commits on its own and a
failure at step 2 or 3 deletes what earlier steps created, newest first.
With ``transaccion`` the steps share one database transaction.

Design notes
------------
- Referenced rows (existing formulario, orden de publicidad, item) are
  checked before the first write, so a missing reference never leaves
  anything behind.
- ``create_multiple`` rolls back the whole batch: a failure at item *i*
  deletes the comprobantes of items ``1..i-1`` and, if this call created it,
  the formulario.
- ``update`` applies the comprobante, formulario and context patches one
  after the other. Under ``compensacion`` nothing is undone when a later
  patch fails; the patches already applied stay committed and a warning is
  logged. Under ``transaccion`` the three patches are atomic.
- ``remove`` deletes the comprobante (its context cascades) and then, as a
  separate best-effort step, the formulario if it has no gastos left. A
  failure in that cleanup is logged and does not affect the result.
- A comprobante in a closed payment state (``aprobado``, ``rechazado``,
  ``pagado``) is locked: ``update`` and ``remove`` refuse it with
  ``ConstraintViolation`` before writing anything.
- Results are always re-read through ``GastoReader``; nothing is returned
  from the input payloads.
"""

from __future__ import annotations

import logging
from functools import partial
from typing import Any

from sqlalchemy.orm import Session

from app.config import get_settings
from app.models.comprobante import Comprobante
from app.models.formulario import Formulario
from app.models.item_orden_publicidad import ItemOrdenPublicidad
from app.models.orden_publicidad import OrdenPublicidad
from app.schemas.gasto import (
    ContextoData,
    FormularioCreate,
    FormularioPatch,
    GastoCorePatch,
    GastoCreate,
    GastoItemCreate,
    GastoResponse,
)
from app.services.areas import AreaConfig, get_area
from app.services.errors import (
    ConstraintViolation,
    DomainError,
    NotFoundError,
    PartialWriteFailure,
    Resultado,
    ResultadoEliminacion,
    ResultadoLista,
    ValidationError,
    from_store_error,
)
from app.services.gasto_reader import GastoReader
from app.services.store import StoreError, TableStore
from app.services.unit_of_work import StoreFactory, UnidadDeTrabajo, crear_unidad_de_trabajo
from app.utils.constants import ESTADOS_PAGO_BLOQUEADOS, TIPO_MOVIMIENTO_EGRESO

logger = logging.getLogger(__name__)


def calcular_importes(neto: float, iva: float) -> dict[str, float]:
    """Return ``iva_monto`` and ``importe_total`` for a net amount and IVA rate.

    Args:
        neto: Net amount.
        iva: IVA rate as a percentage (21 means 21 %).

    Returns:
        ``{"iva_monto": ..., "importe_total": ...}`` rounded to cents.
    """
    iva_monto = round(neto * iva / 100, 2)
    return {"iva_monto": iva_monto, "importe_total": round(neto * (1 + iva / 100), 2)}


def _gasto_bloqueado(gasto_id: int, estado_pago: str) -> ConstraintViolation:
    return ConstraintViolation(
        f'No se puede modificar un comprobante con estado "{estado_pago}".',
        details={"gasto_id": gasto_id, "estado_pago": estado_pago},
    )


def _sin_nulos_invalidos(modelo: type, valores: dict[str, Any]) -> dict[str, Any]:
    # Explicit nulls on NOT NULL columns mean "leave as is".
    columnas = modelo.__table__.columns
    return {
        campo: valor
        for campo, valor in valores.items()
        if valor is not None or columnas[campo].nullable
    }


class GastoWriteCoordinator:
    """Create, update and delete gastos across their three tables.

    Args:
        db: Active SQLAlchemy session.
        estrategia: ``"compensacion"`` or ``"transaccion"``; defaults to
            ``Settings.ESTRATEGIA_ESCRITURA``.
        store_factory: ``TableStore`` constructor, replaced in tests to
            inject store failures.
        reader: Reader used to return composed results.
    """

    def __init__(
        self,
        db: Session,
        *,
        estrategia: str | None = None,
        store_factory: StoreFactory = TableStore,
        reader: GastoReader | None = None,
    ) -> None:
        settings = get_settings()
        self.db = db
        self.estrategia = estrategia
        self.store_factory = store_factory
        self.reader = reader or GastoReader(db)
        self.iva_default = settings.IVA_DEFAULT
        self.moneda_default = settings.MONEDA_DEFAULT

    # -----------------------------------------------------------------------
    # create
    # -----------------------------------------------------------------------

    def create(
        self,
        gasto: GastoCreate,
        formulario: FormularioCreate | int,
        contexto: ContextoData,
    ) -> Resultado[GastoResponse]:
        """Create one gasto under a new or an existing formulario.

        Args:
            gasto: Comprobante fields.
            formulario: New header fields, or the id of an existing header of
                the same area.
            contexto: Area context; its ``area`` decides the context table.

        Returns:
            ``Resultado`` with the composed gasto, or with
            ``NotFoundError`` / ``ValidationError`` (nothing written),
            ``PartialWriteFailure`` (compensated) or ``PersistenceError``.
        """
        area = contexto.area
        try:
            self._verificar_formulario(formulario, area)
            self._verificar_referencias(
                area,
                getattr(contexto, "orden_publicidad_id", None),
                getattr(contexto, "item_orden_publicidad_id", None),
            )
        except DomainError as exc:
            return Resultado(error=exc)

        uow = self._unidad()
        try:
            with uow:
                formulario_id = self._insertar_formulario(uow, formulario, area)
                gasto_id = self._insertar_gasto(uow, formulario_id, gasto, contexto)
                uow.commit()
        except DomainError as exc:
            logger.warning("create: area=%s %s: %s", area, exc.codigo, exc.message)
            return Resultado(error=exc)
        except StoreError as exc:
            return Resultado(error=from_store_error(exc))

        logger.info(
            "create: gasto_id=%d formulario_id=%d area=%s", gasto_id, formulario_id, area
        )
        return self.reader.read(gasto_id)

    def create_multiple(
        self,
        formulario: FormularioCreate | int,
        items: list[GastoItemCreate],
    ) -> ResultadoLista[GastoResponse]:
        """Create N gastos of one area under a single formulario.

        All-or-nothing: when item *i* fails, every comprobante created for
        the previous items and the formulario created by this call are
        deleted before the error is returned.

        Returns:
            ``ResultadoLista`` with the composed gastos in input order, or a
            single error. If re-reading fails after a successful write the
            list is empty and the error is the reader's.
        """
        if not items:
            return ResultadoLista(
                error=ValidationError(
                    "Debe agregar al menos un gasto.",
                    errores=[{"field": "items", "message": "Debe agregar al menos un gasto"}],
                )
            )
        areas = {item.contexto.area for item in items}
        if len(areas) > 1:
            return ResultadoLista(
                error=ValidationError(
                    "Todos los gastos de un formulario deben ser de la misma área.",
                    errores=[{"field": "items", "message": f"Áreas mezcladas: {sorted(areas)}"}],
                )
            )
        area = items[0].contexto.area

        try:
            self._verificar_formulario(formulario, area)
            for item in items:
                self._verificar_referencias(
                    area,
                    getattr(item.contexto, "orden_publicidad_id", None),
                    getattr(item.contexto, "item_orden_publicidad_id", None),
                )
        except DomainError as exc:
            return ResultadoLista(error=exc)

        gasto_ids: list[int] = []
        uow = self._unidad()
        try:
            with uow:
                formulario_id = self._insertar_formulario(uow, formulario, area)
                for indice, item in enumerate(items, start=1):
                    try:
                        gasto_ids.append(
                            self._insertar_gasto(uow, formulario_id, item.gasto, item.contexto)
                        )
                    except PartialWriteFailure as exc:
                        raise PartialWriteFailure(
                            f"Gasto #{indice}: {exc.message}",
                            paso=exc.paso,
                            store_code=exc.store_code,
                            details={"item": indice, "revertidos": list(gasto_ids)},
                        ) from exc
                uow.commit()
        except DomainError as exc:
            logger.warning(
                "create_multiple: area=%s items=%d %s: %s",
                area, len(items), exc.codigo, exc.message,
            )
            return ResultadoLista(error=exc)
        except StoreError as exc:
            return ResultadoLista(error=from_store_error(exc))

        logger.info(
            "create_multiple: formulario_id=%d area=%s gasto_ids=%s",
            formulario_id, area, gasto_ids,
        )
        return self.reader.read_many(gasto_ids)

    # -----------------------------------------------------------------------
    # update
    # -----------------------------------------------------------------------

    def update(
        self,
        gasto_id: int,
        gasto: GastoCorePatch | None = None,
        formulario: FormularioPatch | None = None,
        contexto: ContextoData | None = None,
    ) -> Resultado[GastoResponse]:
        """Patch the comprobante, formulario and context of a gasto.

        Only fields explicitly set on each patch are written. When ``neto``
        or ``iva`` changes, ``iva_monto`` and ``importe_total`` are
        recomputed from the resulting values.

        Returns:
            ``Resultado`` with the re-read gasto or the first error. Under
            ``compensacion`` patches applied before the failing one remain.
        """
        comprobante = self.db.get(Comprobante, gasto_id)
        if comprobante is None:
            return Resultado(error=NotFoundError(f"Gasto con ID {gasto_id} no encontrado."))
        if comprobante.estado_pago in ESTADOS_PAGO_BLOQUEADOS:
            return Resultado(error=_gasto_bloqueado(gasto_id, comprobante.estado_pago))
        area = comprobante.area_origen
        config = get_area(area)
        fila_contexto = (
            self.db.query(config.modelo)
            .filter(config.modelo.comprobante_id == gasto_id)
            .first()
        )
        if fila_contexto is None:
            return Resultado(error=NotFoundError(f"Gasto con ID {gasto_id} no encontrado."))
        contexto_id = fila_contexto.id
        formulario_id = fila_contexto.formulario_id

        patch_core = gasto.model_dump(exclude_unset=True) if gasto else {}
        patch_formulario = formulario.model_dump(exclude_unset=True) if formulario else {}
        patch_contexto: dict[str, Any] = {}
        if contexto is not None:
            if contexto.area != area:
                return Resultado(
                    error=ValidationError(
                        f"El gasto {gasto_id} es de {area}, no de {contexto.area}.",
                        errores=[{"field": "contexto.area", "message": "Área incorrecta"}],
                    )
                )
            patch_contexto = contexto.model_dump(exclude_unset=True, exclude={"area"})
            if config.usa_orden:
                try:
                    self._verificar_referencias(
                        area,
                        patch_contexto.get(
                            "orden_publicidad_id", fila_contexto.orden_publicidad_id
                        ),
                        patch_contexto.get(
                            "item_orden_publicidad_id", fila_contexto.item_orden_publicidad_id
                        ),
                    )
                except DomainError as exc:
                    return Resultado(error=exc)

        patch_core = _sin_nulos_invalidos(Comprobante, patch_core)
        if "neto" in patch_core or "iva" in patch_core:
            neto = patch_core.get("neto", float(comprobante.neto))
            iva = patch_core.get("iva", float(comprobante.iva))
            patch_core.update(calcular_importes(neto, iva))
        pasos = [
            ("comprobante", Comprobante, gasto_id, patch_core),
            ("formulario", Formulario, formulario_id, _sin_nulos_invalidos(Formulario, patch_formulario)),
            ("contexto", config.modelo, contexto_id, _sin_nulos_invalidos(config.modelo, patch_contexto)),
        ]

        aplicados: list[str] = []
        uow = self._unidad()
        try:
            with uow:
                for nombre, modelo, row_id, patch in pasos:
                    if not patch:
                        continue
                    try:
                        uow.store(modelo).update(row_id, patch)
                    except StoreError as exc:
                        error = from_store_error(exc, f"No se pudo actualizar {nombre} del gasto.")
                        error.details["aplicados"] = list(aplicados)
                        raise error from exc
                    aplicados.append(nombre)
                uow.commit()
        except DomainError as exc:
            if aplicados and uow.autocommit:
                logger.warning(
                    "update: gasto_id=%d falló tras aplicar %s; esos cambios no se revierten",
                    gasto_id, aplicados,
                )
            return Resultado(error=exc)
        except StoreError as exc:
            return Resultado(error=from_store_error(exc))

        logger.info("update: gasto_id=%d tablas=%s", gasto_id, aplicados)
        return self.reader.read(gasto_id)

    # -----------------------------------------------------------------------
    # remove
    # -----------------------------------------------------------------------

    def remove(self, gasto_id: int) -> ResultadoEliminacion:
        """Delete a gasto and, if it was the last one, its formulario.

        Returns:
            ``ResultadoEliminacion(success=True)`` once the comprobante is
            gone, whatever happens to the formulario cleanup.
        """
        fila = (
            self.db.query(Comprobante.area_origen, Comprobante.estado_pago)
            .filter(Comprobante.id == gasto_id)
            .first()
        )
        if fila is None:
            return ResultadoEliminacion(
                success=False,
                error=NotFoundError(f"Gasto con ID {gasto_id} no encontrado."),
            )
        area, estado_pago = fila
        if estado_pago in ESTADOS_PAGO_BLOQUEADOS:
            return ResultadoEliminacion(
                success=False, error=_gasto_bloqueado(gasto_id, estado_pago)
            )
        config = get_area(area)
        formulario_id = (
            self.db.query(config.modelo.formulario_id)
            .filter(config.modelo.comprobante_id == gasto_id)
            .scalar()
        )

        uow = self._unidad()
        try:
            with uow:
                uow.store(Comprobante).delete(gasto_id)
                uow.commit()
        except StoreError as exc:
            return ResultadoEliminacion(
                success=False,
                error=from_store_error(exc, "No se pudo eliminar el gasto."),
            )

        logger.info("remove: gasto_id=%d area=%s", gasto_id, area)
        if formulario_id is not None:
            self._limpiar_formulario(formulario_id, config)
        return ResultadoEliminacion(success=True)

    # -----------------------------------------------------------------------
    # Internal helpers
    # -----------------------------------------------------------------------

    def _unidad(self) -> UnidadDeTrabajo:
        return crear_unidad_de_trabajo(self.db, self.estrategia, self.store_factory)

    def _verificar_formulario(self, formulario: FormularioCreate | int, area: str) -> None:
        if not isinstance(formulario, int):
            return
        existente = self.db.get(Formulario, formulario)
        if existente is None:
            raise NotFoundError(
                f"Formulario con ID {formulario} no encontrado.",
                details={"field": "formulario_id"},
            )
        if existente.area != area:
            raise ValidationError(
                f"El formulario {formulario} pertenece a {existente.area}, no a {area}.",
                errores=[{"field": "formulario_id", "message": "Área del formulario distinta"}],
            )

    def _verificar_referencias(
        self, area: str, orden_id: int | None, item_id: int | None
    ) -> None:
        if not get_area(area).usa_orden:
            return
        if orden_id is not None and self.db.get(OrdenPublicidad, orden_id) is None:
            raise NotFoundError(
                f"Orden de publicidad con ID {orden_id} no encontrada.",
                details={"field": "orden_publicidad_id"},
            )
        if item_id is None:
            return
        item = self.db.get(ItemOrdenPublicidad, item_id)
        if item is None:
            raise NotFoundError(
                f"Item de orden de publicidad con ID {item_id} no encontrado.",
                details={"field": "item_orden_publicidad_id"},
            )
        if orden_id is not None and item.orden_publicidad_id != orden_id:
            raise ValidationError(
                f"El item {item_id} no pertenece a la orden {orden_id}.",
                errores=[
                    {"field": "item_orden_publicidad_id", "message": "Item de otra orden"}
                ],
            )

    def _insertar_formulario(
        self, uow: UnidadDeTrabajo, formulario: FormularioCreate | int, area: str
    ) -> int:
        if isinstance(formulario, int):
            return formulario
        store = uow.store(Formulario)
        try:
            row = store.insert({**formulario.model_dump(), "area": area})
        except StoreError as exc:
            raise from_store_error(exc, "No se pudo crear el formulario.") from exc
        formulario_id = row.id
        uow.register_compensation(
            f"formulario {formulario_id}", partial(store.delete, formulario_id)
        )
        return formulario_id

    def _insertar_gasto(
        self,
        uow: UnidadDeTrabajo,
        formulario_id: int,
        gasto: GastoCreate,
        contexto: ContextoData,
    ) -> int:
        area = contexto.area
        config: AreaConfig = get_area(area)

        comprobantes = uow.store(Comprobante)
        try:
            comprobante = comprobantes.insert(self._valores_comprobante(area, gasto))
        except StoreError as exc:
            raise PartialWriteFailure(
                "No se pudo crear el comprobante del gasto.",
                paso="comprobante",
                store_code=exc.code,
                details=exc.details,
            ) from exc
        comprobante_id = comprobante.id
        uow.register_compensation(
            f"comprobante {comprobante_id}", partial(comprobantes.delete, comprobante_id)
        )

        valores = contexto.model_dump(exclude={"area"}, exclude_none=True)
        valores.update(comprobante_id=comprobante_id, formulario_id=formulario_id)
        try:
            uow.store(config.modelo).insert(valores)
        except StoreError as exc:
            raise PartialWriteFailure(
                f"No se pudo crear el contexto de {area}.",
                paso="contexto",
                store_code=exc.code,
                details=exc.details,
            ) from exc
        return comprobante_id

    def _valores_comprobante(self, area: str, gasto: GastoCreate) -> dict[str, Any]:
        valores = gasto.model_dump()
        iva = gasto.iva if gasto.iva is not None else self.iva_default
        valores.update(
            area_origen=area,
            tipo_movimiento=TIPO_MOVIMIENTO_EGRESO,
            moneda=gasto.moneda or self.moneda_default,
            iva=iva,
            **calcular_importes(gasto.neto, iva),
        )
        return valores

    def _limpiar_formulario(self, formulario_id: int, config: AreaConfig) -> None:
        try:
            restantes = self.store_factory(self.db, config.modelo).count_by_filter(
                formulario_id=formulario_id
            )
            if restantes:
                logger.debug(
                    "remove: formulario %d conserva %d gastos", formulario_id, restantes
                )
                return
            self.store_factory(self.db, Formulario).delete(formulario_id)
        except StoreError as exc:
            logger.warning(
                "remove: no se pudo eliminar el formulario huérfano %d (code=%s)",
                formulario_id, exc.code,
            )
            return
        logger.info("remove: formulario %d eliminado, sin gastos restantes", formulario_id)
