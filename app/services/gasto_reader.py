"""
Composed read model of a gasto.

A gasto lives in three tables: ``comprobante`` (core financial row),
``formulario`` (grouping header) and one ``contexto_<area>`` table. The
reader joins them into a single ``GastoResponse``.

Design notes
------------
- Context and formulario are INNER joins: a comprobante whose context row
  was never written (or was compensated away) is reported as not found, so
  half-written gastos never reach callers.
- Every query uses ``populate_existing()`` so values come from the database
  and not from objects the writer still holds in the session.
- Totals per formulario (``neto_total``, ``importe_total``,
  ``gastos_count``) are aggregated in SQL on every call; nothing is cached.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import func
from sqlalchemy.orm import Query, Session

from app.models.comprobante import Comprobante
from app.models.formulario import Formulario
from app.models.item_orden_publicidad import ItemOrdenPublicidad
from app.models.orden_publicidad import OrdenPublicidad
from app.schemas.common import PaginationParams
from app.schemas.gasto import (
    FormularioAgrupado,
    FormularioResponse,
    GastoResponse,
    OrdenResumen,
    TablaGastosResponse,
)
from app.services.areas import AreaConfig, get_area
from app.services.errors import NotFoundError, Resultado, ResultadoLista
from app.services.store import fila_a_dict

logger = logging.getLogger(__name__)


class GastoReader:
    """Read side of the gasto aggregate.

    Args:
        db: Active SQLAlchemy session.
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    # -----------------------------------------------------------------------
    # Single gasto
    # -----------------------------------------------------------------------

    def read(self, gasto_id: int) -> Resultado[GastoResponse]:
        """Return the composed gasto ``gasto_id``.

        Returns:
            ``Resultado`` with the ``GastoResponse``, or with a
            ``NotFoundError`` when the comprobante, its context or its
            formulario is missing.
        """
        area = (
            self.db.query(Comprobante.area_origen)
            .filter(Comprobante.id == gasto_id)
            .scalar()
        )
        if area is None:
            return Resultado(error=NotFoundError(f"Gasto con ID {gasto_id} no encontrado."))

        row = self._query_area(area).filter(Comprobante.id == gasto_id).first()
        if row is None:
            logger.warning("read: comprobante %d sin contexto de %s", gasto_id, area)
            return Resultado(error=NotFoundError(f"Gasto con ID {gasto_id} no encontrado."))

        logger.debug("read: gasto_id=%d area=%s", gasto_id, area)
        return Resultado(data=self._build_response(area, row))

    def read_many(self, gasto_ids: list[int]) -> ResultadoLista[GastoResponse]:
        """Read several gastos in order; the first missing one fails the batch."""
        gastos: list[GastoResponse] = []
        for gasto_id in gasto_ids:
            resultado = self.read(gasto_id)
            if resultado.error is not None:
                return ResultadoLista(error=resultado.error)
            gastos.append(resultado.data)
        return ResultadoLista(data=gastos)

    # -----------------------------------------------------------------------
    # Lists
    # -----------------------------------------------------------------------

    def list_gastos(
        self,
        area: str,
        pagination: PaginationParams,
        formulario_id: int | None = None,
        estado: str | None = None,
        estado_pago: str | None = None,
        orden_publicidad_id: int | None = None,
        item_orden_publicidad_id: int | None = None,
    ) -> TablaGastosResponse:
        """Return one page of composed gastos of ``area``, newest first.

        Args:
            area: Area whose gastos are listed.
            pagination: Page number and page size.
            formulario_id: Restrict to one formulario.
            estado: Restrict to a comprobante estado.
            estado_pago: Restrict to a payment estado.
            orden_publicidad_id: Restrict to one order (implementacion/tecnica).
            item_orden_publicidad_id: Restrict to one order item.

        Returns:
            A ``TablaGastosResponse`` with the page rows and the total count.
        """
        config = get_area(area)
        contexto = config.modelo
        q = self._query_area(area)
        if formulario_id is not None:
            q = q.filter(Formulario.id == formulario_id)
        if estado is not None:
            q = q.filter(Comprobante.estado == estado)
        if estado_pago is not None:
            q = q.filter(Comprobante.estado_pago == estado_pago)
        if config.usa_orden:
            if orden_publicidad_id is not None:
                q = q.filter(contexto.orden_publicidad_id == orden_publicidad_id)
            if item_orden_publicidad_id is not None:
                q = q.filter(contexto.item_orden_publicidad_id == item_orden_publicidad_id)

        total: int = q.count()
        offset = (pagination.page - 1) * pagination.page_size
        filas = (
            q.order_by(Comprobante.id.desc())
            .offset(offset)
            .limit(pagination.page_size)
            .all()
        )
        rows = [self._build_response(area, fila) for fila in filas]

        logger.debug(
            "list_gastos: area=%s page=%d size=%d total=%d returned=%d",
            area, pagination.page, pagination.page_size, total, len(rows),
        )
        return TablaGastosResponse(
            rows=rows, total=total, page=pagination.page, page_size=pagination.page_size
        )

    def list_by_formulario(self, formulario_id: int) -> ResultadoLista[GastoResponse]:
        formulario = self.db.get(Formulario, formulario_id)
        if formulario is None:
            return ResultadoLista(
                error=NotFoundError(f"Formulario con ID {formulario_id} no encontrado.")
            )
        filas = (
            self._query_area(formulario.area)
            .filter(Formulario.id == formulario_id)
            .order_by(Comprobante.id)
            .all()
        )
        return ResultadoLista(data=[self._build_response(formulario.area, f) for f in filas])

    def list_formularios(self, area: str) -> list[FormularioAgrupado]:
        """Return the formularios of ``area`` with totals of their gastos."""
        filas = self._query_agrupados(area).order_by(Formulario.id.desc()).all()
        logger.debug("list_formularios: area=%s count=%d", area, len(filas))
        return [self._build_agrupado(fila) for fila in filas]

    def get_formulario(self, formulario_id: int) -> Resultado[FormularioAgrupado]:
        area = (
            self.db.query(Formulario.area)
            .filter(Formulario.id == formulario_id)
            .scalar()
        )
        if area is None:
            return Resultado(
                error=NotFoundError(f"Formulario con ID {formulario_id} no encontrado.")
            )
        fila = self._query_agrupados(area).filter(Formulario.id == formulario_id).one()
        return Resultado(data=self._build_agrupado(fila))

    # -----------------------------------------------------------------------
    # Internal helpers
    # -----------------------------------------------------------------------

    def _query_area(self, area: str) -> Query:
        config: AreaConfig = get_area(area)
        contexto = config.modelo
        entidades: list[Any] = [Comprobante, contexto, Formulario]
        if config.usa_orden:
            entidades += [OrdenPublicidad, ItemOrdenPublicidad]

        q = (
            self.db.query(*entidades)
            .join(contexto, contexto.comprobante_id == Comprobante.id)
            .join(Formulario, Formulario.id == contexto.formulario_id)
            .filter(Comprobante.area_origen == area)
        )
        if config.usa_orden:
            q = q.outerjoin(
                OrdenPublicidad, OrdenPublicidad.id == contexto.orden_publicidad_id
            ).outerjoin(
                ItemOrdenPublicidad,
                ItemOrdenPublicidad.id == contexto.item_orden_publicidad_id,
            )
        return q.populate_existing()

    def _query_agrupados(self, area: str) -> Query:
        contexto = get_area(area).modelo
        return (
            self.db.query(
                Formulario,
                func.count(Comprobante.id).label("gastos_count"),
                func.coalesce(func.sum(Comprobante.neto), 0).label("neto_total"),
                func.coalesce(func.sum(Comprobante.importe_total), 0).label("importe_total"),
            )
            .outerjoin(contexto, contexto.formulario_id == Formulario.id)
            .outerjoin(Comprobante, Comprobante.id == contexto.comprobante_id)
            .filter(Formulario.area == area)
            .group_by(Formulario.id)
            .populate_existing()
        )

    @staticmethod
    def _build_agrupado(fila: Any) -> FormularioAgrupado:
        formulario, gastos_count, neto_total, importe_total = fila
        datos = fila_a_dict(formulario)
        datos.update(
            gastos_count=gastos_count,
            neto_total=round(float(neto_total), 2),
            importe_total=round(float(importe_total), 2),
        )
        return FormularioAgrupado.model_validate(datos)

    @staticmethod
    def _build_response(area: str, fila: Any) -> GastoResponse:
        comprobante, contexto, formulario, *orden = fila
        datos = fila_a_dict(comprobante)
        datos["formulario"] = FormularioResponse.model_validate(formulario)

        contexto_datos = fila_a_dict(contexto)
        contexto_datos["area"] = area
        datos["contexto"] = contexto_datos

        op, item = orden if orden else (None, None)
        datos["orden"] = (
            OrdenResumen(
                orden_publicidad_id=op.id,
                numero_orden=op.numero_orden,
                responsable=op.responsable,
                marca=op.marca,
                nombre_campana=op.nombre_campana,
                mes_servicio=op.mes_servicio,
                item_orden_publicidad_id=item.id if item is not None else None,
                programa=item.programa if item is not None else None,
            )
            if op is not None
            else None
        )
        return GastoResponse.model_validate(datos)
