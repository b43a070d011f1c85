"""
Reconciliation of a list-valued child collection against its stored rows.

Used for the items of an orden de publicidad, whose natural key is the
``programa`` name. ``reconcile`` is a pure function: it reads the current
rows and the desired list and returns a plan, without touching the
database. The service applies the plan afterwards.

Matching rules, highest priority first:

1. Incoming item with an id that exists → update that row.
2. Incoming item without id whose key matches an existing row not already
   claimed by rule 1 → update that row in place.
3. Anything else → create.

An existing row is deleted only when neither its id nor its key appears in
the incoming list. Duplicate keys or repeated ids in the incoming list, or a
plan whose resulting collection would hold a key twice, produce a
``ConstraintViolation`` and empty sets.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Sequence

from app.services.errors import ConstraintViolation


def clave_programa(item: Any) -> str:
    return item.programa


@dataclass(frozen=True)
class PlanReconciliacion:
    """Create/update/delete sets computed by ``reconcile``.

    Attributes:
        to_create: Incoming items that become new rows, in incoming order.
        to_update: ``(existing_id, incoming_item)`` pairs, in incoming order.
        to_delete: Ids of existing rows to remove, in existing order.
        error: ``ConstraintViolation`` when the plan was rejected; all sets
            are empty in that case.
    """

    to_create: tuple[Any, ...] = ()
    to_update: tuple[tuple[int, Any], ...] = ()
    to_delete: tuple[int, ...] = ()
    error: ConstraintViolation | None = field(default=None, compare=False)

    @property
    def vacio(self) -> bool:
        return not (self.to_create or self.to_update or self.to_delete)


def _duplicadas(claves: Iterable[str]) -> list[str]:
    return sorted(clave for clave, n in Counter(claves).items() if n > 1)


def reconcile(
    existing: Sequence[Any],
    incoming: Sequence[Any],
    *,
    key: Callable[[Any], str] = clave_programa,
) -> PlanReconciliacion:
    """Compute the plan that turns ``existing`` into ``incoming``.

    Args:
        existing: Stored rows; each exposes ``id`` and the natural key.
        incoming: Desired items; ``id`` is optional (``None`` or missing).
        key: Natural-key accessor, ``programa`` by default.

    Returns:
        A ``PlanReconciliacion``. Calling it twice with the same inputs
        returns equal plans.
    """
    duplicadas = _duplicadas(key(item) for item in incoming)
    if duplicadas:
        return PlanReconciliacion(
            error=ConstraintViolation(
                f"Programas duplicados detectados: {', '.join(duplicadas)}",
                claves=duplicadas,
            )
        )
    ids_repetidos = sorted(
        item_id
        for item_id, n in Counter(
            getattr(item, "id", None) for item in incoming
        ).items()
        if item_id is not None and n > 1
    )
    if ids_repetidos:
        return PlanReconciliacion(
            error=ConstraintViolation(
                f"Items con ID repetido: {', '.join(str(i) for i in ids_repetidos)}",
                details={"ids": ids_repetidos},
            )
        )

    por_id = {row.id: row for row in existing}
    id_por_clave = {key(row): row.id for row in existing}
    ids_entrantes = {
        getattr(item, "id", None)
        for item in incoming
        if getattr(item, "id", None) is not None
    }
    claves_entrantes = {key(item) for item in incoming}
    reclamados = {item_id for item_id in ids_entrantes if item_id in por_id}

    to_update: list[tuple[int, Any]] = []
    to_create: list[Any] = []
    for item in incoming:
        item_id = getattr(item, "id", None)
        if item_id is not None and item_id in por_id:
            to_update.append((item_id, item))
            continue
        if item_id is None:
            candidato = id_por_clave.get(key(item))
            if candidato is not None and candidato not in reclamados:
                reclamados.add(candidato)
                to_update.append((candidato, item))
                continue
        to_create.append(item)

    to_delete = [
        row.id
        for row in existing
        if row.id not in ids_entrantes and key(row) not in claves_entrantes
    ]

    # Rows neither updated nor deleted keep their current key.
    actualizados = {row_id for row_id, _ in to_update}
    conservados = [
        key(row)
        for row in existing
        if row.id not in actualizados and row.id not in to_delete
    ]
    finales = (
        [key(item) for _, item in to_update]
        + [key(item) for item in to_create]
        + conservados
    )
    colisiones = _duplicadas(finales)
    if colisiones:
        return PlanReconciliacion(
            error=ConstraintViolation(
                f"El programa ya existe en la orden: {', '.join(colisiones)}",
                claves=colisiones,
            )
        )

    return PlanReconciliacion(
        to_create=tuple(to_create),
        to_update=tuple(to_update),
        to_delete=tuple(to_delete),
    )
