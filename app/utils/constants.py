"""
Application-wide constants for the Administración de Gastos backend.

Allowed values of enumerated fields live as ``Literal`` types in the
schemas; this module only keeps the values the services branch on.
"""

from typing import Final

# Areas whose gastos are charged against an orden de publicidad item
AREAS_CON_ORDEN: Final[list[str]] = ["implementacion", "tecnica"]

# Cash payments skip proveedor / empresa / factura validations
FORMA_PAGO_EFECTIVO: Final[str] = "efectivo"

TIPO_MOVIMIENTO_EGRESO: Final[str] = "egreso"

# Payment states that freeze a comprobante: no further edits or deletion
ESTADOS_PAGO_BLOQUEADOS: Final[list[str]] = ["aprobado", "rechazado", "pagado"]
