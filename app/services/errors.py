"""
Domain error taxonomy and result envelopes for the gasto services.

Services never raise expected domain failures to their callers: every public
operation returns one of the envelopes below with either ``data`` or
``error`` set. Inside a service the errors are ordinary exceptions, so helper
functions can ``raise`` them and the public operation converts the first one
into the envelope.

Taxonomy
--------
- ``ValidationError``      — input rejected before any write.
- ``NotFoundError``        — gasto, formulario or referenced FK target missing.
- ``ConstraintViolation``  — duplicate natural key or store uniqueness/FK block.
- ``PartialWriteFailure``  — a later step of a multi-step create failed after
  an earlier step was committed; compensation has already run.
- ``PersistenceError``     — store failure where nothing was left written.
- ``CompensationFailure``  — a compensating delete failed; only logged.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from app.services.store import StoreError

T = TypeVar("T")


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class DomainError(Exception):
    """Base class for every expected failure of the gasto services.

    Attributes:
        codigo: Stable machine-readable category.
        message: Human-readable description (Spanish, shown to users).
        details: Optional extra context (store detail, offending ids, ...).
    """

    codigo = "DOMAIN_ERROR"

    def __init__(self, message: str, details: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        return {"codigo": self.codigo, "message": self.message, "details": self.details}


class ValidationError(DomainError):
    """Input rejected before any write was attempted.

    Attributes:
        errores: ``[{"field": ..., "message": ...}]`` pairs, one per failed rule.
    """

    codigo = "VALIDATION_ERROR"

    def __init__(self, message: str, errores: list[dict[str, str]] | None = None) -> None:
        super().__init__(message, details=errores or [])
        self.errores = errores or []


class NotFoundError(DomainError):
    codigo = "NOT_FOUND"


class ConstraintViolation(DomainError):
    """Duplicate natural key in a batch, or a uniqueness/FK block in the store.

    Attributes:
        claves: Offending natural keys, when known.
    """

    codigo = "CONSTRAINT_VIOLATION"

    def __init__(self, message: str, claves: list[str] | None = None, details: Any = None) -> None:
        super().__init__(message, details=details)
        self.claves = claves or []


class PartialWriteFailure(DomainError):
    """A step of a multi-step create failed after earlier steps were committed.

    Attributes:
        paso: Name of the step that failed, e.g. ``"contexto"``.
        store_code: Store error code of the failing call.
    """

    codigo = "PARTIAL_WRITE_FAILURE"

    def __init__(
        self,
        message: str,
        paso: str,
        store_code: str | None = None,
        details: Any = None,
    ) -> None:
        super().__init__(message, details=details)
        self.paso = paso
        self.store_code = store_code


class PersistenceError(DomainError):
    codigo = "PERSISTENCE_ERROR"


class CompensationFailure(DomainError):
    """A compensating delete failed. Logged, never returned to callers."""

    codigo = "COMPENSATION_FAILURE"


def from_store_error(exc: StoreError, message: str | None = None) -> DomainError:
    """Map a ``StoreError`` onto the domain taxonomy.

    Args:
        exc: The store failure.
        message: Optional replacement for the store message.

    Returns:
        ``NotFoundError`` for ``NOT_FOUND``, ``ConstraintViolation`` for
        uniqueness and FK violations, ``PersistenceError`` otherwise.
    """
    text = message or exc.message
    details = {"table": exc.table, "store_code": exc.code, "detail": exc.details}
    if exc.code == "NOT_FOUND":
        return NotFoundError(text, details=details)
    if exc.code in ("UNIQUE_VIOLATION", "FOREIGN_KEY_VIOLATION"):
        return ConstraintViolation(text, details=details)
    return PersistenceError(text, details=details)


# ---------------------------------------------------------------------------
# Result envelopes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Resultado(Generic[T]):
    """``{data, error}`` envelope for single-entity reads and writes."""

    data: T | None = None
    error: DomainError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class ResultadoLista(Generic[T]):
    """``{data: list, error}`` envelope for multi-item operations."""

    data: list[T] = field(default_factory=list)
    error: DomainError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class ResultadoEliminacion:
    """``{success, error}`` envelope for deletions."""

    success: bool
    error: DomainError | None = None
