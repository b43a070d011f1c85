"""
Translation of service result errors into HTTP responses.

Services return ``{data, error}`` envelopes; routers call ``raise_for_error``
so a domain error becomes an ``HTTPException`` whose ``detail`` is
``{"codigo", "message", "details"}``.

Status mapping
--------------
- ``ValidationError``     → 422
- ``NotFoundError``       → 404
- ``ConstraintViolation`` → 409
- ``PartialWriteFailure`` → 500
- ``PersistenceError``    → 500
"""

from __future__ import annotations

import logging

from fastapi import HTTPException, status

from app.services.errors import (
    ConstraintViolation,
    DomainError,
    NotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)

_STATUS: list[tuple[type[DomainError], int]] = [
    (ValidationError, 422),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ConstraintViolation, status.HTTP_409_CONFLICT),
]


def status_for(error: DomainError) -> int:
    for clase, codigo in _STATUS:
        if isinstance(error, clase):
            return codigo
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def raise_for_error(error: DomainError | None) -> None:
    """Raise the ``HTTPException`` matching ``error``; do nothing when ``None``."""
    if error is None:
        return
    codigo = status_for(error)
    if codigo >= 500:
        logger.error("%s: %s details=%s", error.codigo, error.message, error.details)
    raise HTTPException(status_code=codigo, detail=error.to_dict())
