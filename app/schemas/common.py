"""
Shared Pydantic v2 schemas reused across multiple modules.

Provides pagination and message response models so that each domain
module can compose them without duplicating field definitions.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class PaginationParams(BaseModel):
    """Pagination parameters for list endpoints.

    Attributes:
        page: 1-based page number.
        page_size: Number of rows per page (capped at 200 to protect DB).
    """

    page: int = Field(
        default=1,
        ge=1,
        description="Número de página (base 1).",
    )
    page_size: int = Field(
        default=20,
        ge=1,
        le=200,
        description="Registros por página (máximo 200).",
    )


class MessageResponse(BaseModel):
    """Generic message envelope for operations that do not return a resource.

    Returned by DELETE and state-change endpoints when the caller only needs
    a confirmation, not the full updated resource.

    Attributes:
        message: Short human-readable result summary.
        detail: Optional extended information (error description, hint, etc.).
    """

    message: str = Field(..., description="Resumen del resultado de la operación.")
    detail: str | None = Field(
        default=None,
        description="Información adicional (contexto de error, sugerencia, etc.).",
    )

