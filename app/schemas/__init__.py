"""Pydantic schemas for request/response validation."""

from app.schemas.common import ErrorResponse, HealthResponse
from app.schemas.product import (
    CatalogProductView,
    MessageResponse,
    ProducerProductView,
    ProducerSummary,
    ProductCreate,
    ProductCreateResult,
    ProductDetailView,
    ProductUpdate,
    ProductUpdateResult,
    ProductView,
)

__all__ = [
    "ErrorResponse",
    "HealthResponse",
    "CatalogProductView",
    "MessageResponse",
    "ProducerProductView",
    "ProducerSummary",
    "ProductCreate",
    "ProductCreateResult",
    "ProductDetailView",
    "ProductUpdate",
    "ProductUpdateResult",
    "ProductView",
]
