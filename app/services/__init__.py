"""Business logic services."""

from app.services.catalog_service import ProductCatalogService
from app.services.errors import CatalogError, InfrastructureError, NotFoundError, OwnershipError
from app.services.images import ImageUpload, derive_file_name

__all__ = [
    "ProductCatalogService",
    "CatalogError",
    "InfrastructureError",
    "NotFoundError",
    "OwnershipError",
    "ImageUpload",
    "derive_file_name",
]
