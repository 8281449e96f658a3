"""SQLAlchemy models for the product catalog."""

from app.models.base import Base
from app.models.producer import Producer
from app.models.product import Product, ProductStatus
from app.models.product_image import ProductImage
from app.models.unit_extent import UnitExtent

__all__ = [
    "Base",
    "Producer",
    "Product",
    "ProductStatus",
    "ProductImage",
    "UnitExtent",
]
