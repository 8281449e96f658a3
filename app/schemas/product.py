"""Product schemas for catalog requests and responses.

Field names follow the wire format consumed by the marketplace
front-end (``productId``, ``unitExtent``, ``bussinesName``), which in
turn follows the legacy column names.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Columns a producer may change through an update
MUTABLE_FIELDS = (
    "name",
    "description",
    "category_id",
    "price",
    "bulk_price",
    "bulk_quantity",
    "stock",
    "unitExtent",
)


def _optional_float(value: Any) -> float | None:
    """Parse a bulk price; missing, unparseable or zero becomes None."""
    if value is None or value == "":
        return None
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return None
    return parsed or None


def _optional_int(value: Any) -> int | None:
    """Parse a bulk quantity; missing, unparseable or zero becomes None."""
    if value is None or value == "":
        return None
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        return None
    return parsed or None


class ProductFields(BaseModel):
    """Product columns as supplied by a producer."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    category_id: int | None = None
    price: float
    bulk_price: float | None = None
    bulk_quantity: int | None = None
    stock: int | None = None
    unitExtent: str | None = Field(default=None, max_length=50)

    @field_validator("bulk_price", mode="before")
    @classmethod
    def coerce_bulk_price(cls, value: Any) -> float | None:
        return _optional_float(value)

    @field_validator("bulk_quantity", mode="before")
    @classmethod
    def coerce_bulk_quantity(cls, value: Any) -> int | None:
        return _optional_int(value)


class ProductCreate(ProductFields):
    """Fields required to create a product."""


class ProductUpdate(ProductFields):
    """Partial update; only keys that were explicitly set are applied."""

    name: str | None = Field(default=None, min_length=1, max_length=255)  # type: ignore[assignment]
    price: float | None = None  # type: ignore[assignment]

    def changes(self) -> dict[str, Any]:
        """Explicitly supplied fields, keyed by wire name."""
        return {
            key: value
            for key, value in self.model_dump(exclude_unset=True).items()
            if key in MUTABLE_FIELDS
        }


class ProducerSummary(BaseModel):
    """Producer details attached to public product views."""

    bussinesName: str | None = None
    phone: str | None = None


class ProductView(BaseModel):
    """Product with its ordered image file names."""

    productId: int
    name: str
    description: str | None = None
    category_id: int | None = None
    price: float
    bulk_price: float | None = None
    bulk_quantity: int | None = None
    stock: int | None = None
    unitExtent: str | None = None
    images: list[str] = Field(default_factory=list)


class ProducerProductView(ProductView):
    """Row of a producer's own listing, with the resolved unit id."""

    unitExtentId: int | None = None


class CatalogProductView(ProducerProductView):
    """Row of the public listing, with unit id and producer summary."""

    producer: ProducerSummary


class ProductDetailView(ProductView):
    """Single product with its producer summary."""

    producer: ProducerSummary


class ProductCreateResult(ProductCreate):
    """Echo of a created product with the generated image names."""

    productId: int
    images: list[str] = Field(default_factory=list)


class ProductUpdateResult(ProductUpdate):
    """Echo of the applied changes with every current image name.

    Serialize with ``exclude_unset`` so only supplied fields are echoed.
    """

    productId: int
    images: list[str] = Field(default_factory=list)


class MessageResponse(BaseModel):
    """Plain status message."""

    message: str
