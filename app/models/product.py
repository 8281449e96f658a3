"""Product model - catalog entry owned by a producer."""

from enum import Enum

from sqlalchemy import Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base


class ProductStatus(str, Enum):
    """Lifecycle status. Deletion is a transition to DISABLE."""

    ACTIVE = "active"
    DISABLE = "disable"


class Product(Base):
    """Product offered by a producer.

    Maps to existing `tb_products` table. ``unitExtent`` holds the unit
    label and is joined to `tb_extend` by name, not by id.
    """

    __tablename__ = "tb_products"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    category_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    price: Mapped[float] = mapped_column(Float, nullable=False)
    bulk_price: Mapped[float | None] = mapped_column(Float, nullable=True)
    bulk_quantity: Mapped[int | None] = mapped_column(Integer, nullable=True)
    stock: Mapped[int | None] = mapped_column(Integer, nullable=True)
    unit_extent: Mapped[str | None] = mapped_column("unitExtent", String(50), nullable=True)
    producer_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("tb_producers.id"),
        nullable=False,
        index=True,
    )
    status: Mapped[str] = mapped_column(
        String(10),
        nullable=False,
        default=ProductStatus.ACTIVE.value,
        server_default=ProductStatus.ACTIVE.value,
    )

    def __repr__(self) -> str:
        return f"<Product(id={self.id}, name='{self.name}', status='{self.status}')>"
