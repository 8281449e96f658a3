"""ProductImage model - remote file name of one product picture."""

from sqlalchemy import ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base


class ProductImage(Base):
    """Image row for a product.

    Maps to existing `tb_image` table. ``path`` is the file name on the
    remote store; it is empty only between the placeholder insert and the
    rename that follows the upload.
    """

    __tablename__ = "tb_image"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    product_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("tb_products.id"),
        nullable=False,
        index=True,
    )
    path: Mapped[str] = mapped_column(String(255), nullable=False, default="")

    def __repr__(self) -> str:
        return f"<ProductImage(id={self.id}, product_id={self.product_id}, path='{self.path}')>"
