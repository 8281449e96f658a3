"""Producer model - seller account linked to an authenticated user."""

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base


class Producer(Base):
    """Producer - one per authenticated user, owns products.

    Maps to existing `tb_producers` table. Rows are created by the
    account service; this service only reads them.
    """

    __tablename__ = "tb_producers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False, unique=True, index=True)
    business_name: Mapped[str | None] = mapped_column("bussinesName", String(255), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)

    def __repr__(self) -> str:
        return f"<Producer(id={self.id}, user_id={self.user_id})>"
