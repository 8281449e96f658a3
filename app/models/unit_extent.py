"""UnitExtent model - unit of measure lookup."""

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base


class UnitExtent(Base):
    """Unit of measure reference (e.g. "kg", "unit").

    Maps to existing `tb_extend` table. Products reference it by
    ``name``; there is no foreign key.
    """

    __tablename__ = "tb_extend"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(50), nullable=False)

    def __repr__(self) -> str:
        return f"<UnitExtent(id={self.id}, name='{self.name}')>"
