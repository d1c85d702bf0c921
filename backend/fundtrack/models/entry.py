from sqlalchemy import Integer, Date, DateTime, Float, func, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from fundtrack.db.base import Base
from fundtrack.models.stock import Stock

class Entry(Base):
    __tablename__ = "entries"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    stock_id: Mapped[int] = mapped_column(ForeignKey("stocks.id", ondelete="CASCADE"), index=True)
    date: Mapped[Date] = mapped_column(Date, index=True)
    type: Mapped[str | None] = mapped_column(String(16), nullable=True)
    unit_price: Mapped[float] = mapped_column(Float)
    total_value: Mapped[float] = mapped_column(Float)
    remarks: Mapped[str | None] = mapped_column(String(256), nullable=True)

    created_at: Mapped[DateTime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[DateTime | None] = mapped_column(DateTime, nullable=True, onupdate=func.now())

    stock: Mapped[Stock] = relationship(lazy="joined")

    __table_args__ = (
        UniqueConstraint("stock_id", "date", name="uq_entries_stock_date"),
    )
