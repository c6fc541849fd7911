from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import JSON, Boolean, DateTime, Integer, Numeric, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from gymstore.db.base import Base

CENT = Decimal("0.01")


class Product(Base):
    __tablename__ = "products"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    discount: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    category: Mapped[str] = mapped_column(String(80), nullable=False, index=True)
    sub_category: Mapped[str] = mapped_column(String(80), nullable=False)
    sizes: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    bestseller: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    image_urls: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    video_urls: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    @property
    def effective_price(self) -> Decimal:
        price = Decimal(self.price)
        discounted = price * (Decimal(100) - Decimal(self.discount or 0)) / Decimal(100)
        return discounted.quantize(CENT, rounding=ROUND_HALF_UP)
