from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, Date, DateTime, Float, Index, Integer, String

from stockledger.core.constants import STATUS_IN_STOCK
from stockledger.database.base import Base


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True)
    product_id = Column(String, nullable=False)

    name = Column(String, nullable=False)
    category = Column(String, nullable=False)
    purchase_date = Column(Date, nullable=False)

    price = Column(Float)
    stock = Column(Integer, nullable=False, default=0)
    status = Column(String(20), nullable=False, default=STATUS_IN_STOCK)

    sale_date = Column(Date)
    sale_quantity = Column(Integer)
    sale_price = Column(Float)
    seller = Column(String)
    buyer = Column(String)

    archived = Column(Boolean, nullable=False, default=False)

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        Index("idx_products_product_id", "product_id"),
        Index("idx_products_status_sale_date", "status", "sale_date"),
    )


__all__ = ["Product"]
