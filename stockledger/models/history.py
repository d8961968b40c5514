from sqlalchemy import Column, DateTime, Float, ForeignKey, Index, Integer, String

from stockledger.database.base import Base


class ProductHistory(Base):
    __tablename__ = "product_history"

    id = Column(Integer, primary_key=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)

    change = Column(String, nullable=False)
    timestamp = Column(DateTime(timezone=True), nullable=False)

    price = Column(Float)
    seller = Column(String)
    buyer = Column(String)

    __table_args__ = (
        Index("idx_product_history_product", "product_id"),
    )


__all__ = ["ProductHistory"]
