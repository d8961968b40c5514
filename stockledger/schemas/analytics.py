from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from stockledger.schemas.product import ProductRead


class DashboardSummary(BaseModel):
    total_products: int
    in_stock: int
    sold: int
    low_stock: int
    recent_products: List[ProductRead] = Field(default_factory=list)


class MonthlyAmount(BaseModel):
    month: str
    amount: float


class PriceHistoryItem(BaseModel):
    id: int
    product_id: int
    product_name: str
    change: str
    price: float
    date: Optional[datetime] = None


class InventoryAnalytics(BaseModel):
    total_inventory_value: float
    total_purchase_cost: float
    total_sales: float
    total_purchased: int
    total_sold: int
    average_purchase_price: float
    monthly_sales: List[MonthlyAmount] = Field(default_factory=list)
    monthly_purchases: List[MonthlyAmount] = Field(default_factory=list)
    price_history: List[PriceHistoryItem] = Field(default_factory=list)
