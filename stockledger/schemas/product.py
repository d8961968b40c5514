from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from stockledger.core.constants import STATUS_IN_STOCK


class ProductBase(BaseModel):
    product_id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    category: str = Field(min_length=1)
    purchase_date: date

    @field_validator("product_id", "name", "category")
    @classmethod
    def _strip_required_text(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value


class ProductCreate(ProductBase):
    stock: int = Field(ge=1)
    price: float = Field(ge=0)

    model_config = ConfigDict(extra="ignore")


class ProductUpdate(BaseModel):
    product_id: Optional[str] = Field(default=None, min_length=1)
    name: Optional[str] = Field(default=None, min_length=1)
    category: Optional[str] = Field(default=None, min_length=1)
    purchase_date: Optional[date] = None
    price: Optional[float] = Field(default=None, ge=0)
    stock: Optional[int] = Field(default=None, ge=0)

    model_config = ConfigDict(extra="forbid")

    @field_validator("product_id", "name", "category", "purchase_date", "stock")
    @classmethod
    def _reject_null(cls, value):
        if value is None:
            raise ValueError("cannot be cleared")
        if isinstance(value, str):
            value = value.strip()
            if not value:
                raise ValueError("must not be blank")
        return value


class SaleRequest(BaseModel):
    sale_date: date
    quantity: int = Field(ge=1)
    sale_price: Optional[float] = Field(default=None, ge=0)
    seller: Optional[str] = None
    buyer: Optional[str] = None


class ProductRead(ProductBase):
    id: int
    price: Optional[float] = None
    stock: int
    status: str = STATUS_IN_STOCK
    sale_date: Optional[date] = None
    sale_quantity: Optional[int] = None
    sale_price: Optional[float] = None
    seller: Optional[str] = None
    buyer: Optional[str] = None
    archived: bool = False

    model_config = ConfigDict(from_attributes=True, frozen=True, extra="ignore")


class HistoryRead(BaseModel):
    id: int
    product_id: int
    change: str
    timestamp: datetime
    price: Optional[float] = None
    seller: Optional[str] = None
    buyer: Optional[str] = None

    model_config = ConfigDict(from_attributes=True, frozen=True, extra="ignore")


class ProductReadWithHistory(ProductRead):
    history: List[HistoryRead] = Field(default_factory=list)
