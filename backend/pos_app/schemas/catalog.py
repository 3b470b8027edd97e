from pydantic import BaseModel, Field, field_validator
from typing import Optional, Literal
from decimal import Decimal


class CategoryRef(BaseModel):
    name: str


class CatalogProduct(BaseModel):
    """Product record as served by the inventory directory (read-only)"""
    product_id: int
    barcode: Optional[str] = None
    name: str
    price: Decimal = Field(..., ge=0)
    final_selling_price: Optional[Decimal] = Field(None, ge=0)
    cost_price: Decimal = Field(Decimal("0"), ge=0)
    sku: Optional[str] = None
    quantity: int = 0  # Stock on hand
    low_stock_threshold: int = 0
    category: Optional[CategoryRef] = None

    class Config:
        from_attributes = True
        extra = "ignore"

    @field_validator("final_selling_price", "barcode", "sku", mode="before")
    @classmethod
    def _blank_to_none(cls, value):
        # The directory sends "" for optional form fields left empty
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @property
    def selling_price(self) -> Decimal:
        if self.final_selling_price is not None:
            return self.final_selling_price
        return self.price


class Customer(BaseModel):
    customer_id: int
    name: str
    phone: str
    email: Optional[str] = None
    address: Optional[str] = None
    credit_balance: Decimal = Decimal("0")
    credit_limit: Decimal = Decimal("0")

    class Config:
        from_attributes = True
        extra = "ignore"


class CustomerCreate(BaseModel):
    name: str = Field(..., min_length=1)
    phone: str = Field(..., min_length=1)
    email: Optional[str] = None
    address: Optional[str] = None


class LowStockAlert(BaseModel):
    product_id: int
    name: str
    stock: int
    threshold: int
    status: Literal["Critical", "Warning"]
