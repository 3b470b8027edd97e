from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime
from decimal import Decimal


class ReceiptLineResponse(BaseModel):
    line_no: int
    product_id: int
    barcode: str
    description: str
    quantity: int
    unit_price: Decimal
    reference_mrp: Decimal
    line_subtotal: Decimal

    class Config:
        from_attributes = True


class ReceiptResponse(BaseModel):
    id: int
    bill_number: str
    customer_id: Optional[int]
    customer_name: Optional[str]
    customer_phone: Optional[str]
    payment_method: str
    currency: str
    discount_percent: Decimal
    tax_percent: Decimal
    subtotal: Decimal
    discount_amount: Decimal
    tax_amount: Decimal
    total: Decimal
    opened_at: datetime
    completed_at: datetime
    sale_lines: List[ReceiptLineResponse] = []

    class Config:
        from_attributes = True


class ReceiptListResponse(BaseModel):
    id: int
    bill_number: str
    customer_name: Optional[str]
    payment_method: str
    total: Decimal
    completed_at: datetime

    class Config:
        from_attributes = True
