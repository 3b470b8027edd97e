from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime
from decimal import Decimal


class LineItemResponse(BaseModel):
    line_index: int
    product_id: int
    barcode: str
    display_name: str
    unit_price: Decimal
    reference_mrp: Decimal
    unit_cost: Decimal
    quantity: int
    line_subtotal: Decimal


class BillCustomerResponse(BaseModel):
    customer_id: int
    name: str
    phone: str

    class Config:
        from_attributes = True


class BillResponse(BaseModel):
    bill_number: str
    status: str  # open, completed
    items: List[LineItemResponse] = []
    item_count: int
    discount_percent: Decimal
    tax_percent: Decimal
    subtotal: Decimal
    discount_amount: Decimal
    taxable_amount: Decimal
    tax_amount: Decimal
    total: Decimal
    currency: str
    payment_method: str
    customer: Optional[BillCustomerResponse] = None
    opened_at: datetime
    completed_at: Optional[datetime] = None


class ScanRequest(BaseModel):
    barcode: str = Field(..., min_length=1)


class ScanResponse(BaseModel):
    action: str  # added, incremented
    line_index: int
    item: LineItemResponse
    bill: BillResponse


class QuantityUpdate(BaseModel):
    quantity: int


class BillModifiersUpdate(BaseModel):
    # Receipts store percents with two decimals
    discount_percent: Optional[Decimal] = Field(None, decimal_places=2)
    tax_percent: Optional[Decimal] = Field(None, decimal_places=2)
    payment_method: Optional[str] = None


class CustomerAssign(BaseModel):
    customer_id: Optional[int] = None  # None detaches the customer


class CompleteSaleResponse(BaseModel):
    bill: BillResponse
    receipt_id: int


class CameraStatusResponse(BaseModel):
    active: bool
    device: Optional[int] = None
    last_barcode: Optional[str] = None
    last_error: Optional[str] = None
    last_error_code: Optional[str] = None
    scan_count: int = 0


class ErrorResponse(BaseModel):
    detail: str
    error: str
    context: Optional[dict] = None
