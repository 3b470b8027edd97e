"""
Cart/Bill Engine - assembles the active bill from scanned barcodes.

Owns a single mutable Bill. Totals are derived on read from the line items
and the bill-level modifiers, so they can never go stale. All mutations run
under one re-entrant lock so scans arriving from the camera thread and from
HTTP requests are applied one at a time.
"""
import copy
import logging
import threading
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Optional, Protocol, Tuple

from pos_app.config import settings
from pos_app.exceptions import (
    BillCompletedError,
    EmptyBillError,
    InvalidPaymentMethodError,
    InvalidPercentageError,
    InvalidQuantityError,
    LineIndexError,
    ProductNotFoundError,
)
from pos_app.schemas.catalog import CatalogProduct, Customer
from pos_app.utils.bill_math import BillTotals, compute_totals, is_valid_percent, line_subtotal

logger = logging.getLogger(__name__)

PAYMENT_METHODS = ("cash", "card", "upi")

BILL_OPEN = "open"
BILL_COMPLETED = "completed"


class ProductLookup(Protocol):
    def find_by_barcode(self, barcode: str) -> Optional[CatalogProduct]:
        ...


@dataclass
class LineItem:
    product_id: int
    barcode: str
    display_name: str
    unit_price: Decimal
    reference_mrp: Decimal
    unit_cost: Decimal
    quantity: int = 1

    @property
    def line_subtotal(self) -> Decimal:
        return line_subtotal(self.unit_price, self.quantity)


@dataclass
class BillCustomer:
    customer_id: int
    name: str
    phone: str


@dataclass
class Bill:
    bill_number: str
    tax_percent: Decimal
    discount_percent: Decimal = Decimal("0")
    items: List[LineItem] = field(default_factory=list)
    customer: Optional[BillCustomer] = None
    payment_method: str = "cash"
    status: str = BILL_OPEN
    opened_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    completed_at: Optional[datetime] = None

    @property
    def totals(self) -> BillTotals:
        return compute_totals(
            (item.line_subtotal for item in self.items),
            self.discount_percent,
            self.tax_percent,
        )

    @property
    def subtotal(self) -> Decimal:
        return self.totals.subtotal

    @property
    def discount_amount(self) -> Decimal:
        return self.totals.discount_amount

    @property
    def taxable_amount(self) -> Decimal:
        return self.totals.taxable_amount

    @property
    def tax_amount(self) -> Decimal:
        return self.totals.tax_amount

    @property
    def total(self) -> Decimal:
        return self.totals.total

    @property
    def is_completed(self) -> bool:
        return self.status == BILL_COMPLETED


@dataclass(frozen=True)
class LineItemChange:
    """Outcome of a successful scan"""
    action: str  # "added" or "incremented"
    line_index: int
    item: LineItem


@dataclass(frozen=True)
class FinalizedBill:
    """Read-only copy of a bill taken at sale completion"""
    bill_number: str
    items: Tuple[LineItem, ...]
    discount_percent: Decimal
    tax_percent: Decimal
    customer: Optional[BillCustomer]
    payment_method: str
    opened_at: datetime
    completed_at: datetime

    @property
    def totals(self) -> BillTotals:
        return compute_totals(
            (item.line_subtotal for item in self.items),
            self.discount_percent,
            self.tax_percent,
        )


def new_bill_number(opened_at: datetime) -> str:
    return f"B{opened_at:%Y%m%d}-{uuid.uuid4().hex[:6].upper()}"


def line_item_from_product(product: CatalogProduct, barcode: str) -> LineItem:
    return LineItem(
        product_id=product.product_id,
        barcode=barcode,
        display_name=product.name,
        unit_price=product.selling_price,
        reference_mrp=product.price,
        unit_cost=product.cost_price,
        quantity=1,
    )


class CartEngine:
    """Barcode-driven bill assembly for one billing session"""

    def __init__(self, catalog: ProductLookup, default_tax_percent: Optional[Decimal] = None):
        self._catalog = catalog
        self._default_tax_percent = (
            default_tax_percent if default_tax_percent is not None else settings.default_tax_percent
        )
        self._lock = threading.RLock()
        self._bill = self._fresh_bill()
        self._finalized: Optional[FinalizedBill] = None

    def _fresh_bill(self) -> Bill:
        opened_at = datetime.now(timezone.utc)
        return Bill(
            bill_number=new_bill_number(opened_at),
            tax_percent=self._default_tax_percent,
            payment_method=settings.default_payment_method,
            opened_at=opened_at,
        )

    def _ensure_open(self) -> None:
        if self._bill.is_completed:
            raise BillCompletedError(bill_number=self._bill.bill_number)

    def _line(self, line_index: int) -> LineItem:
        if not 0 <= line_index < len(self._bill.items):
            raise LineIndexError(f"No line at position {line_index}", line_index=line_index)
        return self._bill.items[line_index]

    @property
    def bill(self) -> Bill:
        """
        The live bill. Reads are not locked and may see a half-applied
        mutation from the camera thread; use snapshot() for a stable view.
        """
        return self._bill

    @property
    def finalized(self) -> Optional[FinalizedBill]:
        """Read-only copy of the current bill once completed, None while open"""
        return self._finalized

    def snapshot(self) -> Bill:
        """Deep copy of the current bill, safe to read outside the lock"""
        with self._lock:
            return copy.deepcopy(self._bill)

    def scan_barcode(self, code: str) -> LineItemChange:
        """
        Add one unit of the product matching `code` to the bill.

        A barcode already on the bill increments that line instead of adding
        a duplicate.

        Raises:
            ProductNotFoundError: no catalog product carries this barcode
            BillCompletedError: the bill has been finalized
        """
        barcode = (code or "").strip()
        with self._lock:
            self._ensure_open()
            if not barcode:
                raise ProductNotFoundError("Empty barcode", barcode=code)

            product = self._catalog.find_by_barcode(barcode)
            if product is None:
                logger.info(f"Scan {barcode}: no matching product")
                raise ProductNotFoundError(f"Product not found for barcode {barcode}", barcode=barcode)

            for index, item in enumerate(self._bill.items):
                if item.barcode == barcode:
                    # Unit price stays as captured on the first scan
                    item.quantity += 1
                    logger.info(f"Scan {barcode}: quantity now {item.quantity} on line {index}")
                    return LineItemChange("incremented", index, replace(item))

            item = line_item_from_product(product, barcode)
            self._bill.items.append(item)
            index = len(self._bill.items) - 1
            logger.info(f"Scan {barcode}: added '{item.display_name}' at {item.unit_price}")
            return LineItemChange("added", index, replace(item))

    def set_quantity(self, line_index: int, new_quantity: int) -> LineItem:
        with self._lock:
            self._ensure_open()
            if new_quantity < 1:
                raise InvalidQuantityError(quantity=new_quantity)
            item = self._line(line_index)
            item.quantity = new_quantity
            return replace(item)

    def remove_line(self, line_index: int) -> LineItem:
        with self._lock:
            self._ensure_open()
            self._line(line_index)
            return self._bill.items.pop(line_index)

    def clear(self) -> None:
        """Drop all lines; discount and tax settings are kept"""
        with self._lock:
            self._ensure_open()
            self._bill.items = []

    def set_discount(self, percent: Decimal) -> None:
        with self._lock:
            self._ensure_open()
            if not is_valid_percent(percent):
                raise InvalidPercentageError(f"Discount must be between 0 and 100, got {percent}")
            self._bill.discount_percent = percent

    def set_tax(self, percent: Decimal) -> None:
        with self._lock:
            self._ensure_open()
            if not is_valid_percent(percent):
                raise InvalidPercentageError(f"Tax must be between 0 and 100, got {percent}")
            self._bill.tax_percent = percent

    def set_payment_method(self, method: str) -> None:
        with self._lock:
            self._ensure_open()
            if method not in PAYMENT_METHODS:
                raise InvalidPaymentMethodError(method=method)
            self._bill.payment_method = method

    def set_modifiers(
        self,
        discount_percent: Optional[Decimal] = None,
        tax_percent: Optional[Decimal] = None,
        payment_method: Optional[str] = None,
    ) -> None:
        """
        Apply any of discount %, tax % and payment method together.

        Every supplied value is checked before any is applied, so a rejected
        call leaves the bill as it was.
        """
        with self._lock:
            self._ensure_open()
            if discount_percent is not None and not is_valid_percent(discount_percent):
                raise InvalidPercentageError(f"Discount must be between 0 and 100, got {discount_percent}")
            if tax_percent is not None and not is_valid_percent(tax_percent):
                raise InvalidPercentageError(f"Tax must be between 0 and 100, got {tax_percent}")
            if payment_method is not None and payment_method not in PAYMENT_METHODS:
                raise InvalidPaymentMethodError(method=payment_method)

            if discount_percent is not None:
                self._bill.discount_percent = discount_percent
            if tax_percent is not None:
                self._bill.tax_percent = tax_percent
            if payment_method is not None:
                self._bill.payment_method = payment_method

    def set_customer(self, customer: Optional[Customer]) -> None:
        with self._lock:
            self._ensure_open()
            if customer is None:
                self._bill.customer = None
            else:
                self._bill.customer = BillCustomer(
                    customer_id=customer.customer_id,
                    name=customer.name,
                    phone=customer.phone,
                )

    def complete_sale(self) -> FinalizedBill:
        """
        Finalize the bill. This is a local state transition only; archiving
        the sale is the caller's job.

        Raises:
            EmptyBillError: the bill has no lines
            BillCompletedError: the bill was already finalized
        """
        with self._lock:
            self._ensure_open()
            if not self._bill.items:
                raise EmptyBillError()

            bill = self._bill
            bill.status = BILL_COMPLETED
            bill.completed_at = datetime.now(timezone.utc)
            finalized = FinalizedBill(
                bill_number=bill.bill_number,
                items=tuple(replace(item) for item in bill.items),
                discount_percent=bill.discount_percent,
                tax_percent=bill.tax_percent,
                customer=replace(bill.customer) if bill.customer else None,
                payment_method=bill.payment_method,
                opened_at=bill.opened_at,
                completed_at=bill.completed_at,
            )
            self._finalized = finalized
            logger.info(
                f"Bill {bill.bill_number} completed: {len(bill.items)} lines, total {finalized.totals.total}"
            )
            return finalized

    def new_bill(self) -> Bill:
        """Discard the current bill and start an empty one"""
        with self._lock:
            previous = self._bill.bill_number
            self._bill = self._fresh_bill()
            self._finalized = None
            logger.info(f"New bill {self._bill.bill_number} (previous {previous})")
            return self._bill
