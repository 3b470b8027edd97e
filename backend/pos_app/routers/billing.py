from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
import logging

from pos_app.database import get_db
from pos_app.exceptions import CustomerNotFoundError
from pos_app.schemas.bill import (
    BillModifiersUpdate,
    BillResponse,
    CompleteSaleResponse,
    CustomerAssign,
    QuantityUpdate,
    ScanRequest,
    ScanResponse,
)
from pos_app.services.billing_session import (
    BillingSession,
    get_billing_session,
    line_to_response,
)
from pos_app.services.receipt_service import receipt_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/bill", tags=["billing"])


@router.get("", response_model=BillResponse)
def get_bill(session: BillingSession = Depends(get_billing_session)):
    """Current bill with derived totals"""
    return session.bill_response()


@router.post("/scan", response_model=ScanResponse)
def scan_barcode(request: ScanRequest, session: BillingSession = Depends(get_billing_session)):
    """Add a product by barcode (keyboard wedge or manual entry)"""
    change = session.engine.scan_barcode(request.barcode)
    return ScanResponse(
        action=change.action,
        line_index=change.line_index,
        item=line_to_response(change.line_index, change.item),
        bill=session.bill_response(),
    )


@router.put("/items/{line_index}", response_model=BillResponse)
def set_quantity(
    line_index: int,
    update: QuantityUpdate,
    session: BillingSession = Depends(get_billing_session),
):
    session.engine.set_quantity(line_index, update.quantity)
    return session.bill_response()


@router.delete("/items/{line_index}", response_model=BillResponse)
def remove_line(line_index: int, session: BillingSession = Depends(get_billing_session)):
    removed = session.engine.remove_line(line_index)
    logger.info(f"Removed line {line_index} ({removed.barcode}) from bill")
    return session.bill_response()


@router.post("/clear", response_model=BillResponse)
def clear_bill(session: BillingSession = Depends(get_billing_session)):
    session.engine.clear()
    return session.bill_response()


@router.patch("/modifiers", response_model=BillResponse)
def update_modifiers(
    update: BillModifiersUpdate,
    session: BillingSession = Depends(get_billing_session),
):
    """Update discount %, tax % and/or payment method"""
    session.engine.set_modifiers(
        discount_percent=update.discount_percent,
        tax_percent=update.tax_percent,
        payment_method=update.payment_method,
    )
    return session.bill_response()


@router.put("/customer", response_model=BillResponse)
def assign_customer(
    assign: CustomerAssign,
    session: BillingSession = Depends(get_billing_session),
):
    """Attach a directory customer to the bill, or detach with customer_id null"""
    if assign.customer_id is None:
        session.engine.set_customer(None)
        return session.bill_response()

    customer = session.catalog.get_customer(assign.customer_id)
    if not customer:
        raise CustomerNotFoundError(customer_id=assign.customer_id)
    session.engine.set_customer(customer)
    return session.bill_response()


@router.post("/complete", response_model=CompleteSaleResponse)
def complete_sale(
    session: BillingSession = Depends(get_billing_session),
    db: Session = Depends(get_db),
):
    """
    Finalize the bill and archive it for receipt printing.

    A bill that was completed but failed to archive is archived again on retry.
    """
    finalized = session.engine.finalized
    if finalized is None:
        finalized = session.engine.complete_sale()
    else:
        logger.info(f"Bill {finalized.bill_number} already completed, archiving again")
    sale = receipt_service.archive(finalized, db)
    return CompleteSaleResponse(bill=session.bill_response(), receipt_id=sale.id)


@router.post("/new", response_model=BillResponse)
def new_bill(session: BillingSession = Depends(get_billing_session)):
    """Discard the current bill and open an empty one"""
    session.engine.new_bill()
    return session.bill_response()
