"""
Receipt Service - archives finalized bills for reprinting.
The cart engine never persists; the API layer calls archive() after a sale completes.
"""
import logging
from typing import List, Optional
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from pos_app.config import settings
from pos_app.models.sale import Sale
from pos_app.models.sale_line import SaleLine
from pos_app.services.cart_engine import FinalizedBill
from pos_app.utils.bill_math import quantize_money

logger = logging.getLogger(__name__)


class ReceiptService:
    """Service for storing and fetching completed sales"""

    def archive(self, bill: FinalizedBill, db: Session) -> Sale:
        """
        Store a finalized bill with its lines and rounded totals.

        Archiving the same bill twice returns the existing record.
        """
        existing = db.query(Sale).filter(Sale.bill_number == bill.bill_number).first()
        if existing:
            logger.info(f"Bill {bill.bill_number} already archived as sale {existing.id}")
            return existing

        totals = bill.totals
        sale = Sale(
            bill_number=bill.bill_number,
            customer_id=bill.customer.customer_id if bill.customer else None,
            customer_name=bill.customer.name if bill.customer else None,
            customer_phone=bill.customer.phone if bill.customer else None,
            payment_method=bill.payment_method,
            currency=settings.currency,
            discount_percent=bill.discount_percent,
            tax_percent=bill.tax_percent,
            subtotal=quantize_money(totals.subtotal),
            discount_amount=quantize_money(totals.discount_amount),
            tax_amount=quantize_money(totals.tax_amount),
            total=quantize_money(totals.total),
            opened_at=bill.opened_at,
            completed_at=bill.completed_at,
        )
        for line_no, item in enumerate(bill.items, start=1):
            sale.sale_lines.append(SaleLine(
                line_no=line_no,
                product_id=item.product_id,
                barcode=item.barcode,
                description=item.display_name,
                quantity=item.quantity,
                unit_price=item.unit_price,
                reference_mrp=item.reference_mrp,
                unit_cost=item.unit_cost,
                line_subtotal=quantize_money(item.line_subtotal),
            ))

        db.add(sale)
        try:
            db.commit()
        except SQLAlchemyError as e:
            logger.error(f"Failed to archive bill {bill.bill_number}: {e}")
            db.rollback()
            raise
        db.refresh(sale)

        logger.info(f"Archived bill {sale.bill_number} as sale {sale.id} (total {sale.total})")
        return sale

    def get_last(self, db: Session) -> Optional[Sale]:
        return db.query(Sale).order_by(Sale.completed_at.desc(), Sale.id.desc()).first()

    def get_by_bill_number(self, bill_number: str, db: Session) -> Optional[Sale]:
        return db.query(Sale).filter(Sale.bill_number == bill_number).first()

    def list_recent(self, db: Session, limit: int = 20) -> List[Sale]:
        return db.query(Sale).order_by(Sale.completed_at.desc(), Sale.id.desc()).limit(limit).all()


receipt_service = ReceiptService()
