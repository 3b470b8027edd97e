from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from typing import List

from pos_app.database import get_db
from pos_app.schemas.receipt import ReceiptListResponse, ReceiptResponse
from pos_app.services.receipt_service import receipt_service

router = APIRouter(prefix="/api/receipts", tags=["receipts"])


@router.get("", response_model=List[ReceiptListResponse])
def list_receipts(
    limit: int = Query(20, ge=1, le=200),
    db: Session = Depends(get_db),
):
    """Most recent completed sales"""
    return receipt_service.list_recent(db, limit=limit)


@router.get("/last", response_model=ReceiptResponse)
def get_last_receipt(db: Session = Depends(get_db)):
    """Last completed sale, used to reprint the last bill"""
    sale = receipt_service.get_last(db)
    if not sale:
        raise HTTPException(status_code=404, detail="No completed sales yet")
    return sale


@router.get("/{bill_number}", response_model=ReceiptResponse)
def get_receipt(bill_number: str, db: Session = Depends(get_db)):
    sale = receipt_service.get_by_bill_number(bill_number, db)
    if not sale:
        raise HTTPException(status_code=404, detail="Receipt not found")
    return sale
