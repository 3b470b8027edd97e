from fastapi import APIRouter, Depends
from typing import List

from pos_app.schemas.catalog import CatalogProduct, LowStockAlert
from pos_app.services.billing_session import BillingSession, get_billing_session
from pos_app.utils.stock_rules import low_stock_alerts

router = APIRouter(prefix="/api/catalog", tags=["catalog"])


@router.get("/products", response_model=List[CatalogProduct])
def list_products(session: BillingSession = Depends(get_billing_session)):
    """Products in the current session snapshot"""
    return session.catalog.products


@router.post("/refresh", response_model=List[CatalogProduct])
async def refresh_products(session: BillingSession = Depends(get_billing_session)):
    """Re-fetch the product snapshot from the directory"""
    return await session.catalog.refresh_products()


@router.get("/low-stock", response_model=List[LowStockAlert])
def low_stock(session: BillingSession = Depends(get_billing_session)):
    """Products whose stock is below their low-stock threshold"""
    return low_stock_alerts(session.catalog.products)
