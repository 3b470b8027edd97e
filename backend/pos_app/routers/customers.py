from fastapi import APIRouter, Depends, Query
from typing import List, Optional

from pos_app.schemas.catalog import Customer, CustomerCreate
from pos_app.services.billing_session import BillingSession, get_billing_session

router = APIRouter(prefix="/api/customers", tags=["customers"])


@router.get("", response_model=List[Customer])
def list_customers(
    query: Optional[str] = Query(None, description="Search by name, phone or email"),
    session: BillingSession = Depends(get_billing_session),
):
    """Customers in the session snapshot, optionally filtered"""
    if query:
        return session.catalog.search_customers(query)
    return session.catalog.customers


@router.post("/refresh", response_model=List[Customer])
async def refresh_customers(session: BillingSession = Depends(get_billing_session)):
    return await session.catalog.refresh_customers()


@router.post("", response_model=Customer, status_code=201)
async def create_customer(
    data: CustomerCreate,
    session: BillingSession = Depends(get_billing_session),
):
    """Create a customer in the directory and add it to the snapshot"""
    return await session.catalog.create_customer(data)
