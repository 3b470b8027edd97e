"""
The billing session of this terminal: one directory snapshot, one cart
engine and the two barcode sources feeding it.
"""
import logging
from typing import Optional

from pos_app.config import settings
from pos_app.exceptions import PosError
from pos_app.schemas.bill import BillCustomerResponse, BillResponse, LineItemResponse
from pos_app.services.barcode_service import (
    BarcodeDecoder,
    CameraBarcodeSource,
    ConfirmationCue,
    ImageBarcodeSource,
    TerminalBell,
    VideoDeviceProvider,
)
from pos_app.services.cart_engine import Bill, CartEngine, LineItem
from pos_app.services.catalog_service import CatalogService
from pos_app.services.directory_client import DirectoryClient, directory_client

logger = logging.getLogger(__name__)


def line_to_response(index: int, item: LineItem) -> LineItemResponse:
    return LineItemResponse(
        line_index=index,
        product_id=item.product_id,
        barcode=item.barcode,
        display_name=item.display_name,
        unit_price=item.unit_price,
        reference_mrp=item.reference_mrp,
        unit_cost=item.unit_cost,
        quantity=item.quantity,
        line_subtotal=item.line_subtotal,
    )


def bill_to_response(bill: Bill) -> BillResponse:
    totals = bill.totals
    return BillResponse(
        bill_number=bill.bill_number,
        status=bill.status,
        items=[line_to_response(i, item) for i, item in enumerate(bill.items)],
        item_count=sum(item.quantity for item in bill.items),
        discount_percent=bill.discount_percent,
        tax_percent=bill.tax_percent,
        subtotal=totals.subtotal,
        discount_amount=totals.discount_amount,
        taxable_amount=totals.taxable_amount,
        tax_amount=totals.tax_amount,
        total=totals.total,
        currency=settings.currency,
        payment_method=bill.payment_method,
        customer=BillCustomerResponse.model_validate(bill.customer) if bill.customer else None,
        opened_at=bill.opened_at,
        completed_at=bill.completed_at,
    )


class BillingSession:
    def __init__(
        self,
        client: Optional[DirectoryClient] = None,
        decoder: Optional[BarcodeDecoder] = None,
        cue: Optional[ConfirmationCue] = None,
        devices: Optional[VideoDeviceProvider] = None,
    ):
        self.catalog = CatalogService(client or directory_client)
        self.engine = CartEngine(self.catalog)
        cue = cue if cue is not None else TerminalBell()
        self.image_source = ImageBarcodeSource(self.engine, decoder=decoder, cue=cue)
        self.camera_source = CameraBarcodeSource(
            self.engine,
            decoder=decoder,
            cue=cue,
            devices=devices,
            on_error=self._on_camera_error,
        )

    def _on_camera_error(self, error: PosError) -> None:
        logger.warning(f"Camera scan error [{error.code}]: {error.message}")

    def bill_response(self) -> BillResponse:
        return bill_to_response(self.engine.snapshot())

    async def load_directory(self) -> None:
        """Pull product and customer snapshots; failures leave the previous snapshot in place"""
        try:
            await self.catalog.refresh_products()
        except PosError as e:
            logger.error(f"Product directory unavailable at startup: {e.message}")
        try:
            await self.catalog.refresh_customers()
        except PosError as e:
            logger.error(f"Customer directory unavailable at startup: {e.message}")

    def close(self) -> None:
        self.camera_source.stop()


billing_session = BillingSession()


def get_billing_session() -> BillingSession:
    """FastAPI dependency returning the terminal's billing session"""
    return billing_session
