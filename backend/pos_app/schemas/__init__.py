from pos_app.schemas.catalog import CatalogProduct, Customer, CustomerCreate, LowStockAlert
from pos_app.schemas.bill import BillResponse, LineItemResponse, ScanResponse, CameraStatusResponse
from pos_app.schemas.receipt import ReceiptResponse, ReceiptLineResponse, ReceiptListResponse

__all__ = [
    "CatalogProduct",
    "Customer",
    "CustomerCreate",
    "LowStockAlert",
    "BillResponse",
    "LineItemResponse",
    "ScanResponse",
    "CameraStatusResponse",
    "ReceiptResponse",
    "ReceiptLineResponse",
    "ReceiptListResponse",
]
