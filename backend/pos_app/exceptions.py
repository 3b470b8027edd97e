"""
Error taxonomy for the billing core and barcode acquisition.

Every error here is recoverable by the cashier: the API layer turns them into
JSON responses carrying `code` and a user-facing message.
"""
from typing import Optional


class PosError(Exception):
    """Base class for user-visible billing errors"""
    code: str = "pos_error"
    status_code: int = 400
    default_message: str = "Request could not be completed"

    def __init__(self, message: Optional[str] = None, **details):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)


class ProductNotFoundError(PosError):
    code = "product_not_found"
    status_code = 404
    default_message = "Product not found"


class InvalidQuantityError(PosError):
    code = "invalid_quantity"
    status_code = 422
    default_message = "Quantity must be at least 1"


class InvalidPercentageError(PosError):
    code = "invalid_percentage"
    status_code = 422
    default_message = "Percentage must be between 0 and 100"


class LineIndexError(PosError):
    code = "line_not_found"
    status_code = 404
    default_message = "No such line in the bill"


class EmptyBillError(PosError):
    code = "empty_bill"
    status_code = 409
    default_message = "Please add items to the bill"


class BillCompletedError(PosError):
    code = "bill_completed"
    status_code = 409
    default_message = "Bill is already completed. Start a new bill to continue"


class NoCameraFoundError(PosError):
    code = "no_camera_found"
    status_code = 503
    default_message = "No camera found"


class CameraStreamError(PosError):
    code = "camera_stream_error"
    status_code = 503
    default_message = "Camera stream failed. Restart the scanner to continue"


class InvalidFileTypeError(PosError):
    code = "invalid_file_type"
    status_code = 415
    default_message = "Please upload an image file"


class NoBarcodeInImageError(PosError):
    code = "no_barcode_in_image"
    status_code = 422
    default_message = "No barcode found in the image. Try a clearer photo"


class DecodeFailedError(PosError):
    code = "decode_failed"
    status_code = 422
    default_message = "Could not read the barcode from the image"


class DirectoryServiceError(PosError):
    code = "directory_unavailable"
    status_code = 502
    default_message = "Directory service request failed"


class InvalidPaymentMethodError(PosError):
    code = "invalid_payment_method"
    status_code = 422
    default_message = "Payment method must be cash, card or upi"


class CustomerNotFoundError(PosError):
    code = "customer_not_found"
    status_code = 404
    default_message = "Customer not found"
