from pos_app.models.sale import Sale
from pos_app.models.sale_line import SaleLine

__all__ = ["Sale", "SaleLine"]
