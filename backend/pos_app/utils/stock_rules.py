from typing import List, Iterable
from pos_app.schemas.catalog import CatalogProduct, LowStockAlert


def classify_stock(quantity: int, threshold: int) -> str:
    """
    Classify a low stock level.

    Returns:
        "Critical" below half the threshold, otherwise "Warning"
    """
    return "Critical" if quantity < threshold / 2 else "Warning"


def low_stock_alerts(products: Iterable[CatalogProduct]) -> List[LowStockAlert]:
    """List products whose stock is below their low-stock threshold"""
    return [
        LowStockAlert(
            product_id=product.product_id,
            name=product.name,
            stock=product.quantity,
            threshold=product.low_stock_threshold,
            status=classify_stock(product.quantity, product.low_stock_threshold),
        )
        for product in products
        if product.quantity < product.low_stock_threshold
    ]
