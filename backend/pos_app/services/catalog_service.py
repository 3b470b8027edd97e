"""
Session snapshots of the product and customer directories.

Snapshots are pulled on demand and replaced wholesale on refresh; the cart
engine reads products from here and never modifies them.
"""
import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from pos_app.schemas.catalog import CatalogProduct, Customer, CustomerCreate
from pos_app.services.directory_client import DirectoryClient

logger = logging.getLogger(__name__)


class CatalogService:
    def __init__(self, client: DirectoryClient):
        self.client = client
        self._products: List[CatalogProduct] = []
        self._by_barcode: Dict[str, CatalogProduct] = {}
        self._customers: List[Customer] = []
        self.products_loaded_at: Optional[datetime] = None
        self.customers_loaded_at: Optional[datetime] = None

    @property
    def products(self) -> List[CatalogProduct]:
        return list(self._products)

    @property
    def customers(self) -> List[Customer]:
        return list(self._customers)

    def load_products(self, products: List[CatalogProduct]) -> None:
        """Replace the product snapshot and rebuild the barcode index"""
        index: Dict[str, CatalogProduct] = {}
        for product in products:
            if not product.barcode:
                continue
            if product.barcode in index:
                logger.warning(
                    f"Barcode {product.barcode} is shared by products "
                    f"{index[product.barcode].product_id} and {product.product_id}; keeping the first"
                )
                continue
            index[product.barcode] = product
        # Swap references so readers on the camera thread never see a partial index
        self._products = list(products)
        self._by_barcode = index
        self.products_loaded_at = datetime.now(timezone.utc)
        logger.info(f"Product snapshot loaded: {len(products)} products, {len(index)} with barcodes")

    async def refresh_products(self) -> List[CatalogProduct]:
        products = await self.client.list_products()
        self.load_products(products)
        return self.products

    def load_customers(self, customers: List[Customer]) -> None:
        self._customers = list(customers)
        self.customers_loaded_at = datetime.now(timezone.utc)
        logger.info(f"Customer snapshot loaded: {len(customers)} customers")

    async def refresh_customers(self) -> List[Customer]:
        self.load_customers(await self.client.list_customers())
        return self.customers

    def find_by_barcode(self, barcode: str) -> Optional[CatalogProduct]:
        return self._by_barcode.get(barcode)

    def get_customer(self, customer_id: int) -> Optional[Customer]:
        for customer in self._customers:
            if customer.customer_id == customer_id:
                return customer
        return None

    def search_customers(self, query: str) -> List[Customer]:
        """Case-insensitive substring match on name, phone and email"""
        needle = (query or "").strip().lower()
        if not needle:
            return self.customers
        return [
            customer
            for customer in self._customers
            if needle in customer.name.lower()
            or needle in customer.phone.lower()
            or (customer.email and needle in customer.email.lower())
        ]

    async def create_customer(self, data: CustomerCreate) -> Customer:
        customer = await self.client.create_customer(data)
        # The directory may hand back an existing record for a known phone number
        existing = self.get_customer(customer.customer_id)
        if existing is None:
            self._customers = self._customers + [customer]
        else:
            self._customers = [
                customer if c.customer_id == customer.customer_id else c for c in self._customers
            ]
        return customer
