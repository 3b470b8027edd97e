import os
import sys
import json
import tempfile
import threading
from decimal import Decimal
from io import BytesIO

import httpx
import pytest
from PIL import Image

# Set test environment variables BEFORE importing the app
_test_dir = tempfile.mkdtemp(prefix="pos-tests-")
os.environ['DATABASE_URL'] = f"sqlite:///{os.path.join(_test_dir, 'test_receipts.db')}"
os.environ['DIRECTORY_API_URL'] = 'http://directory.test/api'
os.environ['DIRECTORY_API_TOKEN'] = 'test-token'
os.environ['DEFAULT_TAX_PERCENT'] = '18'

# Add backend directory to path so pos_app imports without installation
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from fastapi.testclient import TestClient

from pos_app.database import Base, engine as db_engine, SessionLocal, get_db
from pos_app.main import app
from pos_app.models import Sale, SaleLine
from pos_app.schemas.catalog import CatalogProduct, Customer
from pos_app.services.billing_session import BillingSession, get_billing_session
from pos_app.services.cart_engine import CartEngine
from pos_app.services.catalog_service import CatalogService
from pos_app.services.directory_client import DirectoryClient


PRODUCT_ROWS = [
    {"product_id": 1, "barcode": "8901234567890", "name": "T-Shirt Basic", "price": "29.99",
     "cost_price": "12.00", "sku": "TSH001", "quantity": 201, "low_stock_threshold": 20},
    {"product_id": 2, "barcode": "8902345678901", "name": "Coffee Maker", "price": "89.99",
     "cost_price": "55.00", "sku": "COF001", "quantity": 74, "low_stock_threshold": 10},
    {"product_id": 3, "barcode": "8903456789012", "name": "Cotton Shirt", "price": "1200.00",
     "final_selling_price": "999.00", "cost_price": "640.00", "sku": "SHI001", "quantity": 4,
     "low_stock_threshold": 10},
    {"product_id": 5, "barcode": "8905678901234", "name": "Denim Jeans", "price": "2000.00",
     "final_selling_price": "", "cost_price": "1100.00", "sku": "JEA001", "quantity": 7,
     "low_stock_threshold": 10},
    {"product_id": 6, "barcode": "8906789012345", "name": "Laptop Pro", "price": "1000.00",
     "cost_price": "800.00", "sku": "LAP001", "quantity": 10, "low_stock_threshold": 5,
     "category": {"name": "Electronics"}},
]

CUSTOMER_ROWS = [
    {"customer_id": 1, "name": "Asha Verma", "phone": "9876543210", "email": "asha@example.com",
     "address": None, "credit_balance": "0.00", "credit_limit": "5000.00"},
    {"customer_id": 2, "name": "Rohan Mehta", "phone": "9123456780", "email": None,
     "address": "MG Road", "credit_balance": "150.00", "credit_limit": "2000.00"},
]


class DirectoryStub:
    """In-memory stand-in for the directory REST API, served over httpx.MockTransport"""

    def __init__(self, products=None, customers=None):
        self.products = list(products if products is not None else PRODUCT_ROWS)
        self.customers = list(customers if customers is not None else CUSTOMER_ROWS)
        self.requests = []
        self.fail_with = None

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail_with is not None:
            return httpx.Response(self.fail_with, json={"error": "unavailable"})

        path = request.url.path
        if request.method == "GET" and path == "/api/inventory/products":
            return httpx.Response(200, json=self.products)
        if request.method == "GET" and path == "/api/customers":
            return httpx.Response(200, json=self.customers)
        if request.method == "POST" and path == "/api/customers":
            body = json.loads(request.content)
            for row in self.customers:
                if row["phone"] == body["phone"]:
                    return httpx.Response(200, json={**row, "isExisting": True})
            row = {
                "customer_id": len(self.customers) + 1,
                "credit_balance": "0.00",
                "credit_limit": "0.00",
                "email": None,
                "address": None,
                **body,
            }
            self.customers.append(row)
            return httpx.Response(201, json=row)
        return httpx.Response(404, json={"error": "Not found"})

    def client(self) -> DirectoryClient:
        return DirectoryClient(transport=httpx.MockTransport(self.handler))


class FakeDecoder:
    """Decoder double: looks frames/images up in a table, or returns a fixed code"""

    def __init__(self, result=None, table=None, error=None):
        self.result = result
        self.table = table or {}
        self.error = error
        self.calls = []

    def decode(self, image):
        self.calls.append(image)
        if self.error is not None:
            raise self.error
        if isinstance(image, str):
            return self.table.get(image)
        return self.result


class FakeCue:
    def __init__(self, fail=False):
        self.fail = fail
        self.plays = 0

    def play(self):
        self.plays += 1
        if self.fail:
            raise RuntimeError("no audio device")


class FakeCapture:
    """Capture double yielding scripted frames, then a failed read"""

    def __init__(self, frames=None, endless_frame=None, read_error=None):
        self.frames = list(frames or [])
        self.endless_frame = endless_frame
        self.read_error = read_error
        self.released = threading.Event()
        self.reads = 0

    def read(self):
        self.reads += 1
        if self.frames:
            return True, self.frames.pop(0)
        if self.read_error is not None:
            raise self.read_error
        if self.endless_frame is not None:
            return True, self.endless_frame
        return False, None

    def release(self):
        self.released.set()


class FakeDevices:
    def __init__(self, capture=None, devices=(0,)):
        self.capture = capture or FakeCapture()
        self.devices = list(devices)
        self.opened = []

    def list_devices(self):
        return list(self.devices)

    def open(self, device):
        self.opened.append(device)
        return self.capture


def make_products(rows=None):
    return [CatalogProduct.model_validate(row) for row in (rows or PRODUCT_ROWS)]


def image_bytes(size=(200, 100), fmt="PNG", color=255, mode="L") -> bytes:
    buffer = BytesIO()
    Image.new(mode, size, color=color).save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def catalog():
    service = CatalogService(DirectoryStub().client())
    service.load_products(make_products())
    return service


@pytest.fixture
def cart(catalog):
    return CartEngine(catalog, default_tax_percent=Decimal("18"))


@pytest.fixture
def directory():
    return DirectoryStub()


@pytest.fixture
def decoder():
    return FakeDecoder()


@pytest.fixture
def cue():
    return FakeCue()


@pytest.fixture(scope='session', autouse=True)
def database():
    """Create the receipt tables once for the test run"""
    Base.metadata.create_all(bind=db_engine)
    yield db_engine
    Base.metadata.drop_all(bind=db_engine)


@pytest.fixture
def db_session(database):
    session = SessionLocal()
    session.query(SaleLine).delete()
    session.query(Sale).delete()
    session.commit()
    yield session
    session.rollback()
    session.close()


@pytest.fixture
def billing(directory, decoder, cue):
    session = BillingSession(
        client=directory.client(),
        decoder=decoder,
        cue=cue,
        devices=FakeDevices(capture=FakeCapture(endless_frame="blank")),
    )
    session.catalog.load_products(make_products(directory.products))
    session.catalog.load_customers([Customer.model_validate(row) for row in directory.customers])
    yield session
    session.close()


@pytest.fixture
def client(billing, db_session):
    """Test client wired to an isolated billing session and the test database"""
    def override_db():
        yield db_session

    app.dependency_overrides[get_billing_session] = lambda: billing
    app.dependency_overrides[get_db] = override_db
    yield TestClient(app)
    app.dependency_overrides.clear()
