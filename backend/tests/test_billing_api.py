from decimal import Decimal

from conftest import FakeDevices, image_bytes

TSHIRT = "8901234567890"
COFFEE = "8902345678901"
LAPTOP = "8906789012345"


def scan(client, barcode):
    return client.post("/api/bill/scan", json={"barcode": barcode})


class TestHealth:
    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["message"] == "POS Billing API"

    def test_health(self, client):
        assert client.get("/health").json() == {"status": "healthy"}


class TestBillEndpoints:
    def test_empty_bill(self, client):
        response = client.get("/api/bill")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "open"
        assert data["items"] == []
        assert Decimal(data["total"]) == 0
        assert Decimal(data["tax_percent"]) == Decimal("18")
        assert data["currency"] == "INR"

    def test_scan_adds_then_increments(self, client):
        first = scan(client, TSHIRT)
        second = scan(client, TSHIRT)

        assert first.status_code == 200
        assert first.json()["action"] == "added"
        assert second.json()["action"] == "incremented"
        bill = second.json()["bill"]
        assert len(bill["items"]) == 1
        assert bill["items"][0]["quantity"] == 2
        assert bill["item_count"] == 2
        assert Decimal(bill["subtotal"]) == Decimal("59.98")

    def test_unknown_barcode(self, client):
        response = scan(client, "0000000000000")

        assert response.status_code == 404
        body = response.json()
        assert body["error"] == "product_not_found"
        assert body["context"] == {"barcode": "0000000000000"}
        assert client.get("/api/bill").json()["items"] == []

    def test_blank_barcode_rejected_by_validation(self, client):
        assert scan(client, "").status_code == 422

    def test_set_quantity(self, client):
        scan(client, COFFEE)

        response = client.put("/api/bill/items/0", json={"quantity": 3})

        assert response.status_code == 200
        assert Decimal(response.json()["subtotal"]) == Decimal("269.97")

    def test_zero_quantity_rejected(self, client):
        scan(client, COFFEE)

        response = client.put("/api/bill/items/0", json={"quantity": 0})

        assert response.status_code == 422
        assert response.json()["error"] == "invalid_quantity"
        assert client.get("/api/bill").json()["items"][0]["quantity"] == 1

    def test_missing_line(self, client):
        response = client.put("/api/bill/items/4", json={"quantity": 2})
        assert response.status_code == 404
        assert response.json()["error"] == "line_not_found"

    def test_remove_line(self, client):
        scan(client, TSHIRT)
        scan(client, COFFEE)

        response = client.delete("/api/bill/items/0")

        items = response.json()["items"]
        assert [item["barcode"] for item in items] == [COFFEE]
        assert items[0]["line_index"] == 0

    def test_modifiers_and_totals(self, client):
        scan(client, LAPTOP)

        response = client.patch("/api/bill/modifiers", json={"discount_percent": 10, "payment_method": "card"})

        data = response.json()
        assert response.status_code == 200
        assert Decimal(data["discount_amount"]) == Decimal("100")
        assert Decimal(data["taxable_amount"]) == Decimal("900")
        assert Decimal(data["tax_amount"]) == Decimal("162")
        assert Decimal(data["total"]) == Decimal("1062")
        assert data["payment_method"] == "card"

    def test_invalid_modifiers(self, client):
        response = client.patch("/api/bill/modifiers", json={"tax_percent": 150})
        assert response.status_code == 422
        assert response.json()["error"] == "invalid_percentage"

        response = client.patch("/api/bill/modifiers", json={"payment_method": "cheque"})
        assert response.status_code == 422
        assert response.json()["error"] == "invalid_payment_method"

    def test_rejected_modifiers_change_nothing(self, client):
        response = client.patch("/api/bill/modifiers", json={"discount_percent": "10", "tax_percent": "150"})
        assert response.status_code == 422

        response = client.patch("/api/bill/modifiers", json={"discount_percent": "10", "payment_method": "cheque"})
        assert response.status_code == 422

        data = client.get("/api/bill").json()
        assert Decimal(data["discount_percent"]) == 0
        assert Decimal(data["tax_percent"]) == Decimal("18")
        assert data["payment_method"] == "cash"

    def test_percent_limited_to_two_decimals(self, client):
        response = client.patch("/api/bill/modifiers", json={"discount_percent": "12.345"})

        assert response.status_code == 422
        assert Decimal(client.get("/api/bill").json()["discount_percent"]) == 0

        response = client.patch("/api/bill/modifiers", json={"discount_percent": "12.35"})
        assert Decimal(response.json()["discount_percent"]) == Decimal("12.35")

    def test_clear_keeps_discount(self, client):
        scan(client, LAPTOP)
        client.patch("/api/bill/modifiers", json={"discount_percent": 5})

        data = client.post("/api/bill/clear").json()

        assert data["items"] == []
        assert Decimal(data["discount_percent"]) == Decimal("5")

    def test_assign_and_detach_customer(self, client):
        response = client.put("/api/bill/customer", json={"customer_id": 1})
        assert response.json()["customer"]["name"] == "Asha Verma"

        response = client.put("/api/bill/customer", json={"customer_id": None})
        assert response.json()["customer"] is None

    def test_assign_unknown_customer(self, client):
        response = client.put("/api/bill/customer", json={"customer_id": 99})
        assert response.status_code == 404
        assert response.json()["error"] == "customer_not_found"
        assert response.json()["context"] == {"customer_id": 99}

    def test_complete_empty_bill(self, client):
        response = client.post("/api/bill/complete")
        assert response.status_code == 409
        assert response.json()["error"] == "empty_bill"

    def test_completed_bill_is_locked_until_new_bill(self, client):
        scan(client, TSHIRT)
        completed = client.post("/api/bill/complete")
        assert completed.status_code == 200
        assert completed.json()["bill"]["status"] == "completed"

        response = scan(client, TSHIRT)
        assert response.status_code == 409
        assert response.json()["error"] == "bill_completed"

        fresh = client.post("/api/bill/new").json()
        assert fresh["status"] == "open"
        assert fresh["items"] == []
        assert fresh["bill_number"] != completed.json()["bill"]["bill_number"]
        assert scan(client, TSHIRT).status_code == 200


class TestScannerEndpoints:
    def test_image_scan(self, client, decoder, cue):
        decoder.result = TSHIRT

        response = client.post(
            "/api/scanner/image",
            files={"file": ("shelf.png", image_bytes(), "image/png")},
        )

        assert response.status_code == 200
        assert response.json()["action"] == "added"
        assert response.json()["item"]["barcode"] == TSHIRT
        assert cue.plays == 1

    def test_image_scan_rejects_non_image(self, client, decoder):
        response = client.post(
            "/api/scanner/image",
            files={"file": ("bill.pdf", b"%PDF-1.4", "application/pdf")},
        )

        assert response.status_code == 415
        assert response.json()["error"] == "invalid_file_type"
        assert decoder.calls == []

    def test_image_without_barcode(self, client):
        response = client.post(
            "/api/scanner/image",
            files={"file": ("blank.png", image_bytes(), "image/png")},
        )

        assert response.status_code == 422
        assert response.json()["error"] == "no_barcode_in_image"

    def test_camera_start_and_stop(self, client, billing):
        assert client.get("/api/scanner/camera").json()["active"] is False

        started = client.post("/api/scanner/camera/start").json()
        assert started["active"] is True
        assert started["device"] == 0

        stopped = client.post("/api/scanner/camera/stop").json()
        assert stopped["active"] is False
        assert billing.camera_source.devices.capture.released.is_set()

    def test_no_camera(self, client, billing):
        billing.camera_source.devices = FakeDevices(devices=())

        response = client.post("/api/scanner/camera/start")

        assert response.status_code == 503
        assert response.json()["error"] == "no_camera_found"


class TestCatalogEndpoints:
    def test_products(self, client):
        products = client.get("/api/catalog/products").json()
        assert len(products) == 5

    def test_low_stock(self, client):
        alerts = client.get("/api/catalog/low-stock").json()
        assert {(a["name"], a["status"]) for a in alerts} == {
            ("Cotton Shirt", "Critical"),
            ("Denim Jeans", "Warning"),
        }

    def test_refresh(self, client, directory):
        directory.products = directory.products[:2]

        response = client.post("/api/catalog/refresh")

        assert response.status_code == 200
        assert len(response.json()) == 2
        assert scan(client, LAPTOP).status_code == 404

    def test_refresh_failure(self, client, directory):
        directory.fail_with = 503

        response = client.post("/api/catalog/refresh")

        assert response.status_code == 502
        assert response.json()["error"] == "directory_unavailable"
        assert len(client.get("/api/catalog/products").json()) == 5


class TestCustomerEndpoints:
    def test_list_and_search(self, client):
        assert len(client.get("/api/customers").json()) == 2

        found = client.get("/api/customers", params={"query": "rohan"}).json()
        assert [c["name"] for c in found] == ["Rohan Mehta"]

    def test_create_customer(self, client):
        response = client.post("/api/customers", json={"name": "Meera Iyer", "phone": "9000000001"})

        assert response.status_code == 201
        customer_id = response.json()["customer_id"]
        assigned = client.put("/api/bill/customer", json={"customer_id": customer_id})
        assert assigned.json()["customer"]["name"] == "Meera Iyer"

    def test_create_customer_requires_name(self, client):
        response = client.post("/api/customers", json={"name": "", "phone": "9000000001"})
        assert response.status_code == 422

    def test_refresh(self, client, directory):
        directory.customers.append({"customer_id": 9, "name": "Walk-in", "phone": "0"})

        response = client.post("/api/customers/refresh")

        assert response.status_code == 200
        assert len(response.json()) == 3
