from tests.rfidpos_api_helpers import create_product, scan


def test_device_connect_without_port_is_unavailable(client):
    response = client.post("/rfidpos/device/connect", json={})

    assert response.status_code == 503
    assert response.json()["code"] == "DEVICE_UNAVAILABLE"
    assert client.get("/rfidpos/device").json()["connected"] is False


def test_device_disconnect_is_idempotent(client):
    first = client.post("/rfidpos/device/disconnect")
    second = client.post("/rfidpos/device/disconnect")

    assert first.status_code == second.status_code == 200
    assert first.json() == second.json() == {"connected": False, "port": None, "opened_at": None}


def test_logs_record_operator_activity(client):
    create_product(client)
    scan(client, "RFID001")

    body = client.get("/rfidpos/logs", params={"limit": 2}).json()

    assert body["total"] == 2
    assert body["lines"][0].endswith("Added product: Test Product (RFID: RFID001)")
    assert body["lines"][1].endswith("Added to cart: Test Product - 10.99 (Manual)")


def test_export_document_uses_camel_case_keys(client):
    create_product(client)
    scan(client, "RFID001")
    client.post("/rfidpos/checkout", json={})

    document = client.get("/rfidpos/data/export").json()

    assert set(document) == {"products", "transactions", "logs", "exportDate", "version"}
    assert document["version"] == "1.0"
    assert document["products"][0]["tagId"] == "RFID001"
    assert document["products"][0]["status"] == "DISABLED"
    assert document["transactions"][0]["taxAmount"] == "0.93"


def test_import_replaces_only_present_collections(client):
    create_product(client)

    response = client.post(
        "/rfidpos/data/import",
        params={"source": "backup.json"},
        json={
            "products": [
                {"tagId": "NEW001", "name": "Imported", "code": "IM1", "price": "2.00", "createdAt": "2024-01-01T00:00:00"}
            ],
            "version": "1.0",
        },
    )

    assert response.status_code == 200, response.text
    assert response.json() == {"products": 1, "transactions": None, "logs": None}
    rows = client.get("/rfidpos/products", params={"include_sold": True}).json()["rows"]
    assert [row["tag_id"] for row in rows] == ["NEW001"]
    assert client.get("/rfidpos/logs").json()["lines"][-1].endswith("Data imported from backup.json")


def test_import_rejects_duplicate_tags(client):
    product = {"tagId": "DUP", "name": "X", "code": "X", "price": "1.00", "createdAt": "2024-01-01T00:00:00"}

    response = client.post("/rfidpos/data/import", json={"products": [product, product]})

    assert response.status_code == 409
    assert response.json()["code"] == "DUPLICATE_TAG"


def test_import_rejects_blank_product_fields(client):
    create_product(client)
    good = {"tagId": "OK1", "name": "Fine", "code": "F1", "price": "1.00", "createdAt": "2024-01-01T00:00:00"}
    blank = {"tagId": "", "name": " ", "code": "", "price": "1.00", "createdAt": "2024-01-01T00:00:00"}

    response = client.post("/rfidpos/data/import", json={"products": [good, blank]})

    assert response.status_code == 422
    body = response.json()
    assert body["code"] == "INVALID_SPEC"
    assert body["details"]["index"] == 1
    assert [error["field"] for error in body["details"]["errors"]] == ["tag_id", "name", "code"]
    rows = client.get("/rfidpos/products", params={"include_sold": True}).json()["rows"]
    assert [row["tag_id"] for row in rows] == ["RFID001"]


def test_import_strips_product_fields(client):
    product = {"tagId": " PAD01 ", "name": " Padded ", "code": "P1", "price": "3.50", "createdAt": "2024-01-01T00:00:00"}

    assert client.post("/rfidpos/data/import", json={"products": [product]}).status_code == 200

    assert scan(client, "PAD01")["outcome"] == "ADDED"


def test_wipe_clears_everything(client):
    create_product(client)
    scan(client, "RFID001")
    client.post("/rfidpos/checkout", json={})

    assert client.delete("/rfidpos/data").status_code == 204

    assert client.get("/rfidpos/products", params={"include_sold": True}).json()["total"] == 0
    assert client.get("/rfidpos/transactions").json()["total"] == 0
    assert client.get("/rfidpos/cart").json()["count"] == 0
    assert client.get("/rfidpos/logs").json()["lines"][-1].endswith("All data cleared")


def test_metrics_endpoint_counts_scans(client):
    create_product(client)
    scan(client, "RFID001")
    scan(client, "RFID404")

    response = client.get("/rfidpos/ops/metrics")

    assert response.status_code == 200
    assert 'scan_outcomes_total{outcome="ADDED",source="manual"} 1.0' in response.text
    assert 'scan_outcomes_total{outcome="NOT_FOUND",source="manual"} 1.0' in response.text
