def create_product(client, tag_id: str = "RFID001", name: str = "Test Product", code: str = "TP001", price: str = "10.99", **extra):
    payload = {"tag_id": tag_id, "name": name, "code": code, "price": price}
    payload.update(extra)
    response = client.post("/rfidpos/products", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


def scan(client, tag_id: str, source: str = "manual"):
    response = client.post("/rfidpos/scan", json={"tag_id": tag_id, "source": source})
    assert response.status_code == 200, response.text
    return response.json()
