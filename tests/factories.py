# tests/factories.py


def make_allocation(**overrides) -> dict:
    payload = {
        "productId": "P1",
        "productName": "Primary Shirt",
        "schoolId": "S1",
        "schoolName": "Hillside Primary",
        "variantType": "Shirt",
        "color": "White",
        "size": "M",
        "quantity": 5,
        "allocatedBy": "U1",
        "allocatedByName": "Jane Store",
    }
    payload.update(overrides)
    return payload


def make_log_entry(product_id="P1", qty=5, **overrides) -> dict:
    entry = {
        "productId": product_id,
        "productName": f"Product {product_id}",
        "schoolId": "S1",
        "schoolName": "Hillside Primary",
        "quantityAllocated": qty,
        "allocatedAt": "2024-01-15T10:00:00.000Z",
        "allocatedBy": "U1",
        "allocatedByName": "Jane Store",
    }
    entry.update(overrides)
    return entry


def make_batch(batch_id="B1", name="Term 1 Shirts", items=None) -> dict:
    if items is None:
        items = [
            {
                "variantType": "Shirt",
                "color": "White",
                "price": 10,
                "sizes": [{"size": "M", "quantity": 20}],
            }
        ]
    return {"id": batch_id, "name": name, "items": items}
