# tests/test_ledger_data.py
from datetime import datetime

import pytest

from tests.factories import make_batch, make_log_entry
from utils.batch_allocation.ledger_data import schema_statements


def test_batch_round_trip(data):
    items = [
        {"variantType": "Shirt", "color": "White", "price": 10, "sizes": [
            {"size": "M", "quantity": 3, "allocationLog": [make_log_entry("P1", 2)]},
        ]},
    ]
    batch_id = data.add_batch(make_batch("B7", "Round trip", items=items))

    batch = data.get_batch(batch_id)

    assert batch_id == "B7"
    assert batch["name"] == "Round trip"
    assert batch["items"] == items
    assert isinstance(batch["createdAt"], datetime)
    assert isinstance(batch["updatedAt"], datetime)


def test_missing_batch_is_none(data):
    assert data.get_batch("nope") is None


def test_generated_batch_id(data):
    batch_id = data.add_batch({"name": "No id", "items": []})

    assert batch_id
    assert data.get_batch(batch_id)["items"] == []


def test_list_batches_newest_first(data):
    data.add_batch({"id": "old", "name": "Old", "items": [], "createdAt": datetime(2024, 1, 1)})
    data.add_batch({"id": "new", "name": "New", "items": [], "createdAt": datetime(2024, 6, 1)})

    assert [b["id"] for b in data.list_batches()] == ["new", "old"]


def test_update_batch_items(data, shirt_batch):
    new_items = [{"variantType": "Tie", "color": "Navy", "price": 3, "sizes": []}]

    with data.engine.begin() as conn:
        data.update_batch_items(shirt_batch, new_items, conn=conn)

    assert data.get_batch(shirt_batch)["items"] == new_items


def test_products_and_students(data):
    variants = [{"variantType": "Shirt", "color": "White", "sizes": [{"size": "M", "quantity": 4}]}]
    data.add_product({"id": "P1", "name": "Primary Shirt", "price": 12.5, "variants": variants})
    data.add_student({"id": "ST1", "name": "Amani Otieno"})

    assert data.get_products() == [{"id": "P1", "name": "Primary Shirt", "price": 12.5, "variants": variants}]
    assert data.get_students() == [{"id": "ST1", "name": "Amani Otieno"}]


def test_list_methods_return_empty_without_schema(engine):
    from utils.batch_allocation import BatchInventoryData

    bare = BatchInventoryData(engine=engine)

    assert bare.list_batches() == []
    assert bare.get_products() == []
    assert bare.get_students() == []


def test_update_batch_name_and_items(data, shirt_batch):
    before = data.get_batch(shirt_batch)
    new_items = [{"variantType": "Tie", "color": "Navy", "price": 3, "sizes": [{"size": "OS", "quantity": 9}]}]

    assert data.update_batch(shirt_batch, {"name": "Term 1 Ties", "items": new_items}) is True

    batch = data.get_batch(shirt_batch)
    assert batch["name"] == "Term 1 Ties"
    assert batch["items"] == new_items
    assert batch["createdAt"] == before["createdAt"]
    assert batch["updatedAt"] >= before["updatedAt"]


def test_update_batch_name_only_keeps_items(data, shirt_batch):
    items = data.get_batch(shirt_batch)["items"]

    assert data.update_batch(shirt_batch, {"name": "Renamed"})

    batch = data.get_batch(shirt_batch)
    assert batch["name"] == "Renamed"
    assert batch["items"] == items


def test_update_missing_batch_is_false(data):
    assert data.update_batch("NOPE", {"name": "x"}) is False


def test_delete_batch(data, shirt_batch):
    assert data.delete_batch(shirt_batch) is True
    assert data.get_batch(shirt_batch) is None
    assert data.delete_batch(shirt_batch) is False


def test_locked_read_inside_open_write_transaction(data, shirt_batch):
    with data.engine.begin() as conn:
        data.update_batch_items(shirt_batch, [], conn=conn)
        batch = data.get_batch(shirt_batch, conn=conn, for_update=True)

    assert batch["items"] == []


def test_locked_read_starts_immediate_transaction_on_sqlite(data, shirt_batch):
    with data.engine.begin() as conn:
        batch = data.get_batch(shirt_batch, conn=conn, for_update=True)
        assert conn.connection.dbapi_connection.in_transaction

    assert batch["id"] == shirt_batch


@pytest.mark.parametrize("dialect", ["postgresql", "sqlite"])
def test_portable_schema_types(dialect):
    ddl = " ".join(schema_statements(dialect))

    assert "LONGTEXT" not in ddl
    assert "DATETIME" not in ddl
    assert "DOUBLE PRECISION" in ddl
    assert "TIMESTAMP" in ddl


@pytest.mark.parametrize("dialect", ["mysql", "mariadb"])
def test_mysql_schema_types(dialect):
    ddl = " ".join(schema_statements(dialect))

    assert "items LONGTEXT" in ddl
    assert "created_at DATETIME" in ddl
    assert "price DOUBLE," in ddl
