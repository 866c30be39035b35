# tests/conftest.py
import pytest
from sqlalchemy import create_engine

from tests.factories import make_batch
from utils.batch_allocation import BatchInventoryData, BatchAllocationRecorder


@pytest.fixture
def engine(tmp_path):
    eng = create_engine(
        f"sqlite:///{tmp_path / 'ledger.db'}",
        connect_args={"check_same_thread": False},
    )
    yield eng
    eng.dispose()


@pytest.fixture
def data(engine):
    store = BatchInventoryData(engine=engine)
    store.ensure_schema()
    return store


@pytest.fixture
def recorder(data):
    return BatchAllocationRecorder(engine=data.engine, strict_once=False, lock_batch=True)


@pytest.fixture
def shirt_batch(data):
    """Batch B1: one white shirt item, size M with 20 units left, price 10"""
    return data.add_batch(make_batch())
