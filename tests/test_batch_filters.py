# tests/test_batch_filters.py
from datetime import datetime

import pytest

from utils.batch_allocation import batch_years, filter_batches


def _batch(batch_id, name, created_at, quantity, allocated):
    return {
        "id": batch_id,
        "name": name,
        "createdAt": created_at,
        "items": [{"variantType": "Shirt", "color": "White", "price": 10,
                   "sizes": [{"size": "M", "quantity": quantity, "allocated": allocated}]}],
    }


@pytest.fixture
def batches():
    return [
        _batch("B1", "Term 1 Shirts", datetime(2024, 1, 10), 20, 0),
        _batch("B2", "Term 2 Trousers", datetime(2025, 5, 1), 5, 3),
        _batch("B3", "Ties", "2025-02-01T08:00:00Z", 0, 4),
    ]


def _ids(batches):
    return [batch["id"] for batch in batches]


def test_no_filters_keeps_everything(batches):
    assert _ids(filter_batches(batches)) == ["B1", "B2", "B3"]


@pytest.mark.parametrize("search, expected", [
    ("term", ["B1", "B2"]),
    ("  TIES ", ["B3"]),
    ("b2", ["B2"]),
    ("blazer", []),
])
def test_search_matches_name_or_id(batches, search, expected):
    assert _ids(filter_batches(batches, search=search)) == expected


def test_year_filter(batches):
    assert _ids(filter_batches(batches, year="2025")) == ["B2", "B3"]
    assert _ids(filter_batches(batches, year="2024")) == ["B1"]


@pytest.mark.parametrize("status, expected", [
    ("Available", ["B1", "B2"]),
    ("Depleted", ["B3"]),
    ("Allocated", ["B2", "B3"]),
    ("Unallocated", ["B1"]),
    ("Partially Allocated", ["B2"]),
])
def test_status_filter(batches, status, expected):
    assert _ids(filter_batches(batches, status=status)) == expected


def test_filters_combine(batches):
    assert _ids(filter_batches(batches, search="term", year="2025", status="Allocated")) == ["B2"]


def test_years_newest_first(batches):
    assert batch_years(batches) == ["All", "2025", "2024"]


def test_undated_batch_counts_as_this_year():
    assert batch_years([{"id": "X"}]) == ["All", str(datetime.now().year)]


def test_malformed_entries_skipped(batches):
    assert _ids(filter_batches(batches + [None, "B9"])) == ["B1", "B2", "B3"]
