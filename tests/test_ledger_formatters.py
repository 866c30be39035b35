# tests/test_ledger_formatters.py
from io import BytesIO

import pandas as pd
import pytest
from openpyxl import load_workbook

from tests.factories import make_batch, make_log_entry
from utils.batch_allocation import (
    BatchAllocationFormatters as fmt,
    compose_product_flow,
    export_to_excel,
    summarize_batch,
)
from utils.batch_allocation.ledger_formatters import sheet_names


@pytest.fixture
def batch():
    return make_batch(items=[
        {"variantType": "Shirt", "color": "White", "price": 10, "sizes": [
            {"size": "M", "quantity": 20, "allocated": 5, "allocationLog": [make_log_entry("P1", 5)]},
        ]},
    ])


def test_number_formatters():
    assert fmt.format_quantity(1234) == "1,234"
    assert fmt.format_quantity(None) == "-"
    assert fmt.format_currency(1500, "KES") == "KES 1,500.00"
    assert fmt.format_allocation_rate(20.0) == "20.0%"
    assert fmt.format_allocation_rate(None) == "-"


@pytest.mark.parametrize("rate,badge", [(95.0, "🟢"), (40.0, "🟡"), (12.5, "🔴")])
def test_rate_badge(rate, badge):
    assert fmt.format_rate_badge(rate).startswith(badge)


def test_format_datetime_iso_string():
    assert fmt.format_datetime("2024-01-15T10:00:00.000Z") == "15 Jan 2024 10:00"
    assert fmt.format_datetime("not a date") == "not a date"
    assert fmt.format_datetime(None) == "-"


def test_unallocated_items_df(batch):
    df = fmt.unallocated_items_df(summarize_batch(batch).unallocated_items)

    assert list(df.columns) == ["Batch", "Variant", "Color", "Size", "Quantity", "Unit Price", "Value"]
    assert df.iloc[0]["Value"] == 200


def test_empty_frames_keep_columns():
    df = fmt.unallocated_items_df([])
    assert df.empty
    assert "Quantity" in df.columns


def test_product_allocations_df(batch):
    df = fmt.product_allocations_df(summarize_batch(batch))

    assert len(df) == 1
    assert df.iloc[0]["Product"] == "Product P1"
    assert df.iloc[0]["Quantity"] == 5


def test_student_allocations_df(batch):
    products = [{"id": "P1", "name": "Primary Shirt", "variants": [
        {"sizes": [], "allocationHistory": [{"studentId": "ST1", "size": "M", "quantity": 1}]},
    ]}]
    flow = compose_product_flow(batch, products, [{"id": "ST1", "name": "Amani Otieno"}])

    df = fmt.student_allocations_df(flow)

    assert df.to_dict("records") == [{
        "Product": "Product P1",
        "Student": "Amani Otieno",
        "Size": "M",
        "Quantity": 1,
        "Allocated At": None,
    }]


def test_export_to_excel(batch):
    summary = summarize_batch(batch)
    content = export_to_excel({
        "Unallocated Stock": fmt.unallocated_items_df(summary.unallocated_items),
        "Allocations": fmt.product_allocations_df(summary),
    })

    workbook = load_workbook(BytesIO(content))
    assert workbook.sheetnames == ["Unallocated Stock", "Allocations"]
    sheet = workbook["Unallocated Stock"]
    assert sheet["A1"].value == "Batch"
    assert sheet["A1"].font.bold
    assert sheet.auto_filter.ref == "A1:G2"

    frame = pd.read_excel(BytesIO(content), sheet_name="Unallocated Stock")
    assert frame.iloc[0]["Quantity"] == 20


def test_sheet_names_are_excel_safe_and_unique():
    names = sheet_names(["Stock/2024: [Term 1]?", "x" * 40, "x" * 40, "", "Sheet", "'quoted'"])

    assert names == [
        "Stock_2024_ _Term 1__",
        "x" * 31,
        "x" * 27 + " (2)",
        "Sheet",
        "Sheet (2)",
        "quoted",
    ]
    assert all(len(name) <= 31 for name in names)


def test_export_keeps_sheets_whose_names_collide_after_truncation(batch):
    frame = fmt.unallocated_items_df(summarize_batch(batch).unallocated_items)

    content = export_to_excel({
        "Allocation summary for batch Term 1": frame,
        "Allocation summary for batch Term 2": frame.head(0),
    })

    workbook = load_workbook(BytesIO(content))
    assert workbook.sheetnames == ["Allocation summary for batch Te", "Allocation summary for batc (2)"]
    assert workbook.worksheets[0].max_row == 2
    assert workbook.worksheets[1].max_row == 1
