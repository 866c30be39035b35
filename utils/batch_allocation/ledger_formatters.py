"""
Batch Allocation Formatters
===========================
Display and export utilities for the batch allocation pages.
"""

import re
from datetime import datetime
from io import BytesIO
from typing import Any, Dict, Iterable, List

import pandas as pd
from openpyxl.styles import Font, PatternFill

from .ledger_models import BatchAllocationSummary, ProductFlow

# Characters Excel rejects in sheet names
INVALID_SHEET_CHARS = re.compile(r"[\\/?*\[\]:]")
MAX_SHEET_NAME = 31

UNALLOCATED_COLUMNS = {
    'batch_name': 'Batch',
    'variant_type': 'Variant',
    'color': 'Color',
    'size': 'Size',
    'quantity': 'Quantity',
    'price': 'Unit Price',
    'value': 'Value',
}

ALLOCATION_COLUMNS = {
    'product_name': 'Product',
    'school_name': 'School',
    'variant_type': 'Variant',
    'color': 'Color',
    'size': 'Size',
    'quantity_allocated': 'Quantity',
    'allocated_at': 'Allocated At',
    'allocated_by_name': 'Allocated By',
}

STUDENT_COLUMNS = {
    'product_name': 'Product',
    'student_name': 'Student',
    'size': 'Size',
    'quantity': 'Quantity',
    'allocated_at': 'Allocated At',
}


class BatchAllocationFormatters:
    """Display formatters for batch allocation"""

    # ================================================================
    # NUMBER FORMATTERS
    # ================================================================

    @staticmethod
    def format_quantity(qty: Any) -> str:
        """Format quantity with thousand separator"""
        if qty is None:
            return '-'
        try:
            return f"{float(qty):,.0f}"
        except (ValueError, TypeError):
            return str(qty)

    @staticmethod
    def format_currency(value: Any, currency: str = 'KES') -> str:
        if value is None:
            return '-'
        try:
            return f"{currency} {float(value):,.2f}"
        except (ValueError, TypeError):
            return str(value)

    @staticmethod
    def format_allocation_rate(rate: Any) -> str:
        """Format allocation rate like "85.5%" """
        if rate is None:
            return '-'
        try:
            return f"{float(rate):.1f}%"
        except (ValueError, TypeError):
            return str(rate)

    @staticmethod
    def format_rate_badge(rate: float) -> str:
        """Traffic light for how much of a batch has gone out"""
        if rate >= 80:
            return f"🟢 {rate:.1f}%"
        if rate >= 40:
            return f"🟡 {rate:.1f}%"
        return f"🔴 {rate:.1f}%"

    @staticmethod
    def format_datetime(dt: Any, format_str: str = '%d %b %Y %H:%M') -> str:
        """Format datetime for display"""
        if dt is None:
            return '-'
        if isinstance(dt, str):
            try:
                dt = datetime.fromisoformat(dt.replace('Z', '+00:00'))
            except ValueError:
                return dt
        return dt.strftime(format_str)

    # ================================================================
    # DATAFRAME BUILDERS
    # ================================================================

    @staticmethod
    def unallocated_items_df(rows: List[Dict[str, Any]]) -> pd.DataFrame:
        """Unallocated stock rows with display column names"""
        df = pd.DataFrame(rows, columns=list(UNALLOCATED_COLUMNS))
        return df.rename(columns=UNALLOCATED_COLUMNS)

    @staticmethod
    def product_allocations_df(summary: BatchAllocationSummary) -> pd.DataFrame:
        """One row per allocation event, across all products of a batch"""
        rows = [row for group in summary.allocations_by_product for row in group.allocations]
        df = pd.DataFrame(rows, columns=list(ALLOCATION_COLUMNS))
        return df.rename(columns=ALLOCATION_COLUMNS)

    @staticmethod
    def student_allocations_df(flow: ProductFlow) -> pd.DataFrame:
        """One row per product -> student allocation in a flow"""
        rows = []
        for node in flow.products:
            for allocation in node.student_allocations:
                rows.append({
                    'product_name': node.product_name,
                    'student_name': allocation.student_name,
                    'size': allocation.size,
                    'quantity': allocation.quantity,
                    'allocated_at': allocation.allocated_at,
                })
        df = pd.DataFrame(rows, columns=list(STUDENT_COLUMNS))
        return df.rename(columns=STUDENT_COLUMNS)


def sheet_names(names: Iterable[str]) -> List[str]:
    """
    Excel-safe, unique sheet names.

    Characters Excel rejects become underscores, names are cut to 31
    characters and clashes get a numeric suffix.
    """
    result = []
    taken = set()
    for raw in names:
        base = INVALID_SHEET_CHARS.sub('_', str(raw or '')).strip().strip("'") or 'Sheet'
        name = base[:MAX_SHEET_NAME]
        counter = 2
        while name.lower() in taken:
            suffix = f" ({counter})"
            name = base[:MAX_SHEET_NAME - len(suffix)] + suffix
            counter += 1
        taken.add(name.lower())
        result.append(name)
    return result


def export_to_excel(sheets: Dict[str, pd.DataFrame]) -> bytes:
    """
    Write DataFrames to an .xlsx workbook, one sheet per entry.

    Header rows are bold on a grey fill with an auto-filter over the data.
    """
    buffer = BytesIO()
    header_font = Font(bold=True)
    header_fill = PatternFill(start_color='FFD3D3D3', end_color='FFD3D3D3', fill_type='solid')

    with pd.ExcelWriter(buffer, engine='openpyxl') as writer:
        for name, df in zip(sheet_names(sheets), sheets.values()):
            df.to_excel(writer, sheet_name=name, index=False)

            worksheet = writer.sheets[name]
            for cell in worksheet[1]:
                cell.font = header_font
                cell.fill = header_fill
            worksheet.auto_filter.ref = worksheet.dimensions

    return buffer.getvalue()
