"""
Batch Import
============
Turns an Excel sheet of stock rows into batch `items`.

Expected columns (header names are matched loosely, so "Variant Type",
"variant_type" and "variantType" all work):

    Variant Type | Color | Price | Size | Quantity

Rows sharing a variant type and color become one item; repeated sizes
within an item are added together.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple

import pandas as pd

from .ledger_models import to_number

logger = logging.getLogger(__name__)

HEADER_ALIASES = {
    'varianttype': 'variantType',
    'variant': 'variantType',
    'type': 'variantType',
    'color': 'color',
    'colour': 'color',
    'price': 'price',
    'unitprice': 'price',
    'size': 'size',
    'quantity': 'quantity',
    'qty': 'quantity',
}
REQUIRED_COLUMNS = ('variantType', 'color', 'size', 'quantity')


@dataclass
class BatchImportResult:
    """Items parsed from a sheet plus the rows that were rejected"""
    items: List[Dict[str, Any]] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    rows_read: int = 0

    @property
    def is_valid(self) -> bool:
        return bool(self.items) and not self.errors


def normalize_header(header: Any) -> str:
    key = re.sub(r'[^a-z]', '', str(header).lower())
    return HEADER_ALIASES.get(key, key)


def _cell_text(value: Any) -> str:
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return ''
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def parse_batch_frame(df: pd.DataFrame) -> BatchImportResult:
    """Group sheet rows into batch items"""
    result = BatchImportResult()
    df = df.rename(columns=normalize_header).dropna(how='all')

    missing = [column for column in REQUIRED_COLUMNS if column not in df.columns]
    if missing:
        result.errors.append(f"Missing columns: {', '.join(missing)}")
        return result

    items: Dict[Tuple[str, str], Dict[str, Any]] = {}
    # Excel row numbers: header is row 1
    for row_number, row in zip(df.index + 2, df.to_dict('records')):
        result.rows_read += 1
        variant_type = _cell_text(row.get('variantType'))
        color = _cell_text(row.get('color'))
        size = _cell_text(row.get('size'))

        if not (variant_type and color and size):
            result.errors.append(f"Row {row_number}: variant type, color and size are required")
            continue

        raw_quantity = row.get('quantity')
        try:
            quantity = float(_cell_text(raw_quantity))
        except ValueError:
            quantity = -1.0
        if quantity < 0 or not quantity.is_integer():
            result.errors.append(f"Row {row_number}: quantity must be a whole number, got {raw_quantity!r}")
            continue

        item = items.get((variant_type, color))
        if item is None:
            item = {
                'variantType': variant_type,
                'color': color,
                'price': to_number(_cell_text(row.get('price'))),
                'sizes': [],
            }
            items[(variant_type, color)] = item

        for entry in item['sizes']:
            if entry['size'] == size:
                entry['quantity'] += int(quantity)
                break
        else:
            item['sizes'].append({'size': size, 'quantity': int(quantity)})

    result.items = list(items.values())
    return result


def read_batch_excel(source) -> BatchImportResult:
    """Read the first sheet of an .xlsx file (path or file-like) into batch items"""
    try:
        df = pd.read_excel(source, sheet_name=0, engine='openpyxl')
    except Exception as e:
        logger.error(f"Error reading batch import file: {e}")
        return BatchImportResult(errors=[f"Could not read Excel file: {e}"])

    result = parse_batch_frame(df)
    logger.info(
        f"Batch import parsed {result.rows_read} rows into {len(result.items)} items "
        f"({len(result.errors)} rejected)"
    )
    return result
