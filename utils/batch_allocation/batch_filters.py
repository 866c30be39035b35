"""
Batch list filtering: free-text search, creation year and stock status.
"""

from datetime import datetime
from typing import Any, Iterable, List, Mapping

from .ledger_models import as_records, to_number

ALL = 'All'

STATUS_OPTIONS = [
    ALL,
    'Available',
    'Depleted',
    'Allocated',
    'Unallocated',
    'Partially Allocated',
]


def _created_year(batch: Mapping[str, Any]) -> str:
    created_at = batch.get('createdAt')
    if isinstance(created_at, str):
        try:
            created_at = datetime.fromisoformat(created_at.replace('Z', '+00:00'))
        except ValueError:
            created_at = None
    if not isinstance(created_at, datetime):
        # Undated batches count as this year's
        created_at = datetime.now()
    return str(created_at.year)


def _stock_totals(batch: Mapping[str, Any]):
    remaining = allocated = 0
    for item in as_records(batch.get('items')):
        for size in as_records(item.get('sizes')):
            remaining += to_number(size.get('quantity'))
            allocated += to_number(size.get('allocated'))
    return remaining, allocated


def matches_status(batch: Mapping[str, Any], status: str) -> bool:
    remaining, allocated = _stock_totals(batch)
    if status == 'Available':
        return remaining > 0
    if status == 'Depleted':
        return remaining == 0
    if status == 'Allocated':
        return allocated > 0
    if status == 'Unallocated':
        return allocated == 0 and remaining > 0
    if status == 'Partially Allocated':
        return allocated > 0 and remaining > 0
    return True


def batch_years(batches: Iterable[Mapping[str, Any]]) -> List[str]:
    """'All' followed by the creation years present, newest first"""
    years = {_created_year(batch) for batch in as_records(list(batches or []))}
    return [ALL] + sorted(years, reverse=True)


def filter_batches(
    batches: Iterable[Mapping[str, Any]],
    search: str = '',
    year: str = ALL,
    status: str = ALL
) -> List[Mapping[str, Any]]:
    """
    Batches matching every given filter.

    `search` is a case-insensitive substring of the batch name or id.
    """
    needle = (search or '').strip().lower()
    result = []
    for batch in as_records(list(batches or [])):
        if needle:
            haystack = f"{batch.get('name') or ''} {batch.get('id') or ''}".lower()
            if needle not in haystack:
                continue
        if year != ALL and _created_year(batch) != str(year):
            continue
        if not matches_status(batch, status):
            continue
        result.append(batch)
    return result
