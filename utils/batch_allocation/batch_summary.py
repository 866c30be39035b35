"""
Batch Allocation Summary
========================
Read-side view of one batch's ledger: totals, values, allocation rate,
allocations grouped by product and the size rows that still hold stock.
"""

from typing import Any, Dict, Mapping, Optional

from .ledger_models import (
    BatchAllocationEvent,
    BatchAllocationSummary,
    ProductAllocationGroup,
    as_records,
    calculate_allocation_rate,
    to_number,
)

UNKNOWN_PRODUCT_KEY = 'unknown'


def summarize_batch(batch: Optional[Mapping[str, Any]]) -> BatchAllocationSummary:
    """
    Fold a batch document into a BatchAllocationSummary.

    Missing or malformed structure degrades to zeros and empty lists. For
    sizes recorded before allocation tracking existed, the original quantity
    is taken as remaining + allocated.
    """
    if not isinstance(batch, Mapping) or not batch.get('items'):
        return BatchAllocationSummary()

    summary = BatchAllocationSummary()
    groups: Dict[str, ProductAllocationGroup] = {}

    for item in as_records(batch['items']):
        price = to_number(item.get('price'))
        variant_type = item.get('variantType')
        color = item.get('color')

        for size in as_records(item.get('sizes')):
            quantity = to_number(size.get('quantity'))
            allocated = to_number(size.get('allocated'))
            original = size.get('originalQuantity')
            original = quantity + allocated if original is None else to_number(original)

            summary.total_original += original
            summary.total_allocated += allocated
            summary.total_unallocated += quantity
            summary.allocated_value += allocated * price
            summary.unallocated_value += quantity * price

            if quantity > 0:
                summary.unallocated_items.append({
                    'batch_id': batch.get('id'),
                    'batch_name': batch.get('name'),
                    'variant_type': variant_type,
                    'color': color,
                    'size': size.get('size'),
                    'quantity': quantity,
                    'price': price,
                    'value': quantity * price,
                })

            for entry in as_records(size.get('allocationLog')):
                event = BatchAllocationEvent.from_document(entry)
                key = event.product_id or UNKNOWN_PRODUCT_KEY
                group = groups.get(key)
                if group is None:
                    group = ProductAllocationGroup(
                        product_id=event.product_id,
                        product_name=event.product_name,
                        school_id=event.school_id,
                        school_name=event.school_name,
                    )
                    groups[key] = group
                group.total_quantity += event.quantity_allocated
                group.allocations.append(event.to_row(variant_type, color, size.get('size')))

    summary.allocation_rate = calculate_allocation_rate(summary.total_allocated, summary.total_original)
    summary.allocations_by_product = list(groups.values())
    return summary
