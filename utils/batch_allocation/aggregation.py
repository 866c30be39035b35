"""
Multi-batch allocation totals for dashboards and reports.
"""

from typing import Any, Iterable, Mapping, Optional

from .batch_summary import summarize_batch
from .ledger_models import AggregatedAllocationData, calculate_allocation_rate


def aggregate_allocations(batches: Optional[Iterable[Mapping[str, Any]]]) -> AggregatedAllocationData:
    """
    Sum batch summaries across batches.

    The allocation rate is recomputed from the summed totals rather than
    averaged over batches.
    """
    result = AggregatedAllocationData()

    for batch in batches or []:
        summary = summarize_batch(batch)
        result.batch_count += 1
        result.total_original += summary.total_original
        result.total_allocated += summary.total_allocated
        result.total_unallocated += summary.total_unallocated
        result.allocated_value += summary.allocated_value
        result.unallocated_value += summary.unallocated_value
        result.unallocated_items.extend(summary.unallocated_items)

    result.allocation_rate = calculate_allocation_rate(result.total_allocated, result.total_original)
    return result
