"""
Batch Allocation Module
=======================
Ledger of stock allocated out of warehouse batches.

Components:
- ledger_models: Allocation events, requests and derived views
- ledger_data: Batch, product and student documents
- ledger_validators: Validation rules for allocation requests
- allocation_recorder: Writes allocation events into a batch
- batch_summary: Per-batch totals, values and unallocated stock
- product_flow: Batch -> product -> student tracing
- aggregation: Totals across many batches
- batch_filters: Search, year and stock-status filters for batch lists
- batch_import: Excel sheets into batch items
- ledger_formatters: Display formatting and Excel export
"""

from .ledger_models import (
    AllocationRequest,
    BatchAllocationEvent,
    StudentAllocationEvent,
    BatchAllocationSummary,
    ProductAllocationGroup,
    ProductFlow,
    AggregatedAllocationData,
)
from .ledger_data import BatchInventoryData
from .ledger_validators import BatchAllocationValidator, ValidationResult
from .allocation_recorder import BatchAllocationRecorder, OperationResult
from .batch_summary import summarize_batch
from .product_flow import compose_product_flow
from .aggregation import aggregate_allocations
from .batch_filters import filter_batches, batch_years, STATUS_OPTIONS
from .batch_import import read_batch_excel, parse_batch_frame, BatchImportResult
from .ledger_formatters import BatchAllocationFormatters, export_to_excel

__all__ = [
    # Models
    'AllocationRequest',
    'BatchAllocationEvent',
    'StudentAllocationEvent',
    'BatchAllocationSummary',
    'ProductAllocationGroup',
    'ProductFlow',
    'AggregatedAllocationData',

    # Services
    'BatchInventoryData',
    'BatchAllocationValidator',
    'ValidationResult',
    'BatchAllocationRecorder',
    'OperationResult',

    # Read-side views
    'summarize_batch',
    'compose_product_flow',
    'aggregate_allocations',
    'filter_batches',
    'batch_years',
    'STATUS_OPTIONS',

    # Import
    'read_batch_excel',
    'parse_batch_frame',
    'BatchImportResult',

    # Formatters
    'BatchAllocationFormatters',
    'export_to_excel',
]

__version__ = '1.0.0'
