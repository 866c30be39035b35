"""
Batch Allocation Ledger Models
==============================
Typed records for the two allocation ledgers and the derived views.

Ledgers:
- BatchAllocationEvent: batch -> product, stored in a batch size's `allocationLog`
- StudentAllocationEvent: product -> student, read from a product variant's
  `allocationHistory`

The two are never interchangeable. Persisted documents keep their camelCase
keys; Python attributes are snake_case.
"""

from dataclasses import dataclass, field, asdict
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional, Union

Number = Union[int, float]


def to_number(value: Any) -> Number:
    """
    Coerce a stored numeric field, treating missing or malformed values as 0.

    Legacy documents may carry None, empty strings or numbers saved as text.
    """
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            pass
        try:
            return float(text)
        except ValueError:
            return 0
    return 0


def as_records(value: Any) -> List[Mapping]:
    """
    Mapping entries of a stored array.

    Anything that is not a list (a map keyed by size, a stray scalar) reads
    as empty, and non-mapping entries are skipped.
    """
    if not isinstance(value, (list, tuple)):
        return []
    return [entry for entry in value if isinstance(entry, Mapping)]


def _pick(data: Mapping, camel: str, snake: str, default: Any = None) -> Any:
    if camel in data:
        return data[camel]
    return data.get(snake, default)


@dataclass
class AllocationRequest:
    """A request to move stock from one batch size to a product/school"""
    product_id: Optional[str]
    product_name: Optional[str]
    school_id: Optional[str]
    school_name: Optional[str]
    variant_type: str
    color: str
    size: str
    quantity: int
    allocated_by: Optional[str] = None
    allocated_by_name: Optional[str] = None
    idempotency_key: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping) -> 'AllocationRequest':
        """Build from a camelCase or snake_case mapping"""
        return cls(
            product_id=_pick(data, 'productId', 'product_id'),
            product_name=_pick(data, 'productName', 'product_name'),
            school_id=_pick(data, 'schoolId', 'school_id'),
            school_name=_pick(data, 'schoolName', 'school_name'),
            variant_type=_pick(data, 'variantType', 'variant_type'),
            color=data.get('color'),
            size=data.get('size'),
            quantity=data.get('quantity'),
            allocated_by=_pick(data, 'allocatedBy', 'allocated_by'),
            allocated_by_name=_pick(data, 'allocatedByName', 'allocated_by_name'),
            idempotency_key=_pick(data, 'idempotencyKey', 'idempotency_key'),
        )


@dataclass(frozen=True)
class BatchAllocationEvent:
    """One entry of a batch size's allocationLog (batch -> product)"""
    product_id: Optional[str]
    product_name: Optional[str]
    school_id: Optional[str]
    school_name: Optional[str]
    quantity_allocated: Number
    allocated_at: Optional[str]
    allocated_by: Optional[str] = None
    allocated_by_name: Optional[str] = None
    idempotency_key: Optional[str] = None

    @classmethod
    def from_request(cls, request: AllocationRequest, allocated_at: str) -> 'BatchAllocationEvent':
        return cls(
            product_id=request.product_id,
            product_name=request.product_name,
            school_id=request.school_id,
            school_name=request.school_name,
            quantity_allocated=request.quantity,
            allocated_at=allocated_at,
            allocated_by=request.allocated_by,
            allocated_by_name=request.allocated_by_name,
            idempotency_key=request.idempotency_key,
        )

    @classmethod
    def from_document(cls, doc: Mapping) -> 'BatchAllocationEvent':
        return cls(
            product_id=doc.get('productId'),
            product_name=doc.get('productName'),
            school_id=doc.get('schoolId'),
            school_name=doc.get('schoolName'),
            quantity_allocated=to_number(doc.get('quantityAllocated')),
            allocated_at=doc.get('allocatedAt'),
            allocated_by=doc.get('allocatedBy'),
            allocated_by_name=doc.get('allocatedByName'),
            idempotency_key=doc.get('idempotencyKey'),
        )

    def to_document(self) -> Dict[str, Any]:
        """Persisted shape, as stored in allocationLog"""
        doc = {
            'productId': self.product_id,
            'productName': self.product_name,
            'schoolId': self.school_id,
            'schoolName': self.school_name,
            'quantityAllocated': self.quantity_allocated,
            'allocatedAt': self.allocated_at,
            'allocatedBy': self.allocated_by,
            'allocatedByName': self.allocated_by_name,
        }
        if self.idempotency_key is not None:
            doc['idempotencyKey'] = self.idempotency_key
        return doc

    def to_row(self, variant_type: str, color: str, size: str) -> Dict[str, Any]:
        """Flat row enriched with the item/size it was allocated from"""
        row = asdict(self)
        row.update({'variant_type': variant_type, 'color': color, 'size': size})
        return row


@dataclass(frozen=True)
class StudentAllocationEvent:
    """One entry of a product variant's allocationHistory (product -> student)"""
    student_id: Optional[str]
    size: Optional[str]
    quantity: Number
    allocated_at: Any = None

    @classmethod
    def from_document(cls, doc: Mapping) -> 'StudentAllocationEvent':
        return cls(
            student_id=doc.get('studentId'),
            size=doc.get('size'),
            quantity=to_number(doc.get('quantity')),
            allocated_at=doc.get('allocatedAt'),
        )


# ================================================================
# DERIVED VIEWS
# ================================================================

@dataclass
class ProductAllocationGroup:
    """Batch allocations grouped by receiving product"""
    product_id: Optional[str]
    product_name: Optional[str]
    school_id: Optional[str]
    school_name: Optional[str]
    total_quantity: Number = 0
    allocations: List[Dict[str, Any]] = field(default_factory=list)


@dataclass
class BatchAllocationSummary:
    total_original: Number = 0
    total_allocated: Number = 0
    total_unallocated: Number = 0
    allocated_value: Number = 0
    unallocated_value: Number = 0
    allocation_rate: float = 0.0
    allocations_by_product: List[ProductAllocationGroup] = field(default_factory=list)
    unallocated_items: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def allocation_rate_display(self) -> str:
        """Legacy rate string: "0" when nothing was ever stocked, else one decimal"""
        return format_legacy_rate(self.allocation_rate, self.total_original)


@dataclass
class BatchFlowNode:
    id: Optional[str]
    name: Optional[str]
    total_items: Number
    allocated_items: Number
    unallocated_items: Number
    allocation_rate: float


@dataclass
class StudentAllocationRow:
    student_id: Optional[str]
    student_name: str
    size: Optional[str]
    quantity: Number
    allocated_at: Any = None


@dataclass
class ProductFlowNode:
    product_id: Optional[str]
    product_name: Optional[str]
    school_id: Optional[str]
    school_name: Optional[str]
    total_quantity: Number
    allocations: List[Dict[str, Any]]
    current_stock: Number = 0
    distributed_to_students: Number = 0
    student_allocations: List[StudentAllocationRow] = field(default_factory=list)


@dataclass
class ProductFlow:
    batch: BatchFlowNode
    products: List[ProductFlowNode] = field(default_factory=list)
    unallocated: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class AggregatedAllocationData:
    batch_count: int = 0
    total_original: Number = 0
    total_allocated: Number = 0
    total_unallocated: Number = 0
    allocated_value: Number = 0
    unallocated_value: Number = 0
    allocation_rate: float = 0.0
    unallocated_items: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def allocation_rate_display(self) -> str:
        return format_legacy_rate(self.allocation_rate, self.total_original)


def calculate_allocation_rate(total_allocated: Number, total_original: Number) -> float:
    """Allocated as a percentage of original, one decimal, 0 when nothing was stocked"""
    if total_original > 0:
        return round(total_allocated / total_original * 100, 1)
    return 0.0


def format_legacy_rate(rate: float, total_original: Number) -> str:
    if total_original > 0:
        return f"{rate:.1f}"
    return "0"
